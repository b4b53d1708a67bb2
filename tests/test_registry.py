"""Tests for the command registry."""

from __future__ import annotations

import pytest

from conftest import StubCommand
from shellkit.core.registry import RESERVED_COMMAND_NAMES, CommandRegistry
from shellkit.exceptions import CommandNamingError, ShellKitError


class TestReservedNames:
    def test_reserved_set(self) -> None:
        assert RESERVED_COMMAND_NAMES == frozenset(
            {"help", "history", "pwd", "cd", "clear", "complete", "exit", "quit", "echo", "config"}
        )

    @pytest.mark.parametrize("name", ["help", "HELP", "Exit", "config"])
    def test_reserved_name_is_rejected(self, name: str) -> None:
        registry = CommandRegistry()
        with pytest.raises(CommandNamingError, match="is reserved") as exc_info:
            registry.register(StubCommand(name))
        assert "Reserved names:" in str(exc_info.value)
        assert name not in registry

    def test_builtin_may_claim_reserved_name(self) -> None:
        registry = CommandRegistry()
        registry.register(StubCommand("help"), builtin=True)
        assert "help" in registry

    def test_reserved_set_is_injectable(self) -> None:
        registry = CommandRegistry(reserved_names={"deploy"})
        registry.register(StubCommand("help"))
        with pytest.raises(CommandNamingError):
            registry.register(StubCommand("Deploy"))


class TestRegistration:
    def test_duplicate_is_rejected(self) -> None:
        registry = CommandRegistry()
        first = StubCommand("status")
        registry.register(first)
        with pytest.raises(CommandNamingError) as exc_info:
            registry.register(StubCommand("status"))
        message = str(exc_info.value)
        assert "Command 'status' is already registered" in message
        assert "Each command name must be unique" in message
        assert registry.get("status") is first

    def test_duplicate_check_is_case_insensitive(self) -> None:
        registry = CommandRegistry()
        registry.register(StubCommand("deploy"))
        with pytest.raises(CommandNamingError):
            registry.register(StubCommand("DEPLOY"))

    @pytest.mark.parametrize("name", ["", "   ", "\t"])
    def test_blank_name_is_rejected(self, name: str) -> None:
        with pytest.raises(CommandNamingError, match="cannot be empty"):
            CommandRegistry().register(StubCommand(name))

    def test_naming_error_is_a_shellkit_error(self) -> None:
        assert issubclass(CommandNamingError, ShellKitError)

    def test_registration_record(self) -> None:
        registry = CommandRegistry()
        record = registry.register(StubCommand("Status", "Show status", "Ops"))
        assert record.name == "Status"
        assert record.description == "Show status"
        assert record.category == "Ops"
        assert registry.registration("status") == record

    def test_empty_category_defaults_to_general(self) -> None:
        record = CommandRegistry().register(StubCommand("status", category=""))
        assert record.category == "General"


class TestLookup:
    def test_get_is_case_insensitive(self) -> None:
        registry = CommandRegistry()
        command = StubCommand("Status")
        registry.register(command)
        assert registry.get("STATUS") is command
        assert registry.get("missing") is None

    def test_names_keep_registration_order(self) -> None:
        registry = CommandRegistry()
        for name in ("zeta", "alpha", "mid"):
            registry.register(StubCommand(name))
        assert registry.names() == ["zeta", "alpha", "mid"]
        assert len(registry) == 3
        assert [c.name for c in registry] == ["zeta", "alpha", "mid"]

    def test_contains_ignores_non_strings(self) -> None:
        assert 42 not in CommandRegistry()
