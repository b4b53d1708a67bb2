"""Tests for the input-line tokenizer and shell-operator scan."""

from __future__ import annotations

import pytest

from shellkit.core.tokenizer import SHELL_OPERATORS, contains_shell_operators, tokenize


# ---------------------------------------------------------------------------
# tokenize
# ---------------------------------------------------------------------------

class TestTokenize:
    def test_quoted_substring_is_one_token(self) -> None:
        assert tokenize('a "b c" d') == ["a", "b c", "d"]

    def test_empty_line(self) -> None:
        assert tokenize("") == []

    def test_whitespace_only(self) -> None:
        assert tokenize("   \t  ") == []

    def test_collapses_repeated_whitespace(self) -> None:
        assert tokenize("  git   status\t-s ") == ["git", "status", "-s"]

    def test_unterminated_quote_consumes_to_end_of_line(self) -> None:
        assert tokenize('say "hello  world') == ["say", "hello  world"]

    def test_quotes_are_stripped_inside_a_word(self) -> None:
        assert tokenize('a"b c"d') == ["ab cd"]

    def test_empty_quotes_produce_no_token(self) -> None:
        assert tokenize('a "" b') == ["a", "b"]

    def test_single_quotes_are_literal(self) -> None:
        assert tokenize("echo 'a b'") == ["echo", "'a", "b'"]


# ---------------------------------------------------------------------------
# contains_shell_operators
# ---------------------------------------------------------------------------

class TestContainsShellOperators:
    @pytest.mark.parametrize(
        "line",
        [
            "ls | wc -l",
            "echo hi > out.txt",
            "sort < in.txt",
            "make && make install",
            "false || true",
            "cd /tmp; ls",
            "sleep 10 &",
            "echo $HOME",
            "echo `date`",
            "echo $(pwd)",
            "ls *.py",
            "ls file?.txt",
            "ls [ab].txt",
            "cd ~",
            "echo hi >> log",
            "cmd 2> err.txt",
            "cmd 2>&1",
        ],
    )
    def test_operator_lines(self, line: str) -> None:
        assert contains_shell_operators(line) is True

    @pytest.mark.parametrize(
        "line",
        ["ls -la", "git status", "echo hello world", 'echo "quoted text"', ""],
    )
    def test_plain_lines(self, line: str) -> None:
        assert contains_shell_operators(line) is False

    def test_operator_inside_an_argument_still_triggers(self) -> None:
        assert contains_shell_operators("echo price=5$") is True

    def test_operator_set_is_fixed(self) -> None:
        assert "|" in SHELL_OPERATORS
        assert "2>&1" in SHELL_OPERATORS
        assert len(SHELL_OPERATORS) == 17
