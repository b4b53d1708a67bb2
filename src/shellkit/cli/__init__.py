"""CLI layer: console I/O, the interactive shell, and the error boundary.

This package is the outermost layer.  It may import from ``core`` and
``infra``, but no other layer may import from ``cli``.
"""
