"""Execution core of a small POSIX-style shell: syntax trees, expansion, quoting, redirection and pipelines."""

__version__ = "0.1.0"