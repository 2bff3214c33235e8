"""Per-session shell state: environment, exit statuses and signals."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

BUILTIN_NAMES = ("echo", "cd", "pwd", "export", "unset", "env", "exit")

SIGNAL_STATUS_BASE = 128

STATUS_NO_SUCH_FILE_OR_DIRECTORY = 1
STATUS_BUILTIN_INVALID_USE = 2
STATUS_SYNTAX_ERROR = 2
STATUS_INVALID_OPTION = 126
STATUS_PERMISSION_DENIED = 126
STATUS_IS_A_DIRECTORY = 126
STATUS_CMD_NOT_FOUND = 127

MAX_HEREDOCS = 16


def load_environment(
    environ: Mapping[str, str] | Iterable[str],
) -> dict[str, str | None]:
    """Build the shell environment from ``KEY=VALUE`` entries or a mapping.

    Entries without ``=`` become keys with no value. The ``_`` variable is
    dropped.
    """
    if isinstance(environ, Mapping):
        env: dict[str, str | None] = dict(environ)
    else:
        env = {}
        for entry in environ:
            key, sep, value = entry.partition("=")
            env[key] = value if sep else None
    env.pop("_", None)
    return env


def builtin_index(name: str) -> int | None:
    """Return the position of ``name`` among the builtins, or None."""
    try:
        return BUILTIN_NAMES.index(name)
    except ValueError:
        return None


@dataclass
class ShellState:
    """Mutable state shared by the parts of a running shell."""

    env: dict[str, str | None] = field(default_factory=dict)
    status: int = 0
    prev_status: int = 0
    pending_signal: int = 0

    def getenv(self, key: str) -> str | None:
        """Return the value of ``key``, or None if unset or valueless."""
        return self.env.get(key)

    def environ(self) -> dict[str, str]:
        """Return the variables exported to child processes.

        Keys without a value are not passed on.
        """
        return {key: value for key, value in self.env.items() if value is not None}

    def record_signal(self, signum: int) -> None:
        """Remember that ``signum`` arrived; usable as a signal handler body."""
        self.pending_signal = int(signum)

    def end_line(self) -> None:
        """Finish processing one input line and prepare for the next."""
        if self.pending_signal:
            self.prev_status = SIGNAL_STATUS_BASE + self.pending_signal
            self.pending_signal = 0
        self.status = 0