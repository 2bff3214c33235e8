"""Locating the executable file for a command name."""

from __future__ import annotations

import errno
import os
from collections.abc import Mapping

from prettysh.state import (
    STATUS_CMD_NOT_FOUND,
    STATUS_IS_A_DIRECTORY,
    STATUS_PERMISSION_DENIED,
)

STATUS_NO_SUCH_FILE = 127


class CommandLookupError(Exception):
    """A command could not be resolved to an executable file."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def _error(path: str, reason: str, status: int) -> CommandLookupError:
    return CommandLookupError(f"{path}: {reason}", status)


def _executable_error(path: str) -> CommandLookupError | None:
    try:
        os.stat(path)
    except OSError as exc:
        return _error(path, os.strerror(exc.errno or errno.ENOENT), STATUS_NO_SUCH_FILE)
    if path.rpartition("/")[2] == "":
        return _error(path, "Is a directory", STATUS_IS_A_DIRECTORY)
    if os.access(path, os.X_OK):
        return None
    return _error(path, os.strerror(errno.EACCES), STATUS_PERMISSION_DENIED)


def is_file_executable(path: str) -> bool:
    """Return True if ``path`` exists, does not end in ``/`` and is executable."""
    return _executable_error(path) is None


def _path_entries(path: str) -> list[str]:
    entries = path.split(":")
    if entries[-1] == "":
        entries.pop()
    return entries


def search_path(cmd: str, path: str) -> str:
    """Find ``cmd`` in the colon-separated directory list ``path``.

    Returns the first existing, executable candidate.  If none is found the
    first permission failure is raised, or else a "command not found" error.
    """
    if not cmd:
        raise _error(cmd, "command not found", STATUS_CMD_NOT_FOUND)
    denied: CommandLookupError | None = None
    for directory in _path_entries(path):
        candidate = f"{directory}/{cmd}"
        try:
            os.stat(candidate)
        except OSError:
            continue
        if os.access(candidate, os.X_OK):
            return candidate
        if denied is None:
            denied = _error(
                candidate, os.strerror(errno.EACCES), STATUS_PERMISSION_DENIED
            )
    if denied is not None:
        raise denied
    raise _error(cmd, "command not found", STATUS_CMD_NOT_FOUND)


def resolve_command(cmd: str, env: Mapping[str, str | None]) -> str:
    """Return the file to execute for ``cmd`` using ``PATH`` from ``env``.

    A name containing ``/`` is used as given.  When ``PATH`` is unset the
    lookup fails with an empty message and status 0.
    """
    if "/" in cmd:
        problem = _executable_error(cmd)
        if problem is not None:
            raise problem
        return cmd
    path = env.get("PATH")
    if path is None:
        raise CommandLookupError("", 0)
    return search_path(cmd, path)