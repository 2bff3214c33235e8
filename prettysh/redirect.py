"""File redirections, here-documents and saving of the standard streams."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable

from prettysh.dequote import UnclosedQuoteError, dequote
from prettysh.expansion import expand_dollars
from prettysh.state import ShellState
from prettysh.tree import NodeKind, SyntaxNode

HEREDOC_PROMPT = "> "
FILE_MODE = 0o666
QUOTES = ("'", '"')

LineReader = Callable[[str], "str | None"]


class RedirectError(Exception):
    """A redirection or here-document could not be set up."""


def _console_reader(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def _dup_file_onto(path: str, flags: int, target_fd: int) -> None:
    try:
        fd = os.open(path, flags, FILE_MODE)
    except OSError as exc:
        raise RedirectError(f"{path}: {exc.strerror}") from exc
    try:
        os.dup2(fd, target_fd)
    except OSError as exc:
        raise RedirectError(f"{path}: {exc.strerror}") from exc
    finally:
        os.close(fd)


_FILE_FLAGS = {
    NodeKind.IN_FILENAME: os.O_RDONLY,
    NodeKind.OUT_FILENAME: os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    NodeKind.OUT_ADD_FILENAME: os.O_WRONLY | os.O_CREAT | os.O_APPEND,
}


def open_redirect(node: SyntaxNode) -> None:
    """Apply the redirection described by ``node`` to this process.

    File nodes open ``node.data`` and put it on descriptor ``node.red_fd``.
    A here-document node moves its already opened descriptor ``node.red_fd``
    onto standard input.  Other nodes are left alone.
    """
    if node.kind in _FILE_FLAGS:
        _dup_file_onto(node.data, _FILE_FLAGS[node.kind], node.red_fd)
    elif node.kind == NodeKind.HEREDOC_DELIMITER:
        fd = node.red_fd
        if fd < 0:
            raise RedirectError(f"{node.data}: here-document is not open")
        try:
            os.dup2(fd, 0)
            os.close(fd)
        except OSError as exc:
            raise RedirectError(f"{node.data}: {exc.strerror}") from exc


def read_heredoc(
    delimiter: str,
    quoted: bool,
    state: ShellState,
    reader: LineReader | None = None,
) -> int:
    """Read here-document lines up to ``delimiter`` and return a readable fd.

    Lines are taken from ``reader`` (called with the prompt) until it yields
    ``None``, a line equal to ``delimiter``, or a signal is pending.  Unless
    ``quoted`` is true, dollar references in each line are expanded, single
    quotes included.  A pending signal aborts with ``RedirectError``.
    """
    read_line = reader if reader is not None else _console_reader
    fd, path = tempfile.mkstemp(prefix=".tmp_heredoc")
    try:
        os.unlink(path)
        with os.fdopen(os.dup(fd), "w", encoding="utf-8") as out:
            while True:
                line = read_line(HEREDOC_PROMPT)
                if line is None:
                    break
                if state.pending_signal or line == delimiter:
                    break
                if not quoted:
                    line = expand_dollars(
                        line, state.env, state.prev_status, heredoc=True
                    )
                out.write(line)
                out.write("\n")
        if state.pending_signal:
            raise RedirectError("here-document interrupted")
        os.lseek(fd, 0, os.SEEK_SET)
    except BaseException:
        os.close(fd)
        raise
    return fd


def count_heredocs(node: SyntaxNode | None) -> int:
    """Return how many here-document nodes the tree under ``node`` holds."""
    if node is None:
        return 0
    own = 1 if node.kind == NodeKind.HEREDOC_DELIMITER else 0
    return own + count_heredocs(node.left) + count_heredocs(node.right)


def collect_heredocs(
    root: SyntaxNode | None,
    state: ShellState,
    reader: LineReader | None = None,
) -> None:
    """Read every here-document in the tree, left to right.

    Each delimiter node has its quotes removed and gets the descriptor of its
    content in ``red_fd``.  A delimiter starting with a quote disables
    expansion of the content.
    """
    if root is None:
        return
    collect_heredocs(root.left, state, reader)
    if root.kind == NodeKind.HEREDOC_DELIMITER:
        quoted = root.data.startswith(QUOTES)
        try:
            root.data = dequote(root.data)
        except UnclosedQuoteError as exc:
            raise RedirectError(str(exc)) from exc
        root.red_fd = read_heredoc(root.data, quoted, state, reader)
    collect_heredocs(root.right, state, reader)


class SavedStdio:
    """Context manager that restores standard input, output and error."""

    def __init__(self) -> None:
        self.saved: tuple[int, int, int] | None = None

    def __enter__(self) -> SavedStdio:
        saved: list[int] = []
        try:
            for fd in (0, 1, 2):
                saved.append(os.dup(fd))
        except OSError as exc:
            for fd in saved:
                os.close(fd)
            raise RedirectError(f"cannot save standard streams: {exc.strerror}") from exc
        self.saved = (saved[0], saved[1], saved[2])
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.saved is None:
            return False
        saved, self.saved = self.saved, None
        for target, fd in enumerate(saved):
            try:
                os.dup2(fd, target)
            finally:
                os.close(fd)
        return False