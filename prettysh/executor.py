"""Running parsed command lines: single commands, pipelines and lists."""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass

from prettysh.dequote import UnclosedQuoteError, dequote
from prettysh.expansion import expand_dollars
from prettysh.pathsearch import CommandLookupError, resolve_command
from prettysh.redirect import (
    LineReader,
    RedirectError,
    SavedStdio,
    collect_heredocs,
    count_heredocs,
    open_redirect,
)
from prettysh.state import (
    MAX_HEREDOCS,
    SIGNAL_STATUS_BASE,
    ShellState,
    builtin_index,
)
from prettysh.tree import NodeKind, SyntaxNode

Builtin = Callable[[ShellState, list], int]

ERROR_STATUS = -1
CHILD_FAILURE = 255

_BOUNDARY = (NodeKind.PIPE, NodeKind.OP_LIST)
_NOT_EXPANDED = (NodeKind.HEREDOC_DELIMITER, NodeKind.REDIRECT)


@dataclass
class PreparedCommand:
    """A command whose words are expanded and whose redirections are applied."""

    argv: list[str]
    node: SyntaxNode


def _command_chain(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield the nodes of one command, from its leftmost node upwards."""
    current: SyntaxNode | None = node.leftmost()
    while current is not None and current.kind not in _BOUNDARY:
        yield current
        current = current.parent


def prepare_command(node: SyntaxNode, state: ShellState) -> PreparedCommand:
    """Expand, dequote and redirect the parts of the command rooted at ``node``.

    Words become the argument vector in order.  Redirections are applied to
    the current process as they are met.
    """
    argv: list[str] = []
    for part in _command_chain(node):
        if part.kind not in _NOT_EXPANDED:
            expanded = expand_dollars(part.data, state.env, state.prev_status)
            part.data = dequote(expanded)
        open_redirect(part)
        if part.kind == NodeKind.WORD:
            part.idx = len(argv)
            part.word_num = len(argv) + 1
            argv.append(part.data)
    node.argv = argv
    return PreparedCommand(argv=argv, node=node)


def exit_status(wait_status: int) -> int | None:
    """Convert a raw wait status into a shell exit status.

    A normal exit gives its exit code and death by a signal gives 128 plus
    the signal number; any other status gives None.
    """
    if os.WIFEXITED(wait_status):
        return os.WEXITSTATUS(wait_status)
    if os.WIFSIGNALED(wait_status):
        return SIGNAL_STATUS_BASE + os.WTERMSIG(wait_status)
    return None


def _flush_streams() -> None:
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass


def _write_fd(fd: int, text: str) -> None:
    os.write(fd, text.encode("utf-8", "replace"))


def _default_signals() -> None:
    signal.signal(signal.SIGQUIT, signal.SIG_DFL)
    signal.signal(signal.SIGTERM, signal.SIG_DFL)


def _pipeline_commands(node: SyntaxNode) -> list[SyntaxNode]:
    commands: list[SyntaxNode] = []
    for side in (node.left, node.right):
        if side is None:
            continue
        if side.kind == NodeKind.PIPE:
            commands.extend(_pipeline_commands(side))
        else:
            commands.append(side)
    return commands


def _close_heredocs(commands: list[SyntaxNode]) -> None:
    for command in commands:
        for part in _command_chain(command):
            if part.kind == NodeKind.HEREDOC_DELIMITER and part.red_fd > 2:
                try:
                    os.close(part.red_fd)
                except OSError:
                    pass
                part.red_fd = -1


class Executor:
    """Runs syntax trees against a shell state."""

    def __init__(
        self,
        state: ShellState,
        builtins: Mapping[str, Builtin] | None = None,
        reader: LineReader | None = None,
    ) -> None:
        self.state = state
        self.builtins: dict[str, Builtin] = dict(builtins or {})
        self.reader = reader

    def run(self, root: SyntaxNode | None) -> int:
        """Execute one command line and return the resulting status.

        Here-documents are read first; standard streams are restored at the
        end.  Raises ``RedirectError`` when more than the allowed number of
        here-documents appear or one cannot be read.
        """
        with SavedStdio():
            if root is not None:
                if count_heredocs(root) > MAX_HEREDOCS:
                    raise RedirectError("maximum here-document count exceeded")
                collect_heredocs(root, self.state, self.reader)
            try:
                self._run_node(root)
            finally:
                _flush_streams()
        return self.state.status

    def _run_node(self, node: SyntaxNode | None) -> None:
        if node is None:
            return
        if node.kind == NodeKind.PIPE:
            self._run_pipeline(node)
        elif node.kind == NodeKind.OP_LIST:
            self._run_list(node)
        else:
            self._run_single(node)

    def _run_list(self, node: SyntaxNode) -> None:
        self._run_guarded(node.left)
        operator = node.data[:1]
        status = self.state.status
        if (
            (operator == "|" and status != 0)
            or (operator == "&" and status == 0)
            or operator == ";"
        ):
            self._run_guarded(node.right)

    def _run_guarded(self, node: SyntaxNode | None) -> None:
        try:
            self._run_node(node)
        except (RedirectError, UnclosedQuoteError, OSError) as exc:
            print(f"prettysh: {exc}", file=sys.stderr)

    def _run_single(self, node: SyntaxNode) -> None:
        with SavedStdio():
            try:
                prepared = prepare_command(node, self.state)
                if prepared.argv:
                    self._dispatch_single(prepared)
            finally:
                _flush_streams()

    def _dispatch_single(self, prepared: PreparedCommand) -> None:
        name = prepared.argv[0]
        prepared.node.builtin_id = builtin_index(name)
        builtin = self.builtins.get(name)
        if builtin is not None:
            status = builtin(self.state, prepared.argv)
            self.state.status = status
            self.state.prev_status = status
            return
        _flush_streams()
        pid = os.fork()
        if pid == 0:
            try:
                _default_signals()
                self._exec(prepared.argv)
            finally:
                os._exit(CHILD_FAILURE)
        self._wait([pid])

    def _run_pipeline(self, node: SyntaxNode) -> None:
        commands = _pipeline_commands(node)
        if not commands:
            return
        commands[0].first_cmd = True
        commands[-1].last_cmd = True
        pids: list[int] = []
        open_fds: set[int] = set()
        upstream: int | None = None
        try:
            for position, command in enumerate(commands):
                read_end: int | None = None
                write_end: int | None = None
                if position < len(commands) - 1:
                    read_end, write_end = os.pipe()
                    open_fds.update((read_end, write_end))
                _flush_streams()
                pid = os.fork()
                if pid == 0:
                    self._run_pipeline_child(command, upstream, write_end, read_end)
                pids.append(pid)
                for fd in (upstream, write_end):
                    if fd is not None:
                        os.close(fd)
                        open_fds.discard(fd)
                upstream = read_end
        finally:
            for fd in open_fds:
                os.close(fd)
            _close_heredocs(commands)
            self._wait(pids)

    def _run_pipeline_child(
        self,
        command: SyntaxNode,
        stdin_fd: int | None,
        stdout_fd: int | None,
        unused_fd: int | None,
    ) -> None:
        status = CHILD_FAILURE
        try:
            _default_signals()
            if unused_fd is not None:
                os.close(unused_fd)
            if stdin_fd is not None:
                os.dup2(stdin_fd, 0)
                os.close(stdin_fd)
            if stdout_fd is not None:
                os.dup2(stdout_fd, 1)
                os.close(stdout_fd)
            prepared = prepare_command(command, self.state)
            status = 0
            if prepared.argv:
                status = self._run_in_child(prepared)
        except Exception as exc:
            status = CHILD_FAILURE
            _write_fd(2, f"prettysh: {exc}\n")
        finally:
            _flush_streams()
            os._exit(status)

    def _run_in_child(self, prepared: PreparedCommand) -> int:
        name = prepared.argv[0]
        prepared.node.builtin_id = builtin_index(name)
        builtin = self.builtins.get(name)
        if builtin is None:
            self._exec(prepared.argv)
            return CHILD_FAILURE
        status = builtin(self.state, prepared.argv)
        self.state.status = status
        self.state.prev_status = status
        # A builtin inside a pipeline reports success unless it failed outright.
        return CHILD_FAILURE if status == ERROR_STATUS else 0

    def _exec(self, argv: list[str]) -> None:
        """Replace the current (child) process with ``argv``; never returns."""
        try:
            path = resolve_command(argv[0], self.state.env)
        except CommandLookupError as exc:
            _write_fd(2, exc.message + "\n")
            os._exit(exc.status)
        try:
            os.execve(path, argv, self.state.environ())
        except OSError as exc:
            _write_fd(2, f"{argv[0]}: {exc.strerror}\n")
            os._exit(exc.errno or CHILD_FAILURE)

    def _wait(self, pids: list[int]) -> None:
        for pid in pids:
            _, wait_status = os.waitpid(pid, 0)
            code = exit_status(wait_status)
            if code is not None:
                self.state.status = code
                self.state.prev_status = code
        if self.state.pending_signal:
            _write_fd(1, "\n")