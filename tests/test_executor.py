import os
import signal

import pytest

from prettysh.dequote import UnclosedQuoteError
from prettysh.executor import Executor, exit_status, prepare_command
from prettysh.redirect import RedirectError
from prettysh.state import (
    MAX_HEREDOCS,
    SIGNAL_STATUS_BASE,
    STATUS_CMD_NOT_FOUND,
    ShellState,
    load_environment,
)
from prettysh.tree import NodeKind, new_binary, new_node


def make_state(**extra):
    env = load_environment(os.environ)
    env.update(extra)
    return ShellState(env=env)


def word(text):
    return new_node(text)


def redirect(operator, target, kind, fd):
    target_node = new_node(str(target), kind)
    target_node.red_fd = fd
    return [new_node(operator, NodeKind.REDIRECT), target_node]


def out_to(path):
    return redirect(">", path, NodeKind.OUT_FILENAME, 1)


def in_from(path):
    return redirect("<", path, NodeKind.IN_FILENAME, 0)


def heredoc(delimiter):
    return redirect("<<", delimiter, NodeKind.HEREDOC_DELIMITER, 0)


def command(*parts):
    nodes = []
    for part in parts:
        nodes.extend(part if isinstance(part, list) else [part])
    for lower, upper in zip(nodes, nodes[1:]):
        upper.left = lower
        lower.parent = upper
    return nodes[-1]


def pipeline(*commands):
    if len(commands) == 1:
        return commands[0]
    return new_binary("|", commands[0], pipeline(*commands[1:]), NodeKind.PIPE)


def op_list(operator, left, right):
    return new_binary(operator, left, right, NodeKind.OP_LIST)


def lines_from(*lines):
    remaining = iter(lines)
    return lambda prompt: next(remaining, None)


def test_exit_status_of_normal_exit():
    assert exit_status(3 << 8) == 3


def test_exit_status_of_signal_death():
    assert exit_status(int(signal.SIGKILL)) == SIGNAL_STATUS_BASE + signal.SIGKILL


def test_exit_status_of_stopped_child_is_none():
    assert exit_status((int(signal.SIGSTOP) << 8) | 0x7F) is None


def test_prepare_command_expands_and_dequotes_words():
    top = command(word("echo"), word("'$HOME'"), word('"$USER"x'))
    prepared = prepare_command(top, make_state(USER="alice"))
    assert prepared.argv == ["echo", "$HOME", "alicex"]
    assert prepared.node is top
    assert top.argv == prepared.argv


def test_prepare_command_numbers_words():
    first, second = word("a"), word("b")
    command(first, second)
    prepare_command(second, make_state())
    assert (first.idx, first.word_num) == (0, 1)
    assert (second.idx, second.word_num) == (1, 2)


def test_prepare_command_uses_previous_status():
    state = make_state()
    state.prev_status = 42
    prepared = prepare_command(command(word("echo"), word("$?")), state)
    assert prepared.argv == ["echo", "42"]


def test_prepare_command_rejects_unclosed_quote():
    with pytest.raises(UnclosedQuoteError):
        prepare_command(command(word("echo"), word("'open")), make_state())


def test_prepare_command_opens_output_on_target_fd(tmp_path):
    target = tmp_path / "out.txt"
    out_node = new_node("$DIR/out.txt", NodeKind.OUT_FILENAME)
    scratch = os.open(os.devnull, os.O_WRONLY)
    try:
        out_node.red_fd = scratch
        top = command(word("echo"), new_node(">", NodeKind.REDIRECT), out_node)
        prepared = prepare_command(top, make_state(DIR=str(tmp_path)))
        os.write(scratch, b"payload")
    finally:
        os.close(scratch)
    assert prepared.argv == ["echo"]
    assert out_node.data == str(target)
    assert target.read_bytes() == b"payload"


def test_prepare_command_missing_input_raises(tmp_path):
    in_node = new_node(str(tmp_path / "missing"), NodeKind.IN_FILENAME)
    scratch = os.open(os.devnull, os.O_RDONLY)
    try:
        in_node.red_fd = scratch
        top = command(word("cat"), new_node("<", NodeKind.REDIRECT), in_node)
        with pytest.raises(RedirectError):
            prepare_command(top, make_state())
    finally:
        os.close(scratch)


def test_builtin_runs_in_shell_process():
    calls = []

    def fake(state, argv):
        calls.append(list(argv))
        state.env["SEEN"] = "yes"
        return 5

    state = make_state()
    status = Executor(state, {"pwd": fake}).run(command(word("pwd"), word("-x")))
    assert status == 5
    assert state.prev_status == 5
    assert calls == [["pwd", "-x"]]
    assert state.env["SEEN"] == "yes"


def test_external_command_writes_to_file(tmp_path):
    out = tmp_path / "out"
    state = make_state()
    status = Executor(state).run(command(word("echo"), word("hello"), out_to(out)))
    assert status == 0
    assert out.read_text() == "hello\n"


def test_external_exit_status_is_recorded():
    state = make_state()
    status = Executor(state).run(command(word("sh"), word("-c"), word("'exit 3'")))
    assert status == 3
    assert state.prev_status == 3


def test_unknown_command_reports_not_found(capfd):
    state = make_state()
    status = Executor(state).run(command(word("no-such-command-for-prettysh")))
    assert status == STATUS_CMD_NOT_FOUND
    assert "command not found" in capfd.readouterr().err


def test_redirect_only_command_keeps_status(tmp_path):
    out = tmp_path / "created"
    state = make_state()
    state.status = 3
    assert Executor(state).run(command(*out_to(out))) == 3
    assert out.exists()


def test_run_without_tree_returns_current_status():
    state = make_state()
    state.status = 9
    assert Executor(state).run(None) == 9


def test_pipeline_passes_output_along(tmp_path):
    out = tmp_path / "out"
    root = pipeline(
        command(word("echo"), word("hello")),
        command(word("tr"), word("a-z"), word("A-Z"), out_to(out)),
    )
    assert Executor(make_state()).run(root) == 0
    assert out.read_text() == "HELLO\n"


def test_pipeline_of_three_commands(tmp_path):
    out = tmp_path / "out"
    root = pipeline(
        command(word("echo"), word("abc")),
        command(word("cat")),
        command(word("cat"), out_to(out)),
    )
    Executor(make_state()).run(root)
    assert out.read_text() == "abc\n"


def test_pipeline_status_comes_from_last_command():
    state = make_state()
    root = pipeline(command(word("true")), command(word("sh"), word("-c"), word("'exit 6'")))
    assert Executor(state).run(root) == 6
    root = pipeline(command(word("sh"), word("-c"), word("'exit 6'")), command(word("true")))
    assert Executor(state).run(root) == 0


def test_builtin_in_pipeline_runs_in_child(tmp_path):
    out = tmp_path / "out"

    def greet(state, argv):
        state.env["CHILD_ONLY"] = "set"
        os.write(1, b"from builtin\n")
        return 0

    state = make_state()
    root = pipeline(command(word("greet")), command(word("cat"), out_to(out)))
    Executor(state, {"greet": greet}).run(root)
    assert out.read_bytes() == b"from builtin\n"
    assert "CHILD_ONLY" not in state.env


@pytest.mark.parametrize(
    ("operator", "left", "runs_right"),
    [
        ("&&", "false", False),
        ("&&", "true", True),
        ("||", "false", True),
        ("||", "true", False),
        (";", "false", True),
    ],
)
def test_list_operators(tmp_path, operator, left, runs_right):
    marker = tmp_path / "marker"
    root = op_list(
        operator,
        command(word(left)),
        command(word("echo"), word("x"), out_to(marker)),
    )
    Executor(make_state()).run(root)
    assert marker.exists() == runs_right


def test_list_continues_after_failed_redirect(tmp_path, capfd):
    root = op_list(
        ";",
        command(word("cat"), in_from(tmp_path / "missing")),
        command(word("sh"), word("-c"), word("'exit 4'")),
    )
    assert Executor(make_state()).run(root) == 4
    assert "prettysh:" in capfd.readouterr().err


def test_heredoc_content_is_expanded(tmp_path):
    out = tmp_path / "out"
    root = command(word("cat"), heredoc("EOF"), out_to(out))
    reader = lines_from("hi $NAME", "EOF", "never read")
    Executor(make_state(NAME="bob"), reader=reader).run(root)
    assert out.read_text() == "hi bob\n"


def test_quoted_heredoc_delimiter_disables_expansion(tmp_path):
    out = tmp_path / "out"
    root = command(word("cat"), heredoc("'EOF'"), out_to(out))
    reader = lines_from("hi $NAME", "EOF")
    Executor(make_state(NAME="bob"), reader=reader).run(root)
    assert out.read_text() == "hi $NAME\n"


def test_too_many_heredocs_is_rejected():
    prompts = []

    def reader(prompt):
        prompts.append(prompt)
        return None

    parts = [word("cat")]
    for _ in range(MAX_HEREDOCS + 1):
        parts.extend(heredoc("EOF"))
    with pytest.raises(RedirectError):
        Executor(make_state(), reader=reader).run(command(*parts))
    assert prompts == []