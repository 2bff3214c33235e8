# prettysh

`prettysh` is the execution core of a small command shell in the spirit of
`sh`. Given a command line that is already a syntax tree, it carries it out:
it expands `$NAME` and `$?`, removes quotes, applies `<`, `>`, `>>` and `<<`
redirections, looks programs up on `PATH`, runs built-in commands that you
supply inside the shell process, and connects commands with pipes. Lists
whose operator node starts with `;`, `&` or `|` run their right side always,
only after success, or only after failure.

It runs on POSIX systems (it uses `fork`, `execve` and `dup2`) and needs
nothing beyond the Python standard library, Python 3.10 or newer.

## Modules

- `prettysh.tree` – `NodeKind` and `SyntaxNode`, plus `new_node` and
  `new_binary` for building trees. `SyntaxNode.leftmost()` follows left
  children down from a node.
- `prettysh.state` – `ShellState` holds the environment (`env`), the current
  and previous exit status, and a pending signal. `getenv` reads a variable,
  `environ()` returns the variables that have a value (what child processes
  receive), `record_signal` remembers a signal number, and `end_line` turns a
  pending signal into a status of 128 plus its number and resets `status`.
  `load_environment` builds an environment from a mapping or from
  `KEY=VALUE` strings (entries without `=` get no value; `_` is dropped).
  `builtin_index` gives the position of a name among `echo`, `cd`, `pwd`,
  `export`, `unset`, `env` and `exit`, or `None`.
- `prettysh.expansion` – `expand_dollars(text, env, last_status, heredoc)`
  replaces `$?` with the last status and `$` plus a run of ASCII letters and
  digits with that variable's value (empty when unset). Nothing inside single
  quotes is expanded unless `heredoc` is true; quotes are kept.
- `prettysh.dequote` – `dequote` removes single and double quotes and keeps
  what they enclose; an unclosed quote raises `UnclosedQuoteError`.
- `prettysh.pathsearch` – `resolve_command(cmd, env)` returns the file to
  run. A name containing `/` is checked with `is_file_executable`; other
  names are looked up with `search_path` in the colon-separated `PATH`.
  Failures raise `CommandLookupError`, carrying `message` and `status`: 127
  for a missing file or a command not found, 126 for a path ending in `/` or
  a file that is not executable. With `PATH` unset the error has an empty
  message and status 0.
- `prettysh.redirect` – `open_redirect(node)` opens the file named by an
  `IN_FILENAME`, `OUT_FILENAME` or `OUT_ADD_FILENAME` node onto descriptor
  `node.red_fd`, or moves a here-document's descriptor onto standard input.
  `read_heredoc` reads lines up to a delimiter into an unlinked temporary
  file and returns a readable descriptor; `count_heredocs` and
  `collect_heredocs` find and read every here-document in a tree.
  `SavedStdio` is a context manager that restores descriptors 0, 1 and 2.
  Failures raise `RedirectError`.
- `prettysh.executor` – `Executor(state, builtins, reader).run(root)` runs a
  tree and returns the final status. `builtins` maps command names to
  callables `(state, argv) -> int`; `reader` is called with the prompt `"> "`
  to supply here-document lines and returns `None` at end of input (standard
  input is used when it is not given). More than 16 here-documents on one
  line raise `RedirectError`. `prepare_command` expands, dequotes and
  redirects one command and returns a `PreparedCommand` with its `argv`;
  `exit_status` turns a raw wait status into a shell status.
- `prettysh.strtol` – `strtol(text, base)` parses a leading integer like C's
  `strtol`, returning `(value, end)`; on overflow the value is clamped to
  `LONG_MAX` or `LONG_MIN` and `end` is `None`.
- `prettysh.classify` – `is_name` checks for a valid variable name and
  `quotes_closed` checks that every quote has a partner.

## Building a tree

The words of one command are chained through `parent` links: the first word
is the leftmost node, and each following word or redirection is its parent.
A pipeline is a `PIPE` node whose children are commands.

```python
import os

from prettysh.executor import Executor
from prettysh.state import ShellState, load_environment
from prettysh.tree import NodeKind, new_binary, new_node

state = ShellState(env=load_environment(os.environ))

# echo hello | tr a-z A-Z
echo = new_binary("hello", new_node("echo"), None)
tr = new_binary("A-Z", new_binary("a-z", new_node("tr"), None), None)
line = new_binary("|", echo, tr, NodeKind.PIPE)

status = Executor(state).run(line)   # prints HELLO, status is 0
```

For an output redirection, give the filename node the kind `OUT_FILENAME`
and set its `red_fd` to the descriptor to replace, for example 1.

Small checks:

```python
from prettysh.classify import is_name
from prettysh.dequote import dequote

is_name("PATH")            # True
is_name("9lives")          # False
dequote("'hello world'")   # 'hello world'
```

## What it does not do

There is no interactive prompt, line editing or history, and no lexer or
parser: command lines must be handed over as syntax trees. The package also
has no implementations of the built-in commands; `builtin_index` only knows
their names, and `Executor` runs whatever callables are passed in
`builtins`. There is no command to start a shell.