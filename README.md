# minish

A small interactive command shell. It reads a line, splits it into words and
operators, expands variables, sets up redirections and here-documents, and
runs the stages of a pipeline, either as builtins inside the shell or as
external programs found on `PATH`.

## Installing

```
pip install .
```

## Running

```
minish
```

The shell takes no arguments; given any, it exits with status 1. It prints
the prompt `MiniShell :\>` and reads commands until end of input (Ctrl-D), at
which point it prints `exit` and quits with status 0. Ctrl-C at the prompt
prints a new line and prompts again; the quit signal is ignored by the shell.
If Python's `readline` module is available, lines can be edited and recalled
during the session.

On start the shell increments `SHLVL` and sets `PWD` to the current
directory.

## What the shell understands

- Words separated by spaces, tabs or newlines.
- Single quotes, which keep their contents literal, and double quotes, which
  still expand variables. A word with an unclosed quote is dropped together
  with the rest of the line after it.
- `$NAME` expands to the value of a variable, or to nothing when it is unset
  or empty; `$?` to the status of the last pipeline; `$0` to the shell's own
  name; `$1` to `$9` to nothing. Expanded values are scanned again, so blanks
  in an unquoted value split it into several words.
- Pipelines joined with `|`. The status of a pipeline is that of its last
  stage.
- Redirections: `< file`, `> file` (truncate), `>> file` (append). Files are
  created with mode `0664`. A redirection that cannot be opened is reported
  as `MiniShell: file: reason` and its stage finishes with status 1.
- Here-documents: `<< END`. Lines are read with the prompt `heredoc>` until
  the delimiter or end of input. When the delimiter is quoted (`<< 'END'`)
  the body is taken literally; otherwise `$NAME` is expanded in each line.
  Interrupting a here-document abandons the line with status 130.
- Misplaced operators are reported as
  ``syntax error near unexpected token `|'`` (or `` `EOF' `` at the end of
  the line) and the line is dropped.
- An unknown command is reported as `name: command not found` with status
  127. A program killed by a signal gives status 128 plus the signal number.

### Builtins

| Command  | Behaviour |
|----------|-----------|
| `echo`   | Prints its arguments separated by spaces; a first argument of `-` followed only by `n`s (`-n`, `-nnn`) leaves off the newline. |
| `cd`     | Changes directory. No argument or `~...` uses `HOME` (`HOME not set` if it is missing); `-` goes to `OLDPWD`. Updates `OLDPWD` and `PWD` when they are already set, and returns 1 otherwise. |
| `pwd`    | Prints the current directory. |
| `export` | With no arguments lists every variable as `declare -x NAME="value"` (or `declare -x NAME` when it has no value), sorted by name. `NAME=value` sets a variable; `NAME` alone declares it without a value. An invalid name is reported and stops the command with status 1. |
| `unset`  | Removes the named variables; arguments containing `=` are ignored. |
| `env`    | Prints the variables that have a value, followed by `_=/usr/bin/env`; this is also the environment given to programs. |
| `exit`   | Prints `exit` and leaves the shell with the given status, modulo 256. A non-numeric argument exits with status 2; with more than one argument it refuses, returns 1 and the shell carries on. |

Builtins run inside the shell even within a pipeline, so `export`, `unset`
and `cd` keep their effect there too.

## Using it from Python

```python
from minish.shell import Shell

shell = Shell({"PATH": "/usr/bin:/bin", "HOME": "/tmp"})
shell.run_line("export GREETING=hello")
status = shell.run_line("echo $GREETING | tr a-z A-Z")
```

`Shell.run_line()` returns the line's status and raises
`minish.builtins.ExitRequest` (with its `status`) when the line runs `exit`.
`Shell.loop()` runs the interactive read–execute cycle and returns the exit
code; `minish.shell.main()` is the entry point of the `minish` command.
A `Shell` takes a `read_line(prompt)` callable returning a line or None at
end of input, and its `stdin`, `stdout` and `stderr` attributes may be set to
file objects that have file descriptors.

The stages are also available on their own:

- `minish.environment.Environment` holds the variables;
  `expand_parameter()` and `expand_heredoc_line()` do `$` expansion.
- `minish.lexer.lex()` turns a line into `Token`s and raises
  `ShellSyntaxError`; `tokenize()` and `check_syntax()` are its two halves.
- `minish.parser.parse()` groups tokens into `Command`s and opens their
  redirections; `read_heredoc()` collects a here-document body.
- `minish.builtins` has each builtin as `run_echo()`, `run_cd()` and so on,
  plus `is_builtin()` and `run_builtin()`.
- `minish.executor.execute()` runs a list of commands as a pipeline, and
  `find_executable()` looks a name up on `PATH`.

## What it does not do

There is no `;`, `&&`, `||`, subshells, globbing, background jobs, job
control, aliases, scripts read from files, or history kept between sessions.
Only the seven builtins above are run by the shell itself.