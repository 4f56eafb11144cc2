"""Commands the shell runs itself: echo, cd, pwd, export, unset, env, exit."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import TextIO

from minish.environment import Environment, is_valid_identifier

BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})

_EXIT_BLANKS = "\n\t\v\f\r "
_LLONG_MIN_TEXT = "-9223372036854775808"
_LLONG_MAX = 2**63 - 1
_DIGITS = frozenset("0123456789")


class ExitRequest(Exception):
    """Raised by ``exit`` to ask the shell to terminate with ``status``."""

    def __init__(self, status: int):
        super().__init__(status)
        self.status = status


def run_echo(args: Sequence[str], out: TextIO) -> int:
    """Print the arguments separated by spaces; a leading ``-n...`` drops the newline."""
    first = args[0] if args else ""
    no_newline = first.startswith("-") and set(first[1:]) <= {"n"}
    words = args[1:] if no_newline else args
    out.write(" ".join(words))
    if not no_newline:
        out.write("\n")
    return 0


def run_pwd(out: TextIO) -> int:
    """Print the current directory."""
    try:
        cwd = os.getcwd()
    except OSError:
        return 1
    out.write(f"{cwd}\n")
    return 0


def run_env(env: Environment, out: TextIO) -> int:
    """Print the exported variables."""
    for entry in env.as_list():
        out.write(f"{entry}\n")
    return 0


def parse_exit_argument(text: str) -> int:
    """Return the exit status ``exit text`` requests, raising ValueError if invalid."""
    number = text.lstrip(_EXIT_BLANKS)
    if number == _LLONG_MIN_TEXT:
        return 0
    sign = 1
    if number and number[0] in "+-":
        sign = -1 if number[0] == "-" else 1
        number = number[1:]
    if not number or not set(number) <= _DIGITS:
        raise ValueError(f"numeric argument required: {text!r}")
    value = int(number)
    if value > _LLONG_MAX:
        raise ValueError(f"numeric argument required: {text!r}")
    remainder = sign * (value % 256)
    # A remainder of -1 collides with the error marker and is rejected too.
    if remainder == -1:
        raise ValueError(f"numeric argument required: {text!r}")
    return remainder & 0xFF


def run_exit(args: Sequence[str], out: TextIO, err: TextIO) -> int:
    """Raise ExitRequest, or return 1 when given too many arguments."""
    if not args:
        out.write("exit\n")
        raise ExitRequest(0)
    try:
        status = parse_exit_argument(args[0])
    except ValueError:
        err.write(f"exit\nminishell: exit: {args[0]}: numeric argument required\n")
        raise ExitRequest(2) from None
    if len(args) > 1:
        err.write("exit\nminishell: exit: : too many arguments\n")
        return 1
    out.write("exit\n")
    raise ExitRequest(status)


def run_export(args: Sequence[str], env: Environment, out: TextIO) -> int:
    """Declare or assign variables; without arguments list them all."""
    if not args:
        for line in env.declarations():
            out.write(f"{line}\n")
        return 0
    for arg in args:
        if not is_valid_identifier(arg):
            out.write(f"minishell: export: ´{arg}': not a valid identifier\n")
            return 1
        name, equals, value = arg.partition("=")
        if equals:
            env.set(name, value)
        else:
            env.declare(name)
    return 0


def run_unset(args: Sequence[str], env: Environment) -> int:
    """Remove the named variables; arguments holding ``=`` are ignored."""
    for arg in args:
        if "=" not in arg:
            env.unset(arg)
    return 0


def _report(err: TextIO, target: str, exc: OSError) -> None:
    err.write(f"minishell: cd: {target}: {exc.strerror or exc}\n")


def run_cd(args: Sequence[str], env: Environment, err: TextIO) -> int:
    """Change directory and update ``OLDPWD`` and ``PWD``."""
    try:
        previous = os.getcwd()
    except OSError:
        previous = ""
    arg = args[0] if args else None
    if arg is None or arg.startswith("~"):
        home = env.get("HOME")
        if not home:
            err.write("Minishell: cd: HOME not set\n")
            return 1
        target = home + (arg[1:] if arg else "")
    elif arg.startswith("-"):
        target = env.get("OLDPWD")
        if not target:
            return 1
    else:
        target = arg
    try:
        os.chdir(target)
    except OSError as exc:
        _report(err, target, exc)
        return 1
    if not env.get("OLDPWD"):
        return 1
    env.set("OLDPWD", previous)
    if not env.get("PWD"):
        return 1
    env.set("PWD", os.getcwd())
    return 0


def is_builtin(name: str) -> bool:
    """Tell whether ``name`` is run by the shell itself."""
    return name in BUILTINS


def run_builtin(
    name: str, args: Sequence[str], env: Environment, out: TextIO, err: TextIO
) -> int:
    """Run builtin ``name`` with the arguments that follow it."""
    if name == "echo":
        return run_echo(args, out)
    if name == "cd":
        return run_cd(args, env, err)
    if name == "pwd":
        return run_pwd(out)
    if name == "export":
        return run_export(args, env, out)
    if name == "unset":
        return run_unset(args, env)
    if name == "env":
        return run_env(env, out)
    if name == "exit":
        return run_exit(args, out, err)
    raise ValueError(f"not a builtin: {name}")