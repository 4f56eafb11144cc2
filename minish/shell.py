"""The interactive shell: prompt, read, tokenize, parse and execute."""

from __future__ import annotations

import io
import os
import signal
import sys
from collections.abc import Callable, Mapping, Sequence
from typing import IO, Any, Optional

from minish.builtins import ExitRequest
from minish.environment import Environment
from minish.executor import execute
from minish.lexer import ShellSyntaxError, lex
from minish.parser import parse

PROMPT = "MiniShell :\\>"
INTERRUPTED_STATUS = 130
_ATOI_BLANKS = "\n\t\v\f\r "

LineReader = Callable[[str], Optional[str]]


def _read_terminal_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def _atoi(text: str) -> int:
    number = text.lstrip(_ATOI_BLANKS)
    sign = 1
    if number[:1] in ("+", "-"):
        sign = -1 if number[0] == "-" else 1
        number = number[1:]
    digits = ""
    for char in number:
        if not ("0" <= char <= "9"):
            break
        digits += char
    return sign * int(digits) if digits else 0


class Shell:
    """A shell session holding variables and the last exit status.

    ``stdin``, ``stdout`` and ``stderr`` may be set to file objects with
    descriptors; None means the process's own streams.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        argv0: str = "minishell",
        read_line: LineReader | None = None,
    ):
        self.env = Environment.from_environ(os.environ if environ is None else environ)
        self.argv0 = argv0
        self.read_line: LineReader = read_line if read_line is not None else _read_terminal_line
        self.status = 0
        self.stdin: IO[Any] | None = None
        self.stdout: IO[Any] | None = None
        self.stderr: IO[Any] | None = None
        self.env.set("SHLVL", str(_atoi(self.env.get("SHLVL")) + 1))
        try:
            self.env.set("PWD", os.getcwd())
        except OSError:
            pass

    def _emit(self, text: str) -> None:
        stream = self.stdout if self.stdout is not None else sys.stdout
        if isinstance(stream, io.TextIOBase):
            stream.write(text)
        else:
            stream.write(text.encode())
        stream.flush()

    def run_line(self, line: str) -> int:
        """Run one command line and return the resulting status.

        Raises ExitRequest when the line runs ``exit``.
        """
        try:
            tokens = lex(line, self.env, self.status, self.argv0)
        except ShellSyntaxError as exc:
            self._emit(f"{exc}\n")
            return self.status
        try:
            commands = parse(tokens, self.env, self.status, self.argv0, self.read_line)
        except KeyboardInterrupt:
            self.status = INTERRUPTED_STATUS
            return self.status
        if not commands:
            return self.status
        self.status = execute(commands, self.env, self.stdin, self.stdout, self.stderr)
        return self.status

    def loop(self) -> int:
        """Prompt for lines until end of input or ``exit``; return the exit code."""
        while True:
            try:
                line = self.read_line(PROMPT)
            except KeyboardInterrupt:
                self._emit("\n")
                continue
            if line is None:
                self._emit("exit\n")
                return 0
            try:
                self.run_line(line)
            except ExitRequest as request:
                return request.status


def main(argv: Sequence[str] | None = None) -> int:
    """Start an interactive session; any argument is refused with status 1."""
    args = sys.argv[1:] if argv is None else list(argv)
    if args:
        return 1
    try:
        import readline  # noqa: F401  (gives input() line editing and history)
    except ImportError:
        pass
    quit_signal = getattr(signal, "SIGQUIT", None)
    if quit_signal is not None:
        signal.signal(quit_signal, signal.SIG_IGN)
    argv0 = sys.argv[0] if sys.argv and sys.argv[0] else "minishell"
    return Shell(os.environ, argv0).loop()


if __name__ == "__main__":
    raise SystemExit(main())