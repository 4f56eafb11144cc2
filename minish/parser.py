"""Group tokens into commands and open their redirections."""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from minish.environment import Environment, expand_heredoc_line
from minish.lexer import HEREDOC_EXPAND, HEREDOC_LITERAL, ShellSyntaxError, Token, TokenType

HEREDOC_PROMPT = "heredoc>"
FILE_MODE = 0o664

LineReader = Callable[[str], Optional[str]]


@dataclass
class Command:
    """One stage of a pipeline: its words and its redirected streams.

    ``stdin``/``stdout`` are None when the stage keeps the inherited stream
    or when opening its redirection failed; the ``*_failed`` flags tell
    the two apart.
    """

    args: list[str] = field(default_factory=list)
    stdin: BinaryIO | None = None
    stdout: BinaryIO | None = None
    input_failed: bool = False
    output_failed: bool = False

    @property
    def redirect_failed(self) -> bool:
        return self.input_failed or self.output_failed

    def _set_input(self, stream: BinaryIO | None) -> None:
        if self.stdin is not None:
            self.stdin.close()
        self.stdin = stream
        self.input_failed = stream is None

    def _set_output(self, stream: BinaryIO | None) -> None:
        if self.stdout is not None:
            self.stdout.close()
        self.stdout = stream
        self.output_failed = stream is None

    def close(self) -> None:
        """Close any files opened for this command's redirections."""
        for stream in (self.stdin, self.stdout):
            if stream is not None:
                stream.close()

    def __enter__(self) -> "Command":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def read_heredoc(
    delimiter: str,
    expand: bool,
    env: Environment,
    status: int,
    argv0: str,
    read_line: LineReader,
) -> str:
    """Read lines until ``delimiter`` or end of input and return them joined.

    Each collected line ends with a newline; with ``expand`` the lines have
    their ``$NAME`` references replaced.
    """
    lines: list[str] = []
    while True:
        line = read_line(HEREDOC_PROMPT)
        if line is None or line == delimiter:
            break
        if expand:
            line = expand_heredoc_line(line, env, status, argv0)
        lines.append(line + "\n")
    return "".join(lines)


def _heredoc_stream(text: str) -> BinaryIO:
    stream = tempfile.TemporaryFile()
    stream.write(text.encode())
    stream.seek(0)
    return stream


def _open_redirect(
    operator: str,
    target: str,
    env: Environment,
    status: int,
    argv0: str,
    read_line: LineReader,
) -> BinaryIO | None:
    if operator in (HEREDOC_LITERAL, HEREDOC_EXPAND):
        expand = operator == HEREDOC_EXPAND
        return _heredoc_stream(read_heredoc(target, expand, env, status, argv0, read_line))
    try:
        if operator == "<":
            return open(target, "rb")
        append = operator == ">>"
        flags = os.O_WRONLY | os.O_CREAT | (os.O_APPEND if append else os.O_TRUNC)
        fd = os.open(target, flags, FILE_MODE)
        return os.fdopen(fd, "ab" if append else "wb")
    except OSError as exc:
        sys.stderr.write(f"MiniShell: {target}: {exc.strerror or exc}\n")
        return None


def _close_all(commands: Iterable[Command]) -> None:
    for command in commands:
        command.close()


def parse(
    tokens: list[Token],
    env: Environment,
    status: int = 0,
    argv0: str = "minishell",
    read_line: LineReader | None = None,
) -> list[Command]:
    """Build the pipeline's commands from ``tokens``, opening redirections.

    Here-documents read their lines through ``read_line(prompt)``, which
    returns None at end of input. An interrupt while reading closes every
    stream opened so far and propagates.
    """
    reader: LineReader = read_line if read_line is not None else (lambda prompt: None)
    commands: list[Command] = []
    current = Command()
    try:
        stream = iter(tokens)
        for token in stream:
            if token.type == TokenType.PIPE:
                commands.append(current)
                current = Command()
            elif token.type == TokenType.REDIRECT:
                target = next(stream, None)
                if target is None or target.type != TokenType.WORD:
                    raise ShellSyntaxError(target.text if target is not None else "EOF")
                opened = _open_redirect(token.text, target.text, env, status, argv0, reader)
                if token.text.startswith("<"):
                    current._set_input(opened)
                else:
                    current._set_output(opened)
            else:
                current.args.append(token.text)
        if tokens:
            commands.append(current)
    except BaseException:
        _close_all(commands)
        current.close()
        raise
    return commands