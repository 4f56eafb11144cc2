"""Run a parsed pipeline: builtins in the shell itself, other programs as children."""

from __future__ import annotations

import contextlib
import io
import os
import signal
import subprocess
import sys
import tempfile
from collections.abc import Iterable
from typing import IO, Any, Union

from minish.builtins import is_builtin, run_builtin
from minish.environment import Environment
from minish.parser import Command

COMMAND_NOT_FOUND = 127
CANNOT_EXECUTE = 126
REDIRECT_FAILED = 1
SIGNAL_BASE = 128
QUIT_MESSAGE = "Quit (core dumped)\n"

_Outcome = Union[int, subprocess.Popen]


def _write(stream: IO[Any], text: str) -> None:
    if not text:
        return
    if isinstance(stream, io.TextIOBase):
        stream.write(text)
    else:
        stream.write(text.encode())
    stream.flush()


def _flush(stream: IO[Any]) -> None:
    flush = getattr(stream, "flush", None)
    if flush is not None:
        flush()


def find_executable(name: str, env: Environment) -> str | None:
    """Locate ``name`` as given, then in each ``PATH`` directory.

    Returns the first candidate that is an executable non-directory, or None.
    """
    if not name:
        return None
    candidates = [name, *(f"{directory}/{name}" for directory in env.search_path())]
    return next(
        (
            path
            for path in candidates
            if os.access(path, os.X_OK) and not os.path.isdir(path)
        ),
        None,
    )


def _is_external(command: Command) -> bool:
    return bool(command.args) and not is_builtin(command.args[0])


def _run_builtin(
    name: str, args: list[str], env: Environment, target: IO[Any], err: IO[Any]
) -> int:
    out = io.StringIO()
    errors = io.StringIO()
    try:
        return run_builtin(name, args, env, out, errors)
    finally:
        _write(target, out.getvalue())
        _write(err, errors.getvalue())


def _run_stage(
    command: Command, env: Environment, source: IO[Any], target: IO[Any], err: IO[Any]
) -> _Outcome:
    if command.redirect_failed:
        return REDIRECT_FAILED
    if not command.args:
        return 0
    name, *rest = command.args
    if is_builtin(name):
        return _run_builtin(name, rest, env, target, err)
    path = find_executable(name, env)
    if path is None:
        _write(err, f"{name}: command not found\n")
        return COMMAND_NOT_FOUND
    _flush(target)
    _flush(err)
    environment = dict(entry.partition("=")[::2] for entry in env.as_list())
    try:
        return subprocess.Popen(
            command.args,
            executable=path,
            stdin=source,
            stdout=target,
            stderr=err,
            env=environment,
        )
    except OSError as exc:
        _write(err, f"{name}: {exc.strerror or exc}\n")
        return CANNOT_EXECUTE


def _connect(
    command: Command, last: bool, stdout: IO[Any], owned: contextlib.ExitStack
) -> tuple[IO[Any], IO[Any] | None]:
    """Return the stage's default output and the stream the next stage reads."""
    if last:
        return stdout, None
    if _is_external(command):
        read_fd, write_fd = os.pipe()
        reader = owned.enter_context(os.fdopen(read_fd, "rb"))
        writer = owned.enter_context(os.fdopen(write_fd, "wb"))
        return writer, reader
    # Builtins run before the next stage starts, so their output is buffered.
    buffer = owned.enter_context(tempfile.TemporaryFile())
    return buffer, buffer


def _wait_child(process: subprocess.Popen, stdout: IO[Any]) -> tuple[int, bool]:
    interrupted = False
    while True:
        try:
            return process.wait(), interrupted
        except KeyboardInterrupt:
            _write(stdout, "\n")
            interrupted = True


def _collect(outcomes: list[_Outcome], stdout: IO[Any]) -> int:
    status = 0
    interrupted = False
    quit_signal = getattr(signal, "SIGQUIT", None)
    for outcome in outcomes:
        if isinstance(outcome, subprocess.Popen):
            code, hit = _wait_child(outcome, stdout)
            interrupted = interrupted or hit
            if code < 0:
                if quit_signal is not None and -code == quit_signal:
                    _write(stdout, QUIT_MESSAGE)
                code = SIGNAL_BASE - code
            status = code
        else:
            status = outcome
    if interrupted:
        status = SIGNAL_BASE + signal.SIGINT
    return status


def execute(
    commands: Iterable[Command],
    env: Environment,
    stdin: IO[Any] | None = None,
    stdout: IO[Any] | None = None,
    stderr: IO[Any] | None = None,
) -> int:
    """Run ``commands`` as a pipeline and return the last stage's status.

    The streams default to the process's own and must have file descriptors.
    Builtins run in this process, so their effects on ``env`` persist; an
    ``exit`` anywhere in the pipeline propagates as ExitRequest.
    """
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    stderr = sys.stderr if stderr is None else stderr
    pipeline = list(commands)
    outcomes: list[_Outcome] = []
    _flush(stdout)
    _flush(stderr)
    try:
        with contextlib.ExitStack() as owned:
            incoming: IO[Any] | None = stdin
            for index, command in enumerate(pipeline):
                last = index == len(pipeline) - 1
                sink, following = _connect(command, last, stdout, owned)
                source = command.stdin if command.stdin is not None else incoming
                target = command.stdout if command.stdout is not None else sink
                outcomes.append(_run_stage(command, env, source, target, stderr))
                if sink is not stdout and sink is not following:
                    sink.close()
                if following is not None and following is sink:
                    following.seek(0)
                if incoming is not None and incoming is not stdin:
                    incoming.close()
                command.close()
                incoming = following
    finally:
        for command in pipeline:
            command.close()
    return _collect(outcomes, stdout)