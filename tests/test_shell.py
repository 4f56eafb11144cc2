import os

import pytest

from minish.shell import Shell, main

BASE_ENV = {"PATH": os.environ.get("PATH", "/usr/bin:/bin"), "OLDPWD": os.sep}


def make_reader(lines):
    feed = iter(lines)

    def read_line(prompt):
        item = next(feed, None)
        if isinstance(item, BaseException):
            raise item
        return item

    return read_line


@pytest.fixture
def streams(tmp_path):
    stdin = open(os.devnull, "rb")
    stdout = (tmp_path / "stdout").open("w+b")
    stderr = (tmp_path / "stderr").open("w+b")
    yield stdin, stdout, stderr
    for stream in (stdin, stdout, stderr):
        stream.close()


def build(streams, lines=(), **extra):
    shell = Shell({**BASE_ENV, **extra}, "minishell", make_reader(lines))
    shell.stdin, shell.stdout, shell.stderr = streams
    return shell


def output(shell):
    shell.stdout.flush()
    shell.stdout.seek(0)
    return shell.stdout.read().decode()


def test_shlvl_is_incremented(streams):
    assert build(streams, SHLVL="3").env.get("SHLVL") == "4"


def test_shlvl_starts_at_one(streams):
    assert build(streams).env.get("SHLVL") == "1"


def test_shlvl_non_numeric_counts_as_zero(streams):
    assert build(streams, SHLVL="abc").env.get("SHLVL") == "1"


def test_pwd_is_set(streams):
    assert build(streams).env.get("PWD") == os.getcwd()


def test_echo_with_expansion(streams):
    shell = build(streams, NAME="world")
    assert shell.run_line("echo hello $NAME") == 0
    assert output(shell) == "hello world\n"


def test_argv0_expansion(streams):
    shell = build(streams)
    shell.run_line("echo $0")
    assert output(shell) == "minishell\n"


def test_status_expansion(streams):
    shell = build(streams)
    assert shell.run_line("sh -c 'exit 7'") == 7
    shell.run_line("echo $?")
    assert output(shell) == "7\n"


def test_syntax_error_keeps_status(streams):
    shell = build(streams)
    shell.run_line("sh -c 'exit 7'")
    assert shell.run_line("| echo") == 7
    assert output(shell) == "syntax error near unexpected token `|'\n"


def test_empty_line_keeps_status(streams):
    shell = build(streams)
    shell.run_line("sh -c 'exit 2'")
    assert shell.run_line("   ") == 2


def test_pipeline(streams):
    shell = build(streams)
    assert shell.run_line("echo piped | cat") == 0
    assert output(shell) == "piped\n"


def test_heredoc_literal(streams):
    shell = build(streams, ["$NAME", "b", "END"], NAME="x")
    shell.run_line("cat << 'END'")
    assert output(shell) == "$NAME\nb\n"


def test_heredoc_expanded(streams):
    shell = build(streams, ["hi $NAME", "END"], NAME="x")
    shell.run_line("cat << END")
    assert output(shell) == "hi x\n"


def test_heredoc_interrupt_sets_status(streams):
    shell = build(streams, [KeyboardInterrupt()])
    assert shell.run_line("cat << END") == 130
    assert shell.status == 130


def test_export_and_unset(streams):
    shell = build(streams)
    shell.run_line("export GREETING=hey")
    assert shell.env.get("GREETING") == "hey"
    shell.run_line("unset GREETING")
    assert "GREETING" not in shell.env


def test_cd_updates_pwd(streams, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    sub = tmp_path / "sub"
    sub.mkdir()
    shell = build(streams)
    assert shell.run_line(f"cd {sub}") == 0
    assert os.path.samefile(os.getcwd(), sub)
    assert shell.env.get("PWD") == os.getcwd()


def test_output_redirection(streams, tmp_path):
    shell = build(streams)
    target = tmp_path / "out.txt"
    shell.run_line(f"echo saved > {target}")
    assert target.read_text() == "saved\n"
    assert output(shell) == ""


def test_loop_ends_at_end_of_input(streams):
    shell = build(streams, ["echo hi"])
    assert shell.loop() == 0
    assert output(shell) == "hi\nexit\n"


def test_loop_exit_status(streams):
    shell = build(streams, ["exit 3", "echo never"])
    assert shell.loop() == 3
    assert output(shell) == "exit\n"


def test_loop_survives_interrupt(streams):
    shell = build(streams, [KeyboardInterrupt(), "echo after"])
    assert shell.loop() == 0
    assert output(shell) == "\nafter\nexit\n"


def test_main_refuses_arguments():
    assert main(["extra"]) == 1