import pytest

from minish.environment import (
    Environment,
    expand_heredoc_line,
    expand_parameter,
    is_valid_identifier,
)


@pytest.fixture
def env():
    return Environment.from_environ({"HOME": "/home/user", "PATH": "/bin:/usr/bin", "_": "/x"})


def test_get_existing_and_missing(env):
    assert env.get("HOME") == "/home/user"
    assert env.get("MISSING") == ""


def test_from_environ_drops_underscore(env):
    assert "_" not in env
    assert env.as_list()[-1] == "_=/usr/bin/env"


def test_from_environ_strings_split_at_first_equal():
    env = Environment.from_environ(["A=b=c", "_=/bin/ls", "B"])
    assert env.get("A") == "b=c"
    assert "_" not in env
    assert "B" in env
    assert env.get("B") == ""


def test_set_replaces_in_place():
    env = Environment([("A", "1"), ("B", "2")])
    env.set("A", "3")
    assert env.as_list()[:2] == ["A=3", "B=2"]


def test_declare_is_not_exported():
    env = Environment()
    env.declare("NAME")
    assert "NAME" in env
    assert not any(entry.startswith("NAME") for entry in env.as_list())
    assert env.declarations() == ["declare -x NAME"]


def test_declare_keeps_existing_value():
    env = Environment({"A": "1"})
    env.declare("A")
    assert env.get("A") == "1"


def test_declarations_sorted_and_quoted():
    env = Environment([("ZED", "z"), ("AB", "1"), ("A", "")])
    lines = env.declarations()
    assert lines == sorted(lines)
    assert 'declare -x AB="1"' in lines
    assert "declare -x A" in lines


def test_unset_exact_name_only():
    env = Environment({"A": "1", "AB": "2"})
    env.unset("AB")
    assert "A" in env
    assert "AB" not in env
    env.unset("NOPE")
    assert len(env) == 1


def test_search_path_drops_empty_parts():
    env = Environment({"PATH": "/a::/b:"})
    assert env.search_path() == ["/a", "/b"]
    assert Environment().search_path() == []


@pytest.mark.parametrize(
    "word,expected",
    [
        ("NAME", True),
        ("_x1", True),
        ("A=any thing!", True),
        ("1A", False),
        ("A-B", False),
        ("", False),
        ("=x", False),
    ],
)
def test_is_valid_identifier(word, expected):
    assert is_valid_identifier(word) is expected


def test_expand_status(env):
    assert expand_parameter("?rest", env, 42, "sh") == ("42", "rest")


def test_expand_argv0_and_positional(env):
    assert expand_parameter("0x", env, 0, "mysh") == ("mysh", "x")
    assert expand_parameter("5abc", env, 0, "mysh") == ("", "abc")


def test_expand_name(env):
    assert expand_parameter("HOME/x", env, 0, "sh") == ("/home/user", "/x")


def test_heredoc_line_expands_names_not_status(env):
    assert expand_heredoc_line("$HOME is $?", env, 3, "sh") == "/home/user is $?"


def test_heredoc_line_rescans_values():
    env = Environment({"A": "$B", "B": "x"})
    assert expand_heredoc_line("[$A]", env, 0, "sh") == "[x]"


def test_heredoc_line_lone_dollar(env):
    assert expand_heredoc_line("cost $ 5", env, 0, "sh") == "cost $ 5"