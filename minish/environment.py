"""Shell variables: storage, lookup and ``$`` parameter expansion."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

UNDERSCORE_VALUE = "/usr/bin/env"


def _is_alpha(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_name_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def is_valid_identifier(word: str) -> bool:
    """Tell whether ``word`` (optionally ``NAME=value``) starts with a valid name."""
    if not word or not (_is_alpha(word[0]) or word[0] == "_"):
        return False
    name = word.partition("=")[0]
    return all(_is_name_char(char) for char in name[1:])


class Environment:
    """Ordered shell variables.

    A variable whose value is empty is declared but not exported: it is
    listed by ``declarations`` but left out of ``as_list``.
    """

    def __init__(self, entries: Iterable[tuple[str, str]] | Mapping[str, str] = ()):
        self._vars: dict[str, str] = dict(entries)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | Iterable[str]) -> "Environment":
        """Build from a mapping or from ``NAME=value`` strings, dropping ``_``."""
        if isinstance(environ, Mapping):
            pairs = ((str(k), str(v)) for k, v in environ.items())
        else:
            pairs = (entry.partition("=")[::2] for entry in environ)
        return cls((name, value) for name, value in pairs if name != "_")

    def __contains__(self, name: object) -> bool:
        return name in self._vars

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)

    def get(self, name: str) -> str:
        """Return the exported value of ``name``, or an empty string."""
        if name == "_":
            return UNDERSCORE_VALUE
        return self._vars.get(name, "")

    def set(self, name: str, value: str) -> None:
        """Assign ``value`` to ``name``, keeping its position if it exists."""
        self._vars[name] = value

    def declare(self, name: str) -> None:
        """Declare ``name`` without a value; an existing value is kept."""
        self._vars.setdefault(name, "")

    def unset(self, name: str) -> None:
        """Remove ``name`` if present."""
        self._vars.pop(name, None)

    def as_list(self) -> list[str]:
        """Return the exported variables as ``NAME=value`` strings."""
        entries = [f"{name}={value}" for name, value in self._vars.items() if value]
        entries.append(f"_={UNDERSCORE_VALUE}")
        return entries

    def declarations(self) -> list[str]:
        """Return ``declare -x`` lines for every variable, sorted by name."""
        lines = []
        for name in sorted(self._vars):
            value = self._vars[name]
            if value:
                lines.append(f'declare -x {name}="{value}"')
            else:
                lines.append(f"declare -x {name}")
        return lines

    def search_path(self) -> list[str]:
        """Return the non-empty directories listed in ``PATH``."""
        return [part for part in self.get("PATH").split(":") if part]


def expand_parameter(text: str, env: Environment, status: int, argv0: str) -> tuple[str, str]:
    """Expand the parameter at the start of ``text`` (the part after ``$``).

    Returns the value and the unconsumed remainder of ``text``.
    """
    if not text:
        return env.get(""), ""
    first = text[0]
    if first == "?":
        return str(status), text[1:]
    if first == "0":
        return argv0, text[1:]
    if "1" <= first <= "9":
        return "", text[1:]
    end = 0
    while end < len(text) and _is_name_char(text[end]):
        end += 1
    return env.get(text[:end]), text[end:]


def expand_heredoc_line(line: str, env: Environment, status: int, argv0: str) -> str:
    """Expand ``$NAME`` references in a here-document line.

    Expanded values are scanned again, as the shell does for its input.
    """
    out: list[str] = []
    pos = 0
    while pos < len(line):
        following = line[pos + 1] if pos + 1 < len(line) else ""
        if line[pos] == "$" and _is_name_char(following):
            value, rest = expand_parameter(line[pos + 1:], env, status, argv0)
            line = value + rest
            pos = 0
            continue
        out.append(line[pos])
        pos += 1
    return "".join(out)