"""Split a command line into words, redirections and pipes."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from minish.environment import Environment, expand_parameter

BLANKS = " \t\n"
OPERATOR_CHARS = "<>|"
HEREDOC_LITERAL = "<<"
HEREDOC_EXPAND = "<$"


class TokenType(enum.IntEnum):
    PIPE = 0
    REDIRECT = 1
    WORD = 2


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str


class ShellSyntaxError(Exception):
    """Raised when the token sequence is not a valid command line."""

    def __init__(self, token: str):
        super().__init__(f"syntax error near unexpected token `{token}'")
        self.token = token


def _is_name_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def _read_operator(text: str, pos: int) -> tuple[Token, int]:
    if text.startswith("<<", pos):
        pos += 2
        look = pos
        while look < len(text) and text[look] in BLANKS:
            look += 1
        quoted = look < len(text) and text[look] in "'\""
        kind = HEREDOC_LITERAL if quoted else HEREDOC_EXPAND
        return Token(TokenType.REDIRECT, kind), pos
    if text.startswith(">>", pos):
        return Token(TokenType.REDIRECT, ">>"), pos + 2
    char = text[pos]
    if char == "|":
        return Token(TokenType.PIPE, "|"), pos + 1
    return Token(TokenType.REDIRECT, char), pos + 1


def _read_word(
    text: str, pos: int, env: Environment, status: int, argv0: str
) -> tuple[str, int, str | None]:
    chars: list[str] = []
    quote: str | None = None
    while pos < len(text):
        char = text[pos]
        if quote is None and (char in BLANKS or char in OPERATOR_CHARS):
            break
        following = text[pos + 1] if pos + 1 < len(text) else ""
        if char in "'\"" and quote in (None, char):
            quote = char if quote is None else None
            pos += 1
        elif char == "$" and quote != "'" and (following == "?" or _is_name_char(following)):
            value, rest = expand_parameter(text[pos + 1:], env, status, argv0)
            text = value + rest
            pos = 0
        else:
            chars.append(char)
            pos += 1
    word = "".join(chars) if quote is None else None
    return text, pos, word


def tokenize(line: str, env: Environment, status: int = 0, argv0: str = "minishell") -> list[Token]:
    """Split ``line`` into tokens, expanding parameters outside single quotes.

    Expanded values are scanned again, so unquoted blanks in them split words.
    A word with an unclosed quote is dropped.
    """
    tokens: list[Token] = []
    text = line
    pos = 0
    while True:
        while pos < len(text) and text[pos] in BLANKS:
            pos += 1
        if pos >= len(text):
            break
        if text[pos] in OPERATOR_CHARS:
            token, pos = _read_operator(text, pos)
            tokens.append(token)
        else:
            text, pos, word = _read_word(text, pos, env, status, argv0)
            if word is not None:
                tokens.append(Token(TokenType.WORD, word))
    return tokens


def check_syntax(tokens: list[Token]) -> str | None:
    """Return the text of the first misplaced token, ``EOF``, or None if valid."""
    if not tokens:
        return None
    previous = TokenType.PIPE
    for token in tokens:
        if previous == TokenType.PIPE and token.type == TokenType.PIPE:
            return token.text
        if previous == TokenType.REDIRECT and token.type != TokenType.WORD:
            return token.text
        previous = token.type
    if previous in (TokenType.PIPE, TokenType.REDIRECT):
        return "EOF"
    return None


def lex(line: str, env: Environment, status: int = 0, argv0: str = "minishell") -> list[Token]:
    """Tokenize ``line`` and raise ShellSyntaxError if it is malformed."""
    tokens = tokenize(line, env, status, argv0)
    bad = check_syntax(tokens)
    if bad is not None:
        raise ShellSyntaxError(bad)
    return tokens