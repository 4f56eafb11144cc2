"""A small interactive command shell with pipes, redirections, here-documents and builtins."""

__version__ = "0.1.0"
__all__ = ["builtins", "environment", "executor", "lexer", "parser", "shell"]