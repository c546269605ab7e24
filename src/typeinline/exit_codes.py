"""Standardized CLI exit codes and the typeinline exception hierarchy.

Exit code scheme:

    0  SUCCESS         -- command completed
    1  GENERAL_ERROR   -- unexpected failure, crash, unhandled exception
    2  USAGE_ERROR     -- invalid arguments, bad flags, unknown command (Click default)
    3  READ_FAILURE    -- a resolved source file could not be read
    4  SYNTAX_ERROR    -- a source file failed to parse
    5  CONFIG_ERROR    -- typeinline.json / tsconfig.json is invalid
    6  PARTIAL         -- completed, but some requested types stayed unresolved

Read and syntax failures abort an extraction session.  Everything else the
engine meets (unresolvable names, unresolvable modules, redundant aliases)
degrades to leaving the affected type un-inlined.
"""

from __future__ import annotations

import click

# ---------------------------------------------------------------------------
# Exit code constants
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_ERROR: int = 1
EXIT_USAGE: int = 2
EXIT_READ_FAILURE: int = 3
EXIT_SYNTAX_ERROR: int = 4
EXIT_CONFIG_ERROR: int = 5
EXIT_PARTIAL: int = 6

DESCRIPTIONS: dict[int, str] = {
    EXIT_SUCCESS: "success",
    EXIT_ERROR: "unexpected error",
    EXIT_USAGE: "invalid usage (bad arguments or flags)",
    EXIT_READ_FAILURE: "a source file could not be read",
    EXIT_SYNTAX_ERROR: "a source file contains syntax errors",
    EXIT_CONFIG_ERROR: "invalid configuration",
    EXIT_PARTIAL: "partial results (some requested types stayed unresolved)",
}

# ---------------------------------------------------------------------------
# Custom exceptions (caught by CLI error handler)
# ---------------------------------------------------------------------------


class TypeInlineError(click.ClickException):
    """Base class for typeinline errors with exit codes."""

    def __init__(self, message: str, exit_code: int = EXIT_ERROR):
        super().__init__(message)
        self.exit_code = exit_code

    def format_message(self) -> str:
        return self.message


class SourceReadError(TypeInlineError):
    """Raised when a resolved source file cannot be read.  Fatal for a session."""

    def __init__(self, path: str, reason: str = ""):
        message = f"Cannot read {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message, EXIT_READ_FAILURE)
        self.path = path


class SourceSyntaxError(TypeInlineError):
    """Raised when tree-sitter reports ERROR / MISSING nodes.  Fatal for a session."""

    def __init__(self, path: str, line: int, column: int, snippet: str = ""):
        message = f"Syntax error in {path}:{line}:{column}"
        if snippet:
            message += f" near {snippet!r}"
        super().__init__(message, EXIT_SYNTAX_ERROR)
        self.path = path
        self.line = line
        self.column = column


class DuplicateDeclarationError(TypeInlineError):
    """Raised in strict mode when one file declares the same type name twice."""

    def __init__(self, path: str, name: str, first_line: int, second_line: int):
        super().__init__(
            f"{path}:{second_line}: type {name!r} already declared at line {first_line}",
            EXIT_SYNTAX_ERROR,
        )
        self.path = path
        self.name = name


class ConfigError(TypeInlineError):
    """Raised when typeinline.json or tsconfig.json cannot be used."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_CONFIG_ERROR)
