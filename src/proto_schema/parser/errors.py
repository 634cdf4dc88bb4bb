"""Syntax error taxonomy shared by the cursor and the declaration parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class ErrorKind(Enum):
    UNEXPECTED_EOF = auto()
    UNEXPECTED_CHARACTER = auto()
    UNTERMINATED_STRING = auto()
    UNTERMINATED_COMMENT = auto()
    EXPECTED_WORD = auto()
    INVALID_INTEGER = auto()
    EXPECTED_OPEN_BRACE = auto()
    EXPECTED_EQUALS = auto()
    EXPECTED_SEMICOLON = auto()
    EXPECTED_SEPARATOR = auto()
    INVALID_CONTEXT = auto()
    DUPLICATE_PACKAGE = auto()
    UNKNOWN_DECLARATION = auto()
    NESTING_TOO_DEEP = auto()


@dataclass(frozen=True)
class SyntaxIssue:
    """A fatal syntax problem located at a 1-based line and column."""

    kind: ErrorKind
    message: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"Syntax error at {self.line}:{self.column}: {self.message}"


class ProtoSyntaxError(Exception):
    """Raised when a schema source cannot be parsed."""

    def __init__(self, issue: SyntaxIssue):
        super().__init__(str(issue))
        self.issue = issue

    @property
    def kind(self) -> ErrorKind:
        return self.issue.kind

    @property
    def line(self) -> int:
        return self.issue.line

    @property
    def column(self) -> int:
        return self.issue.column
