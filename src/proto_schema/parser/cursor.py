"""Character-level scanning over a schema source.

A ``Cursor`` is an immutable position in the source text. Every scanning
function takes a cursor and returns either ``Ok(value, cursor)`` with the
cursor moved past what was read, or ``Err(issue)``. Nothing here raises for
malformed input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Generic, List, TypeVar, Union

from .errors import ErrorKind, SyntaxIssue

T = TypeVar("T")

_WHITESPACE = " \t\r\n"
_WORD_CHARS = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-."
)
_INTEGER = re.compile(r"-?[0-9]+")


@dataclass(frozen=True)
class Cursor:
    data: str
    pos: int = 0
    # Number of newlines consumed so far.
    line: int = 0
    # Offset of the first character of the current line.
    line_start: int = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    @property
    def current(self) -> str:
        return self.data[self.pos]

    @property
    def column(self) -> int:
        return self.pos - self.line_start + 1

    def moved_to(self, end: int) -> Cursor:
        """Return a cursor at ``end``, counting the newlines passed over."""
        chunk = self.data[self.pos:end]
        newlines = chunk.count("\n")
        if not newlines:
            return Cursor(self.data, end, self.line, self.line_start)
        last = self.pos + chunk.rindex("\n")
        return Cursor(self.data, end, self.line + newlines, last + 1)

    def advance(self) -> Cursor:
        return self.moved_to(self.pos + 1)

    def fail(self, kind: ErrorKind, message: str) -> Err:
        return Err(SyntaxIssue(kind, message, self.line + 1, self.column))


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    cursor: Cursor


@dataclass(frozen=True)
class Err:
    issue: SyntaxIssue


Parsed = Union[Ok[T], Err]


def skip_blanks(cursor: Cursor) -> Cursor:
    """Skip whitespace only. Comments are left in place."""
    data = cursor.data
    pos = cursor.pos
    while pos < len(data) and data[pos] in _WHITESPACE:
        pos += 1
    return cursor.moved_to(pos)


def skip_whitespace(cursor: Cursor) -> Parsed[None]:
    """Skip whitespace and comments, discarding the comment text."""
    while True:
        cursor = skip_blanks(cursor)
        if cursor.at_end or cursor.current != "/":
            return Ok(None, cursor)
        comment = read_comment(cursor)
        if isinstance(comment, Err):
            return comment
        cursor = comment.cursor


def peek_char(cursor: Cursor) -> Parsed[str]:
    """Return the next significant character without consuming it.

    The returned cursor points at that character.
    """
    skipped = skip_whitespace(cursor)
    if isinstance(skipped, Err):
        return skipped
    cursor = skipped.cursor
    if cursor.at_end:
        return cursor.fail(ErrorKind.UNEXPECTED_EOF, "unexpected end of file")
    return Ok(cursor.current, cursor)


def read_char(cursor: Cursor) -> Parsed[str]:
    peeked = peek_char(cursor)
    if isinstance(peeked, Err):
        return peeked
    return Ok(peeked.value, peeked.cursor.advance())


def read_word(cursor: Cursor) -> Parsed[str]:
    """Read a non-empty run of identifier characters, letters, digits, ``_-.``."""
    cursor = skip_blanks(cursor)
    data = cursor.data
    end = cursor.pos
    while end < len(data) and data[end] in _WORD_CHARS:
        end += 1
    if end == cursor.pos:
        return cursor.fail(ErrorKind.EXPECTED_WORD, "expected a word")
    return Ok(data[cursor.pos:end], cursor.moved_to(end))


def read_int(cursor: Cursor) -> Parsed[int]:
    cursor = skip_blanks(cursor)
    word = read_word(cursor)
    if isinstance(word, Err):
        return word
    if not _INTEGER.fullmatch(word.value):
        return cursor.fail(
            ErrorKind.INVALID_INTEGER,
            f"expected an integer but was {word.value}",
        )
    return Ok(int(word.value), word.cursor)


def read_string(cursor: Cursor) -> Parsed[str]:
    """Read a quoted string, or a bare word when no quote follows."""
    peeked = peek_char(cursor)
    if isinstance(peeked, Err):
        return peeked
    if peeked.value == '"':
        return read_quoted_string(peeked.cursor)
    return read_word(peeked.cursor)


def read_quoted_string(cursor: Cursor) -> Parsed[str]:
    """Read a double-quoted string starting at ``cursor``.

    A backslash makes the following character literal; no other escape
    processing is done. Newlines inside the string are kept.
    """
    data = cursor.data
    if cursor.at_end or cursor.current != '"':
        return cursor.fail(ErrorKind.UNEXPECTED_CHARACTER, "expected '\"'")
    parts: List[str] = []
    pos = cursor.pos + 1
    while pos < len(data):
        c = data[pos]
        pos += 1
        if c == '"':
            return Ok("".join(parts), cursor.moved_to(pos))
        if c == "\\":
            if pos == len(data):
                break
            c = data[pos]
            pos += 1
        parts.append(c)
    return cursor.moved_to(len(data)).fail(
        ErrorKind.UNTERMINATED_STRING, "unterminated string"
    )


def read_comment(cursor: Cursor) -> Parsed[str]:
    """Read one ``//`` or ``/* */`` comment starting at ``cursor``.

    Returns the comment body with its markers and surrounding whitespace
    removed.
    """
    data = cursor.data
    start = cursor.pos + 2
    comment_type = data[cursor.pos + 1] if cursor.pos + 1 < len(data) else ""

    if comment_type == "*":
        end = data.find("*/", start)
        if end == -1:
            return cursor.moved_to(len(data)).fail(
                ErrorKind.UNTERMINATED_COMMENT, "unterminated comment"
            )
        return Ok(_block_comment_body(data[start:end]), cursor.moved_to(end + 2))

    if comment_type == "/":
        end = data.find("\n", start)
        if end == -1:
            return Ok(_line_comment_body(data[start:]), cursor.moved_to(len(data)))
        return Ok(_line_comment_body(data[start:end]), cursor.moved_to(end + 1))

    return cursor.fail(ErrorKind.UNEXPECTED_CHARACTER, "unexpected '/'")


def read_documentation(cursor: Cursor) -> Parsed[str]:
    """Skip whitespace and collect the comments found along the way.

    By convention the comments before a declaration document it. Consecutive
    comments are joined with a newline; the result is empty if there were none.
    """
    comments: List[str] = []
    while True:
        cursor = skip_blanks(cursor)
        if cursor.at_end or cursor.current != "/":
            return Ok("\n".join(comments), cursor)
        comment = read_comment(cursor)
        if isinstance(comment, Err):
            return comment
        comments.append(comment.value)
        cursor = comment.cursor


def _line_comment_body(text: str) -> str:
    # `///` doc comments leave an extra slash behind.
    return text.lstrip("/").strip()


def _block_comment_body(text: str) -> str:
    lines = []
    for i, line in enumerate(text.split("\n")):
        # The opener's own `*` only counts when it directly follows `/*`.
        if i > 0:
            line = line.strip()
        if line.startswith("*"):
            line = line[1:]
        lines.append(line.strip())
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)
