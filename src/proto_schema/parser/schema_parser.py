"""Recursive descent parser for ``.proto`` schema declarations.

Works directly on a character cursor (see ``cursor.py``); there is no
separate token stream. Unrecognized options and extension ranges are read
and thrown away, and nested type declarations are flattened into the
file-level lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Dict, List, Optional, Union

from proto_schema.models import EnumType, EnumValue, Field, Label, MessageType, ProtoFile

from .cursor import (
    Cursor,
    Err,
    Ok,
    Parsed,
    peek_char,
    read_documentation,
    read_int,
    read_string,
    read_word,
    skip_blanks,
)
from .errors import ErrorKind, ProtoSyntaxError


class Keyword(Enum):
    MESSAGE = auto()
    ENUM = auto()
    PACKAGE = auto()
    OPTION = auto()
    IMPORT = auto()
    REQUIRED = auto()
    OPTIONAL = auto()
    REPEATED = auto()
    EXTENSIONS = auto()
    UNKNOWN = auto()


_KEYWORDS = {
    "message": Keyword.MESSAGE,
    "enum": Keyword.ENUM,
    "package": Keyword.PACKAGE,
    "option": Keyword.OPTION,
    "import": Keyword.IMPORT,
    "required": Keyword.REQUIRED,
    "optional": Keyword.OPTIONAL,
    "repeated": Keyword.REPEATED,
    "extensions": Keyword.EXTENSIONS,
}

_LABELS = {
    Keyword.REQUIRED: Label.REQUIRED,
    Keyword.OPTIONAL: Label.OPTIONAL,
    Keyword.REPEATED: Label.REPEATED,
}


def lookup_keyword(word: str) -> Keyword:
    return _KEYWORDS.get(word, Keyword.UNKNOWN)


@dataclass(frozen=True)
class FieldDeclared:
    field: Field


@dataclass(frozen=True)
class NothingDeclared:
    pass


Declared = Union[FieldDeclared, NothingDeclared]

_NOTHING = NothingDeclared()


@dataclass
class _Declarations:
    """File-level output collected by a single parse."""

    package_name: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    message_types: List[MessageType] = field(default_factory=list)
    enum_types: List[EnumType] = field(default_factory=list)

    def build(self, file_name: str) -> ProtoFile:
        return ProtoFile(
            file_name=file_name,
            package_name=self.package_name,
            dependencies=tuple(self.dependencies),
            message_types=tuple(self.message_types),
            enum_types=tuple(self.enum_types),
        )


# -- public API --


def parse_schema(text: str, file_name: str = "") -> Parsed[ProtoFile]:
    """Parse schema source text, returning ``Ok(ProtoFile, cursor)`` or ``Err``."""
    out = _Declarations()
    cursor = Cursor(text)
    while True:
        documentation = read_documentation(cursor)
        if isinstance(documentation, Err):
            return documentation
        cursor = documentation.cursor
        if cursor.at_end:
            return Ok(out.build(file_name), cursor)
        try:
            declared = _read_declaration(cursor, documentation.value, False, out)
        except RecursionError:
            # Each nested message body costs several stack frames.
            return cursor.fail(
                ErrorKind.NESTING_TOO_DEEP, "declarations nested too deeply"
            )
        if isinstance(declared, Err):
            return declared
        cursor = declared.cursor


def parse_proto(text: str, file_name: str = "") -> ProtoFile:
    """Parse schema source text. Raises ProtoSyntaxError on malformed input."""
    result = parse_schema(text, file_name)
    if isinstance(result, Err):
        raise ProtoSyntaxError(result.issue)
    return result.value


def parse_proto_file(file_path: str) -> ProtoFile:
    """Read and parse a .proto file, labelling the result with its path."""
    text = Path(file_path).read_text(encoding="utf-8")
    return parse_proto(text, file_name=str(file_path))


# -- declarations --


def _read_declaration(
    cursor: Cursor, documentation: str, nested: bool, out: _Declarations
) -> Parsed[Declared]:
    start = skip_blanks(cursor)
    label = read_word(start)
    if isinstance(label, Err):
        return label
    keyword = lookup_keyword(label.value)
    cursor = label.cursor

    if keyword is Keyword.MESSAGE:
        message = _read_message(cursor, documentation, out)
        if isinstance(message, Err):
            return message
        out.message_types.append(message.value)
        return Ok(_NOTHING, message.cursor)

    if keyword is Keyword.ENUM:
        enum_type = _read_enum_type(cursor, documentation)
        if isinstance(enum_type, Err):
            return enum_type
        out.enum_types.append(enum_type.value)
        return Ok(_NOTHING, enum_type.cursor)

    if keyword is Keyword.PACKAGE:
        if nested:
            return start.fail(ErrorKind.INVALID_CONTEXT, "nested package")
        if out.package_name is not None:
            return start.fail(ErrorKind.DUPLICATE_PACKAGE, "too many package names")
        name = read_string(cursor)
        if isinstance(name, Err):
            return name
        end = _expect(name.cursor, ";", ErrorKind.EXPECTED_SEMICOLON, "expected ';'")
        if isinstance(end, Err):
            return end
        out.package_name = name.value
        return Ok(_NOTHING, end.cursor)

    if keyword is Keyword.OPTION:
        if nested:
            return start.fail(ErrorKind.INVALID_CONTEXT, "nested option")
        name = read_word(cursor)
        if isinstance(name, Err):
            return name
        equals = _expect(
            name.cursor, "=", ErrorKind.EXPECTED_EQUALS, "expected '=' in option"
        )
        if isinstance(equals, Err):
            return equals
        value = read_string(equals.cursor)
        if isinstance(value, Err):
            return value
        end = _expect(value.cursor, ";", ErrorKind.EXPECTED_SEMICOLON, "expected ';'")
        if isinstance(end, Err):
            return end
        return Ok(_NOTHING, end.cursor)

    if keyword is Keyword.IMPORT:
        if nested:
            return start.fail(ErrorKind.INVALID_CONTEXT, "nested import")
        path = read_string(cursor)
        if isinstance(path, Err):
            return path
        end = _expect(path.cursor, ";", ErrorKind.EXPECTED_SEMICOLON, "expected ';'")
        if isinstance(end, Err):
            return end
        out.dependencies.append(path.value)
        return Ok(_NOTHING, end.cursor)

    if keyword in _LABELS:
        if not nested:
            return start.fail(ErrorKind.INVALID_CONTEXT, "fields must be nested")
        result = _read_field(cursor, documentation, _LABELS[keyword])
        if isinstance(result, Err):
            return result
        return Ok(FieldDeclared(result.value), result.cursor)

    if keyword is Keyword.EXTENSIONS:
        if not nested:
            return start.fail(ErrorKind.INVALID_CONTEXT, "extensions must be nested")
        # Range start, the literal 'to', range end.
        for _ in range(3):
            word = read_word(cursor)
            if isinstance(word, Err):
                return word
            cursor = word.cursor
        end = _expect(cursor, ";", ErrorKind.EXPECTED_SEMICOLON, "expected ';'")
        if isinstance(end, Err):
            return end
        return Ok(_NOTHING, end.cursor)

    return start.fail(
        ErrorKind.UNKNOWN_DECLARATION, f"unexpected label: {label.value}"
    )


def _read_message(
    cursor: Cursor, documentation: str, out: _Declarations
) -> Parsed[MessageType]:
    """Parse: NAME '{' (documentation declaration)* '}'"""
    name = read_word(cursor)
    if isinstance(name, Err):
        return name
    opened = _expect(name.cursor, "{", ErrorKind.EXPECTED_OPEN_BRACE, "expected '{'")
    if isinstance(opened, Err):
        return opened
    cursor = opened.cursor

    fields: List[Field] = []
    while True:
        nested_documentation = read_documentation(cursor)
        if isinstance(nested_documentation, Err):
            return nested_documentation
        cursor = nested_documentation.cursor
        peeked = peek_char(cursor)
        if isinstance(peeked, Err):
            return peeked
        if peeked.value == "}":
            cursor = peeked.cursor.advance()
            break
        declared = _read_declaration(cursor, nested_documentation.value, True, out)
        if isinstance(declared, Err):
            return declared
        if isinstance(declared.value, FieldDeclared):
            fields.append(declared.value.field)
        cursor = declared.cursor

    return Ok(MessageType(name.value, documentation, tuple(fields)), cursor)


def _read_enum_type(cursor: Cursor, documentation: str) -> Parsed[EnumType]:
    """Parse: NAME '{' (documentation NAME '=' INT ';')* '}'"""
    name = read_word(cursor)
    if isinstance(name, Err):
        return name
    opened = _expect(name.cursor, "{", ErrorKind.EXPECTED_OPEN_BRACE, "expected '{'")
    if isinstance(opened, Err):
        return opened
    cursor = opened.cursor

    values: List[EnumValue] = []
    while True:
        value_documentation = read_documentation(cursor)
        if isinstance(value_documentation, Err):
            return value_documentation
        cursor = value_documentation.cursor
        peeked = peek_char(cursor)
        if isinstance(peeked, Err):
            return peeked
        if peeked.value == "}":
            cursor = peeked.cursor.advance()
            break
        value = _read_enum_value(cursor, value_documentation.value)
        if isinstance(value, Err):
            return value
        values.append(value.value)
        cursor = value.cursor

    return Ok(EnumType(name.value, documentation, tuple(values)), cursor)


def _read_enum_value(cursor: Cursor, documentation: str) -> Parsed[EnumValue]:
    name = read_word(cursor)
    if isinstance(name, Err):
        return name
    equals = _expect(name.cursor, "=", ErrorKind.EXPECTED_EQUALS, "expected '='")
    if isinstance(equals, Err):
        return equals
    tag = read_int(equals.cursor)
    if isinstance(tag, Err):
        return tag
    end = _expect(tag.cursor, ";", ErrorKind.EXPECTED_SEMICOLON, "expected ';'")
    if isinstance(end, Err):
        return end
    return Ok(EnumValue(name.value, tag.value, documentation), end.cursor)


def _read_field(cursor: Cursor, documentation: str, label: Label) -> Parsed[Field]:
    """Parse: TYPE NAME '=' INT ['[' options ']'] ';'"""
    type_name = read_word(cursor)
    if isinstance(type_name, Err):
        return type_name
    name = read_word(type_name.cursor)
    if isinstance(name, Err):
        return name
    equals = _expect(name.cursor, "=", ErrorKind.EXPECTED_EQUALS, "expected '='")
    if isinstance(equals, Err):
        return equals
    tag = read_int(equals.cursor)
    if isinstance(tag, Err):
        return tag

    deprecated = False
    default_value = None
    peeked = peek_char(tag.cursor)
    if isinstance(peeked, Err):
        return peeked
    if peeked.value == "[":
        options = _read_options(peeked.cursor)
        if isinstance(options, Err):
            return options
        deprecated_option = options.value.get("deprecated")
        deprecated = deprecated_option is not None and deprecated_option.lower() == "true"
        default_value = options.value.get("default")
        peeked = peek_char(options.cursor)
        if isinstance(peeked, Err):
            return peeked
    if peeked.value != ";":
        return peeked.cursor.fail(ErrorKind.EXPECTED_SEMICOLON, "expected ';'")

    return Ok(
        Field(
            label=label,
            type_name=type_name.value,
            name=name.value,
            tag=tag.value,
            default_value=default_value,
            deprecated=deprecated,
            documentation=documentation,
        ),
        peeked.cursor.advance(),
    )


def _read_options(cursor: Cursor) -> Parsed[Dict[str, str]]:
    """Parse a bracketed ``key=value`` list starting at the '['.

    Later duplicates of a key replace the earlier value.
    """
    cursor = cursor.advance()
    result: Dict[str, str] = {}
    # '[]' is special-cased so that '[,]' is rejected below.
    peeked = peek_char(cursor)
    if isinstance(peeked, Err):
        return peeked
    if peeked.value == "]":
        return Ok(result, peeked.cursor.advance())

    cursor = peeked.cursor
    while True:
        name = read_word(cursor)
        if isinstance(name, Err):
            return name
        equals = _expect(name.cursor, "=", ErrorKind.EXPECTED_EQUALS, "expected '='")
        if isinstance(equals, Err):
            return equals
        value = read_string(equals.cursor)
        if isinstance(value, Err):
            return value
        result[name.value] = value.value

        separator = peek_char(value.cursor)
        if isinstance(separator, Err):
            return separator
        cursor = separator.cursor.advance()
        if separator.value == "]":
            return Ok(result, cursor)
        if separator.value != ",":
            return separator.cursor.fail(
                ErrorKind.EXPECTED_SEPARATOR, "expected ',' or ']'"
            )


# -- punctuation helper --


def _expect(cursor: Cursor, expected: str, kind: ErrorKind, message: str) -> Parsed[None]:
    peeked = peek_char(cursor)
    if isinstance(peeked, Err):
        return peeked
    if peeked.value != expected:
        return peeked.cursor.fail(kind, message)
    return Ok(None, peeked.cursor.advance())
