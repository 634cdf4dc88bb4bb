from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Label(Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    REPEATED = "repeated"


@dataclass(frozen=True)
class Field:
    label: Label
    type_name: str
    name: str
    tag: int
    default_value: Optional[str] = None
    deprecated: bool = False
    documentation: str = ""


@dataclass(frozen=True)
class MessageType:
    """A message declaration. Nested type declarations are not retained."""

    name: str
    documentation: str = ""
    fields: Tuple[Field, ...] = ()


@dataclass(frozen=True)
class EnumValue:
    name: str
    tag: int
    documentation: str = ""


@dataclass(frozen=True)
class EnumType:
    name: str
    documentation: str = ""
    values: Tuple[EnumValue, ...] = ()


@dataclass(frozen=True)
class ProtoFile:
    """Top-level parsed representation of a schema file.

    ``file_name`` is an opaque label supplied by the caller. Messages and enums
    declared inside a message body appear in the flat ``message_types`` and
    ``enum_types`` lists, ahead of the message that encloses them.
    """

    file_name: str
    package_name: Optional[str] = None
    dependencies: Tuple[str, ...] = ()
    message_types: Tuple[MessageType, ...] = ()
    enum_types: Tuple[EnumType, ...] = ()
