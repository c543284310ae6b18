"""Value types supplied by the host application."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class OptionRecord:
    """A selectable answer: the text shown to the user and its stored value."""

    display_text: str
    raw_value: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> OptionRecord:
        return cls(display_text=data["display_text"], raw_value=data.get("raw_value"))


@dataclass(frozen=True)
class Tag:
    """An atom value. Compares equal to a string with the same spelling."""

    name: str

    def __str__(self) -> str:
        return self.name


def is_number(value: Any) -> bool:
    """True for int and float values. Booleans are not numbers."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_option_mapping(value: Any) -> bool:
    return isinstance(value, Mapping) and "display_text" in value


def as_option(value: Any) -> OptionRecord | None:
    """Return ``value`` as an OptionRecord, or None if it is not one."""
    if isinstance(value, OptionRecord):
        return value
    if is_option_mapping(value):
        return OptionRecord.from_mapping(value)
    return None


def tag_name(value: Any) -> str | None:
    """Return the spelling of a tag value (Tag or Enum member), else None."""
    if isinstance(value, Tag):
        return value.name
    if isinstance(value, Enum):
        return value.name
    return None


def from_json(data: Any) -> Any:
    """Convert decoded JSON into scope values.

    Objects with a ``display_text`` key become OptionRecords; other objects
    stay mappings with converted values.
    """
    if isinstance(data, list):
        return [from_json(item) for item in data]
    if isinstance(data, dict):
        if "display_text" in data:
            return OptionRecord(
                display_text=data["display_text"],
                raw_value=from_json(data.get("raw_value")),
            )
        return {key: from_json(item) for key, item in data.items()}
    return data


def is_truthy(value: Any) -> bool:
    """Only null and false are falsy."""
    return value is not None and value is not False
