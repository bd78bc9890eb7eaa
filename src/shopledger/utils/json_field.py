"""Fields that arrive either as JSON text or as an already parsed value.

Stored rule sets and item lists come back from the database as text, while
callers building them in memory pass lists and dicts. Wrap the incoming value
in ``Raw`` or ``Parsed`` once at the boundary and call
``normalize_json_field``; business logic only ever sees the parsed value.
"""

import json
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Raw:
    """Unparsed JSON text."""

    text: str


@dataclass(frozen=True)
class Parsed:
    """A value that is already a Python structure."""

    value: Any


JsonField = Union[Raw, Parsed]


def tag_json_field(value: Any) -> JsonField:
    """Tag an untyped incoming value as Raw (strings) or Parsed (anything else)."""
    if isinstance(value, (Raw, Parsed)):
        return value
    if isinstance(value, (str, bytes)):
        text = value.decode() if isinstance(value, bytes) else value
        return Raw(text)
    return Parsed(value)


def normalize_json_field(field: JsonField, default: Any = None) -> Any:
    """Return the parsed value of a tagged field.

    Empty text yields ``default``.

    Raises:
        ValueError: If raw text is not valid JSON
    """
    if isinstance(field, Parsed):
        return default if field.value is None else field.value
    if not field.text.strip():
        return default
    try:
        return json.loads(field.text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}")


def dump_json_field(value: Any) -> str:
    """Serialize a parsed value for storage."""
    return json.dumps(value, default=str)
