"""
core/validation.py -- Small pure helpers shared by the content services.

  slugify()            -- URL-safe key derived from a title or name
  ensure_date_range()  -- start/end temporal invariant
  coerce_enum()        -- lenient enum lookup for list filters
  reading_time()       -- minutes to read a blog post
  reject_nulls()       -- explicit null on a required field in a partial update
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Iterable, Mapping, Optional, TypeVar

from core.errors import ValidationError

E = TypeVar("E", bound=Enum)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WORDS_PER_MINUTE = 200


def slugify(text: str) -> str:
    """Lowercase, collapse every non-alphanumeric run to one hyphen, trim hyphens.

    >>> slugify("  Hello, World!  ")
    'hello-world'
    """
    return _NON_ALNUM.sub("-", text.lower()).strip("-")


def ensure_date_range(start: Optional[str], end: Optional[str]) -> None:
    """Raise ValidationError unless ``end`` is absent or on/after ``start``.

    Dates are ISO YYYY-MM-DD strings, so lexical order is date order.
    """
    if end is None:
        return
    if start is None:
        raise ValidationError("An end date requires a start date.")
    if end < start:
        raise ValidationError("End date must not be earlier than start date.")


def coerce_enum(value: Optional[str], enum_cls: type[E]) -> Optional[E]:
    """Return the enum member matching ``value`` case-insensitively, else None."""
    if not value:
        return None
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        return None


def reading_time(content: str) -> int:
    words = len(content.split())
    return max(1, math.ceil(words / _WORDS_PER_MINUTE))


def reject_nulls(changes: Mapping[str, object], required: Iterable[str]) -> None:
    cleared = sorted(name for name in required if name in changes and changes[name] is None)
    if cleared:
        raise ValidationError(f"Fields cannot be null: {', '.join(cleared)}")
