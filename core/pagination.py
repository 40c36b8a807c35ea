"""
core/pagination.py -- Page request parsing and page results.

Every list endpoint funnels its raw ``page`` / ``limit`` query strings through
PageRequest.parse() and returns a Page built from one list query and one count
query that share the same predicate (see content/repository.py).

Parsing is lenient: a non-numeric or out-of-range value falls back to the
default or is clamped, it never fails the request.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar, Union

T = TypeVar("T")

MAX_LIMIT = 100


def _to_int(value: Union[str, int, None], default: int) -> int:
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def parse(
        cls,
        page: Union[str, int, None] = None,
        limit: Union[str, int, None] = None,
        default_limit: int = 10,
        max_limit: int = MAX_LIMIT,
    ) -> "PageRequest":
        """Build a PageRequest from untrusted query values.

        page < 1 becomes 1; limit < 1 becomes default_limit; limit above
        max_limit is clamped to max_limit.
        """
        page_num = max(_to_int(page, 1), 1)
        limit_num = _to_int(limit, default_limit)
        if limit_num < 1:
            limit_num = default_limit
        return cls(page=page_num, limit=min(limit_num, max_limit))


@dataclass
class Page(Generic[T]):
    """One page of results plus the total matching row count."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

