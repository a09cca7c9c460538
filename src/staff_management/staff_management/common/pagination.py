from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from ..core.constants import DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class Page:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, page: Optional[Any], limit: Optional[Any], default_limit: int = DEFAULT_PAGE_SIZE) -> "Page":
        try:
            p = max(int(page or 1), 1)
        except (TypeError, ValueError):
            p = 1
        try:
            size = max(int(limit or default_limit), 1)
        except (TypeError, ValueError):
            size = default_limit
        return cls(page=p, limit=min(size, 200))

    def describe(self, total: int) -> dict:
        return {
            "current": self.page,
            "total": math.ceil(total / self.limit) if total else 0,
            "has_next": self.page * self.limit < total,
            "has_prev": self.page > 1,
        }
