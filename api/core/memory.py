"""
Shared state for the in-memory repositories.

Used by the test-suite and by `STORAGE_BACKEND=memory` for local runs. Rows
are kept as plain dicts shaped like the SQL result rows, so the same row
decoders apply to both backends. Every repository method completes its
check-and-write without an intervening `await`, which makes each call atomic
on the event loop.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MemoryState:
    clock: Callable[[], datetime] = utc_now
    news: list[dict[str, Any]] = field(default_factory=list)
    tags: list[dict[str, Any]] = field(default_factory=list)
    inquiries: list[dict[str, Any]] = field(default_factory=list)
    users: list[dict[str, Any]] = field(default_factory=list)
    otps: list[dict[str, Any]] = field(default_factory=list)
    countries: list[dict[str, Any]] = field(default_factory=list)
    gender_options: list[dict[str, Any]] = field(default_factory=list)
    _sequences: dict[str, Iterator[int]] = field(default_factory=dict, repr=False)

    def next_id(self, table: str, key: str = "id") -> int:
        if table not in self._sequences:
            rows = getattr(self, table, [])
            start = 1 + max((int(r.get(key) or 0) for r in rows), default=0)
            self._sequences[table] = itertools.count(start)
        return next(self._sequences[table])

    def now(self) -> datetime:
        return self.clock()
