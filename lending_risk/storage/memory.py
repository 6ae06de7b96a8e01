"""In-process keyed store with staged, all-or-nothing transactions."""
from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Hashable

from ..interfaces.store import TABLES

logger = logging.getLogger(__name__)


class StagedTransaction:
    """Buffers writes over a base table map; reads see staged values first."""

    def __init__(self, tables: dict[str, dict[Hashable, Any]]) -> None:
        self._tables = tables
        self._pending: dict[str, dict[Hashable, Any]] = {}

    def _check(self, table: str) -> None:
        if table not in self._tables:
            raise KeyError(f"Unknown table '{table}'")

    def get(self, table: str, key: Hashable) -> Any | None:
        self._check(table)
        staged = self._pending.get(table, {})
        if key in staged:
            return staged[key]
        return self._tables[table].get(key)

    def items(self, table: str) -> list[tuple[Hashable, Any]]:
        self._check(table)
        merged = dict(self._tables[table])
        merged.update(self._pending.get(table, {}))
        return list(merged.items())

    def put(self, table: str, key: Hashable, value: Any) -> None:
        self._check(table)
        self._pending.setdefault(table, {})[key] = value

    @property
    def pending_writes(self) -> int:
        return sum(len(t) for t in self._pending.values())

    def merged(self) -> dict[str, dict[Hashable, Any]]:
        """Every table as it will look once the staged writes are applied."""
        return {table: dict(self.items(table)) for table in self._tables}

    def apply(self) -> None:
        for table, writes in self._pending.items():
            self._tables[table].update(writes)
        self._pending.clear()


class MemoryStore:
    """Thread-safe in-memory tables.

    A single re-entrant lock serializes transactions, so every read inside a
    transaction observes one consistent snapshot. Staged writes become visible
    only when the block exits without raising and ``_persist`` succeeds.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tables: dict[str, dict[Hashable, Any]] = {name: {} for name in TABLES}

    def get(self, table: str, key: Hashable) -> Any | None:
        with self._lock:
            return self._tables[table].get(key)

    def items(self, table: str) -> list[tuple[Hashable, Any]]:
        with self._lock:
            return list(self._tables[table].items())

    @contextmanager
    def transaction(self) -> Iterator[StagedTransaction]:
        with self._lock, self._guard():
            txn = StagedTransaction(self._tables)
            yield txn
            if txn.pending_writes:
                self._persist(txn)
                txn.apply()

    @contextmanager
    def _guard(self) -> Iterator[None]:
        """Hook held around a whole transaction, inside the store lock."""
        yield

    def _persist(self, txn: StagedTransaction) -> None:
        """Hook for persistent subclasses; raising here discards the writes."""
