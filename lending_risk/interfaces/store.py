"""Store protocol: keyed tables with all-or-nothing transactions."""
from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Hashable, Protocol

BORROWERS = "borrowers"
ASSETS = "assets"
POSITIONS = "positions"
PROTOCOL = "protocol"
META = "meta"

TABLES = (BORROWERS, ASSETS, POSITIONS, PROTOCOL, META)


class Transaction(Protocol):
    """Staged view over a store; writes apply only on successful exit."""

    def get(self, table: str, key: Hashable) -> Any | None: ...

    def items(self, table: str) -> list[tuple[Hashable, Any]]: ...

    def put(self, table: str, key: Hashable, value: Any) -> None: ...


class Store(Protocol):
    """Durable state surface: get/set by key plus full-table scans."""

    def get(self, table: str, key: Hashable) -> Any | None: ...

    def items(self, table: str) -> list[tuple[Hashable, Any]]: ...

    def transaction(self) -> AbstractContextManager[Transaction]: ...
