"""Position ledger: one open position per (borrower, asset) pair."""
from __future__ import annotations

from ..interfaces.store import POSITIONS, Store, Transaction
from ..models import LendingPosition


class PositionLedger:
    """Read access for everyone; writes are staged by the risk scorer only."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def get(
        self, borrower: str, symbol: str, txn: Transaction | None = None
    ) -> LendingPosition | None:
        return (txn or self._store).get(POSITIONS, (borrower, symbol))

    def all(self, txn: Transaction | None = None) -> list[LendingPosition]:
        return [position for _, position in (txn or self._store).items(POSITIONS)]

    def for_borrower(
        self, borrower: str, txn: Transaction | None = None
    ) -> list[LendingPosition]:
        return [p for p in self.all(txn) if p.borrower == borrower]

    def stage(self, txn: Transaction, position: LendingPosition) -> None:
        txn.put(POSITIONS, position.key, position)
