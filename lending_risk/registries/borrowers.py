"""Borrower registry: credit and exposure profiles."""
from __future__ import annotations

import dataclasses
import logging

from ..config import RiskParametersConfig
from ..errors import InvalidBorrower
from ..interfaces.clock import LogicalClock
from ..interfaces.store import BORROWERS, Store, Transaction
from ..models import BorrowerProfile, Caller
from .access import require_owner

logger = logging.getLogger(__name__)


class BorrowerRegistry:
    def __init__(
        self,
        store: Store,
        clock: LogicalClock,
        owner: str,
        params: RiskParametersConfig,
    ) -> None:
        self._store = store
        self._clock = clock
        self._owner = owner
        self._params = params

    def register(self, caller: Caller, borrower: str) -> BorrowerProfile:
        """Create (or reset) the profile for ``borrower`` with neutral defaults."""
        require_owner(caller, self._owner, "register_borrower")
        if not borrower:
            raise InvalidBorrower("Borrower identity must not be empty")

        profile = BorrowerProfile(
            borrower=borrower,
            credit_score=self._params.default_credit_score,
        )
        with self._store.transaction() as txn:
            if txn.get(BORROWERS, borrower) is not None:
                logger.info("Re-registering borrower %s, profile reset", borrower)
            txn.put(BORROWERS, borrower, profile)

        logger.info("Borrower %s registered", borrower)
        return profile

    def record_default(self, caller: Caller, borrower: str) -> BorrowerProfile:
        """Add one default to the borrower's history."""
        require_owner(caller, self._owner, "record_default")
        with self._store.transaction() as txn:
            profile = txn.get(BORROWERS, borrower)
            if profile is None:
                raise InvalidBorrower(f"Borrower '{borrower}' is not registered")
            updated = dataclasses.replace(
                profile, default_history=profile.default_history + 1
            )
            txn.put(BORROWERS, borrower, updated)

        logger.warning(
            "Default recorded for %s (history=%d)", borrower, updated.default_history
        )
        return updated

    def get(self, borrower: str, txn: Transaction | None = None) -> BorrowerProfile | None:
        return (txn or self._store).get(BORROWERS, borrower)

    def all(self, txn: Transaction | None = None) -> dict[str, BorrowerProfile]:
        return dict((txn or self._store).items(BORROWERS))

    def stage(self, txn: Transaction, profile: BorrowerProfile) -> None:
        txn.put(BORROWERS, profile.borrower, profile)
