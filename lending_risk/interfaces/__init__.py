"""Protocol interfaces for the lending risk core."""
from .clock import LogicalClock
from .notifier import Notifier
from .store import Store, Transaction

__all__ = ["LogicalClock", "Notifier", "Store", "Transaction"]
