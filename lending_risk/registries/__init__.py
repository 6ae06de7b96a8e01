"""Keyed registries over the store."""
from .assets import AssetRegistry
from .borrowers import BorrowerRegistry
from .positions import PositionLedger

__all__ = ["AssetRegistry", "BorrowerRegistry", "PositionLedger"]
