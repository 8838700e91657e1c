"""Selectors for the coop kernel (read side)."""

from coop_kernel.selectors.alert_selector import AlertSelector
from coop_kernel.selectors.collection_selector import CollectionSelector

__all__ = [
    "AlertSelector",
    "CollectionSelector",
]
