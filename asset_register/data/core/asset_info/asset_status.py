"""
Closed set of asset lifecycle statuses.

Statuses are compared as enum members everywhere inside the engine; free-form
text is only accepted at the boundary through AssetStatus.parse().
"""

from enum import Enum
from typing import Optional


class AssetStatus(str, Enum):
    AVAILABLE = 'Available'
    IN_USE = 'InUse'
    IN_REPAIR = 'InRepair'
    ON_LOAN = 'OnLoan'
    LOST = 'Lost'
    SOLD = 'Sold'
    DISPOSED = 'Disposed'

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional['AssetStatus']:
        """
        Case-insensitive lookup by token ("InUse") or display label ("In Use").

        Returns None when the text names no status.
        """
        if text is None:
            return None
        needle = text.strip().lower()
        if not needle:
            return None
        for status in cls:
            if needle == status.value.lower() or needle == status.label.lower():
                return status
        return None


_LABELS = {
    AssetStatus.AVAILABLE: 'Available',
    AssetStatus.IN_USE: 'In Use',
    AssetStatus.IN_REPAIR: 'In Repair',
    AssetStatus.ON_LOAN: 'On Loan',
    AssetStatus.LOST: 'Lost',
    AssetStatus.SOLD: 'Sold',
    AssetStatus.DISPOSED: 'Disposed',
}

# New assets may only start in these statuses; OnLoan is reached through loans and Sold through sales
CREATABLE_STATUSES = frozenset({
    AssetStatus.AVAILABLE,
    AssetStatus.IN_USE,
    AssetStatus.IN_REPAIR,
    AssetStatus.DISPOSED,
    AssetStatus.LOST,
})

# Sold assets cannot be sold again and assets out on loan must come back first
SELLABLE_STATUSES = frozenset(AssetStatus) - {AssetStatus.SOLD, AssetStatus.ON_LOAN}

LOANABLE_STATUSES = frozenset({
    AssetStatus.AVAILABLE,
    AssetStatus.IN_USE,
})
