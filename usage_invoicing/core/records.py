"""
Usage records and load results.

Strongly-typed records produced by the record loader.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

UNKNOWN_CUSTOMER = "UNKNOWN"


@dataclass(frozen=True)
class UsageRecord:
    """One customer's raw usage for a billing period.
    
    Only ever built once every field has coerced; partial records
    are never constructed.
    """
    customer_id: str
    api_calls: int
    storage_gb: Decimal
    compute_minutes: int


@dataclass(frozen=True)
class Rejection:
    """A dropped input element and why it was dropped."""
    index: int
    cause: str
    customer_id: Optional[str] = None  # None when the element was not an object

    @property
    def message(self) -> str:
        """Human-readable rejection reason."""
        if self.customer_id is None:
            return self.cause
        return f"Missing or invalid fields for CustomerId: {self.customer_id} ({self.cause})"

    def __str__(self) -> str:
        return self.message


@dataclass
class LoadResult:
    """Outcome of loading a batch, in input order."""
    valid: List[UsageRecord] = field(default_factory=list)
    rejected: List[Rejection] = field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        """Rejection reasons as plain text."""
        return [rejection.message for rejection in self.rejected]

    @property
    def total(self) -> int:
        return len(self.valid) + len(self.rejected)
