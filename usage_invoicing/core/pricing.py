"""
Tiered usage pricing and invoice calculation.

All arithmetic is exact decimal; nothing is rounded here. Rounding to
cents happens only when an invoice is rendered.
"""

from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable, List

from .records import UsageRecord

CENT = Decimal("0.01")

# Enough digits that products and sums of in-range quantities and rates
# (at most 29 significant digits each) are exact
EXACT_CONTEXT = Context(prec=100)


@dataclass(frozen=True)
class PricingSchedule:
    """Rates applied to one billing period's usage.
    
    API calls use a two-bracket progressive schedule: the first
    ``api_tier_threshold`` calls are billed at ``api_rate_tier1`` and only
    the excess at ``api_rate_tier2``.
    """
    api_tier_threshold: int
    api_rate_tier1: Decimal  # up to threshold
    api_rate_tier2: Decimal  # above threshold
    storage_rate_per_gb: Decimal
    compute_rate_per_minute: Decimal

    def __post_init__(self):
        """Validate the schedule is non-negative."""
        if self.api_tier_threshold < 0:
            raise ValueError("api_tier_threshold must be >= 0")
        for name in ("api_rate_tier1", "api_rate_tier2", "storage_rate_per_gb", "compute_rate_per_minute"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")


# Fixed pricing - not runtime-configurable unless a schedule is injected
DEFAULT_PRICING = PricingSchedule(
    api_tier_threshold=10_000,
    api_rate_tier1=Decimal("0.01"),
    api_rate_tier2=Decimal("0.008"),
    storage_rate_per_gb=Decimal("0.25"),
    compute_rate_per_minute=Decimal("0.05"),
)


@dataclass(frozen=True)
class Invoice:
    """Costs for one usage record, in api, storage, compute order."""
    customer_id: str
    api_cost: Decimal
    storage_cost: Decimal
    compute_cost: Decimal

    @property
    def total(self) -> Decimal:
        """Sum of the three costs; always derived, never stored."""
        with localcontext(EXACT_CONTEXT):
            return self.api_cost + self.storage_cost + self.compute_cost


class InvoiceCalculator:
    """Applies a pricing schedule to usage records."""

    def __init__(self, pricing: PricingSchedule = DEFAULT_PRICING):
        self.pricing = pricing

    def api_cost(self, api_calls: int) -> Decimal:
        """Tiered API cost.
        
        Negative counts are tolerated and produce a negative cost.
        """
        threshold = self.pricing.api_tier_threshold
        tier1_units = min(api_calls, threshold)
        tier2_units = max(api_calls - threshold, 0)
        with localcontext(EXACT_CONTEXT):
            return tier1_units * self.pricing.api_rate_tier1 + tier2_units * self.pricing.api_rate_tier2

    def calculate(self, record: UsageRecord) -> Invoice:
        """Calculate the invoice for one record. Pure; never raises."""
        with localcontext(EXACT_CONTEXT):
            return Invoice(
                customer_id=record.customer_id,
                api_cost=self.api_cost(record.api_calls),
                storage_cost=record.storage_gb * self.pricing.storage_rate_per_gb,
                compute_cost=record.compute_minutes * self.pricing.compute_rate_per_minute,
            )

    def calculate_all(self, records: Iterable[UsageRecord]) -> List[Invoice]:
        """Calculate invoices preserving record order."""
        return [self.calculate(record) for record in records]


def round_amount(amount: Decimal) -> Decimal:
    """Round a monetary amount to cents, halves away from zero."""
    with localcontext(EXACT_CONTEXT):
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
