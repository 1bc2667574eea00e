"""Data models for the payment plan calculator.

This module defines dataclasses representing the different entities used by the
calculator: extraordinary payments, the plan inputs, the intermediate pricing
and reconciliation results, and the rows of the resulting payment calendar.
Using dataclasses makes it easy to construct, inspect and serialize these
structures.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional

from .config import REFERENCE_PRICE_PER_M2

KIND_INITIAL = "initial"
KIND_MONTHLY = "monthly"
KIND_EXTRA = "extra"
KIND_BALLOON = "balloon"


@dataclass
class ExtraPayment:
    """A lump sum due in a given financing month.

    Attributes
    ----------
    month: int
        Financing month (1..N) in which the payment is due. The regular
        installment of that month is replaced, not increased.
    amount: Decimal
        The amount paid that month.
    """

    month: int
    amount: Decimal


@dataclass
class PlanInputs:
    """Everything the caller supplies for one computation.

    Values are expected to be clamped by the caller already; the engine clamps
    them again so that its own invariants always hold.
    """

    area: Decimal
    price_per_unit_area: Decimal
    financing_months: int
    balloon_percent: Decimal  # percent of the net price, 0..90
    initial_payment: Decimal
    rounding_granularity: int  # 0 disables rounding
    extraordinary_payments: List[ExtraPayment]
    plan_start_month: date  # or "YYYY-MM"; the initial payment is dated this month
    reference_price_per_unit_area: Decimal = REFERENCE_PRICE_PER_M2


@dataclass
class Pricing:
    full_price: Decimal
    net_price: Decimal
    discount: Decimal
    balloon_target: Decimal
    capped_initial: Decimal


@dataclass
class Reconciliation:
    """Outcome of spreading the financed balance over the monthly slots.

    ``branch`` records which rounding direction was used: ``"up"`` when the
    balloon absorbed a surplus, ``"down"`` when it absorbed a shortfall and
    ``"none"`` when there were no monthly slots at all.
    """

    monthly_installment: Decimal
    adjusted_balloon: Decimal
    num_monthly_payments: int
    base_for_monthly: Decimal
    extras_sum: Decimal
    branch: str


@dataclass
class ScheduleRow:
    """One line of the payment calendar.

    ``month`` is 0 for the initial payment, 1..N for financing months and N+1
    for the balloon. ``date`` and ``date_label`` are filled in by the date
    projection step.
    """

    kind: str  # "initial", "monthly", "extra" or "balloon"
    month: int
    label: str
    amount: Decimal
    date: Optional[date] = None
    date_label: str = ""


@dataclass
class Totals:
    initial: Decimal
    monthly_total: Decimal
    extras_total: Decimal
    balloon: Decimal
    grand_total: Decimal


@dataclass
class QuoteHeader:
    """Informational data printed on a quote. It never affects the numbers."""

    quote_date: Optional[date] = None
    client_name: str = ""
    client_phone: str = ""
    client_email: str = ""
    lot_number: str = ""


@dataclass
class PaymentPlan:
    """The full result of a computation, as consumed by the CLI and web app."""

    inputs: PlanInputs
    pricing: Pricing
    reconciliation: Reconciliation
    rows: List[ScheduleRow] = field(default_factory=list)
    totals: Optional[Totals] = None
