"""Core calculation engine for the payment plan calculator.

This module builds the payment calendar for a lot purchase. The negotiated net
price is split into an initial payment, equal monthly installments,
extraordinary payments (which replace the installment of their month) and a
final balloon payment. Installments may be rounded to a convenient multiple;
the rounding difference is absorbed by the balloon, which is never allowed to
go negative. No interest is modeled.

Every function here is pure: the whole calendar is recomputed from the inputs.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal
import logging
from typing import Dict, Iterable, List, Tuple, Union

from .config import (
    CONSERVATION_TOLERANCE,
    MAX_AREA,
    MAX_BALLOON_PERCENT,
    MAX_MONTHS,
    MAX_PRICE_PER_M2,
    MIN_AREA,
    MIN_MONTHS,
    MIN_PRICE_PER_M2,
    REFERENCE_PRICE_PER_M2,
)
from .data_models import (
    KIND_BALLOON,
    KIND_EXTRA,
    KIND_INITIAL,
    KIND_MONTHLY,
    ExtraPayment,
    PaymentPlan,
    PlanInputs,
    Pricing,
    Reconciliation,
    ScheduleRow,
    Totals,
)
from .utils import (
    ZERO,
    add_months,
    clamp,
    format_month_es,
    parse_year_month,
    round_down_to_multiple,
    round_up_to_multiple,
    to_decimal,
    to_int,
)

logger = logging.getLogger(__name__)


def clamp_months(financing_months) -> int:
    """Return the financing horizon clamped to [MIN_MONTHS, MAX_MONTHS]."""
    return clamp(to_int(financing_months), MIN_MONTHS, MAX_MONTHS)


def derive_pricing(
    area,
    price_per_unit_area,
    reference_price_per_unit_area=REFERENCE_PRICE_PER_M2,
    balloon_percent=ZERO,
    initial_payment=ZERO,
) -> Pricing:
    """Return full price, net price, discount, balloon target and capped initial.

    The reference price only feeds the full price (and so the discount); the
    net price is always ``area * price_per_unit_area``. The balloon percentage
    is capped at 90 % whatever the caller sends.
    """
    area_value = clamp(to_decimal(area), MIN_AREA, MAX_AREA)
    price = clamp(to_decimal(price_per_unit_area), MIN_PRICE_PER_M2, MAX_PRICE_PER_M2)
    reference = to_decimal(reference_price_per_unit_area, REFERENCE_PRICE_PER_M2)
    percent = clamp(to_decimal(balloon_percent), ZERO, MAX_BALLOON_PERCENT)

    full_price = area_value * reference
    net_price = area_value * price
    discount = max(ZERO, full_price - net_price)
    balloon_target = net_price * percent / Decimal(100)
    capped_initial = clamp(to_decimal(initial_payment), ZERO, max(ZERO, net_price))
    return Pricing(
        full_price=full_price,
        net_price=net_price,
        discount=discount,
        balloon_target=balloon_target,
        capped_initial=capped_initial,
    )


def order_extras(extras: Iterable[ExtraPayment]) -> List[ExtraPayment]:
    """Drop empty or pre-plan entries and sort the rest by month.

    The sort is stable, so entries sharing a month keep their input order.
    Entries beyond the horizon are kept here; ``normalize_extras`` drops them
    so that changing the horizon alone revalidates the same list.
    """
    cleaned: List[ExtraPayment] = []
    for extra in extras:
        amount = to_decimal(extra.amount)
        month = to_int(extra.month)
        if amount > 0 and month >= 1:
            cleaned.append(ExtraPayment(month=month, amount=amount))
    return sorted(cleaned, key=lambda e: e.month)


def normalize_extras(extras: Iterable[ExtraPayment], financing_months: int) -> List[ExtraPayment]:
    """Return the extraordinary payments that fall inside the horizon, by month."""
    months = clamp_months(financing_months)
    return [e for e in order_extras(extras) if e.month <= months]


def _group_extras(extras: Iterable[ExtraPayment]) -> Dict[int, List[ExtraPayment]]:
    """Group extraordinary payments by month for quick lookup."""
    mapping: Dict[int, List[ExtraPayment]] = {}
    for extra in extras:
        mapping.setdefault(extra.month, []).append(extra)
    return mapping


def reconcile(
    net_price: Decimal,
    capped_initial: Decimal,
    balloon_target: Decimal,
    financing_months: int,
    valid_extras: List[ExtraPayment],
    rounding_granularity: int = 0,
) -> Reconciliation:
    """Compute the uniform monthly installment and the adjusted balloon.

    The balance left after the initial payment, the balloon target and the
    extraordinary payments is spread evenly over the months without an
    extraordinary payment. Installments are first rounded *up* to a multiple
    of ``rounding_granularity`` (whole units when it is 0) and the surplus is
    taken off the balloon. If that would make the balloon negative, the
    installment is rounded *down* instead and the shortfall is added to the
    balloon.

    A month holding several extraordinary payments still frees a single
    installment slot, so the divisor counts distinct months.

    Returns
    -------
    Reconciliation
        The installment, the adjusted balloon and the intermediate figures.
    """
    months = clamp_months(financing_months)
    granularity = max(0, to_int(rounding_granularity))

    net_price = to_decimal(net_price)
    capped_initial = to_decimal(capped_initial)
    balloon_target = to_decimal(balloon_target)

    extras_sum = sum((to_decimal(e.amount) for e in valid_extras), ZERO)
    base_for_monthly = max(ZERO, net_price - capped_initial - balloon_target - extras_sum)
    months_with_extras = len({e.month for e in valid_extras})
    num_monthly_payments = max(0, months - months_with_extras)

    if num_monthly_payments == 0:
        logger.debug("No monthly slots left; balloon kept at %s", balloon_target)
        return Reconciliation(
            monthly_installment=ZERO,
            adjusted_balloon=balloon_target,
            num_monthly_payments=0,
            base_for_monthly=base_for_monthly,
            extras_sum=extras_sum,
            branch="none",
        )

    raw = base_for_monthly / Decimal(num_monthly_payments)

    candidate_up = round_up_to_multiple(raw, granularity)
    surplus = candidate_up * num_monthly_payments - base_for_monthly
    balloon_after_up = balloon_target - surplus
    if balloon_after_up >= 0:
        logger.debug(
            "Rounded installment up to %s; balloon reduced by %s", candidate_up, surplus
        )
        return Reconciliation(
            monthly_installment=candidate_up,
            adjusted_balloon=balloon_after_up,
            num_monthly_payments=num_monthly_payments,
            base_for_monthly=base_for_monthly,
            extras_sum=extras_sum,
            branch="up",
        )

    candidate_down = max(ZERO, round_down_to_multiple(raw, granularity))
    shortfall = base_for_monthly - candidate_down * num_monthly_payments
    adjusted_balloon = max(ZERO, balloon_target + shortfall)
    logger.debug(
        "Rounding up would leave a negative balloon (%s); rounded down to %s instead",
        balloon_after_up,
        candidate_down,
    )
    return Reconciliation(
        monthly_installment=candidate_down,
        adjusted_balloon=adjusted_balloon,
        num_monthly_payments=num_monthly_payments,
        base_for_monthly=base_for_monthly,
        extras_sum=extras_sum,
        branch="down",
    )


def assemble_rows(
    capped_initial: Decimal,
    financing_months: int,
    valid_extras: List[ExtraPayment],
    monthly_installment: Decimal,
    adjusted_balloon: Decimal,
) -> List[ScheduleRow]:
    """Build the calendar rows in month order.

    The initial payment comes first (month 0). Each financing month then gets
    either its extraordinary payments or one regular installment, never both.
    The balloon closes the list as month N+1.
    """
    months = clamp_months(financing_months)
    extras_by_month = _group_extras(valid_extras)
    capped_initial = to_decimal(capped_initial)
    monthly_installment = to_decimal(monthly_installment)
    adjusted_balloon = to_decimal(adjusted_balloon)

    rows: List[ScheduleRow] = [
        ScheduleRow(kind=KIND_INITIAL, month=0, label="Cuota inicial", amount=capped_initial)
    ]
    for m in range(1, months + 1):
        extras = extras_by_month.get(m)
        if extras:
            for extra in extras:
                rows.append(
                    ScheduleRow(
                        kind=KIND_EXTRA,
                        month=m,
                        label=f"Extraordinaria (mes {m})",
                        amount=to_decimal(extra.amount),
                    )
                )
        else:
            rows.append(
                ScheduleRow(
                    kind=KIND_MONTHLY,
                    month=m,
                    label=f"Cuota mensual {m}",
                    amount=monthly_installment,
                )
            )
    rows.append(
        ScheduleRow(
            kind=KIND_BALLOON,
            month=months + 1,
            label="Última cuota (balloon)",
            amount=adjusted_balloon,
        )
    )
    return rows


def project_dates(rows: Iterable[ScheduleRow], plan_start_month: Union[date, str]) -> List[ScheduleRow]:
    """Attach a calendar month to every row.

    The initial payment is dated at ``plan_start_month``, month ``m`` lands
    ``m`` months later and the balloon shares the month of the last financing
    month.

    ``plan_start_month`` is a ``date`` (its day is ignored) or a
    ``"YYYY-MM"`` string; a malformed string raises ``ValueError``.
    """
    if isinstance(plan_start_month, str):
        plan_start_month = parse_year_month(plan_start_month)
    anchor = date(plan_start_month.year, plan_start_month.month, 1)
    dated: List[ScheduleRow] = []
    for row in rows:
        offset = max(0, row.month - 1) if row.kind == KIND_BALLOON else max(0, row.month)
        when = add_months(anchor, offset)
        dated.append(replace(row, date=when, date_label=format_month_es(when)))
    return dated


def compute_totals(rows: Iterable[ScheduleRow]) -> Totals:
    """Sum the calendar per category."""
    initial = ZERO
    monthly_total = ZERO
    extras_total = ZERO
    balloon = ZERO
    for row in rows:
        if row.kind == KIND_INITIAL:
            initial += to_decimal(row.amount)
        elif row.kind == KIND_MONTHLY:
            monthly_total += to_decimal(row.amount)
        elif row.kind == KIND_EXTRA:
            extras_total += to_decimal(row.amount)
        elif row.kind == KIND_BALLOON:
            balloon += to_decimal(row.amount)
    return Totals(
        initial=initial,
        monthly_total=monthly_total,
        extras_total=extras_total,
        balloon=balloon,
        grand_total=initial + monthly_total + extras_total + balloon,
    )


def build_plan(inputs: PlanInputs) -> PaymentPlan:
    """Run every stage and keep the intermediate results for display."""
    pricing = derive_pricing(
        inputs.area,
        inputs.price_per_unit_area,
        inputs.reference_price_per_unit_area,
        inputs.balloon_percent,
        inputs.initial_payment,
    )
    months = clamp_months(inputs.financing_months)
    valid_extras = normalize_extras(inputs.extraordinary_payments, months)
    reconciliation = reconcile(
        pricing.net_price,
        pricing.capped_initial,
        pricing.balloon_target,
        months,
        valid_extras,
        inputs.rounding_granularity,
    )
    rows = assemble_rows(
        pricing.capped_initial,
        months,
        valid_extras,
        reconciliation.monthly_installment,
        reconciliation.adjusted_balloon,
    )
    rows = project_dates(rows, inputs.plan_start_month)
    totals = compute_totals(rows)

    difference = totals.grand_total - pricing.net_price
    if abs(difference) > CONSERVATION_TOLERANCE:
        # Only reachable when initial, balloon and extras together exceed
        # the net price.
        logger.warning(
            "Schedule total %s differs from net price %s by %s",
            totals.grand_total,
            pricing.net_price,
            difference,
        )
    return PaymentPlan(
        inputs=inputs,
        pricing=pricing,
        reconciliation=reconciliation,
        rows=rows,
        totals=totals,
    )


def compute_schedule(inputs: PlanInputs) -> Tuple[List[ScheduleRow], Totals]:
    """Compute the payment calendar and its totals for a set of inputs.

    Parameters
    ----------
    inputs: PlanInputs
        The plan configuration. Out-of-range values are clamped and invalid
        extraordinary payments are dropped; this function never raises for
        numeric input.

    Returns
    -------
    rows: List[ScheduleRow]
        Dated calendar rows: initial, months 1..N, balloon.
    totals: Totals
        Per-category sums and the grand total.
    """
    plan = build_plan(inputs)
    return plan.rows, plan.totals


def check_invariants(plan: PaymentPlan) -> Dict[str, bool]:
    """Evaluate the properties every calendar must satisfy.

    Returns a mapping from check name to result so callers can report every
    failure at once.
    """
    pricing = plan.pricing
    inputs = plan.inputs
    rows = plan.rows
    granularity = max(0, to_int(inputs.rounding_granularity))

    monthly_amounts = [r.amount for r in rows if r.kind == KIND_MONTHLY]
    extra_months = {r.month for r in rows if r.kind == KIND_EXTRA}
    area = clamp(to_decimal(inputs.area), MIN_AREA, MAX_AREA)
    reference = to_decimal(inputs.reference_price_per_unit_area, REFERENCE_PRICE_PER_M2)
    price = clamp(to_decimal(inputs.price_per_unit_area), MIN_PRICE_PER_M2, MAX_PRICE_PER_M2)

    return {
        "conservation": abs(plan.totals.grand_total - pricing.net_price) <= CONSERVATION_TOLERANCE,
        "exclusivity": not any(
            r.kind == KIND_MONTHLY and r.month in extra_months for r in rows
        ),
        "uniformity": len(set(monthly_amounts)) <= 1,
        "rounding": granularity == 0
        or all(amount % granularity == 0 for amount in monthly_amounts),
        "non_negative": all(r.amount >= 0 for r in rows),
        "full_price": pricing.full_price == area * reference,
        "discount": pricing.discount == max(ZERO, area * reference - area * price),
    }
