"""Command-line interface for the payment plan calculator.

This module uses the ``click`` library to implement a multi-command interface.
Sellers can compute the full payment calendar for a lot, view only the
summary, list the offered prices per m² or produce the WhatsApp share message.
Results can be printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .config import (
    DEFAULT_AREA,
    DEFAULT_BALLOON_PERCENT,
    DEFAULT_INITIAL_PAYMENT,
    DEFAULT_MONTHS,
    DEFAULT_PRICE_PER_M2,
    DEFAULT_ROUNDING,
    PRICE_PER_M2_OPTIONS,
    REFERENCE_PRICE_PER_M2,
    ROUNDING_OPTIONS,
)
from .data_models import ExtraPayment, PaymentPlan, PlanInputs, QuoteHeader
from .engine import build_plan, check_invariants
from .formatter import (
    csv_rows,
    format_currency,
    plain_number,
    print_header,
    print_schedule,
    print_summary,
    share_text,
    whatsapp_link,
)
from .utils import decimal_from_str, default_start_month, parse_year_month


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("20000000") and shorthand with ``k``/``m`` suffixes
    (e.g., "20m" meaning 20_000_000). Returns a ``Decimal``.
    """
    text = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if text.endswith("k"):
        factor = Decimal(1_000)
        text = text[:-1]
    elif text.endswith("m"):
        factor = Decimal(1_000_000)
        text = text[:-1]
    try:
        return decimal_from_str(text) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_extra_strings(values: Tuple[str, ...]) -> List[ExtraPayment]:
    extras: List[ExtraPayment] = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(f"Extra payment must be in MONTH:AMOUNT format; got {item}")
        month_str, amount_str = parts
        try:
            month = int(month_str.strip())
        except ValueError:
            raise click.BadParameter(f"Extra payment month must be an integer; got {month_str}")
        extras.append(ExtraPayment(month=month, amount=parse_amount(amount_str)))
    return extras


def build_inputs_from_options(
    area: str,
    price: str,
    months: int,
    balloon: str,
    initial: str,
    rounding: int,
    extra: Tuple[str, ...],
    start_month: Optional[str],
) -> PlanInputs:
    try:
        start = parse_year_month(start_month) if start_month else default_start_month()
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    try:
        balloon_value = decimal_from_str(balloon.rstrip("%"))
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    return PlanInputs(
        area=parse_amount(area),
        price_per_unit_area=parse_amount(price),
        financing_months=months,
        balloon_percent=balloon_value,
        initial_payment=parse_amount(initial),
        rounding_granularity=rounding,
        extraordinary_payments=parse_extra_strings(extra) if extra else [],
        plan_start_month=start,
        reference_price_per_unit_area=REFERENCE_PRICE_PER_M2,
    )


def build_header_from_options(
    quote_date: Optional[str],
    client_name: Optional[str],
    client_phone: Optional[str],
    client_email: Optional[str],
    lot_number: Optional[str],
) -> QuoteHeader:
    parsed_date = None
    if quote_date:
        try:
            parsed_date = date.fromisoformat(quote_date)
        except ValueError:
            raise click.BadParameter(f"Quote date must be YYYY-MM-DD; got {quote_date}")
    return QuoteHeader(
        quote_date=parsed_date,
        client_name=client_name or "",
        client_phone=client_phone or "",
        client_email=client_email or "",
        lot_number=lot_number or "",
    )


def summary_to_dict(plan: PaymentPlan) -> Dict[str, Any]:
    pricing = plan.pricing
    totals = plan.totals
    return {
        "full_price": plain_number(pricing.full_price),
        "discount": plain_number(pricing.discount),
        "net_price": plain_number(pricing.net_price),
        "balloon_target": plain_number(pricing.balloon_target),
        "initial": plain_number(totals.initial),
        "monthly_installment": plain_number(plan.reconciliation.monthly_installment),
        "monthly_payments": plan.reconciliation.num_monthly_payments,
        "monthly_total": plain_number(totals.monthly_total),
        "extras_total": plain_number(totals.extras_total),
        "balloon": plain_number(totals.balloon),
        "grand_total": plain_number(totals.grand_total),
    }


def export_to_json(path: Path, plan: PaymentPlan) -> None:
    """Export schedule and summary to a JSON file."""
    sched_list = []
    for row in plan.rows:
        sched_list.append(
            {
                "type": row.kind,
                "month": row.month,
                "date": row.date.strftime("%Y-%m") if row.date else None,
                "date_label": row.date_label,
                "label": row.label,
                "amount": plain_number(row.amount),
            }
        )
    data = {"summary": summary_to_dict(plan), "schedule": sched_list}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def export_to_csv(path: Path, plan: PaymentPlan) -> None:
    """Export the payment calendar to a CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerows(csv_rows(plan.rows))


def plan_options(func):
    """Attach the plan input options shared by several commands."""
    options = [
        click.option("--area", "-a", "area", default=str(DEFAULT_AREA), show_default=True, help="Lot area in m²"),
        click.option("--price", "-p", "price", default=str(DEFAULT_PRICE_PER_M2), show_default=True, help="Negotiated price per m²"),
        click.option("--months", "-t", "months", type=int, default=DEFAULT_MONTHS, show_default=True, help="Financing months (1-240)"),
        click.option("--balloon", "-b", "balloon", default=str(DEFAULT_BALLOON_PERCENT), show_default=True, help="Balloon payment percent of net price (0-90)"),
        click.option("--initial", "-i", "initial", default=str(DEFAULT_INITIAL_PAYMENT), show_default=True, help="Initial payment"),
        click.option(
            "--rounding",
            "-r",
            "rounding",
            type=click.Choice([str(v) for v in ROUNDING_OPTIONS]),
            default=str(DEFAULT_ROUNDING),
            show_default=True,
            help="Round monthly installments to multiples of this amount (0 = no rounding)",
        ),
        click.option("--extra", "extra", multiple=True, help="Extraordinary payment in MONTH:AMOUNT format"),
        click.option("--start-month", "-s", "start_month", help="Plan start month (YYYY-MM); defaults to next month"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_plan(area, price, months, balloon, initial, rounding, extra, start_month) -> PaymentPlan:
    inputs = build_inputs_from_options(
        area, price, months, balloon, initial, int(rounding), extra, start_month
    )
    return build_plan(inputs)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details")
def cli(verbose: bool) -> None:
    """Payment plan calculator for lot purchases."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@plan_options
@click.option("--quote-date", "quote_date", help="Quote date (YYYY-MM-DD)")
@click.option("--client-name", "client_name", help="Client full name")
@click.option("--client-phone", "client_phone", help="Client phone")
@click.option("--client-email", "client_email", help="Client e-mail")
@click.option("--lot", "lot_number", help="Lot number")
@click.option("--check", "check", is_flag=True, help="Verify the calendar invariants")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    area: str,
    price: str,
    months: int,
    balloon: str,
    initial: str,
    rounding: str,
    extra: Tuple[str, ...],
    start_month: Optional[str],
    quote_date: Optional[str],
    client_name: Optional[str],
    client_phone: Optional[str],
    client_email: Optional[str],
    lot_number: Optional[str],
    check: bool,
    output: Optional[str],
) -> None:
    """Compute and print the full payment calendar."""
    plan = _build_plan(area, price, months, balloon, initial, rounding, extra, start_month)
    header = build_header_from_options(quote_date, client_name, client_phone, client_email, lot_number)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, plan)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, plan)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
    else:
        print_header(header)
        print_summary(plan)
        print_schedule(plan.rows)
    if check:
        results = check_invariants(plan)
        for name, ok in results.items():
            click.echo(f"{name:15s} {'OK' if ok else 'FAIL'}")
        if not all(results.values()):
            raise click.ClickException("Calendar invariants failed")


@cli.command()
@plan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    area: str,
    price: str,
    months: int,
    balloon: str,
    initial: str,
    rounding: str,
    extra: Tuple[str, ...],
    start_month: Optional[str],
    output: Optional[str],
) -> None:
    """Compute and print only the summary of a plan."""
    plan = _build_plan(area, price, months, balloon, initial, rounding, extra, start_month)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_to_dict(plan)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(plan)


@cli.command()
def prices() -> None:
    """List the offered prices per m² and the discount against the reference price."""
    for option in PRICE_PER_M2_OPTIONS:
        discount = REFERENCE_PRICE_PER_M2 - option
        click.echo(f"{format_currency(option)} / m²\t- {format_currency(discount)} / m²")


@cli.command()
@plan_options
@click.option("--lot", "lot_number", help="Lot number")
def share(
    area: str,
    price: str,
    months: int,
    balloon: str,
    initial: str,
    rounding: str,
    extra: Tuple[str, ...],
    start_month: Optional[str],
    lot_number: Optional[str],
) -> None:
    """Print the WhatsApp share message and link for a plan."""
    plan = _build_plan(area, price, months, balloon, initial, rounding, extra, start_month)
    text = share_text(plan, QuoteHeader(lot_number=lot_number or ""))
    click.echo(text)
    click.echo("")
    click.echo(whatsapp_link(text))


if __name__ == "__main__":
    cli()
