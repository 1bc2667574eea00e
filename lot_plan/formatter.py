"""Output helpers for the payment plan calculator.

This module renders payment plans for people: Colombian peso amounts, the
summary block, the calendar table, the CSV rows and the WhatsApp share
message. We rely only on built-in printing and string formatting here; the CLI
decides where the output goes.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional
from urllib.parse import quote

from .config import CSV_HEADER, CURRENCY_SYMBOL, MAX_BALLOON_PERCENT, WHATSAPP_BASE_URL
from .data_models import PaymentPlan, QuoteHeader, ScheduleRow
from .engine import clamp_months
from .utils import ZERO, clamp, to_decimal


def format_currency(value) -> str:
    """Format an amount as Colombian pesos without decimals: ``$ 1.234.567``."""
    amount = to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    digits = f"{abs(int(amount)):,}".replace(",", ".")
    return f"{sign}{CURRENCY_SYMBOL} {digits}"


def plain_number(value) -> str:
    """Render an amount as a plain number for CSV/JSON: no separators, no exponent."""
    amount = to_decimal(value)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), "f")


def print_header(header: QuoteHeader) -> None:
    """Print the quote header, skipping empty fields."""
    fields = [
        ("Fecha de cotización", header.quote_date.isoformat() if header.quote_date else ""),
        ("Cliente", header.client_name),
        ("Teléfono", header.client_phone),
        ("Correo", header.client_email),
        ("Lote", header.lot_number),
    ]
    for label, value in fields:
        if value:
            print(f"{label:20s}: {value}")


def print_summary(plan: PaymentPlan) -> None:
    """Print pricing and totals of a plan in a human-readable format."""
    pricing = plan.pricing
    totals = plan.totals
    balloon_pct = plain_number(clamp(to_decimal(plan.inputs.balloon_percent), ZERO, MAX_BALLOON_PERCENT))
    print("Resumen")
    print("-" * 72)
    print(f"Precio full           : {format_currency(pricing.full_price)}")
    print(f"Descuento             : - {format_currency(pricing.discount)}")
    print(f"Precio neto           : {format_currency(pricing.net_price)}")
    print(f"Cuota inicial         : {format_currency(totals.initial)}")
    print(f"Última cuota ({balloon_pct}%)   : {format_currency(totals.balloon)}")
    print(f"Total extras          : {format_currency(totals.extras_total)}")
    print(f"Total mensualidades   : {format_currency(totals.monthly_total)}")
    print(f"Cuota mensual         : {format_currency(plan.reconciliation.monthly_installment)}")
    print(f"Total a pagar         : {format_currency(totals.grand_total)}")
    print("-" * 72)


def print_schedule(rows: Iterable[ScheduleRow]) -> None:
    """Print the payment calendar as a simple table."""
    print("\t".join(["Mes", "Fecha", "Concepto", "Valor"]))
    for row in rows:
        print("\t".join([str(row.month), row.date_label, row.label, format_currency(row.amount)]))


def csv_rows(rows: Iterable[ScheduleRow]) -> List[List[str]]:
    """Return the calendar as CSV rows (header first).

    Columns are type, month, date, label and amount, in row order, with the
    amount as a plain number.
    """
    out: List[List[str]] = [list(CSV_HEADER)]
    for row in rows:
        out.append([row.kind, str(row.month), row.date_label, row.label, plain_number(row.amount)])
    return out


def share_text(plan: PaymentPlan, header: Optional[QuoteHeader] = None) -> str:
    """Build the message a buyer sends to ask for a review of the plan."""
    inputs = plan.inputs
    lines = ["Hola, estuve simulando mi plan de pagos en Manamelí:", ""]
    if header is not None and header.lot_number:
        lines.append(f"Lote: {header.lot_number}")
    lines.extend(
        [
            f"Área: {plain_number(inputs.area)} m²",
            f"Precio m²: {format_currency(inputs.price_per_unit_area)}",
            f"Precio neto: {format_currency(plan.pricing.net_price)}",
            f"Cuota inicial: {format_currency(plan.pricing.capped_initial)}",
            f"Meses: {clamp_months(inputs.financing_months)}",
            f"Última cuota (balloon): {format_currency(plan.totals.balloon)}",
            "",
            "¿Me ayudas a revisarlo?",
        ]
    )
    return "\n".join(lines)


def whatsapp_link(text: str) -> str:
    """Return a wa.me link that opens WhatsApp with ``text`` prefilled."""
    return f"{WHATSAPP_BASE_URL}?text={quote(text, safe='')}"
