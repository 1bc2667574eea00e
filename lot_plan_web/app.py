import csv
import io
from datetime import date

from flask import Flask, Response, render_template, request

from lot_plan.config import (
    DEFAULT_AREA,
    DEFAULT_BALLOON_PERCENT,
    DEFAULT_EXTRA_MONTH,
    DEFAULT_INITIAL_PAYMENT,
    DEFAULT_MONTHS,
    DEFAULT_PRICE_PER_M2,
    DEFAULT_ROUNDING,
    MAX_BALLOON_PERCENT,
    MAX_MONTHS,
    PRICE_PER_M2_OPTIONS,
    REFERENCE_PRICE_PER_M2,
    ROUNDING_OPTIONS,
)
from lot_plan.data_models import ExtraPayment, PlanInputs, QuoteHeader
from lot_plan.engine import build_plan
from lot_plan.formatter import csv_rows, format_currency, plain_number, share_text, whatsapp_link
from lot_plan.utils import decimal_from_str, default_start_month, parse_year_month, to_int

app = Flask(__name__)
app.jinja_env.filters["currency"] = format_currency


def parse_form_list(value: str) -> list[str]:
    """Parse a comma or newline separated list of entries from a form field.

    Returns a list of trimmed strings, skipping any empty entries.
    """
    if not value:
        return []
    parts = [p.strip() for p in value.replace("\n", ",").split(",")]
    return [p for p in parts if p]


def _parse_extras(value: str) -> list[ExtraPayment]:
    extras = []
    for item in parse_form_list(value):
        parts = item.split(":")
        if len(parts) != 2:
            raise ValueError(f"Extraordinaria inválida (use MES:VALOR): {item}")
        extras.append(ExtraPayment(month=to_int(parts[0]), amount=decimal_from_str(parts[1])))
    return extras


def _form_number(form, name: str, default):
    raw = form.get(name, "").strip()
    if not raw:
        return default
    return decimal_from_str(raw)


def _form_to_inputs(form) -> PlanInputs:
    start_raw = form.get("start_month", "").strip()
    return PlanInputs(
        area=_form_number(form, "area", DEFAULT_AREA),
        price_per_unit_area=_form_number(form, "price", DEFAULT_PRICE_PER_M2),
        financing_months=to_int(form.get("months", DEFAULT_MONTHS), DEFAULT_MONTHS),
        balloon_percent=_form_number(form, "balloon", DEFAULT_BALLOON_PERCENT),
        initial_payment=_form_number(form, "initial", DEFAULT_INITIAL_PAYMENT),
        rounding_granularity=to_int(form.get("rounding", DEFAULT_ROUNDING)),
        extraordinary_payments=_parse_extras(form.get("extras", "")),
        plan_start_month=parse_year_month(start_raw) if start_raw else default_start_month(),
        reference_price_per_unit_area=REFERENCE_PRICE_PER_M2,
    )


def _form_to_header(form) -> QuoteHeader:
    raw_date = form.get("quote_date", "").strip()
    try:
        quote_date = date.fromisoformat(raw_date) if raw_date else date.today()
    except ValueError as exc:
        raise ValueError(f"Fecha de cotización inválida (use AAAA-MM-DD): {raw_date}") from exc
    return QuoteHeader(
        quote_date=quote_date,
        client_name=form.get("client_name", "").strip(),
        client_phone=form.get("client_phone", "").strip(),
        client_email=form.get("client_email", "").strip(),
        lot_number=form.get("lot_number", "").strip(),
    )


def _default_form() -> dict:
    return {
        "area": plain_number(DEFAULT_AREA),
        "price": plain_number(DEFAULT_PRICE_PER_M2),
        "months": str(DEFAULT_MONTHS),
        "balloon": plain_number(DEFAULT_BALLOON_PERCENT),
        "initial": plain_number(DEFAULT_INITIAL_PAYMENT),
        "rounding": str(DEFAULT_ROUNDING),
        "extras": f"{DEFAULT_EXTRA_MONTH}:0",
        "start_month": default_start_month().strftime("%Y-%m"),
        "quote_date": date.today().isoformat(),
    }


@app.route("/", methods=["GET", "POST"])
def index():
    plan = None
    share_href = None
    header = None
    error = None
    form = _default_form()

    if request.method == "POST":
        form.update(request.form.to_dict())
        try:
            header = _form_to_header(request.form)
            plan = build_plan(_form_to_inputs(request.form))
            share_href = whatsapp_link(share_text(plan, header))
        except ValueError as exc:
            error = str(exc)

    return render_template(
        "index.html",
        plan=plan,
        header=header,
        share_href=share_href,
        error=error,
        form=form,
        price_options=[plain_number(v) for v in PRICE_PER_M2_OPTIONS],
        rounding_options=ROUNDING_OPTIONS,
        max_months=MAX_MONTHS,
        max_balloon=plain_number(MAX_BALLOON_PERCENT),
    )


@app.post("/export.csv")
def export_csv():
    try:
        plan = build_plan(_form_to_inputs(request.form))
    except ValueError as exc:
        return Response(str(exc), status=400, mimetype="text/plain")
    buffer = io.StringIO()
    csv.writer(buffer).writerows(csv_rows(plan.rows))
    return Response(
        buffer.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=plan_de_pagos.csv"},
    )


if __name__ == "__main__":
    print("Starting payment plan web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
