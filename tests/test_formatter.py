from decimal import Decimal
from urllib.parse import unquote

import pytest

from lot_plan.data_models import QuoteHeader
from lot_plan.engine import build_plan
from lot_plan.formatter import (
    csv_rows,
    format_currency,
    plain_number,
    print_schedule,
    print_summary,
    share_text,
    whatsapp_link,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("175000000"), "$ 175.000.000"),
        (Decimal("3090277.5"), "$ 3.090.278"),
        (0, "$ 0"),
        (999, "$ 999"),
        (Decimal("-7500000"), "-$ 7.500.000"),
        (float("nan"), "$ 0"),
    ],
)
def test_format_currency(value, expected):
    assert format_currency(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("43749992"), "43749992"),
        (Decimal("1.50"), "1.5"),
        (Decimal("1E+3"), "1000"),
        (Decimal("25.0"), "25"),
    ],
)
def test_plain_number(value, expected):
    assert plain_number(value) == expected


def test_csv_rows(make_inputs, extra):
    plan = build_plan(make_inputs(extraordinary_payments=[extra(12, 20_000_000)]))
    rows = csv_rows(plan.rows)

    assert rows[0] == ["Tipo", "Mes", "Fecha", "Concepto", "Valor"]
    assert rows[1] == ["initial", "0", "enero 2025", "Cuota inicial", "20000000"]
    assert rows[13] == ["extra", "12", "enero 2026", "Extraordinaria (mes 12)", "20000000"]
    assert rows[-1][0] == "balloon"
    assert len(rows) == len(plan.rows) + 1


def test_share_text_and_link(make_inputs):
    plan = build_plan(make_inputs())
    text = share_text(plan, QuoteHeader(lot_number="A-17"))

    assert "Lote: A-17" in text
    assert "Área: 500 m²" in text
    assert "Precio neto: $ 175.000.000" in text
    assert "Meses: 36" in text
    assert "Última cuota (balloon): $ 43.749.992" in text

    link = whatsapp_link(text)
    assert link.startswith("https://wa.me/?text=")
    assert " " not in link and "\n" not in link
    assert unquote(link.split("text=", 1)[1]) == text


def test_print_summary_and_schedule(make_inputs, capsys):
    plan = build_plan(make_inputs())
    print_summary(plan)
    print_schedule(plan.rows)
    out = capsys.readouterr().out

    assert "Precio neto           : $ 175.000.000" in out
    assert "Última cuota (25%)" in out
    assert "36\tenero 2028\tCuota mensual 36\t$ 3.090.278" in out
