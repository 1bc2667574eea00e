import csv
import json
from decimal import Decimal

import click
import pytest
from click.testing import CliRunner

from lot_plan.main import cli, parse_amount, parse_extra_strings


@pytest.fixture
def runner():
    return CliRunner()


@pytest.mark.parametrize(
    "value, expected",
    [("20000000", Decimal("20000000")), ("20m", Decimal("20000000")), ("500k", Decimal("500000")), ("1,500", Decimal("1500"))],
)
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


def test_parse_amount_rejects_garbage():
    with pytest.raises(click.BadParameter):
        parse_amount("lots")


def test_parse_extra_strings():
    extras = parse_extra_strings(("12:20m", "24:5000000"))
    assert [(e.month, e.amount) for e in extras] == [(12, Decimal("20000000")), (24, Decimal("5000000"))]
    with pytest.raises(click.BadParameter):
        parse_extra_strings(("12",))
    with pytest.raises(click.BadParameter):
        parse_extra_strings(("doce:100",))


def test_schedule_prints_calendar_and_checks(runner):
    result = runner.invoke(cli, ["schedule", "--start-month", "2025-01", "--lot", "A-17", "--check"])

    assert result.exit_code == 0, result.output
    assert "Lote" in result.output
    assert "Precio neto           : $ 175.000.000" in result.output
    assert "Cuota mensual 36" in result.output
    assert "conservation    OK" in result.output
    assert "FAIL" not in result.output


def test_schedule_check_reports_failures(runner):
    result = runner.invoke(cli, ["schedule", "--extra", "3:500m", "--check"])

    assert result.exit_code == 1
    assert "conservation    FAIL" in result.output


def test_schedule_exports_csv(runner):
    with runner.isolated_filesystem():
        result = runner.invoke(
            cli,
            ["schedule", "-s", "2025-01", "-r", "50000", "--extra", "12:20m", "--output", "plan.csv"],
        )
        assert result.exit_code == 0, result.output
        with open("plan.csv", newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))

    assert rows[0] == ["Tipo", "Mes", "Fecha", "Concepto", "Valor"]
    assert len(rows) == 39
    monthly = {row[4] for row in rows if row[0] == "monthly"}
    assert len(monthly) == 1
    assert int(monthly.pop()) % 50000 == 0


def test_schedule_exports_json(runner):
    with runner.isolated_filesystem():
        result = runner.invoke(cli, ["schedule", "-s", "2025-01", "--output", "plan.json"])
        assert result.exit_code == 0, result.output
        with open("plan.json", encoding="utf-8") as f:
            data = json.load(f)

    assert data["summary"]["net_price"] == "175000000"
    assert data["summary"]["monthly_installment"] == "3090278"
    assert data["schedule"][0]["date"] == "2025-01"
    assert data["schedule"][-1]["label"] == "Última cuota (balloon)"


def test_schedule_rejects_unknown_suffix(runner):
    with runner.isolated_filesystem():
        result = runner.invoke(cli, ["schedule", "--output", "plan.txt"])
    assert result.exit_code == 2


def test_schedule_rejects_bad_start_month(runner):
    result = runner.invoke(cli, ["schedule", "--start-month", "enero"])
    assert result.exit_code == 2
    assert "Invalid year-month" in result.output


def test_summary_command(runner):
    result = runner.invoke(cli, ["summary", "-a", "1000", "-p", "300000", "-b", "10"])

    assert result.exit_code == 0, result.output
    assert "Precio neto           : $ 300.000.000" in result.output
    assert "Descuento             : - $ 65.000.000" in result.output


def test_prices_command(runner):
    result = runner.invoke(cli, ["prices"])

    lines = result.output.strip().splitlines()
    assert result.exit_code == 0
    assert len(lines) == 18
    assert lines[0].startswith("$ 365.000 / m²")
    assert lines[-1].startswith("$ 280.000 / m²")


def test_share_command(runner):
    result = runner.invoke(cli, ["share", "--lot", "B-3"])

    assert result.exit_code == 0, result.output
    assert "Lote: B-3" in result.output
    assert "https://wa.me/?text=" in result.output
