from datetime import date

import pytest

from lot_plan_web.app import app, parse_form_list


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def _form(**overrides):
    form = {
        "area": "500",
        "price": "350000",
        "months": "36",
        "balloon": "25",
        "initial": "20000000",
        "rounding": "0",
        "extras": "12:0",
        "start_month": "2025-01",
        "lot_number": "A-17",
    }
    form.update(overrides)
    return form


def test_parse_form_list():
    assert parse_form_list("12:100, 24:200\n36:300\n\n") == ["12:100", "24:200", "36:300"]
    assert parse_form_list("") == []


def test_index_shows_form(client):
    response = client.get("/")
    body = response.get_data(as_text=True)

    assert response.status_code == 200
    assert "Calculadora de Plan de Pagos" in body
    assert "Calendario de pagos" not in body


def test_index_computes_plan(client):
    response = client.post("/", data=_form())
    body = response.get_data(as_text=True)

    assert response.status_code == 200
    assert "Cuota mensual 36" in body
    assert "$ 3.090.278" in body
    assert "$ 43.749.992" in body
    assert "enero 2028" in body
    assert "https://wa.me/?text=" in body


def test_index_extra_replaces_month(client):
    response = client.post("/", data=_form(extras="12:20000000"))
    body = response.get_data(as_text=True)

    assert "Extraordinaria (mes 12)" in body
    assert "Cuota mensual 12" not in body


def test_index_reports_bad_input(client):
    response = client.post("/", data=_form(start_month="enero"))
    body = response.get_data(as_text=True)

    assert response.status_code == 200
    assert "Invalid year-month string" in body
    assert "Calendario de pagos" not in body


def test_export_csv(client):
    response = client.post("/export.csv", data=_form(rounding="50000"))
    lines = response.get_data(as_text=True).splitlines()

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert "attachment" in response.headers["Content-Disposition"]
    assert lines[0] == "Tipo,Mes,Fecha,Concepto,Valor"
    assert lines[2] == "monthly,1,febrero 2025,Cuota mensual 1,3100000"
    assert lines[-1] == "balloon,37,enero 2028,Última cuota (balloon),43400000"


def test_export_csv_bad_input(client):
    response = client.post("/export.csv", data=_form(extras="doce"))
    assert response.status_code == 400


def test_index_shows_quote_date(client):
    response = client.post("/", data=_form(quote_date="2025-03-14"))
    body = response.get_data(as_text=True)

    assert response.status_code == 200
    assert "Fecha de cotización: 2025-03-14" in body
    assert 'value="2025-03-14"' in body


def test_index_defaults_quote_date_to_today(client):
    body = client.get("/").get_data(as_text=True)
    assert f'name="quote_date" type="date" value="{date.today().isoformat()}"' in body


def test_index_reports_bad_quote_date(client):
    response = client.post("/", data=_form(quote_date="14/03/2025"))
    body = response.get_data(as_text=True)

    assert "Fecha de cotización inválida" in body
    assert "Calendario de pagos" not in body
