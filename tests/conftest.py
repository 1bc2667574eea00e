from datetime import date
from decimal import Decimal

import pytest

from lot_plan.data_models import ExtraPayment, PlanInputs


@pytest.fixture
def make_inputs():
    """Build plan inputs around the default quote: 500 m² at 350.000, 36 months."""

    def _make(**overrides):
        values = dict(
            area=Decimal("500"),
            price_per_unit_area=Decimal("350000"),
            financing_months=36,
            balloon_percent=Decimal("25"),
            initial_payment=Decimal("20000000"),
            rounding_granularity=0,
            extraordinary_payments=[],
            plan_start_month=date(2025, 1, 1),
        )
        values.update(overrides)
        return PlanInputs(**values)

    return _make


@pytest.fixture
def extra():
    def _extra(month, amount):
        return ExtraPayment(month=month, amount=Decimal(amount))

    return _extra
