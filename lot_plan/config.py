"""Commercial rules and defaults for the payment plan calculator.

Every constant the calculator depends on lives here so that the pricing and
schedule functions can take them as plain arguments with sensible defaults.
"""

from __future__ import annotations

from decimal import Decimal

# Reference list price used only to compute the "full price" and the discount.
REFERENCE_PRICE_PER_M2 = Decimal("365000")

# Offered negotiated prices: 365.000 down to 280.000 in steps of 5.000.
PRICE_PER_M2_OPTIONS = tuple(Decimal(v) for v in range(365000, 279999, -5000))

# Installment rounding multiples offered to the seller (0 = no rounding).
ROUNDING_OPTIONS = (0, 10000, 50000)

MIN_AREA = Decimal("1")
MAX_AREA = Decimal("1000000")
MIN_PRICE_PER_M2 = Decimal("0")
MAX_PRICE_PER_M2 = Decimal("100000000")

MIN_MONTHS = 1
MAX_MONTHS = 240

MAX_BALLOON_PERCENT = Decimal("90")

# Tolerance for the "rows add up to the net price" check.
CONSERVATION_TOLERANCE = Decimal("1")

# Form defaults
DEFAULT_AREA = Decimal("500")
DEFAULT_PRICE_PER_M2 = Decimal("350000")
DEFAULT_MONTHS = 36
DEFAULT_BALLOON_PERCENT = Decimal("25")
DEFAULT_INITIAL_PAYMENT = Decimal("20000000")
DEFAULT_ROUNDING = 0
DEFAULT_EXTRA_MONTH = 12

CURRENCY_CODE = "COP"
CURRENCY_SYMBOL = "$"

MONTH_NAMES_ES = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)

WHATSAPP_BASE_URL = "https://wa.me/"

CSV_HEADER = ("Tipo", "Mes", "Fecha", "Concepto", "Valor")
