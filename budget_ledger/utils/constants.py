"""
Application-wide constants for the budget ledger.

Defines domain enumerations, business rule thresholds, and
lookup lists used across routers, services, and models.
"""

from decimal import Decimal
from typing import Final

# ---------------------------------------------------------------------------
# Release types
# ---------------------------------------------------------------------------

RELEASE_REGULAR: Final[str] = "regular"
RELEASE_SUPPLEMENTARY: Final[str] = "supplementary"
RELEASE_REAPPROPRIATION: Final[str] = "reappropriation"
RELEASE_SURRENDER: Final[str] = "surrender"

RELEASE_TYPES: Final[list[str]] = [
    RELEASE_REGULAR,
    RELEASE_SUPPLEMENTARY,
    RELEASE_REAPPROPRIATION,
    RELEASE_SURRENDER,
]

# ---------------------------------------------------------------------------
# Adjustment types (each spawns releases of the same name)
# ---------------------------------------------------------------------------

ADJUSTMENT_TYPES: Final[list[str]] = [
    RELEASE_SUPPLEMENTARY,
    RELEASE_REAPPROPRIATION,
    RELEASE_SURRENDER,
]

# Adjustments that withdraw funds and are therefore gated on availability
WITHDRAWING_ADJUSTMENTS: Final[frozenset[str]] = frozenset(
    {RELEASE_REAPPROPRIATION, RELEASE_SURRENDER}
)

# ---------------------------------------------------------------------------
# Release strategies
# ---------------------------------------------------------------------------

STRATEGY_EQUAL: Final[str] = "quarterly-equal"
STRATEGY_CUSTOM: Final[str] = "quarterly-custom"
STRATEGY_FULL: Final[str] = "full"

RELEASE_STRATEGIES: Final[list[str]] = [
    STRATEGY_EQUAL,
    STRATEGY_CUSTOM,
    STRATEGY_FULL,
]

STRATEGY_ALIASES: Final[dict[str, str]] = {
    "equal": STRATEGY_EQUAL,
    "custom": STRATEGY_CUSTOM,
}

# ---------------------------------------------------------------------------
# Quarters
# ---------------------------------------------------------------------------

QUARTERS: Final[tuple[int, ...]] = (1, 2, 3, 4)
NON_QUARTERLY: Final[int] = 0

QUARTER_LABELS: Final[dict[int, str]] = {
    1: "1st Quarter",
    2: "2nd Quarter",
    3: "3rd Quarter",
    4: "4th Quarter",
}

# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------

CENT: Final[Decimal] = Decimal("0.01")
ZERO: Final[Decimal] = Decimal("0.00")

# ---------------------------------------------------------------------------
# Financial year label, e.g. "2024-25"
# ---------------------------------------------------------------------------

FINANCIAL_YEAR_PATTERN: Final[str] = r"^\d{4}-\d{2}$"

# ---------------------------------------------------------------------------
# Budget entry periods
# ---------------------------------------------------------------------------

BUDGET_ENTRY_PERIODS: Final[list[str]] = ["yearly", "quarterly"]
