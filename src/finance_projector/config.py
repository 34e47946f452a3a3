"""Application-wide constants and configuration defaults.

All tuneable defaults live here so there is a single place to adjust them.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Literal

# ── Type aliases ──────────────────────────────────────────────────────────────

PaymentPolicy = Literal["annuity", "differentiated"]
ScheduleKind = Literal["loan", "savings"]
ExtraPaymentMode = Literal["none", "monthly", "lump"]
InsuranceBase = Literal["balance", "asset"]

VALID_POLICIES: frozenset[str] = frozenset({"annuity", "differentiated"})
VALID_EXTRA_PAYMENT_MODES: frozenset[str] = frozenset({"none", "monthly", "lump"})

# ── Calendar ──────────────────────────────────────────────────────────────────

MONTHS_PER_YEAR: int = 12

# Compounding frequencies offered to the user (times per year)
VALID_COMPOUNDING_FREQUENCIES: frozenset[int] = frozenset({1, 4, 12, 365})
DEFAULT_COMPOUNDING_FREQUENCY: int = 12

# ── Amortization loop ─────────────────────────────────────────────────────────

# A balance at or below this amount is considered repaid
BALANCE_EPSILON = Decimal("0.01")

# The loop never runs past RUNAWAY_GUARD_FACTOR × term periods
RUNAWAY_GUARD_FACTOR: int = 2

# Lump extra payments land after the first year unless configured otherwise
DEFAULT_EXTRA_PAYMENT_PERIOD: int = 12

# ── Reverse solver ────────────────────────────────────────────────────────────

SOLVER_TOLERANCE = Decimal("0.001")   # max |accumulated - required| in currency units
SOLVER_MAX_ITERATIONS: int = 200

# ── Metric thresholds ─────────────────────────────────────────────────────────

# Compound advantage as a percentage of total contributions
ADVANTAGE_HIGH = Decimal("50")
ADVANTAGE_MEDIUM = Decimal("25")
ADVANTAGE_LOW = Decimal("10")

# Share of the final balance eaten by inflation, in percent
INFLATION_SEVERITY_HIGH = Decimal("30")
INFLATION_SEVERITY_MEDIUM = Decimal("15")

# ── Logging ───────────────────────────────────────────────────────────────────

LOG_LEVEL_ENV_VAR: str = "FINANCE_PROJECTOR_LOG_LEVEL"
DEFAULT_LOG_LEVEL: str = "WARNING"

# ── Numeric convenience ───────────────────────────────────────────────────────

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")
