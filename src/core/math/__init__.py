"""
Core math modules для фонда

Целочисленные fixed-point примитивы и пропорциональные расчёты с гарантией
отсутствия тихих переполнений и делений на ноль.
"""

# Fixed-Point Safeguards
from src.core.math.fixed_point import (
    # Constants
    MAX_DECIMALS,
    MAX_QTY,
    MAX_UINT,
    PRECISION,
    # Checked arithmetic
    apply_ratio,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    fixed_ratio,
    frac_mul,
    mul_div,
    mul_div_up,
    saturating_sub,
    # Prices
    calc_unit_price,
    # Validation
    is_amount,
    validate_amount,
    validate_rate,
)

# Pro-rata accounting
from src.core.math.pro_rata import (
    CycleSettlement,
    ReputationSettlement,
    commission_share,
    compute_cycle_settlement,
    reputation_settlement,
    share_price,
    shares_for_deposit,
    shares_for_withdrawal,
    stake_allocation,
)

__all__ = [
    # Fixed-Point — Constants
    "MAX_DECIMALS",
    "MAX_QTY",
    "MAX_UINT",
    "PRECISION",
    # Fixed-Point — Checked arithmetic
    "apply_ratio",
    "checked_add",
    "checked_div",
    "checked_mul",
    "checked_sub",
    "fixed_ratio",
    "frac_mul",
    "mul_div",
    "mul_div_up",
    "saturating_sub",
    # Fixed-Point — Prices
    "calc_unit_price",
    # Fixed-Point — Validation
    "is_amount",
    "validate_amount",
    "validate_rate",
    # Pro-rata — Types
    "CycleSettlement",
    "ReputationSettlement",
    # Pro-rata — Functions
    "commission_share",
    "compute_cycle_settlement",
    "reputation_settlement",
    "share_price",
    "shares_for_deposit",
    "shares_for_withdrawal",
    "stake_allocation",
]
