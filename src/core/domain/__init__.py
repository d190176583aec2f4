"""
Domain models and value objects.

Contains fundamental domain entities like Investment, CycleState, PoolState,
FundConfig and the notification events.
"""

from src.core.domain.config import (
    DAY_SECONDS,
    DEFAULT_PHASE_CHANGE_REWARD,
    AssetOverride,
    FeeSchedule,
    FundConfig,
    PhaseLengths,
    load_fund_config,
)
from src.core.domain.events import (
    CommissionPaid,
    Deposit,
    EventKind,
    FundEvent,
    InvestmentCreated,
    InvestmentSold,
    PhaseChanged,
    ProfitLoss,
    TotalCommission,
    Withdraw,
)
from src.core.domain.fund_state import (
    AccountEntry,
    CycleState,
    Phase,
    PoolSnapshot,
    PoolState,
)
from src.core.domain.investment import Investment

__all__ = [
    # Config
    "DAY_SECONDS",
    "DEFAULT_PHASE_CHANGE_REWARD",
    "AssetOverride",
    "FeeSchedule",
    "FundConfig",
    "PhaseLengths",
    "load_fund_config",
    # State
    "AccountEntry",
    "CycleState",
    "Phase",
    "PoolSnapshot",
    "PoolState",
    # Investment
    "Investment",
    # Events
    "EventKind",
    "FundEvent",
    "PhaseChanged",
    "Deposit",
    "Withdraw",
    "InvestmentCreated",
    "InvestmentSold",
    "ProfitLoss",
    "CommissionPaid",
    "TotalCommission",
]
