"""
Fund — движок фонда

PooledFund — фасад; компоненты доступны для прямого использования
и тестов.
"""

from .accounting import CommissionRedemption, DepositResult, FundAccounting, WithdrawResult
from .admin import FundAdministration
from .engine import PooledFund
from .event_log import EventLog
from .exchange_adapter import ExchangeAdapter, TradeResult
from .guard import TransactionGuard, guarded
from .ledger import InvestmentClose, InvestmentLedger

__all__ = [
    # Facade
    "PooledFund",
    # Components
    "FundAccounting",
    "FundAdministration",
    "InvestmentLedger",
    "ExchangeAdapter",
    "EventLog",
    "TransactionGuard",
    "guarded",
    # Results
    "DepositResult",
    "WithdrawResult",
    "CommissionRedemption",
    "InvestmentClose",
    "TradeResult",
]
