"""
Contract Validation Module

Модуль для валидации JSON контрактов фонда (конфигурация, уведомления,
снапшоты).
"""

from .validators import (
    ContractValidator,
    FundConfigValidator,
    FundEventValidator,
    PoolSnapshotValidator,
    SchemaLoader,
    validate_fund_config,
    validate_fund_event,
    validate_pool_snapshot,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "FundConfigValidator",
    "FundEventValidator",
    "PoolSnapshotValidator",
    # Functions
    "validate_fund_config",
    "validate_fund_event",
    "validate_pool_snapshot",
]
