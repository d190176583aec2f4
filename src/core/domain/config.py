"""
FundConfig — конфигурация фонда

Immutable Pydantic модели:
- FeeSchedule — ставки комиссий как доли PRECISION
- PhaseLengths — минимальная длительность каждой фазы (секунды)
- FundConfig — адреса, активы, ставки, награда за смену фазы

Инварианты ставок (проверяются при каждом изменении):
- commission_rate + developer_fee_rate < PRECISION
- commission_rate + asset_fee_rate + developer_fee_rate < PRECISION
  (иначе стоимость пула после комиссий может стать отрицательной)

JSON-конфиг загружается через load_fund_config(): сначала JSON Schema
(contracts/schema/fund_config.json), затем Pydantic.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Final

from pydantic import BaseModel, Field, model_validator

from src.core.contracts import validate_fund_config
from src.core.math.fixed_point import PRECISION

from .fund_state import Phase

# =============================================================================
# ЗНАЧЕНИЯ ПО УМОЛЧАНИЮ
# =============================================================================

DAY_SECONDS: Final[int] = 24 * 60 * 60

# Награда reputation тому, кто вызвал смену фазы
DEFAULT_PHASE_CHANGE_REWARD: Final[int] = 10**18

DEFAULT_COMMISSION_RATE: Final[int] = PRECISION // 5  # 20% от прибыли
DEFAULT_ASSET_FEE_RATE: Final[int] = 0
DEFAULT_DEVELOPER_FEE_RATE: Final[int] = PRECISION // 100  # 1% от баланса
DEFAULT_EXIT_FEE_RATE: Final[int] = 3 * PRECISION // 1000  # 0.3% от вывода


class AssetOverride(str, Enum):
    """Ручное решение по активу, обходящее автоматический скрининг."""

    ALLOW = "ALLOW"
    DENY = "DENY"


# =============================================================================
# FEES
# =============================================================================


class FeeSchedule(BaseModel):
    """Ставки комиссий (доли PRECISION)."""

    commission_rate: int = Field(
        DEFAULT_COMMISSION_RATE, ge=0, le=PRECISION, description="Комиссия с прибыли"
    )
    asset_fee_rate: int = Field(
        DEFAULT_ASSET_FEE_RATE, ge=0, le=PRECISION, description="Комиссия с активов под управлением"
    )
    developer_fee_rate: int = Field(
        DEFAULT_DEVELOPER_FEE_RATE, ge=0, le=PRECISION, description="Комиссия разработчика"
    )
    exit_fee_rate: int = Field(
        DEFAULT_EXIT_FEE_RATE, ge=0, le=PRECISION, description="Комиссия за вывод"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_fee_bound(self) -> "FeeSchedule":
        if self.commission_rate + self.developer_fee_rate >= PRECISION:
            raise ValueError(
                "commission_rate + developer_fee_rate must stay below 100% "
                f"({self.commission_rate} + {self.developer_fee_rate} >= {PRECISION})"
            )
        if self.commission_rate + self.asset_fee_rate + self.developer_fee_rate >= PRECISION:
            raise ValueError("total fee rates must stay below 100%")
        return self


# =============================================================================
# PHASES
# =============================================================================


class PhaseLengths(BaseModel):
    """Минимальная длительность фаз (секунды)."""

    deposit_withdraw: int = Field(3 * DAY_SECONDS, ge=0)
    make_decisions: int = Field(9 * DAY_SECONDS, ge=0)
    redeem_commission: int = Field(3 * DAY_SECONDS, ge=0)

    model_config = {"frozen": True}

    def for_phase(self, phase: Phase) -> int:
        if phase == Phase.DEPOSIT_WITHDRAW:
            return self.deposit_withdraw
        if phase == Phase.MAKE_DECISIONS:
            return self.make_decisions
        return self.redeem_commission


# =============================================================================
# FUND CONFIG
# =============================================================================


class FundConfig(BaseModel):
    """
    Конфигурация фонда.

    Immutable модель (frozen=True); административные изменения создают
    новый экземпляр (см. src.fund.admin).
    """

    # Адреса
    fund_address: str = Field("fund", min_length=1, description="Адрес самого фонда")
    owner: str = Field(..., min_length=1, description="Администратор")
    developer_account: str = Field(..., min_length=1, description="Получатель developer/exit fee")

    # Активы
    reference_asset: str = Field(..., min_length=1, description="Reference-актив (стейбл)")
    native_asset: str | None = Field(None, min_length=1, description="Нативный актив (value transfer)")

    # Параметры
    fees: FeeSchedule = Field(default_factory=FeeSchedule)
    phase_lengths: PhaseLengths = Field(default_factory=PhaseLengths)
    phase_change_reward: int = Field(DEFAULT_PHASE_CHANGE_REWARD, ge=0)
    min_asset_decimals: int = Field(0, ge=0, le=18, description="decimals должны быть строго больше")
    strict_event_contracts: bool = Field(True, description="Проверять события по JSON Schema")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_addresses(self) -> "FundConfig":
        if self.developer_account == self.fund_address:
            raise ValueError("developer_account cannot be the fund itself")
        if self.native_asset is not None and self.native_asset == self.reference_asset:
            raise ValueError("native_asset cannot be the reference asset")
        return self


def load_fund_config(path: str | Path) -> FundConfig:
    """
    Загрузка конфигурации из JSON-файла.

    Raises:
        jsonschema.ValidationError: Если JSON не соответствует схеме
        pydantic.ValidationError: Если нарушены инварианты модели
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    validate_fund_config(data)
    return FundConfig.model_validate(data)
