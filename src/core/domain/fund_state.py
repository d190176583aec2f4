"""
FundState — модели состояния фонда

Immutable Pydantic модели. Каждый компонент владеет своим состоянием и
заменяет его целиком новым экземпляром при изменении:
- CycleState — фаза, номер цикла, начало фазы (Cycle State Machine)
- PoolState — стоимость пула и комиссия цикла (Fund Accounting Core)
- AccountEntry — инвестиции и последний вывод комиссии (Investment Ledger)
- PoolSnapshot — сводный снапшот для внешних потребителей
  (совместим с JSON Schema contracts/schema/pool_snapshot.json)
"""

from enum import Enum

from pydantic import BaseModel, Field

from .investment import Investment


# =============================================================================
# ENUMS
# =============================================================================


class Phase(str, Enum):
    """
    Фаза цикла.

    Циклический порядок: DEPOSIT_WITHDRAW → MAKE_DECISIONS → REDEEM_COMMISSION
    """

    DEPOSIT_WITHDRAW = "DEPOSIT_WITHDRAW"
    MAKE_DECISIONS = "MAKE_DECISIONS"
    REDEEM_COMMISSION = "REDEEM_COMMISSION"


# =============================================================================
# COMPONENT STATE
# =============================================================================


class CycleState(BaseModel):
    """Состояние машины циклов."""

    cycle_number: int = Field(0, ge=0, description="Номер текущего цикла")
    phase: Phase = Field(Phase.REDEEM_COMMISSION, description="Текущая фаза")
    phase_started_at: int = Field(..., ge=0, description="Начало фазы (unix seconds)")

    model_config = {"frozen": True}


class PoolState(BaseModel):
    """
    Агрегатное состояние пула.

    total_funds — авторитетная стоимость пула в reference-активе. Не равна
    сырому балансу: баланс включает невыведенную комиссию и остатки.
    """

    total_funds: int = Field(0, ge=0, description="Стоимость пула (reference units)")
    total_commission: int = Field(0, ge=0, description="Комиссия завершённого цикла")
    commission_left: int = Field(0, ge=0, description="Ещё не выведенная комиссия")

    model_config = {"frozen": True}


class AccountEntry(BaseModel):
    """Запись аккаунта в Investment Ledger."""

    last_commission_redemption: int = Field(
        0, ge=0, description="Номер цикла последнего вывода комиссии"
    )
    investments: tuple[Investment, ...] = Field(
        default_factory=tuple, description="Инвестиции открытого цикла"
    )

    model_config = {"frozen": True}


# =============================================================================
# SNAPSHOT
# =============================================================================


class PoolSnapshot(BaseModel):
    """
    Снапшот фонда для аудита и внешних инструментов.

    Immutable модель (frozen=True).
    """

    cycle_number: int = Field(..., ge=0)
    phase: Phase
    phase_started_at: int = Field(..., ge=0)
    timestamp: int = Field(..., ge=0, description="Момент снапшота (unix seconds)")

    reference_asset: str = Field(..., min_length=1)
    reference_balance: int = Field(..., ge=0, description="Сырой баланс reference-актива")
    total_funds: int = Field(..., ge=0)
    total_commission: int = Field(..., ge=0)
    commission_left: int = Field(..., ge=0)

    share_supply: int = Field(..., ge=0)
    reputation_supply: int = Field(..., ge=0)
    share_price: int = Field(..., ge=0, description="Стоимость share (PRECISION)")

    commission_rate: int = Field(..., ge=0)
    asset_fee_rate: int = Field(..., ge=0)
    developer_fee_rate: int = Field(..., ge=0)
    exit_fee_rate: int = Field(..., ge=0)

    model_config = {"frozen": True}
