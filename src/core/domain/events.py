"""
Events — уведомления фонда

Immutable Pydantic модели для аудита и внешних наблюдателей; внутри движка
не потребляются. Сериализованная форма (model_dump(mode="json"))
соответствует contracts/schema/fund_event.json.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from .fund_state import Phase


class EventKind(str, Enum):
    """Тип уведомления."""

    PHASE_CHANGED = "PHASE_CHANGED"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    INVESTMENT_CREATED = "INVESTMENT_CREATED"
    INVESTMENT_SOLD = "INVESTMENT_SOLD"
    PROFIT_LOSS = "PROFIT_LOSS"
    COMMISSION_PAID = "COMMISSION_PAID"
    TOTAL_COMMISSION = "TOTAL_COMMISSION"


class FundEvent(BaseModel):
    """Общие поля всех уведомлений."""

    event: EventKind
    cycle_number: int = Field(..., ge=0)
    timestamp: int = Field(..., ge=0, description="unix seconds")

    model_config = {"frozen": True}


class PhaseChanged(FundEvent):
    event: Literal[EventKind.PHASE_CHANGED] = EventKind.PHASE_CHANGED
    phase: Phase
    caller: str = Field(..., min_length=1)
    reward: int = Field(..., ge=0)


class Deposit(FundEvent):
    event: Literal[EventKind.DEPOSIT] = EventKind.DEPOSIT
    account: str = Field(..., min_length=1)
    asset: str = Field(..., min_length=1)
    asset_amount: int = Field(..., ge=0, description="Наблюдаемо сконвертированное количество")
    reference_amount: int = Field(..., ge=0)
    shares_minted: int = Field(..., ge=0)


class Withdraw(FundEvent):
    event: Literal[EventKind.WITHDRAW] = EventKind.WITHDRAW
    account: str = Field(..., min_length=1)
    asset: str = Field(..., min_length=1)
    asset_amount: int = Field(..., ge=0, description="Выплачено аккаунту после exit fee")
    exit_fee: int = Field(..., ge=0)
    reference_amount: int = Field(..., ge=0, description="Фактически выведено из пула")
    shares_burned: int = Field(..., ge=0)


class InvestmentCreated(FundEvent):
    event: Literal[EventKind.INVESTMENT_CREATED] = EventKind.INVESTMENT_CREATED
    account: str = Field(..., min_length=1)
    investment_id: int = Field(..., ge=0)
    asset: str = Field(..., min_length=1)
    stake: int = Field(..., gt=0)
    buy_price: int = Field(..., gt=0)
    cost: int = Field(..., gt=0, description="Потрачено reference-актива")


class InvestmentSold(FundEvent):
    event: Literal[EventKind.INVESTMENT_SOLD] = EventKind.INVESTMENT_SOLD
    account: str = Field(..., min_length=1)
    investment_id: int = Field(..., ge=0)
    asset: str = Field(..., min_length=1)
    returned_reputation: int = Field(..., ge=0)
    sell_price: int = Field(..., gt=0)
    proceeds: int = Field(..., gt=0, description="Получено reference-актива")


class ProfitLoss(FundEvent):
    event: Literal[EventKind.PROFIT_LOSS] = EventKind.PROFIT_LOSS
    before_pool_value: int = Field(..., ge=0)
    after_pool_value: int = Field(..., ge=0)


class CommissionPaid(FundEvent):
    event: Literal[EventKind.COMMISSION_PAID] = EventKind.COMMISSION_PAID
    account: str = Field(..., min_length=1)
    commission: int = Field(..., ge=0)
    in_shares: bool
    shares_minted: int = Field(0, ge=0)


class TotalCommission(FundEvent):
    event: Literal[EventKind.TOTAL_COMMISSION] = EventKind.TOTAL_COMMISSION
    commission: int = Field(..., ge=0)
