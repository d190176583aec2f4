"""
InvestmentLedger — инвестиции менеджеров

Менеджер ставит reputation (stake) на цену актива против reference-актива:
- open_investment: stake удерживается фондом, под него выделяется доля
  пула stake / reputation_supply, покупается актив
- close_investment: актив продаётся, stake возвращается пропорционально
  sell_price / buy_price (reward эмитируется, penalty сжигается)

Владеет записями AccountEntry; фаза и скрининг актива проверяются фасадом
(PooledFund) до вызова.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from src.core.domain.events import InvestmentCreated, InvestmentSold
from src.core.domain.fund_state import AccountEntry
from src.core.domain.investment import Investment
from src.core.errors import InvalidAsset, InvalidInvestment, ZeroFill
from src.core.math.fixed_point import validate_amount
from src.core.math.pro_rata import ReputationSettlement, reputation_settlement, stake_allocation

from .event_log import EventLog
from .exchange_adapter import ExchangeAdapter, TradeResult
from .interfaces import Clock, ReputationLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvestmentClose:
    """Итог закрытия инвестиции."""

    investment: Investment
    trade: TradeResult
    settlement: ReputationSettlement


class InvestmentLedger:
    """Реестр инвестиций по аккаунтам."""

    def __init__(
        self,
        reference_asset: str,
        reputation: ReputationLedger,
        adapter: ExchangeAdapter,
        events: EventLog,
        clock: Clock,
        cycle_number: Callable[[], int],
        pool_value: Callable[[], int],
    ):
        self.reference_asset = reference_asset
        self._reputation = reputation
        self._adapter = adapter
        self._events = events
        self._clock = clock
        self._cycle_number = cycle_number
        self._pool_value = pool_value
        self._accounts: dict[str, AccountEntry] = {}

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def entry(self, account: str) -> AccountEntry:
        return self._accounts.get(account) or AccountEntry()

    def investments_of(self, account: str) -> tuple[Investment, ...]:
        return self.entry(account).investments

    def investment(self, account: str, investment_id: int) -> Investment:
        """
        Raises:
            InvalidInvestment: Нет инвестиции с таким id
        """
        investments = self.investments_of(account)
        if not 0 <= investment_id < len(investments):
            raise InvalidInvestment(f"{account} has no investment #{investment_id}")
        return investments[investment_id]

    def last_redemption(self, account: str) -> int:
        return self.entry(account).last_commission_redemption

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def open_investment(self, account: str, asset: str, stake: int) -> int:
        """
        Открытие инвестиции.

        Returns:
            investment_id (индекс в списке аккаунта)

        Raises:
            InvalidAsset: Инвестиция в reference-актив
            InvalidInvestment: Нулевой stake
            InsufficientFunds: Недостаточно reputation
            ZeroFill: Выделенная сумма округлилась до 0 или обмен не исполнен
        """
        validate_amount(stake, "stake")
        if stake == 0:
            raise InvalidInvestment("stake must be positive")
        if asset == self.reference_asset:
            raise InvalidAsset("cannot invest in the reference asset")

        cycle_number = self._cycle_number()

        # Доля считается до удержания: supply не меняется при переводе фонду
        allocation = stake_allocation(stake, self._reputation.total_supply(), self._pool_value())
        self._reputation.owner_collect_from(account, stake)
        if allocation == 0:
            raise ZeroFill(f"stake {stake} commits zero {self.reference_asset}")

        trade = self._adapter.trade(self.reference_asset, allocation, asset)

        investment = Investment(asset=asset, cycle_number=cycle_number, stake=stake).with_purchase(
            asset_quantity=trade.dest_received, buy_price=trade.dest_price_in_src
        )

        entry = self.entry(account)
        investment_id = len(entry.investments)
        self._accounts[account] = entry.model_copy(
            update={"investments": entry.investments + (investment,)}
        )

        self._events.emit(
            InvestmentCreated(
                cycle_number=cycle_number,
                timestamp=self._clock(),
                account=account,
                investment_id=investment_id,
                asset=asset,
                stake=stake,
                buy_price=investment.buy_price,
                cost=trade.src_spent,
            )
        )
        return investment_id

    def close_investment(self, account: str, investment_id: int) -> InvestmentClose:
        """
        Закрытие инвестиции: продажа всего купленного количества.

        Raises:
            InvalidInvestment: Нет такой инвестиции, она из другого цикла,
                не куплена или уже продана
            ZeroFill: Обмен не исполнен
        """
        cycle_number = self._cycle_number()
        investment = self.investment(account, investment_id)

        if investment.cycle_number != cycle_number:
            raise InvalidInvestment(
                f"investment #{investment_id} belongs to cycle {investment.cycle_number}"
            )
        if not investment.is_open():
            raise InvalidInvestment(f"investment #{investment_id} is not open")

        trade = self._adapter.trade(investment.asset, investment.asset_quantity, self.reference_asset)
        closed = investment.with_sale(sell_price=trade.src_price_in_dest)

        settlement = reputation_settlement(closed.stake, closed.buy_price, closed.sell_price)
        if settlement.minted > 0:
            self._reputation.transfer(self._adapter.holder, account, settlement.returned)
            self._reputation.mint(account, settlement.minted)
        else:
            if settlement.returned > 0:
                self._reputation.transfer(self._adapter.holder, account, settlement.returned)
            if settlement.burned > 0:
                self._reputation.burn_owner_tokens(settlement.burned)

        entry = self.entry(account)
        investments = list(entry.investments)
        investments[investment_id] = closed
        self._accounts[account] = entry.model_copy(update={"investments": tuple(investments)})

        self._events.emit(
            InvestmentSold(
                cycle_number=cycle_number,
                timestamp=self._clock(),
                account=account,
                investment_id=investment_id,
                asset=closed.asset,
                returned_reputation=settlement.total_returned,
                sell_price=closed.sell_price,
                proceeds=trade.dest_received,
            )
        )
        logger.debug(
            "closed %s #%d ratio=%d returned=%d minted=%d burned=%d",
            account,
            investment_id,
            settlement.ratio,
            settlement.returned,
            settlement.minted,
            settlement.burned,
        )
        return InvestmentClose(investment=closed, trade=trade, settlement=settlement)

    def mark_redeemed(self, account: str, cycle_number: int) -> None:
        """Фиксация вывода комиссии; список инвестиций очищается."""
        self._accounts[account] = AccountEntry(last_commission_redemption=cycle_number)

    # -------------------------------------------------------------------------
    # Journaled
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict[str, AccountEntry]:
        return dict(self._accounts)

    def restore(self, snapshot: dict[str, AccountEntry]) -> None:
        self._accounts = dict(snapshot)
