"""
FundAccounting — стоимость пула, shares и комиссии

Владеет PoolState и действующим FeeSchedule:
- deposit / withdraw: конверсия reference ↔ shares по стоимости пула
- settle_end_of_cycle: прибыль, комиссия менеджеров, developer fee
- redeem_commission: доля комиссии пропорционально reputation
- sell_leftover_asset: конверсия остатков в reference-актив

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Сумма shares всех держателей == share supply (единственный эмитент — фонд)
2. total_funds меняется только здесь
3. Каждый аккаунт выводит комиссию цикла не более одного раза
"""

import logging
from dataclasses import dataclass
from typing import Callable

from src.core.domain.config import FeeSchedule
from src.core.domain.events import CommissionPaid, Deposit, ProfitLoss, TotalCommission, Withdraw
from src.core.domain.fund_state import PoolState
from src.core.errors import AlreadyRedeemed, InsufficientFunds, InvalidAsset, PreconditionViolation, ZeroFill
from src.core.math.fixed_point import checked_add, checked_sub, frac_mul, validate_amount
from src.core.math.pro_rata import (
    CycleSettlement,
    commission_share,
    compute_cycle_settlement,
    shares_for_deposit,
    shares_for_withdrawal,
)

from .event_log import EventLog
from .exchange_adapter import ExchangeAdapter
from .interfaces import AssetRegistry, Clock, ReputationLedger, ShareLedger
from .ledger import InvestmentLedger

logger = logging.getLogger(__name__)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class DepositResult:
    asset_amount: int  # наблюдаемо сконвертированное количество актива
    refunded: int  # возвращённый неисполненный остаток актива
    reference_amount: int
    shares_minted: int


@dataclass(frozen=True)
class WithdrawResult:
    reference_amount: int  # фактически ушло из пула
    residue_recredited: int  # неисполненный остаток reference, возвращён shares
    shares_burned: int
    shares_recredited: int
    asset_amount: int  # выплачено аккаунту
    exit_fee: int


@dataclass(frozen=True)
class CommissionRedemption:
    commission: int
    in_shares: bool
    shares_minted: int


# =============================================================================
# ACCOUNTING
# =============================================================================


class FundAccounting:
    """Учёт стоимости пула и shares."""

    def __init__(
        self,
        fund_address: str,
        reference_asset: str,
        fees: FeeSchedule,
        developer_account: str,
        registry: AssetRegistry,
        shares: ShareLedger,
        reputation: ReputationLedger,
        adapter: ExchangeAdapter,
        ledger: InvestmentLedger,
        events: EventLog,
        clock: Clock,
        cycle_number: Callable[[], int],
    ):
        self.fund_address = fund_address
        self.reference_asset = reference_asset
        self.fees = fees
        self.developer_account = developer_account
        self._registry = registry
        self._shares = shares
        self._reputation = reputation
        self._adapter = adapter
        self._ledger = ledger
        self._events = events
        self._clock = clock
        self._cycle_number = cycle_number
        self._state = PoolState()

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def total_funds(self) -> int:
        return self._state.total_funds

    def reference_balance(self) -> int:
        return self._registry.get(self.reference_asset).balance_of(self.fund_address)

    def asset_balance(self, asset: str) -> int:
        return self._registry.get(asset).balance_of(self.fund_address)

    # -------------------------------------------------------------------------
    # Settlement
    # -------------------------------------------------------------------------

    def settle_end_of_cycle(self) -> CycleSettlement:
        """
        Итоги цикла (вызывается машиной фаз при выходе из MAKE_DECISIONS).

        Невыведенная комиссия прошлого цикла уже входит в баланс и
        перераспределяется через прибыль.
        """
        cycle_number = self._cycle_number()
        now = self._clock()

        settlement = compute_cycle_settlement(
            balance=self.reference_balance(),
            pool_value=self._state.total_funds,
            commission_rate=self.fees.commission_rate,
            asset_fee_rate=self.fees.asset_fee_rate,
            developer_fee_rate=self.fees.developer_fee_rate,
        )

        self._events.emit(
            ProfitLoss(
                cycle_number=cycle_number,
                timestamp=now,
                before_pool_value=settlement.previous_pool_value,
                after_pool_value=settlement.new_pool_value,
            )
        )

        self._state = PoolState(
            total_funds=settlement.new_pool_value,
            total_commission=settlement.commission,
            commission_left=settlement.commission,
        )

        self._events.emit(
            TotalCommission(cycle_number=cycle_number, timestamp=now, commission=settlement.commission)
        )

        if settlement.developer_fee > 0:
            self._registry.get(self.reference_asset).transfer(
                self.fund_address, self.developer_account, settlement.developer_fee
            )

        logger.info(
            "cycle %d settled: balance=%d pool %d -> %d profit=%d commission=%d developer_fee=%d",
            cycle_number,
            settlement.balance,
            settlement.previous_pool_value,
            settlement.new_pool_value,
            settlement.profit,
            settlement.commission,
            settlement.developer_fee,
        )
        return settlement

    # -------------------------------------------------------------------------
    # Deposit / Withdraw
    # -------------------------------------------------------------------------

    def deposit(self, account: str, asset: str, amount: int) -> DepositResult:
        """
        Депозит: актив забирается у аккаунта, конвертируется в reference,
        аккаунт получает shares.

        Raises:
            PreconditionViolation: Нулевая сумма
            ZeroFill: Фактически ничего не поступило или не сконвертировано
        """
        validate_amount(amount, "amount")
        if amount == 0:
            raise PreconditionViolation("deposit amount must be positive")

        token = self._registry.get(asset)
        before = token.balance_of(self.fund_address)
        token.transfer_from(self.fund_address, account, self.fund_address, amount)
        received = checked_sub(token.balance_of(self.fund_address), before)
        if received == 0:
            raise ZeroFill(f"deposit of {amount} {asset} delivered nothing")

        refunded = 0
        if asset == self.reference_asset:
            converted = received
            reference_amount = received
        else:
            trade = self._adapter.trade(asset, received, self.reference_asset)
            converted = trade.src_spent
            reference_amount = trade.dest_received
            refunded = trade.src_unspent
            if refunded > 0:
                token.transfer(self.fund_address, account, refunded)

        shares_minted = shares_for_deposit(
            reference_amount, self._shares.total_supply(), self._state.total_funds
        )
        self._shares.mint(account, shares_minted)
        self._state = self._state.model_copy(
            update={"total_funds": checked_add(self._state.total_funds, reference_amount)}
        )

        self._events.emit(
            Deposit(
                cycle_number=self._cycle_number(),
                timestamp=self._clock(),
                account=account,
                asset=asset,
                asset_amount=converted,
                reference_amount=reference_amount,
                shares_minted=shares_minted,
            )
        )
        logger.debug(
            "deposit %s %d %s -> %d ref, %d shares", account, converted, asset, reference_amount, shares_minted
        )
        return DepositResult(
            asset_amount=converted,
            refunded=refunded,
            reference_amount=reference_amount,
            shares_minted=shares_minted,
        )

    def withdraw(self, account: str, asset: str, amount: int) -> WithdrawResult:
        """
        Вывод amount reference-единиц стоимости пула в актив asset.

        Raises:
            PreconditionViolation: Нулевая сумма
            InsufficientFunds: amount > total_funds или недостаточно shares
        """
        validate_amount(amount, "amount")
        if amount == 0:
            raise PreconditionViolation("withdraw amount must be positive")
        if amount > self._state.total_funds:
            raise InsufficientFunds(
                f"withdraw {amount} exceeds pool value {self._state.total_funds}"
            )

        share_supply = self._shares.total_supply()
        shares_burned = shares_for_withdrawal(amount, share_supply, self._state.total_funds)
        if shares_burned == 0:
            raise PreconditionViolation("pool value has no shares outstanding")
        if shares_burned > self._shares.balance_of(account):
            raise InsufficientFunds(
                f"{account} holds {self._shares.balance_of(account)} shares, needs {shares_burned}"
            )

        self._shares.owner_burn(account, shares_burned)
        self._state = self._state.model_copy(
            update={"total_funds": checked_sub(self._state.total_funds, amount)}
        )

        residue = 0
        shares_recredited = 0
        if asset == self.reference_asset:
            output = amount
        else:
            trade = self._adapter.trade(self.reference_asset, amount, asset)
            output = trade.dest_received
            residue = trade.src_unspent
            if residue > 0:
                shares_recredited = shares_for_deposit(
                    residue, self._shares.total_supply(), self._state.total_funds
                )
                self._shares.mint(account, shares_recredited)
                self._state = self._state.model_copy(
                    update={"total_funds": checked_add(self._state.total_funds, residue)}
                )

        token = self._registry.get(asset)
        exit_fee = frac_mul(output, self.fees.exit_fee_rate)
        if exit_fee > 0:
            token.transfer(self.fund_address, self.developer_account, exit_fee)
        payout = output - exit_fee
        if payout > 0:
            token.transfer(self.fund_address, account, payout)

        self._events.emit(
            Withdraw(
                cycle_number=self._cycle_number(),
                timestamp=self._clock(),
                account=account,
                asset=asset,
                asset_amount=payout,
                exit_fee=exit_fee,
                reference_amount=amount - residue,
                shares_burned=shares_burned,
            )
        )
        logger.debug(
            "withdraw %s %d ref -> %d %s (fee=%d, residue=%d)", account, amount, payout, asset, exit_fee, residue
        )
        return WithdrawResult(
            reference_amount=amount - residue,
            residue_recredited=residue,
            shares_burned=shares_burned,
            shares_recredited=shares_recredited,
            asset_amount=payout,
            exit_fee=exit_fee,
        )

    # -------------------------------------------------------------------------
    # Commission
    # -------------------------------------------------------------------------

    def redeem_commission(self, account: str, in_shares: bool = False) -> CommissionRedemption:
        """
        Вывод доли комиссии цикла.

        Raises:
            AlreadyRedeemed: Аккаунт уже выводил комиссию в этом цикле
            ArithmeticOverflow: Доля превышает остаток комиссии
        """
        cycle_number = self._cycle_number()
        if self._ledger.last_redemption(account) >= cycle_number:
            raise AlreadyRedeemed(f"{account} already redeemed commission for cycle {cycle_number}")

        commission = commission_share(
            self._state.total_commission,
            self._reputation.balance_of(account),
            self._reputation.total_supply(),
        )
        self._state = self._state.model_copy(
            update={"commission_left": checked_sub(self._state.commission_left, commission)}
        )
        self._ledger.mark_redeemed(account, cycle_number)

        shares_minted = 0
        if in_shares:
            shares_minted = shares_for_deposit(
                commission, self._shares.total_supply(), self._state.total_funds
            )
            if shares_minted > 0:
                self._shares.mint(account, shares_minted)
            self._state = self._state.model_copy(
                update={"total_funds": checked_add(self._state.total_funds, commission)}
            )
        elif commission > 0:
            self._registry.get(self.reference_asset).transfer(self.fund_address, account, commission)

        self._events.emit(
            CommissionPaid(
                cycle_number=cycle_number,
                timestamp=self._clock(),
                account=account,
                commission=commission,
                in_shares=in_shares,
                shares_minted=shares_minted,
            )
        )
        logger.info(
            "commission cycle=%d %s: %d (in_shares=%s)", cycle_number, account, commission, in_shares
        )
        return CommissionRedemption(commission=commission, in_shares=in_shares, shares_minted=shares_minted)

    # -------------------------------------------------------------------------
    # Leftovers
    # -------------------------------------------------------------------------

    def sell_leftover_asset(self, asset: str) -> int:
        """
        Конверсия всего остатка актива в reference; выручка увеличивает total_funds.

        Raises:
            InvalidAsset: asset — reference-актив
            InsufficientFunds: Остатка нет
        """
        if asset == self.reference_asset:
            raise InvalidAsset("the reference asset is not a leftover")

        balance = self.asset_balance(asset)
        if balance == 0:
            raise InsufficientFunds(f"no {asset} left to sell")

        trade = self._adapter.trade(asset, balance, self.reference_asset)
        self._state = self._state.model_copy(
            update={"total_funds": checked_add(self._state.total_funds, trade.dest_received)}
        )
        logger.info("sold leftover %d %s for %d", trade.src_spent, asset, trade.dest_received)
        return trade.dest_received

    # -------------------------------------------------------------------------
    # Journaled
    # -------------------------------------------------------------------------

    def snapshot(self) -> tuple[PoolState, FeeSchedule, str]:
        return self._state, self.fees, self.developer_account

    def restore(self, snapshot: tuple[PoolState, FeeSchedule, str]) -> None:
        self._state, self.fees, self.developer_account = snapshot
