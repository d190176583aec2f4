"""
PooledFund — фасад движка фонда

Связывает компоненты и определяет единственные точки входа:
- CycleStateMachine — фазы цикла
- InvestmentLedger — инвестиции менеджеров
- FundAccounting — стоимость пула, shares, комиссии
- ExchangeAdapter — обмен через недоверенную площадку
- PhaseGate / AssetScreeningGate — допуск операций и активов
- FundAdministration — owner-only конфигурация

Каждая изменяющая операция выполняется в TransactionGuard: повторный вход
запрещён, любая ошибка откатывает все компоненты и журналируемых
коллабораторов.
"""

import logging
import time

from src.core.contracts import validate_pool_snapshot
from src.core.domain.config import FundConfig
from src.core.domain.fund_state import Phase, PoolSnapshot
from src.core.domain.investment import Investment
from src.core.errors import Unauthorized
from src.core.math.pro_rata import CycleSettlement, share_price
from src.cycle.state_machine import CycleStateMachine, PhaseTransitionResult
from src.gatekeeper.gates.gate_00_phase import FundOperation, PhaseGate
from src.gatekeeper.gates.gate_01_asset_screening import AssetScreeningGate

from .accounting import CommissionRedemption, DepositResult, FundAccounting, WithdrawResult
from .admin import FundAdministration
from .event_log import EventLog
from .exchange_adapter import ExchangeAdapter
from .guard import TransactionGuard, guarded
from .interfaces import AssetRegistry, Clock, ExchangeVenue, ReputationLedger, ShareLedger
from .ledger import InvestmentClose, InvestmentLedger

logger = logging.getLogger(__name__)


def system_clock() -> int:
    return int(time.time())


class PooledFund:
    """Фонд с циклами, управляемый reputation-ставками менеджеров."""

    def __init__(
        self,
        config: FundConfig,
        registry: AssetRegistry,
        reputation: ReputationLedger,
        shares: ShareLedger,
        venue: ExchangeVenue,
        clock: Clock | None = None,
        events: EventLog | None = None,
    ):
        self.config = config
        self.address = config.fund_address
        self.reference_asset = config.reference_asset
        self._clock = clock or system_clock
        self._registry = registry
        self._reputation = reputation
        self._shares = shares
        self._venue = venue

        self.events = events or EventLog(strict=config.strict_event_contracts)
        self._guard = TransactionGuard()

        self.phase_gate = PhaseGate()
        self.asset_gate = AssetScreeningGate(
            registry, config.reference_asset, config.min_asset_decimals
        )
        self.adapter = ExchangeAdapter(config.fund_address, registry, venue, config.native_asset)
        self.cycle = CycleStateMachine(
            phase_lengths=config.phase_lengths,
            clock=self._clock,
            reputation=reputation,
            events=self.events,
            settle=self._settle_end_of_cycle,
            phase_change_reward=config.phase_change_reward,
        )
        self.ledger = InvestmentLedger(
            reference_asset=config.reference_asset,
            reputation=reputation,
            adapter=self.adapter,
            events=self.events,
            clock=self._clock,
            cycle_number=lambda: self.cycle.cycle_number,
            pool_value=lambda: self.accounting.total_funds,
        )
        self.accounting = FundAccounting(
            fund_address=config.fund_address,
            reference_asset=config.reference_asset,
            fees=config.fees,
            developer_account=config.developer_account,
            registry=registry,
            shares=shares,
            reputation=reputation,
            adapter=self.adapter,
            ledger=self.ledger,
            events=self.events,
            clock=self._clock,
            cycle_number=lambda: self.cycle.cycle_number,
        )
        self.admin = FundAdministration(
            owner=config.owner,
            guard=self._guard,
            accounting=self.accounting,
            cycle=self.cycle,
            asset_gate=self.asset_gate,
        )

        for participant in (self.cycle, self.ledger, self.accounting, self.asset_gate, self.admin, self.events):
            self._guard.register(participant)
        for collaborator in (registry, reputation, shares, venue):
            self._guard.register_if_journaled(collaborator)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self.cycle.phase

    @property
    def cycle_number(self) -> int:
        return self.cycle.cycle_number

    @property
    def total_funds(self) -> int:
        return self.accounting.total_funds

    @property
    def owner(self) -> str:
        return self.admin.owner

    def investments_of(self, account: str) -> tuple[Investment, ...]:
        return self.ledger.investments_of(account)

    def snapshot(self) -> PoolSnapshot:
        """Снапшот состояния (проверяется по JSON Schema pool_snapshot)."""
        cycle_state = self.cycle.state
        pool_state = self.accounting.state
        fees = self.accounting.fees
        share_supply = self._shares.total_supply()

        snapshot = PoolSnapshot(
            cycle_number=cycle_state.cycle_number,
            phase=cycle_state.phase,
            phase_started_at=cycle_state.phase_started_at,
            timestamp=self._clock(),
            reference_asset=self.reference_asset,
            reference_balance=self.accounting.reference_balance(),
            total_funds=pool_state.total_funds,
            total_commission=pool_state.total_commission,
            commission_left=pool_state.commission_left,
            share_supply=share_supply,
            reputation_supply=self._reputation.total_supply(),
            share_price=share_price(pool_state.total_funds, share_supply),
            commission_rate=fees.commission_rate,
            asset_fee_rate=fees.asset_fee_rate,
            developer_fee_rate=fees.developer_fee_rate,
            exit_fee_rate=fees.exit_fee_rate,
        )
        validate_pool_snapshot(snapshot.model_dump(mode="json"))
        return snapshot

    # -------------------------------------------------------------------------
    # Cycle
    # -------------------------------------------------------------------------

    @guarded("advance_phase")
    def advance_phase(self, caller: str) -> PhaseTransitionResult:
        """Переход в следующую фазу (permissionless, с наградой вызвавшему)."""
        return self.cycle.advance(caller)

    def _settle_end_of_cycle(self) -> CycleSettlement:
        return self.accounting.settle_end_of_cycle()

    # -------------------------------------------------------------------------
    # Investments
    # -------------------------------------------------------------------------

    @guarded("open_investment")
    def open_investment(self, account: str, asset: str, stake: int) -> int:
        self.phase_gate.require(self.phase, FundOperation.OPEN_INVESTMENT)
        self.asset_gate.require(asset)
        return self.ledger.open_investment(account, asset, stake)

    @guarded("close_investment")
    def close_investment(self, account: str, investment_id: int) -> InvestmentClose:
        self.phase_gate.require(self.phase, FundOperation.CLOSE_INVESTMENT)
        return self.ledger.close_investment(account, investment_id)

    # -------------------------------------------------------------------------
    # Deposits / Withdrawals
    # -------------------------------------------------------------------------

    @guarded("deposit")
    def deposit(self, account: str, asset: str, amount: int) -> DepositResult:
        self.phase_gate.require(self.phase, FundOperation.DEPOSIT)
        self.asset_gate.require(asset)
        return self.accounting.deposit(account, asset, amount)

    @guarded("withdraw")
    def withdraw(self, account: str, asset: str, amount: int) -> WithdrawResult:
        self.phase_gate.require(self.phase, FundOperation.WITHDRAW)
        self.asset_gate.require(asset)
        return self.accounting.withdraw(account, asset, amount)

    # -------------------------------------------------------------------------
    # Commission / leftovers
    # -------------------------------------------------------------------------

    @guarded("redeem_commission")
    def redeem_commission(self, account: str) -> CommissionRedemption:
        self.phase_gate.require(self.phase, FundOperation.REDEEM_COMMISSION)
        return self.accounting.redeem_commission(account, in_shares=False)

    @guarded("redeem_commission_in_shares")
    def redeem_commission_in_shares(self, account: str) -> CommissionRedemption:
        self.phase_gate.require(self.phase, FundOperation.REDEEM_COMMISSION_IN_SHARES)
        return self.accounting.redeem_commission(account, in_shares=True)

    @guarded("sell_leftover_asset")
    def sell_leftover_asset(self, asset: str) -> int:
        """Без скрининга: уже удерживаемый актив (в т.ч. DENY) всегда можно продать."""
        self.phase_gate.require(self.phase, FundOperation.SELL_LEFTOVER_ASSET)
        return self.accounting.sell_leftover_asset(asset)

    # -------------------------------------------------------------------------
    # Fallback receiver
    # -------------------------------------------------------------------------

    def receive_unsolicited(self, asset: str, sender: str, amount: int) -> None:
        """
        Хук входящего push-перевода (нативный актив).

        Raises:
            Unauthorized: Отправитель — не площадка обмена
        """
        if sender != self.adapter.venue_address:
            logger.warning("rejected unsolicited %d %s from %s", amount, asset, sender)
            raise Unauthorized(f"unsolicited {asset} transfer from {sender}")
