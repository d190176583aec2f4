"""
Tests for Domain Models

Проверяет:
- Investment lifecycle (покупка ровно один раз, продажа ровно один раз)
- FeeSchedule bound (комиссии < 100%)
- PhaseLengths / FundConfig validation
- Immutability (frozen=True)
- load_fund_config (JSON Schema + Pydantic)
"""

import json

import pytest
from jsonschema import ValidationError as SchemaValidationError
from pydantic import ValidationError

from src.core.domain import (
    AccountEntry,
    CycleState,
    FeeSchedule,
    FundConfig,
    Investment,
    Phase,
    PhaseLengths,
    PoolState,
    load_fund_config,
)
from src.core.domain.config import DAY_SECONDS
from src.core.domain.events import Deposit, EventKind, PhaseChanged
from src.core.errors import InvalidInvestment
from src.core.math.fixed_point import PRECISION


# =============================================================================
# INVESTMENT
# =============================================================================


class TestInvestment:
    """Тесты модели Investment."""

    def test_new_investment_is_not_open(self):
        inv = Investment(asset="WETH", cycle_number=1, stake=100)
        assert inv.buy_price == 0
        assert not inv.is_open()

    def test_with_purchase(self):
        inv = Investment(asset="WETH", cycle_number=1, stake=100).with_purchase(250, 2 * PRECISION)
        assert inv.asset_quantity == 250
        assert inv.buy_price == 2 * PRECISION
        assert inv.is_open()

    def test_purchase_only_once(self):
        inv = Investment(asset="WETH", cycle_number=1, stake=100).with_purchase(250, 2 * PRECISION)
        with pytest.raises(InvalidInvestment):
            inv.with_purchase(300, 3 * PRECISION)

    def test_purchase_requires_positive_price(self):
        with pytest.raises(InvalidInvestment):
            Investment(asset="WETH", cycle_number=1, stake=100).with_purchase(250, 0)

    def test_with_sale(self):
        inv = Investment(asset="WETH", cycle_number=1, stake=100).with_purchase(250, 2 * PRECISION)
        sold = inv.with_sale(3 * PRECISION)
        assert sold.is_sold
        assert sold.sell_price == 3 * PRECISION
        assert not sold.is_open()
        # исходный экземпляр не изменился
        assert not inv.is_sold

    def test_sale_only_once(self):
        sold = (
            Investment(asset="WETH", cycle_number=1, stake=100)
            .with_purchase(250, 2 * PRECISION)
            .with_sale(3 * PRECISION)
        )
        with pytest.raises(InvalidInvestment):
            sold.with_sale(4 * PRECISION)

    def test_sale_requires_purchase(self):
        with pytest.raises(InvalidInvestment):
            Investment(asset="WETH", cycle_number=1, stake=100).with_sale(PRECISION)

    def test_zero_stake_rejected(self):
        with pytest.raises(ValidationError):
            Investment(asset="WETH", cycle_number=1, stake=0)

    def test_sold_without_buy_price_rejected(self):
        with pytest.raises(ValidationError):
            Investment(asset="WETH", cycle_number=1, stake=1, is_sold=True)

    def test_frozen(self):
        inv = Investment(asset="WETH", cycle_number=1, stake=100)
        with pytest.raises(ValidationError):
            inv.stake = 5


# =============================================================================
# STATE
# =============================================================================


class TestComponentState:
    """Тесты моделей состояния компонентов."""

    def test_cycle_state_defaults(self):
        state = CycleState(phase_started_at=100)
        assert state.cycle_number == 0
        assert state.phase == Phase.REDEEM_COMMISSION

    def test_pool_state_defaults(self):
        state = PoolState()
        assert (state.total_funds, state.total_commission, state.commission_left) == (0, 0, 0)

    def test_pool_state_rejects_negative(self):
        with pytest.raises(ValidationError):
            PoolState(total_funds=-1)

    def test_account_entry_defaults(self):
        entry = AccountEntry()
        assert entry.last_commission_redemption == 0
        assert entry.investments == ()


# =============================================================================
# CONFIG
# =============================================================================


class TestFeeSchedule:
    """Тесты ставок комиссий."""

    def test_defaults(self):
        fees = FeeSchedule()
        assert fees.commission_rate == PRECISION // 5
        assert fees.developer_fee_rate == PRECISION // 100
        assert fees.exit_fee_rate == 3 * PRECISION // 1000

    def test_commission_plus_developer_must_stay_below_one(self):
        with pytest.raises(ValidationError):
            FeeSchedule(commission_rate=PRECISION - 10, developer_fee_rate=10)

    def test_total_fee_bound(self):
        with pytest.raises(ValidationError):
            FeeSchedule(
                commission_rate=PRECISION // 2,
                asset_fee_rate=PRECISION // 2,
                developer_fee_rate=0,
            )

    def test_rate_above_one_rejected(self):
        with pytest.raises(ValidationError):
            FeeSchedule(exit_fee_rate=PRECISION + 1)


class TestFundConfig:
    """Тесты конфигурации фонда."""

    def test_minimal(self):
        config = FundConfig(owner="owner", developer_account="dev", reference_asset="DAI")
        assert config.fund_address == "fund"
        assert config.phase_lengths.make_decisions == 9 * DAY_SECONDS
        assert config.phase_change_reward == PRECISION

    def test_phase_lengths_for_phase(self):
        lengths = PhaseLengths(deposit_withdraw=1, make_decisions=2, redeem_commission=3)
        assert lengths.for_phase(Phase.DEPOSIT_WITHDRAW) == 1
        assert lengths.for_phase(Phase.MAKE_DECISIONS) == 2
        assert lengths.for_phase(Phase.REDEEM_COMMISSION) == 3

    def test_developer_cannot_be_fund(self):
        with pytest.raises(ValidationError):
            FundConfig(owner="owner", developer_account="fund", reference_asset="DAI")

    def test_native_cannot_be_reference(self):
        with pytest.raises(ValidationError):
            FundConfig(owner="o", developer_account="d", reference_asset="DAI", native_asset="DAI")

    def test_load_fund_config(self, tmp_path):
        path = tmp_path / "fund.json"
        path.write_text(
            json.dumps(
                {
                    "owner": "owner",
                    "developer_account": "dev",
                    "reference_asset": "DAI",
                    "native_asset": "ETH",
                    "fees": {"commission_rate": PRECISION // 10},
                    "phase_lengths": {"make_decisions": 3600},
                }
            ),
            encoding="utf-8",
        )
        config = load_fund_config(path)
        assert config.fees.commission_rate == PRECISION // 10
        assert config.fees.developer_fee_rate == PRECISION // 100
        assert config.phase_lengths.make_decisions == 3600
        assert config.native_asset == "ETH"

    def test_load_fund_config_rejects_unknown_keys(self, tmp_path):
        path = tmp_path / "fund.json"
        path.write_text(
            json.dumps(
                {"owner": "o", "developer_account": "d", "reference_asset": "DAI", "leverage": 3}
            ),
            encoding="utf-8",
        )
        with pytest.raises(SchemaValidationError):
            load_fund_config(path)


# =============================================================================
# EVENTS
# =============================================================================


class TestEvents:
    """Тесты моделей уведомлений."""

    def test_discriminator_is_fixed(self):
        event = PhaseChanged(
            cycle_number=1, timestamp=10, phase=Phase.DEPOSIT_WITHDRAW, caller="keeper", reward=0
        )
        assert event.event == EventKind.PHASE_CHANGED

    def test_json_dump(self):
        event = Deposit(
            cycle_number=1,
            timestamp=10,
            account="alice",
            asset="DAI",
            asset_amount=5,
            reference_amount=5,
            shares_minted=5,
        )
        data = event.model_dump(mode="json")
        assert data["event"] == "DEPOSIT"
        assert data["shares_minted"] == 5
