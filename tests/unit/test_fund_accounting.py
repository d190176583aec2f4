"""
Тесты для FundAccounting (через PooledFund)

Проверяет:
1. Депозиты: 1:1 для пустого пула, пропорция, конверсия, остатки, fee-on-transfer
2. Выводы: сжигание shares, exit fee, возврат неисполненного остатка
3. Итоги цикла: profit, commission, developer fee
4. Вывод комиссии: доля по reputation, однократность, в shares
5. Продажа остатков активов
6. Нативный актив и отклонение непрошеных переводов
"""

import pytest

from src.core.domain.config import AssetOverride
from src.core.domain.events import EventKind
from src.core.domain.fund_state import Phase
from src.core.errors import (
    AlreadyRedeemed,
    InsufficientFunds,
    InvalidAsset,
    PreconditionViolation,
    Unauthorized,
    WrongPhase,
)
from src.core.math.fixed_point import PRECISION
from src.core.math.pro_rata import share_price, shares_for_deposit
from src.simulation import InMemoryToken, build_simulated_fund

E18 = 10**18


@pytest.fixture
def sim():
    """Цикл 1, DEPOSIT_WITHDRAW, без наград за переход фазы."""
    sim = build_simulated_fund(phase_change_reward=0)
    sim.advance()
    return sim


def deposit(sim, account, asset, amount):
    sim.fund_account(account, asset, amount)
    return sim.fund.deposit(account, asset, amount)


# =============================================================================
# DEPOSIT
# =============================================================================


class TestDeposit:
    """Тесты депозитов."""

    def test_first_deposit_is_one_to_one(self, sim):
        result = deposit(sim, "investor", "DAI", 1000 * E18)
        assert result.shares_minted == 1000 * E18
        assert sim.fund.total_funds == 1000 * E18
        assert sim.shares.balance_of("investor") == 1000 * E18

    def test_deposit_into_existing_pool(self, sim):
        """Пул 1000, депозит 500 → 500 shares, пул 1500."""
        deposit(sim, "investor", "DAI", 1000 * E18)
        result = deposit(sim, "other", "DAI", 500 * E18)
        assert result.shares_minted == 500 * E18
        assert sim.fund.total_funds == 1500 * E18

    def test_deposit_event(self, sim):
        deposit(sim, "investor", "DAI", 1000 * E18)
        event = sim.fund.events.last(EventKind.DEPOSIT)
        assert event.account == "investor"
        assert event.reference_amount == 1000 * E18
        assert event.shares_minted == 1000 * E18

    def test_deposit_other_asset_is_converted(self, sim):
        result = deposit(sim, "investor", "WETH", E18)
        assert result.asset_amount == E18
        assert result.reference_amount == 2000 * E18
        assert result.shares_minted == 2000 * E18
        assert sim.token("WETH").balance_of("fund") == 0
        assert sim.reference.balance_of("fund") == 2000 * E18

    def test_partial_conversion_refunds_residue(self, sim):
        sim.venue.configure(fill_ratio=PRECISION // 2)
        result = deposit(sim, "investor", "WETH", E18)
        assert result.asset_amount == E18 // 2
        assert result.refunded == E18 // 2
        assert result.reference_amount == 1000 * E18
        assert sim.token("WETH").balance_of("investor") == E18 // 2
        assert sim.token("WETH").balance_of("fund") == 0

    def test_fee_on_transfer_asset_credits_observed_amount(self, sim):
        taxed = sim.registry.add(InMemoryToken("TAX", 18, transfer_fee_rate=PRECISION // 10))
        taxed.mint("venue", 10**30)
        sim.venue.set_price("TAX", PRECISION, "DAI")

        result = deposit(sim, "investor", "TAX", 100 * E18)
        assert result.asset_amount == 90 * E18
        assert result.reference_amount == 90 * E18
        assert result.shares_minted == 90 * E18

    def test_native_asset_deposit(self, sim):
        result = deposit(sim, "investor", "ETH", E18)
        assert result.reference_amount == 2000 * E18

    def test_zero_deposit(self, sim):
        with pytest.raises(PreconditionViolation):
            sim.fund.deposit("investor", "DAI", 0)

    def test_unscreened_asset(self, sim):
        sim.registry.add(InMemoryToken("GHOST", 18))
        with pytest.raises(InvalidAsset):
            sim.fund.deposit("investor", "GHOST", E18)

    def test_wrong_phase(self, sim):
        sim.fund_account("investor", "DAI", E18)
        sim.advance()
        with pytest.raises(WrongPhase):
            sim.fund.deposit("investor", "DAI", E18)

    def test_missing_allowance(self, sim):
        sim.fund_account("investor", "DAI", E18, approve=False)
        with pytest.raises(InsufficientFunds):
            sim.fund.deposit("investor", "DAI", E18)
        assert sim.fund.total_funds == 0


# =============================================================================
# WITHDRAW
# =============================================================================


class TestWithdraw:
    """Тесты выводов."""

    def test_withdraw_reference_with_exit_fee(self, sim):
        deposit(sim, "investor", "DAI", 1000 * E18)
        result = sim.fund.withdraw("investor", "DAI", 400 * E18)

        assert result.shares_burned == 400 * E18
        assert result.exit_fee == 12 * E18 // 10
        assert result.asset_amount == 400 * E18 - 12 * E18 // 10
        assert sim.reference.balance_of("investor") == result.asset_amount
        assert sim.reference.balance_of("developer") == result.exit_fee
        assert sim.fund.total_funds == 600 * E18
        assert sim.shares.balance_of("investor") == 600 * E18

    def test_withdraw_into_other_asset(self, sim):
        deposit(sim, "investor", "DAI", 10_000 * E18)
        result = sim.fund.withdraw("investor", "WETH", 2000 * E18)

        assert result.exit_fee == 3 * 10**15
        assert sim.token("WETH").balance_of("investor") == E18 - 3 * 10**15
        assert sim.token("WETH").balance_of("developer") == 3 * 10**15
        assert sim.fund.events.last(EventKind.WITHDRAW).reference_amount == 2000 * E18

    def test_unconverted_residue_is_recredited_as_shares(self, sim):
        deposit(sim, "investor", "DAI", 10_000 * E18)
        sim.venue.configure(fill_ratio=PRECISION // 2)

        result = sim.fund.withdraw("investor", "WETH", 2000 * E18)

        assert result.residue_recredited == 1000 * E18
        assert result.shares_burned == 2000 * E18
        assert result.shares_recredited == 1000 * E18
        assert result.reference_amount == 1000 * E18
        assert sim.shares.balance_of("investor") == 9000 * E18
        assert sim.fund.total_funds == 9000 * E18

    def test_withdraw_into_native_asset(self, sim):
        deposit(sim, "investor", "DAI", 10_000 * E18)
        sim.fund.withdraw("investor", "ETH", 2000 * E18)
        assert sim.token("ETH").balance_of("investor") == E18 - 3 * 10**15

    def test_withdraw_more_than_pool(self, sim):
        deposit(sim, "investor", "DAI", 1000 * E18)
        with pytest.raises(InsufficientFunds):
            sim.fund.withdraw("investor", "DAI", 1001 * E18)

    def test_withdraw_more_than_own_shares(self, sim):
        deposit(sim, "alice", "DAI", 500 * E18)
        deposit(sim, "bob", "DAI", 500 * E18)
        with pytest.raises(InsufficientFunds):
            sim.fund.withdraw("alice", "DAI", 600 * E18)
        assert sim.shares.balance_of("alice") == 500 * E18
        assert sim.fund.total_funds == 1000 * E18

    def test_share_supply_is_conserved(self, sim):
        deposit(sim, "alice", "DAI", 700 * E18)
        deposit(sim, "bob", "WETH", E18)
        sim.fund.withdraw("alice", "WETH", 300 * E18)
        deposit(sim, "carol", "DAI", 123 * E18)
        sim.fund.withdraw("bob", "DAI", 999 * E18)

        holders = ("alice", "bob", "carol")
        assert sum(sim.shares.balance_of(h) for h in holders) == sim.shares.total_supply()


# =============================================================================
# SETTLEMENT
# =============================================================================


class TestSettlement:
    """Тесты итогов цикла."""

    def test_flat_cycle_pays_developer_fee_only(self, sim):
        deposit(sim, "investor", "DAI", 1000 * E18)
        sim.advance_to(Phase.REDEEM_COMMISSION)

        assert sim.fund.total_funds == 990 * E18
        assert sim.reference.balance_of("developer") == 10 * E18
        assert sim.fund.accounting.state.total_commission == 0

        profit_loss = sim.fund.events.last(EventKind.PROFIT_LOSS)
        assert profit_loss.before_pool_value == 1000 * E18
        assert profit_loss.after_pool_value == 990 * E18
        assert sim.fund.events.last(EventKind.TOTAL_COMMISSION).commission == 0

    def test_profitable_cycle(self, sim):
        deposit(sim, "investor", "DAI", 1000 * E18)
        sim.advance()
        sim.reference.mint("fund", 250 * E18)
        sim.advance()

        state = sim.fund.accounting.state
        assert state.total_commission == 50 * E18
        assert state.commission_left == 50 * E18
        assert state.total_funds == 1250 * E18 - 50 * E18 - 125 * E18 // 10
        assert sim.reference.balance_of("developer") == 125 * E18 // 10


# =============================================================================
# COMMISSION
# =============================================================================


@pytest.fixture
def settled(sim):
    """REDEEM_COMMISSION цикла 1: комиссия 50 DAI, alice 150 REP, bob 100 REP."""
    deposit(sim, "investor", "DAI", 1000 * E18)
    sim.reputation.mint("alice", 150 * E18)
    sim.reputation.mint("bob", 100 * E18)
    sim.advance()
    sim.reference.mint("fund", 250 * E18)
    sim.advance()
    return sim


class TestRedeemCommission:
    """Тесты вывода комиссии."""

    def test_commission_proportional_to_reputation(self, settled):
        result = settled.fund.redeem_commission("alice")
        assert result.commission == 30 * E18
        assert settled.reference.balance_of("alice") == 30 * E18
        assert settled.fund.accounting.state.commission_left == 20 * E18

        event = settled.fund.events.last(EventKind.COMMISSION_PAID)
        assert event.commission == 30 * E18
        assert not event.in_shares

    def test_commission_in_shares(self, settled):
        pool_before = settled.fund.total_funds
        expected = shares_for_deposit(20 * E18, settled.shares.total_supply(), pool_before)

        result = settled.fund.redeem_commission_in_shares("bob")

        assert result.commission == 20 * E18
        assert result.shares_minted == expected
        assert settled.shares.balance_of("bob") == expected
        assert settled.fund.total_funds == pool_before + 20 * E18
        assert settled.reference.balance_of("bob") == 0

    def test_redeem_twice(self, settled):
        settled.fund.redeem_commission("alice")
        with pytest.raises(AlreadyRedeemed):
            settled.fund.redeem_commission("alice")
        with pytest.raises(AlreadyRedeemed):
            settled.fund.redeem_commission_in_shares("alice")

    def test_all_redemptions_exhaust_commission(self, settled):
        settled.fund.redeem_commission("alice")
        settled.fund.redeem_commission("bob")
        assert settled.fund.accounting.state.commission_left == 0

    def test_account_without_reputation_gets_nothing(self, settled):
        result = settled.fund.redeem_commission("nobody")
        assert result.commission == 0

    def test_redeem_in_cycle_zero(self):
        sim = build_simulated_fund()
        with pytest.raises(AlreadyRedeemed):
            sim.fund.redeem_commission("alice")

    def test_wrong_phase(self, sim):
        with pytest.raises(WrongPhase):
            sim.fund.redeem_commission("alice")


# =============================================================================
# LEFTOVERS
# =============================================================================


class TestSellLeftoverAsset:
    """Тесты продажи остатков."""

    @pytest.fixture
    def with_leftover(self, sim):
        """Незакрытая инвестиция: фонд держит 250 WETH по 2 DAI."""
        sim.venue.set_price("WETH", 2 * PRECISION, "DAI")
        deposit(sim, "investor", "DAI", 1000 * E18)
        sim.reputation.mint("alice", 100 * E18)
        sim.reputation.mint("bob", 100 * E18)
        sim.advance()
        sim.fund.open_investment("alice", "WETH", 100 * E18)
        sim.advance()
        return sim

    def test_sell_leftover_adds_to_pool(self, with_leftover):
        sim = with_leftover
        assert sim.fund.total_funds == 495 * E18

        proceeds = sim.fund.sell_leftover_asset("WETH")

        assert proceeds == 500 * E18
        assert sim.fund.total_funds == 995 * E18
        assert sim.token("WETH").balance_of("fund") == 0

    def test_nothing_to_sell(self, with_leftover):
        with_leftover.fund.sell_leftover_asset("WETH")
        with pytest.raises(InsufficientFunds):
            with_leftover.fund.sell_leftover_asset("WETH")

    def test_denied_asset_can_still_be_sold_back(self, with_leftover):
        sim = with_leftover
        sim.fund.admin.set_asset_override("owner", "WETH", AssetOverride.DENY)

        proceeds = sim.fund.sell_leftover_asset("WETH")

        assert proceeds == 500 * E18
        assert sim.token("WETH").balance_of("fund") == 0
        assert sim.fund.total_funds == 995 * E18

    def test_unknown_asset(self, with_leftover):
        with pytest.raises(InvalidAsset):
            with_leftover.fund.sell_leftover_asset("NOPE")

    def test_reference_is_not_a_leftover(self, with_leftover):
        with pytest.raises(InvalidAsset):
            with_leftover.fund.sell_leftover_asset("DAI")

    def test_wrong_phase(self, sim):
        with pytest.raises(WrongPhase):
            sim.fund.sell_leftover_asset("WETH")


# =============================================================================
# UNSOLICITED TRANSFERS
# =============================================================================


class TestUnsolicitedTransfers:
    """Тесты fallback receiver."""

    def test_push_from_stranger_is_rejected(self, sim):
        eth = sim.token("ETH")
        eth.mint("mallory", E18)
        with pytest.raises(Unauthorized):
            eth.transfer("mallory", "fund", E18)
        assert eth.balance_of("mallory") == E18
        assert eth.balance_of("fund") == 0

    def test_push_from_venue_is_accepted(self, sim):
        sim.fund.receive_unsolicited("ETH", "venue", E18)


# =============================================================================
# SHARE PRICE
# =============================================================================


class TestSharePriceConservation:
    """Стоимость share не меняется от депозитов и выводов (кроме округления в пользу пула)."""

    @pytest.fixture
    def priced(self, settled):
        """Цикл 2, DEPOSIT_WITHDRAW: пул 1187.5 DAI на 1000 shares."""
        settled.advance()
        return settled

    def price(self, sim):
        return share_price(sim.fund.total_funds, sim.shares.total_supply())

    def test_price_holds_across_mixed_sequence(self, priced):
        sim = priced
        assert self.price(sim) == 11875 * PRECISION // 10000

        def bob_deposits():
            deposit(sim, "bob", "DAI", 333 * E18 + 7)

        def carol_deposits_weth_partially():
            sim.venue.configure(fill_ratio=PRECISION // 3)
            deposit(sim, "carol", "WETH", E18)
            sim.venue.configure(fill_ratio=PRECISION)

        def investor_withdraws_weth_partially():
            sim.venue.configure(fill_ratio=PRECISION // 3)
            result = sim.fund.withdraw("investor", "WETH", 257 * E18 + 13)
            sim.venue.configure(fill_ratio=PRECISION)
            assert result.residue_recredited > 0

        def bob_withdraws_dai():
            sim.fund.withdraw("bob", "DAI", 100 * E18 + 1)

        def dave_deposits_eth():
            deposit(sim, "dave", "ETH", 123 * 10**15 + 5)

        def carol_withdraws_usdc():
            sim.fund.withdraw("carol", "USDC", 50 * E18 + 3)

        steps = [
            bob_deposits,
            carol_deposits_weth_partially,
            investor_withdraws_weth_partially,
            bob_withdraws_dai,
            dave_deposits_eth,
            carol_withdraws_usdc,
        ]
        for step in steps:
            before = self.price(sim)
            step()
            after = self.price(sim)
            assert 0 <= after - before <= 1, step.__name__

    def test_rounding_on_withdrawal_favours_pool(self, priced):
        """Вывод 1 wei при цене share > 1 сжигает целую share unit."""
        sim = priced
        before = self.price(sim)

        result = sim.fund.withdraw("investor", "DAI", 1)

        assert result.shares_burned == 1
        assert self.price(sim) >= before
