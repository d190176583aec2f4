"""Тесты для Cycle State Machine.

Coverage:
- Циклический порядок фаз и номер цикла
- Минимальная длительность фазы (PhaseNotElapsed)
- Побочные эффекты переходов (reward, burn, pause, settle)
- PhaseChanged уведомления
- snapshot/restore
"""

import pytest

from src.core.domain.config import PhaseLengths
from src.core.domain.events import EventKind
from src.core.domain.fund_state import Phase
from src.core.errors import PhaseNotElapsed
from src.cycle.state_machine import PHASE_ORDER, CycleStateMachine, next_phase
from src.fund.event_log import EventLog
from src.simulation.clock import ManualClock
from src.simulation.tokens import ReputationToken

LENGTHS = PhaseLengths(deposit_withdraw=100, make_decisions=300, redeem_commission=50)


@pytest.fixture
def clock():
    return ManualClock(start=1_000)


@pytest.fixture
def reputation():
    return ReputationToken(owner="fund")


@pytest.fixture
def settlements():
    return []


@pytest.fixture
def machine(clock, reputation, settlements):
    return CycleStateMachine(
        phase_lengths=LENGTHS,
        clock=clock,
        reputation=reputation,
        events=EventLog(),
        settle=lambda: settlements.append(clock()),
        phase_change_reward=7,
    )


def advance(machine, clock, caller="keeper"):
    clock.advance(machine.time_remaining())
    return machine.advance(caller)


class TestPhaseOrder:
    """Тесты порядка фаз."""

    def test_next_phase_is_cyclic(self):
        assert next_phase(Phase.DEPOSIT_WITHDRAW) == Phase.MAKE_DECISIONS
        assert next_phase(Phase.MAKE_DECISIONS) == Phase.REDEEM_COMMISSION
        assert next_phase(Phase.REDEEM_COMMISSION) == Phase.DEPOSIT_WITHDRAW

    def test_order_has_three_phases(self):
        assert len(PHASE_ORDER) == 3


class TestCycleStateMachine:
    """Тесты машины фаз."""

    def test_initial_state(self, machine):
        assert machine.phase == Phase.REDEEM_COMMISSION
        assert machine.cycle_number == 0
        assert machine.state.phase_started_at == 1_000

    def test_advance_before_elapsed_raises(self, machine, clock):
        clock.advance(49)
        assert not machine.can_advance()
        with pytest.raises(PhaseNotElapsed):
            machine.advance("keeper")
        assert machine.phase == Phase.REDEEM_COMMISSION

    def test_advance_at_exact_boundary(self, machine, clock):
        clock.advance(50)
        result = machine.advance("keeper")
        assert result.new_phase == Phase.DEPOSIT_WITHDRAW
        assert result.previous_phase == Phase.REDEEM_COMMISSION
        assert result.started_at == 1_050

    def test_full_cycle_increments_cycle_number_once(self, machine, clock):
        """k полных кругов из DEPOSIT_WITHDRAW → cycle увеличился на k."""
        advance(machine, clock)
        start_cycle = machine.cycle_number
        for _ in range(3 * 4):
            advance(machine, clock)
        assert machine.phase == Phase.DEPOSIT_WITHDRAW
        assert machine.cycle_number == start_cycle + 4

    def test_cycle_started_unpauses_reputation(self, machine, clock, reputation):
        reputation.pause()
        result = advance(machine, clock)
        assert result.transition_reason == "cycle_started"
        assert result.cycle_number == 1
        assert not reputation.paused()

    def test_reward_minted_to_caller(self, machine, clock, reputation):
        advance(machine, clock, caller="alice")
        assert reputation.balance_of("alice") == 7

    def test_leaving_decisions_burns_pauses_and_settles(self, machine, clock, reputation, settlements):
        advance(machine, clock)  # → DEPOSIT_WITHDRAW
        advance(machine, clock)  # → MAKE_DECISIONS
        reputation.mint("fund", 40)
        supply_before = reputation.total_supply()

        result = advance(machine, clock)  # → REDEEM_COMMISSION
        assert result.transition_reason == "cycle_settled"
        assert reputation.balance_of("fund") == 0
        # 40 сожжено, 7 эмитировано вызвавшему
        assert reputation.total_supply() == supply_before - 40 + 7
        assert reputation.paused()
        assert settlements == [clock()]

    def test_settle_only_on_leaving_decisions(self, machine, clock, settlements):
        advance(machine, clock)
        advance(machine, clock)
        assert settlements == []

    def test_phase_changed_events(self, machine, clock):
        events = machine._events
        advance(machine, clock)
        advance(machine, clock)
        emitted = events.of_type(EventKind.PHASE_CHANGED)
        assert [e.phase for e in emitted] == [Phase.DEPOSIT_WITHDRAW, Phase.MAKE_DECISIONS]
        assert all(e.cycle_number == 1 for e in emitted)
        assert emitted[0].reward == 7

    def test_zero_reward_mints_nothing(self, clock, reputation):
        machine = CycleStateMachine(LENGTHS, clock, reputation, EventLog(), lambda: None, 0)
        advance(machine, clock, caller="alice")
        assert reputation.total_supply() == 0

    def test_update_phase_lengths_applies_to_current_phase(self, machine, clock):
        clock.advance(10)
        machine.update_phase_lengths(LENGTHS.model_copy(update={"redeem_commission": 10}))
        assert machine.can_advance()

    def test_snapshot_restore(self, machine, clock):
        snapshot = machine.snapshot()
        advance(machine, clock)
        assert machine.phase == Phase.DEPOSIT_WITHDRAW
        machine.restore(snapshot)
        assert machine.phase == Phase.REDEEM_COMMISSION
        assert machine.cycle_number == 0
