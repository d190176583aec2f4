"""Cycle State Machine — фазы инвестиционного цикла фонда.

Циклический порядок фаз:
    DEPOSIT_WITHDRAW → MAKE_DECISIONS → REDEEM_COMMISSION → (новый цикл)

Переход выполняется только явным вызовом advance() после истечения
минимальной длительности фазы (время читается лениво из clock, таймеров нет).

Побочные эффекты переходов:
- REDEEM_COMMISSION → DEPOSIT_WITHDRAW: cycle_number += 1, reputation снова передаваем
- MAKE_DECISIONS → REDEEM_COMMISSION: сжечь удержанные stake фонда,
  заморозить reputation, рассчитать итоги цикла
- Любой переход: награда вызвавшему в reputation, PhaseChanged
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Final

from src.core.domain.config import PhaseLengths
from src.core.domain.events import PhaseChanged
from src.core.domain.fund_state import CycleState, Phase
from src.core.errors import PhaseNotElapsed

if TYPE_CHECKING:
    from src.fund.event_log import EventLog
    from src.fund.interfaces import Clock, ReputationLedger

logger = logging.getLogger(__name__)


PHASE_ORDER: Final[tuple[Phase, ...]] = (
    Phase.DEPOSIT_WITHDRAW,
    Phase.MAKE_DECISIONS,
    Phase.REDEEM_COMMISSION,
)


def next_phase(phase: Phase) -> Phase:
    """Следующая фаза в циклическом порядке."""
    return PHASE_ORDER[(PHASE_ORDER.index(phase) + 1) % len(PHASE_ORDER)]


@dataclass(frozen=True)
class PhaseTransitionResult:
    """Результат перехода фазы."""

    new_phase: Phase
    previous_phase: Phase
    cycle_number: int
    started_at: int

    reward: int
    caller: str

    # Диагностика
    transition_reason: str
    details: str


class CycleStateMachine:
    """Машина фаз цикла.

    Владеет CycleState; состояние заменяется целиком при каждом переходе,
    поэтому snapshot/restore тривиальны.
    """

    def __init__(
        self,
        phase_lengths: PhaseLengths,
        clock: "Clock",
        reputation: "ReputationLedger",
        events: "EventLog",
        settle: Callable[[], object],
        phase_change_reward: int,
        started_at: int | None = None,
    ):
        """
        Args:
            phase_lengths: минимальные длительности фаз
            clock: источник времени (unix seconds)
            reputation: reputation токен (фонд — владелец)
            events: журнал уведомлений
            settle: расчёт итогов цикла (вызывается при выходе из MAKE_DECISIONS)
            phase_change_reward: награда вызвавшему переход
            started_at: начало начальной фазы (по умолчанию clock())
        """
        self.phase_lengths = phase_lengths
        self.phase_change_reward = phase_change_reward
        self._clock = clock
        self._reputation = reputation
        self._events = events
        self._settle = settle
        self._state = CycleState(
            phase_started_at=clock() if started_at is None else started_at
        )

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def cycle_number(self) -> int:
        return self._state.cycle_number

    @property
    def phase(self) -> Phase:
        return self._state.phase

    def phase_ends_at(self) -> int:
        """Момент, с которого разрешён advance()."""
        return self._state.phase_started_at + self.phase_lengths.for_phase(self._state.phase)

    def time_remaining(self) -> int:
        return max(0, self.phase_ends_at() - self._clock())

    def can_advance(self) -> bool:
        return self._clock() >= self.phase_ends_at()

    # -------------------------------------------------------------------------
    # Transition
    # -------------------------------------------------------------------------

    def advance(self, caller: str) -> PhaseTransitionResult:
        """Переход в следующую фазу.

        Raises:
            PhaseNotElapsed: Минимальная длительность текущей фазы не истекла
        """
        now = self._clock()
        ends_at = self.phase_ends_at()
        if now < ends_at:
            raise PhaseNotElapsed(
                f"{self._state.phase.value} ends at {ends_at}, now is {now}"
            )

        previous = self._state.phase
        cycle_number = self._state.cycle_number

        if previous == Phase.REDEEM_COMMISSION:
            cycle_number += 1
            if self._reputation.paused():
                self._reputation.unpause()
            reason = "cycle_started"
            details = f"cycle {cycle_number} opened for deposits"
        elif previous == Phase.DEPOSIT_WITHDRAW:
            reason = "decisions_opened"
            details = f"cycle {cycle_number} open for investment decisions"
        else:
            burned = self._reputation.burn_owner_balance()
            self._reputation.pause()
            self._settle()
            reason = "cycle_settled"
            details = f"cycle {cycle_number} settled, forfeited stake burned={burned}"

        new_phase = next_phase(previous)
        self._state = CycleState(
            cycle_number=cycle_number, phase=new_phase, phase_started_at=now
        )

        reward = self.phase_change_reward
        if reward > 0:
            self._reputation.mint(caller, reward)

        self._events.emit(
            PhaseChanged(
                cycle_number=cycle_number,
                timestamp=now,
                phase=new_phase,
                caller=caller,
                reward=reward,
            )
        )
        logger.info(
            "phase %s -> %s cycle=%d caller=%s (%s)",
            previous.value,
            new_phase.value,
            cycle_number,
            caller,
            reason,
        )

        return PhaseTransitionResult(
            new_phase=new_phase,
            previous_phase=previous,
            cycle_number=cycle_number,
            started_at=now,
            reward=reward,
            caller=caller,
            transition_reason=reason,
            details=details,
        )

    def update_phase_lengths(self, phase_lengths: PhaseLengths) -> None:
        """Применяется к текущей фазе сразу (phase_ends_at пересчитывается)."""
        self.phase_lengths = phase_lengths

    # -------------------------------------------------------------------------
    # Journaled
    # -------------------------------------------------------------------------

    def snapshot(self) -> tuple[CycleState, PhaseLengths]:
        return self._state, self.phase_lengths

    def restore(self, snapshot: tuple[CycleState, PhaseLengths]) -> None:
        self._state, self.phase_lengths = snapshot
