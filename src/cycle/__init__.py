"""Cycle — фазы инвестиционного цикла фонда."""

from .state_machine import PHASE_ORDER, CycleStateMachine, PhaseTransitionResult, next_phase

__all__ = [
    "PHASE_ORDER",
    "CycleStateMachine",
    "PhaseTransitionResult",
    "next_phase",
]
