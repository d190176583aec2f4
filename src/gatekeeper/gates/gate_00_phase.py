"""GATE 0: Phase Window

Первый gate любой изменяющей операции фонда:
- Каждая операция разрешена ровно в одной фазе цикла
- Блокирует операцию вне её фазы (движок превращает блок в WrongPhase)

Таблица:
- DEPOSIT, WITHDRAW → DEPOSIT_WITHDRAW
- OPEN_INVESTMENT, CLOSE_INVESTMENT → MAKE_DECISIONS
- REDEEM_COMMISSION, REDEEM_COMMISSION_IN_SHARES, SELL_LEFTOVER_ASSET → REDEEM_COMMISSION
"""

from dataclasses import dataclass
from enum import Enum
from typing import Final

from src.core.domain.fund_state import Phase
from src.core.errors import WrongPhase


class FundOperation(str, Enum):
    """Фазозависимые операции фонда."""

    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    OPEN_INVESTMENT = "OPEN_INVESTMENT"
    CLOSE_INVESTMENT = "CLOSE_INVESTMENT"
    REDEEM_COMMISSION = "REDEEM_COMMISSION"
    REDEEM_COMMISSION_IN_SHARES = "REDEEM_COMMISSION_IN_SHARES"
    SELL_LEFTOVER_ASSET = "SELL_LEFTOVER_ASSET"


OPERATION_PHASES: Final[dict[FundOperation, Phase]] = {
    FundOperation.DEPOSIT: Phase.DEPOSIT_WITHDRAW,
    FundOperation.WITHDRAW: Phase.DEPOSIT_WITHDRAW,
    FundOperation.OPEN_INVESTMENT: Phase.MAKE_DECISIONS,
    FundOperation.CLOSE_INVESTMENT: Phase.MAKE_DECISIONS,
    FundOperation.REDEEM_COMMISSION: Phase.REDEEM_COMMISSION,
    FundOperation.REDEEM_COMMISSION_IN_SHARES: Phase.REDEEM_COMMISSION,
    FundOperation.SELL_LEFTOVER_ASSET: Phase.REDEEM_COMMISSION,
}


@dataclass(frozen=True)
class PhaseGateResult:
    """Результат GATE 0."""

    allowed: bool
    block_reason: str

    # Входные параметры для диагностики
    operation: FundOperation
    current_phase: Phase
    required_phase: Phase

    # Детали
    details: str


class PhaseGate:
    """GATE 0: Phase Window (stateless)."""

    def evaluate(self, current_phase: Phase, operation: FundOperation) -> PhaseGateResult:
        """Оценка GATE 0.

        Args:
            current_phase: текущая фаза цикла
            operation: запрашиваемая операция

        Returns:
            PhaseGateResult с решением о допуске
        """
        required_phase = OPERATION_PHASES[operation]

        if current_phase != required_phase:
            return PhaseGateResult(
                allowed=False,
                block_reason="wrong_phase",
                operation=operation,
                current_phase=current_phase,
                required_phase=required_phase,
                details=(
                    f"{operation.value} requires {required_phase.value}, "
                    f"current phase is {current_phase.value}"
                ),
            )

        return PhaseGateResult(
            allowed=True,
            block_reason="",
            operation=operation,
            current_phase=current_phase,
            required_phase=required_phase,
            details=f"PASS: {operation.value} in {current_phase.value}",
        )

    def require(self, current_phase: Phase, operation: FundOperation) -> PhaseGateResult:
        """
        Raises:
            WrongPhase: Если операция вне своей фазы
        """
        result = self.evaluate(current_phase, operation)
        if not result.allowed:
            raise WrongPhase(result.details)
        return result
