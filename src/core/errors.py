"""
Errors — таксономия отказов движка фонда

Каждый отказ — отдельный именованный класс со стабильным `code`,
чтобы внешние инструменты и тесты могли проверять точную причину.

Иерархия:
- FundEngineError
  - PreconditionViolation (фаза, права, актив, повторный вывод, reentrancy)
  - InsufficientFunds (нехватка stake/баланса)
  - ZeroFill (биржа ничего не вернула)
  - ArithmeticOverflow / DivisionByZero (checked fixed-point math)

Любая ошибка откатывает всю операцию целиком (см. src.fund.guard).
"""


class FundEngineError(Exception):
    """Базовый класс всех отказов движка."""

    code: str = "ENGINE_ERROR"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.code
        super().__init__(self.message)


# =============================================================================
# PRECONDITION VIOLATIONS
# =============================================================================


class PreconditionViolation(FundEngineError):
    code = "PRECONDITION_VIOLATION"


class WrongPhase(PreconditionViolation):
    code = "WRONG_PHASE"


class PhaseNotElapsed(PreconditionViolation):
    code = "PHASE_NOT_ELAPSED"


class Unauthorized(PreconditionViolation):
    code = "UNAUTHORIZED"


class InvalidAsset(PreconditionViolation):
    code = "INVALID_ASSET"


class InvalidTrade(PreconditionViolation):
    code = "INVALID_TRADE"


class InvalidInvestment(PreconditionViolation):
    code = "INVALID_INVESTMENT"


class AlreadyRedeemed(PreconditionViolation):
    code = "ALREADY_REDEEMED"


class ReentrancyDetected(PreconditionViolation):
    code = "REENTRANCY_DETECTED"


class InvalidConfiguration(PreconditionViolation):
    code = "INVALID_CONFIGURATION"


# =============================================================================
# FUNDS / TRADING / ARITHMETIC
# =============================================================================


class InsufficientFunds(FundEngineError):
    code = "INSUFFICIENT_FUNDS"


class ZeroFill(FundEngineError):
    code = "ZERO_FILL"


class ArithmeticOverflow(FundEngineError):
    code = "ARITHMETIC_OVERFLOW"


class DivisionByZero(FundEngineError):
    code = "DIVISION_BY_ZERO"
