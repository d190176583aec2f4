"""
TransactionGuard — атомарность и защита от повторного входа

Каждая изменяющая операция фонда выполняется внутри transaction():
1. Повторный вход в любую защищённую операцию → ReentrancyDetected
2. Перед операцией снимаются snapshot() всех участников
3. Любое исключение → restore() всех участников в обратном порядке, re-raise
4. Успех → флаг снимается, затем commit() у участников, которые его поддерживают

Частичного применения не бывает: операция либо полностью проходит, либо
состояние остаётся как до вызова.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

from src.core.errors import ReentrancyDetected

from .interfaces import Journaled

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class TransactionGuard:
    """Non-reentrancy флаг плюс журнал snapshot/restore."""

    def __init__(self) -> None:
        self._participants: list[Journaled] = []
        self._active: str | None = None

    @property
    def active_operation(self) -> str | None:
        """Имя выполняемой операции или None."""
        return self._active

    def register(self, participant: Journaled) -> None:
        """
        Регистрация участника транзакций.

        Raises:
            TypeError: Если у участника нет snapshot()/restore()
        """
        if not isinstance(participant, Journaled):
            raise TypeError(f"{type(participant).__name__} does not implement snapshot()/restore()")
        if any(p is participant for p in self._participants):
            return
        self._participants.append(participant)

    def register_if_journaled(self, candidate: object) -> bool:
        """Регистрация внешнего коллаборатора, если он поддерживает журнал."""
        if isinstance(candidate, Journaled):
            self.register(candidate)
            return True
        return False

    @contextmanager
    def transaction(self, operation: str) -> Iterator[None]:
        """
        Контекст атомарной операции.

        commit() участников вызывается уже после снятия флага: подписчики
        EventLog могут обращаться к фонду, а состояние операции к этому
        моменту окончательно зафиксировано.

        Raises:
            ReentrancyDetected: Если другая операция уже выполняется
        """
        if self._active is not None:
            raise ReentrancyDetected(
                f"{operation} re-entered while {self._active} is in progress"
            )

        self._active = operation
        try:
            snapshots = [(p, p.snapshot()) for p in self._participants]
            try:
                yield
            except Exception as exc:
                for participant, snapshot in reversed(snapshots):
                    participant.restore(snapshot)
                logger.warning("rolled back %s: %s: %s", operation, type(exc).__name__, exc)
                raise
        finally:
            self._active = None

        for participant in list(self._participants):
            commit = getattr(participant, "commit", None)
            if callable(commit):
                commit()


def guarded(operation: str) -> Callable[[F], F]:
    """
    Декоратор метода: выполняет его внутри self._guard.transaction(operation).
    """

    def decorator(method: F) -> F:
        @functools.wraps(method)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            with self._guard.transaction(operation):
                return method(self, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
