"""
EventLog — журнал уведомлений фонда

- Упорядоченный список FundEvent
- Откатывается вместе с транзакцией (snapshot/restore по длине)
- Подписчики получают события только после commit транзакции; их ошибки
  логируются и не откатывают уже зафиксированную операцию
- В strict режиме каждое событие проверяется по JSON Schema fund_event
"""

import logging
from typing import Callable

from src.core.contracts import validate_fund_event
from src.core.domain.events import EventKind, FundEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[FundEvent], None]


class EventLog:
    """Журнал уведомлений с транзакционной доставкой."""

    def __init__(self, strict: bool = True) -> None:
        self.strict = strict
        self._events: list[FundEvent] = []
        self._delivered = 0
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def emit(self, event: FundEvent) -> None:
        """
        Добавление события.

        Raises:
            jsonschema.ValidationError: В strict режиме, если событие нарушает контракт
        """
        if self.strict:
            validate_fund_event(event.model_dump(mode="json"))
        self._events.append(event)
        logger.info(
            "event %s cycle=%d %s",
            event.event.value,
            event.cycle_number,
            event.model_dump(exclude={"event", "cycle_number", "timestamp"}),
        )

    @property
    def events(self) -> tuple[FundEvent, ...]:
        return tuple(self._events)

    def of_type(self, kind: EventKind) -> list[FundEvent]:
        """События одного типа в порядке эмиссии."""
        return [e for e in self._events if e.event == kind]

    def last(self, kind: EventKind) -> FundEvent | None:
        matching = self.of_type(kind)
        return matching[-1] if matching else None

    def __len__(self) -> int:
        return len(self._events)

    # -------------------------------------------------------------------------
    # Journaled
    # -------------------------------------------------------------------------

    def snapshot(self) -> int:
        return len(self._events)

    def restore(self, snapshot: int) -> None:
        del self._events[snapshot:]
        self._delivered = min(self._delivered, snapshot)

    def commit(self) -> None:
        """
        Доставка накопленных событий подписчикам.

        Операция к этому моменту уже зафиксирована, поэтому ошибка
        подписчика только логируется и не доходит до вызвавшего.
        """
        pending = self._events[self._delivered:]
        self._delivered = len(self._events)
        for event in pending:
            for callback in list(self._subscribers):
                try:
                    callback(event)
                except Exception:
                    logger.exception("subscriber %r failed on %s", callback, event.event.value)
