"""
Interfaces — внешние коллабораторы фонда

Фонд видит внешний мир только через эти протоколы:
- AssetToken / AssetRegistry — балансы и переводы активов (Balance Oracle)
- ReputationLedger — reputation/stake токен (фонд — владелец)
- ShareLedger — share токен (фонд — владелец)
- ExchangeVenue — внешняя площадка обмена (недоверенный код)
- Journaled — участник транзакции, умеющий snapshot/restore

Адреса и идентификаторы активов — строки. Вызывающий передаётся явно
первым аргументом (sender/spender/holder).
"""

from typing import Any, Callable, Protocol, runtime_checkable

# Источник текущего времени (unix seconds)
Clock = Callable[[], int]


class AssetToken(Protocol):
    """Взаимозаменяемый актив с conventional transfer-контрактом."""

    symbol: str
    decimals: int

    def balance_of(self, holder: str) -> int: ...

    def total_supply(self) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def transfer_from(self, spender: str, holder: str, recipient: str, amount: int) -> bool: ...

    def approve(self, holder: str, spender: str, amount: int) -> bool: ...


class AssetRegistry(Protocol):
    """Разрешение идентификатора актива в токен."""

    def get(self, asset: str) -> AssetToken: ...

    def __contains__(self, asset: object) -> bool: ...


class ReputationLedger(Protocol):
    """Reputation токен: непередаваемый во время расчёта комиссии."""

    def balance_of(self, holder: str) -> int: ...

    def total_supply(self) -> int: ...

    def mint(self, recipient: str, amount: int) -> None: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def owner_collect_from(self, holder: str, amount: int) -> None: ...

    def burn_owner_balance(self) -> int: ...

    def burn_owner_tokens(self, amount: int) -> None: ...

    def pause(self) -> None: ...

    def unpause(self) -> None: ...

    def paused(self) -> bool: ...


class ShareLedger(Protocol):
    """Share токен: свободно передаваемая доля в пуле."""

    def balance_of(self, holder: str) -> int: ...

    def total_supply(self) -> int: ...

    def mint(self, recipient: str, amount: int) -> None: ...

    def owner_burn(self, holder: str, amount: int) -> None: ...


class ExchangeVenue(Protocol):
    """
    Внешняя площадка обмена.

    Может доставить меньше запрошенного и вернуть неверное число —
    адаптер доверяет только наблюдаемым балансам.
    """

    address: str

    def trade(
        self,
        caller: str,
        src_asset: str,
        src_amount: int,
        dest_asset: str,
        recipient: str,
        max_amount: int,
        min_rate: int,
        wallet_fee_id: int,
    ) -> int: ...


@runtime_checkable
class Journaled(Protocol):
    """Участник транзакции: состояние можно сохранить и восстановить."""

    def snapshot(self) -> Any: ...

    def restore(self, snapshot: Any) -> None: ...
