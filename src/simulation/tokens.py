"""
In-memory токены и реестр активов

- InMemoryToken — взаимозаменяемый актив: балансы, allowance, decimals,
  опциональная комиссия за перевод (fee-on-transfer), хуки получателя
  для нативного актива
- ReputationToken — stake менеджеров; фонд-владелец может забирать,
  сжигать и замораживать переводы
- ShareToken — доли фонда; эмитирует и сжигает только владелец
- AssetRegistry — актив по идентификатору

Все классы поддерживают snapshot()/restore() и откатываются вместе с
транзакцией фонда.
"""

import logging
from typing import Callable, Iterable, Iterator

from src.core.errors import InsufficientFunds, InvalidAsset, Unauthorized
from src.core.math.fixed_point import checked_add, checked_sub, frac_mul, validate_amount, validate_rate

logger = logging.getLogger(__name__)

# (asset, sender, amount) -> None; исключение отклоняет перевод
ReceiverHook = Callable[[str, str, int], None]


class InMemoryToken:
    """Актив с conventional transfer/approve/transfer_from контрактом."""

    def __init__(self, symbol: str, decimals: int = 18, transfer_fee_rate: int = 0):
        self.symbol = symbol
        self.decimals = decimals
        self.transfer_fee_rate = validate_rate(transfer_fee_rate, "transfer_fee_rate")
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._supply = 0
        self._receivers: dict[str, ReceiverHook] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol!r}, decimals={self.decimals})"

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def total_supply(self) -> int:
        return self._supply

    def allowance(self, holder: str, spender: str) -> int:
        return self._allowances.get((holder, spender), 0)

    # -------------------------------------------------------------------------
    # Supply
    # -------------------------------------------------------------------------

    def mint(self, recipient: str, amount: int) -> None:
        validate_amount(amount, "amount")
        self._balances[recipient] = checked_add(self.balance_of(recipient), amount)
        self._supply = checked_add(self._supply, amount)

    def burn(self, holder: str, amount: int) -> None:
        validate_amount(amount, "amount")
        if self.balance_of(holder) < amount:
            raise InsufficientFunds(
                f"{holder} holds {self.balance_of(holder)} {self.symbol}, cannot burn {amount}"
            )
        self._balances[holder] = self.balance_of(holder) - amount
        self._supply -= amount

    # -------------------------------------------------------------------------
    # Transfers
    # -------------------------------------------------------------------------

    def register_receiver(self, address: str, hook: ReceiverHook) -> None:
        """Хук вызывается на каждый transfer() в пользу address."""
        self._receivers[address] = hook

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        hook = self._receivers.get(recipient)
        if hook is not None:
            hook(self.symbol, sender, amount)
        self._move(sender, recipient, amount)
        return True

    def approve(self, holder: str, spender: str, amount: int) -> bool:
        self._allowances[(holder, spender)] = validate_amount(amount, "amount")
        return True

    def transfer_from(self, spender: str, holder: str, recipient: str, amount: int) -> bool:
        allowed = self.allowance(holder, spender)
        if allowed < amount:
            raise InsufficientFunds(
                f"{spender} may move {allowed} {self.symbol} of {holder}, requested {amount}"
            )
        self._allowances[(holder, spender)] = allowed - amount
        self._move(holder, recipient, amount)
        return True

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        validate_amount(amount, "amount")
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientFunds(f"{sender} holds {balance} {self.symbol}, cannot send {amount}")

        # Комиссия за перевод сжигается, получатель видит меньше отправленного
        fee = frac_mul(amount, self.transfer_fee_rate)
        self._balances[sender] = balance - amount
        self._balances[recipient] = checked_add(self.balance_of(recipient), amount - fee)
        self._supply = checked_sub(self._supply, fee)

    # -------------------------------------------------------------------------
    # Journaled
    # -------------------------------------------------------------------------

    def snapshot(self) -> tuple:
        return dict(self._balances), dict(self._allowances), self._supply

    def restore(self, snapshot: tuple) -> None:
        balances, allowances, supply = snapshot
        self._balances = dict(balances)
        self._allowances = dict(allowances)
        self._supply = supply


class ReputationToken(InMemoryToken):
    """
    Reputation (stake) токен.

    Во время паузы переводы между держателями запрещены; операции
    владельца (mint, collect, burn) продолжают работать.
    """

    def __init__(self, owner: str, symbol: str = "REP", decimals: int = 18):
        super().__init__(symbol, decimals)
        self.owner = owner
        self._paused = False

    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        self._paused = True

    def unpause(self) -> None:
        self._paused = False

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if self._paused and sender != self.owner:
            raise Unauthorized(f"{self.symbol} transfers are paused")
        return super().transfer(sender, recipient, amount)

    def transfer_from(self, spender: str, holder: str, recipient: str, amount: int) -> bool:
        if self._paused:
            raise Unauthorized(f"{self.symbol} transfers are paused")
        return super().transfer_from(spender, holder, recipient, amount)

    def owner_collect_from(self, holder: str, amount: int) -> None:
        """Принудительный перевод holder → owner (удержание stake)."""
        self._move(holder, self.owner, amount)

    def burn_owner_balance(self) -> int:
        """Сжечь весь баланс владельца; возвращает сожжённое количество."""
        amount = self.balance_of(self.owner)
        if amount > 0:
            self.burn(self.owner, amount)
        return amount

    def burn_owner_tokens(self, amount: int) -> None:
        self.burn(self.owner, amount)

    def snapshot(self) -> tuple:
        return super().snapshot(), self._paused

    def restore(self, snapshot: tuple) -> None:
        token_snapshot, self._paused = snapshot
        super().restore(token_snapshot)


class ShareToken(InMemoryToken):
    """Share токен; сжигает у держателя только владелец."""

    def __init__(self, owner: str, symbol: str = "SHARE", decimals: int = 18):
        super().__init__(symbol, decimals)
        self.owner = owner

    def owner_burn(self, holder: str, amount: int) -> None:
        self.burn(holder, amount)


class AssetRegistry:
    """Реестр активов по symbol."""

    def __init__(self, tokens: Iterable[InMemoryToken] = ()):
        self._tokens: dict[str, InMemoryToken] = {}
        for token in tokens:
            self.add(token)

    def add(self, token: InMemoryToken) -> InMemoryToken:
        self._tokens[token.symbol] = token
        return token

    def get(self, asset: str) -> InMemoryToken:
        """
        Raises:
            InvalidAsset: Актив не зарегистрирован
        """
        token = self._tokens.get(asset)
        if token is None:
            raise InvalidAsset(f"unknown asset {asset}")
        return token

    def __contains__(self, asset: object) -> bool:
        return asset in self._tokens

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def snapshot(self) -> dict[str, tuple]:
        return {symbol: token.snapshot() for symbol, token in self._tokens.items()}

    def restore(self, snapshot: dict[str, tuple]) -> None:
        for symbol, token_snapshot in snapshot.items():
            self._tokens[symbol].restore(token_snapshot)
