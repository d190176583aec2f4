"""
ExchangeAdapter — обмен через недоверенную площадку

Call-then-verify:
1. Балансы src/dest фонда до вызова
2. Non-native src: allowance 0 → src_amount → вызов → 0
   Native src: value передаётся площадке перед вызовом
3. Балансы после вызова; результатом считается только наблюдаемая разница
4. ZeroFill если площадка вернула 0, dest не пришёл или src не списан

Цены выводятся из наблюдаемых количеств (calc_unit_price), а не из
заявленного площадкой результата. Частичное исполнение допустимо:
неизрасходованный src остаётся у фонда.
"""

import logging
from dataclasses import dataclass

from src.core.errors import InvalidTrade, ZeroFill
from src.core.math.fixed_point import MAX_QTY, calc_unit_price, checked_sub, validate_amount

from .interfaces import AssetRegistry, ExchangeVenue

logger = logging.getLogger(__name__)

# Минимальный курс для площадки; исполнение проверяется по наблюдаемым балансам
MIN_RATE = 1
WALLET_FEE_ID = 0


@dataclass(frozen=True)
class TradeResult:
    """Наблюдаемый результат обмена."""

    src_asset: str
    dest_asset: str
    src_requested: int
    src_spent: int
    dest_received: int
    dest_reported: int

    # Цена единицы dest в src и обратная (PRECISION)
    dest_price_in_src: int
    src_price_in_dest: int

    @property
    def src_unspent(self) -> int:
        return self.src_requested - self.src_spent

    @property
    def is_partial(self) -> bool:
        return self.src_spent < self.src_requested


class ExchangeAdapter:
    """Обмен активов фонда через ExchangeVenue."""

    def __init__(
        self,
        holder: str,
        registry: AssetRegistry,
        venue: ExchangeVenue,
        native_asset: str | None = None,
    ):
        """
        Args:
            holder: адрес фонда (владелец обмениваемых активов)
            registry: реестр активов (Balance Oracle)
            venue: площадка обмена
            native_asset: актив, передаваемый как value, а не через allowance
        """
        self.holder = holder
        self._registry = registry
        self._venue = venue
        self.native_asset = native_asset

    @property
    def venue_address(self) -> str:
        return self._venue.address

    def trade(self, src_asset: str, src_amount: int, dest_asset: str) -> TradeResult:
        """
        Обмен src_amount единиц src_asset на dest_asset.

        Raises:
            InvalidTrade: src == dest или src_amount == 0
            ZeroFill: Площадка ничего не исполнила
        """
        validate_amount(src_amount, "src_amount")
        if src_asset == dest_asset:
            raise InvalidTrade(f"cannot trade {src_asset} for itself")
        if src_amount == 0:
            raise InvalidTrade("src_amount must be positive")

        src_token = self._registry.get(src_asset)
        dest_token = self._registry.get(dest_asset)
        venue = self._venue.address

        src_before = src_token.balance_of(self.holder)
        dest_before = dest_token.balance_of(self.holder)

        if src_asset == self.native_asset:
            src_token.transfer(self.holder, venue, src_amount)
            reported = self._call_venue(src_asset, src_amount, dest_asset)
        else:
            src_token.approve(self.holder, venue, 0)
            src_token.approve(self.holder, venue, src_amount)
            reported = self._call_venue(src_asset, src_amount, dest_asset)
            src_token.approve(self.holder, venue, 0)

        src_after = src_token.balance_of(self.holder)
        dest_after = dest_token.balance_of(self.holder)

        src_spent = checked_sub(src_before, src_after)
        dest_received = checked_sub(dest_after, dest_before)

        if reported == 0 or dest_received == 0 or src_spent == 0:
            raise ZeroFill(
                f"{src_asset}->{dest_asset}: reported={reported} "
                f"received={dest_received} spent={src_spent}"
            )

        result = TradeResult(
            src_asset=src_asset,
            dest_asset=dest_asset,
            src_requested=src_amount,
            src_spent=src_spent,
            dest_received=dest_received,
            dest_reported=reported,
            dest_price_in_src=calc_unit_price(
                src_spent, dest_received, src_token.decimals, dest_token.decimals
            ),
            src_price_in_dest=calc_unit_price(
                dest_received, src_spent, dest_token.decimals, src_token.decimals
            ),
        )

        logger.debug(
            "trade %s->%s requested=%d spent=%d received=%d reported=%d price=%d",
            src_asset,
            dest_asset,
            src_amount,
            src_spent,
            dest_received,
            reported,
            result.dest_price_in_src,
        )
        return result

    def _call_venue(self, src_asset: str, src_amount: int, dest_asset: str) -> int:
        return self._venue.trade(
            self.holder,
            src_asset,
            src_amount,
            dest_asset,
            self.holder,
            MAX_QTY,
            MIN_RATE,
            WALLET_FEE_ID,
        )
