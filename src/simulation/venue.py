"""
SimulatedVenue — площадка обмена с фиксированными курсами

Курс задаётся как количество целых единиц dest за одну целую единицу src
(PRECISION). Поведение настраивается для adversarial сценариев:
- fill_ratio — доля src, которую площадка реально забирает (partial fill)
- delivery_ratio — доля котировки, которую площадка реально доставляет
- reported_override — возвращаемое значение, не связанное с доставкой
- on_trade — callback внутри trade() (повторный вход в фонд)

Нативный src приходит как value до вызова; неизрасходованная часть
возвращается вызывающему обычным transfer().
"""

import logging
from typing import Callable

from src.core.errors import InvalidTrade
from src.core.math.fixed_point import PRECISION, frac_mul, mul_div, validate_rate

from .tokens import AssetRegistry

logger = logging.getLogger(__name__)


class SimulatedVenue:
    """Детерминированная площадка обмена для тестов и симуляций."""

    def __init__(self, registry: AssetRegistry, address: str = "venue", native_asset: str | None = None):
        self.address = address
        self.native_asset = native_asset
        self._registry = registry
        self._rates: dict[tuple[str, str], int] = {}

        self.fill_ratio = PRECISION
        self.delivery_ratio = PRECISION
        self.reported_override: int | None = None
        self.on_trade: Callable[[], object] | None = None
        self.trade_count = 0

    # -------------------------------------------------------------------------
    # Rates
    # -------------------------------------------------------------------------

    def set_rate(self, src_asset: str, dest_asset: str, rate: int) -> None:
        self._rates[(src_asset, dest_asset)] = rate

    def set_price(self, asset: str, price: int, reference_asset: str) -> None:
        """Цена одной целой единицы asset в reference (PRECISION), в обе стороны."""
        self._rates[(asset, reference_asset)] = price
        self._rates[(reference_asset, asset)] = mul_div(PRECISION, PRECISION, price)

    def quote(self, src_asset: str, src_amount: int, dest_asset: str) -> int:
        rate = self._rates.get((src_asset, dest_asset))
        if rate is None:
            raise InvalidTrade(f"no market {src_asset}->{dest_asset}")
        src_decimals = self._registry.get(src_asset).decimals
        dest_decimals = self._registry.get(dest_asset).decimals
        return src_amount * rate * 10**dest_decimals // (PRECISION * 10**src_decimals)

    def configure(
        self,
        fill_ratio: int | None = None,
        delivery_ratio: int | None = None,
        reported_override: int | None = None,
    ) -> None:
        if fill_ratio is not None:
            self.fill_ratio = validate_rate(fill_ratio, "fill_ratio")
        if delivery_ratio is not None:
            self.delivery_ratio = validate_rate(delivery_ratio, "delivery_ratio")
        self.reported_override = reported_override

    # -------------------------------------------------------------------------
    # Trade
    # -------------------------------------------------------------------------

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
    ) -> int:
        self.trade_count += 1
        if self.on_trade is not None:
            self.on_trade()

        src_token = self._registry.get(src_asset)
        dest_token = self._registry.get(dest_asset)

        consumed = frac_mul(src_amount, self.fill_ratio)
        if src_asset == self.native_asset:
            refund = src_amount - consumed
            if refund > 0:
                src_token.transfer(self.address, caller, refund)
        elif consumed > 0:
            src_token.transfer_from(self.address, caller, self.address, consumed)

        delivered = min(frac_mul(self.quote(src_asset, consumed, dest_asset), self.delivery_ratio), max_amount)
        if delivered > 0:
            dest_token.transfer(self.address, recipient, delivered)

        logger.debug(
            "venue %s->%s consumed=%d/%d delivered=%d", src_asset, dest_asset, consumed, src_amount, delivered
        )
        if self.reported_override is not None:
            return self.reported_override
        return delivered
