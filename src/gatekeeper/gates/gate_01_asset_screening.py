"""GATE 1: Asset Screening

Допуск актива к торговле (open_investment, deposit/withdraw в актив,
sell_leftover_asset).

Порядок проверок:
1. Ручной DENY (злонамеренный актив) → блокировка
2. Актив неизвестен реестру → блокировка
3. Ручной ALLOW → пропуск без автоматических проверок
4. Reference-актив → пропуск
5. Нулевой total supply → блокировка
6. decimals <= min_asset_decimals или > MAX_DECIMALS → блокировка

Ручные решения — состояние gate, поэтому он участвует в транзакциях
(snapshot/restore).
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.core.domain.config import AssetOverride
from src.core.errors import InvalidAsset
from src.core.math.fixed_point import MAX_DECIMALS

if TYPE_CHECKING:
    from src.fund.interfaces import AssetRegistry


@dataclass(frozen=True)
class AssetScreeningResult:
    """Результат GATE 1."""

    allowed: bool
    block_reason: str

    asset: str
    override: AssetOverride | None

    details: str


class AssetScreeningGate:
    """GATE 1: Asset Screening."""

    def __init__(self, registry: "AssetRegistry", reference_asset: str, min_asset_decimals: int = 0):
        self._registry = registry
        self._reference_asset = reference_asset
        self.min_asset_decimals = min_asset_decimals
        self._overrides: dict[str, AssetOverride] = {}

    def override_for(self, asset: str) -> AssetOverride | None:
        return self._overrides.get(asset)

    def set_override(self, asset: str, override: AssetOverride | None) -> None:
        """None снимает ручное решение."""
        if override is None:
            self._overrides.pop(asset, None)
        else:
            self._overrides[asset] = override

    def evaluate(self, asset: str) -> AssetScreeningResult:
        override = self._overrides.get(asset)

        def blocked(reason: str, details: str) -> AssetScreeningResult:
            return AssetScreeningResult(
                allowed=False, block_reason=reason, asset=asset, override=override, details=details
            )

        # 1. Ручной DENY (высший приоритет)
        if override == AssetOverride.DENY:
            return blocked("asset_denied", f"{asset} is manually denied")

        # 2. Реестр
        if asset not in self._registry:
            return blocked("asset_unknown", f"{asset} is not a registered asset")

        # 3-4. Ручной ALLOW / reference-актив
        if override == AssetOverride.ALLOW or asset == self._reference_asset:
            return AssetScreeningResult(
                allowed=True,
                block_reason="",
                asset=asset,
                override=override,
                details=f"PASS: {asset} (override={override.value if override else None})",
            )

        token = self._registry.get(asset)

        # 5. Supply
        if token.total_supply() == 0:
            return blocked("asset_zero_supply", f"{asset} has zero total supply")

        # 6. Decimals
        if token.decimals <= self.min_asset_decimals:
            return blocked(
                "asset_decimals_too_low",
                f"{asset} decimals={token.decimals} <= min_asset_decimals={self.min_asset_decimals}",
            )
        if token.decimals > MAX_DECIMALS:
            return blocked(
                "asset_decimals_too_high", f"{asset} decimals={token.decimals} > {MAX_DECIMALS}"
            )

        return AssetScreeningResult(
            allowed=True,
            block_reason="",
            asset=asset,
            override=override,
            details=f"PASS: {asset} supply={token.total_supply()} decimals={token.decimals}",
        )

    def require(self, asset: str) -> AssetScreeningResult:
        """
        Raises:
            InvalidAsset: Если актив не прошёл скрининг
        """
        result = self.evaluate(asset)
        if not result.allowed:
            raise InvalidAsset(f"{result.block_reason}: {result.details}")
        return result

    # -------------------------------------------------------------------------
    # Journaled
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict[str, AssetOverride]:
        return dict(self._overrides)

    def restore(self, snapshot: dict[str, AssetOverride]) -> None:
        self._overrides = dict(snapshot)
