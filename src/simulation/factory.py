"""
build_simulated_fund — сборка фонда с in-memory коллабораторами

Используется тестами и симуляциями: реестр активов, reputation/share
токены, площадка с фиксированными ценами и ManualClock, связанные с
PooledFund.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from src.core.domain.config import FundConfig
from src.core.domain.fund_state import Phase
from src.core.math.fixed_point import PRECISION
from src.cycle.state_machine import PhaseTransitionResult
from src.fund.engine import PooledFund

from .clock import DEFAULT_START, ManualClock
from .tokens import AssetRegistry, InMemoryToken, ReputationToken, ShareToken
from .venue import SimulatedVenue

REFERENCE_ASSET = "DAI"
NATIVE_ASSET = "ETH"

# symbol -> decimals
DEFAULT_ASSETS: Mapping[str, int] = {"WETH": 18, "WBTC": 8, "USDC": 6}

# symbol -> цена одной целой единицы в reference (PRECISION)
DEFAULT_PRICES: Mapping[str, int] = {
    "ETH": 2_000 * PRECISION,
    "WETH": 2_000 * PRECISION,
    "WBTC": 30_000 * PRECISION,
    "USDC": PRECISION,
}

DEFAULT_LIQUIDITY = 10**30


@dataclass
class SimulatedFund:
    """Фонд плюс все его коллабораторы."""

    fund: PooledFund
    registry: AssetRegistry
    reputation: ReputationToken
    shares: ShareToken
    venue: SimulatedVenue
    clock: ManualClock

    @property
    def config(self) -> FundConfig:
        return self.fund.config

    @property
    def reference(self) -> InMemoryToken:
        return self.registry.get(self.fund.reference_asset)

    def token(self, asset: str) -> InMemoryToken:
        return self.registry.get(asset)

    def fund_account(self, account: str, asset: str, amount: int, approve: bool = True) -> None:
        """Выдать аккаунту актив и (по умолчанию) разрешить фонду его забрать."""
        token = self.registry.get(asset)
        token.mint(account, amount)
        if approve:
            token.approve(account, self.fund.address, token.allowance(account, self.fund.address) + amount)

    def advance(self, caller: str = "keeper") -> PhaseTransitionResult:
        """Дождаться конца фазы и перейти в следующую."""
        self.clock.advance(self.fund.cycle.time_remaining())
        return self.fund.advance_phase(caller)

    def advance_to(self, phase: Phase, caller: str = "keeper") -> None:
        """Переходы до указанной фазы (не более одного полного круга)."""
        for _ in range(3):
            if self.fund.phase == phase:
                return
            self.advance(caller)


def build_simulated_fund(
    config: FundConfig | None = None,
    assets: Mapping[str, int] = DEFAULT_ASSETS,
    prices: Mapping[str, int] = DEFAULT_PRICES,
    native_asset: str | None = NATIVE_ASSET,
    venue_liquidity: int = DEFAULT_LIQUIDITY,
    start: int = DEFAULT_START,
    **config_overrides: Any,
) -> SimulatedFund:
    """
    Сборка фонда.

    Args:
        config: готовая конфигурация (иначе собирается из config_overrides)
        assets: торгуемые активы symbol -> decimals (кроме reference и native)
        prices: цены активов в reference
        native_asset: нативный актив (None — без нативного актива)
        venue_liquidity: запас каждого актива на площадке
        start: начальное время
    """
    if config is None:
        params: dict[str, Any] = {
            "owner": "owner",
            "developer_account": "developer",
            "reference_asset": REFERENCE_ASSET,
            "native_asset": native_asset,
        }
        params.update(config_overrides)
        config = FundConfig.model_validate(params)

    clock = ManualClock(start)

    registry = AssetRegistry()
    registry.add(InMemoryToken(config.reference_asset, 18))
    for symbol, decimals in assets.items():
        registry.add(InMemoryToken(symbol, decimals))
    if config.native_asset is not None:
        registry.add(InMemoryToken(config.native_asset, 18))

    reputation = ReputationToken(owner=config.fund_address)
    shares = ShareToken(owner=config.fund_address)

    venue = SimulatedVenue(registry, native_asset=config.native_asset)
    for symbol in registry:
        registry.get(symbol).mint(venue.address, venue_liquidity)
        if symbol != config.reference_asset and symbol in prices:
            venue.set_price(symbol, prices[symbol], config.reference_asset)

    fund = PooledFund(
        config=config,
        registry=registry,
        reputation=reputation,
        shares=shares,
        venue=venue,
        clock=clock,
    )
    if config.native_asset is not None:
        registry.get(config.native_asset).register_receiver(fund.address, fund.receive_unsolicited)

    return SimulatedFund(
        fund=fund,
        registry=registry,
        reputation=reputation,
        shares=shares,
        venue=venue,
        clock=clock,
    )
