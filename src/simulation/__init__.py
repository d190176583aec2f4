"""
Simulation — in-memory коллабораторы фонда

Токены, реестр активов, площадка обмена и часы для тестов и офлайн
прогонов циклов.
"""

from .clock import ManualClock
from .factory import SimulatedFund, build_simulated_fund
from .tokens import AssetRegistry, InMemoryToken, ReputationToken, ShareToken
from .venue import SimulatedVenue

__all__ = [
    "ManualClock",
    "SimulatedFund",
    "build_simulated_fund",
    "AssetRegistry",
    "InMemoryToken",
    "ReputationToken",
    "ShareToken",
    "SimulatedVenue",
]
