"""Gatekeeper — гейты допуска операций фонда.

- GATE 0: фаза цикла для операции
- GATE 1: скрининг актива
"""

from .gates.gate_00_phase import FundOperation, PhaseGate, PhaseGateResult
from .gates.gate_01_asset_screening import AssetScreeningGate, AssetScreeningResult

__all__ = [
    "FundOperation",
    "PhaseGate",
    "PhaseGateResult",
    "AssetScreeningGate",
    "AssetScreeningResult",
]
