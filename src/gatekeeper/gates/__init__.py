"""Gates — индивидуальные гейты Gatekeeper системы.

- GATE 0: Phase Window (операция допустима только в своей фазе)
- GATE 1: Asset Screening (реестр, ручные ALLOW/DENY, supply, decimals)
"""

from .gate_00_phase import OPERATION_PHASES, FundOperation, PhaseGate, PhaseGateResult
from .gate_01_asset_screening import AssetScreeningGate, AssetScreeningResult

__all__ = [
    "OPERATION_PHASES",
    "FundOperation",
    "PhaseGate",
    "PhaseGateResult",
    "AssetScreeningGate",
    "AssetScreeningResult",
]
