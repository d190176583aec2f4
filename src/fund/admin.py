"""
FundAdministration — административные изменения конфигурации

Только владелец (иначе Unauthorized). Новые значения проходят через
pydantic модели; нарушение ограничений → InvalidConfiguration.

Developer fee и exit fee можно только понижать.
"""

import logging

from pydantic import ValidationError

from src.core.domain.config import AssetOverride, FeeSchedule, PhaseLengths
from src.core.errors import InvalidConfiguration, Unauthorized
from src.cycle.state_machine import CycleStateMachine
from src.gatekeeper.gates.gate_01_asset_screening import AssetScreeningGate

from .accounting import FundAccounting
from .guard import TransactionGuard, guarded

logger = logging.getLogger(__name__)


class FundAdministration:
    """Owner-only операции над конфигурацией фонда."""

    def __init__(
        self,
        owner: str,
        guard: TransactionGuard,
        accounting: FundAccounting,
        cycle: CycleStateMachine,
        asset_gate: AssetScreeningGate,
    ):
        self._owner = owner
        self._guard = guard
        self._accounting = accounting
        self._cycle = cycle
        self._asset_gate = asset_gate

    @property
    def owner(self) -> str:
        return self._owner

    def _require_owner(self, caller: str) -> None:
        if caller != self._owner:
            raise Unauthorized(f"{caller} is not the fund owner")

    def _apply_fees(self, **update: int) -> FeeSchedule:
        try:
            fees = FeeSchedule.model_validate({**self._accounting.fees.model_dump(), **update})
        except ValidationError as e:
            raise InvalidConfiguration(str(e)) from e
        self._accounting.fees = fees
        logger.info("fees changed: %s", update)
        return fees

    # -------------------------------------------------------------------------
    # Fees
    # -------------------------------------------------------------------------

    @guarded("change_commission_rate")
    def change_commission_rate(self, caller: str, rate: int) -> FeeSchedule:
        self._require_owner(caller)
        return self._apply_fees(commission_rate=rate)

    @guarded("change_asset_fee_rate")
    def change_asset_fee_rate(self, caller: str, rate: int) -> FeeSchedule:
        self._require_owner(caller)
        return self._apply_fees(asset_fee_rate=rate)

    @guarded("change_developer_fee_rate")
    def change_developer_fee_rate(self, caller: str, rate: int) -> FeeSchedule:
        self._require_owner(caller)
        current = self._accounting.fees.developer_fee_rate
        if rate >= current:
            raise InvalidConfiguration(f"developer fee can only decrease ({rate} >= {current})")
        return self._apply_fees(developer_fee_rate=rate)

    @guarded("change_exit_fee_rate")
    def change_exit_fee_rate(self, caller: str, rate: int) -> FeeSchedule:
        self._require_owner(caller)
        current = self._accounting.fees.exit_fee_rate
        if rate >= current:
            raise InvalidConfiguration(f"exit fee can only decrease ({rate} >= {current})")
        return self._apply_fees(exit_fee_rate=rate)

    # -------------------------------------------------------------------------
    # Accounts / phases / assets
    # -------------------------------------------------------------------------

    @guarded("change_developer_account")
    def change_developer_account(self, caller: str, account: str) -> None:
        self._require_owner(caller)
        if not account or account == self._accounting.fund_address:
            raise InvalidConfiguration(f"invalid developer account {account!r}")
        self._accounting.developer_account = account
        logger.info("developer account changed to %s", account)

    @guarded("change_phase_lengths")
    def change_phase_lengths(self, caller: str, **lengths: int) -> PhaseLengths:
        """Частичное обновление: change_phase_lengths(owner, make_decisions=...)."""
        self._require_owner(caller)
        unknown = set(lengths) - set(PhaseLengths.model_fields)
        if unknown:
            raise InvalidConfiguration(f"unknown phases: {sorted(unknown)}")
        try:
            phase_lengths = PhaseLengths.model_validate(
                {**self._cycle.phase_lengths.model_dump(), **lengths}
            )
        except ValidationError as e:
            raise InvalidConfiguration(str(e)) from e
        self._cycle.update_phase_lengths(phase_lengths)
        logger.info("phase lengths changed: %s", lengths)
        return phase_lengths

    @guarded("set_asset_override")
    def set_asset_override(self, caller: str, asset: str, override: AssetOverride | None) -> None:
        """ALLOW / DENY; None снимает ручное решение."""
        self._require_owner(caller)
        self._asset_gate.set_override(asset, override)
        logger.info("asset override %s -> %s", asset, override.value if override else None)

    @guarded("transfer_ownership")
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._require_owner(caller)
        if not new_owner:
            raise InvalidConfiguration("new owner cannot be empty")
        self._owner = new_owner
        logger.info("ownership transferred %s -> %s", caller, new_owner)

    # -------------------------------------------------------------------------
    # Journaled
    # -------------------------------------------------------------------------

    def snapshot(self) -> str:
        return self._owner

    def restore(self, snapshot: str) -> None:
        self._owner = snapshot
