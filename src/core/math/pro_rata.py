"""
ProRata — централизованный модуль пропорциональных расчётов фонда

Единственный допустимый способ преобразований между:
- reference amount (единицы reference-актива)
- shares (доли фонда)
- reputation (stake менеджеров)

Плюс расчёт итогов цикла (profit, commission, developer fee) и
reputation reward/penalty по закрытой инвестиции.

ЗАПРЕЩЕНО считать доли/комиссии в обход этого модуля.
"""

from dataclasses import dataclass

from src.core.errors import DivisionByZero
from src.core.math.fixed_point import (
    PRECISION,
    apply_ratio,
    checked_sub,
    fixed_ratio,
    frac_mul,
    mul_div,
    mul_div_up,
    saturating_sub,
    validate_amount,
)


# =============================================================================
# SHARES
# =============================================================================


def shares_for_deposit(reference_amount: int, share_supply: int, pool_value: int) -> int:
    """
    Количество shares за внесённые reference-единицы.

    shares = reference_amount * share_supply / pool_value
    Первый депозит (share_supply == 0 или pool_value == 0) — 1:1.

    Examples:
        >>> shares_for_deposit(500, 1000, 1000)
        500
        >>> shares_for_deposit(500, 0, 0)
        500
    """
    validate_amount(reference_amount, "reference_amount")
    if share_supply == 0 or pool_value == 0:
        return reference_amount
    return mul_div(reference_amount, share_supply, pool_value)


def shares_for_withdrawal(reference_amount: int, share_supply: int, pool_value: int) -> int:
    """
    Количество shares, сжигаемых при выводе reference_amount.

    Округление вверх: остающиеся держатели не теряют на округлении.

    Examples:
        >>> shares_for_withdrawal(500, 1000, 2000)
        250
        >>> shares_for_withdrawal(1, 1000, 3000)
        1

    Raises:
        DivisionByZero: Если pool_value == 0
    """
    if pool_value == 0:
        raise DivisionByZero("cannot price a withdrawal from an empty pool")
    return mul_div_up(reference_amount, share_supply, pool_value)


# =============================================================================
# REPUTATION
# =============================================================================


def stake_allocation(stake: int, reputation_supply: int, pool_value: int) -> int:
    """
    Reference-сумма, выделяемая под инвестицию.

    allocation = stake / reputation_supply * pool_value
    (доля от всего пула, а не от доли конкретного менеджера)
    """
    if reputation_supply == 0:
        raise DivisionByZero("reputation supply is zero")
    return mul_div(stake, pool_value, reputation_supply)


def commission_share(commission_pool: int, reputation_balance: int, reputation_supply: int) -> int:
    """Комиссия аккаунта пропорционально reputation на момент вывода."""
    if reputation_supply == 0:
        raise DivisionByZero("reputation supply is zero")
    return mul_div(commission_pool, reputation_balance, reputation_supply)


@dataclass(frozen=True)
class ReputationSettlement:
    """Итог reputation по закрытой инвестиции."""

    ratio: int  # sell_price / buy_price в единицах PRECISION
    owed: int  # stake * ratio
    returned: int  # возвращается из удержанного stake
    minted: int  # дополнительно эмитируется (reward)
    burned: int  # сжигается из удержанного stake (penalty)

    @property
    def total_returned(self) -> int:
        return self.returned + self.minted


def reputation_settlement(stake: int, buy_price: int, sell_price: int) -> ReputationSettlement:
    """
    Reward/penalty линейно по результату сделки.

    r = sell_price / buy_price
    owed = stake * r
    - owed > stake: вернуть stake, эмитировать owed - stake
    - иначе: вернуть owed, сжечь stake - owed

    Examples:
        >>> s = reputation_settlement(100, 2 * PRECISION, 3 * PRECISION)
        >>> (s.returned, s.minted, s.burned)
        (100, 50, 0)
        >>> s = reputation_settlement(100, 2 * PRECISION, 1 * PRECISION)
        >>> (s.returned, s.minted, s.burned)
        (50, 0, 50)
    """
    validate_amount(stake, "stake")
    if buy_price == 0:
        raise DivisionByZero("buy price is zero")

    ratio = fixed_ratio(sell_price, buy_price)
    owed = apply_ratio(stake, ratio)

    if owed > stake:
        return ReputationSettlement(
            ratio=ratio, owed=owed, returned=stake, minted=owed - stake, burned=0
        )
    return ReputationSettlement(
        ratio=ratio, owed=owed, returned=owed, minted=0, burned=stake - owed
    )


# =============================================================================
# ИТОГИ ЦИКЛА
# =============================================================================


@dataclass(frozen=True)
class CycleSettlement:
    """Результат расчёта конца цикла."""

    balance: int
    previous_pool_value: int
    profit: int
    performance_fee: int
    asset_fee: int
    developer_fee: int
    new_pool_value: int

    @property
    def commission(self) -> int:
        return self.performance_fee + self.asset_fee


def compute_cycle_settlement(
    balance: int,
    pool_value: int,
    commission_rate: int,
    asset_fee_rate: int,
    developer_fee_rate: int,
) -> CycleSettlement:
    """
    Расчёт прибыли и комиссий конца цикла.

    profit        = max(0, balance - pool_value)
    commission    = commission_rate * profit + asset_fee_rate * balance
    developer_fee = developer_fee_rate * balance
    new_pool      = balance - commission - developer_fee

    Raises:
        ArithmeticOverflow: Если сумма ставок допускает отрицательный new_pool
    """
    profit = saturating_sub(balance, pool_value)
    performance_fee = frac_mul(profit, commission_rate)
    asset_fee = frac_mul(balance, asset_fee_rate)
    developer_fee = frac_mul(balance, developer_fee_rate)

    new_pool_value = checked_sub(checked_sub(balance, performance_fee + asset_fee), developer_fee)

    return CycleSettlement(
        balance=balance,
        previous_pool_value=pool_value,
        profit=profit,
        performance_fee=performance_fee,
        asset_fee=asset_fee,
        developer_fee=developer_fee,
        new_pool_value=new_pool_value,
    )


def share_price(pool_value: int, share_supply: int) -> int:
    """Стоимость одной share в reference-единицах (PRECISION); 1.0 для пустого фонда."""
    if share_supply == 0:
        return PRECISION
    return fixed_ratio(pool_value, share_supply)
