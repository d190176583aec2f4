"""
Fixed-Point Safeguards — checked integer math

Модуль обеспечивает безопасную целочисленную арифметику для всех расчётов фонда:
- Фиксированная точность PRECISION = 10**18 для ставок и цен
- Checked операции (add/sub/mul/div) в диапазоне [0, MAX_UINT]
- Явная ошибка вместо тихого переполнения или деления на ноль
- Вывод цены за единицу из наблюдаемых количеств с учётом decimals

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Отрицательный результат или выход за MAX_UINT → ArithmeticOverflow
2. Деление на ноль никогда не происходит молча → DivisionByZero
3. Все операции детерминированы: округление только вниз (floor)
4. bool не принимается как количество
"""

from typing import Final

from src.core.errors import ArithmeticOverflow, DivisionByZero

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Знаменатель фиксированной точности для ставок, цен и отношений
PRECISION: Final[int] = 10**18

# Верхняя граница любого промежуточного значения
MAX_UINT: Final[int] = 2**256 - 1

# Максимальное количество, передаваемое бирже как "без ограничения"
MAX_QTY: Final[int] = 10**28

# Максимальный decimals актива, для которого считаем цены
MAX_DECIMALS: Final[int] = 18


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def is_amount(value: object) -> bool:
    """
    Проверка, что значение — допустимое количество (int в [0, MAX_UINT]).

    bool явно исключён, хотя и является подклассом int.
    """
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= MAX_UINT
    )


def validate_amount(value: object, name: str) -> int:
    """
    Валидация количества.

    Raises:
        ArithmeticOverflow: Если значение не int, отрицательное или > MAX_UINT
    """
    if not is_amount(value):
        raise ArithmeticOverflow(f"{name} must be an integer in [0, MAX_UINT], got {value!r}")
    return value  # type: ignore[return-value]


def validate_rate(value: object, name: str) -> int:
    """
    Валидация ставки как доли PRECISION.

    Raises:
        ArithmeticOverflow: Если ставка вне [0, PRECISION]
    """
    validate_amount(value, name)
    if value > PRECISION:  # type: ignore[operator]
        raise ArithmeticOverflow(f"{name} must be <= PRECISION, got {value}")
    return value  # type: ignore[return-value]


def _bounded(result: int, op: str) -> int:
    if result < 0:
        raise ArithmeticOverflow(f"{op}: underflow ({result})")
    if result > MAX_UINT:
        raise ArithmeticOverflow(f"{op}: overflow")
    return result


# =============================================================================
# CHECKED ОПЕРАЦИИ
# =============================================================================


def checked_add(a: int, b: int) -> int:
    """a + b с проверкой переполнения."""
    return _bounded(validate_amount(a, "a") + validate_amount(b, "b"), "add")


def checked_sub(a: int, b: int) -> int:
    """
    a - b с проверкой underflow.

    Examples:
        >>> checked_sub(10, 3)
        7
        >>> checked_sub(3, 10)  # doctest: +SKIP
        Traceback (most recent call last):
            ...
        ArithmeticOverflow: sub: underflow (-7)
    """
    return _bounded(validate_amount(a, "a") - validate_amount(b, "b"), "sub")


def checked_mul(a: int, b: int) -> int:
    """a * b с проверкой переполнения."""
    return _bounded(validate_amount(a, "a") * validate_amount(b, "b"), "mul")


def checked_div(a: int, b: int) -> int:
    """
    Целочисленное деление вниз с явной ошибкой при b == 0.

    Raises:
        DivisionByZero: Если b == 0
    """
    validate_amount(a, "a")
    if validate_amount(b, "b") == 0:
        raise DivisionByZero(f"division of {a} by zero")
    return a // b


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    a * b // denominator с проверкой промежуточного произведения.

    Основной примитив пропорциональных расчётов (shares, stake, commission).
    """
    return checked_div(checked_mul(a, b), denominator)


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """
    Как mul_div, но с округлением вверх (остаток округления остаётся пулу).

    Examples:
        >>> mul_div_up(10, 1, 3)
        4
    """
    product = checked_mul(a, b)
    if validate_amount(denominator, "denominator") == 0:
        raise DivisionByZero(f"division of {product} by zero")
    return -(-product // denominator)


def frac_mul(value: int, rate: int) -> int:
    """
    Применение ставки: value * rate // PRECISION.

    Examples:
        >>> frac_mul(1000, PRECISION // 5)
        200
    """
    return mul_div(value, validate_rate(rate, "rate"), PRECISION)


def fixed_ratio(numerator: int, denominator: int) -> int:
    """Отношение numerator / denominator в единицах PRECISION."""
    return mul_div(numerator, PRECISION, denominator)


def apply_ratio(value: int, ratio: int) -> int:
    """value * ratio // PRECISION (ratio может превышать PRECISION)."""
    return mul_div(value, ratio, PRECISION)


def saturating_sub(a: int, b: int) -> int:
    """max(0, a - b)."""
    validate_amount(a, "a")
    validate_amount(b, "b")
    return a - b if a > b else 0


# =============================================================================
# ЦЕНЫ ИЗ НАБЛЮДАЕМЫХ КОЛИЧЕСТВ
# =============================================================================


def calc_unit_price(
    paid_amount: int,
    received_amount: int,
    paid_decimals: int,
    received_decimals: int,
) -> int:
    """
    Цена одной целой единицы полученного актива в единицах уплаченного актива.

    Формула:
        price = paid * PRECISION * 10**received_decimals
                / (received * 10**paid_decimals)

    Args:
        paid_amount: Наблюдаемое списанное количество (smallest units)
        received_amount: Наблюдаемое полученное количество (smallest units)
        paid_decimals: decimals уплаченного актива
        received_decimals: decimals полученного актива

    Returns:
        Цена в единицах PRECISION

    Raises:
        DivisionByZero: Если received_amount == 0
        ArithmeticOverflow: Если decimals вне [0, MAX_DECIMALS]

    Examples:
        >>> calc_unit_price(200, 100, 18, 18) == 2 * PRECISION
        True
    """
    for name, dec in (("paid_decimals", paid_decimals), ("received_decimals", received_decimals)):
        if not isinstance(dec, int) or isinstance(dec, bool) or not 0 <= dec <= MAX_DECIMALS:
            raise ArithmeticOverflow(f"{name} must be in [0, {MAX_DECIMALS}], got {dec!r}")

    numerator = checked_mul(checked_mul(paid_amount, PRECISION), 10**received_decimals)
    denominator = checked_mul(received_amount, 10**paid_decimals)
    return checked_div(numerator, denominator)
