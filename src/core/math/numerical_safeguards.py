"""
Numerical Safeguards — Safe Math Primitives

Модуль обеспечивает численную устойчивость итерационного движка:
- Epsilon-параметр zero-derivative guard
- NaN/Inf детекция для предотвращения распространения невалидных значений
- Равномерные сетки абсцисс для сэмплирования функций
- Валидация параметров (tolerance, max_iterations, границы домена)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. NaN/Inf никогда не пропагируют молча (детектируются и классифицируются)
2. Zero-derivative порог абсолютный, не зависит от масштаба x или f(x)
3. Все операции детерминированы и воспроизводимы
"""

import math
from typing import Final

# =============================================================================
# EPSILON-ПАРАМЕТРЫ
# =============================================================================

# Абсолютный порог для zero-derivative guard.
# |f'(x)| < EPS_ZERO_DERIVATIVE → итерация Ньютона останавливается
EPS_ZERO_DERIVATIVE: Final[float] = 1e-10


# =============================================================================
# NaN/Inf ДЕТЕКЦИЯ
# =============================================================================


def is_valid_float(value: float) -> bool:
    """
    Проверка, является ли float валидным (не NaN, не Inf).

    Args:
        value: Проверяемое значение

    Returns:
        True если значение валидное (finite), False если NaN или Inf
    """
    return math.isfinite(value)


def describe_non_finite(value: float) -> str:
    """
    Человекочитаемое описание невалидного float.

    Examples:
        >>> describe_non_finite(float('nan'))
        'NaN'
        >>> describe_non_finite(float('-inf'))
        '-Infinity'
    """
    if math.isnan(value):
        return "NaN"
    if value > 0:
        return "Infinity"
    return "-Infinity"


# =============================================================================
# ПОРОГИ
# =============================================================================


def is_below_threshold(value: float, threshold: float) -> bool:
    """
    Строгая проверка abs(value) < threshold.

    Используется zero-derivative guard: производная ровно на пороге
    считается допустимой.

    Raises:
        ValueError: Если threshold <= 0
    """
    if threshold <= 0:
        raise ValueError(f"threshold must be positive, got {threshold}")

    return abs(value) < threshold


# =============================================================================
# СЕТКИ
# =============================================================================


def uniform_grid(start: float, stop: float, count: int) -> list[float]:
    """
    Равномерная сетка из count точек от start до stop включительно.

    Точки вычисляются интерполяцией start * (1 - t) + stop * t, t = i / (count - 1):
    без накопления ошибки сложения и без overflow ширины stop - start
    (например, [-1e308, 1e308]). Концы сетки ровно start и stop.

    Args:
        start: Левая граница
        stop: Правая граница (start < stop)
        count: Количество точек (>= 2)

    Returns:
        Список абсцисс длины count

    Raises:
        ValueError: Если границы невалидны или count < 2

    Examples:
        >>> uniform_grid(0.0, 1.0, 5)
        [0.0, 0.25, 0.5, 0.75, 1.0]
    """
    validate_interval(start, stop, "start", "stop")

    if isinstance(count, bool) or not isinstance(count, int) or count < 2:
        raise ValueError(f"count must be an integer >= 2, got {count!r}")

    last = count - 1
    grid = [start]
    for i in range(1, last):
        t = i / last
        grid.append(start * (1.0 - t) + stop * t)
    grid.append(stop)
    return grid


# =============================================================================
# ВАЛИДАЦИЯ И ПРОВЕРКИ
# =============================================================================


def validate_finite(value: float, name: str) -> None:
    """
    Валидация, что значение — конечный float.

    Raises:
        ValueError: Если value NaN/Inf или не число
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a real number, got {value!r}")

    if not is_valid_float(value):
        raise ValueError(f"{name} must be a valid float (not NaN/Inf), got {value}")


def validate_positive(value: float, name: str) -> None:
    """
    Валидация, что значение строго положительное и конечное.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)

    Raises:
        ValueError: Если value <= 0 или NaN/Inf
    """
    validate_finite(value, name)

    if value <= 0:
        raise ValueError(f"{name} must be positive (> 0), got {value}")


def validate_positive_int(value: int, name: str) -> None:
    """
    Валидация, что значение — целое число > 0.

    bool не принимается как целое.

    Raises:
        ValueError: Если value не int или value <= 0
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")

    if value <= 0:
        raise ValueError(f"{name} must be positive (> 0), got {value}")


def validate_interval(lower: float, upper: float, lower_name: str, upper_name: str) -> None:
    """
    Валидация невырожденного интервала lower < upper.

    Raises:
        ValueError: Если границы NaN/Inf или lower >= upper
    """
    validate_finite(lower, lower_name)
    validate_finite(upper, upper_name)

    if lower >= upper:
        raise ValueError(
            f"{lower_name} must be < {upper_name}, got {lower_name}={lower}, {upper_name}={upper}"
        )
