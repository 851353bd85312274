"""
IterationRecord — Модель одного шага Newton-Raphson

Immutable Pydantic модель, фиксирующая состояние итерации:
- итерат x_n до шага и значения f(x_n), f'(x_n)
- ошибку шага |x_{n+1} - x_n|
- касательную y = slope * x + intercept, построенную в точке (x_n, f(x_n))

ИНВАРИАНТЫ:
1. tangent_slope == f_prime_x_n
2. tangent_intercept == f_x_n - f_prime_x_n * x_n (point-slope форма)
3. step_error == |x_next - x_n|, если x_next известен
"""

import math

from pydantic import BaseModel, Field, field_validator

# Допуск на округление при проверке инвариантов касательной
_INVARIANT_REL_TOL = 1e-12
_INVARIANT_ABS_TOL = 1e-12


class IterationRecord(BaseModel):
    """
    Запись одного шага Newton-Raphson.

    Создаётся солвером через from_step(); после добавления в trace не меняется
    (frozen=True). Порядок записей в trace = порядок итераций.
    """

    index: int = Field(..., ge=0, description="Номер итерации (с нуля)")

    # Состояние до шага
    x_n: float = Field(..., allow_inf_nan=False, description="Итерат до шага")
    f_x_n: float = Field(..., allow_inf_nan=False, description="f(x_n)")
    f_prime_x_n: float = Field(..., allow_inf_nan=False, description="f'(x_n)")

    # Результат шага
    x_next: float | None = Field(
        None, allow_inf_nan=False, description="Следующий итерат x_{n+1} (если вычислен)"
    )
    step_error: float | None = Field(
        None, ge=0, allow_inf_nan=False, description="|x_{n+1} - x_n| (если вычислен)"
    )

    # Касательная для визуализации
    tangent_slope: float = Field(..., allow_inf_nan=False, description="Наклон касательной")
    tangent_intercept: float = Field(
        ..., allow_inf_nan=False, description="Свободный член касательной"
    )

    model_config = {"frozen": True}

    @field_validator("step_error")
    @classmethod
    def validate_step_error(cls, v: float | None, info) -> float | None:
        """Проверка, что step_error согласован с x_next"""
        if v is None or info.data.get("x_next") is None or "x_n" not in info.data:
            return v
        expected = abs(info.data["x_next"] - info.data["x_n"])
        if not math.isclose(v, expected, rel_tol=_INVARIANT_REL_TOL, abs_tol=_INVARIANT_ABS_TOL):
            raise ValueError(f"step_error {v!r} does not match |x_next - x_n| = {expected!r}")
        return v

    @field_validator("tangent_slope")
    @classmethod
    def validate_tangent_slope(cls, v: float, info) -> float:
        """Проверка, что наклон касательной равен f'(x_n)"""
        if "f_prime_x_n" in info.data and v != info.data["f_prime_x_n"]:
            raise ValueError(
                f"tangent_slope {v!r} must equal f_prime_x_n {info.data['f_prime_x_n']!r}"
            )
        return v

    @field_validator("tangent_intercept")
    @classmethod
    def validate_tangent_intercept(cls, v: float, info) -> float:
        """Проверка point-slope формы: intercept = f(x_n) - f'(x_n) * x_n"""
        if not {"x_n", "f_x_n", "f_prime_x_n"} <= info.data.keys():
            return v
        expected = info.data["f_x_n"] - info.data["f_prime_x_n"] * info.data["x_n"]
        if not math.isclose(v, expected, rel_tol=_INVARIANT_REL_TOL, abs_tol=_INVARIANT_ABS_TOL):
            raise ValueError(
                f"tangent_intercept {v!r} does not match f_x_n - f_prime_x_n * x_n = {expected!r}"
            )
        return v

    @classmethod
    def from_step(
        cls,
        index: int,
        x_n: float,
        f_x_n: float,
        f_prime_x_n: float,
        x_next: float | None = None,
    ) -> "IterationRecord":
        """
        Построение записи из значений шага с выводом производных полей.

        Args:
            index: Номер итерации
            x_n: Итерат до шага
            f_x_n: f(x_n)
            f_prime_x_n: f'(x_n)
            x_next: Следующий итерат (None, если шаг не выполнен)

        Returns:
            IterationRecord с вычисленными step_error, tangent_slope, tangent_intercept
        """
        step_error = abs(x_next - x_n) if x_next is not None else None
        return cls(
            index=index,
            x_n=x_n,
            f_x_n=f_x_n,
            f_prime_x_n=f_prime_x_n,
            x_next=x_next,
            step_error=step_error,
            tangent_slope=f_prime_x_n,
            tangent_intercept=f_x_n - f_prime_x_n * x_n,
        )

    def tangent_at(self, x: float) -> float:
        """
        Ордината касательной в точке x.

        Returns:
            tangent_slope * x + tangent_intercept
        """
        return self.tangent_slope * x + self.tangent_intercept

    def anchor(self) -> tuple[float, float]:
        """Точка касания (x_n, f(x_n))"""
        return (self.x_n, self.f_x_n)

    def successor(self) -> float:
        """
        Следующий итерат Ньютона: x_next, если шаг выполнен, иначе x_n - f(x_n) / f'(x_n).

        Совпадает с корнем касательной tangent_at(x) = 0.

        Raises:
            ZeroDivisionError: Если x_next не задан и f'(x_n) == 0
        """
        if self.x_next is not None:
            return self.x_next
        return self.x_n - self.f_x_n / self.f_prime_x_n
