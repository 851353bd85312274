"""
CalculationRequest — Конфигурация одного расчёта

Immutable Pydantic модель входных параметров, которые внешний UI/CLI
передаёт движку. Соответствует схеме src/core/contracts/schema/calculation_request.json.
"""

from typing import Final

from pydantic import BaseModel, Field, field_validator

from src.core.domain.plot import PlotDomain

# Верхний предел бюджета итераций (единственный встроенный таймаут расчёта)
MAX_ITERATIONS_LIMIT: Final[int] = 100_000

# Количество точек сэмплирования кривой по умолчанию
DEFAULT_SAMPLE_POINTS: Final[int] = 101

# Верхний предел количества точек сэмплирования
MAX_SAMPLE_POINTS: Final[int] = 5_000

# Верхний предел max_iterations * sample_points для запроса с графиком
# (по одной серии касательной на итерацию, каждая длины sample_points)
MAX_PLOT_POINTS: Final[int] = 500_000


class CalculationRequest(BaseModel):
    """
    Параметры расчёта Newton-Raphson.

    Immutable модель (frozen=True). Граничная валидация выполняется до вызова
    движка: движок рассчитывает на корректные числовые параметры.
    """

    # Выражения
    function_expr: str = Field(..., min_length=1, description="Выражение f(x)")
    derivative_expr: str = Field(..., min_length=1, description="Выражение f'(x)")

    # Параметры итерации
    initial_guess: float = Field(..., allow_inf_nan=False, description="Начальное приближение x0")
    tolerance: float = Field(
        ..., gt=0, allow_inf_nan=False, description="Допуск сходимости |x_{n+1} - x_n|"
    )
    max_iterations: int = Field(
        ..., gt=0, le=MAX_ITERATIONS_LIMIT, description="Бюджет итераций"
    )

    # Визуализация (опционально)
    plot_domain: PlotDomain | None = Field(None, description="Окно графика")
    sample_points: int = Field(
        DEFAULT_SAMPLE_POINTS,
        ge=2,
        le=MAX_SAMPLE_POINTS,
        validate_default=True,
        description="Количество точек сэмплирования кривой",
    )

    model_config = {"frozen": True}

    @field_validator("function_expr", "derivative_expr")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Выражение не может состоять только из пробелов"""
        if not v.strip():
            raise ValueError("expression must not be blank")
        return v

    @field_validator("sample_points")
    @classmethod
    def validate_plot_budget(cls, v: int, info) -> int:
        """Объём графика ограничен: max_iterations * sample_points <= MAX_PLOT_POINTS"""
        max_iterations = info.data.get("max_iterations")
        if info.data.get("plot_domain") is None or max_iterations is None:
            return v
        if max_iterations * v > MAX_PLOT_POINTS:
            raise ValueError(
                f"max_iterations * sample_points must be <= {MAX_PLOT_POINTS} "
                f"when a plot is requested, got {max_iterations} * {v}"
            )
        return v
