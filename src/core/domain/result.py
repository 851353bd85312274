"""
SolveResult — Результат поиска корня

Сумма типов: либо SolveSuccess (корень найден), либо SolveFailure
(zero-derivative, исчерпан бюджет итераций, ошибка вычисления).
Ровно одно из двух; общий признак — свойство converged.

ErrorKind также покрывает ошибки, возникающие до солвера
(INVALID_INPUT на границе, INVALID_EXPRESSION при компиляции).
"""

from enum import Enum
from typing import Union

from pydantic import BaseModel, Field, field_validator

from src.core.domain.iteration import IterationRecord


# =============================================================================
# ENUMS
# =============================================================================


class ErrorKind(str, Enum):
    """Классификация ошибок расчёта"""

    INVALID_INPUT = "invalid_input"  # Невалидные поля запроса (граница)
    INVALID_EXPRESSION = "invalid_expression"  # Выражение не компилируется / canary probe
    EVALUATION_ERROR = "evaluation_error"  # Domain error или NaN/Inf в конкретной точке
    ZERO_DERIVATIVE = "zero_derivative"  # |f'(x)| < eps
    NOT_CONVERGED = "not_converged"  # Исчерпан max_iterations

    @property
    def is_soft(self) -> bool:
        """
        Мягкая ошибка: есть пригодная приближённая оценка корня.

        Только NOT_CONVERGED; остальные ошибки — жёсткие.
        """
        return self is ErrorKind.NOT_CONVERGED


# Ошибки, которые может вернуть солвер
SOLVER_ERROR_KINDS: frozenset[ErrorKind] = frozenset(
    {
        ErrorKind.EVALUATION_ERROR,
        ErrorKind.ZERO_DERIVATIVE,
        ErrorKind.NOT_CONVERGED,
    }
)


# =============================================================================
# SUCCESS
# =============================================================================


class SolveSuccess(BaseModel):
    """
    Успешное завершение: |x_{n+1} - x_n| < tolerance.

    Immutable модель (frozen=True).
    """

    root: float = Field(..., allow_inf_nan=False, description="Найденный корень x_{n+1}")
    iteration_count: int = Field(..., ge=1, description="Количество выполненных итераций")
    trace: tuple[IterationRecord, ...] = Field(..., description="Записи итераций по порядку")

    model_config = {"frozen": True}

    @field_validator("trace")
    @classmethod
    def validate_trace_length(
        cls, v: tuple[IterationRecord, ...], info
    ) -> tuple[IterationRecord, ...]:
        """Проверка, что в trace ровно iteration_count записей"""
        if "iteration_count" in info.data and len(v) != info.data["iteration_count"]:
            raise ValueError(
                f"trace length {len(v)} must equal iteration_count {info.data['iteration_count']}"
            )
        return v

    @property
    def converged(self) -> bool:
        return True


# =============================================================================
# FAILURE
# =============================================================================


class SolveFailure(BaseModel):
    """
    Неуспешное завершение солвера.

    - ZERO_DERIVATIVE: trace до текущего (непродвинувшегося) шага
    - EVALUATION_ERROR: failed_iteration и attempted_x указывают точку сбоя
    - NOT_CONVERGED: estimate — последний вычисленный x_{n+1}, trace полный

    Immutable модель (frozen=True).
    """

    kind: ErrorKind = Field(..., description="Тип ошибки солвера")
    reason: str = Field(..., min_length=1, description="Техническое описание причины")
    partial_trace: tuple[IterationRecord, ...] = Field(
        default=(), description="Накопленные записи итераций"
    )
    estimate: float | None = Field(
        None,
        allow_inf_nan=False,
        validate_default=True,
        description="Best-effort оценка корня (только NOT_CONVERGED)",
    )
    failed_iteration: int | None = Field(None, ge=0, description="Номер итерации сбоя")
    attempted_x: float | None = Field(None, description="Точка, в которой произошёл сбой")

    model_config = {"frozen": True}

    @field_validator("kind")
    @classmethod
    def validate_solver_kind(cls, v: ErrorKind) -> ErrorKind:
        """Солвер возвращает только EVALUATION_ERROR / ZERO_DERIVATIVE / NOT_CONVERGED"""
        if v not in SOLVER_ERROR_KINDS:
            raise ValueError(f"kind {v.value} cannot be produced by the solver")
        return v

    @field_validator("estimate")
    @classmethod
    def validate_estimate_only_when_soft(cls, v: float | None, info) -> float | None:
        """Оценка корня допустима только для мягкой ошибки"""
        kind = info.data.get("kind")
        if kind is None:
            return v
        if kind.is_soft and v is None:
            raise ValueError("NOT_CONVERGED failure must carry an estimate")
        if not kind.is_soft and v is not None:
            raise ValueError(f"{kind.value} failure must not carry an estimate")
        return v

    @property
    def converged(self) -> bool:
        return False

    @property
    def is_soft(self) -> bool:
        return self.kind.is_soft


SolveResult = Union[SolveSuccess, SolveFailure]
