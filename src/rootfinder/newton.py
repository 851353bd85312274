"""
Newton-Raphson Solver — итерационный поиск корня f(x) = 0

Алгоритм (для i в 0 .. max_iterations-1, x = x0):
1. fx = f(x), fpx = f'(x); сбой или NaN/Inf → EVALUATION_ERROR
2. |fpx| < zero_derivative_eps → ZERO_DERIVATIVE (текущий шаг не записывается)
3. x_next = x - fx / fpx; err = |x_next - x|
4. запись IterationRecord в trace
5. err < tolerance → SolveSuccess(root=x_next, iteration_count=i+1)
6. x = x_next
Исчерпан бюджет → NOT_CONVERGED с последним x_next как оценкой.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. NaN/Inf классифицируются как EVALUATION_ERROR в точке возникновения
2. Zero-derivative порог абсолютный (по умолчанию 1e-10)
3. Солвер не бросает исключений на пользовательских данных: всегда SolveResult
4. Нет разделяемого состояния между вызовами solve()
"""

import logging
from dataclasses import dataclass
from typing import Callable

from src.core.domain.iteration import IterationRecord
from src.core.domain.result import ErrorKind, SolveFailure, SolveResult, SolveSuccess
from src.core.math.numerical_safeguards import (
    EPS_ZERO_DERIVATIVE,
    describe_non_finite,
    is_below_threshold,
    is_valid_float,
    validate_finite,
    validate_positive,
    validate_positive_int,
)
from src.rootfinder.expression import ExpressionEvaluationError

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

RealFunction = Callable[[float], float]


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class SolverConfig:
    """Конфигурация солвера.

    zero_derivative_eps — абсолютный порог, не масштабируется по |x| или |f(x)|.
    """

    zero_derivative_eps: float = EPS_ZERO_DERIVATIVE


class _StepFault(Exception):
    """Внутренний сигнал: значение шага невалидно (domain error или NaN/Inf)"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


# =============================================================================
# SOLVER
# =============================================================================


class NewtonRaphsonSolver:
    """Newton-Raphson солвер для функций одной вещественной переменной."""

    def __init__(self, config: SolverConfig | None = None):
        """
        Args:
            config: конфигурация солвера (опционально, используется default)
        """
        self.config = config or SolverConfig()
        validate_positive(self.config.zero_derivative_eps, "zero_derivative_eps")

    def solve(
        self,
        f: RealFunction,
        f_prime: RealFunction,
        x0: float,
        tolerance: float,
        max_iterations: int,
    ) -> SolveResult:
        """Поиск корня f(x) = 0 методом Ньютона.

        Args:
            f: функция (обычно CompiledExpression)
            f_prime: производная f
            x0: начальное приближение
            tolerance: допуск сходимости |x_{n+1} - x_n| (> 0)
            max_iterations: бюджет итераций (> 0)

        Returns:
            SolveSuccess или SolveFailure

        Raises:
            ValueError: если x0, tolerance или max_iterations некорректны
                (граничная валидация — ответственность вызывающей стороны)
        """
        validate_finite(x0, "x0")
        validate_positive(tolerance, "tolerance")
        validate_positive_int(max_iterations, "max_iterations")

        eps = self.config.zero_derivative_eps
        trace: list[IterationRecord] = []
        x = float(x0)

        for i in range(max_iterations):
            # 1. Значения функции и производной
            try:
                fx = self._evaluate(f, x, "f")
                fpx = self._evaluate(f_prime, x, "f'")
            except _StepFault as fault:
                return self._evaluation_failure(trace, i, x, fault.reason)

            # 2. Zero-derivative guard
            if is_below_threshold(fpx, eps):
                logger.info("Zero derivative at iteration %d: x=%r f'(x)=%r", i, x, fpx)
                return SolveFailure(
                    kind=ErrorKind.ZERO_DERIVATIVE,
                    reason=f"|f'(x)| = {abs(fpx):.3e} < {eps:.0e} at x = {x!r}",
                    partial_trace=tuple(trace),
                    failed_iteration=i,
                    attempted_x=x,
                )

            # 3. Шаг Ньютона
            try:
                x_next = self._finite(x - fx / fpx, "next iterate")
                step_error = self._finite(abs(x_next - x), "step error")
                self._finite(fx - fpx * x, "tangent intercept")
            except (_StepFault, OverflowError) as fault:
                reason = fault.reason if isinstance(fault, _StepFault) else "numeric overflow"
                return self._evaluation_failure(trace, i, x, reason)

            # 4. Запись итерации
            trace.append(IterationRecord.from_step(i, x, fx, fpx, x_next))
            logger.debug(
                "Iter #%d: x=%r f(x)=%r f'(x)=%r x_next=%r err=%r",
                i, x, fx, fpx, x_next, step_error,
            )

            # 5. Проверка сходимости
            if step_error < tolerance:
                logger.info("Converged to %r in %d iterations", x_next, i + 1)
                return SolveSuccess(root=x_next, iteration_count=i + 1, trace=tuple(trace))

            # 6. Следующий итерат
            x = x_next

        estimate = trace[-1].successor()
        logger.info(
            "No convergence after %d iterations, last estimate %r", max_iterations, estimate
        )
        return SolveFailure(
            kind=ErrorKind.NOT_CONVERGED,
            reason=f"no convergence within {max_iterations} iterations",
            partial_trace=tuple(trace),
            estimate=estimate,
        )

    @staticmethod
    def _evaluate(func: RealFunction, x: float, label: str) -> float:
        """Вычисление func(x) с классификацией domain errors и NaN/Inf.

        Raises:
            _StepFault: при сбое вычисления или невалидном значении
        """
        try:
            value = func(x)
        except ExpressionEvaluationError as e:
            raise _StepFault(f"{label}(x): {e.reason}") from e
        except (ArithmeticError, ValueError) as e:
            raise _StepFault(f"{label}(x): {e}") from e

        if not is_valid_float(value):
            raise _StepFault(f"{label}(x) is {describe_non_finite(value)}")
        return float(value)

    @staticmethod
    def _finite(value: float, label: str) -> float:
        if not is_valid_float(value):
            raise _StepFault(f"{label} is {describe_non_finite(value)}")
        return value

    @staticmethod
    def _evaluation_failure(
        trace: list[IterationRecord],
        iteration: int,
        x: float,
        reason: str,
    ) -> SolveFailure:
        """Создание EVALUATION_ERROR результата.

        Args:
            trace: накопленные записи
            iteration: номер итерации сбоя
            x: точка, в которой произошёл сбой
            reason: описание сбоя

        Returns:
            SolveFailure с kind=EVALUATION_ERROR
        """
        logger.info("Evaluation error at iteration %d, x=%r: %s", iteration, x, reason)
        return SolveFailure(
            kind=ErrorKind.EVALUATION_ERROR,
            reason=reason,
            partial_trace=tuple(trace),
            failed_iteration=iteration,
            attempted_x=x,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def solve(
    f: RealFunction,
    f_prime: RealFunction,
    x0: float,
    tolerance: float,
    max_iterations: int,
    config: SolverConfig | None = None,
) -> SolveResult:
    """
    Поиск корня с конфигурацией по умолчанию.

    Examples:
        >>> from src.rootfinder.expression import compile_expression
        >>> result = solve(compile_expression("x*x - 2"), compile_expression("2*x"), 1.0, 1e-7, 50)
        >>> round(result.root, 8)
        1.41421356
    """
    return NewtonRaphsonSolver(config).solve(f, f_prime, x0, tolerance, max_iterations)
