"""
Calculator — фасад одного расчёта Newton-Raphson

Поток управления:
1. Граничная валидация запроса (InvalidInput)
2. Компиляция f и f' (InvalidExpression)
3. Solver → SolveResult (EVALUATION_ERROR / ZERO_DERIVATIVE / NOT_CONVERGED)
4. Геометрия графика, если задано окно
5. CalculationReport: корень, количество итераций, строки таблицы, серии графика

Калькулятор хранит только неизменяемую конфигурацию; один экземпляр можно
использовать из нескольких потоков. На пользовательских ошибках run() не
бросает исключений — каждый исход представлен отчётом.
"""

import logging
from typing import Any, Final, Mapping, Sequence

from pydantic import BaseModel, Field

from src.core.contracts.validators import InvalidInput, parse_form_fields, parse_request
from src.core.domain.iteration import IterationRecord
from src.core.domain.plot import PlotData
from src.core.domain.request import CalculationRequest
from src.core.domain.result import ErrorKind, SolveFailure, SolveResult
from src.rootfinder.expression import CompiledExpression, ExpressionCompiler, InvalidExpression
from src.rootfinder.geometry import build_plot_data
from src.rootfinder.newton import NewtonRaphsonSolver, SolverConfig

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


# =============================================================================
# CONSTANTS
# =============================================================================

# Количество знаков после запятой в отображаемых значениях
DEFAULT_DISPLAY_DIGITS: Final[int] = 8

# Плейсхолдер для отсутствующей ошибки шага
MISSING_VALUE_PLACEHOLDER: Final[str] = "-"

MSG_INVALID_EXPRESSION = (
    "Invalid {which} format. Please check your input. Error: {reason}"
)
MSG_ZERO_DERIVATIVE = "Derivative is zero. Cannot continue calculation."
MSG_NOT_CONVERGED = "Maximum iterations reached without convergence."
MSG_EVALUATION_ERROR = "Function could not be evaluated at x = {x} (iteration {iteration}): {reason}"


# =============================================================================
# REPORT
# =============================================================================


class IterationRow(BaseModel):
    """Строка таблицы итераций, готовая к отображению"""

    index: int = Field(..., ge=0)
    x_n: str
    f_x_n: str
    f_prime_x_n: str
    step_error: str

    model_config = {"frozen": True}


class CalculationReport(BaseModel):
    """
    Отчёт одного расчёта для рендеринга.

    ok=True только при сходимости. Для NOT_CONVERGED дополнительно
    заполнен estimate (best-effort оценка корня).
    """

    ok: bool
    error_kind: ErrorKind | None = None
    message: str | None = None

    root: float | None = None
    root_display: str | None = None
    estimate: float | None = None
    iteration_count: int = Field(0, ge=0)

    rows: tuple[IterationRow, ...] = ()
    plot: PlotData | None = None

    model_config = {"frozen": True}


def format_number(value: float, digits: int = DEFAULT_DISPLAY_DIGITS) -> str:
    """Фиксированное количество знаков после запятой"""
    return f"{value:.{digits}f}"


def format_rows(
    trace: Sequence[IterationRecord], digits: int = DEFAULT_DISPLAY_DIGITS
) -> tuple[IterationRow, ...]:
    """Строки таблицы итераций (index, x_n, f(x_n), f'(x_n), ошибка шага)"""
    return tuple(
        IterationRow(
            index=record.index,
            x_n=format_number(record.x_n, digits),
            f_x_n=format_number(record.f_x_n, digits),
            f_prime_x_n=format_number(record.f_prime_x_n, digits),
            step_error=(
                format_number(record.step_error, digits)
                if record.step_error is not None
                else MISSING_VALUE_PLACEHOLDER
            ),
        )
        for record in trace
    )


def failure_message(failure: SolveFailure, digits: int = DEFAULT_DISPLAY_DIGITS) -> str:
    """Пользовательское сообщение для ошибки солвера"""
    if failure.kind is ErrorKind.ZERO_DERIVATIVE:
        return MSG_ZERO_DERIVATIVE
    if failure.kind is ErrorKind.NOT_CONVERGED:
        return f"{MSG_NOT_CONVERGED} Last estimate: {format_number(failure.estimate, digits)}"
    return MSG_EVALUATION_ERROR.format(
        x=failure.attempted_x, iteration=failure.failed_iteration, reason=failure.reason
    )


# =============================================================================
# CALCULATOR
# =============================================================================


class Calculator:
    """Фасад: запрос → CalculationReport."""

    def __init__(
        self,
        solver_config: SolverConfig | None = None,
        compiler: ExpressionCompiler | None = None,
        display_digits: int = DEFAULT_DISPLAY_DIGITS,
    ):
        """
        Args:
            solver_config: конфигурация солвера (опционально)
            compiler: компилятор выражений (опционально, переменная "x", canary 0)
            display_digits: знаков после запятой в отображаемых значениях
        """
        self.solver = NewtonRaphsonSolver(solver_config)
        self.compiler = compiler or ExpressionCompiler()
        self.display_digits = display_digits

    def run(self, data: Mapping[str, Any] | CalculationRequest) -> CalculationReport:
        """
        Выполнение расчёта.

        Args:
            data: сырой dict запроса или CalculationRequest

        Returns:
            CalculationReport (успех или конкретная ошибка)
        """
        try:
            request = parse_request(data)
        except InvalidInput as e:
            return self._error_report(ErrorKind.INVALID_INPUT, e.message)
        return self._run_request(request)

    def run_form(self, fields: Mapping[str, Any]) -> CalculationReport:
        """Расчёт по сырым строковым полям формы"""
        try:
            request = parse_form_fields(fields)
        except InvalidInput as e:
            return self._error_report(ErrorKind.INVALID_INPUT, e.message)
        return self._run_request(request)

    def _run_request(self, request: CalculationRequest) -> CalculationReport:
        # 1. Компиляция выражений
        try:
            f = self.compiler.compile(request.function_expr)
        except InvalidExpression as e:
            return self._invalid_expression_report("function", e)
        try:
            f_prime = self.compiler.compile(request.derivative_expr)
        except InvalidExpression as e:
            return self._invalid_expression_report("derivative", e)

        # 2. Solver
        result = self.solver.solve(
            f, f_prime, request.initial_guess, request.tolerance, request.max_iterations
        )

        # 3. График
        plot = self._plot(f, result, request)

        return self._report(result, plot)

    def _invalid_expression_report(self, which: str, error: InvalidExpression) -> CalculationReport:
        message = MSG_INVALID_EXPRESSION.format(which=which, reason=error.reason)
        return self._error_report(ErrorKind.INVALID_EXPRESSION, message)

    def _plot(
        self, f: CompiledExpression, result: SolveResult, request: CalculationRequest
    ) -> PlotData | None:
        if request.plot_domain is None:
            return None
        trace = result.trace if result.converged else result.partial_trace
        return build_plot_data(f, trace, request.plot_domain, request.sample_points)

    def _report(self, result: SolveResult, plot: PlotData | None) -> CalculationReport:
        digits = self.display_digits

        if isinstance(result, SolveFailure):
            message = failure_message(result, digits)
            logger.info("Calculation failed: %s", message)
            return CalculationReport(
                ok=False,
                error_kind=result.kind,
                message=message,
                estimate=result.estimate,
                iteration_count=len(result.partial_trace),
                rows=format_rows(result.partial_trace, digits),
                plot=plot,
            )

        logger.info("Calculation succeeded: root=%r iterations=%d", result.root, result.iteration_count)
        return CalculationReport(
            ok=True,
            root=result.root,
            root_display=format_number(result.root, digits),
            iteration_count=result.iteration_count,
            rows=format_rows(result.trace, digits),
            plot=plot,
        )

    @staticmethod
    def _error_report(kind: ErrorKind, message: str) -> CalculationReport:
        logger.info("Calculation rejected (%s): %s", kind.value, message)
        return CalculationReport(ok=False, error_kind=kind, message=message)

