"""
Тесты для Newton-Raphson Solver

Проверяет:
1. Сходимость на стандартных функциях (x^2 - a, x*x - 2)
2. ZERO_DERIVATIVE: строгий абсолютный порог, запись шага не создаётся
3. NOT_CONVERGED: полный trace и best-effort оценка
4. EVALUATION_ERROR: domain error и NaN/Inf в точке возникновения
5. Инварианты записей итераций (касательная, ошибка шага, порядок)
6. Валидацию параметров и детерминизм
"""

import math

import pytest

from src.core.domain.result import ErrorKind, SolveFailure, SolveSuccess
from src.core.math.numerical_safeguards import EPS_ZERO_DERIVATIVE
from src.rootfinder.expression import compile_expression
from src.rootfinder.newton import NewtonRaphsonSolver, SolverConfig, solve


@pytest.fixture
def solver() -> NewtonRaphsonSolver:
    """Солвер с конфигурацией по умолчанию"""
    return NewtonRaphsonSolver()


# =============================================================================
# CONVERGENCE
# =============================================================================


class TestConvergence:
    """Тесты успешной сходимости"""

    @pytest.mark.parametrize("a", [2.0, 4.0, 9.0, 10.0, 1e6])
    def test_square_root(self, solver: NewtonRaphsonSolver, a: float) -> None:
        """x^2 - a сходится к sqrt(a) из положительного x0"""
        f = compile_expression(f"x^2 - {a}")
        f_prime = compile_expression("2*x")
        result = solver.solve(f, f_prime, 1.0, 1e-10, 100)

        assert isinstance(result, SolveSuccess)
        assert result.converged
        assert result.root == pytest.approx(math.sqrt(a), abs=1e-8)

    def test_x_squared_minus_four(self, solver: NewtonRaphsonSolver) -> None:
        """x^2 - 4 из x0 = 1 → 2.0 в пределах tolerance"""
        tolerance = 1e-6
        result = solver.solve(
            compile_expression("x^2 - 4"), compile_expression("2*x"), 1.0, tolerance, 50
        )
        assert isinstance(result, SolveSuccess)
        assert abs(result.root - 2.0) < tolerance

    def test_sqrt_two_reference(self, solver: NewtonRaphsonSolver) -> None:
        """x*x - 2, 2*x, x0=1, tol=1e-7 → 1.41421356 не более чем за 6 итераций"""
        result = solver.solve(
            compile_expression("x*x - 2"), compile_expression("2*x"), 1.0, 1e-7, 50
        )
        assert isinstance(result, SolveSuccess)
        assert f"{result.root:.8f}" == "1.41421356"
        assert result.iteration_count <= 6
        assert len(result.trace) == result.iteration_count

    def test_root_is_last_x_next(self, solver: NewtonRaphsonSolver) -> None:
        result = solver.solve(
            compile_expression("x*x - 2"), compile_expression("2*x"), 1.0, 1e-7, 50
        )
        assert result.root == result.trace[-1].x_next

    def test_transcendental(self, solver: NewtonRaphsonSolver) -> None:
        """cos(x) - x: корень ≈ 0.7390851332"""
        result = solver.solve(
            compile_expression("cos(x) - x"), compile_expression("-sin(x) - 1"), 1.0, 1e-12, 50
        )
        assert isinstance(result, SolveSuccess)
        assert result.root == pytest.approx(0.7390851332151607, abs=1e-10)

    def test_already_at_root(self, solver: NewtonRaphsonSolver) -> None:
        """x0 = корень → сходимость за одну итерацию с нулевой ошибкой шага"""
        result = solver.solve(lambda x: x - 3.0, lambda x: 1.0, 3.0, 1e-9, 10)
        assert isinstance(result, SolveSuccess)
        assert result.iteration_count == 1
        assert result.trace[0].step_error == 0.0

    def test_plain_callables_accepted(self, solver: NewtonRaphsonSolver) -> None:
        """Солвер принимает любые float → float функции"""
        result = solver.solve(lambda x: x**3 - 8.0, lambda x: 3 * x**2, 3.0, 1e-12, 50)
        assert isinstance(result, SolveSuccess)
        assert result.root == pytest.approx(2.0)


# =============================================================================
# ZERO DERIVATIVE
# =============================================================================


class TestZeroDerivative:
    """Тесты zero-derivative guard"""

    def test_cube_at_zero(self, solver: NewtonRaphsonSolver) -> None:
        """x^3, 3x^2, x0 = 0 → ZERO_DERIVATIVE до первой записи"""
        result = solver.solve(
            compile_expression("x^3"), compile_expression("3*x^2"), 0.0, 1e-6, 50
        )
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.ZERO_DERIVATIVE
        assert result.partial_trace == ()
        assert result.failed_iteration == 0
        assert result.attempted_x == 0.0
        assert result.estimate is None
        assert not result.is_soft

    def test_zero_derivative_after_some_steps(self, solver: NewtonRaphsonSolver) -> None:
        """Trace содержит только продвинувшиеся шаги"""
        # f(x) = x - 1 (наклон 1) до x = 1, затем f' = 0
        result = solver.solve(
            lambda x: x - 1.0,
            lambda x: 1.0 if x < 0.5 else 0.0,
            -1.0,
            1e-9,
            10,
        )
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.ZERO_DERIVATIVE
        assert len(result.partial_trace) == 1
        assert result.failed_iteration == 1
        assert result.attempted_x == 1.0

    def test_threshold_is_strict(self, solver: NewtonRaphsonSolver) -> None:
        """|f'| ровно на пороге допустимо"""
        result = solver.solve(
            lambda x: EPS_ZERO_DERIVATIVE * x - EPS_ZERO_DERIVATIVE,
            lambda x: EPS_ZERO_DERIVATIVE,
            0.0,
            1e-6,
            10,
        )
        assert isinstance(result, SolveSuccess)
        assert result.root == pytest.approx(1.0)

    def test_below_threshold(self, solver: NewtonRaphsonSolver) -> None:
        result = solver.solve(lambda x: 1.0, lambda x: -9.9e-11, 0.0, 1e-6, 10)
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.ZERO_DERIVATIVE

    def test_threshold_is_absolute(self, solver: NewtonRaphsonSolver) -> None:
        """Порог не масштабируется по |f(x)|: малый f' при малом f допустим"""
        result = solver.solve(lambda x: 1e-9 * (x - 5.0), lambda x: 1e-9, 0.0, 1e-6, 10)
        assert isinstance(result, SolveSuccess)
        assert result.root == pytest.approx(5.0)

    def test_custom_threshold(self) -> None:
        solver = NewtonRaphsonSolver(SolverConfig(zero_derivative_eps=1e-3))
        result = solver.solve(lambda x: x - 1.0, lambda x: 1e-4, 0.0, 1e-6, 10)
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.ZERO_DERIVATIVE
        assert "< 1e-03" in result.reason


# =============================================================================
# NOT CONVERGED
# =============================================================================


class TestNotConverged:
    """Тесты исчерпания бюджета итераций"""

    def test_no_real_root(self, solver: NewtonRaphsonSolver) -> None:
        """x^2 + 1, max_iterations=5 → NOT_CONVERGED ровно с 5 записями"""
        result = solver.solve(
            compile_expression("x^2 + 1"), compile_expression("2*x"), 0.5, 1e-6, 5
        )
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.NOT_CONVERGED
        assert len(result.partial_trace) == 5
        assert [r.index for r in result.partial_trace] == [0, 1, 2, 3, 4]

    def test_estimate_is_last_iterate(self, solver: NewtonRaphsonSolver) -> None:
        result = solver.solve(
            compile_expression("x^2 + 1"), compile_expression("2*x"), 0.5, 1e-6, 5
        )
        assert result.is_soft
        assert result.estimate is not None
        assert result.estimate == result.partial_trace[-1].x_next
        assert result.estimate == result.partial_trace[-1].successor()
        assert result.failed_iteration is None

    def test_single_iteration_budget(self, solver: NewtonRaphsonSolver) -> None:
        result = solver.solve(
            compile_expression("x^2 - 4"), compile_expression("2*x"), 1.0, 1e-12, 1
        )
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.NOT_CONVERGED
        assert result.estimate == pytest.approx(2.5)


# =============================================================================
# EVALUATION ERROR
# =============================================================================


class TestEvaluationError:
    """Тесты ошибок вычисления в конкретной точке"""

    def test_domain_error_after_step(self, solver: NewtonRaphsonSolver) -> None:
        """log(x) из x0=3: шаг уходит в отрицательную область"""
        f = compile_expression("log(x)", canary=None)
        f_prime = compile_expression("1/x", canary=None)
        result = solver.solve(f, f_prime, 3.0, 1e-9, 50)

        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.EVALUATION_ERROR
        assert result.failed_iteration == 1
        assert result.attempted_x == pytest.approx(3.0 - 3.0 * math.log(3.0))
        assert len(result.partial_trace) == 1
        assert result.reason.startswith("f(x):")
        assert result.estimate is None

    def test_derivative_domain_error(self, solver: NewtonRaphsonSolver) -> None:
        f_prime = compile_expression("1/x", canary=None)
        result = solver.solve(lambda x: x, f_prime, 0.0, 1e-9, 50)
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.EVALUATION_ERROR
        assert result.reason == "f'(x): division by zero"
        assert result.failed_iteration == 0

    def test_nan_function_value(self, solver: NewtonRaphsonSolver) -> None:
        """NaN классифицируется как EVALUATION_ERROR, а не как расходимость"""
        result = solver.solve(lambda x: float("nan"), lambda x: 1.0, 0.0, 1e-9, 50)
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.EVALUATION_ERROR
        assert result.reason == "f(x) is NaN"

    def test_infinite_derivative(self, solver: NewtonRaphsonSolver) -> None:
        result = solver.solve(lambda x: 1.0, lambda x: float("inf"), 0.0, 1e-9, 50)
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.EVALUATION_ERROR
        assert result.reason == "f'(x) is Infinity"

    def test_overflowing_step(self, solver: NewtonRaphsonSolver) -> None:
        """x_next = x - f/f' уходит в Inf"""
        result = solver.solve(lambda x: 1e300, lambda x: 1e-9, 0.0, 1e-9, 50)
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.EVALUATION_ERROR
        assert result.reason == "next iterate is -Infinity"
        assert result.partial_trace == ()

    def test_overflow_in_expression(self, solver: NewtonRaphsonSolver) -> None:
        f = compile_expression("exp(x)")
        result = solver.solve(f, f, 1000.0, 1e-9, 50)
        assert isinstance(result, SolveFailure)
        assert result.kind is ErrorKind.EVALUATION_ERROR
        assert result.reason == "f(x): numeric overflow"


# =============================================================================
# RECORD INVARIANTS
# =============================================================================


class TestTraceInvariants:
    """Тесты инвариантов записей итераций"""

    @pytest.fixture
    def trace(self, solver: NewtonRaphsonSolver):
        result = solver.solve(
            compile_expression("x^3 - 2*x - 5"),
            compile_expression("3*x^2 - 2"),
            3.0,
            1e-12,
            100,
        )
        assert isinstance(result, SolveSuccess)
        return result.trace

    def test_indices_are_sequential(self, trace) -> None:
        assert [r.index for r in trace] == list(range(len(trace)))

    def test_iterates_are_chained(self, trace) -> None:
        """x_n следующей записи = x_next предыдущей"""
        for prev, cur in zip(trace, trace[1:]):
            assert cur.x_n == prev.x_next

    def test_tangent_slope_and_intercept(self, trace) -> None:
        for r in trace:
            assert r.tangent_slope == r.f_prime_x_n
            assert r.tangent_intercept == pytest.approx(r.f_x_n - r.f_prime_x_n * r.x_n)

    def test_step_error(self, trace) -> None:
        for r in trace:
            assert r.step_error == pytest.approx(abs(r.x_next - r.x_n))

    def test_tangent_passes_through_anchor(self, trace) -> None:
        for r in trace:
            assert r.tangent_at(r.x_n) == pytest.approx(r.f_x_n, abs=1e-9)

    def test_tangent_crosses_zero_at_next_iterate(self, trace) -> None:
        for r in trace:
            assert r.tangent_at(r.x_next) == pytest.approx(0.0, abs=1e-9)

    def test_only_last_step_within_tolerance(self, trace) -> None:
        assert trace[-1].step_error < 1e-12
        assert all(r.step_error >= 1e-12 for r in trace[:-1])


# =============================================================================
# PARAMETER VALIDATION AND DETERMINISM
# =============================================================================


class TestSolverParameters:
    """Тесты валидации параметров"""

    @pytest.mark.parametrize("tolerance", [0.0, -1e-6, float("nan")])
    def test_invalid_tolerance(self, solver: NewtonRaphsonSolver, tolerance: float) -> None:
        with pytest.raises(ValueError, match="tolerance"):
            solver.solve(lambda x: x, lambda x: 1.0, 1.0, tolerance, 10)

    @pytest.mark.parametrize("max_iterations", [0, -1, 2.0])
    def test_invalid_max_iterations(self, solver: NewtonRaphsonSolver, max_iterations) -> None:
        with pytest.raises(ValueError, match="max_iterations"):
            solver.solve(lambda x: x, lambda x: 1.0, 1.0, 1e-6, max_iterations)

    def test_invalid_initial_guess(self, solver: NewtonRaphsonSolver) -> None:
        with pytest.raises(ValueError, match="x0"):
            solver.solve(lambda x: x, lambda x: 1.0, float("inf"), 1e-6, 10)

    def test_invalid_config(self) -> None:
        with pytest.raises(ValueError, match="zero_derivative_eps"):
            NewtonRaphsonSolver(SolverConfig(zero_derivative_eps=0.0))

    def test_default_config(self, solver: NewtonRaphsonSolver) -> None:
        assert solver.config.zero_derivative_eps == EPS_ZERO_DERIVATIVE


class TestDeterminism:
    """Повторный вызов с теми же входами даёт тот же результат"""

    def test_same_inputs_same_result(self, solver: NewtonRaphsonSolver) -> None:
        f = compile_expression("x^3 - x - 1")
        f_prime = compile_expression("3*x^2 - 1")
        first = solver.solve(f, f_prime, 1.5, 1e-10, 50)
        second = solver.solve(f, f_prime, 1.5, 1e-10, 50)
        assert first == second

    def test_module_level_solve(self) -> None:
        result = solve(compile_expression("x*x - 2"), compile_expression("2*x"), 1.0, 1e-7, 50)
        assert isinstance(result, SolveSuccess)
        assert round(result.root, 8) == 1.41421356
