"""Rootfinder — Newton-Raphson движок поиска корня.

- expression: безопасная компиляция выражений f(x), f'(x)
- newton: итерационный солвер, SolveResult
- geometry: сэмплы кривой, касательные, точки касания
- calculator: фасад запрос → CalculationReport
"""

from .calculator import (
    CalculationReport,
    Calculator,
    IterationRow,
    failure_message,
    format_number,
    format_rows,
)
from .expression import (
    CompiledExpression,
    ExpressionCompiler,
    ExpressionEvaluationError,
    InvalidExpression,
    compile_expression,
)
from .geometry import (
    anchor_points,
    build_plot_data,
    sample,
    tangent_lines,
    tangent_series,
    zero_line,
)
from .newton import NewtonRaphsonSolver, SolverConfig, solve

__all__ = [
    # Expressions
    "CompiledExpression",
    "ExpressionCompiler",
    "ExpressionEvaluationError",
    "InvalidExpression",
    "compile_expression",
    # Solver
    "NewtonRaphsonSolver",
    "SolverConfig",
    "solve",
    # Geometry
    "anchor_points",
    "build_plot_data",
    "sample",
    "tangent_lines",
    "tangent_series",
    "zero_line",
    # Calculator
    "CalculationReport",
    "Calculator",
    "IterationRow",
    "failure_message",
    "format_number",
    "format_rows",
]
