"""
Tangent/Sample Geometry — данные для графика

- sample(): сэмплы кривой f(x) на равномерной сетке; сбой в точке → y=None
- tangent_series() / tangent_lines(): касательные y = slope * x + intercept
- anchor_points(): точки касания (x_n, f(x_n)) для маркеров
- build_plot_data(): полный PlotData для одного расчёта

Все функции — stateless чистые преобразования; объекты рендеринга
движок не создаёт и не хранит.
"""

import logging
from typing import Callable, Iterable, Sequence

from src.core.domain.iteration import IterationRecord
from src.core.domain.plot import (
    AnchorPoint,
    PlotData,
    PlotDomain,
    PlotPoint,
    PlotSample,
    TangentSeries,
)
from src.core.domain.request import DEFAULT_SAMPLE_POINTS
from src.core.math.numerical_safeguards import is_valid_float, uniform_grid

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

RealFunction = Callable[[float], float]


def _evaluate_or_none(f: RealFunction, x: float) -> float | None:
    # ExpressionEvaluationError наследует ArithmeticError
    try:
        value = f(x)
    except (ArithmeticError, ValueError):
        return None
    return value if is_valid_float(value) else None


def sample(
    f: RealFunction,
    x_min: float,
    x_max: float,
    point_count: int = DEFAULT_SAMPLE_POINTS,
) -> PlotSample:
    """
    Сэмплирование f на point_count равноотстоящих точках [x_min, x_max].

    Первая абсцисса ровно x_min, последняя ровно x_max. Точки, где f не
    определена, получают y=None; сэмплирование не прерывается.

    Raises:
        ValueError: Если x_min >= x_max, границы NaN/Inf или point_count < 2
    """
    xs = uniform_grid(x_min, x_max, point_count)
    points = tuple(PlotPoint(x=x, y=_evaluate_or_none(f, x)) for x in xs)
    result = PlotSample(points=points)

    gaps = result.gap_count()
    if gaps:
        logger.debug("Sampled %d points on [%r, %r], %d undefined", len(xs), x_min, x_max, gaps)
    return result


def tangent_series(record: IterationRecord, xs: Iterable[float]) -> TangentSeries:
    """
    Касательная итерации record на заданных абсциссах.

    Чистое линейное вычисление; ордината, ушедшая в overflow, заменяется на None.
    """
    points = []
    for x in xs:
        y = record.tangent_at(x)
        points.append(PlotPoint(x=x, y=y if is_valid_float(y) else None))
    return TangentSeries(
        iteration=record.index,
        slope=record.tangent_slope,
        intercept=record.tangent_intercept,
        points=tuple(points),
    )


def tangent_lines(
    trace: Sequence[IterationRecord], xs: Sequence[float]
) -> tuple[TangentSeries, ...]:
    """Касательные для всех записей trace на общих абсциссах"""
    return tuple(tangent_series(record, xs) for record in trace)


def anchor_points(trace: Sequence[IterationRecord]) -> tuple[AnchorPoint, ...]:
    """Точки касания (x_n, f(x_n)) по одной на итерацию"""
    points = []
    for record in trace:
        x, y = record.anchor()
        points.append(AnchorPoint(iteration=record.index, x=x, y=y))
    return tuple(points)


def zero_line(xs: Iterable[float]) -> tuple[PlotPoint, ...]:
    """Опорная линия y = 0"""
    return tuple(PlotPoint(x=x, y=0.0) for x in xs)


def build_plot_data(
    f: RealFunction,
    trace: Sequence[IterationRecord],
    domain: PlotDomain,
    point_count: int = DEFAULT_SAMPLE_POINTS,
) -> PlotData:
    """
    Полный набор серий для графика одного расчёта.

    Касательные строятся на тех же абсциссах, что и кривая.

    Args:
        f: функция (обычно CompiledExpression)
        trace: записи итераций (успешного или неуспешного расчёта)
        domain: окно графика
        point_count: количество точек сэмплирования

    Returns:
        PlotData, принадлежащий вызывающей стороне
    """
    curve = sample(f, domain.x_min, domain.x_max, point_count)
    xs = curve.xs()
    return PlotData(
        domain=domain,
        curve=curve,
        zero_line=zero_line(xs),
        tangents=tangent_lines(trace, xs),
        anchors=anchor_points(trace),
    )
