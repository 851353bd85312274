"""
Domain models and value objects.

Contains the immutable entities of a calculation: IterationRecord,
SolveResult, plot series, and the calculation request.
"""

from src.core.domain.iteration import IterationRecord
from src.core.domain.plot import (
    AnchorPoint,
    PlotData,
    PlotDomain,
    PlotPoint,
    PlotSample,
    TangentSeries,
)
from src.core.domain.request import (
    DEFAULT_SAMPLE_POINTS,
    MAX_ITERATIONS_LIMIT,
    MAX_PLOT_POINTS,
    MAX_SAMPLE_POINTS,
    CalculationRequest,
)
from src.core.domain.result import (
    SOLVER_ERROR_KINDS,
    ErrorKind,
    SolveFailure,
    SolveResult,
    SolveSuccess,
)

__all__ = [
    # Iteration model
    "IterationRecord",
    # Result models
    "ErrorKind",
    "SOLVER_ERROR_KINDS",
    "SolveFailure",
    "SolveResult",
    "SolveSuccess",
    # Plot models
    "AnchorPoint",
    "PlotData",
    "PlotDomain",
    "PlotPoint",
    "PlotSample",
    "TangentSeries",
    # Request model
    "CalculationRequest",
    "DEFAULT_SAMPLE_POINTS",
    "MAX_ITERATIONS_LIMIT",
    "MAX_PLOT_POINTS",
    "MAX_SAMPLE_POINTS",
]
