"""
Core math modules для root-finding движка

Математические примитивы с гарантией численной стабильности.
"""

from src.core.math.numerical_safeguards import (
    # Epsilon constants
    EPS_ZERO_DERIVATIVE,
    # NaN/Inf detection
    describe_non_finite,
    is_valid_float,
    # Thresholds
    is_below_threshold,
    # Grids
    uniform_grid,
    # Validation
    validate_finite,
    validate_interval,
    validate_positive,
    validate_positive_int,
)

__all__ = [
    # Epsilon constants
    "EPS_ZERO_DERIVATIVE",
    # NaN/Inf detection
    "describe_non_finite",
    "is_valid_float",
    # Thresholds
    "is_below_threshold",
    # Grids
    "uniform_grid",
    # Validation
    "validate_finite",
    "validate_interval",
    "validate_positive",
    "validate_positive_int",
]
