"""
Contract Validation Module

Модуль для граничной валидации запросов на расчёт.
"""

from .validators import (
    MSG_FILL_ALL_FIELDS,
    MSG_MAX_ITERATIONS_LIMIT,
    MSG_MAX_ITERATIONS_POSITIVE,
    MSG_PLOT_BUDGET,
    MSG_SAMPLE_POINTS,
    MSG_TOLERANCE_POSITIVE,
    MSG_X_RANGE,
    MSG_Y_RANGE,
    CalculationRequestValidator,
    ContractValidator,
    InvalidInput,
    SchemaLoader,
    parse_form_fields,
    parse_request,
    validate_calculation_request,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "CalculationRequestValidator",
    # Exceptions
    "InvalidInput",
    # Functions
    "validate_calculation_request",
    "parse_request",
    "parse_form_fields",
    # Messages
    "MSG_FILL_ALL_FIELDS",
    "MSG_TOLERANCE_POSITIVE",
    "MSG_MAX_ITERATIONS_POSITIVE",
    "MSG_MAX_ITERATIONS_LIMIT",
    "MSG_X_RANGE",
    "MSG_Y_RANGE",
    "MSG_SAMPLE_POINTS",
    "MSG_PLOT_BUDGET",
]
