"""
JSON Schema Contract Validators

Модуль для граничной валидации запросов на расчёт.
Использует библиотеку jsonschema для проверки соответствия данных схемам
и Pydantic модель CalculationRequest для кросс-полевых инвариантов
(x_min < x_max, y_min < y_max, NaN/Inf, пустые выражения).

Схемы:
- calculation_request.json

Все нарушения на границе переводятся в InvalidInput с конкретным
пользовательским сообщением (никогда не generic "something went wrong").
"""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping

import jsonschema
from jsonschema import Draft202012Validator
from pydantic import ValidationError as PydanticValidationError

from src.core.domain.request import MAX_PLOT_POINTS, CalculationRequest

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


# =============================================================================
# USER MESSAGES
# =============================================================================

MSG_FILL_ALL_FIELDS = "Please fill in all fields with valid values."
MSG_TOLERANCE_POSITIVE = "Tolerance must be greater than 0."
MSG_MAX_ITERATIONS_POSITIVE = "Maximum iterations must be greater than 0."
MSG_MAX_ITERATIONS_LIMIT = "Maximum iterations must not exceed {limit}."
MSG_X_RANGE = "X Min must be less than X Max."
MSG_Y_RANGE = "Y Min must be less than Y Max."
MSG_SAMPLE_POINTS = "Sample points must be between {low} and {high}."
MSG_PLOT_BUDGET = (
    "Maximum iterations times sample points must not exceed {limit} when a plot is requested."
)

# Приоритет сообщений: при нескольких нарушениях показываем первое по порядку
# проверок (заполненность → tolerance → max_iterations → окно графика)
_RANK_FILL_ALL = 0
_RANK_TOLERANCE = 1
_RANK_MAX_ITERATIONS = 2
_RANK_MAX_ITERATIONS_LIMIT = 3
_RANK_X_RANGE = 4
_RANK_Y_RANGE = 5
_RANK_SAMPLE_POINTS = 6
_RANK_PLOT_BUDGET = 7


# =============================================================================
# EXCEPTIONS
# =============================================================================


class InvalidInput(ValueError):
    """
    Невалидные поля запроса, обнаруженные на границе (до компиляции выражений).

    Attributes:
        message: Пользовательское сообщение
        field: Имя поля-нарушителя (если известно)
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    По умолчанию читает схемы из package data src.core.contracts/schema/
    через importlib.resources (работает и из установленного дистрибутива).
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or resources.files("src.core.contracts") / "schema"
        if not self._schema_dir.is_dir():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'calculation_request')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема не проходит meta-validation
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.is_file():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with schema_path.open("r", encoding="utf-8") as f:
            schema = json.load(f)

        # Валидируем саму схему (meta-validation)
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}") from e

        self._schemas[schema_name] = schema
        return schema


# Глобальный экземпляр загрузчика (схемы неизменяемы, кэш только пополняется)
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Инкапсулирует логику валидации данных против JSON Schema.
    """

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Валидация данных против схемы.

        Raises:
            jsonschema.ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        """Проверка валидности данных без exception"""
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        """Итератор по всем ошибкам валидации"""
        return self.validator.iter_errors(data)


class CalculationRequestValidator(ContractValidator):
    """Валидатор для calculation_request контракта."""

    def __init__(self):
        super().__init__("calculation_request")


def validate_calculation_request(data: Dict[str, Any]) -> None:
    """
    Валидация calculation_request данных против JSON Schema.

    Raises:
        jsonschema.ValidationError: Если данные не соответствуют схеме
    """
    CalculationRequestValidator().validate(data)


# =============================================================================
# ERROR TRANSLATION
# =============================================================================


def _schema_error_message(error: jsonschema.ValidationError) -> tuple[int, str, str | None]:
    """
    Перевод ошибки jsonschema в (rank, message, field).
    """
    if error.validator == "required":
        missing = [name for name in error.validator_value if name not in error.instance]
        field = ".".join(str(p) for p in error.path) if error.path else None
        if missing:
            field = f"{field}.{missing[0]}" if field else missing[0]
        return _RANK_FILL_ALL, MSG_FILL_ALL_FIELDS, field

    field = str(error.path[0]) if error.path else None

    if field == "tolerance" and error.validator == "exclusiveMinimum":
        return _RANK_TOLERANCE, MSG_TOLERANCE_POSITIVE, field

    if field == "max_iterations" and error.validator == "minimum":
        return _RANK_MAX_ITERATIONS, MSG_MAX_ITERATIONS_POSITIVE, field

    if field == "max_iterations" and error.validator == "maximum":
        return (
            _RANK_MAX_ITERATIONS_LIMIT,
            MSG_MAX_ITERATIONS_LIMIT.format(limit=error.validator_value),
            field,
        )

    if field == "sample_points" and error.validator in ("minimum", "maximum"):
        low, high = _sample_points_bounds()
        return _RANK_SAMPLE_POINTS, MSG_SAMPLE_POINTS.format(low=low, high=high), field

    return _RANK_FILL_ALL, MSG_FILL_ALL_FIELDS, field


def _sample_points_bounds() -> tuple[int, int]:
    bounds = _SCHEMA_LOADER.load_schema("calculation_request")["properties"]["sample_points"]
    return bounds["minimum"], bounds["maximum"]


def _pydantic_error_message(error: Mapping[str, Any]) -> tuple[int, str, str | None]:
    """
    Перевод ошибки Pydantic в (rank, message, field).
    """
    loc = tuple(str(p) for p in error.get("loc", ()))
    field = ".".join(loc) if loc else None
    error_type = error.get("type", "")

    if loc == ("plot_domain", "x_max") and error_type == "value_error":
        return _RANK_X_RANGE, MSG_X_RANGE, field

    if loc == ("plot_domain", "y_max") and error_type == "value_error":
        return _RANK_Y_RANGE, MSG_Y_RANGE, field

    if loc == ("tolerance",) and error_type == "greater_than":
        return _RANK_TOLERANCE, MSG_TOLERANCE_POSITIVE, field

    if loc == ("max_iterations",) and error_type == "greater_than":
        return _RANK_MAX_ITERATIONS, MSG_MAX_ITERATIONS_POSITIVE, field

    if loc == ("max_iterations",) and error_type == "less_than_equal":
        limit = error.get("ctx", {}).get("le")
        return _RANK_MAX_ITERATIONS_LIMIT, MSG_MAX_ITERATIONS_LIMIT.format(limit=limit), field

    if loc == ("sample_points",) and error_type in ("greater_than_equal", "less_than_equal"):
        low, high = _sample_points_bounds()
        return _RANK_SAMPLE_POINTS, MSG_SAMPLE_POINTS.format(low=low, high=high), field

    if loc == ("sample_points",) and error_type == "value_error":
        return _RANK_PLOT_BUDGET, MSG_PLOT_BUDGET.format(limit=MAX_PLOT_POINTS), field

    return _RANK_FILL_ALL, MSG_FILL_ALL_FIELDS, field


# =============================================================================
# BOUNDARY PARSING
# =============================================================================


def parse_request(data: Mapping[str, Any] | CalculationRequest) -> CalculationRequest:
    """
    Граничная валидация запроса: JSON Schema → Pydantic.

    Args:
        data: Сырой dict запроса или уже построенный CalculationRequest

    Returns:
        Валидный CalculationRequest

    Raises:
        InvalidInput: При любом нарушении контракта (с сообщением для пользователя)
    """
    if isinstance(data, CalculationRequest):
        return data

    if not isinstance(data, Mapping):
        raise InvalidInput(MSG_FILL_ALL_FIELDS)

    payload = dict(data)

    schema_errors = [
        _schema_error_message(e) for e in CalculationRequestValidator().iter_errors(payload)
    ]
    if schema_errors:
        _, message, field = min(schema_errors, key=lambda item: item[0])
        logger.warning("Rejected calculation request: field=%s message=%s", field, message)
        raise InvalidInput(message, field=field)

    try:
        return CalculationRequest.model_validate(payload)
    except PydanticValidationError as e:
        _, message, field = min(
            (_pydantic_error_message(err) for err in e.errors()), key=lambda item: item[0]
        )
        logger.warning("Rejected calculation request: field=%s message=%s", field, message)
        raise InvalidInput(message, field=field) from e


def _form_text(fields: Mapping[str, Any], name: str) -> str:
    value = fields.get(name)
    if value is None:
        return ""
    return str(value).strip()


def _parse_form_float(fields: Mapping[str, Any], name: str) -> float:
    text = _form_text(fields, name)
    try:
        return float(text)
    except ValueError:
        raise InvalidInput(MSG_FILL_ALL_FIELDS, field=name) from None


def _parse_form_int(fields: Mapping[str, Any], name: str) -> int:
    text = _form_text(fields, name)
    try:
        return int(text)
    except ValueError:
        pass
    value = _parse_form_float(fields, name)
    if not value.is_integer():
        raise InvalidInput(MSG_FILL_ALL_FIELDS, field=name)
    return int(value)


def parse_form_fields(fields: Mapping[str, Any]) -> CalculationRequest:
    """
    Построение запроса из сырых строковых полей формы.

    Поля: function_expr, derivative_expr, initial_guess, tolerance,
    max_iterations, x_min, x_max, y_min, y_max, sample_points (опционально).
    Все четыре поля окна графика либо заполнены, либо пусты (без графика).

    Raises:
        InvalidInput: Если поле пустое или не парсится как число
    """
    payload: Dict[str, Any] = {}

    for name in ("function_expr", "derivative_expr"):
        text = _form_text(fields, name)
        if not text:
            raise InvalidInput(MSG_FILL_ALL_FIELDS, field=name)
        payload[name] = text

    payload["initial_guess"] = _parse_form_float(fields, "initial_guess")
    payload["tolerance"] = _parse_form_float(fields, "tolerance")
    payload["max_iterations"] = _parse_form_int(fields, "max_iterations")

    domain_names = ("x_min", "x_max", "y_min", "y_max")
    filled = [name for name in domain_names if _form_text(fields, name)]
    if filled:
        if len(filled) != len(domain_names):
            missing = next(name for name in domain_names if name not in filled)
            raise InvalidInput(MSG_FILL_ALL_FIELDS, field=missing)
        payload["plot_domain"] = {name: _parse_form_float(fields, name) for name in domain_names}

    if _form_text(fields, "sample_points"):
        payload["sample_points"] = _parse_form_int(fields, "sample_points")

    return parse_request(payload)
