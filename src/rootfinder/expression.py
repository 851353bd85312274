"""
Expression Evaluator — Безопасная компиляция выражений одной переменной

Компилирует текст формулы (например, "x*x - 2" или "Math.sin(x) - x/2")
в CompiledExpression: чистую функцию float → float.

Безопасность:
- Текст разбирается через ast.parse(mode="eval") и транслируется в дерево
  замыканий над примитивами math/operator. Исходный текст никогда не
  исполняется (без eval/exec/compile).
- Разрешены только: числовые литералы, одна переменная, + - * / ** ^,
  унарные + -, скобки, фиксированная библиотека функций и констант.
- Любой другой узел AST (атрибуты, индексы, сравнения, lambda, ...) → InvalidExpression.

Числовая семантика:
- Все литералы приводятся к float (нет big-int арифметики при возведении в степень)
- Domain errors (деление на ноль, log/sqrt отрицательного, overflow)
  и NaN/Inf результаты → ExpressionEvaluationError в точке вычисления
"""

import ast
import logging
import math
import operator
from dataclasses import dataclass, field
from typing import Callable, Final, Mapping

from src.core.math.numerical_safeguards import describe_non_finite, is_valid_float

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


# =============================================================================
# CONSTANTS
# =============================================================================

# Максимальная длина текста выражения
MAX_EXPRESSION_LENGTH: Final[int] = 1000

# Имя переменной по умолчанию
DEFAULT_VARIABLE: Final[str] = "x"

# Canary-точка для fail-fast проверки при компиляции
DEFAULT_CANARY: Final[float] = 0.0

# Префикс JavaScript-стиля ("Math.sin(x)", "Math.PI")
JS_MATH_NAMESPACE: Final[str] = "Math"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class InvalidExpression(ValueError):
    """
    Выражение не компилируется или не проходит canary probe.

    Attributes:
        source: Исходный текст выражения
        reason: Причина отказа
    """

    def __init__(self, source: str, reason: str):
        super().__init__(reason)
        self.source = source
        self.reason = reason


class ExpressionEvaluationError(ArithmeticError):
    """
    Domain error при вычислении выражения в конкретной точке.

    Attributes:
        x: Точка вычисления
        reason: Описание сбоя (например, "math domain error", "result is NaN")
        source: Исходный текст выражения
    """

    def __init__(self, x: float, reason: str, source: str | None = None):
        super().__init__(f"cannot evaluate at x = {x!r}: {reason}")
        self.x = x
        self.reason = reason
        self.source = source


# =============================================================================
# FUNCTION LIBRARY
# =============================================================================


def _pow(base: float, exponent: float) -> float:
    # math.pow всегда возвращает float: (-8) ** (1/3) → ValueError, а не complex
    return math.pow(base, exponent)


def _log(value: float, base: float | None = None) -> float:
    if base is None:
        return math.log(value)
    return math.log(value, base)


@dataclass(frozen=True)
class FunctionSpec:
    """Функция библиотеки: реализация и допустимое число аргументов"""

    impl: Callable[..., float]
    min_args: int = 1
    max_args: int = 1


FUNCTIONS: Final[Mapping[str, FunctionSpec]] = {
    "sin": FunctionSpec(math.sin),
    "cos": FunctionSpec(math.cos),
    "tan": FunctionSpec(math.tan),
    "asin": FunctionSpec(math.asin),
    "acos": FunctionSpec(math.acos),
    "atan": FunctionSpec(math.atan),
    "sinh": FunctionSpec(math.sinh),
    "cosh": FunctionSpec(math.cosh),
    "tanh": FunctionSpec(math.tanh),
    "exp": FunctionSpec(math.exp),
    "log": FunctionSpec(_log, min_args=1, max_args=2),
    "log10": FunctionSpec(math.log10),
    "log2": FunctionSpec(math.log2),
    "sqrt": FunctionSpec(math.sqrt),
    "abs": FunctionSpec(math.fabs),
    "pow": FunctionSpec(_pow, min_args=2, max_args=2),
}

CONSTANTS: Final[Mapping[str, float]] = {
    "pi": math.pi,
    "e": math.e,
}

# Константы в JavaScript-стиле: Math.PI, Math.E
JS_CONSTANTS: Final[Mapping[str, float]] = {
    "PI": math.pi,
    "E": math.e,
}

_BINARY_OPERATORS: Final[Mapping[type, Callable[[float, float], float]]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: _pow,
}

_UNARY_OPERATORS: Final[Mapping[type, Callable[[float], float]]] = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

# Исключения, которые считаются domain error при вычислении
_EVALUATION_FAULTS = (ZeroDivisionError, ValueError, OverflowError, RecursionError)

Evaluator = Callable[[float], float]


# =============================================================================
# AST → CLOSURES
# =============================================================================


class _ClosureBuilder(ast.NodeVisitor):
    """
    Транслирует разрешённое подмножество Python AST в дерево замыканий.

    Каждый visit_* возвращает Evaluator; неразрешённые узлы → InvalidExpression.
    """

    def __init__(self, source: str, variable: str):
        self.source = source
        self.variable = variable

    def _reject(self, reason: str) -> InvalidExpression:
        return InvalidExpression(self.source, reason)

    def visit(self, node: ast.AST) -> Evaluator:
        visitor = getattr(self, "visit_" + node.__class__.__name__, None)
        if visitor is None:
            raise self._reject(f"unsupported syntax: {node.__class__.__name__}")
        return visitor(node)

    def visit_Expression(self, node: ast.Expression) -> Evaluator:
        return self.visit(node.body)

    def visit_Constant(self, node: ast.Constant) -> Evaluator:
        value = node.value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self._reject(f"unsupported literal: {value!r}")
        try:
            number = float(value)
        except OverflowError:
            raise self._reject(f"numeric literal out of range: {value!r}") from None
        if not is_valid_float(number):
            raise self._reject(f"numeric literal out of range: {value!r}")
        return lambda x: number

    def visit_Name(self, node: ast.Name) -> Evaluator:
        name = node.id
        if name == self.variable:
            return lambda x: x
        if name in CONSTANTS:
            value = CONSTANTS[name]
            return lambda x: value
        if name in FUNCTIONS:
            raise self._reject(f"function '{name}' must be called with arguments")
        raise self._reject(f"unknown identifier '{name}' (only '{self.variable}' is allowed)")

    def visit_Attribute(self, node: ast.Attribute) -> Evaluator:
        name = self._js_math_name(node)
        if name in JS_CONSTANTS:
            value = JS_CONSTANTS[name]
            return lambda x: value
        if name in FUNCTIONS:
            raise self._reject(f"function '{JS_MATH_NAMESPACE}.{name}' must be called with arguments")
        raise self._reject(f"unknown identifier '{JS_MATH_NAMESPACE}.{name}'")

    def visit_UnaryOp(self, node: ast.UnaryOp) -> Evaluator:
        op = _UNARY_OPERATORS.get(type(node.op))
        if op is None:
            raise self._reject(f"unsupported unary operator: {node.op.__class__.__name__}")
        operand = self.visit(node.operand)
        return lambda x: op(operand(x))

    def visit_BinOp(self, node: ast.BinOp) -> Evaluator:
        op = _BINARY_OPERATORS.get(type(node.op))
        if op is None:
            raise self._reject(f"unsupported operator: {node.op.__class__.__name__}")
        left = self.visit(node.left)
        right = self.visit(node.right)
        return lambda x: op(left(x), right(x))

    def visit_Call(self, node: ast.Call) -> Evaluator:
        if isinstance(node.func, ast.Name):
            name = node.func.id
            display = name
        elif isinstance(node.func, ast.Attribute):
            name = self._js_math_name(node.func)
            display = f"{JS_MATH_NAMESPACE}.{name}"
        else:
            raise self._reject("only direct function calls are allowed")

        spec = FUNCTIONS.get(name)
        if spec is None:
            raise self._reject(f"unknown function '{display}'")

        if node.keywords:
            raise self._reject(f"function '{display}' does not accept keyword arguments")
        if any(isinstance(arg, ast.Starred) for arg in node.args):
            raise self._reject(f"function '{display}' does not accept unpacked arguments")

        argc = len(node.args)
        if not spec.min_args <= argc <= spec.max_args:
            expected = (
                str(spec.min_args)
                if spec.min_args == spec.max_args
                else f"{spec.min_args}-{spec.max_args}"
            )
            raise self._reject(f"function '{display}' expects {expected} argument(s), got {argc}")

        impl = spec.impl
        args = [self.visit(arg) for arg in node.args]
        if argc == 1:
            (arg,) = args
            return lambda x: impl(arg(x))
        first, second = args
        return lambda x: impl(first(x), second(x))

    def _js_math_name(self, node: ast.Attribute) -> str:
        """Имя атрибута в пространстве Math.*; любые другие атрибуты запрещены"""
        if not (isinstance(node.value, ast.Name) and node.value.id == JS_MATH_NAMESPACE):
            raise self._reject("attribute access is not allowed")
        return node.attr


# =============================================================================
# COMPILED EXPRESSION
# =============================================================================


@dataclass(frozen=True)
class CompiledExpression:
    """
    Скомпилированное выражение: чистая функция float → float.

    Не хранит изменяемого состояния; безопасно для повторных и
    параллельных вызовов.
    """

    source: str
    variable: str
    _evaluator: Evaluator = field(repr=False, compare=False)

    def __call__(self, x: float) -> float:
        """
        Вычисление выражения в точке x.

        Raises:
            ExpressionEvaluationError: Domain error или NaN/Inf результат
        """
        try:
            value = self._evaluator(float(x))
        except _EVALUATION_FAULTS as e:
            raise ExpressionEvaluationError(x, _describe_fault(e), self.source) from e

        if not is_valid_float(value):
            raise ExpressionEvaluationError(
                x, f"result is {describe_non_finite(value)}", self.source
            )
        return value


def _describe_fault(error: BaseException) -> str:
    if isinstance(error, ZeroDivisionError):
        return "division by zero"
    if isinstance(error, OverflowError):
        return "numeric overflow"
    if isinstance(error, RecursionError):
        return "expression nested too deeply"
    return str(error) or error.__class__.__name__


# =============================================================================
# COMPILER
# =============================================================================


@dataclass(frozen=True)
class ExpressionCompiler:
    """
    Компилятор выражений одной переменной.

    Attributes:
        variable: Имя единственной допустимой переменной
        canary: Точка fail-fast проверки (None — без проверки)
        max_length: Максимальная длина текста
    """

    variable: str = DEFAULT_VARIABLE
    canary: float | None = DEFAULT_CANARY
    max_length: int = MAX_EXPRESSION_LENGTH

    def compile(self, source: str) -> CompiledExpression:
        """
        Компиляция текста выражения.

        Args:
            source: Текст формулы

        Returns:
            CompiledExpression

        Raises:
            InvalidExpression: Пустое/слишком длинное/синтаксически неверное
                выражение, запрещённая конструкция, посторонняя переменная,
                либо сбой вычисления в canary-точке
        """
        if not isinstance(source, str):
            raise InvalidExpression(repr(source), "expression must be a string")

        text = source.strip()
        if not text:
            raise InvalidExpression(source, "expression is empty")
        if len(text) > self.max_length:
            raise InvalidExpression(
                source, f"expression is longer than {self.max_length} characters"
            )

        # "^" означает степень
        normalized = text.replace("^", "**")

        try:
            tree = ast.parse(normalized, mode="eval")
            evaluator = _ClosureBuilder(source, self.variable).visit(tree)
        except InvalidExpression as e:
            logger.warning("Rejected expression %r: %s", source, e.reason)
            raise
        except SyntaxError as e:
            raise InvalidExpression(source, f"syntax error: {e.msg}") from e
        except (RecursionError, MemoryError) as e:
            raise InvalidExpression(source, "expression nested too deeply") from e
        except ValueError as e:
            # ast.parse: null bytes в исходнике (Python < 3.12)
            raise InvalidExpression(source, str(e)) from e

        compiled = CompiledExpression(source=source, variable=self.variable, _evaluator=evaluator)

        if self.canary is not None:
            try:
                compiled(self.canary)
            except ExpressionEvaluationError as e:
                logger.warning("Expression %r failed canary probe: %s", source, e.reason)
                raise InvalidExpression(
                    source, f"cannot be evaluated at {self.variable} = {self.canary:g}: {e.reason}"
                ) from e

        logger.debug("Compiled expression %r", source)
        return compiled


def compile_expression(
    source: str,
    variable: str = DEFAULT_VARIABLE,
    canary: float | None = DEFAULT_CANARY,
) -> CompiledExpression:
    """
    Компиляция выражения с параметрами по умолчанию.

    Examples:
        >>> f = compile_expression("x*x - 2")
        >>> f(3.0)
        7.0
    """
    return ExpressionCompiler(variable=variable, canary=canary).compile(source)
