"""Arithmetic on plain expressions like ``12 x 3`` or ``(2+3)^2``."""

import ast
import math
import operator
from typing import Any

from asisbot.agent.tools.base import Tool
from asisbot.errors import ValidationError

_BIN_OPS: dict[type[ast.operator], Any] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPS: dict[type[ast.unaryop], Any] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

MAX_EXPONENT = 100
MAX_LENGTH = 120
# Every intermediate value stays below 10**MAX_DIGITS.
MAX_DIGITS = 100
_LIMIT = 10**MAX_DIGITS


def _to_python(expr: str) -> str:
    # Comma is the decimal separator in Indonesian ("1,5").
    return (
        expr.replace("×", "*").replace("x", "*").replace("X", "*")
        .replace("÷", "/").replace("^", "**").replace(",", ".")
    )


def _digits(value: float | int) -> float:
    value = abs(value)
    return math.log10(value) if value > 1 else 0.0


def _bounded(value: Any) -> float | int:
    if isinstance(value, complex):
        raise ValidationError("result is not a real number")
    if abs(value) > _LIMIT:
        raise ValidationError("result too large")
    return value


def _eval(node: ast.AST) -> float | int:
    if isinstance(node, ast.Expression):
        return _eval(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return _bounded(node.value)
    if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
        left, right = _eval(node.left), _eval(node.right)
        # Size checks run before the operation so huge results are never built.
        if isinstance(node.op, ast.Pow):
            if abs(right) > MAX_EXPONENT:
                raise ValidationError("exponent too large")
            if right > 0 and _digits(left) * right > MAX_DIGITS:
                raise ValidationError("result too large")
        elif isinstance(node.op, ast.Mult) and _digits(left) + _digits(right) > MAX_DIGITS + 1:
            raise ValidationError("result too large")
        return _bounded(_BIN_OPS[type(node.op)](left, right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval(node.operand))
    raise ValidationError(f"unsupported expression element: {type(node).__name__}")


def evaluate(expr: str) -> float | int:
    """Evaluate an arithmetic expression over a whitelisted AST.

    Raises:
        ValidationError: empty, too long, not arithmetic, out of range, or
            division by zero.
    """
    expr = (expr or "").strip()
    if not expr or len(expr) > MAX_LENGTH:
        raise ValidationError("expression empty or too long")
    try:
        tree = ast.parse(_to_python(expr), mode="eval")
    except SyntaxError as exc:
        raise ValidationError(f"not an arithmetic expression: {expr}") from exc
    try:
        return _eval(tree)
    except ZeroDivisionError as exc:
        raise ValidationError("division by zero") from exc
    except (OverflowError, ValueError) as exc:
        raise ValidationError(f"result out of range: {expr}") from exc


def format_number(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return str(value)
    return f"{value:.10g}"


class CalculatorTool(Tool):
    name = "calculator"
    description = "Evaluate simple arithmetic."

    async def execute(self, expr: str = "", **kwargs: Any) -> str:
        try:
            result = evaluate(expr)
        except ValidationError:
            return "Hitungannya nggak bisa aku proses 😅"
        return f"🧮 {expr.strip()} = {format_number(result)}"
