"""Parseo y evaluación de expresiones aritméticas por descenso recursivo.

Gramática (precedencia de menor a mayor):

    AddSub  := MulDiv (('+' | '-') MulDiv)*
    MulDiv  := Exp (('*' | '/') Exp)*
    Exp     := Unary ('^' Exp)?
    Unary   := ('-' | '+') Unary | Primary
    Primary := '(' AddSub ')' | Number
    Number  := digit+ ('.' digit+)?
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)


_GLYPHS = {
    "×": "*",
    "÷": "/",
    "−": "-",
}

_DIGITS = frozenset("0123456789")

# anidamiento máximo de paréntesis y de exponentes encadenados
MAX_NESTING = 100


def normalize_expression(expression: str) -> str:
    """Elimina espacios y convierte los símbolos de la UI a ASCII."""
    expr = "".join(expression.split())
    for glyph, ascii_op in _GLYPHS.items():
        expr = expr.replace(glyph, ascii_op)
    return expr


# ═════════════════════════════════════════════════════════════════
#  Errores
# ═════════════════════════════════════════════════════════════════

class ErrorKind(enum.Enum):
    INVALID_EXPRESSION = "invalid_expression"
    MISMATCHED_PARENTHESES = "mismatched_parentheses"
    DIVISION_BY_ZERO = "division_by_zero"


class EvaluationError(ValueError):
    """Error de evaluación con su tipo y la posición del cursor."""

    kind = ErrorKind.INVALID_EXPRESSION

    def __init__(self, message: str, position: int = 0):
        super().__init__(message)
        self.message = message
        self.position = position

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, position={self.position})"


class InvalidExpressionError(EvaluationError):
    kind = ErrorKind.INVALID_EXPRESSION


class InvalidNumberError(InvalidExpressionError):
    """Literal numérico mal formado: '.', '1.', '.5', '1..2', '1.2.3'."""


class MismatchedParenthesesError(EvaluationError):
    kind = ErrorKind.MISMATCHED_PARENTHESES


class DivisionByZeroError(EvaluationError, ZeroDivisionError):
    kind = ErrorKind.DIVISION_BY_ZERO


# ═════════════════════════════════════════════════════════════════
#  Resultado
# ═════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Evaluation:
    """Resultado etiquetado: un valor o un error, nunca ambos."""

    value: float | None = None
    error: EvaluationError | None = None

    def __post_init__(self):
        if (self.value is None) == (self.error is None):
            raise ValueError("Evaluation requiere un valor o un error, no ambos")

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> float:
        """Devuelve el valor o lanza el error almacenado."""
        if self.error is not None:
            raise self.error
        return self.value


# ═════════════════════════════════════════════════════════════════
#  Contexto de parseo
# ═════════════════════════════════════════════════════════════════

class _ParserContext:
    """Texto normalizado y cursor de una única evaluación."""

    __slots__ = ("text", "pos", "depth", "nesting")

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.depth = 0
        self.nesting = 0

    def enter(self):
        self.nesting += 1
        if self.nesting > MAX_NESTING:
            raise InvalidExpressionError("Expresión demasiado anidada", self.pos)

    def leave(self):
        self.nesting -= 1

    def peek(self) -> str:
        if self.pos < len(self.text):
            return self.text[self.pos]
        return ""

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def advance(self) -> str:
        ch = self.text[self.pos]
        self.pos += 1
        return ch

    def consume_digits(self) -> int:
        start = self.pos
        while self.peek() in _DIGITS:
            self.pos += 1
        return self.pos - start


# ═════════════════════════════════════════════════════════════════
#  Evaluador
# ═════════════════════════════════════════════════════════════════

class ExpressionEvaluator:
    """Evalúa expresiones con + - * / ^, paréntesis y signo unario.

    No guarda estado entre llamadas: cada ``evaluate`` crea su propio
    contexto, así que una misma instancia puede usarse desde varios hilos.
    """

    def evaluate(self, expression: str) -> Evaluation:
        ctx = _ParserContext(normalize_expression(expression))
        try:
            value = self._parse_add_sub(ctx)
            self._expect_end(ctx)
        except RecursionError:
            exc = InvalidExpressionError("Expresión demasiado anidada", ctx.pos)
            logger.debug("Evaluación fallida por recursión en %d: %r", ctx.pos, expression)
            return Evaluation(error=exc)
        except EvaluationError as exc:
            logger.debug(
                "Evaluación fallida (%s en %d): %r",
                exc.kind.value,
                exc.position,
                expression,
            )
            return Evaluation(error=exc)
        return Evaluation(value=value)

    # ── Niveles de precedencia ───────────────────────────────────

    def _parse_add_sub(self, ctx: _ParserContext) -> float:
        left = self._parse_mul_div(ctx)
        while ctx.peek() in ("+", "-"):
            op = ctx.advance()
            right = self._parse_mul_div(ctx)
            left = left + right if op == "+" else left - right
        return left

    def _parse_mul_div(self, ctx: _ParserContext) -> float:
        left = self._parse_exponent(ctx)
        while ctx.peek() in ("*", "/"):
            op = ctx.advance()
            op_pos = ctx.pos
            right = self._parse_exponent(ctx)
            if op == "*":
                left = left * right
            elif right == 0.0:
                raise DivisionByZeroError("División por cero", op_pos)
            else:
                left = left / right
        return left

    def _parse_exponent(self, ctx: _ParserContext) -> float:
        base = self._parse_unary(ctx)
        if ctx.peek() == "^":
            ctx.advance()
            # recursión a la derecha: 2^3^2 == 2^(3^2)
            ctx.enter()
            exponent = self._parse_exponent(ctx)
            ctx.leave()
            return _power(base, exponent)
        return base

    def _parse_unary(self, ctx: _ParserContext) -> float:
        # --5 == -(-5): cada '-' invierte el signo
        negate = False
        while ctx.peek() in ("-", "+"):
            if ctx.advance() == "-":
                negate = not negate
        value = self._parse_primary(ctx)
        return -value if negate else value

    def _parse_primary(self, ctx: _ParserContext) -> float:
        ch = ctx.peek()
        if ch == "(":
            open_pos = ctx.pos
            ctx.advance()
            ctx.depth += 1
            ctx.enter()
            value = self._parse_add_sub(ctx)
            if ctx.at_end():
                raise MismatchedParenthesesError(
                    "Falta ')' para el '(' abierto", open_pos
                )
            if ctx.peek() != ")":
                raise InvalidExpressionError(
                    f"Se esperaba ')' y se encontró '{ctx.peek()}'", ctx.pos
                )
            ctx.advance()
            ctx.depth -= 1
            ctx.leave()
            return value
        if ch in _DIGITS or ch == ".":
            return self._parse_number(ctx)
        if ch == ")" and ctx.depth == 0:
            raise MismatchedParenthesesError("')' sin '(' correspondiente", ctx.pos)
        if not ch:
            raise InvalidExpressionError("Expresión incompleta", ctx.pos)
        raise InvalidExpressionError(f"Símbolo inesperado '{ch}'", ctx.pos)

    def _parse_number(self, ctx: _ParserContext) -> float:
        start = ctx.pos
        if ctx.consume_digits() == 0:
            raise InvalidNumberError("Número sin parte entera", start)
        if ctx.peek() == ".":
            ctx.advance()
            if ctx.consume_digits() == 0:
                raise InvalidNumberError("Número sin dígitos decimales", start)
            if ctx.peek() == ".":
                raise InvalidNumberError("Número con más de un punto decimal", start)
        return float(ctx.text[start:ctx.pos])

    @staticmethod
    def _expect_end(ctx: _ParserContext):
        if ctx.at_end():
            return
        if ctx.peek() == ")":
            raise MismatchedParenthesesError("')' sin '(' correspondiente", ctx.pos)
        raise InvalidExpressionError(f"Símbolo inesperado '{ctx.peek()}'", ctx.pos)


def _power(base: float, exponent: float) -> float:
    """``math.pow`` con la semántica IEEE de ``pow`` en vez de excepciones."""
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and _is_odd_integer(exponent):
            return -math.inf
        return math.inf
    except ValueError:
        # 0 elevado a negativo; el resto son bases negativas con exponente
        # fraccionario
        if base == 0.0:
            if _is_odd_integer(exponent):
                return math.copysign(math.inf, base)
            return math.inf
        return math.nan


def _is_odd_integer(x: float) -> bool:
    return x.is_integer() and x % 2 == 1


def evaluate(expression: str) -> Evaluation:
    """Atajo: evalúa con un evaluador nuevo."""
    return ExpressionEvaluator().evaluate(expression)
