"""
Motor de cálculo de la calculadora.

Este módulo provee la clase CalculatorEngine, que une el evaluador de
expresiones con el formato de pantalla y el historial de cálculos.
El evaluador no conoce ni el formato ni el historial; el motor es la
capa que consume la interfaz (consola u otra).

Contrato de interfaz:
    - evaluate(expression: str) -> str
    - try_evaluate(expression: str) -> Evaluation
    - history: CalculationHistory | None
"""

from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_EVEN, Decimal

from calculation_history import CalculationHistory
from formula_evaluator import Evaluation, ExpressionEvaluator

logger = logging.getLogger(__name__)


class CalculatorEngine:
    """Evalúa expresiones aritméticas y formatea el resultado."""

    ERROR_TEXT = "Error"
    MAX_FRACTION_DIGITS = 10

    def __init__(self, history: CalculationHistory | None = None):
        self._evaluator = ExpressionEvaluator()
        self._history = history

    @property
    def history(self) -> CalculationHistory | None:
        return self._history

    # ── Evaluación principal ─────────────────────────────────────

    def try_evaluate(self, expression: str) -> Evaluation:
        return self._evaluator.evaluate(expression)

    def evaluate(self, expression: str) -> str:
        """Evalúa la expresión y devuelve el resultado como cadena.

        Si hay historial, el cálculo correcto queda registrado en él.

        Raises:
            InvalidExpressionError: expresión o número mal formados.
            MismatchedParenthesesError: paréntesis desbalanceados.
            DivisionByZeroError: división por cero.
        """
        value = self.try_evaluate(expression).unwrap()
        text = self.format_result(value)
        if self._history is not None:
            self._history.record(expression.strip(), text)
        logger.debug("%s = %s", expression, text)
        return text

    # ── Formato del resultado ────────────────────────────────────

    @classmethod
    def format_result(cls, value: float) -> str:
        """Enteros sin punto decimal; el resto con hasta diez decimales."""
        if math.isnan(value):
            return "NaN"
        if value == math.inf:
            return "∞"
        if value == -math.inf:
            return "-∞"
        if value == int(value):
            return str(int(value))

        step = Decimal(1).scaleb(-cls.MAX_FRACTION_DIGITS)
        rounded = Decimal(repr(value)).quantize(step, rounding=ROUND_HALF_EVEN)
        text = format(rounded, "f").rstrip("0").rstrip(".")
        if text in ("", "-0"):
            return "0"
        return text
