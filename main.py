"""Punto de entrada de la calculadora (consola)."""

import logging
import os
import sys

from calculation_history import CalculationHistory
from calculator_engine import CalculatorEngine
from formula_evaluator import EvaluationError

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50
HISTORY_FILE = os.path.join(os.path.expanduser("~"), ".calculadora", "history.json")
PERSIST_HISTORY = True
LOG_LEVEL = logging.WARNING

EXIT_COMMANDS = ("exit", "quit")


def run_session(engine: CalculatorEngine, stdin=None, stdout=None):
    """Lee expresiones línea a línea hasta EOF, ``exit`` o ``quit``."""
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    for line in stdin:
        expr = line.strip()
        if not expr:
            continue
        if expr in EXIT_COMMANDS:
            break
        if expr == "history":
            _print_history(engine, stdout)
            continue
        if expr == "clear":
            if engine.history is not None:
                engine.history.clear()
            continue

        try:
            result = engine.evaluate(expr)
        except EvaluationError as exc:
            logger.info("%s: %s", type(exc).__name__, exc)
            result = engine.ERROR_TEXT
        print(result, file=stdout)


def _print_history(engine: CalculatorEngine, stdout):
    if engine.history is None:
        return
    for entry in engine.history:
        print(f"{entry.expression} = {entry.result}", file=stdout)


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    history = CalculationHistory(
        limit=HISTORY_LIMIT,
        path=HISTORY_FILE if PERSIST_HISTORY else None,
    )
    history.load()
    engine = CalculatorEngine(history=history)
    if sys.stdin.isatty():
        print("Calculadora: escribe una expresión, 'history' o 'exit'.")
    try:
        run_session(engine)
    except KeyboardInterrupt:
        print()
    finally:
        history.save()


if __name__ == "__main__":
    main()
