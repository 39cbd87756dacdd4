"""Historial acotado de cálculos, con persistencia opcional en JSON."""

from __future__ import annotations

import json
import logging
import os
from collections import deque
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


@dataclass(frozen=True)
class HistoryEntry:
    expression: str
    result: str


class CalculationHistory:
    """Guarda los últimos ``limit`` cálculos, del más antiguo al más reciente."""

    def __init__(self, limit: int = 50, path: str | None = None):
        if limit < 1:
            raise ValueError("El límite del historial debe ser al menos 1")
        self._limit = limit
        self._path = path
        self._entries: deque[HistoryEntry] = deque(maxlen=limit)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def path(self) -> str | None:
        return self._path

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(tuple(self._entries))

    def record(self, expression: str, result: str) -> HistoryEntry:
        entry = HistoryEntry(expression, result)
        self._entries.append(entry)
        return entry

    def latest(self) -> HistoryEntry | None:
        return self._entries[-1] if self._entries else None

    def clear(self):
        self._entries.clear()

    # ── Persistencia ─────────────────────────────────────────────

    def save(self):
        """Escribe el historial de forma atómica (archivo temporal + reemplazo)."""
        if self._path is None:
            return

        payload = {
            "version": FORMAT_VERSION,
            "entries": [asdict(entry) for entry in self._entries],
        }
        directory = os.path.dirname(self._path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        tmp_path = f"{self._path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.info("Historial guardado: %d entradas en %s", len(self._entries), self._path)

    def load(self) -> int:
        """Carga el historial del disco y devuelve cuántas entradas quedaron.

        Un archivo ausente deja el historial vacío. Un archivo ilegible o con
        formato inesperado se ignora con una advertencia.
        """
        self._entries.clear()
        if self._path is None or not os.path.exists(self._path):
            return 0

        try:
            with open(self._path, encoding="utf-8") as f:
                payload = json.load(f)
            entries = [
                HistoryEntry(str(item["expression"]), str(item["result"]))
                for item in payload["entries"]
            ]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Historial ilegible en %s, se ignora: %s", self._path, exc)
            return 0

        # deque(maxlen) conserva solo las más recientes
        self._entries.extend(entries)
        logger.info("Historial cargado: %d entradas desde %s", len(self._entries), self._path)
        return len(self._entries)
