"""Capa de persistencia para el progreso de los usuarios."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .state import ModuleStatus, QuizOutcome

logger = logging.getLogger(__name__)


class ProgressStoreError(Exception):
    """Error leyendo o escribiendo progreso."""

    pass


class ProgressStore(ABC):
    """Interfaz del almacén de progreso por usuario."""

    @abstractmethod
    def load_progress(self, user_id: str) -> list[ModuleStatus] | None:
        """Cargar estados de módulo; None si no hay registro."""
        pass

    @abstractmethod
    def save_progress(
        self,
        user_id: str,
        statuses: list[ModuleStatus],
        outcome: QuizOutcome | None = None,
    ) -> None:
        """Guardar estados y, opcionalmente, añadir un resultado de quiz."""
        pass

    def close(self) -> None:
        """Liberar recursos (conexiones); por defecto no hace nada."""
        pass


class FileProgressStore(ProgressStore):
    """Un documento JSON por usuario."""

    def __init__(self, base_path: Path) -> None:
        """Inicializar con ruta base."""
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def get_progress_path(self, user_id: str) -> Path:
        """Obtener ruta del documento de progreso."""
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", user_id)
        return self.base_path / f"{safe}.json"

    def _read(self, path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ProgressStoreError(f"No se pudo leer {path}: {e}") from e
        except json.JSONDecodeError:
            logger.warning("Progreso corrupto en %s, se ignora", path)
            return None
        return data if isinstance(data, dict) else None

    def _load_document(self, user_id: str) -> dict[str, Any] | None:
        return self._read(self.get_progress_path(user_id))

    def load_progress(self, user_id: str) -> list[ModuleStatus] | None:
        """Cargar estados de módulo del usuario."""
        data = self._load_document(user_id)
        if data is None:
            return None
        try:
            return [ModuleStatus.from_dict(s) for s in data.get("module_statuses", [])]
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Estados de módulo inválidos para %s: %s", user_id, e)
            return None

    def load_quiz_results(self, user_id: str) -> list[QuizOutcome]:
        """Historial de resultados de quiz del usuario."""
        data = self._load_document(user_id) or {}
        results = []
        for item in data.get("quiz_results", []):
            try:
                results.append(QuizOutcome.from_dict(item))
            except (KeyError, ValueError, TypeError):
                continue
        return results

    def save_progress(
        self,
        user_id: str,
        statuses: list[ModuleStatus],
        outcome: QuizOutcome | None = None,
    ) -> None:
        """Guardar progreso del usuario."""
        path = self.get_progress_path(user_id)
        data = self._load_document(user_id) or {"user_id": user_id, "quiz_results": []}
        data["module_statuses"] = [s.to_dict() for s in statuses]
        if outcome is not None:
            data.setdefault("quiz_results", []).append(outcome.to_dict())
        data["last_updated"] = datetime.now(timezone.utc).isoformat()

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ProgressStoreError(f"No se pudo guardar {path}: {e}") from e

    def load_all(self) -> list[dict[str, Any]]:
        """Progreso de todos los usuarios (vista de organizador)."""
        documents = []
        for path in sorted(self.base_path.glob("*.json")):
            data = self._read(path)
            if data is not None:
                documents.append(data)
        return documents
