"""Persistencia de la sesión de quiz en curso (sobrevive a recargas)."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable

from .course import Module
from .state import QuizSessionState

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Almacén clave-valor genérico (valores string).

    Cualquier excepción de una implementación se trata como fallo de
    persistencia: `SessionBridge` la registra y la sesión sigue en memoria.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Leer valor; None si no existe."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Escribir valor."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Borrar valor (no falla si no existe)."""
        pass


class MemoryKeyValueStore(KeyValueStore):
    """Almacén en memoria (tests y sesiones efímeras)."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """Un archivo por clave dentro de un directorio."""

    def __init__(self, base_path: Path) -> None:
        """Inicializar con ruta base."""
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.base_path / f"{safe}.json"

    def get(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        # Escritura atómica: temporal + replace
        fd, tmp = tempfile.mkstemp(dir=self.base_path, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        if path.exists():
            path.unlink()


def now_ms() -> int:
    """Timestamp actual en milisegundos."""
    return int(time.time() * 1000)


class SessionBridge:
    """Guarda y restaura la sesión de quiz de un usuario."""

    KEY_PREFIX = "quiz_state_"

    def __init__(
        self,
        store: KeyValueStore,
        user_id: str,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.user_id = user_id
        self.clock = clock
        self.last_error: Exception | None = None

    @property
    def key(self) -> str:
        return f"{self.KEY_PREFIX}{self.user_id}"

    def save(self, state: QuizSessionState) -> bool:
        """Escribir el estado completo. Un fallo no interrumpe la sesión."""
        try:
            self.store.set(self.key, json.dumps(state.to_dict(), ensure_ascii=False))
        except Exception as e:
            self.last_error = e
            logger.warning("No se pudo guardar la sesión de quiz de %s: %s", self.user_id, e)
            return False
        self.last_error = None
        return True

    def load(self) -> QuizSessionState | None:
        """Leer el registro sin validarlo contra el catálogo."""
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            logger.warning("No se pudo leer la sesión de quiz de %s: %s", self.user_id, e)
            return None
        if raw is None:
            return None
        try:
            return QuizSessionState.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, ValueError, TypeError, AttributeError) as e:
            logger.info("Sesión de quiz corrupta para %s, descartada: %s", self.user_id, e)
            self.clear()
            return None

    def restore(
        self,
        modules: Iterable[Module],
        allowed: Callable[[int], bool] | None = None,
        now: int | None = None,
    ) -> QuizSessionState | None:
        """Restaurar la sesión si sigue siendo válida; si no, descartarla."""
        state = self.load()
        if state is None:
            return None

        by_id = {m.id: m for m in modules}
        module = by_id.get(state.module_id)
        now = self.clock() if now is None else now

        reason = None
        if module is None:
            reason = "módulo inexistente"
        elif allowed is not None and not allowed(state.module_id):
            reason = "módulo no permitido"
        elif not module.quiz:
            reason = "módulo sin preguntas"
        elif not 0 <= state.current_question_index < len(module.quiz):
            reason = "índice de pregunta fuera de rango"
        elif state.end_time <= now:
            reason = "tiempo agotado"

        if reason:
            logger.info(
                "Sesión de quiz de %s (módulo %s) descartada: %s",
                self.user_id, state.module_id, reason,
            )
            self.clear()
            return None

        return state

    def clear(self) -> None:
        """Borrar el registro de sesión."""
        try:
            self.store.remove(self.key)
        except Exception as e:
            self.last_error = e
            logger.warning("No se pudo borrar la sesión de quiz de %s: %s", self.user_id, e)
