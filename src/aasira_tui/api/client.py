"""Cliente HTTP para el backend REST de progreso."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.persistence import ProgressStore, ProgressStoreError
from ..core.state import ModuleStatus, QuizOutcome

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"


class HttpProgressStore(ProgressStore):
    """Almacén de progreso sobre la API REST (`/progress`)."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: int | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Inicializar cliente."""
        if base_url is None or timeout is None:
            from ..config import get_config

            config = get_config()
            base_url = base_url or config.api_url or DEFAULT_API_URL
            timeout = timeout or config.api_timeout
            if token is None:
                token = config.api_token

        self.base_url = base_url.rstrip("/")
        self.token = token
        self.client = client or httpx.Client(timeout=timeout)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        try:
            response = self.client.request(
                method,
                f"{self.base_url}{path}",
                json=payload,
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise ProgressStoreError(f"Error de conexión con {self.base_url}: {e}") from e

        if response.is_error:
            try:
                detail = response.json().get("error", "Request failed")
            except ValueError:
                detail = "Request failed"
            raise ProgressStoreError(f"{method} {path} -> {response.status_code}: {detail}")

        try:
            return response.json()
        except ValueError as e:
            raise ProgressStoreError(f"Respuesta no JSON de {path}") from e

    def load_progress(self, user_id: str) -> list[ModuleStatus] | None:
        """Cargar estados (el backend identifica al usuario por el token)."""
        data = self._request("GET", "/progress")
        raw = (data or {}).get("moduleStatuses") or []
        if not raw:
            return None
        try:
            return [ModuleStatus.from_dict(s) for s in raw]
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Estados de módulo inválidos desde la API para %s: %s", user_id, e)
            return None

    def load_quiz_results(self, user_id: str) -> list[QuizOutcome]:
        data = self._request("GET", "/progress")
        results = []
        for item in (data or {}).get("quizResults") or []:
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
        """PUT /progress con los estados y el resultado opcional."""
        payload: dict[str, Any] = {"moduleStatuses": [s.to_dict() for s in statuses]}
        if outcome is not None:
            payload["quizResult"] = {
                "moduleId": outcome.module_id,
                "score": outcome.score,
                "total": outcome.total,
                "passed": outcome.passed,
            }
        self._request("PUT", "/progress", payload)

    def load_all(self) -> list[dict[str, Any]]:
        """Progreso de todos los estudiantes (solo organizadores)."""
        data = self._request("GET", "/progress/all")
        return data if isinstance(data, list) else []

    def close(self) -> None:
        """Cerrar cliente."""
        self.client.close()
