"""Configuración global de la aplicación."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_data_dir

DEFAULT_CONTENT_FILE = Path(__file__).parent / "data" / "modules.yaml"


@dataclass(frozen=True)
class Config:
    """Configuración inmutable de la aplicación."""

    # Usuario autenticado (lo entrega el contexto de auth)
    user_id: str = "user-student-demo"
    username: str = "student"
    role: str = "student"  # student, organizer

    # Quiz
    quiz_duration: int = 600  # segundos
    pass_threshold: float = 0.60
    tick_interval: float = 1.0  # segundos

    # Backend REST (opcional)
    api_url: str | None = None
    api_token: str | None = None
    api_timeout: int = 10

    # Paths
    data_dir: Path = Path(user_data_dir("aasira-tui", "aasira"))
    content_file: Path = DEFAULT_CONTENT_FILE
    progress_dir: Path = field(init=False)
    session_dir: Path = field(init=False)
    log_file: Path = field(init=False)

    # App
    app_name: str = "Aasira Courses"
    version: str = "0.1.0"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        object.__setattr__(self, "progress_dir", self.data_dir / "progress")
        object.__setattr__(self, "session_dir", self.data_dir / "session")
        object.__setattr__(self, "log_file", self.data_dir / "aasira.log")

    @classmethod
    def from_env(cls) -> Config:
        """Crear configuración desde variables de entorno."""
        data_dir = os.getenv("AASIRA_DATA_DIR")
        content_file = os.getenv("AASIRA_CONTENT_FILE")

        return cls(
            user_id=os.getenv("AASIRA_USER_ID", "user-student-demo"),
            username=os.getenv("AASIRA_USERNAME", "student"),
            role=os.getenv("AASIRA_ROLE", "student"),
            quiz_duration=int(os.getenv("AASIRA_QUIZ_DURATION", "600")),
            tick_interval=float(os.getenv("AASIRA_TICK_INTERVAL", "1.0")),
            api_url=os.getenv("AASIRA_API_URL") or None,
            api_token=os.getenv("AASIRA_API_TOKEN") or None,
            api_timeout=int(os.getenv("AASIRA_API_TIMEOUT", "10")),
            data_dir=Path(data_dir) if data_dir else Path(user_data_dir("aasira-tui", "aasira")),
            content_file=Path(content_file) if content_file else DEFAULT_CONTENT_FILE,
            log_level=os.getenv("AASIRA_LOG_LEVEL", "INFO").upper(),
        )

    def ensure_dirs(self) -> None:
        """Crear directorios necesarios si no existen."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.progress_dir.mkdir(parents=True, exist_ok=True)
        self.session_dir.mkdir(parents=True, exist_ok=True)


# Instancia global
_config: Config | None = None


def get_config() -> Config:
    """Obtener instancia de configuración (singleton)."""
    global _config
    if _config is None:
        _config = Config.from_env()
        _config.ensure_dirs()
    return _config


def set_config(config: Config) -> None:
    """Establecer configuración (para tests)."""
    global _config
    _config = config
    _config.ensure_dirs()
