"""Estado del progreso del estudiante y de la sesión de quiz."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

LOCKED = "locked"
UNLOCKED = "unlocked"
COMPLETED = "completed"

# Orden monótono: un estado nunca retrocede
STATUS_RANK = {LOCKED: 0, UNLOCKED: 1, COMPLETED: 2}

STUDENT = "student"
ORGANIZER = "organizer"
ROLES = (STUDENT, ORGANIZER)

PASS_THRESHOLD = 0.60


def is_passing(score: int, total: int, threshold: float = PASS_THRESHOLD) -> bool:
    """Aprobado si hay preguntas y la proporción alcanza el umbral."""
    return total > 0 and score / total >= threshold


@dataclass
class User:
    """Usuario autenticado (lo entrega el contexto de auth)."""

    id: str
    username: str
    role: str = STUDENT  # student, organizer

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Rol desconocido: {self.role}")

    @property
    def is_organizer(self) -> bool:
        return self.role == ORGANIZER


@dataclass
class ModuleStatus:
    """Estado de un módulo para un usuario."""

    module_id: int
    status: str = LOCKED  # locked, unlocked, completed

    def __post_init__(self) -> None:
        if self.status not in STATUS_RANK:
            raise ValueError(f"Estado de módulo desconocido: {self.status}")

    def promote(self, status: str) -> bool:
        """Avanzar el estado; nunca lo degrada. Devuelve True si cambió."""
        if STATUS_RANK[status] > STATUS_RANK[self.status]:
            self.status = status
            return True
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {"moduleId": self.module_id, "status": self.status}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModuleStatus:
        """Crear desde diccionario."""
        module_id = data.get("moduleId", data.get("module_id"))
        if module_id is None:
            raise KeyError("moduleId")
        return cls(module_id=int(module_id), status=data["status"])


@dataclass(frozen=True)
class QuizResult:
    """Resultado de un quiz (valor de presentación)."""

    score: int
    total: int
    passed: bool

    @classmethod
    def compute(cls, score: int, total: int, threshold: float = PASS_THRESHOLD) -> QuizResult:
        return cls(score=score, total=total, passed=is_passing(score, total, threshold))

    @property
    def percentage(self) -> float:
        return (self.score / self.total * 100) if self.total else 0.0


@dataclass
class QuizOutcome:
    """Resultado de quiz reportado al almacén de progreso."""

    module_id: int
    score: int
    total: int
    passed: bool
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "moduleId": self.module_id,
            "score": self.score,
            "total": self.total,
            "passed": self.passed,
            "completedAt": self.completed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizOutcome:
        """Crear desde diccionario."""
        ts = data.get("completedAt")
        return cls(
            module_id=int(data["moduleId"]),
            score=int(data["score"]),
            total=int(data["total"]),
            passed=bool(data["passed"]),
            completed_at=datetime.fromisoformat(ts) if ts else datetime.now(timezone.utc),
        )


@dataclass
class QuizSessionState:
    """Estado serializable de un intento de quiz en curso."""

    module_id: int
    current_question_index: int = 0
    selected_answers: dict[int, str] = field(default_factory=dict)
    end_time: int = 0  # epoch en milisegundos

    def copy(self) -> QuizSessionState:
        return QuizSessionState(
            module_id=self.module_id,
            current_question_index=self.current_question_index,
            selected_answers=dict(self.selected_answers),
            end_time=self.end_time,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario (claves JSON como strings)."""
        return {
            "moduleId": self.module_id,
            "currentQuestionIndex": self.current_question_index,
            "selectedAnswers": {str(k): v for k, v in self.selected_answers.items()},
            "endTime": self.end_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizSessionState:
        """Crear desde diccionario."""
        answers = data.get("selectedAnswers") or {}
        if not isinstance(answers, dict):
            raise ValueError("selectedAnswers debe ser un objeto")
        return cls(
            module_id=int(data["moduleId"]),
            current_question_index=int(data.get("currentQuestionIndex", 0)),
            selected_answers={int(k): str(v) for k, v in answers.items()},
            end_time=int(data["endTime"]),
        )
