"""Modelos de contenido: módulos, preguntas y catálogo del curso."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class ContentError(Exception):
    """Error cargando el contenido del curso."""

    pass


@dataclass(frozen=True)
class VideoLink:
    """Enlace a un vídeo relacionado."""

    title: str
    url: str

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "url": self.url}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VideoLink:
        return cls(title=data["title"], url=data["url"])


@dataclass(frozen=True)
class Question:
    """Una pregunta de opción múltiple con una única respuesta correcta."""

    question: str
    options: tuple[str, ...]
    correct_answer: str

    def is_correct(self, answer: str | None) -> bool:
        """Comparación exacta (sensible a mayúsculas)."""
        return answer is not None and answer == self.correct_answer

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "question": self.question,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        """Crear desde diccionario."""
        options = tuple(str(o) for o in data.get("options", []))
        correct = data.get("correct_answer", data.get("correctAnswer"))
        if correct is None:
            raise ContentError(f"Pregunta sin respuesta correcta: {data.get('question')!r}")
        correct = str(correct)
        if options and correct not in options:
            raise ContentError(
                f"La respuesta correcta {correct!r} no está entre las opciones de {data.get('question')!r}"
            )
        return cls(question=data["question"], options=options, correct_answer=correct)


@dataclass(frozen=True)
class Module:
    """Un módulo del curso (contenido inmutable)."""

    id: int
    title: str
    content: str = ""
    video_links: tuple[VideoLink, ...] = ()
    quiz: tuple[Question, ...] = ()
    sequence_index: int = 0  # posición en el curso, distinta del id

    @property
    def question_count(self) -> int:
        return len(self.quiz)

    @property
    def paragraphs(self) -> list[str]:
        """Párrafos no vacíos del texto del módulo."""
        return [p.strip() for p in self.content.split("\n") if p.strip()]

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "video_links": [link.to_dict() for link in self.video_links],
            "quiz": [q.to_dict() for q in self.quiz],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Module:
        """Crear desde diccionario."""
        links = data.get("video_links", data.get("youtubeLinks", [])) or []
        return cls(
            id=int(data["id"]),
            title=data["title"],
            content=data.get("content", ""),
            video_links=tuple(VideoLink.from_dict(link) for link in links),
            quiz=tuple(Question.from_dict(q) for q in data.get("quiz", []) or []),
        )


@dataclass
class CourseCatalog:
    """Proveedor de contenido: módulos ordenados por id."""

    title: str
    modules: list[Module] = field(default_factory=list)
    path: Path | None = None

    def __post_init__(self) -> None:
        ordered = sorted(self.modules, key=lambda m: m.id)
        ids = [m.id for m in ordered]
        if len(ids) != len(set(ids)):
            raise ContentError("Ids de módulo duplicados en el catálogo")
        self.modules = [replace(m, sequence_index=i) for i, m in enumerate(ordered)]

    def get_modules(self) -> list[Module]:
        """Módulos en orden estable de curso."""
        return list(self.modules)

    def module_ids(self) -> list[int]:
        return [m.id for m in self.modules]

    def get_module(self, module_id: int) -> Module | None:
        """Obtener módulo por id."""
        for module in self.modules:
            if module.id == module_id:
                return module
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "title": self.title,
            "modules": [m.to_dict() for m in self.modules],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Path | None = None) -> CourseCatalog:
        """Crear desde diccionario."""
        try:
            modules = [Module.from_dict(m) for m in data.get("modules", []) or []]
        except (KeyError, TypeError, ValueError) as e:
            raise ContentError(f"Módulo inválido: {e}") from e
        return cls(title=data.get("title", "Course"), modules=modules, path=path)

    @classmethod
    def load(cls, path: Path) -> CourseCatalog:
        """Cargar catálogo desde un archivo YAML."""
        path = Path(path)
        if not path.exists():
            raise ContentError(f"Course file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ContentError(f"YAML inválido en {path}: {e}") from e

        if not isinstance(data, dict):
            raise ContentError(f"Formato de curso inválido: {path}")

        catalog = cls.from_dict(data, path=path)
        empty = [m.id for m in catalog.modules if not m.quiz]
        if empty:
            logger.warning("Módulos sin preguntas en %s: %s", path, empty)
        logger.info("Catálogo cargado: %d módulos desde %s", len(catalog.modules), path)
        return catalog
