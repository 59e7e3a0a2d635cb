#!/usr/bin/env python3
"""Script de demo para probar el flujo de cursos sin la consola interactiva."""

import tempfile
from pathlib import Path

from aasira_tui.config import DEFAULT_CONTENT_FILE
from aasira_tui.core.controller import CourseController
from aasira_tui.core.course import CourseCatalog
from aasira_tui.core.persistence import FileProgressStore
from aasira_tui.core.quiz import format_remaining
from aasira_tui.core.session_store import JsonFileKeyValueStore
from aasira_tui.core.state import User


def print_statuses(controller: CourseController) -> None:
    for module, status in controller.module_cards():
        print(f"  {module.id}. {module.title:<40} {status}")
    print()


def demo_progression(base: Path) -> None:
    """Aprobar el módulo 1 y ver cómo se desbloquea el 2."""
    print("=" * 60)
    print("DEMO: Progresión de módulos")
    print("=" * 60)

    catalog = CourseCatalog.load(DEFAULT_CONTENT_FILE)
    user = User(id="demo-user", username="demo")
    controller = CourseController(
        user,
        catalog,
        FileProgressStore(base / "progress"),
        JsonFileKeyValueStore(base / "session"),
    )
    print_statuses(controller)

    controller.select_module(1)
    session = controller.start_quiz()
    for i, question in enumerate(session.module.quiz):
        # 7 de 10 correctas
        answer = question.correct_answer if i < 7 else next(
            o for o in question.options if o != question.correct_answer
        )
        session.select_answer(answer)
        if not session.is_last_question:
            session.advance()
    result = controller.submit()

    print(f"Resultado: {result.score}/{result.total} -> {'aprobado' if result.passed else 'suspendido'}\n")
    print_statuses(controller)


def demo_resume(base: Path) -> None:
    """Interrumpir un quiz y reanudarlo con otra instancia."""
    print("=" * 60)
    print("DEMO: Reanudar un quiz interrumpido")
    print("=" * 60)

    catalog = CourseCatalog.load(DEFAULT_CONTENT_FILE)
    user = User(id="demo-user", username="demo")
    progress = FileProgressStore(base / "progress")
    sessions = JsonFileKeyValueStore(base / "session")

    first = CourseController(user, catalog, progress, sessions)
    first.select_module(2)
    session = first.start_quiz()
    session.select_answer(session.current_question.options[0])
    session.advance()
    print(f"Pregunta actual antes de recargar: {session.current_index + 1}")

    second = CourseController(user, catalog, progress, sessions)
    resumed = second.session
    print(f"Vista tras recargar: {second.view_mode}")
    print(f"Pregunta actual: {resumed.current_index + 1}")
    print(f"Tiempo restante: {format_remaining(resumed.time_remaining())}")
    second.return_to_list()
    print()


def main() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        base = Path(tmpdir)
        demo_progression(base)
        demo_resume(base)


if __name__ == "__main__":
    main()
