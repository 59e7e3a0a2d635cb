"""Tests para el flujo de la vista de cursos."""

import tempfile
from pathlib import Path

from conftest import FakeClock, make_catalog

from aasira_tui.core.controller import LIST, MODULE, QUIZ, RESULTS, CourseController
from aasira_tui.core.persistence import FileProgressStore
from aasira_tui.core.session_store import JsonFileKeyValueStore, MemoryKeyValueStore
from aasira_tui.core.state import COMPLETED, LOCKED, UNLOCKED, User

STUDENT = User(id="u1", username="student")


def make_controller(catalog, progress_store, session_store, clock) -> CourseController:
    return CourseController(STUDENT, catalog, progress_store, session_store, clock=clock)


def play(controller: CourseController, correct: int) -> None:
    """Responder el quiz abierto; las primeras `correct` bien."""
    session = controller.session
    for i in range(session.total):
        session.select_answer(f"a{i}" if i < correct else f"b{i}")
        if not session.is_last_question:
            session.advance()
    controller.submit()


class TestCourseFlow:
    """Tests para la navegación lista / módulo / quiz / resultados."""

    def test_first_visit(self, catalog, clock: FakeClock) -> None:
        """Test estado inicial de un usuario nuevo."""
        with tempfile.TemporaryDirectory() as tmpdir:
            controller = make_controller(
                catalog, FileProgressStore(Path(tmpdir)), MemoryKeyValueStore(), clock
            )

            assert controller.view_mode == LIST
            assert [s for _, s in controller.module_cards()] == [UNLOCKED, LOCKED, LOCKED, LOCKED]

    def test_locked_module_cannot_be_opened(self, catalog, clock: FakeClock) -> None:
        """Test módulo bloqueado."""
        with tempfile.TemporaryDirectory() as tmpdir:
            controller = make_controller(
                catalog, FileProgressStore(Path(tmpdir)), MemoryKeyValueStore(), clock
            )

            assert not controller.select_module(2)
            assert not controller.select_module(99)
            assert controller.view_mode == LIST
            assert controller.start_quiz() is None

    def test_pass_unlocks_next_module(self, catalog, clock: FakeClock) -> None:
        """Test aprobar desbloquea y se guarda."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = FileProgressStore(Path(tmpdir))
            controller = make_controller(catalog, store, MemoryKeyValueStore(), clock)

            assert controller.select_module(1)
            assert controller.view_mode == MODULE
            controller.start_quiz()
            assert controller.view_mode == QUIZ
            play(controller, correct=10)

            assert controller.view_mode == RESULTS
            assert controller.last_result.passed
            assert controller.session is None
            assert [s.status for s in store.load_progress("u1")] == [
                COMPLETED, UNLOCKED, LOCKED, LOCKED,
            ]
            assert controller.select_module(2)

    def test_fail_keeps_module_unlocked(self, catalog, clock: FakeClock) -> None:
        """Test 5/10 no cambia estados."""
        with tempfile.TemporaryDirectory() as tmpdir:
            controller = make_controller(
                catalog, FileProgressStore(Path(tmpdir)), MemoryKeyValueStore(), clock
            )
            controller.select_module(1)
            controller.start_quiz()
            play(controller, correct=5)

            assert not controller.last_result.passed
            assert controller.tracker.status_of(1) == UNLOCKED
            assert controller.tracker.status_of(2) == LOCKED

    def test_retake_discards_previous_answers(self, catalog, clock: FakeClock) -> None:
        """Test repetir crea una sesión nueva."""
        with tempfile.TemporaryDirectory() as tmpdir:
            controller = make_controller(
                catalog, FileProgressStore(Path(tmpdir)), MemoryKeyValueStore(), clock
            )
            controller.select_module(1)
            controller.start_quiz()
            play(controller, correct=3)
            clock.advance(30)

            session = controller.retake_quiz()

            assert controller.view_mode == QUIZ
            assert session.current_index == 0
            assert session.state.selected_answers == {}
            assert session.time_remaining() == 600

    def test_return_to_list_abandons_quiz(self, catalog, clock: FakeClock) -> None:
        """Test volver a la lista borra la sesión guardada."""
        with tempfile.TemporaryDirectory() as tmpdir:
            session_store = MemoryKeyValueStore()
            controller = make_controller(
                catalog, FileProgressStore(Path(tmpdir)), session_store, clock
            )
            controller.select_module(1)
            session = controller.start_quiz()
            session.select_answer("a0")
            assert session_store.data

            controller.return_to_list()

            assert controller.view_mode == LIST
            assert controller.session is None
            assert session.abandoned
            assert session_store.data == {}

    def test_zero_question_module_goes_to_results(self, clock: FakeClock) -> None:
        """Test módulo sin preguntas: 0/0 inmediato."""
        catalog = make_catalog(0, 5)
        with tempfile.TemporaryDirectory() as tmpdir:
            controller = make_controller(
                catalog, FileProgressStore(Path(tmpdir)), MemoryKeyValueStore(), clock
            )
            controller.select_module(1)

            session = controller.start_quiz()

            assert session.terminated
            assert controller.session is None
            assert controller.view_mode == RESULTS
            assert (controller.last_result.score, controller.last_result.total) == (0, 0)
            assert controller.tracker.status_of(2) == LOCKED


class TestResumeAfterReload:
    """Tests para reanudar tras reiniciar la aplicación."""

    def test_reload_resumes_quiz(self, catalog, clock: FakeClock) -> None:
        """Test recargar con 300 s restantes."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            progress = FileProgressStore(base / "progress")
            sessions = JsonFileKeyValueStore(base / "session")

            controller = make_controller(catalog, progress, sessions, clock)
            controller.select_module(1)
            session = controller.start_quiz()
            for i in range(3):
                session.select_answer(f"a{i}")
                if i < 2:
                    session.advance()
            clock.advance(300)

            # Nueva instancia: mismo usuario, mismos almacenes
            clock.advance(2)
            reloaded = make_controller(catalog, progress, sessions, clock)

            assert reloaded.view_mode == QUIZ
            assert reloaded.selected_module.id == 1
            assert reloaded.session.resumed
            assert reloaded.session.current_index == 2
            assert reloaded.session.state.selected_answers == {0: "a0", 1: "a1", 2: "a2"}
            assert reloaded.session.time_remaining() == 298

    def test_reload_after_deadline_starts_at_list(self, catalog, clock: FakeClock) -> None:
        """Test la sesión vencida no se reanuda."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            progress = FileProgressStore(base / "progress")
            sessions = JsonFileKeyValueStore(base / "session")

            controller = make_controller(catalog, progress, sessions, clock)
            controller.select_module(1)
            controller.start_quiz().select_answer("a0")
            clock.advance(601)

            reloaded = make_controller(catalog, progress, sessions, clock)

            assert reloaded.view_mode == LIST
            assert reloaded.session is None
            assert sessions.get("quiz_state_u1") is None

    def test_auto_submit_reports_to_progress(self, catalog, clock: FakeClock) -> None:
        """Test envío automático por tiempo con respuestas parciales."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = FileProgressStore(Path(tmpdir))
            controller = make_controller(catalog, store, MemoryKeyValueStore(), clock)
            controller.select_module(1)
            session = controller.start_quiz()
            for i in range(7):
                session.select_answer(f"a{i}")
                session.advance()

            clock.advance(600)
            assert controller.tick() == 0

            assert controller.view_mode == RESULTS
            assert controller.last_result.score == 7
            assert controller.last_result.passed
            assert controller.tracker.status_of(2) == UNLOCKED
            assert store.load_quiz_results("u1")[-1].score == 7
