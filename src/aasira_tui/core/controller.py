"""Flujo de la vista de cursos: lista, módulo, quiz y resultados."""

from __future__ import annotations

import logging
from typing import Callable

from .course import CourseCatalog, Module
from .persistence import ProgressStore
from .progress import ProgressTracker
from .quiz import QUIZ_DURATION_SECONDS, QuizSession
from .session_store import KeyValueStore, SessionBridge, now_ms
from .state import PASS_THRESHOLD, QuizResult, QuizSessionState, User

logger = logging.getLogger(__name__)

LIST = "list"
MODULE = "module"
QUIZ = "quiz"
RESULTS = "results"


class CourseController:
    """Coordina progreso, sesión de quiz y persistencia para un usuario."""

    def __init__(
        self,
        user: User,
        catalog: CourseCatalog,
        progress_store: ProgressStore,
        session_store: KeyValueStore,
        clock: Callable[[], int] = now_ms,
        duration: int = QUIZ_DURATION_SECONDS,
        threshold: float = PASS_THRESHOLD,
    ) -> None:
        self.user = user
        self.catalog = catalog
        self.modules = catalog.get_modules()
        self.clock = clock
        self.duration = duration
        self.threshold = threshold

        self.tracker = ProgressTracker.load(user.id, self.modules, progress_store, threshold)
        self.bridge = SessionBridge(session_store, user.id, clock=clock)

        self.view_mode = LIST
        self.selected_module: Module | None = None
        self.session: QuizSession | None = None
        self.last_result: QuizResult | None = None

        self._resume()

    def _resume(self) -> None:
        """Reabrir el quiz en curso si el registro guardado sigue siendo válido."""
        state = self.bridge.restore(self.modules, allowed=self.tracker.can_enter)
        if state is None:
            return
        module = self.catalog.get_module(state.module_id)
        if module is None:
            return
        self.selected_module = module
        self._open_session(module, state)

    def _open_session(self, module: Module, state: QuizSessionState | None = None) -> QuizSession:
        session = QuizSession(
            module,
            initial_state=state,
            bridge=self.bridge,
            on_complete=self._on_complete,
            clock=self.clock,
            duration=self.duration,
            threshold=self.threshold,
        )
        # Un módulo sin preguntas termina dentro del constructor
        if not session.terminated:
            self.session = session
            self.view_mode = QUIZ
        return session

    def _on_complete(self, module_id: int, score: int, total: int) -> None:
        self.bridge.clear()
        _, result = self.tracker.record_quiz_outcome(module_id, score, total)
        self.last_result = result
        self.session = None
        self.view_mode = RESULTS

    # Acciones del usuario

    def module_cards(self) -> list[tuple[Module, str]]:
        """Módulos con su estado actual para la lista."""
        return [(m, self.tracker.status_of(m.id)) for m in self.modules]

    def select_module(self, module_id: int) -> bool:
        """Abrir un módulo; los bloqueados no se abren."""
        module = self.catalog.get_module(module_id)
        if module is None or not self.tracker.can_enter(module_id):
            return False
        self._abandon_active()
        self.selected_module = module
        self.last_result = None
        self.view_mode = MODULE
        return True

    def start_quiz(self) -> QuizSession | None:
        """Empezar un intento nuevo del módulo seleccionado."""
        module = self.selected_module
        if module is None or not self.tracker.can_enter(module.id):
            return None
        self._abandon_active()
        self.bridge.clear()
        self.last_result = None
        return self._open_session(module)

    def retake_quiz(self) -> QuizSession | None:
        """Repetir el quiz: sesión nueva, respuestas anteriores descartadas."""
        return self.start_quiz()

    def submit(self) -> QuizResult | None:
        if self.session is None:
            return None
        return self.session.submit()

    def tick(self) -> int:
        if self.session is None:
            return 0
        return self.session.tick()

    def return_to_list(self) -> None:
        """Volver a la lista; un quiz activo se abandona y su estado se borra."""
        self._abandon_active()
        self.bridge.clear()
        self.selected_module = None
        self.last_result = None
        self.view_mode = LIST

    def _abandon_active(self) -> None:
        if self.session is not None and not self.session.terminated:
            logger.info("Quiz del módulo %s abandonado", self.session.module.id)
            self.session.abandon()
        self.session = None
