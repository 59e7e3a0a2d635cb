"""Motor de sesión de quiz con tiempo límite."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Callable

from .course import Module, Question
from .session_store import SessionBridge, now_ms
from .state import PASS_THRESHOLD, QuizResult, QuizSessionState

logger = logging.getLogger(__name__)

QUIZ_DURATION_SECONDS = 10 * 60

CompletionCallback = Callable[[int, int, int], None]


class QuizSessionError(Exception):
    """Operación inválida sobre una sesión de quiz."""

    pass


def js_round(value: float) -> int:
    """Redondeo half-up (como Math.round), no el bancario de round()."""
    return math.floor(value + 0.5)


def remaining_seconds(now: int, end_time: int) -> int:
    """Segundos restantes hasta end_time (ambos en ms), nunca negativo."""
    return max(0, js_round((end_time - now) / 1000))


def format_remaining(seconds: int) -> str:
    """Formato m:ss."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes}:{secs:02d}"


def score_answers(quiz: tuple[Question, ...] | list[Question], answers: dict[int, str]) -> int:
    """Contar respuestas correctas; las no respondidas cuentan como incorrectas."""
    return sum(1 for i, q in enumerate(quiz) if q.is_correct(answers.get(i)))


class QuizSession:
    """Un intento cronometrado sobre las preguntas de un módulo.

    Activo(índice, respuestas) -> [envío manual | envío automático al agotar
    el tiempo | abandono] -> Terminado. Una sesión terminada no se reabre;
    repetir el quiz crea una sesión nueva.
    """

    def __init__(
        self,
        module: Module,
        initial_state: QuizSessionState | None = None,
        bridge: SessionBridge | None = None,
        on_complete: CompletionCallback | None = None,
        clock: Callable[[], int] = now_ms,
        duration: int = QUIZ_DURATION_SECONDS,
        threshold: float = PASS_THRESHOLD,
    ) -> None:
        self.module = module
        self.bridge = bridge
        self.on_complete = on_complete
        self.clock = clock
        self.duration = duration
        self.threshold = threshold

        self.terminated = False
        self.abandoned = False
        self.auto_submitted = False
        self.resumed = False
        self.result: QuizResult | None = None
        self._exit_hooks: list[Callable[[], None]] = []

        if not module.quiz:
            # Error de contenido: se completa de inmediato con 0/0, sin temporizador
            logger.warning("Módulo %s sin preguntas; quiz completado con 0/0", module.id)
            self.state = QuizSessionState(module_id=module.id)
            self._finish(0, 0)
            return

        now = self.clock()
        if self._can_resume(initial_state, now):
            self.state = initial_state.copy()
            self.state.selected_answers = {
                i: a for i, a in self.state.selected_answers.items()
                if 0 <= i < len(module.quiz)
            }
            self.resumed = True
            logger.info(
                "Quiz del módulo %s reanudado en la pregunta %d",
                module.id, self.state.current_question_index,
            )
        else:
            self.state = QuizSessionState(
                module_id=module.id,
                current_question_index=0,
                selected_answers={},
                end_time=now + duration * 1000,
            )
        self._persist()

    def _can_resume(self, state: QuizSessionState | None, now: int) -> bool:
        return (
            state is not None
            and state.module_id == self.module.id
            and state.end_time > now
            and 0 <= state.current_question_index < len(self.module.quiz)
        )

    # Consultas

    @property
    def has_timer(self) -> bool:
        return bool(self.module.quiz)

    @property
    def total(self) -> int:
        return len(self.module.quiz)

    @property
    def current_index(self) -> int:
        return self.state.current_question_index

    @property
    def current_question(self) -> Question:
        return self.module.quiz[self.state.current_question_index]

    @property
    def current_answer(self) -> str | None:
        return self.state.selected_answers.get(self.state.current_question_index)

    @property
    def is_last_question(self) -> bool:
        return self.state.current_question_index == len(self.module.quiz) - 1

    @property
    def answered_count(self) -> int:
        return len(self.state.selected_answers)

    def can_advance(self) -> bool:
        """Hay respuesta para la pregunta actual y no es la última."""
        return not self.terminated and self.current_answer is not None and not self.is_last_question

    def can_submit(self) -> bool:
        """Última pregunta con respuesta seleccionada."""
        return not self.terminated and self.is_last_question and self.current_answer is not None

    def time_remaining(self, now: int | None = None) -> int:
        if not self.has_timer or self.terminated:
            return 0
        return remaining_seconds(self.clock() if now is None else now, self.state.end_time)

    def snapshot(self) -> QuizSessionState:
        return self.state.copy()

    # Mutaciones

    def _require_active(self) -> None:
        if self.terminated:
            raise QuizSessionError(f"La sesión del módulo {self.module.id} ya terminó")

    def _persist(self) -> None:
        if self.bridge is not None:
            self.bridge.save(self.state)

    def select_answer(self, option: str) -> bool:
        """Registrar la opción elegida para la pregunta actual."""
        self._require_active()
        if option not in self.current_question.options:
            logger.debug("Opción ignorada para el módulo %s: %r", self.module.id, option)
            return False
        self.state.selected_answers[self.state.current_question_index] = option
        self._persist()
        return True

    def advance(self) -> bool:
        """Pasar a la siguiente pregunta; rechazado si no hay respuesta o es la última."""
        self._require_active()
        if not self.can_advance():
            return False
        self.state.current_question_index += 1
        self._persist()
        return True

    def submit(self) -> QuizResult:
        """Puntuar y terminar la sesión."""
        self._require_active()
        score = score_answers(self.module.quiz, self.state.selected_answers)
        return self._finish(score, len(self.module.quiz))

    def tick(self, now: int | None = None) -> int:
        """Recalcular el tiempo restante; al llegar a 0 envía automáticamente."""
        if self.terminated or not self.has_timer:
            return 0
        remaining = remaining_seconds(self.clock() if now is None else now, self.state.end_time)
        if remaining == 0:
            logger.info(
                "Tiempo agotado en el módulo %s con %d/%d respuestas",
                self.module.id, self.answered_count, self.total,
            )
            self.auto_submitted = True
            self.submit()
        return remaining

    def abandon(self) -> None:
        """Salir sin puntuar; el estado guardado se borra."""
        if self.terminated:
            return
        self.terminated = True
        self.abandoned = True
        if self.bridge is not None:
            self.bridge.clear()
        self._run_exit_hooks()

    def add_exit_hook(self, hook: Callable[[], None]) -> None:
        """Registrar una función a llamar al salir del estado activo."""
        if self.terminated:
            hook()
        else:
            self._exit_hooks.append(hook)

    def _run_exit_hooks(self) -> None:
        hooks, self._exit_hooks = self._exit_hooks, []
        for hook in hooks:
            hook()

    def _finish(self, score: int, total: int) -> QuizResult:
        self.terminated = True
        self.result = QuizResult.compute(score, total, self.threshold)
        if self.bridge is not None:
            self.bridge.clear()
        self._run_exit_hooks()
        if self.on_complete is not None:
            self.on_complete(self.module.id, score, total)
        return self.result


class QuizTimer:
    """Tarea asyncio que llama a session.tick() a intervalo fijo."""

    def __init__(
        self,
        session: QuizSession,
        interval: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
    ) -> None:
        self.session = session
        self.interval = interval
        self.on_tick = on_tick
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task | None:
        """Programar el tick; requiere un event loop en marcha."""
        if self.running:
            return self._task
        if self.session.terminated or not self.session.has_timer:
            return None
        self._task = asyncio.get_running_loop().create_task(self._run())
        self.session.add_exit_hook(self.cancel)
        return self._task

    async def _run(self) -> None:
        while not self.session.terminated:
            await asyncio.sleep(self.interval)
            if self.session.terminated:
                break
            remaining = self.session.tick()
            if self.on_tick is not None:
                self.on_tick(remaining)

    def cancel(self) -> None:
        """Cancelar el tick (no falla si ya terminó)."""
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()
