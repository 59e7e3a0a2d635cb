"""Máquina de estados del progreso: bloqueo, desbloqueo y compleción de módulos."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from .course import Module
from .persistence import ProgressStore, ProgressStoreError
from .state import (
    COMPLETED,
    LOCKED,
    PASS_THRESHOLD,
    UNLOCKED,
    ModuleStatus,
    QuizOutcome,
    QuizResult,
)

logger = logging.getLogger(__name__)


def initialize(module_ids: Iterable[int]) -> list[ModuleStatus]:
    """Primer módulo desbloqueado, el resto bloqueados."""
    return [
        ModuleStatus(module_id=mid, status=UNLOCKED if i == 0 else LOCKED)
        for i, mid in enumerate(module_ids)
    ]


@dataclass(frozen=True)
class ProgressSummary:
    """Resumen para la cabecera del curso."""

    completed: int
    total: int

    @property
    def percentage(self) -> int:
        return round(self.completed / self.total * 100) if self.total else 0


class ProgressTracker:
    """Estados de módulo de un usuario y regla de desbloqueo lineal."""

    def __init__(
        self,
        user_id: str,
        modules: Sequence[Module],
        statuses: list[ModuleStatus] | None = None,
        store: ProgressStore | None = None,
        threshold: float = PASS_THRESHOLD,
    ) -> None:
        self.user_id = user_id
        self.modules = sorted(modules, key=lambda m: m.sequence_index)
        self.store = store
        self.threshold = threshold
        self.pending_outcomes: list[QuizOutcome] = []
        self._dirty = False

        if statuses:
            self.statuses = self._reconcile(statuses)
        else:
            self.statuses = initialize(m.id for m in self.modules)

    @classmethod
    def load(
        cls,
        user_id: str,
        modules: Sequence[Module],
        store: ProgressStore,
        threshold: float = PASS_THRESHOLD,
    ) -> ProgressTracker:
        """Cargar el progreso del usuario o inicializarlo si no existe."""
        try:
            statuses = store.load_progress(user_id)
        except ProgressStoreError as e:
            logger.warning("No se pudo cargar el progreso de %s: %s", user_id, e)
            statuses = None

        tracker = cls(user_id, modules, statuses=statuses, store=store, threshold=threshold)
        if not statuses:
            logger.info("Progreso inicializado para %s", user_id)
            tracker.save()
        return tracker

    def _reconcile(self, statuses: list[ModuleStatus]) -> list[ModuleStatus]:
        """Un registro por módulo del catálogo, en orden de curso."""
        by_id: dict[int, ModuleStatus] = {}
        for s in statuses:
            by_id.setdefault(s.module_id, ModuleStatus(s.module_id, s.status))

        known = {m.id for m in self.modules}
        dropped = set(by_id) - known
        if dropped:
            logger.info("Estados de módulos desconocidos descartados: %s", sorted(dropped))

        return [by_id.get(m.id) or ModuleStatus(m.id, LOCKED) for m in self.modules]

    # Consultas

    def _find(self, module_id: int) -> ModuleStatus | None:
        for s in self.statuses:
            if s.module_id == module_id:
                return s
        return None

    def status_of(self, module_id: int) -> str:
        """Estado del módulo; un id desconocido se considera bloqueado."""
        record = self._find(module_id)
        return record.status if record else LOCKED

    def can_enter(self, module_id: int) -> bool:
        return self._find(module_id) is not None and self.status_of(module_id) != LOCKED

    def snapshot(self) -> list[ModuleStatus]:
        return [ModuleStatus(s.module_id, s.status) for s in self.statuses]

    def summary(self) -> ProgressSummary:
        completed = sum(1 for s in self.statuses if s.status == COMPLETED)
        return ProgressSummary(completed=completed, total=len(self.statuses))

    # Transiciones

    def record_quiz_outcome(
        self, module_id: int, score: int, total: int
    ) -> tuple[list[ModuleStatus], QuizResult]:
        """Aplicar el resultado de un quiz y la regla de desbloqueo."""
        result = QuizResult.compute(score, total, self.threshold)

        if result.passed:
            self._apply_pass(module_id)

        outcome = QuizOutcome(module_id=module_id, score=score, total=total, passed=result.passed)
        logger.info(
            "Quiz del módulo %s para %s: %d/%d (%s)",
            module_id, self.user_id, score, total,
            "aprobado" if result.passed else "no aprobado",
        )
        self.pending_outcomes.append(outcome)
        self.save()
        return self.snapshot(), result

    def _apply_pass(self, module_id: int) -> None:
        record = self._find(module_id)
        if record is None:
            logger.warning("Resultado para módulo desconocido %s ignorado", module_id)
            return

        if record.promote(COMPLETED):
            self._dirty = True

        # Un solo salto: solo el siguiente módulo en la secuencia
        module = next((m for m in self.modules if m.id == module_id), None)
        if module is None:
            return
        following = [m for m in self.modules if m.sequence_index == module.sequence_index + 1]
        if following:
            next_record = self._find(following[0].id)
            if next_record is not None and next_record.status == LOCKED:
                next_record.promote(UNLOCKED)
                self._dirty = True

    # Persistencia

    def save(self) -> bool:
        """Escritura best-effort; los resultados pendientes se reenvían en la siguiente."""
        if self.store is None:
            return False

        try:
            if not self.pending_outcomes:
                self.store.save_progress(self.user_id, self.snapshot())
            while self.pending_outcomes:
                self.store.save_progress(self.user_id, self.snapshot(), self.pending_outcomes[0])
                self.pending_outcomes.pop(0)
        except ProgressStoreError as e:
            self._dirty = True
            logger.warning(
                "No se pudo guardar el progreso de %s (%d resultados pendientes): %s",
                self.user_id, len(self.pending_outcomes), e,
            )
            return False

        self._dirty = False
        return True

    def flush(self) -> bool:
        """Reintentar la escritura pendiente, si la hay."""
        if not self.pending_outcomes and not self._dirty:
            return True
        return self.save()
