"""Fixtures compartidas."""

from __future__ import annotations

import pytest

from aasira_tui.core.course import CourseCatalog, Module, Question
from aasira_tui.core.persistence import ProgressStore, ProgressStoreError
from aasira_tui.core.session_store import KeyValueStore

START_MS = 1_700_000_000_000


class FakeClock:
    """Reloj manual en milisegundos."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class FlakyProgressStore(ProgressStore):
    """Almacén en memoria que puede fallar a demanda."""

    def __init__(self) -> None:
        self.records: dict[str, list] = {}
        self.outcomes: list = []
        self.fail = False
        self.calls = 0

    def load_progress(self, user_id):
        if self.fail:
            raise ProgressStoreError("store down")
        statuses = self.records.get(user_id)
        return [s for s in statuses] if statuses else None

    def save_progress(self, user_id, statuses, outcome=None):
        self.calls += 1
        if self.fail:
            raise ProgressStoreError("store down")
        self.records[user_id] = statuses
        if outcome is not None:
            self.outcomes.append(outcome)


class BrokenKeyValueStore(KeyValueStore):
    """Almacén que siempre falla al escribir."""

    def __init__(self, error: Exception | None = None) -> None:
        self.attempts = 0
        self.error = error or OSError("disk full")

    def get(self, key):
        return None

    def set(self, key, value):
        self.attempts += 1
        raise self.error

    def remove(self, key):
        raise self.error


def make_module(module_id: int, n_questions: int = 10) -> Module:
    """Módulo cuya respuesta correcta es siempre 'a<i>'."""
    quiz = tuple(
        Question(
            question=f"Q{i}",
            options=(f"a{i}", f"b{i}", f"c{i}"),
            correct_answer=f"a{i}",
        )
        for i in range(n_questions)
    )
    return Module(id=module_id, title=f"Module {module_id}", content="text", quiz=quiz)


def make_catalog(*sizes: int) -> CourseCatalog:
    """Catálogo con módulos de ids 1..n y los tamaños de quiz dados."""
    return CourseCatalog(
        title="Test course",
        modules=[make_module(i + 1, n) for i, n in enumerate(sizes)],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog() -> CourseCatalog:
    return make_catalog(10, 10, 10, 10)
