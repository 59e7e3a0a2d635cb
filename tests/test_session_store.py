"""Tests para la persistencia de la sesión de quiz."""

import json
import tempfile
from pathlib import Path

from conftest import FakeClock, make_catalog

from aasira_tui.core.session_store import (
    JsonFileKeyValueStore,
    MemoryKeyValueStore,
    SessionBridge,
)
from aasira_tui.core.state import QuizSessionState


def sample_state(end_time: int) -> QuizSessionState:
    return QuizSessionState(
        module_id=2,
        current_question_index=3,
        selected_answers={0: "a0", 1: "b1", 3: "c3"},
        end_time=end_time,
    )


class TestKeyValueStores:
    """Tests para los almacenes clave-valor."""

    def test_file_store_get_set_remove(self) -> None:
        """Test ciclo completo en disco."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = JsonFileKeyValueStore(Path(tmpdir))

            assert store.get("k") is None
            store.set("k", '{"a": 1}')
            assert store.get("k") == '{"a": 1}'
            store.remove("k")
            assert store.get("k") is None
            store.remove("k")

    def test_file_store_sanitizes_keys(self) -> None:
        """Test claves con caracteres de ruta."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = JsonFileKeyValueStore(Path(tmpdir))

            store.set("../escape/me", "x")

            assert store.get("../escape/me") == "x"
            assert [p.parent for p in Path(tmpdir).iterdir()] == [Path(tmpdir)]


class TestSessionBridge:
    """Tests para guardar y restaurar la sesión."""

    def test_serialized_format(self) -> None:
        """Test formato JSON del registro."""
        store = MemoryKeyValueStore()
        bridge = SessionBridge(store, "u1")

        bridge.save(sample_state(123))

        assert json.loads(store.data["quiz_state_u1"]) == {
            "moduleId": 2,
            "currentQuestionIndex": 3,
            "selectedAnswers": {"0": "a0", "1": "b1", "3": "c3"},
            "endTime": 123,
        }

    def test_round_trip(self) -> None:
        """Test guardar y restaurar reproduce el mismo estado."""
        clock = FakeClock()
        with tempfile.TemporaryDirectory() as tmpdir:
            bridge = SessionBridge(JsonFileKeyValueStore(Path(tmpdir)), "u1", clock=clock)
            state = sample_state(clock.now + 60_000)

            bridge.save(state)
            restored = bridge.restore(make_catalog(10, 10).get_modules())

            assert restored == state

    def test_expired_record_discarded(self) -> None:
        """Test deadline vencido: se borra y no se restaura."""
        clock = FakeClock()
        store = MemoryKeyValueStore()
        bridge = SessionBridge(store, "u1", clock=clock)
        bridge.save(sample_state(clock.now))

        assert bridge.restore(make_catalog(10, 10).get_modules()) is None
        assert store.data == {}

    def test_unknown_module_discarded(self) -> None:
        """Test registro de un módulo que ya no existe."""
        clock = FakeClock()
        store = MemoryKeyValueStore()
        bridge = SessionBridge(store, "u1", clock=clock)
        bridge.save(sample_state(clock.now + 60_000))

        assert bridge.restore(make_catalog(10).get_modules()) is None
        assert store.data == {}

    def test_disallowed_module_discarded(self) -> None:
        """Test módulo bloqueado."""
        clock = FakeClock()
        bridge = SessionBridge(MemoryKeyValueStore(), "u1", clock=clock)
        bridge.save(sample_state(clock.now + 60_000))

        restored = bridge.restore(make_catalog(10, 10).get_modules(), allowed=lambda mid: mid != 2)

        assert restored is None

    def test_index_out_of_range_discarded(self) -> None:
        """Test índice fuera del quiz."""
        clock = FakeClock()
        bridge = SessionBridge(MemoryKeyValueStore(), "u1", clock=clock)
        bridge.save(sample_state(clock.now + 60_000))

        assert bridge.restore(make_catalog(10, 2).get_modules()) is None

    def test_corrupt_record_discarded(self) -> None:
        """Test JSON corrupto o incompleto."""
        for raw in ("{not json", '{"moduleId": 1}', '["a"]', '{"moduleId": 1, "endTime": 1, "selectedAnswers": []}'):
            store = MemoryKeyValueStore()
            store.set("quiz_state_u1", raw)
            bridge = SessionBridge(store, "u1", clock=FakeClock())

            assert bridge.restore(make_catalog(10).get_modules()) is None
            assert store.data == {}

    def test_records_are_user_scoped(self) -> None:
        """Test cada usuario tiene su propio registro."""
        clock = FakeClock()
        store = MemoryKeyValueStore()
        SessionBridge(store, "alice", clock=clock).save(sample_state(clock.now + 60_000))

        bob = SessionBridge(store, "bob", clock=clock)

        assert bob.restore(make_catalog(10, 10).get_modules()) is None
        assert "quiz_state_alice" in store.data
