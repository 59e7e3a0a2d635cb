"""Tests para modelos de contenido y catálogo."""

import tempfile
from pathlib import Path

import pytest
import yaml

from aasira_tui.config import DEFAULT_CONTENT_FILE
from aasira_tui.core.course import ContentError, CourseCatalog, Module, Question


class TestContentModels:
    """Tests para modelos de datos."""

    def test_question_accepts_camel_case_keys(self) -> None:
        """Test claves correctAnswer en camelCase."""
        q = Question.from_dict({
            "question": "Brain?",
            "options": ["RAM", "CPU"],
            "correctAnswer": "CPU",
        })

        assert q.correct_answer == "CPU"
        assert q.options == ("RAM", "CPU")

    def test_question_rejects_answer_outside_options(self) -> None:
        """Test respuesta correcta que no es una opción."""
        with pytest.raises(ContentError):
            Question.from_dict({"question": "Q", "options": ["a", "b"], "correct_answer": "c"})

    def test_answer_match_is_case_sensitive(self) -> None:
        """Test comparación exacta de respuestas."""
        q = Question(question="Q", options=("CPU", "cpu"), correct_answer="CPU")

        assert q.is_correct("CPU")
        assert not q.is_correct("cpu")
        assert not q.is_correct(None)

    def test_module_from_dict_with_youtube_links(self) -> None:
        """Test módulo con enlaces con la clave youtubeLinks."""
        module = Module.from_dict({
            "id": "2",
            "title": "Docs",
            "content": "one\n\ntwo",
            "youtubeLinks": [{"title": "Video", "url": "https://example.com"}],
            "quiz": [],
        })

        assert module.id == 2
        assert module.video_links[0].title == "Video"
        assert module.paragraphs == ["one", "two"]
        assert module.question_count == 0


class TestCourseCatalog:
    """Tests para el proveedor de contenido."""

    def test_modules_sorted_by_id_with_sequence_index(self) -> None:
        """Test orden estable y posición explícita."""
        catalog = CourseCatalog(
            title="C",
            modules=[Module(id=30, title="c"), Module(id=10, title="a"), Module(id=20, title="b")],
        )

        assert catalog.module_ids() == [10, 20, 30]
        assert [m.sequence_index for m in catalog.get_modules()] == [0, 1, 2]

    def test_duplicate_ids_rejected(self) -> None:
        """Test ids duplicados."""
        with pytest.raises(ContentError):
            CourseCatalog(title="C", modules=[Module(id=1, title="a"), Module(id=1, title="b")])

    def test_load_from_yaml(self) -> None:
        """Test cargar catálogo desde YAML."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "course.yaml"
            path.write_text(
                yaml.safe_dump({
                    "title": "Test",
                    "modules": [
                        {
                            "id": 2,
                            "title": "Second",
                            "quiz": [{"question": "Q", "options": ["x", "y"], "correct_answer": "y"}],
                        },
                        {"id": 1, "title": "First", "quiz": []},
                    ],
                }),
                encoding="utf-8",
            )

            catalog = CourseCatalog.load(path)

            assert catalog.title == "Test"
            assert catalog.module_ids() == [1, 2]
            assert catalog.get_module(2).quiz[0].correct_answer == "y"
            assert catalog.path == path

    def test_load_missing_file(self) -> None:
        """Test archivo inexistente."""
        with pytest.raises(ContentError):
            CourseCatalog.load(Path("/nonexistent/course.yaml"))

    def test_load_malformed_file(self) -> None:
        """Test YAML que no es un curso."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "course.yaml"
            path.write_text("- just\n- a list\n", encoding="utf-8")

            with pytest.raises(ContentError):
                CourseCatalog.load(path)

    def test_bundled_course(self) -> None:
        """Test curso incluido en el paquete."""
        catalog = CourseCatalog.load(DEFAULT_CONTENT_FILE)

        assert catalog.module_ids() == [1, 2, 3]
        for module in catalog.get_modules():
            assert module.question_count == 10
            for q in module.quiz:
                assert q.correct_answer in q.options
