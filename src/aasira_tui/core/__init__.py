"""Core: contenido, progreso, sesiones de quiz y persistencia."""

from .controller import CourseController
from .course import ContentError, CourseCatalog, Module, Question, VideoLink
from .persistence import FileProgressStore, ProgressStore, ProgressStoreError
from .progress import ProgressTracker
from .quiz import QuizSession, QuizSessionError, QuizTimer, remaining_seconds
from .session_store import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore, SessionBridge
from .state import ModuleStatus, QuizOutcome, QuizResult, QuizSessionState, User

__all__ = [
    "CourseController",
    "ContentError",
    "CourseCatalog",
    "Module",
    "Question",
    "VideoLink",
    "FileProgressStore",
    "ProgressStore",
    "ProgressStoreError",
    "ProgressTracker",
    "QuizSession",
    "QuizSessionError",
    "QuizTimer",
    "remaining_seconds",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SessionBridge",
    "ModuleStatus",
    "QuizOutcome",
    "QuizResult",
    "QuizSessionState",
    "User",
]
