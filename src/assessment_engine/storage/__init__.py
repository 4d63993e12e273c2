from .base import AssessmentBackend
from .files import FileBackend
from .jsonl_store import JsonlStore
from .memory import InMemoryBackend

__all__ = ["AssessmentBackend", "FileBackend", "InMemoryBackend", "JsonlStore"]
