from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Dict, Generic, Hashable, Iterable, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class JsonlStore(Generic[ModelT]):
    """Simple JSONL persistence for pydantic records keyed by ``key``, in insertion order."""

    def __init__(self, path: Path, model: Type[ModelT], key: Callable[[ModelT], Hashable]):
        """Ensure the backing directory exists and record the JSONL filepath."""
        self.path = path
        self.model = model
        self.key = key
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> List[ModelT]:
        """Read all stored records from disk and reconstruct them as models."""
        if not self.path.exists():
            return []
        records: List[ModelT] = []
        with self.path.open("r", encoding="utf-8") as handle:
            for line_no, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    records.append(self.model.model_validate(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as exc:
                    raise ValueError(f"Corrupt record at {self.path}:{line_no}") from exc
        return records

    def upsert(self, records: Iterable[ModelT]) -> None:
        """Merge records into storage, replacing existing entries with matching keys."""
        existing: Dict[Hashable, ModelT] = {self.key(record): record for record in self.load()}
        for record in records:
            existing[self.key(record)] = record
        self._write(existing.values())

    def _write(self, records: Iterable[ModelT]) -> None:
        with self.path.open("w", encoding="utf-8") as handle:
            for record in records:
                handle.write(record.model_dump_json())
                handle.write("\n")
