import json
import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol

import structlog
from pydantic import ValidationError

from keepnote.errors import NoteNotFoundError, StoreError
from keepnote.models import Note, NotePatch

logger = structlog.get_logger(__name__)


class NoteStore(Protocol):
    """
    Persistence contract for notes, partitioned by owner.
    Content strings must round-trip byte-for-byte.
    """

    def create(self, note: Note, owner_id: str) -> str: ...

    def list(self, owner_id: str) -> List[Note]: ...

    def get(self, note_id: str) -> Optional[Note]: ...

    def update(self, note_id: str, patch: NotePatch) -> None: ...

    def delete(self, note_id: str) -> None: ...


class InMemoryNoteStore:
    def __init__(self):
        self._notes: Dict[str, Note] = {}

    def _commit(self, notes: Dict[str, Note]) -> None:
        """Makes notes the current state. Subclasses write it out first."""
        self._notes = notes

    def create(self, note: Note, owner_id: str) -> str:
        now = datetime.now(timezone.utc)
        note_id = uuid.uuid4().hex
        stored = note.model_copy(
            update={"id": note_id, "owner_id": owner_id, "created_at": now, "updated_at": now},
            deep=True,
        )
        self._commit({**self._notes, note_id: stored})
        logger.info("Note created", note_id=note_id, owner_id=owner_id)
        return note_id

    def list(self, owner_id: str) -> List[Note]:
        """Returns the owner's notes, newest first."""
        notes = [n.model_copy(deep=True) for n in self._notes.values() if n.owner_id == owner_id]
        notes.sort(key=lambda n: n.created_at, reverse=True)
        return notes

    def get(self, note_id: str) -> Optional[Note]:
        note = self._notes.get(note_id)
        return note.model_copy(deep=True) if note else None

    def update(self, note_id: str, patch: NotePatch) -> None:
        note = self._notes.get(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)

        changes = patch.model_dump(exclude_none=True)
        changes["updated_at"] = datetime.now(timezone.utc)
        self._commit({**self._notes, note_id: note.model_copy(update=changes)})
        logger.info("Note updated", note_id=note_id, fields=sorted(changes))

    def delete(self, note_id: str) -> None:
        if note_id not in self._notes:
            raise NoteNotFoundError(note_id)
        self._commit({k: v for k, v in self._notes.items() if k != note_id})
        logger.info("Note deleted", note_id=note_id)


class JsonFileNoteStore(InMemoryNoteStore):
    """
    Keeps every note in a single JSON file, rewritten on each change.
    This is the local-storage backend used when no cloud store is configured.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            notes = [Note.model_validate(item) for item in data.get("notes", [])]
        except (OSError, ValueError, AttributeError, ValidationError) as e:
            logger.error(f"Could not load notes from {self.path}: {e}")
            raise StoreError(f"Could not load notes from {self.path}") from e

        self._notes = {n.id: n for n in notes if n.id}
        logger.debug("Loaded notes", path=str(self.path), count=len(self._notes))

    def _commit(self, notes: Dict[str, Note]) -> None:
        # Memory only changes once the file has been replaced
        payload = {"notes": [n.model_dump(mode="json") for n in notes.values()]}
        tmp_name = None

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".notes-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"Could not write notes to {self.path}: {e}")
            raise StoreError(f"Could not write notes to {self.path}") from e

        super()._commit(notes)
