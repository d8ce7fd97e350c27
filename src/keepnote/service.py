import time
from datetime import datetime, timezone
from typing import List, Optional, Union

import structlog
from pydantic import BaseModel

from keepnote.errors import AuthError, NoteNotFoundError, NotSignedInError, StoreError
from keepnote.formatting import apply_format, render_content
from keepnote.highlight import highlight_plain_text
from keepnote.identity import IdentityProvider
from keepnote.models import FormatResult, InlineFormat, Note, NotePatch, Selection, TextFormat, User
from keepnote.search import filter_notes
from keepnote.store import NoteStore

logger = structlog.get_logger(__name__)


class RenderedNote(BaseModel):
    """Display-only view of a note. Never stored."""

    id: Optional[str]
    title_html: str
    content_html: str
    text_format: TextFormat
    bg_color: str
    bg_image: str


def render_note(note: Note, query: str = "") -> RenderedNote:
    return RenderedNote(
        id=note.id,
        title_html=highlight_plain_text(note.title, query),
        content_html=render_content(note.content, query),
        text_format=note.text_format,
        bg_color=note.bg_color,
        bg_image=note.bg_image,
    )


class NoteService:
    """
    Ties the signed-in user, the note store and the formatting engine together.

    Notes the store refused to save are kept for the rest of the session under
    `local-<ms>` ids, listed ahead of stored notes.
    """

    def __init__(self, store: NoteStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity
        self._local_notes: List[Note] = []

    def _require_user(self) -> User:
        user = self.identity.current_user()
        if user is None:
            raise NotSignedInError()
        return user

    def _local_note(self, note_id: str) -> Optional[Note]:
        for note in self._local_notes:
            if note.id == note_id:
                return note
        return None

    def sign_in(self) -> User:
        try:
            return self.identity.sign_in()
        except AuthError as e:
            logger.warning("Sign-in failed", code=e.code)
            raise

    def sign_out(self) -> None:
        self.identity.sign_out()
        self._local_notes = []

    def add_note(self, note: Note) -> Optional[Note]:
        """
        Saves a new note for the signed-in user and returns it with its id.

        Blank notes are discarded and None is returned. If the store fails the
        note is kept in the session under a temporary local id so it is not lost.
        """
        user = self._require_user()

        if note.is_blank():
            logger.info("Discarding blank note")
            return None

        try:
            note_id = self.store.create(note, user.uid)
        except StoreError as e:
            note_id = f"local-{int(time.time() * 1000)}"
            logger.error(f"Error adding note, keeping it as {note_id}: {e}")
            local = note.model_copy(update={"id": note_id, "owner_id": user.uid}, deep=True)
            self._local_notes.insert(0, local)
            return local.model_copy(deep=True)

        return self.store.get(note_id) or note.model_copy(update={"id": note_id, "owner_id": user.uid})

    def edit_note(self, note_id: str, patch: NotePatch) -> None:
        self._require_user()

        local = self._local_note(note_id)
        if local is not None:
            changes = patch.model_dump(exclude_none=True)
            changes["updated_at"] = datetime.now(timezone.utc)
            self._local_notes[self._local_notes.index(local)] = local.model_copy(update=changes)
            return

        try:
            self.store.update(note_id, patch)
        except (NoteNotFoundError, StoreError) as e:
            logger.error(f"Error updating note: {e}")
            raise

    def delete_note(self, note_id: str) -> None:
        self._require_user()

        local = self._local_note(note_id)
        if local is not None:
            self._local_notes.remove(local)
            return

        try:
            self.store.delete(note_id)
        except (NoteNotFoundError, StoreError) as e:
            logger.error(f"Error deleting note: {e}")
            raise

    def list_notes(self, query: str = "") -> List[Note]:
        user = self._require_user()
        local = [n.model_copy(deep=True) for n in self._local_notes if n.owner_id == user.uid]
        return filter_notes(local + self.store.list(user.uid), query)

    def format_note(
        self,
        note_id: str,
        selection: Selection,
        fmt: Union[InlineFormat, str],
    ) -> FormatResult:
        """
        Applies an inline format to part of a stored note's content and saves
        the result. Nothing is written when the format was not applied.
        """
        self._require_user()
        note = self._local_note(note_id) or self.store.get(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)

        result = apply_format(note.content, selection, fmt)
        if result.applied:
            self.edit_note(note_id, NotePatch(content=result.content))
        return result

    def render_notes(self, query: str = "") -> List[RenderedNote]:
        return [render_note(note, query) for note in self.list_notes(query)]
