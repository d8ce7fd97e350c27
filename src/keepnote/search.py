import asyncio
from typing import Callable, Iterable, List, Optional

import structlog

from keepnote.config import get_settings
from keepnote.formatting import strip_markers
from keepnote.highlight import normalize_for_match
from keepnote.models import Note

logger = structlog.get_logger(__name__)


def note_matches(note: Note, query: str) -> bool:
    """
    True when query occurs in the note's title or content, ignoring case,
    accents and formatting markers.
    """
    q = (query or "").strip()
    if not q:
        return True

    query_norm, _ = normalize_for_match(q)
    for field in (note.title, note.content):
        field_norm, _ = normalize_for_match(strip_markers(field or ""))
        if query_norm in field_norm:
            return True
    return False


def filter_notes(notes: Iterable[Note], query: str) -> List[Note]:
    return [note for note in notes if note_matches(note, query)]


class SearchDebouncer:
    """
    Delays search callbacks until typing settles.

    Each submit() cancels the pending timer and starts a new one, so only the
    last query submitted within the delay reaches the callback. Must be used
    from within a running event loop. Without an explicit delay the configured
    `search.debounce_ms` applies.
    """

    def __init__(self, callback: Callable[[str], None], delay_ms: Optional[int] = None):
        if delay_ms is None:
            delay_ms = get_settings().search.debounce_ms
        self._callback = callback
        self.delay_ms = delay_ms
        self._delay = delay_ms / 1000
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[str] = None

    @property
    def pending(self) -> Optional[str]:
        return self._pending

    def submit(self, query: str) -> None:
        loop = asyncio.get_running_loop()
        self.cancel()
        self._pending = query
        self._handle = loop.call_later(self._delay, self._fire)

    def flush(self) -> None:
        """Runs the pending query now, if there is one."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._fire()

    def clear(self) -> None:
        """Drops any pending query and reports an empty one straight away."""
        self.cancel()
        self._callback("")

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending = None

    def _fire(self) -> None:
        query = self._pending or ""
        self._handle = None
        self._pending = None
        logger.debug("Search settled", query=query)
        self._callback(query)
