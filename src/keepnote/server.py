import json
from functools import lru_cache
from typing import Optional

import structlog
from mcp.server.fastmcp import FastMCP

from keepnote.config import get_settings
from keepnote.formatting import apply_format as _apply_format
from keepnote.formatting import detect_formats as _detect_formats
from keepnote.formatting import render_content
from keepnote.highlight import highlight_plain_text
from keepnote.identity import LocalIdentityProvider
from keepnote.log import configure_logging
from keepnote.models import Note, NotePatch, Selection, TextFormat
from keepnote.service import NoteService, render_note
from keepnote.store import JsonFileNoteStore

logger = structlog.get_logger(__name__)

mcp = FastMCP("KeepNote Notes Service")


@lru_cache(maxsize=1)
def _service() -> NoteService:
    settings = get_settings()
    identity = LocalIdentityProvider(uid=settings.default_user)
    identity.sign_in()
    return NoteService(JsonFileNoteStore(settings.store.path), identity)


@mcp.tool()
def detect_formats(content: str, start: int, end: int) -> str:
    """
    Reports which inline formats (bold, italic, underline) the selected slice
    carries. start and end are UTF-16 code-unit offsets. Returns JSON flags.
    """
    try:
        return _detect_formats(content, start, end).model_dump_json()
    except Exception as e:
        return f"Error detecting formats: {str(e)}"


@mcp.tool()
def apply_format(content: str, start: int, end: int, format: str) -> str:
    """
    Toggles an inline format on the slice between the UTF-16 code-unit
    offsets start and end.

    format is one of "bold", "italic", "underline" or "clearFormat".
    Markers are **bold**, *italic*, ***bold italic*** and __underline__.
    Returns JSON with the new content, the new selection (also in UTF-16
    code units) and the format flags.
    """
    try:
        result = _apply_format(content, Selection(start=start, end=end), format)
        return result.model_dump_json()
    except Exception as e:
        return f"Error applying format: {str(e)}"


@mcp.tool()
def render_note_content(content: str, query: str = "") -> str:
    """
    Renders marked-up note content to HTML, highlighting matches of query.
    """
    try:
        return render_content(content, query)
    except Exception as e:
        return f"Error rendering content: {str(e)}"


@mcp.tool()
def highlight_text(text: str, query: str) -> str:
    """Escapes plain text to HTML and highlights matches of query."""
    try:
        return highlight_plain_text(text, query)
    except Exception as e:
        return f"Error highlighting text: {str(e)}"


@mcp.tool()
def create_note(title: str = "", content: str = "", text_format: str = "normal", bg_color: str = "default") -> str:
    """
    Saves a new note. Blank notes (no title and no content) are not saved.
    """
    try:
        note = Note(title=title, content=content, text_format=TextFormat(text_format), bg_color=bg_color)
        saved = _service().add_note(note)
        if saved is None:
            return "Note is empty, nothing saved."
        return f"Saved note {saved.id}"
    except Exception as e:
        return f"Error creating note: {str(e)}"


@mcp.tool()
def list_notes(query: str = "") -> str:
    """
    Lists the stored notes (newest first) as JSON, optionally filtered by a
    search query. Titles and content are returned as highlighted HTML.
    """
    try:
        rendered = _service().render_notes(query)
        return json.dumps([r.model_dump(mode="json") for r in rendered], ensure_ascii=False)
    except Exception as e:
        return f"Error listing notes: {str(e)}"


@mcp.tool()
def update_note(
    note_id: str,
    title: Optional[str] = None,
    content: Optional[str] = None,
    text_format: Optional[str] = None,
) -> str:
    """Updates the given fields of a stored note."""
    try:
        patch = NotePatch(
            title=title,
            content=content,
            text_format=TextFormat(text_format) if text_format else None,
        )
        _service().edit_note(note_id, patch)
        return f"Updated note {note_id}"
    except Exception as e:
        return f"Error updating note: {str(e)}"


@mcp.tool()
def delete_note(note_id: str) -> str:
    """Deletes a stored note."""
    try:
        _service().delete_note(note_id)
        return f"Deleted note {note_id}"
    except Exception as e:
        return f"Error deleting note: {str(e)}"


@mcp.tool()
def format_note(note_id: str, start: int, end: int, format: str) -> str:
    """
    Toggles an inline format on part of a stored note's content and saves it.
    Returns JSON like apply_format, or a prompt when nothing is selected.
    """
    try:
        result = _service().format_note(note_id, Selection(start=start, end=end), format)
        if not result.applied:
            return result.message or "Nothing to format."
        return result.model_dump_json()
    except Exception as e:
        return f"Error formatting note: {str(e)}"


@mcp.tool()
def render_stored_note(note_id: str, query: str = "") -> str:
    """Renders one stored note as JSON with highlighted title and content HTML."""
    try:
        note = _service().store.get(note_id)
        if note is None:
            return f"Note not found: {note_id}"
        return render_note(note, query).model_dump_json()
    except Exception as e:
        return f"Error rendering note: {str(e)}"


def run() -> None:
    settings = get_settings()
    # stdout belongs to the JSON-RPC transport
    configure_logging(settings.log.level, settings.log.json_format)
    logger.info("Starting MCP server", store=str(settings.store.path))
    mcp.run()


if __name__ == "__main__":
    run()
