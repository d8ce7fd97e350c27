import json

import pytest

from keepnote import server

MARK = '<mark class="search-highlight">'


@pytest.fixture
def fresh_service(store_path):
    server._service.cache_clear()
    yield store_path
    server._service.cache_clear()


def test_detect_formats_tool():
    assert json.loads(server.detect_formats("***hi***", 0, 8)) == {"bold": True, "italic": True, "underline": False}


def test_apply_format_tool():
    result = json.loads(server.apply_format("hello world", 0, 5, "bold"))

    assert result["applied"] is True
    assert result["content"] == "**hello** world"
    assert result["selection"] == {"start": 0, "end": 9}


def test_apply_format_tool_takes_utf16_offsets():
    result = json.loads(server.apply_format("😀 hi", 3, 5, "italic"))

    assert result["content"] == "😀 *hi*"
    assert result["selection"] == {"start": 3, "end": 7}


def test_apply_format_tool_reports_bad_selection():
    assert server.apply_format("hello", 4, 1, "bold").startswith("Error applying format")


def test_render_tools():
    assert server.render_note_content("__u__ x", "x") == f'<span class="text-underline">u</span> {MARK}x</mark>'
    assert server.highlight_text("a<b", "b") == f"a&lt;{MARK}b</mark>"


def test_note_crud_tools(fresh_service):
    assert server.create_note(title="", content="") == "Note is empty, nothing saved."

    message = server.create_note(title="Café", content="hello world")
    note_id = message.rsplit(" ", 1)[-1]

    listed = json.loads(server.list_notes("cafe"))
    assert [n["id"] for n in listed] == [note_id]
    assert listed[0]["title_html"] == f"{MARK}Café</mark>"

    formatted = json.loads(server.format_note(note_id, 0, 5, "bold"))
    assert formatted["content"] == "**hello** world"
    assert server.format_note(note_id, 2, 2, "bold") == "Select some text to format"

    rendered = json.loads(server.render_stored_note(note_id, "wor"))
    assert rendered["content_html"] == f'<span class="text-bold">hello</span> {MARK}wor</mark>ld'

    assert server.update_note(note_id, text_format="h1") == f"Updated note {note_id}"
    assert server.delete_note(note_id) == f"Deleted note {note_id}"
    assert server.delete_note(note_id).startswith("Error deleting note")
    assert fresh_service.exists()
