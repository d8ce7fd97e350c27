# FILE: tests/test_formatting.py
"""
Tests for inline marker detection, toggling and rendering.
"""

from keepnote.formatting import (
    NOTHING_SELECTED,
    apply_format,
    derive_format_state,
    detect_formats,
    render_content,
    render_markers_to_markup,
    strip_markers,
)
from keepnote.models import FormatFlags, InlineFormat, Selection

BOLD = '<span class="text-bold">'
ITALIC = '<span class="text-italic">'
UNDERLINE = '<span class="text-underline">'
MARK = '<mark class="search-highlight">'


class TestDetectFormats:
    def test_empty_selection_reports_nothing(self):
        assert detect_formats("**hello**", 3, 3) == FormatFlags()

    def test_bold(self):
        flags = detect_formats("say **hi** now", 4, 10)
        assert flags == FormatFlags(bold=True)

    def test_italic(self):
        assert detect_formats("*hi*", 0, 4) == FormatFlags(italic=True)

    def test_bold_asterisks_are_not_italic(self):
        assert derive_format_state("**hi**").italic is False

    def test_bold_italic(self):
        assert detect_formats("***hi***", 0, 8) == FormatFlags(bold=True, italic=True)

    def test_underline(self):
        assert detect_formats("__hi__", 0, 6) == FormatFlags(underline=True)

    def test_mixed_runs(self):
        flags = derive_format_state("**a** and *b* and __c__")
        assert flags == FormatFlags(bold=True, italic=True, underline=True)

    def test_markers_outside_selection_are_ignored(self):
        """
        Scenario: "**hello**" with only "hello" selected.
        The markers sit outside the selection, so nothing is reported.
        """
        assert detect_formats("**hello**", 2, 7) == FormatFlags()

    def test_unbalanced_markers_are_inert(self):
        assert derive_format_state("**oops") == FormatFlags()


class TestApplyFormat:
    def test_bold_plain_selection(self):
        result = apply_format("hello world", Selection(start=0, end=5), "bold")

        assert result.applied
        assert result.content == "**hello** world"
        assert result.selection == Selection(start=0, end=9)
        assert result.formats == FormatFlags(bold=True)

    def test_bold_toggles_off(self):
        result = apply_format("**hello** world", Selection(start=0, end=9), "bold")

        assert result.content == "hello world"
        assert result.selection == Selection(start=0, end=5)
        assert result.formats == FormatFlags()

    def test_bold_on_italic_promotes(self):
        result = apply_format("*hi*", Selection(start=0, end=4), InlineFormat.BOLD)
        assert result.content == "***hi***"
        assert result.formats == FormatFlags(bold=True, italic=True)

    def test_bold_on_bold_italic_demotes_to_italic(self):
        result = apply_format("***hi***", Selection(start=0, end=8), "bold")
        assert result.content == "*hi*"
        assert result.formats == FormatFlags(italic=True)

    def test_italic_plain_selection(self):
        result = apply_format("hi", Selection(start=0, end=2), "italic")
        assert result.content == "*hi*"
        assert result.formats == FormatFlags(italic=True)

    def test_italic_on_bold_promotes(self):
        result = apply_format("**hi**", Selection(start=0, end=6), "italic")

        assert result.content == "***hi***"
        assert result.formats == FormatFlags(bold=True, italic=True)
        assert detect_formats(result.content, result.selection.start, result.selection.end) == result.formats

    def test_italic_on_bold_italic_demotes_to_bold(self):
        result = apply_format("***hi***", Selection(start=0, end=8), "italic")
        assert result.content == "**hi**"
        assert result.formats == FormatFlags(bold=True)

    def test_italic_toggles_off(self):
        result = apply_format("*hi*", Selection(start=0, end=4), "italic")
        assert result.content == "hi"
        assert result.formats == FormatFlags()

    def test_underline_wraps_existing_markup(self):
        result = apply_format("**hi**", Selection(start=0, end=6), "underline")

        assert result.content == "__**hi**__"
        assert result.formats == FormatFlags(bold=True, underline=True)

    def test_underline_toggles_off(self):
        result = apply_format("__hi__", Selection(start=0, end=6), "underline")
        assert result.content == "hi"
        assert result.formats == FormatFlags()

    def test_clear_format_strips_everything(self):
        content = "***a*** __b__"
        result = apply_format(content, Selection(start=0, end=len(content)), "clearFormat")

        assert result.content == "a b"
        assert result.formats == FormatFlags()

    def test_clear_format_alias(self):
        result = apply_format("**a**", Selection(start=0, end=5), "clear_format")
        assert result.applied
        assert result.content == "a"

    def test_selection_follows_formatted_run(self):
        result = apply_format("ab cd ef", Selection(start=3, end=5), "bold")

        assert result.content == "ab **cd** ef"
        assert result.selection == Selection(start=3, end=7)
        assert result.content[result.selection.start : result.selection.end] == "**cd**"

    def test_empty_selection_is_a_noop(self):
        result = apply_format("hello", Selection(start=0, end=0), "bold")

        assert result.applied is False
        assert result.content == "hello"
        assert result.message == NOTHING_SELECTED
        assert result.selection is None

    def test_unknown_format_is_a_noop(self):
        result = apply_format("hello", Selection(start=0, end=5), "strikethrough")

        assert result.applied is False
        assert result.content == "hello"


class TestRendering:
    def test_bold(self):
        assert render_markers_to_markup("**hello** world") == f"{BOLD}hello</span> world"

    def test_italic_and_underline(self):
        assert render_markers_to_markup("*a* __b__") == f"{ITALIC}a</span> {UNDERLINE}b</span>"

    def test_bold_italic_nests(self):
        """
        The bold pass leaves one asterisk on each side of the bold span;
        the italic pass then wraps them.
        """
        assert render_markers_to_markup("***wow***") == f"{BOLD}{ITALIC}wow</span></span>"

    def test_unbalanced_left_alone(self):
        assert render_markers_to_markup("**oops") == "**oops"

    def test_empty(self):
        assert render_markers_to_markup("") == ""

    def test_render_content_escapes_user_text(self):
        assert render_content("a < b **c**") == f"a &lt; b {BOLD}c</span>"

    def test_strip_markers(self):
        assert strip_markers("***a*** *b* __c__ **d**") == "a b c d"


def test_end_to_end_bold_render_and_highlight():
    """
    Scenario: type "hello world", select "hello", press bold, search "wor".
    """
    result = apply_format("hello world", Selection(start=0, end=5), "bold")
    assert result.content == "**hello** world"
    assert result.selection == Selection(start=0, end=9)

    assert render_markers_to_markup(result.content) == f"{BOLD}hello</span> world"
    assert render_content(result.content, "wor") == f"{BOLD}hello</span> {MARK}wor</mark>ld"


def test_selection_past_end_is_a_noop():
    result = apply_format("abc", Selection(start=5, end=9), "bold")
    assert result.applied is False
    assert result.content == "abc"


def test_offsets_are_utf16_code_units():
    """
    Scenario: an emoji (two UTF-16 code units) sits before the selected word.
    The browser reports "hi" in "😀 hi" as (3, 5).
    """
    result = apply_format("😀 hi", Selection(start=3, end=5), "bold")

    assert result.content == "😀 **hi**"
    assert result.selection == Selection(start=3, end=9)
    assert detect_formats(result.content, 3, 9) == FormatFlags(bold=True)
    assert detect_formats("😀 **hi**", 0, 2) == FormatFlags()


def test_underline_across_bold_boundary_nests_inside_bold():
    """
    Underline wrapped around a bold edge still renders as well-formed spans,
    but the closing bold span swallows the tail: "c" comes out bold and not
    underlined.
    """
    result = apply_format("**ab**c", Selection(start=3, end=7), "underline")
    assert result.content == "**a__b**c__"

    assert render_markers_to_markup(result.content) == (
        f"{BOLD}a{UNDERLINE}b</span>c</span>"
    )
