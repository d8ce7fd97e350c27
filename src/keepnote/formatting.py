# FILE: src/keepnote/formatting.py

import re
from typing import Optional, Union

import structlog

from keepnote.highlight import escape_html, highlight_markup
from keepnote.models import FormatFlags, FormatResult, InlineFormat, Selection

logger = structlog.get_logger(__name__)

NOTHING_SELECTED = "Select some text to format"

# Non-greedy pairs. Order of use matters: `**` must be consumed before `*`.
_BOLD_ITALIC_RE = re.compile(r"\*\*\*(.*?)\*\*\*")
_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_ITALIC_RE = re.compile(r"\*(.*?)\*")
_UNDERLINE_RE = re.compile(r"__(.*?)__")

_BOLD_SPAN = r'<span class="text-bold">\1</span>'
_ITALIC_SPAN = r'<span class="text-italic">\1</span>'
_UNDERLINE_SPAN = r'<span class="text-underline">\1</span>'


def derive_format_state(text: str) -> FormatFlags:
    """
    Computes the format flags of a run of marked-up text.

    Single `*` pairs are looked for only after every `**...**` pair has been
    removed from a scratch copy, so the asterisks of a bold pair never read as
    italic. A `***...***` run counts as both.
    """
    has_bold_italic = _BOLD_ITALIC_RE.search(text) is not None
    has_bold = _BOLD_RE.search(text) is not None

    without_bold = _BOLD_RE.sub("", text)
    has_italic = _ITALIC_RE.search(without_bold) is not None

    return FormatFlags(
        bold=has_bold or has_bold_italic,
        italic=has_italic or has_bold_italic,
        underline=_UNDERLINE_RE.search(text) is not None,
    )


def detect_formats(content: str, start: int, end: int) -> FormatFlags:
    """
    Reports the formats present between two UTF-16 offsets of content.
    An empty selection reports nothing so the format controls stay disabled.
    """
    if start == end:
        return FormatFlags()
    lo, hi = Selection(start=start, end=end).to_indices(content)
    return derive_format_state(content[lo:hi])


def _toggle_bold(text: str) -> str:
    if "**" in text and "***" not in text:
        # Bold only: drop it, any italic survives
        return _BOLD_RE.sub(r"\1", text)
    if "***" in text:
        return _BOLD_ITALIC_RE.sub(r"*\1*", text)
    if "*" in text and "**" not in text:
        return _ITALIC_RE.sub(r"***\1***", text)
    return f"**{text}**"


def _toggle_italic(text: str) -> str:
    if "***" in text:
        return _BOLD_ITALIC_RE.sub(r"**\1**", text)
    if "*" in text and "**" not in text:
        return _ITALIC_RE.sub(r"\1", text)
    if "**" in text:
        return _BOLD_RE.sub(r"***\1***", text)
    return f"*{text}*"


def _toggle_underline(text: str) -> str:
    if "__" in text:
        return _UNDERLINE_RE.sub(r"\1", text)
    # Wraps around existing bold/italic markers, never inside them
    return f"__{text}__"


def strip_markers(text: str) -> str:
    """Removes bold, italic and underline markers, keeping the enclosed text."""
    text = _BOLD_RE.sub(r"\1", text)
    text = _ITALIC_RE.sub(r"\1", text)
    return _UNDERLINE_RE.sub(r"\1", text)


_TOGGLES = {
    InlineFormat.BOLD: _toggle_bold,
    InlineFormat.ITALIC: _toggle_italic,
    InlineFormat.UNDERLINE: _toggle_underline,
    InlineFormat.CLEAR: strip_markers,
}


def _coerce_format(fmt: Union[InlineFormat, str]) -> Optional[InlineFormat]:
    if isinstance(fmt, InlineFormat):
        return fmt
    try:
        return InlineFormat(fmt)
    except ValueError:
        pass
    if fmt == "clear_format":
        return InlineFormat.CLEAR
    return None


def apply_format(content: str, selection: Selection, fmt: Union[InlineFormat, str]) -> FormatResult:
    """
    Toggles an inline format on the selected slice of content.

    Selection offsets are UTF-16 code units, both on the way in and on the
    returned selection, which spans the re-marked slice so the caret
    follows text that grew or shrank. An empty selection or an unknown format
    yields an unapplied result carrying the original content.
    """
    if selection.is_empty:
        logger.debug("Format requested with nothing selected", format=str(fmt))
        return FormatResult(applied=False, content=content, message=NOTHING_SELECTED)

    inline_format = _coerce_format(fmt)
    if inline_format is None:
        logger.warning(f"Ignoring unknown inline format: '{fmt}'")
        return FormatResult(applied=False, content=content, message=f"Unknown format: {fmt}")

    lo, hi = selection.to_indices(content)
    before = content[:lo]
    selected = content[lo:hi]
    after = content[hi:]

    if not selected:
        # Range lies past the end of content
        return FormatResult(applied=False, content=content, message=NOTHING_SELECTED)

    formatted = _TOGGLES[inline_format](selected)
    new_content = before + formatted + after

    return FormatResult(
        applied=True,
        content=new_content,
        formats=derive_format_state(formatted),
        selection=Selection.from_indices(new_content, lo, lo + len(formatted)),
    )


def render_markers_to_markup(content: str) -> str:
    """
    Replaces markers with styled spans: bold first, then italic, then underline.

    `***x***` comes out of the bold pass as `<bold>*x</bold>*` and the italic
    pass wraps the leftover asterisks, which nests italic inside bold.
    Nothing is escaped here. Overlapping pairs nest by position, so in
    `**a__b**c__` the tail "c" ends up bold and not underlined.
    """
    if not content:
        return ""

    markup = _BOLD_RE.sub(_BOLD_SPAN, content)
    markup = _ITALIC_RE.sub(_ITALIC_SPAN, markup)
    return _UNDERLINE_RE.sub(_UNDERLINE_SPAN, markup)


def render_content(content: str, query: str = "") -> str:
    """
    Display pipeline for a note body: escape, convert markers, highlight matches.
    """
    markup = render_markers_to_markup(escape_html(content or ""))
    return highlight_markup(markup, query)
