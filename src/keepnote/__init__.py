from importlib.metadata import PackageNotFoundError, version

from keepnote.formatting import (
    apply_format,
    derive_format_state,
    detect_formats,
    render_content,
    render_markers_to_markup,
)
from keepnote.highlight import highlight_markup, highlight_plain_text
from keepnote.models import FormatFlags, FormatResult, InlineFormat, Note, Selection, TextFormat

try:
    __version__ = version("keepnote")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source/dev)
    __version__ = "0.0.0-dev"

__all__ = [
    "apply_format",
    "derive_format_state",
    "detect_formats",
    "render_content",
    "render_markers_to_markup",
    "highlight_markup",
    "highlight_plain_text",
    "FormatFlags",
    "FormatResult",
    "InlineFormat",
    "Note",
    "Selection",
    "TextFormat",
    "__version__",
]
