from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class InlineFormat(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    CLEAR = "clearFormat"


class TextFormat(str, Enum):
    """
    Whole-block style of a note's content, independent of inline markers.
    """

    NORMAL = "normal"
    H1 = "h1"
    H2 = "h2"


class FormatFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    bold: bool = False
    italic: bool = False
    underline: bool = False


def _utf16_len(ch: str) -> int:
    return 2 if ord(ch) > 0xFFFF else 1


class Selection(BaseModel):
    """
    A caret or range over the raw content string, in UTF-16 code units as a
    browser text field reports them. Start is inclusive, end exclusive.
    """

    model_config = ConfigDict(frozen=True)

    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> "Selection":
        if self.start > self.end:
            raise ValueError(f"selection start {self.start} is after end {self.end}")
        return self

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    @property
    def length(self) -> int:
        return self.end - self.start

    @classmethod
    def from_indices(cls, content: str, start: int, end: int) -> "Selection":
        """Builds a selection from Python string indices into content."""
        return cls(start=_index_to_utf16(content, start), end=_index_to_utf16(content, end))

    def to_indices(self, content: str) -> Tuple[int, int]:
        """
        Python string indices for this selection. An offset landing inside a
        surrogate pair snaps forward to the end of that character, and offsets
        past the end clamp to len(content).
        """
        return _utf16_to_index(content, self.start), _utf16_to_index(content, self.end)


def _utf16_to_index(content: str, offset: int) -> int:
    units = 0
    for i, ch in enumerate(content):
        if units >= offset:
            return i
        units += _utf16_len(ch)
    return len(content)


def _index_to_utf16(content: str, index: int) -> int:
    return sum(_utf16_len(ch) for ch in content[:index])


class FormatResult(BaseModel):
    """
    Outcome of a format request.

    When nothing was selected, `applied` is False, `content` is the untouched
    input and `message` holds the prompt to show the user.
    """

    applied: bool
    content: str
    formats: Optional[FormatFlags] = None
    selection: Optional[Selection] = None
    message: Optional[str] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Note(BaseModel):
    id: Optional[str] = None
    owner_id: Optional[str] = None
    title: str = ""
    content: str = ""
    bg_color: str = "default"
    bg_image: str = "default"
    text_format: TextFormat = TextFormat.NORMAL
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def is_blank(self) -> bool:
        return not self.title.strip() and not self.content.strip()


class NotePatch(BaseModel):
    """
    Partial update for a stored note. Unset fields are left alone.
    """

    title: Optional[str] = None
    content: Optional[str] = None
    bg_color: Optional[str] = None
    bg_image: Optional[str] = None
    text_format: Optional[TextFormat] = None


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
