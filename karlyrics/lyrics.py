"""Lyrics data model: syllables grouped into lines and blocks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Optional, Tuple

Line = List["Syllable"]
Block = List[Line]


class LyricType(IntEnum):
    """Lyrics formats a project can hold."""

    LRC1 = 1
    LRC2 = 2
    USTAR = 3


class Tag(IntEnum):
    """Project tags that can be read and written."""

    TITLE = 1
    ARTIST = 2
    ALBUM = 3
    LANGUAGE = 4
    GENRE = 5
    MP3FILE = 6
    COVER = 7
    BACKGROUND = 8
    VIDEO = 9
    VIDEOGAP = 10
    EDITION = 11
    CREATED_BY = 12
    OFFSET = 13
    APPLICATION = 14
    APPVERSION = 15
    CDG_BGCOLOR = 16
    CDG_INFOCOLOR = 17
    CDG_ACTIVECOLOR = 18
    CDG_INACTIVECOLOR = 19
    CDG_FONT = 20
    CDG_FONTSIZE = 21
    CDG_TITLETIME = 22
    CDG_PREAMBLE = 23
    VIDEO_BGCOLOR = 24
    VIDEO_INFOCOLOR = 25
    VIDEO_ACTIVECOLOR = 26
    VIDEO_INACTIVECOLOR = 27
    VIDEO_FONT = 28
    VIDEO_FONTSIZE = 29
    VIDEO_TITLETIME = 30
    VIDEO_PREAMBLE = 31
    EXPORT_FILENAME_CDG = 32
    EXPORT_FILENAME_VIDEO = 33
    CDG_TEXT_ALIGN_VERTICAL = 34
    VIDEO_TEXT_ALIGN_VERTICAL = 35


class LyricsFormatError(ValueError):
    """Raised when lyrics text cannot be parsed or exported."""


@dataclass
class Syllable:
    """A piece of text sung starting at ``timing`` milliseconds."""

    text: str = ""
    timing: int = 0
    pitch: int = -1


def _trunc_divmod(value: int, divisor: int) -> Tuple[int, int]:
    quotient = abs(value) // divisor
    if value < 0:
        quotient = -quotient
    return quotient, value - quotient * divisor


def split_time_mark(mark: int) -> Tuple[int, int, int]:
    """Split a millisecond mark into (minutes, seconds, milliseconds)."""
    minutes, rest = _trunc_divmod(mark, 60000)
    seconds, msecs = _trunc_divmod(rest, 1000)
    return minutes, seconds, msecs


def format_time_tag(mark: int) -> str:
    """Format a millisecond mark as an LRC ``mm:ss.xx`` time tag."""
    minutes, seconds, msecs = split_time_mark(mark)
    hundredths = _trunc_divmod(msecs, 10)[0]
    return f"{minutes:02d}:{seconds:02d}.{hundredths:02d}"


class Lyrics:
    """Lyrics built incrementally, syllable by syllable.

    An end of line on an empty line closes the current block.
    """

    PITCH_NOTE_FREESTYLE = 0x10000
    PITCH_NOTE_GOLDEN = 0x20000

    def __init__(self) -> None:
        self._blocks: List[Block] = []
        self._block: Block = []
        self._line: Line = []
        self._current: Optional[Syllable] = None

    def begin_lyrics(self) -> None:
        """Start building a fresh set of lyrics."""
        self.clear()

    def end_lyrics(self) -> None:
        """Flush any pending syllable, line and block."""
        self._commit()
        if self._line:
            self._block.append(self._line)
            self._line = []
        if self._block:
            self._blocks.append(self._block)
            self._block = []

    def clear(self) -> None:
        """Remove all lyrics and pending state."""
        self._blocks = []
        self._block = []
        self._line = []
        self._current = None

    def _pending(self) -> Syllable:
        if self._current is None:
            self._current = Syllable()
        return self._current

    def _commit(self) -> None:
        if self._current is not None:
            self._line.append(self._current)
            self._current = None

    def cur_lyric_add(self) -> None:
        """Finish the current syllable; the next call starts a new one."""
        self._commit()

    def cur_lyric_set_time(self, timing: int) -> None:
        self._pending().timing = int(timing)

    def cur_lyric_set_pitch(self, pitch: int) -> None:
        self._pending().pitch = int(pitch)

    def cur_lyric_append_text(self, text: str) -> None:
        self._pending().text += text

    def cur_lyric_add_end_of_line(self) -> None:
        """End the current line; on an empty line, end the current block."""
        self._commit()
        if self._line:
            self._block.append(self._line)
            self._line = []
        elif self._block:
            self._blocks.append(self._block)
            self._block = []

    def total_blocks(self) -> int:
        return len(self._blocks)

    def block(self, index: int) -> Block:
        return self._blocks[index]

    @property
    def blocks(self) -> List[Block]:
        return self._blocks

    def is_empty(self) -> bool:
        return not self._blocks

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)