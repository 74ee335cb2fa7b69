"""A karaoke lyrics project: tags, lyrics, persistence, import and export."""

from __future__ import annotations

import json
import logging
import os
import struct
from typing import BinaryIO, Dict, List, Optional, Union

from .importers import (
    ImportResult,
    parse_kok,
    parse_lrc,
    parse_txt,
)
from .lyrics import (
    Lyrics,
    LyricsFormatError,
    LyricType,
    Tag,
    format_time_tag,
)
from .util import decode_text

PathLike = Union[str, "os.PathLike[str]"]

log = logging.getLogger(__name__)

APPLICATION_NAME = "Karaoke Lyrics Editor"
APPLICATION_VERSION = "1.0"

_SIGNATURE = "BONIFACI"
_UNSUPPORTED = b"UNSUPORTED"
_NULL_STRING = 0xFFFFFFFF

# Keys of the project data map as stored in project files.
_PD_SIGNATURE = 0
_PD_VERSION = 1
_PD_MUSICFILE = 2
_PD_LYRICS_OLD = 3
_PD_LYRICTYPE = 4
_PD_TAG_TITLE = 5
_PD_TAG_ARTIST = 6
_PD_TAG_ALBUM = 7
_PD_LYRICS_NEW = 8

_PD_TAG_CREATEDBY = 40
_PD_TAG_OFFSET = 41
_PD_TAG_APPLICATION = 42
_PD_TAG_APPVERSION = 43

_PD_TAG_LANGUAGE = 50
_PD_TAG_GENRE = 51
_PD_TAG_MP3FILE = 52
_PD_TAG_COVER = 53
_PD_TAG_BACKGROUND = 54
_PD_TAG_VIDEO = 55
_PD_TAG_VIDEOGAP = 56
_PD_TAG_EDITION = 57

_PD_TAG_CDG_BCOLOR = 58
_PD_TAG_CDG_ICOLOR = 59
_PD_TAG_CDG_ACOLOR = 60
_PD_TAG_CDG_NCOLOR = 61
_PD_TAG_CDG_FONT = 62
_PD_TAG_CDG_FONTSIZE = 63
_PD_TAG_CDG_MINTITLE = 64
_PD_TAG_CDG_PREAMBLE = 65

_PD_TAG_VIDEO_BCOLOR = 66
_PD_TAG_VIDEO_ICOLOR = 67
_PD_TAG_VIDEO_ACOLOR = 68
_PD_TAG_VIDEO_NCOLOR = 69
_PD_TAG_VIDEO_FONT = 70
_PD_TAG_VIDEO_FONTSIZE = 71
_PD_TAG_VIDEO_MINTITLE = 72
_PD_TAG_VIDEO_PREAMBLE = 73
# 74..86: video encoding options, profile, format, quality and audio mode.
_PD_TAG_EXPORT_FILENAME_CDG = 87
_PD_TAG_EXPORT_FILENAME_VIDEO = 88
_PD_TAG_EXPORT_CDG_TEXT_ALIGN_VERTICAL = 89
_PD_TAG_EXPORT_VIDEO_TEXT_ALIGN_VERTICAL = 90

_VERTICAL_BOTTOM = 0

_TAG_IDS: Dict[Tag, int] = {
    Tag.TITLE: _PD_TAG_TITLE,
    Tag.ARTIST: _PD_TAG_ARTIST,
    Tag.ALBUM: _PD_TAG_ALBUM,
    Tag.LANGUAGE: _PD_TAG_LANGUAGE,
    Tag.GENRE: _PD_TAG_GENRE,
    Tag.MP3FILE: _PD_TAG_MP3FILE,
    Tag.COVER: _PD_TAG_COVER,
    Tag.BACKGROUND: _PD_TAG_BACKGROUND,
    Tag.VIDEO: _PD_TAG_VIDEO,
    Tag.CREATED_BY: _PD_TAG_CREATEDBY,
    Tag.OFFSET: _PD_TAG_OFFSET,
    Tag.APPLICATION: _PD_TAG_APPLICATION,
    Tag.APPVERSION: _PD_TAG_APPVERSION,
    Tag.VIDEOGAP: _PD_TAG_VIDEOGAP,
    Tag.EDITION: _PD_TAG_EDITION,
    Tag.CDG_BGCOLOR: _PD_TAG_CDG_BCOLOR,
    Tag.CDG_INFOCOLOR: _PD_TAG_CDG_ICOLOR,
    Tag.CDG_ACTIVECOLOR: _PD_TAG_CDG_ACOLOR,
    Tag.CDG_INACTIVECOLOR: _PD_TAG_CDG_NCOLOR,
    Tag.CDG_FONT: _PD_TAG_CDG_FONT,
    Tag.CDG_FONTSIZE: _PD_TAG_CDG_FONTSIZE,
    Tag.CDG_TITLETIME: _PD_TAG_CDG_MINTITLE,
    Tag.CDG_PREAMBLE: _PD_TAG_CDG_PREAMBLE,
    Tag.VIDEO_BGCOLOR: _PD_TAG_VIDEO_BCOLOR,
    Tag.VIDEO_INFOCOLOR: _PD_TAG_VIDEO_ICOLOR,
    Tag.VIDEO_ACTIVECOLOR: _PD_TAG_VIDEO_ACOLOR,
    Tag.VIDEO_INACTIVECOLOR: _PD_TAG_VIDEO_NCOLOR,
    Tag.VIDEO_FONT: _PD_TAG_VIDEO_FONT,
    Tag.VIDEO_FONTSIZE: _PD_TAG_VIDEO_FONTSIZE,
    Tag.VIDEO_TITLETIME: _PD_TAG_VIDEO_MINTITLE,
    Tag.VIDEO_PREAMBLE: _PD_TAG_VIDEO_PREAMBLE,
    Tag.EXPORT_FILENAME_CDG: _PD_TAG_EXPORT_FILENAME_CDG,
    Tag.EXPORT_FILENAME_VIDEO: _PD_TAG_EXPORT_FILENAME_VIDEO,
    Tag.CDG_TEXT_ALIGN_VERTICAL: _PD_TAG_EXPORT_CDG_TEXT_ALIGN_VERTICAL,
    Tag.VIDEO_TEXT_ALIGN_VERTICAL: _PD_TAG_EXPORT_VIDEO_TEXT_ALIGN_VERTICAL,
}

_LRC_HEADER_FIELDS = [
    (_PD_TAG_TITLE, "ti"),
    (_PD_TAG_ARTIST, "ar"),
    (_PD_TAG_ALBUM, "al"),
    (_PD_TAG_CREATEDBY, "by"),
    (_PD_TAG_OFFSET, "offset"),
    (_PD_TAG_APPLICATION, "re"),
    (_PD_TAG_APPVERSION, "ve"),
]

_USTAR_HEADER_FIELDS = [
    (_PD_TAG_TITLE, "TITLE"),
    (_PD_TAG_ARTIST, "ARTIST"),
    (_PD_TAG_LANGUAGE, "LANGUAGE"),
    (_PD_TAG_GENRE, "GENRE"),
    (_PD_TAG_COVER, "COVER"),
    (_PD_TAG_BACKGROUND, "BACKGROUND"),
    (_PD_TAG_VIDEO, "VIDEO"),
    (_PD_TAG_VIDEOGAP, "VIDEOGAP"),
    (_PD_TAG_EDITION, "EDITION"),
]

# Beats per minute used for UltraStar export; 5 beats per second.
_USTAR_BPM = 300


def _int_value(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        return 0


def _tdiv(value: int, divisor: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(value) // abs(divisor)
    return -quotient if (value < 0) != (divisor < 0) else quotient


# Binary map storage: a count followed by (int32 key, UTF-16 string) pairs.

def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise LyricsFormatError("The project file is truncated")
    return data


def _read_map(stream: BinaryIO) -> Dict[int, str]:
    (count,) = struct.unpack(">I", _read_exact(stream, 4))
    result: Dict[int, str] = {}
    for _ in range(count):
        (key,) = struct.unpack(">i", _read_exact(stream, 4))
        (length,) = struct.unpack(">I", _read_exact(stream, 4))
        if length == _NULL_STRING:
            value = ""
        else:
            value = _read_exact(stream, length).decode("utf-16-be", errors="replace")
        result.setdefault(key, value)
    return result


def _write_map(stream: BinaryIO, data: Dict[int, str]) -> None:
    stream.write(struct.pack(">I", len(data)))
    for key in sorted(data, reverse=True):
        encoded = data[key].encode("utf-16-be")
        stream.write(struct.pack(">iI", key, len(encoded)))
        stream.write(encoded)


def _lyrics_to_text(lyrics: Lyrics) -> str:
    return json.dumps(
        [
            [[[s.text, s.timing, s.pitch] for s in line] for line in block]
            for block in lyrics
        ]
    )


def _lyrics_from_text(text: str) -> Lyrics:
    try:
        blocks = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LyricsFormatError(f"The project lyrics cannot be read: {exc}") from exc

    lyrics = Lyrics()
    lyrics.begin_lyrics()
    try:
        for block in blocks:
            for line in block:
                for syl_text, timing, pitch in line:
                    lyrics.cur_lyric_set_time(timing)
                    lyrics.cur_lyric_set_pitch(pitch)
                    lyrics.cur_lyric_append_text(str(syl_text))
                    lyrics.cur_lyric_add()
                lyrics.cur_lyric_add_end_of_line()
            lyrics.cur_lyric_add_end_of_line()
    except (TypeError, ValueError) as exc:
        raise LyricsFormatError(f"The project lyrics are malformed: {exc}") from exc
    lyrics.end_lyrics()
    return lyrics


class Project:
    """Project tags, the lyrics being edited and their import/export."""

    def __init__(self, sound_delay: int = 250) -> None:
        self.sound_delay = sound_delay
        self.modified = False
        self.text_encoding = "utf-8"
        self.lyrics = Lyrics()
        self.song_length = 0
        self._data: Dict[int, str] = {}
        self.clear()

    def clear(self) -> None:
        """Reset the project data to defaults."""
        self._data = {
            _PD_SIGNATURE: _SIGNATURE,
            _PD_VERSION: "\x01",
            _PD_TAG_OFFSET: str(self.sound_delay),
            _PD_TAG_APPLICATION: APPLICATION_NAME,
            _PD_TAG_APPVERSION: APPLICATION_VERSION,
            _PD_TAG_CDG_BCOLOR: "black",
            _PD_TAG_CDG_ICOLOR: "white",
            _PD_TAG_CDG_ACOLOR: "#c000c0",
            _PD_TAG_CDG_NCOLOR: "#00c0c0",
            _PD_TAG_CDG_FONT: "Droid Sans",
            _PD_TAG_CDG_FONTSIZE: "12",
            _PD_TAG_CDG_MINTITLE: "5",
            _PD_TAG_CDG_PREAMBLE: "1",
            _PD_TAG_EXPORT_CDG_TEXT_ALIGN_VERTICAL: str(_VERTICAL_BOTTOM),
            _PD_TAG_EXPORT_VIDEO_TEXT_ALIGN_VERTICAL: str(_VERTICAL_BOTTOM),
        }
        self.lyrics = Lyrics()
        self.song_length = 0

    # Properties

    @property
    def lyric_type(self) -> Optional[LyricType]:
        """The project's lyric type, or None when unset or unknown."""
        value = _int_value(self._data.get(_PD_LYRICTYPE, ""))
        try:
            return LyricType(value)
        except ValueError:
            return None

    @lyric_type.setter
    def lyric_type(self, value: LyricType) -> None:
        self._update(_PD_LYRICTYPE, str(int(value)))

    @property
    def music_file(self) -> str:
        return self._data.get(_PD_MUSICFILE, "")

    @music_file.setter
    def music_file(self, value: str) -> None:
        self._update(_PD_MUSICFILE, value)

    def _update(self, key: int, value: str) -> None:
        if self._data.setdefault(key, "") == value:
            return
        self._data[key] = value
        self.modified = True

    # Persistence

    def save(self, filename: PathLike) -> None:
        """Write the project, including its lyrics, to ``filename``."""
        self._data[_PD_LYRICS_NEW] = _lyrics_to_text(self.lyrics)
        with open(filename, "wb") as handle:
            _write_map(handle, self._data)
        self.modified = False

    def load(self, filename: PathLike) -> None:
        """Read a project file; raises LyricsFormatError if it is not one."""
        with open(filename, "rb") as handle:
            data = _read_map(handle)

        if data.get(_PD_SIGNATURE, "") != _SIGNATURE:
            raise LyricsFormatError(
                f"The project file {os.fspath(filename)} is not a valid "
                "Lyric Editor project file"
            )

        self._data = data
        stored = data.get(_PD_LYRICS_NEW, "")
        self.lyrics = _lyrics_from_text(stored) if stored else Lyrics()

        if self.lyric_type is None:
            self.lyric_type = LyricType.LRC2
            self.modified = True
        else:
            self.modified = False

    # Tags

    def set_tag(self, tag: Tag, value: str) -> None:
        key = _TAG_IDS.get(tag)
        if key is not None:
            self._update(key, value)

    def tag(self, tag: Tag, default: str = "") -> str:
        key = _TAG_IDS.get(tag)
        if key is not None and key in self._data:
            return self._data[key]
        return default

    def _present(self, key: int) -> Optional[str]:
        value = self._data.get(key, "")
        return value or None

    def lrc_header(self) -> str:
        """LRC header lines for every non-empty LRC tag."""
        return "".join(
            f"[{prefix}: {value}]\n"
            for key, prefix in _LRC_HEADER_FIELDS
            if (value := self._present(key)) is not None
        )

    def ultrastar_header(self) -> str:
        """UltraStar header lines for every non-empty UltraStar tag."""
        return "".join(
            f"#{prefix}:{value}\n"
            for key, prefix in _USTAR_HEADER_FIELDS
            if (value := self._present(key)) is not None
        )

    # Export

    def export_lyrics(self) -> bytes:
        """Export the lyrics in the project's own format."""
        exporters = {
            LyricType.LRC1: self.export_lrc1,
            LyricType.LRC2: self.export_lrc2,
            LyricType.USTAR: self.export_ultrastar,
        }
        exporter = exporters.get(self.lyric_type)
        return exporter() if exporter else _UNSUPPORTED

    def _export_lrc(self, inline_tags: bool) -> bytes:
        parts: List[str] = [self.lrc_header()]
        for index, block in enumerate(self.lyrics):
            if index > 0:
                parts.append("\n")
            for line in block:
                for pos, syllable in enumerate(line):
                    timetag = format_time_tag(syllable.timing)
                    if pos == 0:
                        parts.append(f"[{timetag}]")
                    elif inline_tags:
                        parts.append(f"<{timetag}>")
                    parts.append(syllable.text)
                parts.append("\n")
        return "".join(parts).encode("utf-8")

    def export_lrc1(self) -> bytes:
        """Export as LRC version 1: one time tag at the start of each line."""
        return self._export_lrc(inline_tags=False)

    def export_lrc2(self) -> bytes:
        """Export as LRC version 2 with inline time tags."""
        return self._export_lrc(inline_tags=True)

    def export_ultrastar(self) -> bytes:
        """Export as UltraStar text; every line must end with an empty syllable."""
        if self.lyrics.is_empty():
            raise LyricsFormatError("There are no lyrics to export")
        if self.lyrics.total_blocks() > 1:
            log.info("UltraStar lyrics cannot contain block separators; blocks merged")

        beat_time_ms = 1000 // (_USTAR_BPM // 60)
        gap = self.lyrics.block(0)[0][0].timing

        parts: List[str] = [
            self.ultrastar_header(),
            f"#MP3:{self.music_file}\n",
            f"#BPM:{_USTAR_BPM}\n",
            f"#GAP:{gap}\n",
        ]

        for block in self.lyrics:
            for ln, line in enumerate(block):
                for pos, syllable in enumerate(line):
                    last_entry = pos == len(line) - 1
                    if last_entry and syllable.text:
                        raise LyricsFormatError(
                            "UltraStar lyrics require timing marks at the end of line"
                        )

                    timing = _tdiv(syllable.timing - gap, beat_time_ms)

                    if last_entry:
                        if ln == len(block) - 1:
                            duration = _tdiv(5000, beat_time_ms)
                        else:
                            duration = _tdiv(
                                block[ln + 1][0].timing - syllable.timing, beat_time_ms
                            )
                        parts.append(f"- {timing} {duration}\n")
                        continue

                    duration = _tdiv(line[pos + 1].timing - syllable.timing, beat_time_ms)
                    pitch = 0 if syllable.pitch == -1 else syllable.pitch
                    prefix = ":"
                    if pitch & Lyrics.PITCH_NOTE_FREESTYLE:
                        prefix = "F"
                        pitch &= ~Lyrics.PITCH_NOTE_FREESTYLE
                    elif pitch & Lyrics.PITCH_NOTE_GOLDEN:
                        prefix = "*"
                        pitch &= ~Lyrics.PITCH_NOTE_GOLDEN
                    parts.append(f"{prefix} {timing} {duration} {pitch} {syllable.text}\n")

        parts.append("E\n")
        return "".join(parts).encode("utf-8")

    # Import

    def _apply(self, result: ImportResult) -> None:
        for name in result.ignored_tags:
            log.debug("Unsupported tag found: '%s', ignored", name)
        for tag, value in result.tags.items():
            self.set_tag(tag, value)
        self.lyrics = result.lyrics

    def import_lyrics(self, filename: PathLike) -> None:
        """Import lyrics from an LRC, UltraStar/PowerKaraoke/KBP .txt or .kok file."""
        name = os.fspath(filename)
        lowered = name.lower()
        if lowered.endswith(("kfn", "mid", "midi", "kar")):
            raise LyricsFormatError(f"Cannot read lyrics from {name}: unsupported format")

        with open(filename, "rb") as handle:
            data = handle.read()

        text = decode_text(data, self.text_encoding)
        if not text:
            raise LyricsFormatError(f"The file {name} holds no lyrics")

        lines = text.replace("\r\n", "\n").replace("\r", "").split("\n")

        if name.endswith("txt"):
            result = parse_txt(lines)
        elif name.endswith("kok"):
            result = parse_kok(lines)
        else:
            result = parse_lrc(lines)
            if self.lyric_type == LyricType.LRC1 and result.lrc2:
                log.warning(
                    "The lyric type for the project is LRC1, but the lyrics read were LRC2"
                )

        self._apply(result)

    def convert_lyrics(self, content: str) -> None:
        """Replace the lyrics with LRC text, accepting a missing header."""
        self._apply(parse_lrc(content.split("\n"), relaxed=True))