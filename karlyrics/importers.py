"""Parsers for the lyric text formats that can be imported into a project."""

from __future__ import annotations

import math
import re
import struct
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .lyrics import Lyrics, LyricsFormatError, Tag

_LRC_TAGS: Dict[str, Tag] = {
    "ti": Tag.TITLE,
    "ar": Tag.ARTIST,
    "al": Tag.ALBUM,
    "by": Tag.CREATED_BY,
    "offset": Tag.OFFSET,
    "re": Tag.APPLICATION,
    "ve": Tag.APPVERSION,
}

_USTAR_TAGS: Dict[str, Tag] = {
    "TITLE": Tag.TITLE,
    "ARTIST": Tag.ARTIST,
    "LANGUAGE": Tag.LANGUAGE,
    "GENRE": Tag.GENRE,
    "MP3FILE": Tag.MP3FILE,
    "COVER": Tag.COVER,
    "BACKGROUND": Tag.BACKGROUND,
    "VIDEO": Tag.VIDEO,
    "VIDEOGAP": Tag.VIDEOGAP,
    "EDITION": Tag.EDITION,
}

_LRC_HEADER = re.compile(r"^<([a-zA-Z]+):\s*(.*?)\s*>$", re.ASCII)
_LRC_TIME = re.compile(r"<(\d+):(\d+)(.\d+)?>([^<]*)", re.ASCII)
_USTAR_HEADER = re.compile(r"^#([a-zA-Z]+):\s*(.*)\s*$", re.ASCII)
_USTAR_START = re.compile(r"^#[a-zA-Z]+:\s*.*\s*$", re.ASCII)
_POWER_KARAOKE_START = re.compile(r"^([0-9.]+) ([0-9.]+) (.+)")
_POWER_KARAOKE_LINE = re.compile(r"^([0-9.:]+) ([0-9.:]+) (.*)")
_KBP_LINE = re.compile(r"(.*)/ +([0-9]+)/([0-9]+)/([0-9]+)")
_WHITESPACE = re.compile(r"\s+", re.ASCII)
_INTEGER = re.compile(r"[+-]?\d+", re.ASCII)

_USTAR_NOTE_KINDS = ("E", ":", "*", "F", "-")


@dataclass
class ImportResult:
    """Lyrics read from a file together with the header tags found in it."""

    lyrics: Lyrics
    tags: Dict[Tag, str] = field(default_factory=dict)
    lrc2: bool = False
    ignored_tags: List[str] = field(default_factory=list)


def _to_int(text: str) -> int:
    """Parse an integer the lenient way: anything invalid gives 0."""
    stripped = text.strip()
    if _INTEGER.fullmatch(stripped):
        return int(stripped)
    return 0


def _to_double(text: str) -> float:
    """Parse a decimal number; anything invalid or infinite gives 0."""
    if "_" in text:
        return 0.0
    try:
        value = float(text)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def _single(value: float) -> float:
    """Round a value to single precision."""
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return 0.0


def _seconds_to_ms(text: str) -> int:
    """Convert a seconds string to milliseconds using single-precision math."""
    product = _single(_single(_to_double(text)) * 1000)
    if not math.isfinite(product):
        return 0
    return int(product)


def _start() -> ImportResult:
    lyrics = Lyrics()
    lyrics.begin_lyrics()
    return ImportResult(lyrics)


def _finish(result: ImportResult) -> ImportResult:
    result.lyrics.end_lyrics()
    return result


def power_karaoke_time(text: str) -> int:
    """Convert a PowerKaraoke ``[minutes:]seconds`` time into milliseconds."""
    timing = 0
    if ":" in text:
        parts = text.split(":")
        timing = _to_int(parts[0]) * 60000
        text = parts[1]
    return timing + _seconds_to_ms(text)


def parse_lrc(lines: Sequence[str], relaxed: bool = False) -> ImportResult:
    """Parse LRC (version 1 or 2) lines.

    Unless ``relaxed``, the first line must be a header tag.
    """
    result = _start()
    lyrics = result.lyrics
    header = True

    for number, raw in enumerate(lines):
        line = raw.replace("[", "<").replace("]", ">")

        if header:
            match = _LRC_HEADER.match(line)
            if match:
                name, value = match.groups()
                tag = _LRC_TAGS.get(name)
                if tag is None:
                    result.ignored_tags.append(name)
                else:
                    result.tags[tag] = value
                continue
            if number == 0 and not relaxed:
                raise LyricsFormatError("Invalid LRC file: missing LRC header")
            header = False

        last_time = -1
        pos = 0
        while True:
            match = _LRC_TIME.search(line, pos)
            if match is None:
                break
            pos = match.start()
            if pos != 0:
                result.lrc2 = True

            minutes = int(match.group(1))
            seconds = int(match.group(2))
            fraction = (match.group(3) or "")[1:]
            msecs = int(fraction.ljust(3, "0")) if fraction else 0
            timing = minutes * 60000 + seconds * 1000 + msecs

            if timing != last_time:
                lyrics.cur_lyric_add()
                lyrics.cur_lyric_set_time(timing)
                last_time = timing

            lyrics.cur_lyric_append_text(match.group(4))
            pos += 1

        lyrics.cur_lyric_add_end_of_line()

    return _finish(result)


def parse_txt(lines: Sequence[str]) -> ImportResult:
    """Parse a .txt lyric file: UltraStar, PowerKaraoke or KaraokeBuilder."""
    if not lines:
        raise LyricsFormatError("Invalid text file: the file is empty")

    first = lines[0]
    if _USTAR_START.search(first):
        return parse_ultrastar(lines)
    if _POWER_KARAOKE_START.search(first):
        return parse_power_karaoke(lines)
    if "PAGEV2" in lines:
        return parse_karaoke_builder(lines)

    raise LyricsFormatError(
        "Invalid text file: this file is not a valid UltraStar nor PowerKaraoke lyric file"
    )


def parse_ultrastar(lines: Sequence[str]) -> ImportResult:
    """Parse UltraStar lines; BPM and GAP headers are required."""
    result = _start()
    lyrics = result.lyrics
    header = True
    bpm = -1.0
    gap = -1.0
    msecs_per_beat = 0.0
    next_time = 0

    for number, line in enumerate(lines):
        if header:
            match = _USTAR_HEADER.match(line)
            if match:
                name, value = match.groups()
                tag = _USTAR_TAGS.get(name)
                if tag is not None:
                    result.tags[tag] = value
                elif name == "BPM":
                    bpm = _to_double(value)
                elif name == "GAP":
                    gap = _to_double(value)
                elif name == "RELATIVE":
                    # Accepted, but beat numbers are always read as absolute.
                    pass
                else:
                    result.ignored_tags.append(name)
                continue

            if bpm < 0 or gap < 0:
                raise LyricsFormatError(
                    "Invalid UltraStar file: BPM and/or GAP is missing."
                )
            if bpm == 0:
                raise LyricsFormatError("Invalid UltraStar file: BPM is zero.")
            msecs_per_beat = (60.0 / bpm / 4.0) * 1000.0
            header = False

        kind = line[:1]
        if kind not in _USTAR_NOTE_KINDS:
            raise LyricsFormatError(
                f"Invalid UltraStar file: error at line {number + 1}."
            )
        if kind == "E":
            break

        parsed = _WHITESPACE.split(line)
        if len(parsed) < 3:
            raise LyricsFormatError(f"Invalid UltraStar file: error at line {number}.")

        timing = int(_to_int(parsed[1]) * msecs_per_beat)

        # A pause between the previous note's end and this note becomes an empty syllable.
        if next_time != 0 and timing > next_time:
            lyrics.cur_lyric_set_time(next_time)
            lyrics.cur_lyric_set_pitch(0)
            lyrics.cur_lyric_add()

        next_time = int(timing + _to_int(parsed[2]) * msecs_per_beat)
        lyrics.cur_lyric_set_time(timing)

        note = parsed[0]
        if note in ("F", "*", ":"):
            if len(parsed) < 5:
                raise LyricsFormatError(
                    f"Invalid UltraStar file: error at line {number}."
                )
            pitch = _to_int(parsed[3])
            if note == "F":
                pitch |= Lyrics.PITCH_NOTE_FREESTYLE
            elif note == "*":
                pitch |= Lyrics.PITCH_NOTE_GOLDEN
            lyrics.cur_lyric_set_pitch(pitch)
            lyrics.cur_lyric_append_text(parsed[4])
            lyrics.cur_lyric_add()
        elif note == "-":
            lyrics.cur_lyric_add_end_of_line()
        else:
            raise LyricsFormatError(
                f"Invalid UltraStar file: error at line {number + 1}."
            )

    return _finish(result)


def parse_power_karaoke(lines: Sequence[str]) -> ImportResult:
    """Parse PowerKaraoke ``start end text`` lines."""
    result = _start()
    lyrics = result.lyrics

    for number, line in enumerate(lines):
        if not line:
            continue

        match = _POWER_KARAOKE_LINE.match(line)
        if match is None:
            raise LyricsFormatError(
                "This file is not a valid PowerKaraoke lyric file, "
                f"error at line {number + 1}"
            )

        lyrics.cur_lyric_set_time(power_karaoke_time(match.group(1)))
        text = match.group(3).strip()

        if text.endswith("\\n"):
            lyrics.cur_lyric_append_text(text[:-2])
            lyrics.cur_lyric_add_end_of_line()
        elif not text.endswith("-"):
            lyrics.cur_lyric_append_text(text + " ")
            lyrics.cur_lyric_add()
        else:
            lyrics.cur_lyric_append_text(text[:-1])
            lyrics.cur_lyric_add()

    return _finish(result)


def parse_kok(lines: Sequence[str]) -> ImportResult:
    """Parse KOK lines of ``text;seconds`` pairs with decimal commas."""
    result = _start()
    lyrics = result.lyrics

    for number, line in enumerate(lines):
        if not line:
            continue

        entries = line.split(";")
        if len(entries) % 2 != 0:
            raise LyricsFormatError(
                f"Invalid KOK file: odd number of fields at line {number + 1}"
            )

        pairs = list(zip(entries[0::2], entries[1::2]))
        for index, (text, timing) in enumerate(pairs):
            lyrics.cur_lyric_set_time(_seconds_to_ms(timing.replace(",", ".")))
            lyrics.cur_lyric_append_text(text)
            if index == len(pairs) - 1:
                lyrics.cur_lyric_add_end_of_line()
            else:
                lyrics.cur_lyric_add()

    return _finish(result)


def parse_karaoke_builder(lines: Sequence[str]) -> ImportResult:
    """Parse KaraokeBuilder lines; everything before the first PAGEV2 is header."""
    result = _start()
    lyrics = result.lyrics
    blocks_seen = 0

    for number, line in enumerate(lines):
        if line == "PAGEV2":
            if blocks_seen:
                lyrics.cur_lyric_add_end_of_line()
                lyrics.cur_lyric_add_end_of_line()
            blocks_seen += 1
            continue

        if not blocks_seen:
            continue

        if line.startswith("--------") or line.startswith("C/A/"):
            continue

        if not line:
            lyrics.cur_lyric_add_end_of_line()
            continue

        match = _KBP_LINE.search(line)
        if match is None:
            raise LyricsFormatError(
                "This file is not a valid KaraokeBuilder lyric file, "
                f"error at line {number + 1}:\n{line}"
            )

        lyrics.cur_lyric_set_time(int(match.group(2)) * 10)
        lyrics.cur_lyric_append_text(match.group(1))
        lyrics.cur_lyric_add()

    return _finish(result)