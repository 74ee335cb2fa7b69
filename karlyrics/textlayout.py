"""Layout of lyrics into timed display blocks for karaoke rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from PIL import ImageColor

from .lyrics import Lyrics
from .project import APPLICATION_NAME

# Each preamble square stands for this many milliseconds.
PREAMBLE_SQUARE = 500
# Minimum silence before a verse for the preamble to appear.
PREAMBLE_MIN_PAUSE = 5000
# Point size change applied by the @< and @> sequences.
SMALL_FONT_DIFF = 4


class VerticalAlignment(IntEnum):
    """Where a block of lyrics is placed vertically."""

    BOTTOM = 0
    MIDDLE = 1
    TOP = 2


@dataclass
class LyricBlock:
    """One screen of lyrics with its timing and formatting changes."""

    timestart: int = 0
    timeend: int = 0
    # Text of the whole block with all control sequences stripped.
    text: str = ""
    # Time -> character offset in ``text`` sung from that time on.
    offsets: Dict[int, int] = field(default_factory=dict)
    # Character offset -> colour for the following unsung characters.
    colors: Dict[int, str] = field(default_factory=dict)
    # Character offset -> point size change for the following characters.
    fonts: Dict[int, int] = field(default_factory=dict)
    vertical_alignment: VerticalAlignment = VerticalAlignment.BOTTOM


def _color_name(color: str) -> str:
    red, green, blue = ImageColor.getrgb(color)[:3]
    return f"#{red:02x}{green:02x}{blue:02x}"


def _tdiv(value: int, divisor: int) -> int:
    quotient = abs(value) // abs(divisor)
    return -quotient if (value < 0) != (divisor < 0) else quotient


class TextLayout:
    """Compiles lyrics into display blocks and finds what to show at a time."""

    def __init__(
        self,
        default_alignment: VerticalAlignment = VerticalAlignment.BOTTOM,
        title_color: str = "white",
        to_sing_color: str = "green",
    ) -> None:
        self.current_alignment = VerticalAlignment(default_alignment)
        self.title_color = title_color
        self.to_sing_color = to_sing_color
        self.blocks: List[LyricBlock] = []
        self._reset()

    def _reset(self) -> None:
        self.blocks = []
        self.preamble_height = 0
        self.preamble_length_ms = 0
        self.preamble_count = 0
        self.preamble_time_left = 0
        self.last_sung_time = 0
        self.draw_preamble = False
        self.before_duration = 5000
        self.after_duration = 1000
        self.prefetch_duration = 0

    def set_lyrics(self, lyrics: Lyrics) -> None:
        """Compile ``lyrics`` into blocks; block 0 is kept for the title page."""
        self._reset()
        self.blocks.append(LyricBlock())

        all_blocks = list(lyrics)
        for bl, block in enumerate(all_blocks):
            if not block:
                continue

            in_title = False
            had_text = False
            info = LyricBlock(
                timestart=block[0][0].timing,
                timeend=block[-1][-1].timing,
            )

            for ln, line in enumerate(block):
                if not line:
                    info.text += "\n"
                    continue

                end_line_time = line[-1].timing

                # An empty final syllable marks the line end; otherwise estimate it.
                if line[-1].text:
                    if ln + 1 < len(block):
                        calculated = block[ln][0].timing
                    elif bl + 1 < len(all_blocks):
                        calculated = all_blocks[bl + 1][0][0].timing
                    else:
                        calculated = end_line_time + 2000
                    end_line_time = min(calculated, end_line_time + 2000)

                for pos, syllable in enumerate(line):
                    if not syllable.text.strip() and not had_text:
                        continue
                    if not syllable.text:
                        continue

                    start = syllable.timing
                    end = end_line_time if pos + 1 == len(line) else line[pos + 1].timing

                    if not had_text:
                        had_text = True
                        info.timestart = start

                    in_title = self.compile_line(syllable.text, start, end, info, in_title)

                info.text += "\n"
                info.offsets[end_line_time] = len(info.text) - 1

            info.text = info.text.strip()
            if info.text:
                self.blocks.append(info)

    def compile_line(
        self,
        line: str,
        start: int,
        end: int,
        block: LyricBlock,
        in_title: bool,
    ) -> bool:
        """Append ``line`` to ``block``, handling control sequences.

        Returns the title mode in effect after the line.
        """
        drawn: List[str] = []
        timed: List[int] = []
        block_start = len(block.text)
        length = len(line)
        ch = 0

        while ch < length:
            char = line[ch]

            if char == "@":
                nxt = line[ch + 1] if ch + 1 < length else ""
                here = block_start + len(drawn)

                if nxt == "$":
                    in_title = not in_title
                    ch += 2
                    continue
                if nxt == "#" and ch + 7 < length:
                    block.colors[here] = line[ch + 1 : ch + 8]
                    ch += 8
                    continue
                if nxt == "<":
                    block.fonts[here] = -SMALL_FONT_DIFF
                    ch += 2
                    continue
                if nxt == ">":
                    block.fonts[here] = SMALL_FONT_DIFF
                    ch += 2
                    continue
                if nxt == "%" and ch + 2 < length:
                    code = line[ch + 2]
                    if code == "T":
                        self.current_alignment = VerticalAlignment.TOP
                    elif code in ("M", "B"):
                        self.current_alignment = VerticalAlignment.MIDDLE
                    ch += 3
                    continue

            # Title text never changes colour; neither do non-letters.
            if not in_title and char.isalnum():
                timed.append(len(drawn))

            drawn.append(char)
            ch += 1

        if timed:
            step = max(1, _tdiv(end - start, len(timed)))
            for index, offset in enumerate(timed):
                block.offsets[start + index * step] = block_start + offset

        block.text += "".join(drawn)
        block.vertical_alignment = self.current_alignment
        return in_title

    def set_title_page_data(
        self,
        artist: str,
        title: str,
        created_by: str,
        msec: int,
        registered: bool = False,
    ) -> bool:
        """Fill the title block; returns False when there is no room for it.

        Must be called after ``set_lyrics``.
        """
        if len(self.blocks) < 2:
            raise ValueError("lyrics must be set before the title page data")

        credits = f"@<@{_color_name(self.to_sing_color)}Created by {APPLICATION_NAME}\n"
        if registered and created_by:
            credits = created_by
        credits = credits.replace("<br>", "\n")

        title_text = f"@{_color_name(self.title_color)}{artist}\n\n{title}\n\n{credits}"

        first = self.blocks[1]
        if first.timestart < 500 and first.offsets:
            return False

        title_block = self.blocks[0]
        title_block.timestart = 0
        title_block.timeend = min(int(msec), first.timestart)
        self.compile_line(title_text, title_block.timestart, title_block.timeend, title_block, True)
        return True

    def _next_block(self, tickmark: int) -> Optional[int]:
        for index, block in enumerate(self.blocks):
            if tickmark < block.timestart:
                return index
        return None

    def lyric_for_time(self, tickmark: int) -> Tuple[int, int]:
        """Return (block index, sung character offset) to show at ``tickmark``.

        The block index is -1 when nothing is to be shown; the offset is -1
        when the block is shown ahead of being sung.
        """
        next_block = self._next_block(tickmark)

        # A block within the prefetch window wins even over the one being sung.
        if (
            self.prefetch_duration > 0
            and next_block is not None
            and self.blocks[next_block].timestart - tickmark <= self.prefetch_duration
        ):
            self.preamble_time_left = max(0, self.blocks[next_block].timestart - tickmark)
            return next_block, -1

        current = -1
        pos = -1
        for index, block in enumerate(self.blocks):
            if tickmark < block.timestart or tickmark > block.timeend:
                continue
            current = index
            if tickmark in block.offsets:
                pos = block.offsets[tickmark]
            else:
                later = [key for key in block.offsets if key >= tickmark]
                if later:
                    pos = block.offsets[min(later)]
            break

        if current == -1:
            if (
                next_block is not None
                and self.blocks[next_block].timestart - tickmark <= self.before_duration
            ):
                upcoming = self.blocks[next_block]
                self.preamble_time_left = max(0, upcoming.timestart - tickmark)
                if (
                    tickmark - self.last_sung_time > PREAMBLE_MIN_PAUSE
                    and upcoming.offsets
                    and self.preamble_height > 0
                ):
                    self.draw_preamble = True
                return next_block, -1

            self.draw_preamble = False
            return -1, 0

        self.draw_preamble = False
        if pos >= 0:
            self.last_sung_time = tickmark
        return current, pos