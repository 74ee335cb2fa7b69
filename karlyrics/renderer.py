"""Rasterises compiled lyric blocks into karaoke frames."""

from __future__ import annotations

from enum import IntEnum
from functools import lru_cache
from typing import Optional, Tuple, Union

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .lyrics import Lyrics
from .settings import Settings
from .textlayout import PREAMBLE_SQUARE, TextLayout, VerticalAlignment

FontType = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]
RGBA = Tuple[int, int, int, int]

# Largest font size tried when looking for the biggest one that fits.
_MAX_FONT_SIZE = 1024
# Offset of the black outline drawn around every character.
_OUTLINE = 1


class UpdateResult(IntEnum):
    """What changed in the image after an update."""

    NOCHANGE = 0
    COLORCHANGE = 1
    FULL = 2
    RESIZED = 3


@lru_cache(maxsize=256)
def _load_font(family: str, size: int) -> FontType:
    size = max(1, size)
    for name in (family, f"{family}.ttf", "DejaVuSans.ttf"):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    try:
        return ImageFont.load_default(size)
    except TypeError:
        return ImageFont.load_default()


def _font_height(font: FontType) -> int:
    if hasattr(font, "getmetrics"):
        ascent, descent = font.getmetrics()
        return int(ascent + descent)
    return int(font.getbbox("Ag")[3])


def _advance(font: FontType, char: str) -> int:
    return int(round(font.getlength(char)))


def _rgba(color: str) -> RGBA:
    rgb = ImageColor.getrgb(color)
    return (rgb[0], rgb[1], rgb[2], rgb[3] if len(rgb) > 3 else 255)


class TextRenderer:
    """Draws the lyrics to show at a given time into a Pillow image."""

    def __init__(self, width: int, height: int, settings: Optional[Settings] = None) -> None:
        self._settings = settings if settings is not None else Settings()
        self.layout = TextLayout()
        self.image = Image.new("RGBA", (width, height))
        self._init()

    def _init(self) -> None:
        self._force_redraw = True
        self._color_background = self._settings.preview_background
        self._color_title = "white"
        self._color_to_sing = self._settings.preview_text_active
        self._color_sang = self._settings.preview_text_inactive
        self._font_family = self._settings.preview_font_family
        self._font_size = self._settings.preview_font_size
        self._last_drawn_preamble = 0
        self._last_block_played = -2
        self._last_position = -2
        self._sync_layout_colors()

    def _sync_layout_colors(self) -> None:
        self.layout.title_color = self._color_title
        self.layout.to_sing_color = self._color_to_sing

    # Configuration

    def set_lyrics(self, lyrics: Lyrics) -> None:
        """Compile ``lyrics``; resets font, colours, preamble and durations."""
        self._init()
        self.layout.set_lyrics(lyrics)

    def set_render_font(self, family: str, size: int) -> None:
        self._font_family = family
        self._font_size = int(size)
        self._force_redraw = True

    def set_colors(
        self,
        background: Optional[str] = None,
        title: Optional[str] = None,
        to_sing: Optional[str] = None,
        sang: Optional[str] = None,
    ) -> None:
        """Change any of the colours; ``None`` keeps the current one."""
        if background is not None:
            self._color_background = background
        if title is not None:
            self._color_title = title
        if to_sing is not None:
            self._color_to_sing = to_sing
        if sang is not None:
            self._color_sang = sang
        self._sync_layout_colors()
        self._force_redraw = True

    def set_preamble_data(self, height: int, timems: int, count: int) -> None:
        self.layout.preamble_height = int(height)
        self.layout.preamble_length_ms = int(timems)
        self.layout.preamble_count = int(count)
        self._force_redraw = True

    def set_durations(self, before: int, after: int) -> None:
        self.layout.before_duration = int(before)
        self.layout.after_duration = int(after)
        self._force_redraw = True

    def set_prefetch(self, prefetch: int) -> None:
        self.layout.prefetch_duration = int(prefetch)
        self._force_redraw = True

    # Measuring

    def bounding_rect(self, block_id: int, size: Optional[int] = None) -> Tuple[int, int]:
        """Return (width, height) of a block drawn at font ``size``."""
        block = self.layout.blocks[block_id]
        text = block.text
        cur_size = self._font_size if size is None else int(size)
        font = _load_font(self._font_family, cur_size)

        line_width = line_height = total_height = total_width = 0
        cur = 0
        while True:
            if cur >= len(text) or text[cur] == "\n":
                total_height += line_height
                total_width = max(total_width, line_width)
                if cur >= len(text):
                    break
                cur += 1
                line_width = 0
                continue

            change = block.fonts.get(cur)
            if change is not None:
                cur_size += change
                font = _load_font(self._font_family, cur_size)

            line_width += _advance(font, text[cur])
            line_height = max(line_height, _font_height(font))
            cur += 1

        return total_width, total_height

    def verify_font_size(self, width: int, height: int, size: int) -> bool:
        """True if every block fits into ``width`` x ``height`` at ``size``."""
        for index in range(len(self.layout.blocks)):
            rect_width, rect_height = self.bounding_rect(index, size)
            if rect_width >= width or rect_height >= height:
                return False
        return True

    def autodetect_font_size(self, width: int, height: int) -> int:
        """Largest font size, starting from 8, at which all blocks fit."""
        size = 8
        while size <= _MAX_FONT_SIZE:
            if not self.verify_font_size(width, height, size):
                return size - 1
            size += 1
        return _MAX_FONT_SIZE

    # Drawing

    def _draw_char(
        self, draw: ImageDraw.ImageDraw, x: int, y: int, char: str, font: FontType, fill: RGBA
    ) -> None:
        if isinstance(font, ImageFont.FreeTypeFont):
            draw.text((x, y), char, fill=fill, font=font, anchor="ls")
        else:
            draw.text((x, y - _font_height(font)), char, fill=fill, font=font)

    def _draw_background(self) -> None:
        self.image.paste(_rgba(self._color_background), (0, 0) + self.image.size)

    def _draw_lyrics(self, block_id: int, pos: int, rect_height: int) -> None:
        block = self.layout.blocks[block_id]
        text = block.text
        img_width, img_height = self.image.size
        draw = ImageDraw.Draw(self.image)
        black = (0, 0, 0, 255)

        paint_size = self._font_size
        paint_font = _load_font(self._font_family, paint_size)
        measure_size = self._font_size
        measure_font = paint_font
        fallback = _rgba(self._color_to_sing)
        pen = fallback if pos == -1 else _rgba(self._color_sang)

        if block_id == 0 or block.vertical_alignment == VerticalAlignment.MIDDLE:
            start_y = (img_height - rect_height) // 2 + _font_height(paint_font)
        elif block.vertical_alignment == VerticalAlignment.TOP:
            start_y = _font_height(paint_font) + img_width // 50
        else:
            start_y = img_height - rect_height

        line_start = line_width = cur = 0
        while True:
            if cur >= len(text) or text[cur] == "\n":
                start_x = (img_width - line_width) // 2
                for index in range(line_start, cur):
                    change = block.fonts.get(index)
                    if change is not None:
                        paint_size += change
                        paint_font = _load_font(self._font_family, paint_size)

                    color = block.colors.get(index)
                    if color is not None:
                        fallback = _rgba(color)
                        if index > pos:
                            pen = fallback

                    if pos != -1 and index >= pos:
                        pen = fallback

                    char = text[index]
                    for dx, dy in ((-_OUTLINE, -_OUTLINE), (_OUTLINE, -_OUTLINE),
                                   (-_OUTLINE, _OUTLINE), (_OUTLINE, _OUTLINE)):
                        self._draw_char(draw, start_x + dx, start_y + dy, char, paint_font, black)
                    self._draw_char(draw, start_x, start_y, char, paint_font, pen)
                    start_x += _advance(paint_font, char)

                if cur >= len(text):
                    break

                start_y += _font_height(paint_font)
                cur += 1
                line_width = 0
                line_start = cur
                continue

            change = block.fonts.get(cur)
            if change is not None:
                measure_size += change
                measure_font = _load_font(self._font_family, measure_size)

            line_width += _advance(measure_font, text[cur])
            cur += 1

    def _draw_preamble(self) -> None:
        layout = self.layout
        if layout.preamble_time_left <= PREAMBLE_SQUARE + 50 or layout.preamble_count <= 0:
            return

        cutoff = layout.preamble_time_left - PREAMBLE_SQUARE - 50
        img_width = self.image.size[0]
        spacing = img_width // 100
        count = layout.preamble_count
        square_width = (img_width - spacing * count) // count

        draw = ImageDraw.Draw(self.image)
        fill = _rgba(self._color_title)
        for index in range(count):
            if index * PREAMBLE_SQUARE > cutoff:
                continue
            x = spacing + index * (spacing + square_width)
            draw.rectangle(
                (x, spacing, x + square_width, spacing + layout.preamble_height),
                fill=fill,
                outline=(0, 0, 0, 255),
            )

        self._last_drawn_preamble = layout.preamble_time_left

    def update(self, timing: int) -> UpdateResult:
        """Redraw the image for ``timing`` if anything changed."""
        layout = self.layout
        result = UpdateResult.COLORCHANGE
        block_id, sung_pos = layout.lyric_for_time(timing)

        if timing < layout.last_sung_time:
            self._force_redraw = True

        redraw_preamble = (
            layout.draw_preamble
            and abs(self._last_drawn_preamble - layout.preamble_time_left) > 450
        )

        if not self._force_redraw and not redraw_preamble:
            if block_id == self._last_block_played and sung_pos == self._last_position:
                return UpdateResult.NOCHANGE
            # Keep what was just sung on screen for a while after it ends.
            if block_id == -1 and timing - layout.last_sung_time < 5000:
                return UpdateResult.NOCHANGE

        self._draw_background()

        if block_id != -1:
            rect_width, rect_height = self.bounding_rect(block_id)
            img_width, img_height = self.image.size
            if rect_width > img_width or rect_height > img_height:
                new_size = (max(rect_width + 10, img_width), max(rect_height + 10, img_height))
                self.image = Image.new("RGBA", new_size)
                result = UpdateResult.RESIZED
                self._draw_background()

            self._draw_lyrics(block_id, sung_pos, rect_height)

            if layout.draw_preamble:
                self._draw_preamble()

        if block_id != self._last_block_played or self._force_redraw:
            if result != UpdateResult.RESIZED:
                result = UpdateResult.FULL

        self._last_block_played = block_id
        self._last_position = sung_pos
        self._force_redraw = False
        return result