import pytest

from karlyrics.lyrics import Lyrics
from karlyrics.project import APPLICATION_NAME
from karlyrics.textlayout import (
    SMALL_FONT_DIFF,
    LyricBlock,
    TextLayout,
    VerticalAlignment,
)


def build(lines):
    lyrics = Lyrics()
    lyrics.begin_lyrics()
    for line in lines:
        for text, timing in line:
            lyrics.cur_lyric_set_time(timing)
            lyrics.cur_lyric_append_text(text)
            lyrics.cur_lyric_add()
        lyrics.cur_lyric_add_end_of_line()
    lyrics.end_lyrics()
    return lyrics


def simple_layout(start=1000):
    layout = TextLayout()
    layout.set_lyrics(
        build([[("Hello ", start), ("world", start + 1000), ("", start + 2000)]])
    )
    return layout


def test_compile_line_timed_characters():
    layout = TextLayout()
    block = LyricBlock()
    result = layout.compile_line("ab c", 0, 300, block, False)
    assert result is False
    assert block.text == "ab c"
    assert sorted(block.offsets.values()) == [0, 1, 3]
    assert min(block.offsets) == 0
    assert len(block.offsets) == 3


def test_compile_line_title_toggle():
    layout = TextLayout()
    block = LyricBlock()
    assert layout.compile_line("@$Hi", 0, 100, block, False) is True
    assert block.text == "Hi"
    assert block.offsets == {}
    assert layout.compile_line("@$x", 0, 100, block, True) is False


def test_compile_line_color_change():
    layout = TextLayout()
    block = LyricBlock()
    layout.compile_line("@#00C0C0ab", 0, 100, block, False)
    assert block.text == "ab"
    assert block.colors == {0: "#00C0C0"}


def test_compile_line_font_changes():
    layout = TextLayout()
    block = LyricBlock()
    layout.compile_line("a@<b@>c", 0, 100, block, False)
    assert block.text == "abc"
    assert block.fonts == {1: -SMALL_FONT_DIFF, 2: SMALL_FONT_DIFF}


def test_compile_line_alignment():
    layout = TextLayout()
    block = LyricBlock()
    layout.compile_line("@%Tx", 0, 100, block, False)
    assert block.text == "x"
    assert layout.current_alignment == VerticalAlignment.TOP
    assert block.vertical_alignment == VerticalAlignment.TOP
    layout.compile_line("@%My", 0, 100, block, False)
    assert block.vertical_alignment == VerticalAlignment.MIDDLE


def test_compile_line_step_is_at_least_one():
    layout = TextLayout()
    block = LyricBlock()
    layout.compile_line("abc", 0, 0, block, False)
    assert len(block.offsets) == 3


def test_compile_line_offsets_relative_to_existing_text():
    layout = TextLayout()
    block = LyricBlock(text="xy")
    layout.compile_line("a", 10, 20, block, False)
    assert block.text == "xya"
    assert block.offsets == {10: 2}


def test_set_lyrics_builds_blocks():
    layout = simple_layout()
    assert len(layout.blocks) == 2
    assert layout.blocks[0].text == ""
    block = layout.blocks[1]
    assert block.text == "Hello world"
    assert block.timestart == 1000
    assert block.timeend == 3000
    assert block.offsets[3000] == len("Hello world")
    assert block.offsets[1000] == 0


def test_set_lyrics_skips_blank_blocks():
    layout = TextLayout()
    layout.set_lyrics(build([[("   ", 100), ("", 200)]]))
    assert len(layout.blocks) == 1


def test_lyric_for_time_singing():
    layout = simple_layout()
    block_id, pos = layout.lyric_for_time(1500)
    assert block_id == 1
    assert 0 <= pos <= len(layout.blocks[1].text)
    assert layout.last_sung_time == 1500


def test_lyric_for_time_before_block():
    layout = simple_layout()
    assert layout.lyric_for_time(500) == (1, -1)
    assert layout.preamble_time_left == 500


def test_lyric_for_time_nothing_to_show():
    layout = simple_layout()
    block_id, _ = layout.lyric_for_time(100000)
    assert block_id == -1
    assert layout.draw_preamble is False


def test_lyric_for_time_prefetch():
    layout = simple_layout(start=20000)
    assert layout.lyric_for_time(1)[0] == -1
    layout.prefetch_duration = 25000
    assert layout.lyric_for_time(1) == (1, -1)


def test_preamble_requested_after_silence():
    layout = simple_layout(start=8000)
    layout.preamble_height = 4
    assert layout.lyric_for_time(6000) == (1, -1)
    assert layout.draw_preamble is True


def test_title_requires_lyrics():
    layout = TextLayout()
    with pytest.raises(ValueError):
        layout.set_title_page_data("Artist", "Song", "", 5000)


def test_title_page_data_fills_block_zero():
    layout = simple_layout(start=3000)
    assert layout.set_title_page_data("Artist", "Song", "", 5000) is True
    title = layout.blocks[0]
    assert title.timeend == 3000
    assert title.text.startswith("Artist\n\nSong\n\n")
    assert APPLICATION_NAME in title.text
    assert title.offsets == {}


def test_title_page_custom_credits_when_registered():
    layout = simple_layout(start=3000)
    layout.set_title_page_data("Artist", "Song", "By me<br>Two", 5000, registered=True)
    assert layout.blocks[0].text.endswith("By me\nTwo")


def test_title_page_skipped_without_room():
    layout = simple_layout(start=100)
    assert layout.set_title_page_data("Artist", "Song", "", 5000) is False
    assert layout.blocks[0].text == ""