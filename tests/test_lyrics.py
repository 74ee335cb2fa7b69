import pytest

from karlyrics.lyrics import (
    LyricType,
    Lyrics,
    LyricsFormatError,
    Syllable,
    Tag,
    format_time_tag,
    split_time_mark,
)


def build(entries):
    """entries: list of lines; a line is a list of (time, text), [] is a block break."""
    lyr = Lyrics()
    lyr.begin_lyrics()
    for line in entries:
        for timing, text in line:
            lyr.cur_lyric_set_time(timing)
            lyr.cur_lyric_append_text(text)
            lyr.cur_lyric_add()
        lyr.cur_lyric_add_end_of_line()
    lyr.end_lyrics()
    return lyr


@pytest.mark.parametrize("mark", [0, 999, 1000, 59999, 60000, 125678, 3599999])
def test_split_time_mark_round_trip(mark):
    minutes, seconds, msecs = split_time_mark(mark)
    assert minutes * 60000 + seconds * 1000 + msecs == mark
    assert 0 <= seconds < 60
    assert 0 <= msecs < 1000


def test_format_time_tag_zero():
    assert format_time_tag(0) == "00:00.00"


def test_format_time_tag_drops_last_digit():
    assert format_time_tag(61234) == "01:01.23"


def test_single_block_structure():
    lyr = build([[(1000, "Hello "), (2000, "world")], [(3000, "again")]])
    assert lyr.total_blocks() == 1
    block = lyr.block(0)
    assert [[s.text for s in line] for line in block] == [["Hello ", "world"], ["again"]]
    assert [s.timing for s in block[0]] == [1000, 2000]


def test_empty_line_splits_blocks():
    lyr = build([[(100, "a")], [], [(200, "b")]])
    assert lyr.total_blocks() == 2
    assert lyr.block(0)[0][0].text == "a"
    assert lyr.block(1)[0][0].text == "b"


def test_repeated_empty_lines_do_not_create_empty_blocks():
    lyr = build([[(100, "a")], [], [], [], [(200, "b")]])
    assert lyr.total_blocks() == 2
    assert all(lyr.block(i) for i in range(lyr.total_blocks()))


def test_text_accumulates_on_same_syllable():
    lyr = Lyrics()
    lyr.cur_lyric_set_time(500)
    lyr.cur_lyric_append_text("ab")
    lyr.cur_lyric_append_text("cd")
    lyr.cur_lyric_set_pitch(7)
    lyr.end_lyrics()
    assert lyr.block(0)[0][0] == Syllable(text="abcd", timing=500, pitch=7)


def test_end_of_line_keeps_empty_end_marker():
    lyr = Lyrics()
    lyr.cur_lyric_set_time(100)
    lyr.cur_lyric_append_text("la")
    lyr.cur_lyric_add()
    lyr.cur_lyric_set_time(900)
    lyr.cur_lyric_add_end_of_line()
    lyr.end_lyrics()
    line = lyr.block(0)[0]
    assert [s.text for s in line] == ["la", ""]
    assert line[-1].timing == 900


def test_clear_and_is_empty():
    lyr = build([[(1, "x")]])
    assert not lyr.is_empty()
    lyr.clear()
    assert lyr.is_empty()
    assert lyr.total_blocks() == 0


def test_block_out_of_range():
    lyr = build([[(1, "x")]])
    with pytest.raises(IndexError):
        lyr.block(5)


def test_iteration_matches_blocks():
    lyr = build([[(1, "x")], [], [(2, "y")]])
    assert list(lyr) == [lyr.block(0), lyr.block(1)]


def test_pitch_flags_survive_in_stored_syllable():
    lyr = Lyrics()
    lyr.cur_lyric_set_time(100)
    lyr.cur_lyric_append_text("la")
    lyr.cur_lyric_set_pitch(5 | Lyrics.PITCH_NOTE_GOLDEN)
    lyr.end_lyrics()
    pitch = lyr.block(0)[0][0].pitch
    assert pitch & Lyrics.PITCH_NOTE_GOLDEN
    assert not pitch & Lyrics.PITCH_NOTE_FREESTYLE
    assert pitch & ~Lyrics.PITCH_NOTE_GOLDEN == 5


def test_enums_start_at_one():
    assert LyricType.LRC1 == 1
    assert LyricType(3) is LyricType.USTAR
    assert Tag.TITLE == 1


def test_format_error_carries_message():
    err = LyricsFormatError("bad line")
    assert str(err) == "bad line"
    assert isinstance(err, ValueError)