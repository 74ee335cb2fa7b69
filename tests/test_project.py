import pytest

from karlyrics.lyrics import Lyrics, LyricsFormatError, LyricType, Tag
from karlyrics.project import Project


def _plain_project():
    project = Project()
    for tag in (Tag.OFFSET, Tag.APPLICATION, Tag.APPVERSION):
        project.set_tag(tag, "")
    project.modified = False
    return project


def _flatten(lyrics):
    return [
        [[(s.text, s.timing, s.pitch) for s in line] for line in block]
        for block in lyrics
    ]


def test_defaults_after_construction():
    project = Project(sound_delay=100)
    assert project.tag(Tag.OFFSET) == "100"
    assert project.tag(Tag.CDG_ACTIVECOLOR) == "#c000c0"
    assert project.tag(Tag.CDG_INACTIVECOLOR) == "#00c0c0"
    assert project.tag(Tag.CDG_FONT) == "Droid Sans"
    assert project.modified is False


def test_tag_default_when_missing():
    project = Project()
    assert project.tag(Tag.GENRE, "none") == "none"


def test_set_tag_marks_modified_only_on_change():
    project = Project()
    project.set_tag(Tag.TITLE, "Song")
    assert project.modified is True
    project.modified = False
    project.set_tag(Tag.TITLE, "Song")
    assert project.modified is False
    assert project.tag(Tag.TITLE) == "Song"


def test_lrc_header_skips_empty_tags():
    project = _plain_project()
    project.set_tag(Tag.TITLE, "Song")
    project.set_tag(Tag.ARTIST, "Band")
    assert project.lrc_header() == "[ti: Song]\n[ar: Band]\n"


def test_ultrastar_header():
    project = _plain_project()
    project.set_tag(Tag.TITLE, "Song")
    project.set_tag(Tag.GENRE, "Pop")
    assert project.ultrastar_header() == "#TITLE:Song\n#GENRE:Pop\n"


def test_convert_and_export_lrc2_round_trip():
    project = _plain_project()
    source = "[ti: X]\n[00:01.50]Hello <00:02.00>world\n"
    project.convert_lyrics(source)
    assert project.tag(Tag.TITLE) == "X"
    assert project.export_lrc2().decode("utf-8") == source


def test_export_lrc1_keeps_only_line_tag():
    project = _plain_project()
    project.convert_lyrics("[00:01.50]Hello <00:02.00>world\n")
    assert project.export_lrc1() == b"[00:01.50]Hello world\n"


def test_export_lyrics_uses_project_type():
    project = _plain_project()
    project.convert_lyrics("[00:01.50]Hello <00:02.00>world\n")
    project.lyric_type = LyricType.LRC2
    assert project.export_lyrics() == project.export_lrc2()


def test_export_lyrics_without_type_is_unsupported():
    project = Project()
    assert project.lyric_type is None
    assert project.export_lyrics() == b"UNSUPORTED"


def test_export_ultrastar():
    project = _plain_project()
    project.music_file = "song.mp3"
    project.convert_lyrics("[00:01.00]La <00:01.40>la<00:02.00>\n")
    text = project.export_ultrastar().decode("utf-8")
    assert text.startswith("#MP3:song.mp3\n#BPM:300\n#GAP:1000\n")
    assert text.endswith("- 5 25\nE\n")
    assert text.count("\n") == 7


def test_export_ultrastar_requires_end_mark():
    project = _plain_project()
    project.convert_lyrics("[00:01.00]La <00:01.40>la\n")
    with pytest.raises(LyricsFormatError):
        project.export_ultrastar()


def test_export_ultrastar_empty_raises():
    with pytest.raises(LyricsFormatError):
        Project().export_ultrastar()


def test_save_load_round_trip(tmp_path):
    project = _plain_project()
    project.set_tag(Tag.TITLE, "Song")
    project.music_file = "song.mp3"
    project.lyric_type = LyricType.LRC1
    project.convert_lyrics("[00:01.50]Hello <00:02.00>world\n\n[00:05.00]Again\n")
    path = tmp_path / "song.kle"
    project.save(path)
    assert project.modified is False

    loaded = Project()
    loaded.load(path)
    assert loaded.tag(Tag.TITLE) == "Song"
    assert loaded.music_file == "song.mp3"
    assert loaded.lyric_type == LyricType.LRC1
    assert loaded.modified is False
    assert _flatten(loaded.lyrics) == _flatten(project.lyrics)
    assert loaded.export_lrc2() == project.export_lrc2()


def test_load_without_type_defaults_to_lrc2(tmp_path):
    path = tmp_path / "p.kle"
    Project().save(path)
    loaded = Project()
    loaded.load(path)
    assert loaded.lyric_type == LyricType.LRC2
    assert loaded.modified is True


def test_load_rejects_bad_signature(tmp_path):
    path = tmp_path / "bad.kle"
    path.write_bytes(b"\x00\x00\x00\x00")
    with pytest.raises(LyricsFormatError):
        Project().load(path)


def test_load_truncated_file(tmp_path):
    path = tmp_path / "short.kle"
    path.write_bytes(b"\x00\x00")
    with pytest.raises(LyricsFormatError):
        Project().load(path)


def test_import_lrc_file(tmp_path):
    path = tmp_path / "song.lrc"
    path.write_bytes(b"[ar: Band]\r\n[00:01.00]One <00:02.00>two\r\n")
    project = Project()
    project.import_lyrics(path)
    assert project.tag(Tag.ARTIST) == "Band"
    line = project.lyrics.block(0)[0]
    assert [s.text for s in line] == ["One ", "two"]
    assert [s.timing for s in line] == [1000, 2000]


def test_import_lrc_without_header_fails(tmp_path):
    path = tmp_path / "song.lrc"
    path.write_bytes(b"[00:01.00]One\n")
    with pytest.raises(LyricsFormatError):
        Project().import_lyrics(path)


def test_import_kok_file(tmp_path):
    path = tmp_path / "song.kok"
    path.write_bytes(b"Hel;1,5;lo;2\n")
    project = Project()
    project.import_lyrics(path)
    line = project.lyrics.block(0)[0]
    assert [s.text for s in line] == ["Hel", "lo"]
    assert [s.timing for s in line] == [1500, 2000]


def test_import_ultrastar_sets_tags(tmp_path):
    path = tmp_path / "song.txt"
    path.write_bytes(b"#TITLE:Song\n#BPM:300\n#GAP:0\n: 0 2 5 La\n- 4\nE\n")
    project = Project()
    project.import_lyrics(path)
    assert project.tag(Tag.TITLE) == "Song"
    assert project.lyrics.block(0)[0][0].text == "La"


def test_import_midi_is_unsupported(tmp_path):
    path = tmp_path / "song.kar"
    path.write_bytes(b"MThd")
    with pytest.raises(LyricsFormatError):
        Project().import_lyrics(path)


def test_clear_resets_lyrics_and_tags():
    project = Project()
    project.set_tag(Tag.TITLE, "Song")
    project.convert_lyrics("[00:01.00]One\n")
    project.clear()
    assert project.tag(Tag.TITLE, "missing") == "missing"
    assert isinstance(project.lyrics, Lyrics) and project.lyrics.is_empty()
    assert project.song_length == 0