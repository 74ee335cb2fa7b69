# karlyrics

A library for timed karaoke lyrics. It keeps a project of song tags and
lyrics, reads several lyric text formats, writes LRC and UltraStar, and draws
the lyrics being sung into Pillow images.

## Installation

```
pip install karlyrics
```

Pillow is the only dependency.

## Modules

- `karlyrics.lyrics`: the data model. `Lyrics` holds blocks of lines of
  `Syllable` objects (`text`, `timing` in milliseconds, `pitch`). It is built
  with `begin_lyrics()`, `cur_lyric_set_time()`, `cur_lyric_set_pitch()`,
  `cur_lyric_append_text()`, `cur_lyric_add()`, `cur_lyric_add_end_of_line()`
  and `end_lyrics()`. An end of line on an empty line closes a block. Also
  `LyricType` (`LRC1`, `LRC2`, `USTAR`), `Tag`, `LyricsFormatError`,
  `split_time_mark()` and `format_time_tag()` (`mm:ss.xx`).
- `karlyrics.importers`: parsers that return an `ImportResult` with
  `lyrics`, `tags`, `lrc2` (set when inline time tags were seen) and
  `ignored_tags`.
  - `parse_lrc(lines, relaxed=False)`: LRC. Unless `relaxed` is true, the
    first line must be a header tag.
  - `parse_txt(lines)`: chooses the UltraStar, PowerKaraoke or
    KaraokeBuilder parser from the content.
  - `parse_ultrastar(lines)`: BPM and GAP are required.
  - `parse_power_karaoke(lines)`, `parse_kok(lines)` and
    `parse_karaoke_builder(lines)`.
  - `power_karaoke_time(text)`: converts `[minutes:]seconds` to milliseconds.

  Malformed input raises `LyricsFormatError`.
- `karlyrics.project`: `Project` holds the tags, the music file, the
  `lyric_type` and the `lyrics`.
  - `set_tag()` and `tag()` read and write tags.
  - `save()` and `load()` write and read a binary project file.
  - `import_lyrics(filename)` chooses the parser by file extension:
    `.txt`, `.kok`, or LRC for anything else.
  - `convert_lyrics(content)` reads LRC text with a relaxed header.
  - `export_lyrics()` exports in the project's own format.
    `export_lrc1()`, `export_lrc2()` and `export_ultrastar()` choose a
    format explicitly. UltraStar export uses 300 BPM and requires every line
    to end with an empty syllable.
  - `lrc_header()` and `ultrastar_header()` return the header lines.
- `karlyrics.textlayout`: `TextLayout` compiles lyrics into display
  `LyricBlock`s. Block 0 is the title page. `compile_line()` understands
  these control sequences in the text:
  - `@$` toggles title mode.
  - `@#rrggbb` changes the colour.
  - `@<` and `@>` change the font size.
  - `@%T`, `@%M` and `@%B` set the vertical alignment.

  `lyric_for_time(t)` returns the block and the sung character offset to show
  at time `t`. `set_title_page_data()` fills the title page.
- `karlyrics.renderer`: `TextRenderer` draws frames into `renderer.image`, a
  Pillow RGBA image.
  - `update(timing)` returns an `UpdateResult` (`NOCHANGE`, `COLORCHANGE`,
    `FULL` or `RESIZED`).
  - Fonts are set with `set_render_font()` and colours with `set_colors()`.
  - The preamble squares are set with `set_preamble_data()`.
  - `set_durations()` and `set_prefetch()` control how early blocks appear.
  - `bounding_rect()`, `verify_font_size()` and `autodetect_font_size()`
    measure the text.
- `karlyrics.settings`: `Settings` holds the editor, timing-mark and preview
  preferences. They are read with `Settings.load(path)` and written with
  `save(path)` as a JSON file of `section/key` entries.
- `karlyrics.recentfiles`: `RecentFiles` keeps a most-recently-used list
  under one key of any mapping. It offers `set_current_file()`,
  `remove_recent_file()`, `latest_file()`, `files()` and `menu_entries()`.
- `karlyrics.util`: `remove_file_extension()` and `decode_text()`. ASCII data
  needs no encoding; other data does.

## Usage

Import lyrics into a project and export them in another format:

```python
from karlyrics.project import Project
from karlyrics.lyrics import LyricType, Tag

project = Project()
project.import_lyrics("song.lrc")
project.set_tag(Tag.TITLE, "My Song")
project.set_tag(Tag.ARTIST, "Some Artist")

project.lyric_type = LyricType.LRC2
print(project.export_lyrics().decode("utf-8"))

project.save("song.project")
```

Files that are not pure ASCII are decoded with `project.text_encoding`, which
defaults to `"utf-8"`.

Parse lyrics text directly, without a project:

```python
from karlyrics.importers import parse_lrc

result = parse_lrc([
    "[ti: My Song]",
    "[ar: Some Artist]",
    "[00:01.00]Hello <00:01.50>world",
])
print(result.tags, result.lrc2, result.lyrics.total_blocks())
```

Render a frame for a given moment of the song:

```python
from karlyrics.renderer import TextRenderer

renderer = TextRenderer(640, 480)
renderer.set_lyrics(result.lyrics)
renderer.update(1200)
renderer.image.save("frame.png")
```

Keep a list of recently opened projects:

```python
from karlyrics.recentfiles import RecentFiles

recent = RecentFiles({}, 5, "recentFileList")
recent.set_current_file("/music/song.project")
print(recent.latest_file())
```

## What it does not do

- It is a library only. It has no command, no editor window and no settings
  dialog.
- It does not play audio.
- It does not encode video or CD+G. The renderer produces individual images,
  and writing them into a video is left to the caller.
- `import_lyrics` does not read lyrics from MIDI/KAR or KaraFun (`.kfn`)
  files. It raises `LyricsFormatError` for them.
- Registration keys are not validated. `Settings.is_registered()` only
  compares `registered_until` with the current time.