"""Application settings persisted as a JSON file of ``section/key`` entries."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

PathLike = Union[str, "os.PathLike[str]"]


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false")
    return bool(value)


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


# Stored key, attribute name, converter applied on load.
_KEYS: List[Tuple[str, str, Callable[[Any], Any]]] = [
    ("main/lastseddir", "last_used_directory", str),
    ("advanced/phononsounddelay", "sound_delay", _to_int),
    ("advanced/checkforupdates", "check_for_updates", _to_bool),
    ("editor/stopatlineend", "editor_stop_at_line_end", _to_bool),
    ("editor/stopatnextword", "editor_stop_next_word", _to_bool),
    ("editor/charsinword", "editor_word_chars", _to_int),
    ("editor/skipemptylines", "editor_skip_empty_lines", _to_bool),
    ("editor/supportblocks", "editor_support_blocks", _to_bool),
    ("editor/maxlinesinblock", "editor_max_block", _to_int),
    ("editor/fontfamily", "editor_font_family", str),
    ("editor/fontsize", "editor_font_size", _to_int),
    ("editor/doubletimemark", "editor_double_time_mark", _to_bool),
    ("editor/autoupdatetestwindow", "editor_auto_update_test_windows", _to_bool),
    ("editor/autoupdateplayerbackseek", "editor_auto_update_player_backseek", _to_int),
    ("timemark/fontfamily", "time_mark_font_family", str),
    ("timemark/fontsize", "time_mark_font_size", _to_int),
    ("timemark/placeholderbgcolor", "time_mark_placeholder_background", str),
    ("timemark/timebgcolor", "time_mark_time_background", str),
    ("timemark/placeholdertextgcolor", "time_mark_placeholder_text", str),
    ("timemark/timetextcolor", "time_mark_time_text", str),
    ("timemark/pitchbgcolor", "time_mark_pitch_background", str),
    ("timemark/showpitch", "time_mark_show_pitch", _to_bool),
    ("preview/fontfamily", "preview_font_family", str),
    ("preview/fontsize", "preview_font_size", _to_int),
    ("preview/bgcolor", "preview_background", str),
    ("preview/inactivecolor", "preview_text_inactive", str),
    ("preview/activecolor", "preview_text_active", str),
]

_LAST_DIR_KEY = "main/lastseddir"


def _read_store(path: PathLike) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"settings file {os.fspath(path)} does not hold an object")
    return data


def _write_store(path: PathLike, data: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2, sort_keys=True)


@dataclass
class Settings:
    """Editor, timing-mark and preview preferences plus registration state."""

    last_used_directory: str = "."

    # Delay between a note being sung and the player reporting it.
    sound_delay: int = 250
    check_for_updates: bool = True

    editor_stop_at_line_end: bool = True
    editor_stop_next_word: bool = False
    editor_word_chars: int = 2
    editor_skip_empty_lines: bool = True
    editor_support_blocks: bool = True
    editor_max_block: int = 8
    editor_font_family: str = "arial"
    editor_font_size: int = 14
    editor_double_time_mark: bool = True
    editor_auto_update_test_windows: bool = False
    editor_auto_update_player_backseek: int = 0

    time_mark_font_family: str = "arial"
    time_mark_font_size: int = 10
    time_mark_placeholder_background: str = "grey"
    time_mark_time_background: str = "yellow"
    time_mark_placeholder_text: str = "black"
    time_mark_time_text: str = "black"
    time_mark_pitch_background: str = "green"
    time_mark_show_pitch: bool = True

    preview_font_family: str = "arial"
    preview_font_size: int = 24
    preview_background: str = "black"
    preview_text_inactive: str = "white"
    preview_text_active: str = "green"

    registered_name: str = ""
    registered_digest: str = ""
    registered_until: Optional[datetime] = field(default=None)

    @classmethod
    def load(cls, path: PathLike) -> "Settings":
        """Read settings from ``path``; missing file or keys give defaults."""
        data = _read_store(path)
        settings = cls()
        for key, attr, convert in _KEYS:
            if key in data:
                setattr(settings, attr, convert(data[key]))
        return settings

    def save(self, path: PathLike) -> None:
        """Write all settings to ``path``, keeping unrelated keys already there."""
        data = _read_store(path)
        for key, attr, _ in _KEYS:
            data[key] = getattr(self, attr)
        _write_store(path, data)

    def update_last_used_directory(
        self, lastdir: str, path: Optional[PathLike] = None
    ) -> None:
        """Remember ``lastdir``; when ``path`` is given, store only that key there."""
        self.last_used_directory = lastdir
        if path is None:
            return
        data = _read_store(path)
        data[_LAST_DIR_KEY] = lastdir
        _write_store(path, data)

    def is_registered(self) -> bool:
        """True while the registration has not yet expired."""
        if self.registered_until is None:
            return False
        now = datetime.now(self.registered_until.tzinfo)
        return self.registered_until > now