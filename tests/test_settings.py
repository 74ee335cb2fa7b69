import json
from datetime import datetime, timedelta, timezone

import pytest

from karlyrics.settings import Settings


def test_load_missing_file_gives_source_defaults(tmp_path):
    settings = Settings.load(tmp_path / "missing.json")
    assert settings.sound_delay == 250
    assert settings.editor_max_block == 8
    assert settings.preview_font_size == 24
    assert settings.editor_font_family == "arial"
    assert settings.last_used_directory == "."
    assert settings.editor_stop_next_word is False


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "settings.json"
    original = Settings(
        sound_delay=400,
        editor_word_chars=5,
        editor_stop_next_word=True,
        preview_background="#112233",
        time_mark_show_pitch=False,
    )
    original.save(path)
    loaded = Settings.load(path)
    assert loaded.sound_delay == 400
    assert loaded.editor_word_chars == 5
    assert loaded.editor_stop_next_word is True
    assert loaded.preview_background == "#112233"
    assert loaded.time_mark_show_pitch is False


def test_save_uses_source_key_names(tmp_path):
    path = tmp_path / "settings.json"
    Settings(sound_delay=300).save(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["advanced/phononsounddelay"] == 300
    assert data["editor/maxlinesinblock"] == 8


def test_save_keeps_unrelated_keys(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"recentFileList": ["a.lyr"]}), encoding="utf-8")
    Settings().save(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["recentFileList"] == ["a.lyr"]


def test_load_converts_string_values(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"editor/fontsize": "18", "editor/stopatlineend": "false"}),
        encoding="utf-8",
    )
    settings = Settings.load(path)
    assert settings.editor_font_size == 18
    assert settings.editor_stop_at_line_end is False


def test_update_last_used_directory_writes_only_that_key(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"advanced/phononsounddelay": 111}), encoding="utf-8")
    settings = Settings()
    settings.update_last_used_directory("/music", path)
    assert settings.last_used_directory == "/music"
    loaded = Settings.load(path)
    assert loaded.last_used_directory == "/music"
    assert loaded.sound_delay == 111


def test_update_last_used_directory_in_memory(tmp_path):
    settings = Settings()
    settings.update_last_used_directory("/songs")
    assert settings.last_used_directory == "/songs"


def test_load_rejects_non_object(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        Settings.load(path)


def test_unregistered_by_default():
    assert Settings().is_registered() is False


def test_registered_until_future():
    future = datetime.now(timezone.utc) + timedelta(days=30)
    assert Settings(registered_until=future).is_registered() is True


def test_registration_expired():
    past = datetime.now() - timedelta(days=1)
    assert Settings(registered_until=past).is_registered() is False