"""Tests for the SQLite key-value storage and the backup file format."""

import json
from datetime import date

import pytest

from core.errors import ValidationError
from core.models import Analysis, AppSettings, DEFAULT_PRESETS, Theme, TimerPreset
from core.storage import (
    ACTIVE_PRESET_ID_KEY, PRESETS_KEY, SESSIONS_KEY, Storage,
    default_export_filename, export_to_json, import_from_json, parse_backup,
)

from conftest import make_session


def make_analysis(summary: str = "Good week") -> Analysis:
    return Analysis(
        date="2026-10-19T09:00:00+00:00",
        concentration=70,
        study_capacity=60,
        stress=40,
        happiness=75,
        summary=summary,
        suggestions=("Sleep more",),
        total_study_duration=50,
        session_count=2,
    )


class TestDefaults:
    def test_empty_storage_returns_defaults(self, storage):
        assert storage.load_sessions() == []
        assert storage.load_analyses() == []
        assert storage.load_presets() == DEFAULT_PRESETS
        assert storage.load_active_preset_id() is None
        assert storage.load_theme() == Theme.SYSTEM
        assert storage.load_api_key() is None
        assert storage.get_settings() == AppSettings()

    def test_default_presets(self):
        assert [(p.name, p.study, p.rest) for p in DEFAULT_PRESETS] == [
            ("Standard Focus", 45, 15),
            ("Pomodoro", 25, 5),
        ]

    def test_empty_preset_list_falls_back_to_defaults(self, storage):
        storage.save_presets([])
        assert storage.load_presets() == DEFAULT_PRESETS


class TestRoundTrip:
    def test_sessions(self, storage):
        sessions = [make_session(25, "a"), make_session(45, "b")]
        storage.save_sessions(sessions)
        assert storage.load_sessions() == sessions

    def test_analyses_keep_order(self, storage):
        analyses = [make_analysis("newest"), make_analysis("oldest")]
        storage.save_analyses(analyses)
        assert [a.summary for a in storage.load_analyses()] == ["newest", "oldest"]

    def test_presets_and_active_id(self, storage):
        presets = [TimerPreset("p1", "Deep", 90, 20)]
        storage.save_presets(presets)
        storage.save_active_preset_id("p1")
        assert storage.load_presets() == presets
        assert storage.load_active_preset_id() == "p1"

    def test_clearing_active_id_removes_key(self, storage):
        storage.save_active_preset_id("p1")
        storage.save_active_preset_id(None)
        assert storage.get_raw(ACTIVE_PRESET_ID_KEY) is None

    def test_theme_and_api_key_are_raw_strings(self, storage):
        storage.save_theme(Theme.DARK)
        storage.save_api_key("secret")
        assert storage.get_raw("focusflow_theme") == "dark"
        assert storage.get_raw("focusflow_api_key") == "secret"
        assert storage.load_theme() == Theme.DARK

    def test_sessions_stored_as_json(self, storage):
        storage.save_sessions([make_session(25, "a")])
        data = json.loads(storage.get_raw(SESSIONS_KEY))
        assert data[0]["startTime"] == "2026-10-19T08:00:00+00:00"
        assert data[0]["type"] == "study"

    def test_settings(self, storage):
        storage.save_settings(AppSettings(sound_enabled=False))
        assert storage.get_settings().sound_enabled is False
        assert storage.get_settings().notification_enabled is True


class TestCorruption:
    def test_invalid_json_degrades_to_default(self, storage):
        storage.set_raw(SESSIONS_KEY, "{not json")
        assert storage.load_sessions() == []

    def test_unknown_theme_degrades_to_system(self, storage):
        storage.set_raw("focusflow_theme", "purple")
        assert storage.load_theme() == Theme.SYSTEM

    def test_malformed_records_are_skipped(self, storage):
        good = make_session(25, "ok").to_dict()
        storage.set_raw(SESSIONS_KEY, json.dumps([good, {"id": 3}]))
        assert [s.notes for s in storage.load_sessions()] == ["ok"]

    def test_invalid_presets_fall_back_to_defaults(self, storage):
        storage.set_raw(PRESETS_KEY, json.dumps([{"id": "x", "name": "Bad", "study": 0, "rest": 5}]))
        assert storage.load_presets() == DEFAULT_PRESETS

    def test_unreachable_database_does_not_raise(self, tmp_path):
        storage = Storage(str(tmp_path / "missing" / "dir" / "db.sqlite"))
        assert storage.load_sessions() == []
        storage.save_sessions([make_session()])


class TestBackup:
    def test_default_filename_contains_date(self):
        assert default_export_filename(date(2026, 10, 19)) == "focusflow_backup_2026-10-19.json"

    def test_export_then_import_reproduces_history(self, tmp_path):
        sessions = [make_session(25, "a"), make_session(45, "b")]
        analyses = [make_analysis()]
        path = tmp_path / "backup.json"

        count = export_to_json(str(path), sessions, analyses)

        assert count == 3
        assert import_from_json(str(path)) == (sessions, analyses)

    @pytest.mark.parametrize("document", [
        {"sessions": []},
        {"analyses": []},
        {"sessions": {}, "analyses": []},
        {"sessions": [], "analyses": "none"},
        [],
    ])
    def test_rejects_missing_or_non_list_keys(self, document):
        with pytest.raises(ValidationError):
            parse_backup(json.dumps(document))

    def test_rejects_invalid_json(self):
        with pytest.raises(ValidationError):
            parse_backup("not json at all")

    def test_rejects_malformed_record(self):
        with pytest.raises(ValidationError):
            parse_backup(json.dumps({"sessions": [{"id": 1}], "analyses": []}))

    def test_accepts_analyses_without_aggregates(self):
        record = make_analysis().to_dict()
        del record["totalStudyDuration"]
        del record["sessionCount"]
        _, analyses = parse_backup(json.dumps({"sessions": [], "analyses": [record]}))
        assert analyses[0].session_count == 0
        assert analyses[0].total_study_duration == 0

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(ValidationError):
            import_from_json(str(tmp_path / "nope.json"))
