"""Unit tests for config persistence and validation."""

from __future__ import annotations

import json
import os
import stat

from hawkeye_cli.state import (
    SessionState, config, config_dir, config_path, init_config, load_user_config,
    save_user_config, validate_config,
)


def test_config_dir_defaults_to_home(tmp_path):
    assert config_dir() == os.path.join(str(tmp_path), ".hawkeye")


def test_config_dir_inside_snap(monkeypatch, tmp_path):
    monkeypatch.setenv("SNAP_USER_COMMON", str(tmp_path / "snap"))
    assert config_dir() == os.path.join(str(tmp_path / "snap"), ".hawkeye")


def test_profile_paths():
    assert config_path().endswith(os.path.join(".hawkeye", "config.json"))
    assert config_path("staging").endswith(os.path.join(".hawkeye", "config-staging.json"))


def test_save_merges_and_restricts_permissions():
    save_user_config({"server": "https://a", "token": "t1"})
    save_user_config({"token": "t2"})
    assert load_user_config() == {"server": "https://a", "token": "t2"}
    mode = stat.S_IMODE(os.stat(config_path()).st_mode)
    assert mode == 0o600


def test_profiles_are_separate_files():
    save_user_config({"server": "https://prod"})
    save_user_config({"server": "https://stage"}, "stage")
    assert load_user_config()["server"] == "https://prod"
    assert load_user_config("stage")["server"] == "https://stage"


def test_missing_or_corrupt_file_loads_empty():
    assert load_user_config() == {}
    os.makedirs(config_dir())
    with open(config_path(), "w", encoding="utf-8") as f:
        f.write("{not json")
    assert load_user_config() == {}
    with open(config_path(), "w", encoding="utf-8") as f:
        json.dump(["list"], f)
    assert load_user_config() == {}


def test_init_config_env_overrides_file(monkeypatch):
    save_user_config({"server": "https://file", "token": "file-token", "project_uuid": "p1"}, "dev")
    monkeypatch.setenv("HAWKEYE_TOKEN", "env-token")
    init_config("dev")
    assert config.profile == "dev"
    assert config.server == "https://file"
    assert config.token == "env-token"
    assert config.project_uuid == "p1"


def test_validate_config_reports_first_problem():
    assert "server not set" in validate_config()
    config.server = "https://x"
    assert "not authenticated" in validate_config()
    config.token = "t"
    assert "project not set" in validate_config()
    assert validate_config(need_project=False) is None
    config.profile = "dev"
    assert "--profile dev" in validate_config()
    config.project_uuid = "p"
    assert validate_config() is None


def test_session_state_reset():
    state = SessionState("s-1")
    state.turn_count = 3
    state.last_answer = "x"
    state.follow_up_suggestions = ["y"]
    state.reset()
    assert (state.session_uuid, state.turn_count, state.last_answer) == ("", 0, "")
    assert state.follow_up_suggestions == []
