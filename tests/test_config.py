import json

import pytest

from config import DEFAULT_SETTINGS, KalaSetuConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(DEFAULT_SETTINGS) + ["SECRET_KEY"]:
        monkeypatch.delenv(key, raising=False)


def test_defaults_are_written_on_first_load(tmp_path):
    config = KalaSetuConfig.load(app_root=tmp_path)

    assert json.loads(config.settings_file.read_text(encoding="utf-8")) == DEFAULT_SETTINGS
    assert config.api_base_url == "http://localhost:8080/api"
    assert config.asset_origin == "http://localhost:8080"
    assert config.video_call_poll_seconds == 3.0
    assert config.payment_success_rate == 0.9
    assert config.capture_dir.is_dir()


def test_settings_file_wins_over_environment(tmp_path, monkeypatch):
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "settings.json").write_text(json.dumps({"API_BASE_URL": "https://api.kalasetu.in/api/"}))
    monkeypatch.setenv("API_BASE_URL", "http://env.test/api")
    monkeypatch.setenv("REQUEST_TIMEOUT", "4")

    config = KalaSetuConfig.load(app_root=tmp_path)
    assert config.api_base_url == "https://api.kalasetu.in/api"
    assert config.asset_origin == "https://api.kalasetu.in"
    assert config.request_timeout == 4.0


def test_overrides_apply(tmp_path):
    config = KalaSetuConfig.load(app_root=tmp_path, overrides={"CAMERA_INDEX": "2", "LOG_LEVEL": "debug"})
    assert config.camera_index == 2
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("overrides", [
    {"PAYMENT_SUCCESS_RATE": "1.5"},
    {"VIDEO_CALL_POLL_SECONDS": "0"},
    {"REQUEST_TIMEOUT": "soon"},
])
def test_invalid_values_rejected(tmp_path, overrides):
    with pytest.raises(ValueError):
        KalaSetuConfig.load(app_root=tmp_path, overrides=overrides)


def test_broken_settings_file(tmp_path):
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "settings.json").write_text("{oops")
    with pytest.raises(ValueError):
        KalaSetuConfig.load(app_root=tmp_path)
