import sys

import pytest

from yapgrid import config
from yapgrid.config import YAPGRID_CONFIG, clear_cache, get_setting, load_config


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point the user config at an empty directory and reset caches."""
    monkeypatch.delenv(YAPGRID_CONFIG, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "home"))
    clear_cache()
    yield
    clear_cache()


def test_bundled_defaults():
    settings = load_config()
    assert settings["hash_initial_capacity"] == 16
    assert settings["lazy_cells_per_chunk"] == 10
    assert settings["lazy_lru_capacity"] == 100
    assert settings["max_search_cells"] == 1000000
    assert settings["edge_match_tolerance"] == pytest.approx(1e-6)


def test_unknown_setting_raises():
    with pytest.raises(KeyError):
        get_setting("no_such_setting")


def test_override_file_from_environment(monkeypatch, tmp_path):
    override = tmp_path / "tuning.yaml"
    override.write_text(
        'schema_version: "1.0"\n'
        "settings:\n"
        "  lazy_lru_capacity: 7\n"
        "  not_a_real_key: 3\n"
    )
    monkeypatch.setenv(YAPGRID_CONFIG, str(override))
    clear_cache()
    assert get_setting("lazy_lru_capacity") == 7
    # untouched keys keep their defaults, unknown keys are dropped
    assert get_setting("hash_initial_capacity") == 16
    assert "not_a_real_key" not in load_config()


def test_override_directory(monkeypatch, tmp_path):
    d = tmp_path / "conf"
    d.mkdir()
    (d / config.CONFIG_FILENAME).write_text("settings:\n  max_search_cells: 500\n")
    monkeypatch.setenv(YAPGRID_CONFIG, str(d))
    clear_cache()
    assert get_setting("max_search_cells") == 500


@pytest.mark.skipif(sys.platform == "win32", reason="user config lives under APPDATA")
def test_environment_beats_user_file(monkeypatch, tmp_path):
    user_dir = tmp_path / "home" / ".config" / "yapgrid"
    user_dir.mkdir(parents=True)
    (user_dir / config.CONFIG_FILENAME).write_text(
        "settings:\n  lazy_lru_capacity: 3\n  max_search_cells: 42\n")
    env_file = tmp_path / "env.yaml"
    env_file.write_text("settings:\n  lazy_lru_capacity: 9\n")
    monkeypatch.setenv(YAPGRID_CONFIG, str(env_file))
    clear_cache()
    assert get_setting("lazy_lru_capacity") == 9
    assert get_setting("max_search_cells") == 42


def test_bad_schema_version(monkeypatch, tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text('schema_version: "2.0"\nsettings: {}\n')
    monkeypatch.setenv(YAPGRID_CONFIG, str(bad))
    clear_cache()
    with pytest.raises(ValueError):
        load_config()


def test_missing_override_is_ignored(monkeypatch, tmp_path):
    monkeypatch.setenv(YAPGRID_CONFIG, str(tmp_path / "nowhere.yaml"))
    clear_cache()
    assert get_setting("lazy_cells_per_chunk") == 10
