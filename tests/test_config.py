"""Tests for configuration loading (config.py)."""
import pytest

from pkg.gtd.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("GTD_DB", "GTD_STORAGE", "GTD_RATE_LIMIT", "GTD_CONFIG"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_file_missing(tmp_path):
    cfg = Config.load(str(tmp_path / "absent.yaml"))
    assert cfg.port == 3000
    assert cfg.rate_limit_requests == 100
    assert cfg.rate_limit_window_secs == 900.0
    assert cfg.sort_mode == "priority"
    assert "~" not in cfg.db_path


def test_yaml_values(tmp_path):
    path = tmp_path / "gtd.yaml"
    path.write_text(
        "port: 4000\n"
        "sort_mode: manual\n"
        "db_path: " + str(tmp_path / "x.db") + "\n"
        "unknown_key: ignored\n"
    )
    cfg = Config.load(str(path))
    assert cfg.port == 4000
    assert cfg.sort_mode == "manual"
    assert cfg.db_path == str(tmp_path / "x.db")


def test_bad_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "gtd.yaml"
    path.write_text("port: [unclosed\n")
    assert Config.load(str(path)).port == 3000


def test_non_mapping_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "gtd.yaml"
    path.write_text("- just\n- a list\n")
    assert Config.load(str(path)).port == 3000


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "other.yaml"
    path.write_text("port: 5005\n")
    monkeypatch.setenv("GTD_CONFIG", str(path))
    assert Config.load().port == 5005


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "gtd.yaml"
    path.write_text("db_path: /from/file.db\n")
    monkeypatch.setenv("GTD_DB", str(tmp_path / "env.db"))
    monkeypatch.setenv("GTD_STORAGE", str(tmp_path / "local.db"))
    monkeypatch.setenv("GTD_RATE_LIMIT", "10/60")

    cfg = Config.load(str(path))

    assert cfg.db_path == str(tmp_path / "env.db")
    assert cfg.storage_path == str(tmp_path / "local.db")
    assert cfg.rate_limit_requests == 10
    assert cfg.rate_limit_window_secs == 60.0


def test_invalid_rate_limit_env(tmp_path, monkeypatch):
    monkeypatch.setenv("GTD_RATE_LIMIT", "lots")
    with pytest.raises(ValueError):
        Config.load(str(tmp_path / "absent.yaml"))
