from pathlib import Path

from configlite.config import Settings, default_database_path


def test_default_database_path_in_home(monkeypatch, tmp_path):
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
    assert default_database_path() == tmp_path / ".config.db"


def test_default_database_path_without_home(monkeypatch):
    def _no_home(cls):
        raise RuntimeError("no home")
    monkeypatch.setattr(Path, "home", classmethod(_no_home))
    assert default_database_path() == Path("/.config.db")


def test_settings_prefers_explicit_path(tmp_path):
    assert Settings.resolve(tmp_path / "x.db").database == tmp_path / "x.db"
