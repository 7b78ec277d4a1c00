"""Tests for the entry point's .env handling."""

import importlib

import dotenv.main
import pytest

from access.config import load_config


@pytest.fixture
def dotenv_file(tmp_path, monkeypatch):
    path = tmp_path / ".env"
    path.write_text("ACCESS_DATA_DIR=/from/dotenv\n", encoding="utf-8")
    monkeypatch.setattr(dotenv.main, "find_dotenv", lambda *args, **kwargs: str(path))
    return path


class TestEntryPoint:
    def test_environment_wins_over_dotenv(self, dotenv_file, monkeypatch):
        monkeypatch.setenv("ACCESS_DATA_DIR", "/from/env")
        import main

        importlib.reload(main)
        assert load_config().data_dir == "/from/env"

    def test_dotenv_used_when_unset(self, dotenv_file, monkeypatch):
        monkeypatch.delenv("ACCESS_DATA_DIR", raising=False)
        import main

        importlib.reload(main)
        assert load_config().data_dir == "/from/dotenv"
