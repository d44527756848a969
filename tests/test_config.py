"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from puzzlegen.config import Settings

_VARS = [
    "PUZZLEGEN_STOCKFISH_PATH",
    "PUZZLEGEN_DEPTH",
    "PUZZLEGEN_ENGINE_TIMEOUT",
    "PUZZLEGEN_MAX_ENGINES",
    "PUZZLEGEN_MAX_PUZZLES",
    "PUZZLEGEN_MAX_ALTERNATIVES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings == Settings()
    assert settings.depth == 12
    assert settings.engine_timeout == 30.0
    assert settings.max_engines == 4
    assert settings.max_puzzles == 10
    assert settings.max_alternatives == 3
    assert settings.stockfish_path is None


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("PUZZLEGEN_STOCKFISH_PATH", "/opt/sf")
    monkeypatch.setenv("PUZZLEGEN_DEPTH", "18")
    monkeypatch.setenv("PUZZLEGEN_ENGINE_TIMEOUT", "2.5")
    monkeypatch.setenv("PUZZLEGEN_MAX_ENGINES", "8")
    monkeypatch.setenv("PUZZLEGEN_MAX_PUZZLES", "5")
    monkeypatch.setenv("PUZZLEGEN_MAX_ALTERNATIVES", "0")

    settings = Settings.from_env()
    assert settings == Settings(
        stockfish_path="/opt/sf",
        depth=18,
        engine_timeout=2.5,
        max_engines=8,
        max_puzzles=5,
        max_alternatives=0,
    )


def test_blank_value_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("PUZZLEGEN_DEPTH", "  ")
    assert Settings.from_env().depth == 12


@pytest.mark.parametrize("name,value", [
    ("PUZZLEGEN_DEPTH", "deep"),
    ("PUZZLEGEN_DEPTH", "0"),
    ("PUZZLEGEN_MAX_ENGINES", "0"),
    ("PUZZLEGEN_MAX_PUZZLES", "-1"),
    ("PUZZLEGEN_MAX_ALTERNATIVES", "-1"),
    ("PUZZLEGEN_ENGINE_TIMEOUT", "0"),
    ("PUZZLEGEN_ENGINE_TIMEOUT", "soon"),
])
def test_invalid_values_name_the_variable(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        Settings.from_env()


def test_override_skips_none():
    settings = Settings(depth=10).override(depth=None, max_engines=2)
    assert settings.depth == 10
    assert settings.max_engines == 2
