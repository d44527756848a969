"""Shared test fixtures with dual-mode support (scripted vs real Stockfish).

Usage:
    pytest tests/                  # Fast, no Stockfish needed
    pytest tests/ --e2e            # Also run the real Stockfish tests

Fixtures:
    fake_engine        - Builds argv lists for the scripted UCI engine in
                         tests/fake_uci_engine.py.
    enable_validation  - Sets PUZZLEGEN_VALIDATE=1 for schema validation.
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import chess
import pytest

_FAKE_ENGINE = Path(__file__).resolve().parent / "fake_uci_engine.py"

# 1. e4 e5 2. Bc4 Nc6 3. Qh5 Nf6 4. Qxf7#
SCHOLARS_MATE = ["e4", "e5", "Bc4", "Nc6", "Qh5", "Nf6", "Qxf7#"]

# Black leaves the queen en prise on d6 and White takes it
QUEEN_HANG = ["e4", "d5", "e5", "Qd6", "exd6"]

# Knights hopping out and back; legal for any number of repetitions
KNIGHT_SHUFFLE = ["Nf3", "Nf6", "Ng1", "Ng8"]


# ---------------------------------------------------------------------------
# CLI option and marker registration
# ---------------------------------------------------------------------------


def pytest_addoption(parser):
    """Register --e2e CLI flag for real Stockfish tests."""
    parser.addoption(
        "--e2e",
        action="store_true",
        default=False,
        help="Run tests that need a real Stockfish binary.",
    )


def pytest_configure(config):
    """Register the e2e marker."""
    config.addinivalue_line(
        "markers", "e2e: mark test as end-to-end (requires real Stockfish)"
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="needs --e2e and a Stockfish binary")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


# ---------------------------------------------------------------------------
# Fake evaluators and engines
# ---------------------------------------------------------------------------


class FakeEvaluator:
    """Scores positions from a FEN -> centipawn table.

    Every requested FEN is recorded in `calls`. FENs in `failures` raise
    the mapped exception, FENs in `hang` never finish (and are recorded
    in `cancelled` once their task is cancelled), and `delays` holds
    per-FEN sleeps so later positions can finish first.
    """

    def __init__(self, scores=None, default=0, failures=None, hang=(), delays=None):
        self.scores = dict(scores or {})
        self.default = default
        self.failures = dict(failures or {})
        self.hang = set(hang)
        self.delays = dict(delays or {})
        self.calls: list[str] = []
        self.cancelled: list[str] = []

    async def evaluate(self, fen: str, depth: int | None = None) -> int:
        self.calls.append(fen)
        try:
            if fen in self.hang:
                await asyncio.Event().wait()
            await asyncio.sleep(self.delays.get(fen, 0))
        except asyncio.CancelledError:
            self.cancelled.append(fen)
            raise
        if fen in self.failures:
            raise self.failures[fen]
        return self.scores.get(fen, self.default)

    @classmethod
    def for_game(cls, moves, evals_after, starting_fen=chess.STARTING_FEN, **kwargs):
        """Score a game's positions by ply.

        evals_after maps a 0-based ply index to the score of the position
        after it; unlisted plies keep the previous score, starting at 0.
        """
        board = chess.Board(starting_fen)
        scores = {board.fen(): 0}
        current = 0
        for index, san in enumerate(moves):
            board.push_san(san)
            current = evals_after.get(index, current)
            scores[board.fen()] = current
        return cls(scores, **kwargs)


def positions(moves, starting_fen=chess.STARTING_FEN) -> list[str]:
    """FENs of a game: the start position, then the position after each ply."""
    board = chess.Board(starting_fen)
    fens = [board.fen()]
    for san in moves:
        board.push_san(san)
        fens.append(board.fen())
    return fens


def to_pgn(moves, headers=None) -> str:
    """Render a SAN move list as a PGN string."""
    tags = {"Event": "Test", "White": "A", "Black": "B", "Result": "*"}
    tags.update(headers or {})
    lines = [f'[{key} "{value}"]' for key, value in tags.items()]
    text = []
    for index, san in enumerate(moves):
        if index % 2 == 0:
            text.append(f"{index // 2 + 1}.")
        text.append(san)
    text.append(tags["Result"])
    return "\n".join(lines) + "\n\n" + " ".join(text) + "\n"


@pytest.fixture()
def fake_engine():
    """Return a factory for scripted UCI engine argv lists."""

    def _command(mode: str = "scores", *scores: str) -> list[str]:
        return [sys.executable, str(_FAKE_ENGINE), mode, *scores]

    return _command


# ---------------------------------------------------------------------------
# Schema validation fixture
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def enable_validation():
    """Set PUZZLEGEN_VALIDATE=1 for the test session.

    Restores the original env var value after the test.
    """
    original = os.environ.get("PUZZLEGEN_VALIDATE")
    os.environ["PUZZLEGEN_VALIDATE"] = "1"
    yield
    if original is None:
        os.environ.pop("PUZZLEGEN_VALIDATE", None)
    else:
        os.environ["PUZZLEGEN_VALIDATE"] = original
