"""MCP server for blunder puzzle generation.

Exposes the puzzle pipeline as FastMCP tools. Every tool call runs its
own analysis; the only state shared between calls is the engine driver,
whose concurrency ceiling then bounds engine processes server-wide.

Imports puzzlegen as an installed package, so install the project first
(`pip install -e .`), then run `python mcp-server/server.py`.
"""

from __future__ import annotations

import logging
import sys

from mcp.server.fastmcp import FastMCP

from puzzlegen import pipeline
from puzzlegen.config import Settings
from puzzlegen.engine import EngineDriver
from puzzlegen.errors import PuzzleGenError
from puzzlegen.payloads import (
    error_payload,
    game_analysis_payload,
    puzzle_report_payload,
)

logger = logging.getLogger(__name__)

mcp = FastMCP("puzzlegen")

_settings: Settings | None = None
_driver: EngineDriver | None = None


def _get_settings() -> Settings:
    """Load settings from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def _get_driver() -> EngineDriver:
    """Create the shared engine driver on first use.

    Raises:
        FileNotFoundError: If Stockfish cannot be located.
    """
    global _driver
    if _driver is None:
        _driver = EngineDriver.from_settings(_get_settings())
    return _driver


def _pipeline_options(player_color: str | None, depth: int | None) -> dict:
    settings = _get_settings()
    return {
        "player_color": player_color or None,
        "depth": settings.depth if depth is None else depth,
        "lookahead": settings.max_engines,
    }


@mcp.tool()
async def generate_puzzles_from_pgn(
    pgn: str,
    player_color: str | None = None,
    depth: int | None = None,
) -> dict:
    """Generate find-the-better-move puzzles from a finished game.

    Replays the game, evaluates every analysed move with Stockfish and
    builds a puzzle for each inaccuracy, mistake or blunder (at most
    10 per game by default).

    Args:
        pgn: The game in PGN format.
        player_color: Only build puzzles from this side's moves
            ('white' or 'black'). Default: both sides.
        depth: Engine search depth (default 12).

    Returns:
        Dict with puzzlesGenerated and the ordered puzzles list, or an
        error dict.
    """
    if not pgn or not pgn.strip():
        return {"error": "PGN is required", "type": "ValueError"}

    try:
        settings = _get_settings()
        report = await pipeline.generate_puzzles_from_pgn(
            pgn,
            _get_driver(),
            max_puzzles=settings.max_puzzles,
            max_alternatives=settings.max_alternatives,
            **_pipeline_options(player_color, depth),
        )
    except (PuzzleGenError, ValueError, FileNotFoundError) as exc:
        logger.warning("Puzzle generation failed: %s", exc)
        return error_payload(exc)

    return puzzle_report_payload(report)


@mcp.tool()
async def analyze_game(
    pgn: str,
    player_color: str | None = None,
    depth: int | None = None,
) -> dict:
    """Find the inaccuracies, mistakes and blunders of a finished game.

    Args:
        pgn: The game in PGN format.
        player_color: Only analyse this side's moves ('white' or 'black').
        depth: Engine search depth (default 12).

    Returns:
        Dict with totalMoves, mistakesFound and the mistakes list, or an
        error dict.
    """
    if not pgn or not pgn.strip():
        return {"error": "PGN is required", "type": "ValueError"}

    try:
        analysis = await pipeline.analyze_pgn(
            pgn, _get_driver(), **_pipeline_options(player_color, depth)
        )
    except (PuzzleGenError, ValueError, FileNotFoundError) as exc:
        logger.warning("Game analysis failed: %s", exc)
        return error_payload(exc)

    return game_analysis_payload(analysis)


@mcp.tool()
async def evaluate_position(fen: str, depth: int | None = None) -> dict:
    """Evaluate a single position with Stockfish.

    Args:
        fen: FEN string of the position.
        depth: Engine search depth (default 12).

    Returns:
        Dict with fen, depth and score_cp (White's point of view), or an
        error dict.
    """
    try:
        if depth is None:
            depth = _get_settings().depth
        score = await _get_driver().evaluate(fen, depth)
    except (PuzzleGenError, ValueError, FileNotFoundError) as exc:
        logger.warning("Evaluation failed: %s", exc)
        return error_payload(exc)

    return {"fen": fen, "depth": depth, "score_cp": score}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    mcp.run()
