"""JSON payloads for pipeline results.

Converts PuzzleReport and GameAnalysis into the payloads callers
consume. Key names follow the puzzle API wire format (puzzlesGenerated,
blunderMove, correctMoves, ...), so a browser client written against
that API can read them unchanged.
"""

from __future__ import annotations

from puzzlegen.models import GameAnalysis, MoveAnalysis, Puzzle, PuzzleReport


def puzzle_to_dict(puzzle: Puzzle) -> dict:
    """Encode a Puzzle for transport.

    Args:
        puzzle: Puzzle produced by the synthesizer.

    Returns:
        Dict with wire-format keys.
    """
    return {
        "id": puzzle.id,
        "fen": puzzle.start_position,
        "blunderMove": puzzle.blunder_move,
        "correctMoves": list(puzzle.alternative_moves),
        "side": puzzle.side,
        "moveNumber": puzzle.move_number,
        "difficulty": puzzle.difficulty,
        "description": puzzle.description,
        "blunderType": puzzle.classification,
        "centipawnLoss": puzzle.centipawn_loss,
    }


def puzzle_report_payload(report: PuzzleReport) -> dict:
    """Encode a PuzzleReport as {puzzlesGenerated, puzzles}."""
    return {
        "puzzlesGenerated": report.puzzles_generated,
        "puzzles": [puzzle_to_dict(p) for p in report.puzzles],
    }


def _mistake_to_dict(analysis: MoveAnalysis) -> dict:
    record = analysis.record
    return {
        "moveNumber": record.move_number,
        "side": record.side,
        "move": record.played_move,
        "fen": record.position_before,
        "type": analysis.classification,
        "evalBefore": analysis.eval_before,
        "evalAfter": analysis.eval_after,
        "centipawnLoss": analysis.centipawn_loss,
    }


def game_analysis_payload(analysis: GameAnalysis) -> dict:
    """Encode a GameAnalysis as {totalMoves, mistakesFound, mistakes}.

    Only flagged moves are listed; clean moves are counted in
    totalMoves only.
    """
    mistakes = analysis.mistakes
    return {
        "totalMoves": analysis.total_moves,
        "mistakesFound": len(mistakes),
        "mistakes": [_mistake_to_dict(m) for m in mistakes],
    }


def error_payload(exc: Exception) -> dict:
    """Encode an exception as {error, type}."""
    return {"error": str(exc), "type": type(exc).__name__}
