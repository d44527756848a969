"""Puzzle synthesis from flagged moves."""

from __future__ import annotations

import chess

from puzzlegen.classifier import difficulty_for
from puzzlegen.config import DEFAULT_MAX_ALTERNATIVES
from puzzlegen.models import NONE, MoveRecord, Puzzle


def alternative_moves(
    fen: str,
    played_move: str,
    max_alternatives: int = DEFAULT_MAX_ALTERNATIVES,
) -> list[str]:
    """Legal moves other than the played one, in python-chess order.

    No engine ranking is applied: any legal alternative is accepted.

    Args:
        fen: Position before the played move.
        played_move: SAN of the move that was played.
        max_alternatives: Maximum number of moves to return.

    Returns:
        Up to max_alternatives distinct SAN moves, never the played move.
    """
    if max_alternatives <= 0:
        return []

    board = chess.Board(fen)
    alternatives: list[str] = []
    for move in board.legal_moves:
        san = board.san(move)
        if san == played_move or san in alternatives:
            continue
        alternatives.append(san)
        if len(alternatives) >= max_alternatives:
            break
    return alternatives


def synthesize(
    record: MoveRecord,
    classification: str,
    puzzle_id: int,
    max_alternatives: int = DEFAULT_MAX_ALTERNATIVES,
    centipawn_loss: int = 0,
) -> Puzzle:
    """Build a puzzle from a flagged move.

    Args:
        record: The flagged move.
        classification: Its classification; must not be "none".
        puzzle_id: Sequential id of the puzzle within the game.
        max_alternatives: Maximum number of alternative moves.
        centipawn_loss: Loss the move caused, carried for display.

    Returns:
        The Puzzle, starting from the position before the move.

    Raises:
        ValueError: If the move was not flagged.
    """
    if classification == NONE:
        raise ValueError(f"Move {record.played_move} is not flagged; no puzzle to build")

    return Puzzle(
        id=puzzle_id,
        start_position=record.position_before,
        blunder_move=record.played_move,
        alternative_moves=tuple(
            alternative_moves(record.position_before, record.played_move, max_alternatives)
        ),
        side=record.side,
        move_number=record.move_number,
        difficulty=difficulty_for(classification),
        description=f"Find a better move than {record.played_move}",
        classification=classification,
        centipawn_loss=centipawn_loss,
    )
