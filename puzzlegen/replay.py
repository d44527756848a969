"""Game replay on top of python-chess.

Walks a SAN move list from its starting position and yields one
MoveRecord per ply. Also reads PGN text into such a move list.
"""

from __future__ import annotations

import io
from collections.abc import Iterable, Iterator

import chess
import chess.pgn

from puzzlegen.errors import InvalidMoveSequence
from puzzlegen.models import BLACK, WHITE, MoveRecord


def replay(
    moves: Iterable[str],
    starting_fen: str = chess.STARTING_FEN,
) -> Iterator[MoveRecord]:
    """Lazily replay a game, one MoveRecord per ply.

    Args:
        moves: Moves in SAN, in game order.
        starting_fen: Position the game starts from.

    Yields:
        MoveRecord with the positions before and after each move.
        played_move is the canonical SAN of the move.

    Raises:
        InvalidMoveSequence: On the first move that is not legal.
    """
    board = chess.Board(starting_fen)
    for index, san in enumerate(moves):
        try:
            move = board.parse_san(san)
        except ValueError as exc:
            raise InvalidMoveSequence(index, san, str(exc)) from exc
        if not move:
            raise InvalidMoveSequence(index, san, "null move")

        side = WHITE if board.turn == chess.WHITE else BLACK
        before = board.fen()
        canonical = board.san(move)
        board.push(move)

        yield MoveRecord(
            sequence_index=index,
            side=side,
            played_move=canonical,
            position_before=before,
            position_after=board.fen(),
        )


def read_pgn(pgn_text: str) -> tuple[str, list[str]]:
    """Read the first game of a PGN string.

    Returns:
        Tuple of (starting FEN, list of SAN moves). Empty text gives
        the standard starting position and no moves.

    Raises:
        InvalidMoveSequence: If python-chess rejected a move in the game.
    """
    game = chess.pgn.read_game(io.StringIO(pgn_text))
    if game is None:
        return chess.STARTING_FEN, []

    board = game.board()
    starting_fen = board.fen()
    moves: list[str] = []
    for move in game.mainline_moves():
        if not move:
            raise InvalidMoveSequence(len(moves), "--", "null move")
        moves.append(board.san(move))
        board.push(move)

    if game.errors:
        raise InvalidMoveSequence(len(moves), None, str(game.errors[0]))

    return starting_fen, moves


def is_checkmate(fen: str) -> bool:
    """Return True if the side to move in this position is checkmated."""
    return chess.Board(fen).is_checkmate()
