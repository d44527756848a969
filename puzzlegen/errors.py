"""Error taxonomy for the puzzle generation pipeline."""

from __future__ import annotations


class PuzzleGenError(Exception):
    """Base class for every error raised by puzzlegen."""


class InvalidMoveSequence(PuzzleGenError, ValueError):
    """The move list is not fully legal from its starting position.

    Attributes:
        index: 0-based ply index of the offending move.
        move: The move text that was rejected (None if unknown).
    """

    def __init__(self, index: int, move: str | None, reason: str = "") -> None:
        self.index = index
        self.move = move
        message = f"Illegal move at ply {index}"
        if move is not None:
            message += f": {move!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class EngineError(PuzzleGenError):
    """Base class for evaluation engine failures."""


class EngineUnavailable(EngineError):
    """The engine process could not be started or died mid-search."""


class EngineTimeout(EngineError):
    """An evaluation exceeded its wall-clock budget."""

    def __init__(self, timeout: float, fen: str) -> None:
        self.timeout = timeout
        self.fen = fen
        super().__init__(f"Engine did not finish within {timeout:g}s for {fen}")
