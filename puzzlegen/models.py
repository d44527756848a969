"""Shared data models for the puzzle generation pipeline.

MoveRecord, MoveAnalysis and Puzzle are the contract between the
replayer, the classifier, the synthesizer and the outer surfaces
(CLI and MCP server). All of them are immutable once created.
"""

from __future__ import annotations

from dataclasses import dataclass, field

WHITE = "white"
BLACK = "black"

# Move classifications, lowest severity first
NONE = "none"
INACCURACY = "inaccuracy"
MISTAKE = "mistake"
BLUNDER = "blunder"

CLASSIFICATIONS = (NONE, INACCURACY, MISTAKE, BLUNDER)


@dataclass(frozen=True)
class MoveRecord:
    """One ply of a replayed game."""

    sequence_index: int
    side: str
    played_move: str
    position_before: str
    position_after: str

    @property
    def move_number(self) -> int:
        """Full-move number the ply belongs to (1-based)."""
        return self.sequence_index // 2 + 1


@dataclass(frozen=True)
class MoveAnalysis:
    """A MoveRecord with its two evaluations and resulting classification."""

    record: MoveRecord
    eval_before: int
    eval_after: int
    centipawn_loss: int
    classification: str
    is_checkmate: bool = False

    @property
    def is_flagged(self) -> bool:
        return self.classification != NONE


@dataclass(frozen=True)
class GameAnalysis:
    """Every analysed move of a game, in game order."""

    total_moves: int
    analyses: tuple[MoveAnalysis, ...] = ()

    @property
    def mistakes(self) -> list[MoveAnalysis]:
        return [a for a in self.analyses if a.is_flagged]


@dataclass(frozen=True)
class Puzzle:
    """A find-the-better-move puzzle built from a flagged move."""

    id: int
    start_position: str
    blunder_move: str
    side: str
    move_number: int
    difficulty: str
    description: str
    classification: str
    centipawn_loss: int = 0
    alternative_moves: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PuzzleReport:
    """Ordered puzzles generated from one game."""

    puzzles: tuple[Puzzle, ...] = ()

    @property
    def puzzles_generated(self) -> int:
        return len(self.puzzles)
