"""Move quality classification from evaluation deltas."""

from __future__ import annotations

from puzzlegen.models import BLACK, BLUNDER, INACCURACY, MISTAKE, NONE, WHITE

# Inclusive lower bounds of centipawn loss, highest severity first
_CLASSIFICATION_THRESHOLDS = [
    (300, BLUNDER),
    (200, MISTAKE),
    (100, INACCURACY),
]

_DIFFICULTY = {
    BLUNDER: "easy",
    MISTAKE: "medium",
    INACCURACY: "hard",
}


def centipawn_loss(eval_before: int, eval_after: int, side: str) -> int:
    """How much worse the position got for the side that moved.

    Evaluations are signed from White's point of view, so a drop is a
    loss for White and a rise is a loss for Black. Negative values
    mean the mover improved its position.
    """
    if side == WHITE:
        return eval_before - eval_after
    if side == BLACK:
        return eval_after - eval_before
    raise ValueError(f"side must be {WHITE!r} or {BLACK!r}, got {side!r}")


def classify(eval_before: int, eval_after: int, side: str) -> str:
    """Classify a move from the evaluations around it.

    Args:
        eval_before: Centipawns before the move (White's view).
        eval_after: Centipawns after the move (White's view).
        side: "white" or "black", the side that moved.

    Returns:
        One of "blunder", "mistake", "inaccuracy" or "none".
    """
    loss = centipawn_loss(eval_before, eval_after, side)
    for threshold, label in _CLASSIFICATION_THRESHOLDS:
        if loss >= threshold:
            return label
    return NONE


def difficulty_for(classification: str) -> str:
    """Puzzle difficulty for a flagged classification.

    Bigger blunders leave a bigger gap to the better move, so they
    make easier puzzles.
    """
    try:
        return _DIFFICULTY[classification]
    except KeyError:
        raise ValueError(f"No puzzle difficulty for classification {classification!r}") from None
