"""Game analysis and puzzle generation pipeline.

Replays a game, evaluates the positions around each move, classifies
the moves and turns the flagged ones into puzzles. Evaluations for
upcoming moves are started ahead of time, but results are always
consumed in game order.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from collections.abc import AsyncIterator, Iterable
from typing import Protocol

import chess

from puzzlegen.classifier import centipawn_loss, classify
from puzzlegen.config import (
    DEFAULT_DEPTH,
    DEFAULT_MAX_ALTERNATIVES,
    DEFAULT_MAX_ENGINES,
    DEFAULT_MAX_PUZZLES,
)
from puzzlegen.engine import MATE_SCORE
from puzzlegen.models import (
    BLACK,
    NONE,
    WHITE,
    GameAnalysis,
    MoveAnalysis,
    MoveRecord,
    Puzzle,
    PuzzleReport,
)
from puzzlegen.replay import is_checkmate, read_pgn, replay
from puzzlegen.synthesizer import synthesize

logger = logging.getLogger(__name__)


class Evaluator(Protocol):
    """Anything that can score a FEN in centipawns from White's view."""

    async def evaluate(self, fen: str, depth: int | None = None) -> int: ...


class _EvaluationCache:
    """Evaluation tasks of one run, keyed by FEN.

    A position is evaluated at most once per run, so the same FEN can
    never get two different scores.
    """

    def __init__(self, evaluator: Evaluator, depth: int) -> None:
        self._evaluator = evaluator
        self._depth = depth
        self._tasks: dict[str, asyncio.Task[int]] = {}

    def schedule(self, fen: str) -> asyncio.Task[int]:
        task = self._tasks.get(fen)
        if task is None:
            task = asyncio.ensure_future(self._evaluator.evaluate(fen, self._depth))
            self._tasks[fen] = task
        return task

    async def close(self) -> None:
        """Cancel unfinished evaluations and wait for them to wind down."""
        tasks = list(self._tasks.values())
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


def _mate_score_for(side: str) -> int:
    return MATE_SCORE if side == WHITE else -MATE_SCORE


def _schedule(
    cache: _EvaluationCache, record: MoveRecord
) -> tuple[MoveRecord, asyncio.Task[int], asyncio.Task[int] | None]:
    before = cache.schedule(record.position_before)
    # A mated position needs no engine: the mover has won
    after = None if is_checkmate(record.position_after) else cache.schedule(record.position_after)
    return record, before, after


async def _finish(
    scheduled: tuple[MoveRecord, asyncio.Task[int], asyncio.Task[int] | None],
) -> MoveAnalysis:
    record, before_task, after_task = scheduled
    eval_before = await before_task

    if after_task is None:
        eval_after = _mate_score_for(record.side)
        return MoveAnalysis(
            record=record,
            eval_before=eval_before,
            eval_after=eval_after,
            centipawn_loss=centipawn_loss(eval_before, eval_after, record.side),
            classification=NONE,
            is_checkmate=True,
        )

    eval_after = await after_task
    return MoveAnalysis(
        record=record,
        eval_before=eval_before,
        eval_after=eval_after,
        centipawn_loss=centipawn_loss(eval_before, eval_after, record.side),
        classification=classify(eval_before, eval_after, record.side),
    )


async def iter_move_analyses(
    moves: Iterable[str],
    evaluator: Evaluator,
    *,
    starting_fen: str = chess.STARTING_FEN,
    player_color: str | None = None,
    depth: int = DEFAULT_DEPTH,
    lookahead: int = DEFAULT_MAX_ENGINES,
) -> AsyncIterator[MoveAnalysis]:
    """Analyse a game move by move, yielding results in game order.

    The whole move list is replayed before the first evaluation starts,
    so an illegal move anywhere fails the run even when the consumer
    stops early.

    Up to `lookahead` moves have their evaluations in flight at once.
    However the generator ends (exhausted, closed early, failed or
    cancelled), evaluations still running are cancelled.

    Args:
        moves: SAN moves in game order.
        evaluator: Position evaluator (normally an EngineDriver).
        starting_fen: Position the game starts from.
        player_color: Only analyse this side's moves ("white"/"black").
        depth: Search depth passed to the evaluator.
        lookahead: Number of moves evaluated ahead of the consumer.

    Raises:
        InvalidMoveSequence: If the move list is not legal.
        EngineUnavailable, EngineTimeout: If an evaluation fails.
    """
    if player_color not in (None, WHITE, BLACK):
        raise ValueError(f"player_color must be {WHITE!r}, {BLACK!r} or None, got {player_color!r}")
    if lookahead < 1:
        raise ValueError(f"lookahead must be >= 1, got {lookahead}")

    records = list(replay(moves, starting_fen))

    cache = _EvaluationCache(evaluator, depth)
    pending: deque = deque()
    try:
        for record in records:
            if player_color is not None and record.side != player_color:
                continue
            pending.append(_schedule(cache, record))
            if len(pending) >= lookahead:
                yield await _finish(pending.popleft())
        while pending:
            yield await _finish(pending.popleft())
    finally:
        await cache.close()


async def analyze_game(
    moves: Iterable[str],
    evaluator: Evaluator,
    *,
    starting_fen: str = chess.STARTING_FEN,
    player_color: str | None = None,
    depth: int = DEFAULT_DEPTH,
    lookahead: int = DEFAULT_MAX_ENGINES,
) -> GameAnalysis:
    """Classify every analysed move of a game.

    Returns:
        GameAnalysis with the total ply count and the analyses in order.
    """
    moves = list(moves)
    analyses = iter_move_analyses(
        moves,
        evaluator,
        starting_fen=starting_fen,
        player_color=player_color,
        depth=depth,
        lookahead=lookahead,
    )
    async with contextlib.aclosing(analyses):
        collected = [analysis async for analysis in analyses]

    result = GameAnalysis(total_moves=len(moves), analyses=tuple(collected))
    logger.info(
        "Analysed %d of %d moves: %d mistakes", len(collected), len(moves), len(result.mistakes)
    )
    return result


async def generate_puzzles(
    moves: Iterable[str],
    evaluator: Evaluator,
    *,
    starting_fen: str = chess.STARTING_FEN,
    player_color: str | None = None,
    depth: int = DEFAULT_DEPTH,
    max_puzzles: int = DEFAULT_MAX_PUZZLES,
    max_alternatives: int = DEFAULT_MAX_ALTERNATIVES,
    lookahead: int = DEFAULT_MAX_ENGINES,
) -> PuzzleReport:
    """Generate find-the-better-move puzzles from a game's flagged moves.

    Puzzles are numbered from 1 in game order. Generation stops as soon
    as `max_puzzles` puzzles exist; later moves are not analysed.

    Returns:
        PuzzleReport, empty when no move lost 100 centipawns or more.

    Raises:
        InvalidMoveSequence: If the move list is not legal.
        EngineUnavailable, EngineTimeout: If an evaluation fails.
    """
    if max_puzzles < 1:
        raise ValueError(f"max_puzzles must be >= 1, got {max_puzzles}")

    puzzles: list[Puzzle] = []
    analyses = iter_move_analyses(
        moves,
        evaluator,
        starting_fen=starting_fen,
        player_color=player_color,
        depth=depth,
        lookahead=lookahead,
    )
    async with contextlib.aclosing(analyses):
        async for analysis in analyses:
            if not analysis.is_flagged:
                continue
            record = analysis.record
            puzzles.append(
                synthesize(
                    record,
                    analysis.classification,
                    puzzle_id=len(puzzles) + 1,
                    max_alternatives=max_alternatives,
                    centipawn_loss=analysis.centipawn_loss,
                )
            )
            logger.debug(
                "Move %d %s (%s) is a %s: lost %d cp",
                record.move_number,
                record.played_move,
                record.side,
                analysis.classification,
                analysis.centipawn_loss,
            )
            if len(puzzles) >= max_puzzles:
                logger.info("Reached %d puzzles, ignoring the rest of the game", max_puzzles)
                break

    logger.info("Generated %d puzzles", len(puzzles))
    return PuzzleReport(puzzles=tuple(puzzles))


async def analyze_pgn(pgn_text: str, evaluator: Evaluator, **options) -> GameAnalysis:
    """analyze_game() for the first game of a PGN string."""
    starting_fen, moves = read_pgn(pgn_text)
    return await analyze_game(moves, evaluator, starting_fen=starting_fen, **options)


async def generate_puzzles_from_pgn(pgn_text: str, evaluator: Evaluator, **options) -> PuzzleReport:
    """generate_puzzles() for the first game of a PGN string."""
    starting_fen, moves = read_pgn(pgn_text)
    return await generate_puzzles(moves, evaluator, starting_fen=starting_fen, **options)
