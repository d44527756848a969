"""UCI engine driver for move-quality evaluation.

Drives Stockfish (or any UCI engine) through python-chess's asyncio
engine layer. Provides:
- Stockfish auto-detection
- One fresh engine process per evaluation, killed on every exit path
- A ceiling on concurrently live engine processes
- A wall-clock timeout per evaluation
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shutil
from pathlib import Path

import chess
import chess.engine

from puzzlegen.config import (
    DEFAULT_DEPTH,
    DEFAULT_ENGINE_TIMEOUT,
    DEFAULT_MAX_ENGINES,
    Settings,
)
from puzzlegen.errors import EngineTimeout, EngineUnavailable

logger = logging.getLogger(__name__)

# Stockfish search paths in priority order
_STOCKFISH_PATHS = [
    "/opt/homebrew/bin/stockfish",
    "/usr/local/bin/stockfish",
    "/usr/bin/stockfish",
    "/usr/games/stockfish",
]

MATE_SCORE = 10000


def find_stockfish(explicit: str | None = None) -> str:
    """Auto-detect Stockfish binary path.

    Checks the explicit path first, then known install paths, then
    falls back to PATH lookup.

    Args:
        explicit: Path configured by the caller, used as-is when given.

    Returns:
        Path to Stockfish binary.

    Raises:
        FileNotFoundError: If Stockfish is not found anywhere.
    """
    if explicit:
        return explicit

    for path_str in _STOCKFISH_PATHS:
        if Path(path_str).is_file():
            return path_str

    which_result = shutil.which("stockfish")
    if which_result is not None:
        return which_result

    raise FileNotFoundError(
        "Stockfish not found. Install it or set PUZZLEGEN_STOCKFISH_PATH."
    )


async def _last_score(
    protocol: chess.engine.UciProtocol,
    board: chess.Board,
    depth: int,
) -> int:
    """Run a depth-limited search and return the last reported score.

    Scores are converted from the side-to-move view UCI uses to White's
    point of view. A search that reports no score yields 0.
    """
    score = 0
    with await protocol.analysis(board, chess.engine.Limit(depth=depth)) as analysis:
        async for info in analysis:
            pov = info.get("score")
            if pov is not None:
                score = pov.white().score(mate_score=MATE_SCORE)
        # Surfaces an engine that died before sending bestmove
        await analysis.wait()
    return score


async def _shutdown(
    transport: asyncio.SubprocessTransport,
    protocol: chess.engine.UciProtocol,
) -> None:
    """Kill the engine process and wait until it has exited."""
    if transport.get_returncode() is None:
        with contextlib.suppress(ProcessLookupError):
            transport.kill()
    try:
        # Exit must be observed before close(), which would reap it itself
        await asyncio.shield(protocol.returncode)
    finally:
        transport.close()


class EngineDriver:
    """Evaluates positions with short-lived UCI engine processes."""

    def __init__(
        self,
        command: str | list[str] | None = None,
        *,
        timeout: float = DEFAULT_ENGINE_TIMEOUT,
        max_concurrency: int = DEFAULT_MAX_ENGINES,
        default_depth: int = DEFAULT_DEPTH,
    ) -> None:
        """Initialize the driver.

        No process is started here; each evaluate() call owns its own.

        Args:
            command: Engine executable, or an argv list. If None,
                auto-detects Stockfish from known locations.
            timeout: Wall-clock budget in seconds for one evaluation.
            max_concurrency: Ceiling on concurrently live engine processes.
            default_depth: Search depth used when evaluate() gets none.

        Raises:
            FileNotFoundError: If no command is given and Stockfish is not found.
            ValueError: If a limit is not positive.
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        if default_depth < 1:
            raise ValueError(f"default_depth must be >= 1, got {default_depth}")

        self._command = command or find_stockfish()
        self._timeout = timeout
        self._max_concurrency = max_concurrency
        self._default_depth = default_depth
        self._slots = asyncio.Semaphore(max_concurrency)
        self._active = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> EngineDriver:
        """Build a driver from a Settings instance."""
        return cls(
            find_stockfish(settings.stockfish_path),
            timeout=settings.engine_timeout,
            max_concurrency=settings.max_engines,
            default_depth=settings.depth,
        )

    @property
    def command(self) -> str | list[str]:
        return self._command

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def default_depth(self) -> int:
        return self._default_depth

    @property
    def active_processes(self) -> int:
        """Number of engine processes currently alive."""
        return self._active

    async def evaluate(self, fen: str, depth: int | None = None) -> int:
        """Evaluate a position in centipawns from White's point of view.

        Args:
            fen: Position to evaluate.
            depth: Search depth (defaults to the driver's default depth).

        Returns:
            Last centipawn score the engine reported, 0 if it reported none.
            Mate scores are folded in as +/- MATE_SCORE.

        Raises:
            ValueError: If the FEN is invalid or depth is not positive.
            EngineUnavailable: If the engine could not be started or died.
            EngineTimeout: If the search did not finish within the timeout.
        """
        if depth is None:
            depth = self._default_depth
        if depth < 1:
            raise ValueError(f"depth must be >= 1, got {depth}")
        board = chess.Board(fen)

        async with self._slots:
            try:
                score = await asyncio.wait_for(
                    self._search(board, depth), timeout=self._timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Engine timed out after %.1fs (depth %d): %s", self._timeout, depth, fen
                )
                raise EngineTimeout(self._timeout, fen) from None

        logger.debug("Evaluated %s at depth %d: %+d", fen, depth, score)
        return score

    async def _search(self, board: chess.Board, depth: int) -> int:
        """Spawn one engine, search, and tear it down."""
        try:
            transport, protocol = await chess.engine.popen_uci(self._command)
        except (OSError, chess.engine.EngineError) as exc:
            logger.error("Could not start engine %r: %s", self._command, exc)
            raise EngineUnavailable(f"Could not start engine {self._command!r}: {exc}") from exc

        self._active += 1
        try:
            return await _last_score(protocol, board, depth)
        except chess.engine.EngineError as exc:
            logger.error("Engine failed during search: %s", exc)
            raise EngineUnavailable(f"Engine failed during search: {exc}") from exc
        finally:
            try:
                await _shutdown(transport, protocol)
            finally:
                self._active -= 1
