"""Command line interface for puzzle generation.

Usage:
    puzzlegen puzzles game.pgn                  # puzzles from both sides
    puzzlegen puzzles game.pgn --color white    # only White's mistakes
    puzzlegen analyze game.pgn --json           # mistakes as JSON
    puzzlegen eval "<fen>" --depth 16           # single position
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from puzzlegen import pipeline
from puzzlegen.config import Settings
from puzzlegen.engine import EngineDriver
from puzzlegen.errors import PuzzleGenError
from puzzlegen.models import GameAnalysis, PuzzleReport
from puzzlegen.payloads import game_analysis_payload, puzzle_report_payload

logger = logging.getLogger("puzzlegen")

_DIFFICULTY_STYLES = {"easy": "green", "medium": "yellow", "hard": "red"}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _read_pgn_file(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _render_puzzles(console: Console, report: PuzzleReport) -> None:
    """Print the puzzles of a report as a Rich table."""
    if not report.puzzles:
        console.print("No inaccuracies, mistakes or blunders found.")
        return

    table = Table(title=f"{report.puzzles_generated} puzzles")
    table.add_column("#", justify="right")
    table.add_column("Move", justify="right")
    table.add_column("Side")
    table.add_column("Played")
    table.add_column("Type")
    table.add_column("Loss", justify="right")
    table.add_column("Difficulty")
    table.add_column("Alternatives")
    table.add_column("FEN", overflow="fold")

    for puzzle in report.puzzles:
        style = _DIFFICULTY_STYLES.get(puzzle.difficulty, "")
        table.add_row(
            str(puzzle.id),
            str(puzzle.move_number),
            puzzle.side,
            puzzle.blunder_move,
            puzzle.classification,
            str(puzzle.centipawn_loss),
            f"[{style}]{puzzle.difficulty}[/{style}]" if style else puzzle.difficulty,
            ", ".join(puzzle.alternative_moves),
            puzzle.start_position,
        )
    console.print(table)


def _render_analysis(console: Console, analysis: GameAnalysis) -> None:
    """Print the flagged moves of a game analysis as a Rich table."""
    mistakes = analysis.mistakes
    console.print(f"Analysed {len(analysis.analyses)} of {analysis.total_moves} moves.")
    if not mistakes:
        console.print("No inaccuracies, mistakes or blunders found.")
        return

    table = Table(title=f"{len(mistakes)} mistakes")
    table.add_column("Move", justify="right")
    table.add_column("Side")
    table.add_column("Played")
    table.add_column("Type")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")
    table.add_column("Loss", justify="right")

    for item in mistakes:
        record = item.record
        table.add_row(
            str(record.move_number),
            record.side,
            record.played_move,
            item.classification,
            f"{item.eval_before / 100.0:+.2f}",
            f"{item.eval_after / 100.0:+.2f}",
            str(item.centipawn_loss),
        )
    console.print(table)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="puzzlegen",
        description="Turn the mistakes of a finished chess game into puzzles",
    )
    parser.add_argument("--stockfish", help="Path to the Stockfish binary")
    parser.add_argument("--timeout", type=float, help="Seconds allowed per evaluation")
    parser.add_argument("--max-engines", type=int, help="Maximum concurrent engine processes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    puzzles_parser = subparsers.add_parser("puzzles", help="Generate puzzles from a PGN file")
    puzzles_parser.add_argument("pgn_file", help="PGN file ('-' for stdin)")
    puzzles_parser.add_argument("--color", choices=["white", "black"], help="Only this side's moves")
    puzzles_parser.add_argument("--depth", type=int, help="Engine search depth")
    puzzles_parser.add_argument("--max-puzzles", type=int, help="Maximum puzzles to generate")
    puzzles_parser.add_argument("--json", action="store_true", help="Print the JSON payload")

    analyze_parser = subparsers.add_parser("analyze", help="List the mistakes of a PGN file")
    analyze_parser.add_argument("pgn_file", help="PGN file ('-' for stdin)")
    analyze_parser.add_argument("--color", choices=["white", "black"], help="Only this side's moves")
    analyze_parser.add_argument("--depth", type=int, help="Engine search depth")
    analyze_parser.add_argument("--json", action="store_true", help="Print the JSON payload")

    eval_parser = subparsers.add_parser("eval", help="Evaluate a FEN position")
    eval_parser.add_argument("fen", help="FEN string to evaluate")
    eval_parser.add_argument("--depth", type=int, help="Engine search depth")

    return parser


async def _run(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    driver = EngineDriver.from_settings(settings)

    if args.command == "eval":
        score = await driver.evaluate(args.fen, settings.depth)
        console.print(f"{score / 100.0:+.2f}  ({score} cp, depth {settings.depth})")
        return

    pgn_text = _read_pgn_file(args.pgn_file)
    options = {
        "player_color": args.color,
        "depth": settings.depth,
        "lookahead": settings.max_engines,
    }

    if args.command == "puzzles":
        report = await pipeline.generate_puzzles_from_pgn(
            pgn_text,
            driver,
            max_puzzles=settings.max_puzzles,
            max_alternatives=settings.max_alternatives,
            **options,
        )
        if args.json:
            print(json.dumps(puzzle_report_payload(report), indent=2))
        else:
            _render_puzzles(console, report)
    else:
        analysis = await pipeline.analyze_pgn(pgn_text, driver, **options)
        if args.json:
            print(json.dumps(game_analysis_payload(analysis), indent=2))
        else:
            _render_analysis(console, analysis)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for puzzlegen."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    _configure_logging(args.verbose)
    console = Console()

    try:
        settings = Settings.from_env().override(
            stockfish_path=args.stockfish,
            engine_timeout=args.timeout,
            max_engines=args.max_engines,
            depth=getattr(args, "depth", None),
            max_puzzles=getattr(args, "max_puzzles", None),
        )
        asyncio.run(_run(args, settings, console))
    except (PuzzleGenError, ValueError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
