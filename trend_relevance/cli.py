"""
Command-line entry point for trend_relevance.

Provides:
- ``init-db``: create the SQLite reference store schema
- ``run``: score the organization × candidate cross product (dry-run by default)
- ``explain``: print stored explanations for one organization
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from trend_relevance.config import get_relevance_db, load_run_config
from trend_relevance.errors import RelevanceError
from trend_relevance.logging import setup_structured_logging
from trend_relevance.pipeline import RelevancePipeline
from trend_relevance.scoring.explain import format_explanation_text
from trend_relevance.store.sqlite_store import SQLiteRelevanceStore

logger = logging.getLogger(__name__)


def setup_logging(
    command: str,
    execute: bool = False,
    log_dir: Optional[Path] = None,
    json_logs: bool = False,
    verbose: bool = False,
) -> logging.Logger:
    """
    Set up logging for a CLI command.

    Args:
        command: Subcommand name (for log file naming)
        execute: If True and log_dir is given, also log to a file
        log_dir: Directory for log files
        json_logs: Write the log file as JSON lines
        verbose: Log at DEBUG level

    Returns:
        Configured package logger
    """
    return setup_structured_logging(
        f"trend_relevance_{command}",
        level=logging.DEBUG if verbose else logging.INFO,
        log_dir=log_dir if execute else None,
        json_output=json_logs,
    )


def add_execute_argument(parser: argparse.ArgumentParser) -> None:
    """
    Add standard --execute argument to an ArgumentParser.

    Args:
        parser: argparse.ArgumentParser instance
    """
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Actually write scores and alerts (default is dry-run)",
    )


def print_dry_run_header(title: str, log: Optional[logging.Logger] = None) -> None:
    log = log or logger
    log.info("=" * 70)
    log.info(f"{title} (Dry Run)")
    log.info("=" * 70)


def print_execute_header(title: str, log: Optional[logging.Logger] = None) -> None:
    log = log or logger
    log.info("=" * 70)
    log.info(title)
    log.info("=" * 70)


def cmd_init_db(args: argparse.Namespace) -> int:
    db_path = Path(args.db) if args.db else get_relevance_db()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with SQLiteRelevanceStore(db_path):
        pass
    logger.info(f"✓ Initialized relevance store at {db_path}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    db_path = Path(args.db) if args.db else get_relevance_db()
    if not db_path.exists():
        logger.error(f"✗ Relevance store not found: {db_path} (run init-db first)")
        return 1

    config = load_run_config()
    if args.workers is not None:
        config = replace(config, max_workers=max(1, args.workers))

    title = "Trend Relevance Run"
    if args.execute:
        print_execute_header(title)
    else:
        print_dry_run_header(title)

    with SQLiteRelevanceStore(db_path) as store:
        pipeline = RelevancePipeline(
            store,
            config=config,
            enable_outcomes=not args.no_outcomes,
            execute=args.execute,
            show_progress=args.progress,
        )
        summary = pipeline.run()

    logger.info("")
    for key, value in summary.to_dict().items():
        logger.info(f"  {key:<26} {value}")
    if not args.execute:
        logger.info("")
        logger.info("Dry run: nothing written. Re-run with --execute to persist.")
    return 0


def cmd_explain(args: argparse.Namespace) -> int:
    db_path = Path(args.db) if args.db else get_relevance_db()
    if not db_path.exists():
        logger.error(f"✗ Relevance store not found: {db_path} (run init-db first)")
        return 1

    with SQLiteRelevanceStore(db_path, create_schema=False) as store:
        rows = store.fetch_scores(args.org)

    rows.sort(key=lambda r: (-r["relevance_score"], r["trend_key"]))
    if not rows:
        logger.info(f"No stored scores for organization {args.org}")
        return 0

    for row in rows[: args.limit]:
        print(
            format_explanation_text(
                row["explanation"],
                title=row["trend_key"],
                relevance_score=row["relevance_score"],
                priority_bucket=row["priority_bucket"],
            )
        )
        print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trend-relevance",
        description="Score trending topics against organization interest profiles",
    )
    parser.add_argument("--db", help="Path to the SQLite store (default: RELEVANCE_DB_PATH)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init-db", help="Create the store schema")
    init_parser.set_defaults(func=cmd_init_db)

    run_parser = subparsers.add_parser("run", help="Run one relevance batch")
    add_execute_argument(run_parser)
    run_parser.add_argument("--workers", type=int, help="Worker threads (1 = sequential)")
    run_parser.add_argument("--log-dir", type=Path, default=Path("logs"), help="Log directory")
    run_parser.add_argument("--json-logs", action="store_true", help="JSON log file output")
    run_parser.add_argument("--no-outcomes", action="store_true", help="Disable outcome learning")
    run_parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    run_parser.set_defaults(func=cmd_run)

    explain_parser = subparsers.add_parser("explain", help="Print stored explanations")
    explain_parser.add_argument("--org", required=True, help="Organization id")
    explain_parser.add_argument("--limit", type=int, default=10, help="Max trends to show")
    explain_parser.set_defaults(func=cmd_explain)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the trend-relevance command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        args.command.replace("-", "_"),
        execute=getattr(args, "execute", False),
        log_dir=getattr(args, "log_dir", None),
        json_logs=getattr(args, "json_logs", False),
        verbose=args.verbose,
    )

    try:
        return args.func(args)
    except RelevanceError as e:
        logger.error(f"✗ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
