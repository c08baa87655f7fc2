"""Command line entry point for maintenance tasks.

Usage:
    python -m lostfound_ai.main backfill [--batch-size 10]
    python -m lostfound_ai.main match <item_id>
    python -m lostfound_ai.main resume [--max-attempts 3]
"""

import argparse
import asyncio
import logging
import sys

from .domain.exceptions import MatchingError
from .infrastructure.dependencies import ServiceContainer

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lostfound_ai", description="Lost & Found AI maintenance")
    commands = parser.add_subparsers(dest="command", required=True)

    backfill = commands.add_parser("backfill", help="Embed items that have no embedding")
    backfill.add_argument("--batch-size", type=int, default=10)

    match = commands.add_parser("match", help="Run matching for one item and wait for it")
    match.add_argument("item_id")

    resume = commands.add_parser("resume", help="Re-run incomplete enrichment jobs")
    resume.add_argument("--max-attempts", type=int, default=3)
    return parser


async def run(args: argparse.Namespace) -> int:
    container = ServiceContainer()
    await container.startup()
    try:
        if args.command == "backfill":
            report = await container.get_matching_service().backfill_embeddings(args.batch_size)
            print(f"Processed {report.processed}: {report.succeeded} embedded, {report.failed} failed")
            return 1 if report.failed else 0

        if args.command == "match":
            report = await container.get_matching_service().run_matching(args.item_id)
            print(f"{report.message}: {len(report.matches)} matches via {report.search_method}")
            for match in report.matches:
                print(f"  {match.candidate_id} {match.confidence}% {match.reasoning}")
            return 0

        if args.command == "resume":
            jobs = await container.get_enrichment_runner().resume_incomplete(args.max_attempts)
            await container.get_enrichment_runner().drain()
            print(f"Resumed {len(jobs)} jobs")
            return 0
    except MatchingError as e:
        logger.error(f"❌ {args.command} failed: {e}")
        return 1
    finally:
        await container.shutdown()
    return 2


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
