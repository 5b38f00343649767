"""PainPoint command line.

Runs the HTTP API, the background worker, and one-off maintenance tasks.

Usage:
  # Serve the API
  python painpoint.py serve --port 8000

  # Run the worker (all queues, polling forever)
  python painpoint.py worker

  # Drain one batch from a single queue and exit
  python painpoint.py worker --queue transcribe --once

  # Give a new user the default industry and role lists
  python painpoint.py seed-defaults --user-id <uuid>

  # Analyze one transcript inline, without the queue
  python painpoint.py analyze --user-id <uuid> --meeting-id <uuid> --transcript-id <uuid>

  # Re-cluster a user's pain points
  python painpoint.py cluster --user-id <uuid> --force
"""
import argparse
import asyncio
import logging
import os
import sys
from uuid import UUID

from llm_init import init_llm

import db.repositories.user_settings as settings_repo
from db.connection import dispose_engine, get_db
from db.repositories.jobs import QUEUES
from workers import handle_analyze_common_pain_points, handle_analyze_transcript, run_worker

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


async def _with_engine(coro):
    try:
        return await coro
    finally:
        await dispose_engine()


async def run_seed_defaults(user_id: UUID) -> dict:
    async with get_db() as session:
        counts = await settings_repo.seed_defaults(session, user_id)
    print(f"  Added {counts['industries']} industries and {counts['roles']} roles")
    return counts


async def run_analyze(user_id: UUID, meeting_id: UUID, transcript_id: UUID) -> dict:
    print(f"\nAnalyzing transcript {transcript_id} for meeting {meeting_id}...")
    result = await handle_analyze_transcript(
        {"transcriptId": transcript_id, "meetingId": meeting_id, "userId": user_id}
    )
    if result.get("skipped"):
        print("  Skipped: missing parameters")
    else:
        print(f"  Saved {result['pain_points']} pain points ({result['model']})")
    return result


async def run_cluster(user_id: UUID, force: bool) -> dict:
    print(f"\nClustering pain points for user {user_id}...")
    result = await handle_analyze_common_pain_points({"userId": user_id, "forceRefresh": force})
    if result.get("skipped"):
        print("  Clusters are up to date. Use --force to re-run.")
    else:
        print(f"  Stored {result['clusters']} clusters")
    return result


async def run_worker_command(queues: list[str], once: bool) -> int:
    print(f"\nWorker polling {', '.join(queues)}{' (single batch)' if once else ''}...")
    processed = await run_worker(queues=queues, once=once)
    print(f"  Processed {processed} jobs")
    return processed


def _serve(host: str, port: int, reload: bool) -> None:
    import uvicorn

    uvicorn.run("api.app:create_app", factory=True, host=host, port=port, reload=reload)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PainPoint meeting insights")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=os.environ.get("HOST", "0.0.0.0"))
    serve.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")))
    serve.add_argument("--reload", action="store_true", default=False)

    worker = sub.add_parser("worker", help="Process queued background jobs")
    worker.add_argument(
        "--queue",
        action="append",
        choices=QUEUES,
        help="Queue to poll (repeatable; default: all)",
    )
    worker.add_argument("--once", action="store_true", default=False, help="Process one batch and exit")

    seed = sub.add_parser("seed-defaults", help="Seed default industries and roles for a user")
    seed.add_argument("--user-id", required=True, type=UUID)

    analyze = sub.add_parser("analyze", help="Analyze one transcript inline")
    analyze.add_argument("--user-id", required=True, type=UUID)
    analyze.add_argument("--meeting-id", required=True, type=UUID)
    analyze.add_argument("--transcript-id", required=True, type=UUID)

    cluster = sub.add_parser("cluster", help="Cluster a user's pain points")
    cluster.add_argument("--user-id", required=True, type=UUID)
    cluster.add_argument("--force", action="store_true", default=False, help="Ignore the cached result")

    return parser


def main(argv=None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging()

    if args.command == "serve":
        _serve(args.host, args.port, args.reload)
        return 0

    if args.command is None:
        parser.print_help()
        return 1

    init_llm()

    if args.command == "worker":
        asyncio.run(_with_engine(run_worker_command(args.queue or list(QUEUES), args.once)))
    elif args.command == "seed-defaults":
        asyncio.run(_with_engine(run_seed_defaults(args.user_id)))
    elif args.command == "analyze":
        asyncio.run(_with_engine(run_analyze(args.user_id, args.meeting_id, args.transcript_id)))
    elif args.command == "cluster":
        asyncio.run(_with_engine(run_cluster(args.user_id, args.force)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
