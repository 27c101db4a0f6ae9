"""Main entry point for the resume pipeline."""

import argparse
import asyncio
import json
import sqlite3
import sys
from pathlib import Path

from resume_pipeline import __version__
from resume_pipeline.accounts.models import Plan
from resume_pipeline.config.settings import QueueBackend, Settings
from resume_pipeline.parsing.parser import guess_mime_type
from resume_pipeline.pipeline.app import PipelineApp, build_app
from resume_pipeline.pipeline.errors import PipelineError
from resume_pipeline.pipeline.worker import run_workers
from resume_pipeline.utils.logging import configure_logging


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError("value must be a positive integer")
    return number


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="resume-pipeline",
        description="Resume upload and optimisation pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m resume_pipeline init-db
  python -m resume_pipeline add-user me@example.com --plan pro --credits 5
  python -m resume_pipeline upload <user-id> resume.pdf
  python -m resume_pipeline submit <user-id> resume.docx --process
  python -m resume_pipeline worker --concurrency 4
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the log level (overrides settings)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands",
    )

    subparsers.add_parser("init-db", help="Create the database schema")

    add_user_parser = subparsers.add_parser("add-user", help="Create a user")
    add_user_parser.add_argument("email", help="Email address of the user")
    add_user_parser.add_argument(
        "--plan",
        choices=[plan.value for plan in Plan],
        default=Plan.FREE.value,
        help="Subscription plan (default: free)",
    )
    add_user_parser.add_argument(
        "--credits",
        type=int,
        default=None,
        help="Initial credits (default: DEFAULT_CREDITS setting)",
    )

    credits_parser = subparsers.add_parser(
        "credits", help="Show or grant a user's credits"
    )
    credits_parser.add_argument("user_id", help="User id")
    credits_parser.add_argument(
        "--grant",
        type=_positive_int,
        default=None,
        help="Add this many credits before showing the balance",
    )

    upload_parser = subparsers.add_parser(
        "upload", help="Upload a resume and optimise it inline"
    )
    upload_parser.add_argument("user_id", help="Uploading user id")
    upload_parser.add_argument("file", type=Path, help="Resume file (PDF, DOCX, TXT)")
    upload_parser.add_argument(
        "--mime-type",
        default=None,
        help="MIME type of the file (guessed from the extension by default)",
    )

    submit_parser = subparsers.add_parser(
        "submit", help="Store a resume and queue it for the worker"
    )
    submit_parser.add_argument("user_id", help="Uploading user id")
    submit_parser.add_argument("file", type=Path, help="Resume file (PDF, DOCX, TXT)")
    submit_parser.add_argument(
        "--process",
        action="store_true",
        help="Drain the queue in this process after submitting",
    )

    presign_parser = subparsers.add_parser(
        "presign", help="Issue a presigned upload URL"
    )
    presign_parser.add_argument("user_id", help="Uploading user id")
    presign_parser.add_argument("filename", help="Client file name")
    presign_parser.add_argument(
        "--content-type",
        default=None,
        help="Content type (guessed from the file name by default)",
    )

    worker_parser = subparsers.add_parser("worker", help="Run the queue worker")
    worker_parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=None,
        help="Number of worker loops (default: WORKER_CONCURRENCY setting)",
    )
    worker_parser.add_argument(
        "--once",
        action="store_true",
        help="Process queued jobs until the queue is empty, then exit",
    )

    show_parser = subparsers.add_parser("show", help="Show a resume")
    show_parser.add_argument("resume_id", help="Resume id")
    show_parser.add_argument("--viewer", required=True, help="Viewing user id")
    show_parser.add_argument(
        "--full",
        action="store_true",
        help="Include improved text regardless of plan",
    )

    list_parser = subparsers.add_parser("list", help="List a user's resumes")
    list_parser.add_argument("user_id", help="User id")

    delete_parser = subparsers.add_parser("delete", help="Delete a resume (admin)")
    delete_parser.add_argument("resume_id", help="Resume id")
    delete_parser.add_argument("--actor", required=True, help="Admin user id")

    return parser


async def _run_command(app: PipelineApp, parsed: argparse.Namespace) -> int:
    settings = app.settings
    orchestrator = app.orchestrator

    if parsed.command == "init-db":
        print(f"Initialized database at {settings.database_path}")
        return 0

    if parsed.command == "add-user":
        credits = settings.default_credits if parsed.credits is None else parsed.credits
        user = await app.users.create_user(
            parsed.email, plan=Plan(parsed.plan), credits=credits
        )
        _print_json(user.to_dict())
        return 0

    if parsed.command == "credits":
        if parsed.grant:
            await app.ledger.grant(parsed.user_id, parsed.grant)
        balance = await app.ledger.balance(parsed.user_id)
        if balance is None:
            print("User not found", file=sys.stderr)
            return 1
        print(balance)
        return 0

    if parsed.command == "upload":
        data = parsed.file.read_bytes()
        mime_type = parsed.mime_type or guess_mime_type(parsed.file.name)
        outcome = await orchestrator.upload_direct(
            parsed.user_id, data, parsed.file.name, mime_type
        )
        _print_json(outcome.to_dict())
        return 0

    if parsed.command == "submit":
        data = parsed.file.read_bytes()
        presigned = await orchestrator.presign_upload(
            parsed.user_id, parsed.file.name, guess_mime_type(parsed.file.name)
        )
        await app.object_store.put_presigned(
            presigned.url, presigned.content_type, data
        )
        outcome = await orchestrator.complete_upload(
            parsed.user_id, presigned.key, parsed.file.name
        )
        _print_json(outcome.to_dict())
        if parsed.process:
            await app.create_worker().drain()
            view = await orchestrator.get_resume(outcome.resume_id, parsed.user_id)
            _print_json(view.to_dict())
        elif settings.queue_backend == QueueBackend.MEMORY:
            print(
                "Note: the in-memory queue is not shared between processes; "
                "use --process or QUEUE_BACKEND=redis.",
                file=sys.stderr,
            )
        return 0

    if parsed.command == "presign":
        content_type = parsed.content_type or guess_mime_type(parsed.filename)
        presigned = await orchestrator.presign_upload(
            parsed.user_id, parsed.filename, content_type
        )
        _print_json(presigned.to_dict())
        return 0

    if parsed.command == "worker":
        if parsed.once:
            stats = await app.create_worker().drain()
            print(
                f"processed={stats.processed} completed={stats.completed} "
                f"failed={stats.failed} skipped={stats.skipped} "
                f"waiting={stats.waiting}"
            )
            return 0

        concurrency = parsed.concurrency or settings.worker_concurrency
        workers = [
            app.create_worker(name=f"worker-{index}")
            for index in range(1, concurrency + 1)
        ]
        await run_workers(workers)
        return 0

    if parsed.command == "show":
        view = await orchestrator.get_resume(
            parsed.resume_id,
            parsed.viewer,
            include_improved_text=True if parsed.full else None,
        )
        _print_json(view.to_dict())
        return 0

    if parsed.command == "list":
        views = await orchestrator.list_resumes(parsed.user_id)
        for view in views:
            print(
                f"{view.created_at.isoformat()} {view.status.value} {view.id} "
                f"{view.file_name} ats={view.ats_score}"
            )
        return 0

    if parsed.command == "delete":
        await orchestrator.delete_resume(parsed.resume_id, parsed.actor)
        print("ok")
        return 0

    print(f"Unknown command: {parsed.command}", file=sys.stderr)
    return 1


async def _run(settings: Settings, parsed: argparse.Namespace) -> int:
    app = await build_app(settings)
    try:
        return await _run_command(app, parsed)
    finally:
        await app.close()


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    # Load settings
    try:
        settings = Settings()
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Configure logging
    log_level = parsed.log_level or settings.log_level
    logger = configure_logging(level=log_level)

    # If no command specified, show help
    if parsed.command is None:
        parser.print_help()
        return 0

    logger.info("resume-pipeline v%s running %s", __version__, parsed.command)

    try:
        return asyncio.run(_run(settings, parsed))
    except PipelineError as e:
        print(f"Error ({e.code}): {e.message}", file=sys.stderr)
        return 1
    except FileNotFoundError as e:
        print(f"Error: file not found: {e.filename}", file=sys.stderr)
        return 1
    except sqlite3.IntegrityError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
