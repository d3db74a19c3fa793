"""Command-line entry point for WordGarden."""
import argparse
import asyncio
import sys
from datetime import UTC, date, datetime
from pathlib import Path
from typing import List, Optional

from wordgarden.app import WordGardenApp
from wordgarden.config import settings
from wordgarden.errors import SyncError
from wordgarden.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wordgarden", description="WordGarden - grow your vocabulary")
    parser.add_argument("--profile", default="default", help="Local device profile (default: default)")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add a word")
    add.add_argument("text")
    add.add_argument("--definition")
    add.add_argument("--example")

    water = sub.add_parser("water", help="Review a word and raise its growth")
    water.add_argument("text")

    delete = sub.add_parser("delete", help="Delete a word")
    delete.add_argument("text")

    sub.add_parser("water-tree", help="Water the tree (once per day)")
    sub.add_parser("study", help="Record a study action for the tree")
    sub.add_parser("plant", help="Plant a new tree once the current one is grown")

    log = sub.add_parser("log", help="Show the activity log for a day")
    log.add_argument("--day", type=date.fromisoformat, default=None, help="YYYY-MM-DD (default: today)")

    prune = sub.add_parser("prune", help="Drop old progress logs")
    prune.add_argument("--days", type=int, default=settings.sync.progress_log_retention_days)

    sub.add_parser("status", help="Show words, tree and sync status")

    sign_in = sub.add_parser("sign-in", help="Sign in to cloud sync")
    sign_in.add_argument("email")
    sign_in.add_argument("--name")
    sub.add_parser("sign-out", help="Sign out of cloud sync")

    sub.add_parser("sync", help="Merge local data with the cloud both ways")
    sub.add_parser("upload", help="Merge local data into the cloud copy")
    sub.add_parser("download", help="Merge the cloud copy into local data")

    export = sub.add_parser("export", help="Write the local snapshot as JSON")
    export.add_argument("path", nargs="?", type=Path)
    return parser


def print_status(app: WordGardenApp) -> None:
    tree = app.tree_service
    print(f"Words: {len(app.word_storage.words)}")
    for word in app.word_storage.words:
        print(f"  {word.text:<20} growth {word.growth_level}")
    print(
        f"Tree: {tree.current_phase.value} (level {tree.tree.level}, "
        f"{tree.tree.xp}/{tree.max_xp} xp), trees grown: {tree.trees_grown}"
    )
    account = app.account_service.current_account
    print(f"Signed in as: {account.email if account else '-'}")
    if account and account.last_sync_at:
        print(f"Last sync: {account.last_sync_at.isoformat()}")


def run_command(app: WordGardenApp, args: argparse.Namespace) -> int:
    storage = app.word_storage
    tree = app.tree_service

    if args.command == "add":
        word = storage.add_word(args.text, definition=args.definition, example=args.example)
        print(f"Planted '{word.text}'")
    elif args.command == "water":
        word = storage.water_word(args.text)
        tree.award_study_progress()
        print(f"'{word.text}' is now at growth level {word.growth_level}")
    elif args.command == "delete":
        if not storage.delete_word(args.text):
            print(f"'{args.text}' not found", file=sys.stderr)
            return 1
    elif args.command == "water-tree":
        if not tree.water_tree():
            print("The tree cannot be watered right now", file=sys.stderr)
            return 1
        storage.add_log_entry("Watered tree")
    elif args.command == "study":
        if tree.award_study_progress():
            storage.add_log_entry("Completed study session")
    elif args.command == "plant":
        if not tree.plant_new_tree():
            print("The tree is not fully grown yet", file=sys.stderr)
            return 1
        storage.add_log_entry("Planted new tree")
    elif args.command == "log":
        day = args.day or datetime.now(UTC).date()
        for line in storage.logs_for_day(day):
            print(line)
    elif args.command == "prune":
        print(f"Removed {tree.prune_progress_logs(days=args.days)} progress logs")
    elif args.command == "status":
        print_status(app)
    elif args.command == "sign-in":
        app.sign_in(args.email, args.name)
        print(f"Signed in as {args.email}")
    elif args.command == "sign-out":
        app.sign_out()
    elif args.command in ("sync", "upload", "download"):
        result = asyncio.run(app.sync_service.run(args.command))
        print(result.report.describe())
    elif args.command == "export":
        snapshot = app.sync_service.local_store.read_local_snapshot()
        path = args.path or settings.paths.exports_dir / f"{app.profile}-{datetime.now(UTC):%Y%m%d%H%M%S}.json"
        path.write_text(snapshot.to_json(), encoding="utf-8")
        print(f"Exported to {path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level)

    with WordGardenApp(profile=args.profile) as app:
        try:
            return run_command(app, args)
        except SyncError as e:
            print(e.user_message, file=sys.stderr)
            return 2
        except ValueError as e:
            print(str(e), file=sys.stderr)
            return 1


if __name__ == "__main__":
    sys.exit(main())
