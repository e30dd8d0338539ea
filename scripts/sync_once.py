from __future__ import annotations

import argparse
import json
import sys

from dotenv import load_dotenv

load_dotenv()

from job_copilot.app.run import build_ai_stages, load_context, sync_once
from job_copilot.app.session import SuggestionSession
from job_copilot.config.log import setup_logging
from job_copilot.config.paths import APPLICATIONS_PATH, CACHE_PATH, LOGS_DIR
from job_copilot.config.settings import Settings
from job_copilot.models import Suggestion
from job_copilot.pipeline.events import ProgressEvent
from job_copilot.storage.applications import ApplicationStore


def print_suggestion(s: Suggestion) -> None:
    marker = "AI" if s.ai_processed else "--"
    print(f"[{marker}] {s.message_id}  {s.status:<12} {s.company} / {s.role}  ({s.applied_date})")
    if s.ai_summary:
        print(f"       {s.ai_summary}")
    for item in s.ai_action_items:
        print(f"       - {item}")


def print_event(event: ProgressEvent) -> None:
    if event.type == "status":
        print(f"[SYNC] {event.message}")
    elif event.type == "error":
        print(f"[ERROR] {event.message}")


def cmd_sync(args: argparse.Namespace, settings: Settings) -> int:
    ctx = load_context()
    store = ApplicationStore(APPLICATIONS_PATH)
    session = SuggestionSession(CACHE_PATH, store, ctx.mailbox_identity)

    result = sync_once(
        ctx,
        settings=settings,
        ai=build_ai_stages(settings),
        confirmed=store,
        max_messages=args.max_messages,
        progress_cb=print_event,
    )
    if result.error:
        return 1
    if not result.connected:
        print("[INFO] Gmail isn't connected. Run the backend and connect Gmail, then sync again.")
        return 1

    suggestions = session.apply_sync(result)
    if args.debug and result.debug is not None:
        print(json.dumps(result.debug.to_dict(), indent=2))
    print(f"[INFO] {len(suggestions)} suggestions for {result.mailbox_identity}")
    for s in suggestions:
        print_suggestion(s)
    return 0


def cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    ctx = load_context()
    session = SuggestionSession(CACHE_PATH, ApplicationStore(APPLICATIONS_PATH), ctx.mailbox_identity)
    if not session.suggestions:
        print("[INFO] No pending suggestions. Run a sync first.")
        return 0
    print(f"[INFO] {len(session.suggestions)} pending suggestions (cached {session.saved_at})")
    for s in session.suggestions:
        print_suggestion(s)
    return 0


def cmd_accept(args: argparse.Namespace, settings: Settings) -> int:
    ctx = load_context()
    session = SuggestionSession(CACHE_PATH, ApplicationStore(APPLICATIONS_PATH), ctx.mailbox_identity)
    if args.command == "accept-all":
        accepted = session.accept_all()
    else:
        try:
            accepted = [session.accept(args.message_id)]
        except KeyError as exc:
            print(f"[ERROR] {exc.args[0]}")
            return 1
    for app in accepted:
        print(f"[ACCEPT] {app.id} {app.status} {app.company} / {app.role}")
    print(f"[INFO] {len(session.suggestions)} suggestions left")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Turn job-application emails into tracked applications.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_sync = sub.add_parser("sync", help="Scan recent Gmail messages for job applications.")
    p_sync.add_argument("--max-messages", dest="max_messages", type=int, default=None)
    p_sync.add_argument("--debug", action="store_true", help="Print per-stage counters.")
    p_sync.set_defaults(func=cmd_sync)

    p_list = sub.add_parser("list", help="Show cached suggestions.")
    p_list.set_defaults(func=cmd_list)

    p_accept = sub.add_parser("accept", help="Accept a suggestion by Gmail message id.")
    p_accept.add_argument("message_id")
    p_accept.set_defaults(func=cmd_accept)

    p_accept_all = sub.add_parser("accept-all", help="Accept every pending suggestion.")
    p_accept_all.set_defaults(func=cmd_accept)

    args = parser.parse_args()
    settings = Settings.from_env()
    setup_logging(settings.log_level, LOGS_DIR)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
