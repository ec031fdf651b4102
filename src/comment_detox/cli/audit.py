"""
Command-line interface for auditing a comment history.

Usage:
    # Save the Perspective API key
    comment-detox set-key AIzaSy...

    # Audit the comments currently rendered on the activity page
    comment-detox audit

    # Keep scrolling until the whole history is audited, then review
    comment-detox audit --continuous --review

    # Write flagged comments as JSON lines
    comment-detox audit --continuous --output flagged.jsonl

    # Run the control API
    comment-detox serve
"""

import argparse
import json
import signal
import sys
from pathlib import Path
from typing import Callable, List, Optional, TextIO

import structlog

from ..audit.orchestrator import AuditOrchestrator
from ..browser import open_activity_page
from ..classification.perspective_client import create_classification_client
from ..credentials import CredentialStore, FileCredentialStore
from ..errors import MissingCredential
from ..extraction.host_page import HostPage
from ..logging_config import setup_logging
from ..models.audit import AuditMode, AuditSnapshot, FlaggedItem


logger = structlog.get_logger(__name__)


# ============================================================================
# CLI FUNCTIONS
# ============================================================================

def print_progress(snapshot: AuditSnapshot, stream: TextIO = sys.stderr) -> None:
    """One-line progress display, rewritten in place."""
    position = ""
    if snapshot.batch_size:
        position = f" {snapshot.batch_position}/{snapshot.batch_size}"
    stream.write(
        f"\r[{snapshot.phase.value}{position}] scanned={snapshot.scanned_count} "
        f"flagged={snapshot.flagged_count} {snapshot.status:<40}"
    )
    stream.flush()


def run_audit(
    page: HostPage,
    credential_store: CredentialStore,
    mode: AuditMode,
    verbose: bool = False,
) -> AuditOrchestrator:
    """
    Run one audit in the foreground; Ctrl+C requests a cooperative stop.

    Returns:
        The orchestrator, holding the flagged items

    Raises:
        MissingCredential: No API key saved
    """
    orchestrator = AuditOrchestrator(
        page=page,
        credential_store=credential_store,
        client=create_classification_client(),
    )
    if verbose:
        orchestrator.subscribe(print_progress)

    previous_handler = signal.signal(
        signal.SIGINT, lambda signum, frame: orchestrator.request_stop()
    )
    try:
        orchestrator.run(mode)
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        orchestrator.client.close()
        if verbose:
            sys.stderr.write("\n")

    return orchestrator


def review_flagged(
    orchestrator: AuditOrchestrator,
    ask: Callable[[str], str] = input,
    out: TextIO = sys.stdout,
) -> dict:
    """
    Prompt delete / ignore / quit for every flagged item.

    Returns:
        Counts of deleted and ignored items
    """
    deleted = ignored = 0

    for item in orchestrator.flagged_items():
        labels = ", ".join(sorted(label.value for label in item.labels))
        out.write(f'\n[{labels}] "{item.candidate.text}"\n')
        answer = ask("Delete permanently? [d]elete / [i]gnore / [q]uit: ").strip().lower()

        if answer.startswith("q"):
            break
        orchestrator.remove_flagged(item.item_id)
        if answer.startswith("d"):
            item.candidate.deletion_handle.click()
            logger.info("item_deleted", item_id=item.item_id)
            deleted += 1
        else:
            ignored += 1

    return {"deleted": deleted, "ignored": ignored}


def write_output(items: List[FlaggedItem], output_path: Optional[Path]) -> None:
    """
    Write flagged items as JSON lines.

    Args:
        items: Flagged items
        output_path: Output file path (default: stdout)
    """
    lines = [json.dumps(item.to_view().model_dump(), ensure_ascii=False) for item in items]

    if not output_path:
        for line in lines:
            print(line)
        return

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")

    logger.info("output_written", path=str(output_path), count=len(lines))


def cmd_audit(args: argparse.Namespace) -> int:
    store = FileCredentialStore()
    if not store.get():
        print(
            "Error: Perspective API key missing. Save one with: comment-detox set-key <KEY>",
            file=sys.stderr,
        )
        return 1

    page = open_activity_page(headless=args.headless or None)
    try:
        if args.wait_for_login:
            input("Log in to your Google account in the browser window, then press Enter...")

        mode = AuditMode.CONTINUOUS if args.continuous else AuditMode.SINGLE_PASS
        orchestrator = run_audit(page, store, mode, verbose=args.verbose)
        snapshot = orchestrator.snapshot()

        print(
            f"Audit {snapshot.status}: scanned {snapshot.scanned_count}, "
            f"flagged {snapshot.flagged_count}",
            file=sys.stderr,
        )

        write_output(orchestrator.flagged_items(), Path(args.output) if args.output else None)

        if args.review:
            counts = review_flagged(orchestrator)
            print(
                f"Deleted {counts['deleted']}, ignored {counts['ignored']}",
                file=sys.stderr,
            )
        return 0

    except MissingCredential as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        page.close()


def cmd_set_key(args: argparse.Namespace) -> int:
    key = args.key.strip()
    if not key:
        print("Error: API key is blank", file=sys.stderr)
        return 1
    FileCredentialStore().set(key)
    print("Saved!", file=sys.stderr)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from ..api.app import main as serve_main

    serve_main()
    return 0


# ============================================================================
# MAIN CLI
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="comment-detox",
        description="Audit your YouTube comment history for toxic comments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s set-key AIzaSy...
  %(prog)s audit
  %(prog)s audit --continuous --review
  %(prog)s audit --continuous --output flagged.jsonl
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    audit_parser = subparsers.add_parser("audit", help="Audit the activity page")
    audit_parser.add_argument(
        "--continuous",
        "-c",
        action="store_true",
        help="Keep scrolling until the end of the history (infinite mode)",
    )
    audit_parser.add_argument(
        "--review",
        "-r",
        action="store_true",
        help="Prompt delete/ignore for each flagged comment after the audit",
    )
    audit_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Write flagged comments as JSON lines (default: stdout)",
    )
    audit_parser.add_argument(
        "--wait-for-login",
        action="store_true",
        help="Pause after opening the page so you can log in",
    )
    audit_parser.add_argument(
        "--headless",
        action="store_true",
        help="Run the browser without a window (requires a logged-in profile)",
    )
    audit_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show live progress",
    )
    audit_parser.set_defaults(func=cmd_audit)

    key_parser = subparsers.add_parser("set-key", help="Save the Perspective API key")
    key_parser.add_argument("key", type=str, help="Perspective API key")
    key_parser.set_defaults(func=cmd_set_key)

    serve_parser = subparsers.add_parser("serve", help="Run the control API")
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    setup_logging()
    args = build_parser().parse_args(argv)

    try:
        return args.func(args)
    except Exception as e:
        logger.error("cli_failed", error=str(e), exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
