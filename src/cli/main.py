"""Pitchstore CLI entry points.
This module exposes ingest and session inspection commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Sequence

from core.config import PitchStoreConfig
from core.errors import PitchStoreError
from core.logging_config import configure_logging
from store.session_sdk import PitchStoreClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="pitchstore", description="Pitch session store CLI")
    parser.add_argument("--data-root", help="Override PITCHSTORE_DATA_ROOT for this command")
    parser.add_argument(
        "--user",
        help="Owning user id; defaults to LOCAL_DEV_USER_ID",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_ingest_command(subparsers)
    _add_sessions_command(subparsers)
    _add_show_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the pitchstore CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root)
        configure_logging(client.config.log_level)
        user_id = args.user or client.config.local_dev_user_id
        if not user_id:
            parser.error("--user is required when LOCAL_DEV_USER_ID is not set")
        if args.command == "ingest":
            return _run_ingest_command(client, user_id, args)
        if args.command == "sessions":
            return _run_sessions_command(client, user_id)
        if args.command == "show":
            return _run_show_command(client, user_id, args)
    except PitchStoreError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None) -> PitchStoreClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = PitchStoreConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return PitchStoreClient(config)


def _run_ingest_command(client: PitchStoreClient, user_id: str, args: argparse.Namespace) -> int:
    """Handle ingest command.

    Args:
        client: SDK client.
        user_id: Owning user id.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    result = client.ingest(user_id, args.source, args.content_type)
    print(f"{result.session_id}\t{result.pitch_count}\t{result.batches_submitted}")
    return 0


def _run_sessions_command(client: PitchStoreClient, user_id: str) -> int:
    """Handle sessions command.

    Args:
        client: SDK client.
        user_id: Owning user id.

    Returns:
        Exit code.
    """
    for summary in client.list_sessions(user_id):
        print(
            f"{summary.session_id}\t"
            f"{summary.pitch_count}\t"
            f"{summary.created_at or '-'}\t"
            f"{summary.session_name or '-'}"
        )
    return 0


def _run_show_command(client: PitchStoreClient, user_id: str, args: argparse.Namespace) -> int:
    """Handle show command.

    Args:
        client: SDK client.
        user_id: Owning user id.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    detail = client.get_session(user_id, args.session_id)
    payload = {"session": asdict(detail.session), "pitches": list(detail.pitches)}
    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


def _add_ingest_command(subparsers: Any) -> None:
    """Register ingest command."""
    parser = subparsers.add_parser("ingest", help="Upload a session JSON file or ZIP export")
    parser.add_argument("source", help="Local file path or s3://bucket/key")
    parser.add_argument(
        "--content-type",
        help="Content type hint; inferred from the file extension when omitted",
    )


def _add_sessions_command(subparsers: Any) -> None:
    """Register sessions command."""
    subparsers.add_parser("sessions", help="List stored sessions, newest first")


def _add_show_command(subparsers: Any) -> None:
    """Register show command."""
    parser = subparsers.add_parser("show", help="Print one session with its pitches")
    parser.add_argument("session_id", help="Session identifier")
