"""CLI interface for contact-shield.

Usage:
    # Check one message (stdin: text, stdout: JSON verdict)
    echo 'call me 555 1234' | \
        python -m contact_shield.cli check --restricted

    # Replay a channel transcript in order
    # (stdin: JSON array of {"sender_id", "content", "restricted"?})
    python -m contact_shield.cli replay --channel-id booking-42 < transcript.json

    # List every evidence rule that fires on a text
    echo 'mail me at bob@x.com' | python -m contact_shield.cli scan

Buffers only live for the duration of one invocation; use `replay` to
analyze a conversation.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys

from .config import create_filter, load_config, load_from_yaml
from .patterns import scan_evidence

DEFAULT_CONFIG = os.environ.get("CONTACT_SHIELD_CONFIG", "")


def _build_filter(args: argparse.Namespace):
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    if args.allow_list:
        cfg["allow_list"] |= set(args.allow_list.split(","))
    return create_filter(cfg)


def cmd_check(args: argparse.Namespace) -> None:
    """Evaluate plain text on stdin as a single message."""
    cf = _build_filter(args)
    text = sys.stdin.read().strip()
    result = cf.evaluate(
        text, args.channel_id, args.sender_id,
        is_sender_restricted_party=args.restricted,
        bypass=args.bypass,
    )
    json.dump(result.to_dict(), sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_replay(args: argparse.Namespace) -> None:
    """Evaluate a JSON transcript on stdin, message by message."""
    cf = _build_filter(args)
    messages = json.loads(sys.stdin.read() or "[]")
    if not isinstance(messages, list):
        raise SystemExit("replay expects a JSON array of messages")
    for i, msg in enumerate(messages):
        if not isinstance(msg, dict):
            raise SystemExit(f"replay: message {i} is not a JSON object")
        if not isinstance(msg.get("content"), (str, type(None))):
            raise SystemExit(f"replay: message {i} content must be a string")

    out = []
    for msg in messages:
        result = cf.evaluate(
            msg.get("content"),
            args.channel_id,
            str(msg.get("sender_id", "")),
            is_sender_restricted_party=bool(msg.get("restricted", args.restricted)),
            bypass=args.bypass,
        )
        out.append({"sender_id": msg.get("sender_id"), **result.to_dict()})

    json.dump(out, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_scan(args: argparse.Namespace) -> None:
    """List evidence hits in plain text on stdin."""
    text = sys.stdin.read()
    hits = [
        {
            "category": h.category.value,
            "rule": h.rule,
            "start": h.start,
            "end": h.end,
            "text": h.text,
        }
        for h in scan_evidence(text)
    ]
    json.dump(hits, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="contact_shield",
        description="Contact-information leak detection for marketplace chat",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="YAML config path")
    parser.add_argument("--channel-id", default="cli", help="Channel ID")
    parser.add_argument("--sender-id", default="cli", help="Sender ID (check only)")
    parser.add_argument("--restricted", action="store_true",
                        help="Sender is the restricted party")
    parser.add_argument("--bypass", action="store_true", help="Skip filtering entirely")
    parser.add_argument("--allow-list", default="", help="Comma-separated values to never flag")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("check", help="Evaluate one message (text stdin)")
    sub.add_parser("replay", help="Evaluate a transcript (JSON stdin)")
    sub.add_parser("scan", help="List evidence hits (text stdin)")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cmds = {
        "check": cmd_check,
        "replay": cmd_replay,
        "scan": cmd_scan,
    }
    cmds[args.command](args)


if __name__ == "__main__":
    main()
