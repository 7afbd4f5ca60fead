#!/usr/bin/env python3
"""
blocklens - CLI entry point
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

from .config import DEFAULT_CDN_TEMPLATE, Settings
from .errors import PipelineError
from .links import display_label, handle_label, image_url, profile_url
from .log import setup_logging
from .markdown import to_markdown
from .models import PipelineResult
from .output import EXIT_FATAL, EXIT_OK, format_created_at, to_json
from .pipeline import run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Show who blocks a Bluesky / AT Protocol account"
    )
    parser.add_argument("identifier", help="Handle (alice.bsky.social) or DID (did:plc:...)")
    parser.add_argument(
        "--json", "-j", action="store_true", help="Output as JSON (alias for --format json)"
    )
    parser.add_argument(
        "--format",
        choices=["pretty", "json", "markdown"],
        default=None,
        help="Output format (default: pretty; --json is an alias for json)",
    )
    parser.add_argument(
        "--timeout", "-t", type=int, default=None, help="Timeout per request in seconds (default: 30)"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Max block records to fetch, 1-100 (default: 100)",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help="Max parallel requests while enriching (default: 16)",
    )
    parser.add_argument(
        "--show-urls", action="store_true", help="Include profile/avatar URLs in pretty output"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=None,
        help="Log level for stderr diagnostics (default: WARNING)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    out_format = args.format
    if out_format is None:
        out_format = "json" if args.json else "pretty"

    if not args.identifier.strip():
        parser.error("identifier must not be empty")

    try:
        settings = Settings.from_env().replace(
            timeout=args.timeout,
            page_limit=args.limit,
            max_workers=args.workers,
            log_level=args.log_level,
        )
    except ValueError as e:
        parser.error(str(e))
    setup_logging(settings.log_level, json=out_format == "json")

    try:
        result = run(args.identifier, settings=settings)
    except PipelineError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(EXIT_FATAL) from e

    if out_format == "json":
        print(json.dumps(to_json(result, cdn_template=settings.cdn_template), indent=2, ensure_ascii=False))
    elif out_format == "markdown":
        print(to_markdown(result))
    else:
        print_human_readable(result, show_urls=args.show_urls, cdn_template=settings.cdn_template)

    raise SystemExit(EXIT_OK)


def print_human_readable(
    result: PipelineResult, *, show_urls: bool = False, cdn_template: str = DEFAULT_CDN_TEMPLATE
) -> None:
    """Print human-readable output."""
    target = result.target
    identity = target.identity
    profile = target.profile

    print("\n🔎 Block Report")
    print(f"{'=' * 50}")
    print(f"Actor:  {display_label(target, identity.did)}")
    print(f"Handle: {handle_label(target) or '(unknown handle)'}")
    print(f"DID:    {identity.did}")
    if identity.pds:
        print(f"PDS:    {identity.pds}")
    if profile and profile.description:
        print(f"\n{profile.description}")
    if show_urls:
        print(f"Profile: {profile_url(identity.did)}")
        avatar = image_url(identity.did, profile.avatar if profile else None, "avatar", template=cdn_template)
        if avatar:
            print(f"Avatar:  {avatar}")
        banner = image_url(identity.did, profile.banner if profile else None, "banner", template=cdn_template)
        if banner:
            print(f"Banner:  {banner}")
    print(f"{'=' * 50}")

    block_list = result.block_list
    print(f"\n🚫 Blocked by: {block_list.total}")
    print(f"{'-' * 50}")

    if not result.enriched:
        print("  ✅ No blocks found")
    for rec in result.enriched:
        label = display_label(rec.actor, rec.did)
        handle = handle_label(rec.actor) or rec.did
        print(f"  {format_created_at(rec.created_at):<10}  {label}  ({handle})")
        if show_urls:
            print(f"      {profile_url(rec.did)}")

    if block_list.truncated:
        print(f"\n⚠️  Showing the first {len(result.enriched)} of {block_list.total} blocks")

    print(f"\n⏱️  Checked at: {result.checked_at}")


if __name__ == "__main__":
    main()
