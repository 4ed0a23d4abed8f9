"""Command-line interface for sheets-sync."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import httpx

from .client import SheetsClient
from .config import Settings, TransportStrategy, WriteEncoding, get_settings
from .errors import TransportError
from .models import ContentRecord
from .wrapper import wrap_if_fragment

logger = logging.getLogger(__name__)

EXIT_TRANSPORT_ERROR = 1
EXIT_NOT_OK = 3


def _add_key(p: argparse.ArgumentParser) -> None:
    p.add_argument("--key", default=None, help="Content key (default: settings default_key)")


def _add_password(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--password",
        default=None,
        help="Backend password (default: SHEETS_SYNC_PASSWORD)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    p = argparse.ArgumentParser(
        prog="sheets-sync",
        description="Read and write HTML content on a spreadsheet-backed endpoint.",
    )
    p.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    p.add_argument("--endpoint", default=None, help="Endpoint URL (default: SHEETS_SYNC_ENDPOINT)")
    p.add_argument(
        "--transport",
        choices=[t.value for t in TransportStrategy],
        default=None,
        help="Transport strategy (default: SHEETS_SYNC_TRANSPORT)",
    )
    p.add_argument(
        "--encoding",
        choices=[e.value for e in WriteEncoding],
        default=None,
        help="Body encoding for save/clear (default: SHEETS_SYNC_WRITE_ENCODING)",
    )
    p.add_argument(
        "--opaque",
        action="store_true",
        help="Do not read write responses; rely on the confirm-read",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    # --- get ---
    get = sub.add_parser("get", help="Fetch content for a key")
    _add_key(get)
    get.add_argument(
        "--no-cache-bust",
        dest="cache_bust",
        action="store_false",
        default=None,
        help="Do not append the cb timestamp parameter",
    )
    get.add_argument("--html", action="store_true", help="Print HTML instead of the JSON record")
    get.add_argument("--wrap", action="store_true", help="Wrap fragments into a full document (implies --html)")
    get.add_argument("--title", default=None, help="Document title used with --wrap")
    get.add_argument(
        "--no-styles",
        dest="styles",
        action="store_false",
        default=None,
        help="Omit the default stylesheet when wrapping",
    )

    # --- save ---
    save = sub.add_parser("save", help="Store HTML for a key, then read it back")
    _add_key(save)
    source = save.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Read HTML from this file ('-' for stdin)")
    source.add_argument("--html", dest="html_text", help="HTML given inline")
    _add_password(save)

    # --- clear ---
    clear = sub.add_parser("clear", help="Clear a key, then read it back")
    _add_key(clear)
    _add_password(clear)

    return p


def _configure_logging(verbose: bool) -> None:
    """Set up root logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment settings with command-line overrides applied."""
    overrides: Dict[str, Any] = {}
    if args.endpoint:
        overrides["endpoint"] = args.endpoint
    if args.transport:
        overrides["transport"] = TransportStrategy(args.transport)
    if args.encoding:
        overrides["write_encoding"] = WriteEncoding(args.encoding)
    if args.opaque:
        overrides["opaque_writes"] = True
    s = get_settings()
    return s.model_copy(update=overrides) if overrides else s


def _read_html(args: argparse.Namespace) -> str:
    if args.html_text is not None:
        return args.html_text
    if str(args.file) == "-":
        return sys.stdin.read()
    return args.file.read_text(encoding="utf-8")


def _is_absolute_url(value: str) -> bool:
    try:
        return httpx.URL(value).is_absolute_url
    except httpx.InvalidURL:
        return False


def _print_record(record: ContentRecord) -> None:
    print(json.dumps(record.model_dump(mode="json"), indent=2, ensure_ascii=False))


async def _run(args: argparse.Namespace, settings: Settings, html: str | None = None) -> int:
    password = getattr(args, "password", None) or settings.password

    async with SheetsClient.from_settings(settings) as sheets:
        if args.cmd == "get":
            record = await sheets.get_content(args.key, cache_bust=args.cache_bust)
            if args.wrap:
                styles = settings.include_base_styles if args.styles is None else args.styles
                print(wrap_if_fragment(
                    record.html,
                    title=args.title or settings.document_title,
                    include_base_styles=styles,
                ))
            elif args.html:
                print(record.html)
            else:
                _print_record(record)
        elif args.cmd == "save":
            record = await sheets.save_content(args.key, html or "", password)
            _print_record(record)
        elif args.cmd == "clear":
            record = await sheets.clear_content(args.key, password)
            _print_record(record)
        else:
            return 2

    if not record.ok:
        logger.error("Backend reported failure for key=%s: %s", record.key, record.error)
        return EXIT_NOT_OK
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    settings = _settings_from_args(args)
    if not settings.endpoint:
        parser.error("no endpoint configured (use --endpoint or SHEETS_SYNC_ENDPOINT)")

    if not _is_absolute_url(settings.endpoint):
        parser.error(f"endpoint must be an absolute URL: {settings.endpoint!r}")

    html = _read_html(args) if args.cmd == "save" else None

    try:
        return asyncio.run(_run(args, settings, html))
    except TransportError as exc:
        logger.error("Transport failure: %s", exc)
        return EXIT_TRANSPORT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
