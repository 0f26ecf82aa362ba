# src/main.py - v1
"""CLI entry point: inspect and clear the local resource cache.

Usage:
    portalsync status --user <id> --tenant <abbr> --session <id> [options]
    portalsync clear --user <id> --tenant <abbr> --session <id> [options]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from portalsync.cache.repository import CacheRepository
from portalsync.cache.store_factory import create_durable_store
from portalsync.config.settings import ConfigurationError, Settings, load_settings
from portalsync.core.models import SessionIdentity
from portalsync.logging.logger import setup_logging
from portalsync.sync.engine import collect_cache_status
from portalsync.sync.resources import build_resource_specs
from portalsync.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else "WARNING")
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="portalsync",
        description=f"portalsync v{__version__} - offline cache for campus portal data",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- status ---
    p_status = subparsers.add_parser(
        "status", help="Show what is cached for one session",
    )
    _add_session_args(p_status)
    p_status.set_defaults(func=_cmd_status)

    # --- clear ---
    p_clear = subparsers.add_parser(
        "clear", help="Delete every cached resource of one session",
    )
    _add_session_args(p_clear)
    p_clear.set_defaults(func=_cmd_clear)

    return parser


def _add_session_args(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--user", required=True, help="Portal user id")
    sub.add_argument("--tenant", required=True, help="Institution abbreviation")
    sub.add_argument("--session", required=True, help="Academic session id")
    sub.add_argument(
        "--store-root", type=Path, default=None,
        help="Store directory (default: STORE_ROOT or ~/.portalsync/store)",
    )
    sub.add_argument(
        "--backend", choices=["json", "sqlite", "redis", "memory"], default=None,
        help="Store backend (default: STORE_BACKEND or json)",
    )


def _open_repository(
    args: argparse.Namespace,
) -> tuple[Settings, CacheRepository]:
    overrides: dict[str, object] = {}
    if args.store_root is not None:
        overrides["store_root"] = args.store_root
    if args.backend is not None:
        overrides["store_backend"] = args.backend
    settings = load_settings(**overrides)
    return settings, CacheRepository(create_durable_store(settings))


def _session(args: argparse.Namespace) -> SessionIdentity:
    return SessionIdentity(
        user_id=args.user, tenant=args.tenant, session_id=args.session
    )


async def _cmd_status(args: argparse.Namespace) -> int:
    """Print one line per resource kind."""
    settings, repository = _open_repository(args)
    statuses = await collect_cache_status(
        repository, build_resource_specs(settings), _session(args)
    )

    print(f"\nCache for {args.user}@{args.tenant} (session {args.session}):")
    for status in statuses:
        if not status.has_cached_data:
            print(f"  {status.kind:<14} -")
            continue
        more = "  more pages" if status.has_more else ""
        print(
            f"  {status.kind:<14} {status.item_count:>4} items  "
            f"{status.age_label}{more}"
        )
    return 0


async def _cmd_clear(args: argparse.Namespace) -> int:
    """Remove every record and throttle entry for the session."""
    _, repository = _open_repository(args)
    await repository.clear_session(_session(args))
    print(f"Cleared cache for {args.user}@{args.tenant} (session {args.session})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
