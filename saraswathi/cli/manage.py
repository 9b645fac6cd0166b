"""Operator CLI for the Saraswathi catalogue.

Usage::

    FORCE_DELETE_MANUSCRIPTS=true python -m saraswathi.cli purge-manuscripts
    python -m saraswathi.cli serve --port 3001

``purge-manuscripts`` deletes every manuscript record (and its search
index entries and annotations).  It refuses to run unless the
``FORCE_DELETE_MANUSCRIPTS`` environment variable is exactly ``true``.

Exit codes: 0 success, 1 refused or bad usage, 2 the purge failed.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

from saraswathi.config.settings import Settings
from saraswathi.utils.errors import CatalogError

_FORCE_ENV_VAR = "FORCE_DELETE_MANUSCRIPTS"


async def _handle_purge(app_settings: Settings) -> int:
    """Delete all manuscripts once the environment confirms it."""
    if os.environ.get(_FORCE_ENV_VAR) != "true":
        print(
            f"Refusing to run. Set {_FORCE_ENV_VAR}=true in environment to confirm.",
            file=sys.stderr,
        )
        return 1

    import aiosqlite

    from saraswathi.providers.catalog.sqlite_catalog_provider import SQLiteCatalogProvider

    catalog = SQLiteCatalogProvider(db_path=app_settings.catalog_db_path)
    try:
        await catalog.initialize()
        deleted = await catalog.purge_manuscripts()
    except (CatalogError, aiosqlite.Error, OSError) as exc:
        print(f"Failed to delete manuscripts: {exc}", file=sys.stderr)
        return 2

    print(f"Deleted {deleted} manuscript(s).")
    return 0


def _handle_serve(args: argparse.Namespace, app_settings: Settings) -> int:
    import uvicorn

    uvicorn.run(
        "saraswathi.main:app",
        host=args.host or app_settings.app_host,
        port=args.port or app_settings.app_port,
        reload=args.reload,
    )
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m saraswathi.cli",
        description="Manage the Saraswathi manuscript catalogue.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser(
        "purge-manuscripts",
        help=f"Delete every manuscript (requires {_FORCE_ENV_VAR}=true)",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the API server with uvicorn")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: APP_HOST)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: APP_PORT)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()

    if args.command == "purge-manuscripts":
        exit_code = asyncio.run(_handle_purge(app_settings))
    elif args.command == "serve":
        exit_code = _handle_serve(args, app_settings)
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
