#!/usr/bin/env python3
"""
Inspect or reset a JSON-file profile config store.

Usage:
    python scripts/inspect_store.py --dir ./data/config_store
    python scripts/inspect_store.py --dir ./data/config_store --reset

Prints the snapshot (profiles, current profile, mode bindings) as JSON.
Reading a store runs pending migrations, exactly as the service would.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Final

from config_store.core.config import get_settings
from config_store.core.exceptions import ConfigStoreError
from config_store.core.logging import configure_logging
from config_store.storage.file import JsonFileLegacyState, JsonFilePersistenceAdapter
from config_store.store.profiles import ProfileStore

EXIT_OK: Final[int] = 0
EXIT_STORE_ERROR: Final[int] = 1


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0].strip())
    parser.add_argument("--dir", default=settings.storage_dir, help="Storage directory")
    parser.add_argument("--key", default=settings.storage_key, help="Storage key")
    parser.add_argument(
        "--legacy-state",
        default=settings.legacy_state_file,
        help="JSON file with legacy global state",
    )
    parser.add_argument("--reset", action="store_true", help="Delete the stored document")
    return parser


async def run(args: argparse.Namespace) -> str:
    """Execute the requested action and return the text to print."""
    legacy = JsonFileLegacyState(args.legacy_state) if args.legacy_state else None
    store = ProfileStore(
        JsonFilePersistenceAdapter(args.dir),
        key=args.key,
        legacy_state=legacy,
    )
    if args.reset:
        await store.reset_all()
        return f"Reset config store '{args.key}' in {args.dir}"
    snapshot = await store.snapshot()
    return snapshot.model_dump_json(indent=2)


def main(argv: list[str] | None = None) -> int:
    configure_logging(log_level="WARNING", json_output=False, stream=sys.stderr)
    args = build_parser().parse_args(argv)
    try:
        print(asyncio.run(run(args)))
    except ConfigStoreError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_STORE_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
