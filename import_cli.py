# import_cli.py

from __future__ import annotations

import argparse
from pathlib import Path

from src.core.store import STORE_BACKENDS, open_store
from src.inputs.inputs import SettingsLoader
from src.logging_setup import setup_logging
from src.tools.feed_import import FeedImportJob


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Listing feed import")
    p.add_argument("--config", type=str, default=None, help="Settings JSON (default: ./config.json if present)")
    feed_src = p.add_mutually_exclusive_group()
    feed_src.add_argument("--url", type=str, default=None, help="Feed URL (overrides settings)")
    feed_src.add_argument("--file", type=str, default=None, help="Import a local feed file instead of fetching")
    p.add_argument("--store", type=str, choices=STORE_BACKENDS, default=None, help="Store backend")
    p.add_argument("--data-dir", type=str, default=None, help="Directory for the json store")
    p.add_argument("--stats", type=int, choices=(0, 1), default=0, help="Print store statistics after the run")
    p.add_argument("--pretty", type=int, choices=(0, 1), default=0, help="Pretty-print run stats")
    p.add_argument("--log-level", type=str, default=None)

    args = p.parse_args(argv)

    loader = SettingsLoader()
    settings = loader.with_overrides(
        loader.load(args.config),
        url=args.url,
        backend=args.store,
        data_dir=args.data_dir,
        log_level=args.log_level,
    )
    setup_logging(settings.logging.level, settings.logging.file)

    store = open_store(settings.store.backend, settings.store.data_dir)
    job = FeedImportJob(
        store,
        settings.feed,
        file=Path(args.file) if args.file else None,
        source=settings.source,
        currency=settings.currency,
    )
    stats = job.run()

    # Minimal console summary
    print(f"import {stats.summary()}")

    if args.pretty:
        from pprint import pprint

        pprint(stats.model_dump(mode="json"), indent=2, width=120, compact=True)

    if args.stats:
        from pprint import pprint

        pprint(store.get_stats().model_dump(mode="json"), indent=2, width=120, compact=True)

    return 0 if stats.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
