"""
Catalog Sync CLI - Run one provider once and dump the resulting entities.

The run is captured with a RecordingConnection; the final full mutation
is written as JSON or YAML.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, TextIO

import httpx
import yaml

from . import __version__
from .config import SyncConfig, load_config
from .errors import CatalogSyncError, ConfigError
from .scheduler import FetchScheduler
from .sync import ApiCatalogProvider, DataPortalProvider, EntityProvider, RecordingConnection

logger = logging.getLogger(__name__)

PROVIDERS = ("datagov", "apicatalog")
FORMATS = ("json", "yaml")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opendata-catalog",
        description="Open Data Catalog Sync - mirror open-data portals into a software catalog",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sync_parser = subparsers.add_parser("sync", help="Run one provider once")
    sync_parser.add_argument("provider", choices=PROVIDERS, help="Portal to synchronize")
    sync_parser.add_argument("--config", help="Path to a YAML config file")
    sync_parser.add_argument("--env", help="Environment name (overrides the config)")
    sync_parser.add_argument("--concurrency", type=int, help="Concurrent network tasks")
    sync_parser.add_argument("--format", choices=FORMATS, default="json", help="Output format")
    sync_parser.add_argument("--output", "-o", help="Write to this file instead of stdout")
    sync_parser.add_argument(
        "--no-content-probing",
        action="store_true",
        help="Do not download resource files to infer their schema",
    )
    sync_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


def apply_overrides(config: SyncConfig, args: argparse.Namespace) -> SyncConfig:
    """Apply command line options on top of the loaded config."""
    if args.env:
        config.environment = args.env
    if args.concurrency is not None:
        config.scheduler.concurrency = args.concurrency
    if args.no_content_probing:
        config.data_portal.content_probing = False
    return config


def create_provider(
    name: str,
    config: SyncConfig,
    http: httpx.AsyncClient,
    scheduler: FetchScheduler,
) -> EntityProvider:
    if name == "datagov":
        if not config.data_portal.enabled:
            raise ConfigError("Provider datagov is disabled (dataPortal.enabled is false)")
        return DataPortalProvider.create(config.environment, http, scheduler, config.data_portal)
    if name == "apicatalog":
        if not config.api_catalog.enabled:
            raise ConfigError("Provider apicatalog is disabled (apiCatalog.enabled is false)")
        return ApiCatalogProvider.create(config.environment, http, scheduler, config.api_catalog)
    raise ValueError(f"Unknown provider: {name}")


def render(document: dict, fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(document, allow_unicode=True, sort_keys=False)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


async def run_sync(
    args: argparse.Namespace,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """
    Run the selected provider once against a recording connection.

    Returns:
        The final full mutation in its wire shape
    """
    config = apply_overrides(load_config(args.config), args)
    scheduler = FetchScheduler(config.scheduler.concurrency)
    connection = RecordingConnection()

    async with httpx.AsyncClient(
        transport=transport,
        follow_redirects=True,
        timeout=config.scheduler.timeout_seconds,
    ) as http:
        provider = create_provider(args.provider, config, http, scheduler)
        await provider.connect(connection)
        report = await provider.run()

    logger.info(f"Run summary: {json.dumps(report.to_dict()['summary'])}")
    return connection.last_full.to_dict()


def main(
    argv: Optional[list[str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        document = asyncio.run(run_sync(args, transport=transport))
    except CatalogSyncError as e:
        logger.error(f"Sync failed: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid options: {e}")
        return 1

    text = render(document, args.format)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info(f"Wrote {len(document['entities'])} entities to {args.output}")
    else:
        (stdout or sys.stdout).write(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
