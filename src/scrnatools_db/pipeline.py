"""End-to-end conversion of the single-CSV registry into the TSV database."""

from datetime import UTC, datetime
from pathlib import Path

import httpx

from .core.config import ConversionConfig
from .enrich.orchestrator import ReferenceEnricher, build_references
from .io_.export import write_database
from .io_.load import load_descriptions, load_swsheet
from .scrape.registries import build_packages_cache, scrape_registries
from .transform.reshape import (
    build_ignored,
    build_repositories,
    load_repositories_config,
    melt_categories,
    select_tools,
    split_dois,
)
from .utils.http import RateLimiter, get_client
from .utils.log import get_logger

log = get_logger(__name__)


def utc_now() -> datetime:
    """Run timestamp, truncated to whole seconds as written to the database."""
    return datetime.now(UTC).replace(microsecond=0)


async def run_conversion(
    config: ConversionConfig,
    timestamp: datetime,
    transport: httpx.AsyncBaseTransport | None = None,
    rate_limiters: dict[str, RateLimiter] | None = None,
) -> list[Path]:
    """
    Run the whole conversion and write the database tables.

    All local inputs are read and every network call completes before the
    first file is written, so a failure leaves the previous database in place.

    Args:
        config: Input/output paths and network settings
        timestamp: Shared run timestamp for citations and the package cache
        transport: Optional httpx transport (tests use httpx.MockTransport)
        rate_limiters: Optional per-API limiters replacing the defaults

    Returns:
        Paths of the written files.
    """
    log.info("conversion_started", timestamp=timestamp.isoformat(), **config.get_summary())

    sheet = load_swsheet(config.swsheet_path)
    tools = select_tools(sheet)
    categories_idx = melt_categories(sheet)
    dois = split_dois(sheet)

    repositories_config = load_repositories_config(config.repositories_path)
    repositories = build_repositories(repositories_config, tools)
    ignored = build_ignored(repositories_config)
    categories = load_descriptions(config.descriptions_path)

    async with get_client(email=config.mailto, transport=transport) as client:
        enricher = ReferenceEnricher(
            client,
            mailto=config.mailto,
            max_attempts=config.max_attempts,
            max_concurrency=config.max_concurrency,
            rate_limiters=rate_limiters,
        )
        references = await build_references(dois, timestamp, enricher)
        packages = await scrape_registries(client)

    packages_cache = build_packages_cache(packages, timestamp)

    written = write_database(
        {
            "tools": tools,
            "references": references,
            "dois": dois,
            "categories_idx": categories_idx,
            "repositories": repositories,
            "ignored": ignored,
            "packages_cache": packages_cache,
            "categories": categories,
        },
        config.database_dir,
    )

    log.info(
        "conversion_completed",
        tools=len(tools),
        dois=len(dois),
        references=len(references),
        packages=len(packages_cache),
        files=len(written),
    )
    return written
