"""
Snapshot the package listings of the supported registries.

Each registry page is fetched once (Anaconda: once per listing page) and the
package names are pulled out with a CSS selector. Any failure is fatal:
there is no retry and nothing is returned for a partial snapshot.
"""

import string
from collections.abc import AsyncIterator
from datetime import datetime

import httpx
import pandas as pd
from bs4 import BeautifulSoup

from ..core.errors import ScrapeError
from ..core.models import PACKAGES_CACHE_COLUMNS, REGISTRY_TYPES
from ..utils.http import fetch_page
from ..utils.log import get_logger

log = get_logger(__name__)

BIOC_URL = "https://bioconductor.org/packages/release/bioc/"
CRAN_URL = "https://cran.r-project.org/web/packages/available_packages_by_name.html"
PYPI_URL = "https://pypi.org/simple/"
CONDA_URL = "https://anaconda.org/anaconda/repo"
CONDA_PAGE_URL = CONDA_URL + "?sort=_name&sort_order=asc&page={page}"

CONDA_PAGE_COUNT_SELECTOR = ".unavailable:nth-child(2)"
CONDA_PACKAGE_SELECTOR = ".packageName"

# CRAN's listing starts with A-Z jump links
CRAN_INDEX_LINKS = set(string.ascii_uppercase)


def select_text(html: str, selector: str) -> list[str]:
    soup = BeautifulSoup(html, "html.parser")
    return [node.get_text() for node in soup.select(selector)]


async def _get(client: httpx.AsyncClient, url: str) -> str:
    try:
        return await fetch_page(client, url)
    except httpx.HTTPError as e:
        log.error("registry_fetch_failed", url=url, error=str(e), error_type=type(e).__name__)
        raise ScrapeError(f"Failed to fetch {url}: {e}") from e


async def scrape_bioc(client: httpx.AsyncClient) -> list[str]:
    return select_text(await _get(client, BIOC_URL), "table a")


async def scrape_cran(client: httpx.AsyncClient) -> list[str]:
    names = select_text(await _get(client, CRAN_URL), "a")
    return [n for n in names if n not in CRAN_INDEX_LINKS]


async def scrape_pypi(client: httpx.AsyncClient) -> list[str]:
    return select_text(await _get(client, PYPI_URL), "a")


def parse_conda_page_count(html: str) -> int:
    """
    Read the number of listing pages from the pager summary.

    The summary reads like ``Page 1 of 42``; the fourth token is the count.
    """
    tokens = " ".join(select_text(html, CONDA_PAGE_COUNT_SELECTOR)).split(" ")
    try:
        return int(tokens[3])
    except (IndexError, ValueError) as e:
        raise ScrapeError(f"Could not read the Anaconda page count from {tokens!r}") from e


async def iter_conda_pages(client: httpx.AsyncClient, pages: int) -> AsyncIterator[list[str]]:
    """Yield the package names of each listing page, in page order."""
    for page in range(1, pages + 1):
        html = await _get(client, CONDA_PAGE_URL.format(page=page))
        names = select_text(html, CONDA_PACKAGE_SELECTOR)
        log.debug("conda_page_scraped", page=page, pages=pages, packages=len(names))
        yield names


async def scrape_conda(client: httpx.AsyncClient) -> list[str]:
    pages = parse_conda_page_count(await _get(client, CONDA_URL))
    log.info("conda_pages_discovered", pages=pages)
    names: list[str] = []
    async for page_names in iter_conda_pages(client, pages):
        names.extend(page_names)
    return names


async def scrape_registries(client: httpx.AsyncClient) -> dict[str, list[str]]:
    """Scrape all four registries in turn, keyed by registry type."""
    scrapers = dict(zip(REGISTRY_TYPES, (scrape_bioc, scrape_cran, scrape_pypi, scrape_conda)))
    packages = {}
    for reg_type, scraper in scrapers.items():
        packages[reg_type] = await scraper(client)
        log.info("registry_scraped", registry=reg_type, packages=len(packages[reg_type]))
    return packages


def build_packages_cache(packages: dict[str, list[str]], timestamp: datetime) -> pd.DataFrame:
    """
    Flatten scraped names into the package cache table.

    Every row shares the same fetch timestamp. Duplicates are kept.
    """
    rows = [
        {"Repository": f"{name}@{reg_type}", "Name": name, "Type": reg_type}
        for reg_type, names in packages.items()
        for name in names
    ]
    cache = pd.DataFrame(rows, columns=PACKAGES_CACHE_COLUMNS[:-1])
    cache["Added"] = pd.Timestamp(timestamp)
    return cache[PACKAGES_CACHE_COLUMNS]
