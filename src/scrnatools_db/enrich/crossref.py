import xml.etree.ElementTree as ET
from typing import Any
from urllib.parse import quote

import httpx

from ..core.doi import squish
from ..utils.log import get_logger

log = get_logger(__name__)

WORKS_URL = "https://api.crossref.org/works/{doi}"
OPENURL_URL = "https://doi.crossref.org/openurl/"


def format_date_parts(date_parts: list[list[int | None]] | None) -> str | None:
    """Render Crossref ``date-parts`` as YYYY, YYYY-MM or YYYY-MM-DD."""
    if not date_parts or not date_parts[0] or date_parts[0][0] is None:
        return None
    parts = [p for p in date_parts[0] if p is not None]
    year, rest = parts[0], parts[1:]
    return "-".join([f"{year:04d}", *(f"{p:02d}" for p in rest)])


async def fetch_work(doi: str, client: httpx.AsyncClient) -> dict[str, Any]:
    """
    Fetch title and issued date for a DOI from the Crossref works API.

    One attempt only; HTTP and JSON errors propagate so the caller's retry
    loop can decide what to do.

    Returns:
        Dict with DOI (as queried), Title and Date.
    """
    url = WORKS_URL.format(doi=quote(doi, safe="/"))
    resp = await client.get(url)
    resp.raise_for_status()

    message = resp.json().get("message", {})
    titles = message.get("title") or []
    title = squish(titles[0]) if titles else None
    date = format_date_parts(message.get("issued", {}).get("date-parts"))

    log.info("crossref_fetched", doi=doi, has_title=bool(title), date=date)
    return {"DOI": doi, "Title": title, "Date": date}


def parse_citation_count(xml: str) -> int | None:
    """Read ``fl_count`` from an OpenURL query result; None when absent."""
    root = ET.fromstring(xml)
    for elem in root.iter():
        if elem.tag.rsplit("}", 1)[-1] == "query":
            count = elem.get("fl_count")
            return int(count) if count is not None else None
    return None


async def fetch_citation_count(
    doi: str, client: httpx.AsyncClient, mailto: str
) -> dict[str, Any]:
    """
    Fetch the Crossref cited-by count for a DOI via the OpenURL endpoint.

    Returns:
        Dict with DOI and Count (None when Crossref reports no count).
    """
    params = {"pid": mailto, "id": f"doi:{doi}", "noredirect": "true"}
    resp = await client.get(OPENURL_URL, params=params)
    resp.raise_for_status()

    try:
        count = parse_citation_count(resp.text)
    except ET.ParseError as e:
        # Retryable like any other malformed payload
        raise ValueError(f"Unparseable OpenURL response for {doi}: {e}") from e

    log.info("citation_count_fetched", doi=doi, count=count)
    return {"DOI": doi, "Count": count}
