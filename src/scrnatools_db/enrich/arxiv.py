import xml.etree.ElementTree as ET
from typing import Any

import httpx

from ..core.doi import doi_from_arxiv_id, squish
from ..utils.log import get_logger

log = get_logger(__name__)

QUERY_URL = "https://export.arxiv.org/api/query"
ATOM_NS = {"atom": "http://www.w3.org/2005/Atom"}


def parse_arxiv_feed(xml: str) -> list[dict[str, Any]]:
    """
    Parse an arXiv Atom feed into reference rows.

    Error entries (returned for malformed ids) are skipped. arXiv gives no
    publication date we keep, so Date is always None.
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        raise ValueError(f"Unparseable arXiv feed: {e}") from e

    rows = []
    for entry in root.findall("atom:entry", ATOM_NS):
        id_elem = entry.find("atom:id", ATOM_NS)
        if id_elem is None or not id_elem.text or "api/errors" in id_elem.text:
            log.warning("arxiv_error_entry", entry_id=id_elem.text if id_elem is not None else None)
            continue
        title_elem = entry.find("atom:title", ATOM_NS)
        title = squish(title_elem.text) if title_elem is not None and title_elem.text else None
        rows.append({"DOI": doi_from_arxiv_id(id_elem.text.strip()), "Title": title, "Date": None})
    return rows


async def fetch_arxiv_batch(arxiv_ids: list[str], client: httpx.AsyncClient) -> dict[str, Any]:
    """
    Look up many arXiv ids with a single API query.

    Returns:
        Dict with ``rows``: one {DOI, Title, Date} per returned entry.
    """
    if not arxiv_ids:
        return {"rows": []}

    params = {"id_list": ",".join(arxiv_ids), "max_results": str(len(arxiv_ids))}
    resp = await client.get(QUERY_URL, params=params)
    resp.raise_for_status()

    rows = parse_arxiv_feed(resp.text)
    log.info("arxiv_fetched", requested=len(arxiv_ids), returned=len(rows))
    return {"rows": rows}
