import asyncio
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
from typing import Any

import httpx
import pandas as pd

from ..core.doi import ARXIV_DOI_PREFIX, arxiv_id_from_doi, squish
from ..core.models import REFERENCES_COLUMNS, LookupResult
from ..utils.http import MAX_ATTEMPTS, RateLimiter, lookup_with_retry
from ..utils.log import get_logger
from .arxiv import fetch_arxiv_batch
from .crossref import fetch_citation_count, fetch_work
from .preprint_detection import classify_dois

log = get_logger(__name__)

# Shared per-API rate limiters (calls per second)
# arXiv asks for at most one request every three seconds
RATE_LIMITERS = {
    "crossref": RateLimiter(calls_per_second=5.0),
    "citations": RateLimiter(calls_per_second=5.0),
    "arxiv": RateLimiter(calls_per_second=0.33),
}


def _unique(values: Iterable[str]) -> list[str]:
    """Distinct values in first-seen order."""
    return list(dict.fromkeys(values))


class ReferenceEnricher:
    """
    Runs the metadata and citation lookups for a DOI index.

    Lookups are independent, so they run concurrently under a semaphore and
    the per-API rate limiters. Results are keyed by DOI, so completion order
    never leaks into the output.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        mailto: str,
        max_attempts: int = MAX_ATTEMPTS,
        max_concurrency: int = 4,
        rate_limiters: dict[str, RateLimiter] | None = None,
    ) -> None:
        self.client = client
        self.mailto = mailto
        self.max_attempts = max_attempts
        self.rate_limiters = RATE_LIMITERS if rate_limiters is None else rate_limiters
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def _lookup(
        self, key: str, source: str, fetch: Callable[[], Awaitable[dict[str, Any]]]
    ) -> LookupResult:
        async with self._semaphore:
            log.info("lookup_started", key=key, source=source)
            return await lookup_with_retry(
                key,
                source,
                fetch,
                max_attempts=self.max_attempts,
                rate_limiter=self.rate_limiters.get(source),
            )

    async def lookup_works(self, dois: list[str]) -> list[LookupResult]:
        return await asyncio.gather(
            *(
                self._lookup(doi, "crossref", lambda doi=doi: fetch_work(doi, self.client))
                for doi in dois
            )
        )

    async def lookup_citations(self, dois: list[str]) -> list[LookupResult]:
        return await asyncio.gather(
            *(
                self._lookup(
                    doi,
                    "citations",
                    lambda doi=doi: fetch_citation_count(doi, self.client, self.mailto),
                )
                for doi in dois
            )
        )

    async def lookup_arxiv(self, arxiv_ids: list[str]) -> LookupResult:
        return await self._lookup(
            f"{len(arxiv_ids)} arXiv ids",
            "arxiv",
            lambda: fetch_arxiv_batch(arxiv_ids, self.client),
        )


def metadata_frame(works: list[LookupResult], arxiv: LookupResult | None) -> pd.DataFrame:
    """Stack resolved Crossref and arXiv metadata into DOI/Date/Title rows."""
    rows = [w.data for w in works if w.resolved]
    if arxiv is not None and arxiv.resolved:
        rows.extend(arxiv.data.get("rows", []))
    return pd.DataFrame(rows, columns=["DOI", "Date", "Title"])


def citations_frame(citations: list[LookupResult], timestamp: datetime) -> pd.DataFrame:
    """Citation rows for resolved lookups, stamped with the run timestamp."""
    rows = [c.data for c in citations if c.resolved]
    frame = pd.DataFrame(rows, columns=["DOI", "Count"])
    frame["Count"] = frame["Count"].astype("Int64")
    frame["Timestamp"] = pd.Timestamp(timestamp)
    frame["Delay"] = pd.Series(0, index=frame.index, dtype="Int64")
    return frame


def merge_references(
    papers: pd.DataFrame, metadata: pd.DataFrame, citations: pd.DataFrame
) -> pd.DataFrame:
    """
    Left-join metadata and citations onto the classified DOI table.

    DOIs without results keep missing Title/Date/Citations. The result is
    deduplicated on the full row.
    """
    references = papers.merge(metadata, on="DOI", how="left").merge(
        citations, on="DOI", how="left"
    )
    references = references.rename(columns={"Count": "Citations"})[REFERENCES_COLUMNS]
    references["Title"] = references["Title"].map(squish, na_action="ignore")
    return references.drop_duplicates().reset_index(drop=True)


async def build_references(
    dois: pd.DataFrame,
    timestamp: datetime,
    enricher: ReferenceEnricher,
) -> pd.DataFrame:
    """
    Build the references table for a DOI index.

    Args:
        dois: DOI index with Tool and DOI columns
        timestamp: Enrichment timestamp written to every citation row
        enricher: Configured lookup runner

    Returns:
        References DataFrame with the REFERENCES_COLUMNS layout.
    """
    papers = classify_dois(dois)

    cr_dois = _unique(papers.loc[~papers["arXiv"], "DOI"])
    arxiv_ids = _unique(arxiv_id_from_doi(d) for d in papers.loc[papers["arXiv"], "DOI"])
    cite_dois = _unique(d for d in papers["DOI"] if ARXIV_DOI_PREFIX not in d)

    log.info(
        "enrichment_started",
        crossref_dois=len(cr_dois),
        arxiv_ids=len(arxiv_ids),
        citation_dois=len(cite_dois),
    )

    works = await enricher.lookup_works(cr_dois)
    arxiv = await enricher.lookup_arxiv(arxiv_ids) if arxiv_ids else None
    citations = await enricher.lookup_citations(cite_dois)

    unresolved = [r.key for r in [*works, *citations] if not r.resolved]
    if arxiv is not None and not arxiv.resolved:
        unresolved.append(arxiv.key)

    references = merge_references(
        papers,
        metadata_frame(works, arxiv),
        citations_frame(citations, timestamp),
    )

    log.info(
        "enrichment_completed",
        references=len(references),
        unresolved_count=len(unresolved),
        unresolved=unresolved,
    )
    return references
