import re

ARXIV_DOI_PREFIX = "arxiv/"
ARXIV_VERSION_RE = re.compile(r"v\d+$")
WHITESPACE_RE = re.compile(r"\s+")


def strip_arxiv_version(arxiv_id: str) -> str:
    return ARXIV_VERSION_RE.sub("", arxiv_id)


def arxiv_id_from_doi(doi: str) -> str:
    """'arxiv/1901.00001v2' -> '1901.00001'."""
    return strip_arxiv_version(doi.replace(ARXIV_DOI_PREFIX, "", 1))


def doi_from_arxiv_id(arxiv_id: str) -> str:
    """Map an arXiv id (as returned by the arXiv API) back to its registry DOI."""
    # Entry ids come back as full abs URLs
    arxiv_id = arxiv_id.rstrip("/").split("/abs/")[-1]
    return ARXIV_DOI_PREFIX + strip_arxiv_version(arxiv_id)


def squish(s: str | None) -> str | None:
    """Collapse internal whitespace and trim; None stays None."""
    if s is None:
        return None
    return WHITESPACE_RE.sub(" ", s).strip()
