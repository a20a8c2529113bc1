"""Pre-print detection from DOI strings.

Classification is purely pattern based:

- arXiv: the DOI contains ``arxiv`` (case-sensitive, registry DOIs are
  written as ``arxiv/<id>``)
- bioRxiv: the DOI starts with the Cold Spring Harbor prefix ``10.1101/``
- PeerJ: the DOI starts with the PeerJ Preprints prefix ``10.7287/``
"""

import pandas as pd

from ..utils.log import get_logger

log = get_logger(__name__)

BIORXIV_PREFIX = "10.1101/"
PEERJ_PREFIX = "10.7287/"
ARXIV_PATTERN = "arxiv"


def is_arxiv(doi: str) -> bool:
    return ARXIV_PATTERN in doi


def is_biorxiv(doi: str) -> bool:
    return doi.startswith(BIORXIV_PREFIX)


def is_peerj(doi: str) -> bool:
    return doi.startswith(PEERJ_PREFIX)


def is_preprint(doi: str) -> bool:
    return is_arxiv(doi) or is_biorxiv(doi) or is_peerj(doi)


def classify_dois(dois: pd.DataFrame) -> pd.DataFrame:
    """
    Add preprint flags to a DOI index.

    Args:
        dois: DataFrame with a ``DOI`` column (the Tool column is dropped)

    Returns:
        DataFrame with columns DOI, bioRxiv, arXiv, PeerJ, Preprint, one row per
        input row (duplicates are kept until the final references dedup).
    """
    papers = pd.DataFrame({"DOI": dois["DOI"].astype(str).to_numpy()})
    papers["bioRxiv"] = papers["DOI"].map(is_biorxiv).astype(bool)
    papers["arXiv"] = papers["DOI"].map(is_arxiv).astype(bool)
    papers["PeerJ"] = papers["DOI"].map(is_peerj).astype(bool)
    papers["Preprint"] = papers["bioRxiv"] | papers["arXiv"] | papers["PeerJ"]

    log.info(
        "dois_classified",
        count=len(papers),
        preprints=int(papers["Preprint"].sum()),
        arxiv=int(papers["arXiv"].sum()),
    )
    return papers
