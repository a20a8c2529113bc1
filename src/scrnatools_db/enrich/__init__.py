"""
Reference enrichment for the tool registry DOIs.

- Pattern-based preprint detection (arXiv, bioRxiv, PeerJ)
- Crossref work metadata and OpenURL citation counts, per DOI with bounded retry
- One batched arXiv query for arXiv DOIs
"""

from .orchestrator import ReferenceEnricher, build_references
from .preprint_detection import classify_dois, is_arxiv, is_biorxiv, is_peerj, is_preprint

__all__ = [
    "ReferenceEnricher",
    "build_references",
    "classify_dois",
    "is_arxiv",
    "is_biorxiv",
    "is_peerj",
    "is_preprint",
]
