"""Tests for DOI-pattern preprint detection."""

import pandas as pd
import pytest

from scrnatools_db.enrich.preprint_detection import (
    classify_dois,
    is_arxiv,
    is_biorxiv,
    is_peerj,
    is_preprint,
)


class TestPreprintDetection:
    """Test the individual preprint flags."""

    def test_biorxiv(self) -> None:
        doi = "10.1101/123456"
        assert is_biorxiv(doi)
        assert not is_arxiv(doi)
        assert not is_peerj(doi)
        assert is_preprint(doi)

    def test_arxiv(self) -> None:
        doi = "arxiv/1234.5678"
        assert is_arxiv(doi)
        assert not is_biorxiv(doi)
        assert not is_peerj(doi)
        assert is_preprint(doi)

    def test_arxiv_is_case_sensitive(self) -> None:
        assert not is_arxiv("ARXIV/1234.5678")

    def test_peerj(self) -> None:
        doi = "10.7287/peerj.preprints.2888v1"
        assert is_peerj(doi)
        assert is_preprint(doi)

    def test_published_doi(self) -> None:
        doi = "10.1000/other"
        assert not is_arxiv(doi)
        assert not is_biorxiv(doi)
        assert not is_peerj(doi)
        assert not is_preprint(doi)

    def test_prefix_must_be_at_start(self) -> None:
        assert not is_biorxiv("10.1000/10.1101/123")
        assert not is_peerj("10.1000/10.7287/123")

    @pytest.mark.parametrize(
        "doi",
        [
            "10.1101/123456",
            "arxiv/1234.5678",
            "10.7287/peerj.preprints.1",
            "10.1038/nmeth.4150",
            "10.1186/s13059-017-1305-0",
            "",
        ],
    )
    def test_preprint_is_or_of_flags(self, doi: str) -> None:
        assert is_preprint(doi) == (is_arxiv(doi) or is_biorxiv(doi) or is_peerj(doi))


class TestClassifyDois:
    """Test flag columns added to a DOI index."""

    def test_columns_and_values(self) -> None:
        dois = pd.DataFrame(
            {
                "Tool": ["A", "B", "C"],
                "DOI": ["10.1101/1", "arxiv/1901.00001", "10.1038/x"],
            }
        )
        papers = classify_dois(dois)

        assert list(papers.columns) == ["DOI", "bioRxiv", "arXiv", "PeerJ", "Preprint"]
        assert papers["bioRxiv"].tolist() == [True, False, False]
        assert papers["arXiv"].tolist() == [False, True, False]
        assert papers["Preprint"].tolist() == [True, True, False]

    def test_duplicates_are_kept(self) -> None:
        dois = pd.DataFrame({"Tool": ["A", "B"], "DOI": ["10.1/x", "10.1/x"]})
        assert len(classify_dois(dois)) == 2

    def test_empty(self) -> None:
        papers = classify_dois(pd.DataFrame({"Tool": [], "DOI": []}))
        assert papers.empty
        assert "Preprint" in papers.columns
