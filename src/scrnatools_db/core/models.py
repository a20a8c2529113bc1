from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Output column layouts, one per database table
TOOLS_COLUMNS = ["Tool", "Platform", "Code", "Description", "License", "Added", "Updated"]
CATEGORY_IDX_COLUMNS = ["Tool", "Category"]
DOI_IDX_COLUMNS = ["Tool", "DOI"]
REFERENCES_COLUMNS = [
    "DOI",
    "arXiv",
    "Preprint",
    "Date",
    "Title",
    "Citations",
    "Timestamp",
    "Delay",
]
PACKAGES_CACHE_COLUMNS = ["Repository", "Name", "Type", "Added"]
REPOSITORIES_COLUMNS = ["Tool", "Bioc", "CRAN", "PyPI", "Conda", "GitHub"]
IGNORED_COLUMNS = ["Tool", "Type", "Name"]
CATEGORIES_COLUMNS = ["Category", "Description"]

# Registry type labels as written to the package cache
REGISTRY_TYPES = ("Bioc", "CRAN", "PyPI", "Conda")


class LookupResult(BaseModel):
    """Outcome of one external lookup for a DOI (or a batch of arXiv ids).

    An unresolved result carries no data; callers must treat its fields as
    missing rather than reuse anything from a previous attempt.
    """

    key: str
    source: str  # 'crossref'|'citations'|'arxiv'
    resolved: bool
    attempts: int = 0
    error: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class RepositoryEntry(BaseModel):
    """Curated registry identifiers for one tool."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    bioc: str | None = Field(default=None, alias="BioC")
    cran: str | None = Field(default=None, alias="CRAN")
    pypi: str | None = Field(default=None, alias="PyPI")
    conda: str | None = Field(default=None, alias="Conda")
    ignored: list[str] = Field(default_factory=list, alias="Ignored")
