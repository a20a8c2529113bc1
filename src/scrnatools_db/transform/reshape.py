"""
Reshape the wide tool registry into narrow database tables.

- tools: one row per tool with its descriptive columns
- categories index: one (Tool, Category) row per true category flag
- DOI index: one (Tool, DOI) row per semicolon-separated DOI
- repositories/ignored: curated registry identifiers joined with GitHub paths
"""

import re
from pathlib import Path
from typing import Any

import pandas as pd
from pydantic import TypeAdapter

from ..core.errors import SchemaError
from ..core.models import (
    CATEGORY_IDX_COLUMNS,
    DOI_IDX_COLUMNS,
    IGNORED_COLUMNS,
    REPOSITORIES_COLUMNS,
    TOOLS_COLUMNS,
    RepositoryEntry,
)
from ..io_.load import NON_CATEGORY_COLUMNS, load_json
from ..utils.log import get_logger

log = get_logger(__name__)

DOI_SEPARATOR = ";"
GITHUB_URL_RE = re.compile(r"^https?://(www\.)?github\.com/", re.IGNORECASE)

# Registry names used in the curated JSON that differ from the table labels
TYPE_ALIASES = {"BioC": "Bioc"}

_repositories_adapter = TypeAdapter(dict[str, RepositoryEntry])


def select_tools(sheet: pd.DataFrame) -> pd.DataFrame:
    tools = sheet.rename(columns={"Name": "Tool"})
    return tools[TOOLS_COLUMNS].reset_index(drop=True)


def melt_categories(sheet: pd.DataFrame) -> pd.DataFrame:
    """
    Turn the boolean category matrix into (Tool, Category) pairs.

    Rows are ordered by category column, then by tool, and only true flags
    are kept.
    """
    categories = [c for c in sheet.columns if c not in NON_CATEGORY_COLUMNS]
    not_bool = [c for c in categories if not pd.api.types.is_bool_dtype(sheet[c])]
    if not_bool:
        log.error("non_boolean_category_columns", columns=not_bool)
        raise SchemaError(f"Category columns must be boolean: {not_bool}")
    if not categories:
        return pd.DataFrame(columns=CATEGORY_IDX_COLUMNS)

    long = sheet.melt(
        id_vars=["Name"],
        value_vars=categories,
        var_name="Category",
        value_name="Val",
    )
    keep = long["Val"].fillna(False).astype(bool)
    cat_idx = long.loc[keep, ["Name", "Category"]].rename(columns={"Name": "Tool"})
    return cat_idx[CATEGORY_IDX_COLUMNS].reset_index(drop=True)


def split_doi_field(value: Any) -> list[str]:
    """Split one DOIs cell on ';' in order; missing or empty yields nothing."""
    if value is None or pd.isna(value):
        return []
    return [doi for doi in str(value).split(DOI_SEPARATOR) if doi]


def split_dois(sheet: pd.DataFrame) -> pd.DataFrame:
    rows = [
        {"Tool": name, "DOI": doi}
        for name, field in zip(sheet["Name"], sheet["DOIs"], strict=True)
        for doi in split_doi_field(field)
    ]
    dois = pd.DataFrame(rows, columns=DOI_IDX_COLUMNS)
    log.info("dois_split", tools=len(sheet), dois=len(dois))
    return dois


def load_repositories_config(path: Path) -> dict[str, RepositoryEntry]:
    """Read and validate the curated tool -> registry identifiers JSON."""
    return parse_repositories_config(load_json(path))


def parse_repositories_config(data: Any) -> dict[str, RepositoryEntry]:
    return _repositories_adapter.validate_python(data)


def build_repository_ids(config: dict[str, RepositoryEntry]) -> pd.DataFrame:
    rows = [
        {
            "Tool": tool,
            "Bioc": entry.bioc,
            "CRAN": entry.cran,
            "PyPI": entry.pypi,
            "Conda": entry.conda,
        }
        for tool, entry in config.items()
    ]
    return pd.DataFrame(rows, columns=REPOSITORIES_COLUMNS[:-1])


def build_ignored(config: dict[str, RepositoryEntry]) -> pd.DataFrame:
    """
    Expand each tool's ignore list into (Tool, Type, Name) rows.

    Entries are ``Type/name``; only the first slash separates the two.
    """
    rows = []
    for tool, entry in config.items():
        for item in entry.ignored:
            reg_type, sep, name = item.partition("/")
            if not sep:
                log.warning("ignored_entry_without_type", tool=tool, entry=item)
            rows.append({"Tool": tool, "Type": TYPE_ALIASES.get(reg_type, reg_type), "Name": name})

    ignored = pd.DataFrame(rows, columns=IGNORED_COLUMNS)
    return ignored.sort_values(IGNORED_COLUMNS, kind="stable").reset_index(drop=True)


def github_paths(tools: pd.DataFrame) -> pd.DataFrame:
    """Derive ``owner/repo`` for tools whose code lives on GitHub."""
    code = tools["Code"].fillna("")
    on_github = code.str.contains("github.com", regex=False)
    github = tools.loc[on_github, ["Tool"]].copy()
    github["GitHub"] = code[on_github].str.replace(GITHUB_URL_RE, "", regex=True).str.rstrip("/")
    return github.reset_index(drop=True)


def build_repositories(
    config: dict[str, RepositoryEntry], tools: pd.DataFrame
) -> pd.DataFrame:
    """
    Full outer join of curated identifiers and GitHub paths on Tool.

    Tools appear once each; a tool may have identifiers, a GitHub path, both
    or neither.
    """
    repositories = build_repository_ids(config).merge(
        github_paths(tools), on="Tool", how="outer", sort=False, validate="one_to_one"
    )
    log.info(
        "repositories_built",
        tools=len(repositories),
        curated=len(config),
        github=int(repositories["GitHub"].notna().sum()),
    )
    return repositories[REPOSITORIES_COLUMNS]
