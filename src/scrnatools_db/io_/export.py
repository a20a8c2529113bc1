import os
import tempfile
from pathlib import Path

import pandas as pd

from ..utils.log import get_logger

log = get_logger(__name__)

# Database file name for each table
DATABASE_FILES = {
    "tools": "tools.tsv",
    "references": "references.tsv",
    "dois": "doi-idx.tsv",
    "categories_idx": "categories-idx.tsv",
    "repositories": "repositories.tsv",
    "ignored": "ignored.tsv",
    "packages_cache": "packages-cache.tsv",
    "categories": "categories.tsv",
}

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
NA_REP = "NA"


def _format_bools(df: pd.DataFrame) -> pd.DataFrame:
    """Render boolean columns as TRUE/FALSE, keeping missing values missing."""
    out = df.copy()
    for col in out.columns:
        if pd.api.types.is_bool_dtype(out[col]):
            out[col] = out[col].astype(object).map(
                lambda v: "TRUE" if v else "FALSE", na_action="ignore"
            )
    return out


def write_table(df: pd.DataFrame, path: Path) -> None:
    """
    Write one table as UTF-8 TSV with a single header row.

    The file is written next to its target and renamed into place, so a
    reader never sees a half-written table.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            _format_bools(df).to_csv(
                f,
                sep="\t",
                index=False,
                na_rep=NA_REP,
                date_format=TIMESTAMP_FORMAT,
                lineterminator="\n",
            )
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    log.info("table_written", path=str(path), rows=len(df))


def write_database(tables: dict[str, pd.DataFrame], database_dir: Path) -> list[Path]:
    """Write every table to its fixed file name under ``database_dir``."""
    unknown = set(tables) - set(DATABASE_FILES)
    if unknown:
        log.error("unknown_tables", tables=sorted(unknown))
        raise ValueError(f"Unknown database tables: {sorted(unknown)}")

    written = []
    for name, filename in DATABASE_FILES.items():
        if name not in tables:
            continue
        path = database_dir / filename
        write_table(tables[name], path)
        written.append(path)

    log.info("database_written", database_dir=str(database_dir), files=len(written))
    return written
