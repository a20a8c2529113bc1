import json
from pathlib import Path
from typing import Any

import pandas as pd

from ..core.errors import SchemaError
from ..utils.log import get_logger

log = get_logger(__name__)

STRING_COLUMNS = ["Name", "Platform", "DOIs", "PubDates", "Code", "Description", "License"]
DATE_COLUMNS = ["Added", "Updated"]
# Every column not listed above is a boolean category flag
NON_CATEGORY_COLUMNS = STRING_COLUMNS + DATE_COLUMNS

TRUE_VALUES = {"TRUE", "True", "true", "T"}
FALSE_VALUES = {"FALSE", "False", "false", "F"}


def coerce_bool(series: pd.Series) -> pd.Series:
    """Coerce a text column to nullable booleans; unknown spellings raise SchemaError."""
    values = series.dropna()
    bad = values[~values.isin(TRUE_VALUES | FALSE_VALUES)]
    if not bad.empty:
        raise SchemaError(
            f"Column {series.name!r} is not boolean: row {bad.index[0]} has {bad.iloc[0]!r}"
        )
    return series.map(lambda v: v in TRUE_VALUES, na_action="ignore").astype("boolean")


def coerce_date(series: pd.Series) -> pd.Series:
    """Coerce YYYY-MM-DD date text to ``datetime.date`` values (missing stays NA)."""
    try:
        parsed = pd.to_datetime(series, format="%Y-%m-%d", errors="raise")
    except (ValueError, TypeError) as e:
        raise SchemaError(f"Column {series.name!r} is not a date column: {e}") from e
    return parsed.dt.date.where(parsed.notna(), None)


def load_swsheet(path: Path) -> pd.DataFrame:
    """
    Load the single-CSV tool registry with its fixed column schema.

    String columns pass through, Added/Updated are parsed as dates and every
    other column must hold boolean category flags. Any violation aborts the
    load with SchemaError.
    """
    log.info("loading_swsheet", path=str(path))

    df = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=["", "NA"])

    missing = [c for c in NON_CATEGORY_COLUMNS if c not in df.columns]
    if missing:
        log.error("missing_columns", path=str(path), missing=missing)
        raise SchemaError(f"Input is missing required columns: {missing}")

    if df["Name"].isna().any():
        raise SchemaError("Every tool must have a Name.")
    duplicated = df.loc[df["Name"].duplicated(), "Name"]
    if not duplicated.empty:
        raise SchemaError(f"Duplicate tool names: {duplicated.tolist()}")

    for col in DATE_COLUMNS:
        df[col] = coerce_date(df[col])

    categories = [c for c in df.columns if c not in NON_CATEGORY_COLUMNS]
    for col in categories:
        df[col] = coerce_bool(df[col])

    log.info(
        "swsheet_loaded",
        tools=len(df),
        categories=len(categories),
        path=str(path),
    )
    return df


def load_json(path: Path) -> Any:
    log.info("loading_json", path=str(path))
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def load_descriptions(path: Path) -> pd.DataFrame:
    """
    Load the category descriptions for pass-through to the database.

    Accepts either a ``{category: description}`` mapping or a list of
    ``{"Category": ..., "Description": ...}`` objects.
    """
    data = load_json(path)
    if isinstance(data, dict):
        return pd.DataFrame(
            {"Category": list(data.keys()), "Description": list(data.values())}
        )
    if isinstance(data, list):
        return pd.DataFrame(data)
    raise SchemaError(f"Unsupported descriptions layout in {path}: {type(data).__name__}")
