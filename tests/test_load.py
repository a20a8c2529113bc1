import datetime as dt
import json
from pathlib import Path

import pytest

from scrnatools_db.core.errors import SchemaError
from scrnatools_db.io_.load import load_descriptions, load_swsheet


def test_load_swsheet(swsheet_csv: Path) -> None:
    sheet = load_swsheet(swsheet_csv)

    assert sheet["Name"].tolist() == ["alpha", "beta", "gamma", "delta"]
    assert sheet.loc[0, "Added"] == dt.date(2016, 9, 8)
    assert sheet.loc[0, "RNA-seq"]
    assert not sheet.loc[0, "Clustering"]
    # empty flag cell is missing, not False
    assert sheet["Clustering"].isna().tolist() == [False, False, False, True]
    # empty string cells are missing
    assert sheet["DOIs"].isna().tolist() == [False, False, True, False]


def test_load_swsheet_rejects_non_boolean_category(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text(
        "Name,Platform,DOIs,PubDates,Code,Description,License,Added,Updated,RNA-seq\n"
        "alpha,R,,,,,,2016-09-08,2016-09-08,maybe\n",
        encoding="utf-8",
    )
    with pytest.raises(SchemaError, match="RNA-seq"):
        load_swsheet(path)


def test_load_swsheet_rejects_bad_date(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text(
        "Name,Platform,DOIs,PubDates,Code,Description,License,Added,Updated\n"
        "alpha,R,,,,,,not-a-date,2016-09-08\n",
        encoding="utf-8",
    )
    with pytest.raises(SchemaError, match="Added"):
        load_swsheet(path)


def test_load_swsheet_rejects_missing_columns(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("Name,Platform\nalpha,R\n", encoding="utf-8")
    with pytest.raises(SchemaError, match="missing required columns"):
        load_swsheet(path)


def test_load_swsheet_rejects_duplicate_names(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text(
        "Name,Platform,DOIs,PubDates,Code,Description,License,Added,Updated\n"
        "alpha,R,,,,,,2016-09-08,2016-09-08\n"
        "alpha,R,,,,,,2016-09-08,2016-09-08\n",
        encoding="utf-8",
    )
    with pytest.raises(SchemaError, match="Duplicate"):
        load_swsheet(path)


def test_load_descriptions_mapping(descriptions_json: Path) -> None:
    categories = load_descriptions(descriptions_json)
    assert list(categories.columns) == ["Category", "Description"]
    assert categories["Category"].tolist() == ["RNA-seq", "Clustering", "Visualization"]


def test_load_descriptions_records(tmp_path: Path) -> None:
    path = tmp_path / "descriptions.json"
    path.write_text(
        json.dumps([{"Category": "RNA-seq", "Description": "Tools for RNA-seq data"}]),
        encoding="utf-8",
    )
    categories = load_descriptions(path)
    assert categories.to_dict("records") == [
        {"Category": "RNA-seq", "Description": "Tools for RNA-seq data"}
    ]


@pytest.mark.parametrize(
    ("spelling", "expected"),
    [
        ("TRUE", True),
        ("True", True),
        ("true", True),
        ("T", True),
        ("FALSE", False),
        ("False", False),
        ("false", False),
        ("F", False),
    ],
)
def test_load_swsheet_boolean_spellings(tmp_path: Path, spelling: str, expected: bool) -> None:
    path = tmp_path / "flags.csv"
    path.write_text(
        "Name,Platform,DOIs,PubDates,Code,Description,License,Added,Updated,RNA-seq\n"
        f"alpha,R,,,,,,2016-09-08,2016-09-08,{spelling}\n",
        encoding="utf-8",
    )
    assert load_swsheet(path).loc[0, "RNA-seq"] == expected


def test_load_swsheet_rejects_datetime_in_date_column(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text(
        "Name,Platform,DOIs,PubDates,Code,Description,License,Added,Updated\n"
        "alpha,R,,,,,,2019-01-01T10:30,2016-09-08\n",
        encoding="utf-8",
    )
    with pytest.raises(SchemaError, match="Added"):
        load_swsheet(path)
