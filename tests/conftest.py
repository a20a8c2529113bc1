import json
from pathlib import Path

import pytest

SWSHEET_CSV = """\
Name,Platform,DOIs,PubDates,Code,Description,License,Added,Updated,RNA-seq,Clustering,Visualization
alpha,R,10.1101/111111;10.1038/nmeth.1,2017-01-01;2018-02-02,https://github.com/lab/alpha,Alpha tool,GPL-3,2016-09-08,2017-03-01,TRUE,FALSE,TRUE
beta,Python,arxiv/1802.03426v2,2018-02-09,https://github.com/lab/beta/,Beta tool,MIT,2017-05-05,2018-06-01,FALSE,TRUE,FALSE
gamma,R,,,https://bitbucket.org/lab/gamma,Gamma tool,,2017-10-10,2017-10-10,FALSE,FALSE,FALSE
delta,Python,10.1038/nmeth.1,2018-02-02,,Delta tool,BSD-3,2018-01-01,2018-01-01,TRUE,,TRUE
"""

REPOSITORIES = {
    "alpha": {"BioC": "alpha", "Ignored": ["BioC/alphabet", "PyPI/alpha"]},
    "beta": {"PyPI": "beta-sc", "Conda": "beta"},
    "epsilon": {"CRAN": "epsilon"},
}

DESCRIPTIONS = {
    "RNA-seq": "Tools for RNA-seq data",
    "Clustering": "Tools for clustering cells",
    "Visualization": "Tools for visualising data",
}


@pytest.fixture
def swsheet_csv(tmp_path: Path) -> Path:
    path = tmp_path / "single_cell_software.csv"
    path.write_text(SWSHEET_CSV, encoding="utf-8")
    return path


@pytest.fixture
def repositories_json(tmp_path: Path) -> Path:
    path = tmp_path / "repositories.json"
    path.write_text(json.dumps(REPOSITORIES), encoding="utf-8")
    return path


@pytest.fixture
def descriptions_json(tmp_path: Path) -> Path:
    path = tmp_path / "descriptions.json"
    path.write_text(json.dumps(DESCRIPTIONS), encoding="utf-8")
    return path


class RecordingLogger:
    """Stand-in for a module's structlog logger that keeps (level, event) pairs."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def debug(self, event: str, **kw: object) -> None:
        self.events.append(("debug", event))

    def info(self, event: str, **kw: object) -> None:
        self.events.append(("info", event))

    def warning(self, event: str, **kw: object) -> None:
        self.events.append(("warning", event))

    def error(self, event: str, **kw: object) -> None:
        self.events.append(("error", event))


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()
