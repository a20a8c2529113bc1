"""Configuration for the conversion run.

Centralizes the input files, the output database directory and the network
settings, keeping production and test runs apart.
"""

import os
from pathlib import Path
from typing import Literal

from ..utils.log import get_logger

log = get_logger(__name__)

EnvironmentMode = Literal["production", "test"]

# Crossref asks for a contact address on the OpenURL endpoint
DEFAULT_MAILTO = "scrnatools@example.org"

_DEFAULT_PRODUCTION_PATHS = {
    "swsheet_path": Path("single_cell_software.csv"),
    "repositories_path": Path("docs/data/repositories.json"),
    "descriptions_path": Path("docs/data/descriptions.json"),
    "database_dir": Path("database"),
    "log_dir": Path("logs"),
}

_DEFAULT_TEST_PATHS = {
    "swsheet_path": Path("test_data/single_cell_software.csv"),
    "repositories_path": Path("test_data/docs/data/repositories.json"),
    "descriptions_path": Path("test_data/docs/data/descriptions.json"),
    "database_dir": Path("test_data/database"),
    "log_dir": Path("test_data/logs"),
}


class ConversionConfig:
    """Paths and network settings for a conversion run.

    Production and test modes use completely separate input and output paths.
    """

    def __init__(
        self,
        mode: EnvironmentMode = "production",
        mailto: str | None = None,
        max_concurrency: int = 4,
        max_attempts: int = 10,
    ) -> None:
        self._mode: EnvironmentMode = mode
        self._paths: dict[str, Path] = {}
        self.mailto = mailto or os.getenv("SCRNATOOLS_MAILTO") or DEFAULT_MAILTO
        if self.mailto == DEFAULT_MAILTO:
            log.warning("mailto_not_configured", mailto=DEFAULT_MAILTO, env_var="SCRNATOOLS_MAILTO")
        self.max_concurrency = max_concurrency
        self.max_attempts = max_attempts
        self._load_paths()
        log.debug("conversion_config_initialized", mode=mode, paths=str(self._paths))

    def _load_paths(self) -> None:
        if self._mode == "test":
            self._paths = _DEFAULT_TEST_PATHS.copy()
        else:
            self._paths = _DEFAULT_PRODUCTION_PATHS.copy()

    @property
    def mode(self) -> EnvironmentMode:
        return self._mode

    @property
    def swsheet_path(self) -> Path:
        """Get the single-CSV tool registry path."""
        return self._paths["swsheet_path"]

    @property
    def repositories_path(self) -> Path:
        """Get the curated repositories JSON path."""
        return self._paths["repositories_path"]

    @property
    def descriptions_path(self) -> Path:
        """Get the category descriptions JSON path."""
        return self._paths["descriptions_path"]

    @property
    def database_dir(self) -> Path:
        """Get the output directory for the TSV tables."""
        return self._paths["database_dir"]

    @property
    def log_dir(self) -> Path:
        return self._paths["log_dir"]

    def set_mode(self, mode: EnvironmentMode) -> None:
        """Change environment mode and reload paths."""
        if mode != self._mode:
            old_mode = self._mode
            self._mode = mode
            self._load_paths()
            log.info(
                "environment_mode_changed",
                old_mode=old_mode,
                new_mode=mode,
                new_paths=str(self._paths),
            )

    def override_paths(self, **paths: Path) -> None:
        """Replace individual paths, e.g. to point a run at a scratch directory."""
        unknown = set(paths) - set(self._paths)
        if unknown:
            raise KeyError(f"Unknown path settings: {sorted(unknown)}")
        self._paths.update({k: Path(v) for k, v in paths.items()})

    def ensure_directories(self) -> None:
        """Create the output and log directories if they don't exist."""
        for path_name, path in self._paths.items():
            if path_name.endswith("_dir"):
                path.mkdir(parents=True, exist_ok=True)
                log.debug("directory_ensured", path=str(path))

    def get_summary(self) -> dict[str, str]:
        return {
            "mode": self._mode,
            "mailto": self.mailto,
            "max_concurrency": str(self.max_concurrency),
            "max_attempts": str(self.max_attempts),
            **{k: str(v) for k, v in self._paths.items()},
        }


_config: ConversionConfig | None = None


def get_config() -> ConversionConfig:
    """Get the global configuration instance, creating it on first access."""
    global _config
    if _config is None:
        _config = ConversionConfig(mode="production")
    return _config


def set_test_mode() -> None:
    """Switch to test mode globally (used by the --test flag and test fixtures)."""
    global _config
    if _config is None:
        _config = ConversionConfig(mode="test")
        log.info("initialized_in_test_mode", paths=_config.get_summary())
    else:
        _config.set_mode("test")
        log.info("switched_to_test_mode", paths=_config.get_summary())


def set_production_mode() -> None:
    """Switch to production mode globally."""
    global _config
    if _config is None:
        _config = ConversionConfig(mode="production")
        log.info("initialized_in_production_mode", paths=_config.get_summary())
    else:
        _config.set_mode("production")
        log.info("switched_to_production_mode", paths=_config.get_summary())


def is_test_mode() -> bool:
    return get_config().mode == "test"
