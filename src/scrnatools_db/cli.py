import asyncio
import os
from datetime import datetime
from typing import Any

import httpx
import typer
from dotenv import load_dotenv
from pydantic import ValidationError

from .core.config import get_config, set_test_mode
from .core.errors import SchemaError, ScrapeError
from .pipeline import run_conversion, utc_now
from .utils.log import get_logger, setup_logging

# Load environment variables (SCRNATOOLS_MAILTO, LOG_LEVEL) from .env file
load_dotenv()

_log_state: dict[str, Any] = {
    "session_id": datetime.now().strftime("%Y%m%d_%H%M%S"),
    "log_file": None,
}

app = typer.Typer(help="Convert the single-CSV scRNA-tools registry into TSV tables.")
log = get_logger(__name__)


@app.callback()
def callback(
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress console log output (logs still written to file)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"),
    test: bool = typer.Option(
        False, "--test", help="Use test environment (separate input and output directories)"
    ),
) -> None:
    """Initialize structured logging and environment configuration."""
    if test:
        set_test_mode()

    log_level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "INFO")
    _log_state["log_file"] = setup_logging(
        session_id=_log_state["session_id"],
        log_level=log_level,
        console_output=not quiet,
        log_dir=get_config().log_dir,
    )
    log.info(
        "application_started",
        session_id=_log_state["session_id"],
        log_file=str(_log_state["log_file"]),
        environment=get_config().mode,
    )


@app.command()
def convert() -> None:
    """Run the full conversion and write every table to the database directory."""
    config = get_config()
    config.ensure_directories()
    timestamp = utc_now()

    try:
        written = asyncio.run(run_conversion(config, timestamp))
    except (SchemaError, ValidationError) as e:
        log.error("conversion_failed_bad_input", error=str(e))
        typer.echo(f"Invalid input: {e}")
        raise typer.Exit(code=2) from e
    except (ScrapeError, httpx.HTTPError) as e:
        log.error("conversion_failed_network", error=str(e))
        typer.echo(f"Network failure, no files written: {e}")
        raise typer.Exit(code=1) from e

    typer.echo(f"Wrote {len(written)} tables to {config.database_dir}")


if __name__ == "__main__":
    app()
