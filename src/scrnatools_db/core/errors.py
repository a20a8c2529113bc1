class SchemaError(ValueError):
    """Input table does not match its declared column schema."""


class ScrapeError(RuntimeError):
    """A registry page could not be fetched or parsed."""
