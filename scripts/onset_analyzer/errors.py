"""Exception types raised by the analyzer."""


class AnalyzerError(Exception):
    """Base class for analyzer errors."""


class ConfigurationError(AnalyzerError, ValueError):
    """Invalid input handed over by ingestion (resolution, rhythmic values)."""


class InvalidInputError(AnalyzerError, ValueError):
    """A query was called with malformed arguments."""
