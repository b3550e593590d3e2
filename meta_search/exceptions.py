"""
Error taxonomy for meta-agent-search.

Oracle errors are absorbed by the search loop (one generation or one
refinement round is lost). Storage errors are not: they propagate to the
caller.
"""


class MetaSearchError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(MetaSearchError, ValueError):
    """Invalid search or fitness configuration."""


class OracleError(MetaSearchError):
    """The generative oracle could not produce a usable answer."""


class OracleTransportError(OracleError):
    """Network / HTTP failure while talking to the oracle."""


class OracleResponseError(OracleError, ValueError):
    """The oracle answered, but the answer is not the expected structure."""

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


class StorageError(MetaSearchError):
    """Persisting the archive failed."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path
