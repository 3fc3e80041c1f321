"""Exception hierarchy for the scanner.

Only construction-time and queue-building problems propagate to callers.
Per-request failures are recorded on results and never abort a batch.
"""


class ScannerError(Exception):
    """Base class for every error raised by the scanner."""


class ConstructionError(ScannerError):
    """Invalid base URL or transport setup failure. Raised before any I/O."""


class ConfigError(ConstructionError):
    """A configuration value failed validation."""


class RequestError(ScannerError):
    """A single outbound request failed at the transport level."""

    def __init__(self, message: str, url: str = "", method: str = ""):
        super().__init__(message)
        self.url = url
        self.method = method
