"""Exception taxonomy for the LegiScan sync package.

The client raises these; the resolvers, the change detector and the
synchronizer catch ``LegiScanError`` at the unit-of-work boundary and treat
the failed unit as absent data.
"""


class LegiScanError(Exception):
    """Base class for every error raised by this package."""


class LegiScanNotConfigured(LegiScanError):
    """No LegiScan API key is configured; the feature is disabled."""


class LegiScanAPIError(LegiScanError):
    """A remote call failed: network error, timeout, HTTP status or an ERROR status payload."""

    def __init__(self, op: str, message: str):
        self.op = op
        self.message = message
        super().__init__(f"LegiScan {op} failed: {message}")


class LegiScanPayloadError(LegiScanAPIError):
    """A remote call succeeded but the payload did not have the expected shape."""
