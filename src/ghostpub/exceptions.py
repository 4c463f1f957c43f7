"""Error taxonomy shared by the client, the converter and the sync engine"""


class GhostPubError(Exception):
    """Base class for all ghostpub errors."""


class ConfigurationError(GhostPubError):
    """Missing or malformed URL/credential; raised before any request is made."""


class AuthError(GhostPubError):
    """The signing input (Admin API secret) could not be used."""


class NetworkError(GhostPubError):
    """Transport failure: no HTTP response was received."""


class BackendError(GhostPubError):
    """Ghost answered with an unexpected HTTP status."""

    def __init__(self, operation: str, status: int, body: str):
        self.operation = operation
        self.status = status
        self.body = body
        super().__init__(f"Failed to {operation}: {status} {body}")


class ConversionError(GhostPubError):
    """Input shape the converter does not handle. Indicates a defect."""
