"""
Error taxonomy for the Electricity Maps provider.

Transport failures and 5xx responses are retry-eligible; 400/401/404 and
undecodable payloads are not. For scheduling purposes every error is a
failed cycle; ``retryable`` only tells the host which prompt to show.
"""


class ProviderError(Exception):
    """Base class for every failure raised by the provider client."""

    kind: str = "provider-error"
    retryable: bool = False

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class TransportError(ProviderError):
    """Timeout, DNS failure, connection reset: no HTTP status was received."""

    kind = "transport-error"
    retryable = True


class BadRequestError(ProviderError):
    """HTTP 400; carries the provider's validation message."""

    kind = "bad-request"

    def __init__(self, message: str = "Invalid request") -> None:
        super().__init__(message, status=400)


class UnauthorizedError(ProviderError):
    """HTTP 401; the API key is missing, wrong or revoked."""

    kind = "unauthorized"

    def __init__(self, message: str = "Invalid API key or unauthorized access") -> None:
        super().__init__(message, status=401)


class ZoneNotFoundError(ProviderError):
    """HTTP 404 for the configured zone."""

    kind = "zone-not-found"

    def __init__(self, zone: str) -> None:
        self.zone = zone
        super().__init__(f"Zone {zone} not found", status=404)


class ServerError(ProviderError):
    """5xx or any status not classified above."""

    kind = "server-error"
    retryable = True

    def __init__(self, status: int, body: str = "") -> None:
        self.body = body
        super().__init__(f"Server error (HTTP {status})", status=status)


class InvalidDataError(ProviderError):
    """A 200 response whose body could not be decoded into the expected entity."""

    kind = "invalid-data"

    def __init__(self, reason: str, status: int | None = None, body: str = "") -> None:
        self.reason = reason
        self.body = body
        super().__init__(f"Could not parse server response: {reason}", status=status)
