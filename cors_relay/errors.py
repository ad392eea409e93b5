"""Errors the relay turns into JSON responses."""


class RelayError(Exception):
    """Base class for failures reported to the caller."""

    status: int = 500
    message: str = "Relay error"

    def __init__(self, message: str | None = None, detail: str | None = None):
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)


class MissingTarget(RelayError):
    status = 400
    message = "Missing ?url= parameter"


class InvalidTarget(RelayError):
    status = 400
    message = "Invalid URL or protocol not allowed"


class HostNotAllowed(RelayError):
    status = 403
    message = "Host not allowed by ALLOWLIST"


class UpstreamFailure(RelayError):
    """The target could not be reached or failed before sending headers."""

    status = 502
    message = "Upstream error"
