class RailcastError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(RailcastError):
    """Missing or invalid field, disallowed upload, or duplicate unique key."""

    status_code = 400


class NotFoundError(RailcastError):
    status_code = 404


class UpstreamError(RailcastError):
    """Failure talking to the storage/CDN provider."""

    status_code = 500
