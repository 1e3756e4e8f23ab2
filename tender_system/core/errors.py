from __future__ import annotations


class TenderSystemError(Exception):
    """
    Base of the domain error taxonomy.
    Each kind carries the transport status the HTTP layer maps it to.
    """

    http_status = 500
    default_message = "internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = (message or self.default_message).strip()
        super().__init__(self.message)


class BadRequest(TenderSystemError):
    http_status = 400
    default_message = "bad request"


class InvalidVersion(BadRequest):
    default_message = "version is out of range"


class UserNotFound(TenderSystemError):
    http_status = 401
    default_message = "user doesn't exist or is invalid"


class Forbidden(TenderSystemError):
    http_status = 403
    default_message = "not enough access rights"


class NotFound(TenderSystemError):
    http_status = 404
    default_message = "not found"


class VersionConflict(TenderSystemError):
    http_status = 409
    default_message = "entity was modified concurrently"
