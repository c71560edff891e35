from http import HTTPStatus
from typing import Optional


class ServerError(Exception):
    """Base class for everything the server raises on purpose."""


class RequestError(ServerError):
    """A request the server refuses to serve; carries the response status."""

    status = HTTPStatus.BAD_REQUEST

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.status.phrase
        super().__init__(f"{self.status.value} {self.message}")


class MalformedRequest(RequestError):
    """The request head cannot be parsed."""


class HeaderTooLarge(MalformedRequest):
    status = HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE


class UnsupportedVersion(RequestError):
    status = HTTPStatus.HTTP_VERSION_NOT_SUPPORTED


class IOFailure(ServerError):
    """A resolved file could not be read."""


class BindFailure(ServerError):
    """The listening socket could not be set up. Fatal."""
