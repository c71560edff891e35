import gzip
import os
import socket
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Mapping, Optional

from .config import CONTENT_TYPES, DEFAULT_CONTENT_TYPE
from .models import Method, Request, Response

TEXT_PLAIN = "text/plain"
NOT_FOUND_BODY = b"404 Not Found"
ALLOWED_METHODS = "GET, HEAD"


class ResponseEncoder:
    """Builds complete responses, gzip-compressing the body when negotiated.

    Content-Length always describes the body as it goes on the wire. A HEAD
    response is built exactly like the GET one and only drops the body at
    serialization time.
    """

    def __init__(self, content_types: Optional[Mapping[str, str]] = None,
                 compress_level: int = 6, server_name: Optional[str] = None) -> None:
        self.content_types = dict(CONTENT_TYPES if content_types is None else content_types)
        self.compress_level = compress_level
        if server_name is None:
            server_name = f"python/{socket.gethostname()}"
        self.server_name = server_name

    def content_type(self, path: str) -> str:
        ext = os.path.splitext(path)[1].lower()
        return self.content_types.get(ext, DEFAULT_CONTENT_TYPE)

    def encode(self, request: Optional[Request], status: int, payload: bytes,
               content_type: str) -> Response:
        body = payload
        compressed = (
            request is not None
            and request.method in (Method.GET, Method.HEAD)
            and request.accepts_gzip
        )
        if compressed:
            body = gzip.compress(payload, compresslevel=self.compress_level, mtime=0)

        headers = {
            "Content-Type": content_type,
            "Content-Length": str(len(body)),
        }
        if compressed:
            headers["Content-Encoding"] = "gzip"
        headers["Date"] = self._http_date()
        headers["Server"] = self.server_name
        headers["Connection"] = "close"

        status = HTTPStatus(status)
        return Response(
            status=status.value,
            reason=status.phrase,
            headers=headers,
            body=body,
            head_only=request is not None and request.head_only,
        )

    def file(self, request: Request, path: str, payload: bytes) -> Response:
        return self.encode(request, HTTPStatus.OK, payload, self.content_type(path))

    def not_found(self, request: Request, payload: Optional[bytes] = None,
                  content_type: Optional[str] = None) -> Response:
        if payload is None:
            payload, content_type = NOT_FOUND_BODY, TEXT_PLAIN
        return self.encode(request, HTTPStatus.NOT_FOUND, payload, content_type or TEXT_PLAIN)

    def error(self, status: int, request: Optional[Request] = None) -> Response:
        status = HTTPStatus(status)
        body = f"{status.value} {status.phrase}".encode("ascii")
        headers = {
            "Content-Type": TEXT_PLAIN,
            "Content-Length": str(len(body)),
        }
        if status == HTTPStatus.METHOD_NOT_ALLOWED:
            headers["Allow"] = ALLOWED_METHODS
        headers["Date"] = self._http_date()
        headers["Server"] = self.server_name
        headers["Connection"] = "close"
        return Response(
            status=status.value,
            reason=status.phrase,
            headers=headers,
            body=body,
            head_only=request is not None and request.head_only,
        )

    @staticmethod
    def _http_date() -> str:
        dt = datetime.now(timezone.utc)
        return dt.strftime("%a, %d %b %Y %H:%M:%S GMT")
