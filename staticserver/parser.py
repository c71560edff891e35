import re
from typing import Dict

from .errors import MalformedRequest, UnsupportedVersion
from .models import Method, Request

SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")
DEFAULT_VERSION = "HTTP/1.0"

_LINE_BREAK = re.compile(r"\r?\n")


def parse_request(raw: bytes) -> Request:
    """Parse a raw request head into a Request.

    Only the request line and the header block are looked at; anything after
    the first empty line is ignored.
    """
    text = raw.decode("iso-8859-1").lstrip("\r\n")
    lines = _LINE_BREAK.split(text)

    request_line = lines[0]
    parts = request_line.split()
    if len(parts) < 2:
        raise MalformedRequest(f"bad request line: {request_line!r}")

    token, target = parts[0], parts[1]
    version = parts[2] if len(parts) > 2 else DEFAULT_VERSION

    if not version.startswith("HTTP/"):
        raise MalformedRequest(f"bad http version: {version!r}")
    if version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersion(f"unsupported http version: {version!r}")
    if not target.startswith("/"):
        raise MalformedRequest(f"bad request target: {target!r}")

    return Request(
        method=Method.from_token(token),
        token=token,
        path=target,
        version=version,
        headers=_parse_headers(lines[1:]),
    )


def _parse_headers(lines) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for line in lines:
        if not line:
            break
        if ":" not in line:
            continue
        k, v = line.split(":", 1)
        k, v = k.strip().lower(), v.strip()
        if k in headers:
            headers[k] = f"{headers[k]}, {v}"
        else:
            headers[k] = v
    return headers
