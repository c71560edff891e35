import enum
from dataclasses import dataclass, field
from typing import Dict, Optional

PROTOCOL_VERSION = "HTTP/1.1"


class Method(enum.Enum):
    GET = "GET"
    HEAD = "HEAD"
    UNSUPPORTED = "UNSUPPORTED"

    @classmethod
    def from_token(cls, token: str) -> "Method":
        # case-sensitive, methods are tokens
        if token == "GET":
            return cls.GET
        if token == "HEAD":
            return cls.HEAD
        return cls.UNSUPPORTED


def _quality(params: str) -> float:
    for param in params.split(";"):
        name, _, value = param.partition("=")
        if name.strip().lower() == "q":
            try:
                return float(value.strip())
            except ValueError:
                return 0.0
    return 1.0


@dataclass(frozen=True)
class Request:
    method: Method
    token: str
    path: str
    version: str
    headers: Dict[str, str] = field(default_factory=dict)

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)

    @property
    def head_only(self) -> bool:
        return self.method is Method.HEAD

    @property
    def accepts_gzip(self) -> bool:
        """True when Accept-Encoding lists gzip with a non-zero q value."""
        value = self.header("accept-encoding", "") or ""
        for item in value.split(","):
            coding, _, params = item.partition(";")
            if coding.strip().lower() == "gzip":
                return _quality(params) > 0
        return False


@dataclass(frozen=True)
class ResolvedTarget:
    path: Optional[str]
    exists: bool
    size: int = 0

    @classmethod
    def missing(cls) -> "ResolvedTarget":
        return cls(path=None, exists=False)


@dataclass(frozen=True)
class Response:
    status: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    head_only: bool = False

    def head(self) -> bytes:
        status_line = f"{PROTOCOL_VERSION} {self.status} {self.reason}\r\n"
        header_block = status_line + "".join(f"{k}: {v}\r\n" for k, v in self.headers.items()) + "\r\n"
        return header_block.encode("iso-8859-1")

    def to_bytes(self) -> bytes:
        if self.head_only:
            return self.head()
        return self.head() + self.body
