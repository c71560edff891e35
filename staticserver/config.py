from dataclasses import dataclass, field
from typing import Mapping

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".txt": "text/plain",
    ".json": "application/json",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".ico": "image/x-icon",
    ".otf": "font/otf",
    ".ttf": "font/ttf",
    ".mp4": "video/mp4",
    ".mp3": "audio/mpeg",
}


@dataclass(frozen=True)
class Config:
    host: str = "0.0.0.0"
    port: int = 8080
    root: str = "."
    workers: int = 4
    queue_size: int = 1000
    backlog: int = 128
    recv_timeout: float = 2.0
    accept_timeout: float = 1.0
    max_header_bytes: int = 65536
    chunk_size: int = 64 * 1024
    default_document: str = "index.html"
    not_found_document: str = "404.html"
    compress_level: int = 6
    content_types: Mapping[str, str] = field(default_factory=lambda: dict(CONTENT_TYPES))
    debug: bool = False
