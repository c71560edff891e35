import logging
from typing import Optional

from .config import Config
from .encoder import ResponseEncoder
from .errors import IOFailure
from .models import Request, ResolvedTarget, Response
from .resolver import PathResolver

logger = logging.getLogger(__name__)


class FileHandler:
    def __init__(self, config: Config, encoder: Optional[ResponseEncoder] = None) -> None:
        self.resolver = PathResolver(config.root, config.default_document)
        if encoder is None:
            encoder = ResponseEncoder(config.content_types, config.compress_level)
        self.encoder = encoder
        self.not_found_document = config.not_found_document

    def handle(self, req: Request) -> Response:
        target = self.resolver.resolve(req.path)
        if not target.exists:
            return self._not_found(req)
        return self.encoder.file(req, target.path, self._read(target))

    def _not_found(self, req: Request) -> Response:
        if self.not_found_document:
            page = self.resolver.resolve("/" + self.not_found_document)
            if page.exists:
                return self.encoder.not_found(req, self._read(page), self.encoder.content_type(page.path))
        return self.encoder.not_found(req)

    @staticmethod
    def _read(target: ResolvedTarget) -> bytes:
        # no caching, every request goes to disk
        try:
            with open(target.path, "rb") as f:
                return f.read()
        except OSError as e:
            logger.error("Could not read %s: %s", target.path, e)
            raise IOFailure(f"cannot read {target.path}") from e
