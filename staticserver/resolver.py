import os
from typing import Optional
from urllib.parse import unquote

from .models import ResolvedTarget


class PathResolver:
    """Maps request paths onto regular files below the served root.

    Anything that does not exist, is not a regular file, or ends up outside
    the root after canonicalization resolves to a missing target. Callers never
    learn why a path was refused.
    """

    def __init__(self, root: str, default_document: str = "index.html") -> None:
        self.root_real = os.path.realpath(root)
        self.default_document = default_document

    def resolve(self, url_path: str) -> ResolvedTarget:
        try:
            abs_path = self._locate(url_path)
            if abs_path is None:
                return ResolvedTarget.missing()
            size = os.path.getsize(abs_path)
        except (OSError, ValueError):
            # ValueError: embedded NUL from a %00 in the path
            return ResolvedTarget.missing()
        return ResolvedTarget(path=abs_path, exists=True, size=size)

    def contains(self, path: str) -> bool:
        return os.path.commonpath([self.root_real, path]) == self.root_real

    def _locate(self, url_path: str) -> Optional[str]:
        rel = url_path.split("?", 1)[0].split("#", 1)[0]
        rel = unquote(rel)
        if rel[:1] in ("/", "\\"):
            rel = rel[1:]
        if not rel:
            rel = self.default_document

        candidate = os.path.realpath(os.path.join(self.root_real, rel))
        if not self.contains(candidate):
            return None

        if os.path.isdir(candidate):
            candidate = os.path.join(candidate, self.default_document)
        elif not os.path.exists(candidate) and not os.path.splitext(candidate)[1]:
            # /about -> about.html
            candidate += ".html"

        if not os.path.isfile(candidate):
            return None

        # the default document or the .html sibling may be a symlink
        candidate = os.path.realpath(candidate)
        if not self.contains(candidate):
            return None
        return candidate
