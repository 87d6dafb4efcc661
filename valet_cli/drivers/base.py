"""
Driver contract shared by every project type.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path

from starlette.responses import FileResponse, Response


class ValetDriver(ABC):
    """
    Knows how one kind of project is laid out.

    A driver claims a project directory (``serves``), may rewrite the request
    URI, and tells the dispatcher which static file or which front controller
    answers a URI. Drivers are stateless; one instance serves every request.
    """

    name = "base"

    #: Extension of files executed rather than served for this stack.
    script_extension = ".php"

    @abstractmethod
    def serves(self, site_path: Path, site_name: str, uri: str) -> bool:
        """Return True if this driver handles the project at ``site_path``."""

    def mutate_uri(self, uri: str) -> str:
        return uri

    @abstractmethod
    def is_static_file(self, site_path: Path, site_name: str, uri: str) -> Path | None:
        """Return the file answering ``uri`` directly, if any."""

    def serve_static_file(self, static_path: Path, site_path: Path, site_name: str, uri: str) -> Response:
        return FileResponse(static_path, headers=self.static_headers(static_path, uri))

    def static_headers(self, static_path: Path, uri: str) -> dict[str, str]:
        return {}

    @abstractmethod
    def front_controller_path(self, site_path: Path, site_name: str, uri: str) -> Path | None:
        """Return the entry script for ``uri``, or None."""

    @staticmethod
    def site_file(site_path: Path, *parts: str) -> Path | None:
        """
        Join URI fragments onto a directory without escaping it.

        ``..`` segments are normalised lexically; anything that would leave
        ``site_path`` yields None. Symlinks inside the project are allowed.
        """
        root = os.path.normpath(str(site_path))
        relative = "/".join(part.strip("/") for part in parts if part.strip("/"))
        joined = os.path.normpath(os.path.join(root, relative))
        if joined != root and not joined.startswith(root.rstrip(os.sep) + os.sep):
            return None
        return Path(joined)

    @classmethod
    def actual_file(cls, site_path: Path, *parts: str) -> Path | None:
        """Like site_file, but only for regular files that exist."""
        candidate = cls.site_file(site_path, *parts)
        if candidate is not None and os.path.isfile(candidate):
            return candidate
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"
