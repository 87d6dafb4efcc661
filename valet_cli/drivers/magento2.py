"""Magento 2 projects (document root ``pub/``)."""

import re
from pathlib import Path

from .base import ValetDriver

# /static/version1589800000/frontend/... -> /static/frontend/...
_STATIC_VERSION = re.compile(r"^/static/version\d+/")


class Magento2ValetDriver(ValetDriver):
    name = "magento2"

    def serves(self, site_path: Path, site_name: str, uri: str) -> bool:
        return (site_path / "bin" / "magento").is_file() and (site_path / "pub" / "index.php").is_file()

    def is_static_file(self, site_path: Path, site_name: str, uri: str) -> Path | None:
        uri = _STATIC_VERSION.sub("/static/", uri)
        return self.actual_file(site_path, "pub", uri)

    def static_headers(self, static_path: Path, uri: str) -> dict[str, str]:
        if _STATIC_VERSION.match(uri):
            return {"Cache-Control": "public, max-age=31536000"}
        return {}

    def front_controller_path(self, site_path: Path, site_name: str, uri: str) -> Path | None:
        return self.actual_file(site_path, "pub", "index.php")
