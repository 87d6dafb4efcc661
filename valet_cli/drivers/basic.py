"""Generic driver for plain PHP / HTML projects."""

from pathlib import Path

from .base import ValetDriver


class BasicValetDriver(ValetDriver):
    """
    Serves any directory.

    Must stay last in the priority list, otherwise it hides every
    framework-specific driver.
    """

    name = "basic"

    def serves(self, site_path: Path, site_name: str, uri: str) -> bool:
        return True

    def is_static_file(self, site_path: Path, site_name: str, uri: str) -> Path | None:
        return self.actual_file(site_path, "public", uri) or self.actual_file(site_path, uri)

    def front_controller_path(self, site_path: Path, site_name: str, uri: str) -> Path | None:
        uri = uri.rstrip("/")
        dynamic = (
            (uri,),
            (uri, "index.php"),
            (uri, "index.html"),
        )
        fixed = (
            ("index.php",),
            ("public", "index.php"),
            ("index.html",),
            ("public", "index.html"),
        )
        for parts in dynamic + fixed:
            if not any(parts):
                continue
            candidate = self.actual_file(site_path, *parts)
            if candidate is not None:
                return candidate
        return None
