from pathlib import Path

from .base import ValetDriver

STORAGE_PREFIX = "/storage/"


class LaravelValetDriver(ValetDriver):
    name = "laravel"

    def serves(self, site_path: Path, site_name: str, uri: str) -> bool:
        return (site_path / "public" / "index.php").is_file() and (site_path / "artisan").is_file()

    def is_static_file(self, site_path: Path, site_name: str, uri: str) -> Path | None:
        static = self.actual_file(site_path, "public", uri)
        if static is not None:
            return static
        # public/storage symlink not created yet
        if uri.startswith(STORAGE_PREFIX):
            return self.actual_file(site_path, "storage", "app", "public", uri[len(STORAGE_PREFIX) :])
        return None

    def front_controller_path(self, site_path: Path, site_name: str, uri: str) -> Path | None:
        return self.actual_file(site_path, "public", "index.php")
