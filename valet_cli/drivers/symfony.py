from pathlib import Path

from .base import ValetDriver

# Symfony 4+ (public/) first, then the 2.x/3.x web/ layout.
FRONT_CONTROLLERS = (
    ("public", "index.php"),
    ("web", "app_dev.php"),
    ("web", "app.php"),
)


class SymfonyValetDriver(ValetDriver):
    name = "symfony"

    def serves(self, site_path: Path, site_name: str, uri: str) -> bool:
        has_kernel = (site_path / "bin" / "console").is_file() or (site_path / "app" / "AppKernel.php").is_file()
        has_front_controller = any(site_path.joinpath(*parts).is_file() for parts in FRONT_CONTROLLERS)
        return has_kernel and has_front_controller

    def is_static_file(self, site_path: Path, site_name: str, uri: str) -> Path | None:
        return self.actual_file(site_path, "public", uri) or self.actual_file(site_path, "web", uri)

    def front_controller_path(self, site_path: Path, site_name: str, uri: str) -> Path | None:
        for parts in FRONT_CONTROLLERS:
            candidate = self.actual_file(site_path, *parts)
            if candidate is not None:
                return candidate
        return None
