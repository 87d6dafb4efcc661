"""
Filesystem lookup of project directories.
"""

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .utils import domain_segment

logger = logging.getLogger("valet.router.resolver")


@dataclass(frozen=True)
class SiteResolution:
    path: Path | None
    site_count: int


def _is_plain_name(name: str) -> bool:
    return bool(name) and not name.startswith(".") and "/" not in name and "\\" not in name and "\0" not in name


def _site_dirs(base: Path) -> list[Path]:
    try:
        return sorted((p for p in base.iterdir() if not p.name.startswith(".") and p.is_dir()), key=lambda p: p.name)
    except OSError:
        return []


class SiteResolver:
    """
    Finds the directory serving a site name.

    Project paths are searched in configured order; within each path the full
    site name is tried before its last label, so ``api.blog`` can fall back to
    the ``blog`` directory.
    """

    def __init__(self, paths: Iterable[str]) -> None:
        self.paths = [Path(p) for p in paths]

    def find(self, site_name: str) -> Path | None:
        candidates = [name for name in (site_name, domain_segment(site_name)) if _is_plain_name(name)]
        for base in self.paths:
            for name in candidates:
                candidate = base / name
                if os.path.isdir(candidate):
                    return candidate.resolve()
        return None

    def count_sites(self) -> int:
        """Number of project directories across all configured paths."""
        return sum(len(_site_dirs(base)) for base in self.paths)

    def resolve(self, site_name: str) -> SiteResolution:
        path = self.find(site_name)
        site_count = self.count_sites()
        if path is None:
            logger.debug("No directory for %r in %d project paths", site_name, len(self.paths))
        return SiteResolution(path=path, site_count=site_count)

    def list_sites(self) -> list[tuple[Path, list[Path]]]:
        """Project directories grouped by configured path, sorted by name."""
        return [(base, _site_dirs(base)) for base in self.paths]
