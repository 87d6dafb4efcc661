"""
The 404 page shown when no project directory matches the requested host.

It lists every site the router could serve instead, so a typo or a missing
``valet park`` is easy to spot.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .. import __version__
from ..certificates import is_secured, load_certificates, site_url
from ..config import ValetConfig
from .resolver import SiteResolver

TEMPLATES_DIR = Path(__file__).parent / "templates"
NOT_FOUND_TEMPLATE = "404.html"

# Shown separately on the page; left out of the "other settings" dump.
_DISPLAYED_KEYS = ("domain", "paths", "rewrites")

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class SiteLink:
    name: str
    url: str
    secure: bool


@dataclass
class DiagnosticsView:
    requested_site: str
    requested_site_name: str
    domain: str
    config: dict[str, Any]
    custom_config: dict[str, Any]
    site_count: int
    path_count: int
    sites: dict[str, list[SiteLink]] = field(default_factory=dict)
    version: str = __version__

    def as_context(self) -> dict[str, Any]:
        return {
            "requested_site": self.requested_site,
            "requested_site_name": self.requested_site_name,
            "domain": self.domain,
            "config": self.config,
            "custom_config": self.custom_config,
            "site_count": self.site_count,
            "path_count": self.path_count,
            "sites": self.sites,
            "version": self.version,
        }


def build_not_found_view(
    site_name: str,
    config: ValetConfig,
    certificates_dir: Path,
    site_count: int | None = None,
) -> DiagnosticsView:
    resolver = SiteResolver(config.paths)
    certificates = load_certificates(certificates_dir)

    sites: dict[str, list[SiteLink]] = {}
    for base, site_dirs in resolver.list_sites():
        links = []
        for site_dir in site_dirs:
            links.append(
                SiteLink(
                    name=site_dir.name,
                    url=site_url(site_dir.name, config.domain, certificates),
                    secure=is_secured(site_dir.name, config.domain, certificates),
                )
            )
        sites[str(base)] = links

    full_config = config.to_dict()
    custom_config = {k: v for k, v in full_config.items() if k not in _DISPLAYED_KEYS}

    return DiagnosticsView(
        requested_site=f"{site_name}.{config.domain}",
        requested_site_name=site_name,
        domain=config.domain,
        config=full_config,
        custom_config=custom_config,
        site_count=site_count if site_count is not None else resolver.count_sites(),
        path_count=len(config.paths),
        sites=sites,
    )


def render_not_found(view: DiagnosticsView) -> str:
    return _environment.get_template(NOT_FOUND_TEMPLATE).render(**view.as_context())
