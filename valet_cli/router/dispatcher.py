"""
Request dispatch: host -> site directory -> driver -> static file or front controller.

The dispatcher only decides. Executing a front controller is the
executor's job; the dispatcher hands over a ``HandOff`` and is done.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from starlette.responses import Response

from ..config import ValetConfig
from ..drivers import DriverRegistry, ValetDriver
from .cache import SitePathCache
from .errors import NoDriverMatch, NoFrontController, NoSiteMatch
from .resolver import SiteResolver
from .utils import domain_segment, parse_request, resolve_rewrite

logger = logging.getLogger("valet.router.dispatcher")

ORIGINAL_HOST_HEADER = "x-original-host"
FORWARDED_HOST_HEADER = "x-forwarded-host"


@dataclass
class RequestContext:
    """Everything the dispatch pipeline needs from one inbound request."""

    host: str
    raw_uri: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    scheme: str = "http"
    remote_addr: str = ""
    site_name: str = ""
    uri: str = "/"
    mutated_uri: str | None = None

    def __post_init__(self) -> None:
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    @property
    def domain_segment(self) -> str:
        return domain_segment(self.site_name)

    @property
    def query_string(self) -> str:
        _, _, query = self.raw_uri.partition("?")
        return query


@dataclass
class StaticFile:
    path: Path
    response: Response


@dataclass
class HandOff:
    """A front controller ready to run in its own directory."""

    front_controller: Path
    working_directory: Path
    site_path: Path
    uri: str
    driver: ValetDriver
    context: RequestContext


def remap_tunnel_host(headers: dict[str, str]) -> None:
    """Expose ngrok's X-Original-Host as X-Forwarded-Host when the latter is absent."""
    if ORIGINAL_HOST_HEADER in headers and FORWARDED_HOST_HEADER not in headers:
        headers[FORWARDED_HOST_HEADER] = headers[ORIGINAL_HOST_HEADER]


class Dispatcher:
    """
    Runs one request through the resolution pipeline.

    Raises NoSiteMatch, NoDriverMatch or NoFrontController when the request
    cannot be served; each is terminal for that request only.
    """

    def __init__(self, config: ValetConfig, cache: SitePathCache, registry: DriverRegistry) -> None:
        self.config = config
        self.cache = cache
        self.registry = registry
        self.resolver = SiteResolver(config.paths)

    def parse(self, context: RequestContext) -> RequestContext:
        site_name, uri = parse_request(context.host, context.raw_uri, self.config.domain)
        context.site_name = resolve_rewrite(site_name, self.config.rewrites)
        context.uri = uri
        return context

    def site_path(self, site_name: str) -> Path:
        cached = self.cache.get(site_name)
        if cached is not None:
            return Path(cached)

        resolution = self.resolver.resolve(site_name)
        if resolution.path is None:
            raise NoSiteMatch(site_name, resolution.site_count)

        self.cache.put(site_name, str(resolution.path))
        return resolution.path

    def select_driver(self, site_path: Path, context: RequestContext) -> ValetDriver:
        driver = self.registry.select(site_path, context.site_name, context.uri)
        if driver is None:
            raise NoDriverMatch()
        return driver

    def dispatch(self, context: RequestContext) -> StaticFile | HandOff:
        self.parse(context)
        site_path = self.site_path(context.site_name)
        driver = self.select_driver(site_path, context)

        remap_tunnel_host(context.headers)

        uri = driver.mutate_uri(context.uri)
        context.mutated_uri = uri

        is_script = PurePosixPath(uri).suffix == driver.script_extension
        if uri != "/" and not is_script:
            static_path = driver.is_static_file(site_path, context.site_name, uri)
            if static_path is not None:
                logger.debug("Serving static %s for %s%s", static_path, context.site_name, uri)
                response = driver.serve_static_file(static_path, site_path, context.site_name, uri)
                return StaticFile(path=static_path, response=response)

        front_controller = driver.front_controller_path(site_path, context.site_name, uri)
        if front_controller is None:
            raise NoFrontController()

        logger.debug("Front controller %s (driver=%s) for %s%s", front_controller, driver.name, context.site_name, uri)
        return HandOff(
            front_controller=front_controller,
            working_directory=front_controller.parent,
            site_path=site_path,
            uri=uri,
            driver=driver,
            context=context,
        )
