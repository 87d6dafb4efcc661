"""
Utility functions for site name extraction and rewrite resolution.
"""

from collections.abc import Iterable, Mapping
from urllib.parse import unquote

ALIAS_PREFIX = "www."


def extract_site_name(host_header: str | None, base_domain: str) -> str:
    """
    Extract the site name from a Host header.

    The port and the ``.<base_domain>`` suffix are removed, and a leading
    ``www.`` is stripped so ``www.foo.test`` and ``foo.test`` resolve alike.
    A host outside the base domain is returned whole; it simply won't
    resolve to a project directory.

    Args:
        host_header: HTTP Host header value (may include port)
        base_domain: Configured development domain (e.g. "test")

    Returns:
        Site name, possibly empty
    """
    if not host_header:
        return ""
    host_only = host_header.split(":")[0].strip().lower().rstrip(".")
    suffix = "." + base_domain.strip(".").lower()
    if host_only.endswith(suffix):
        host_only = host_only[: -len(suffix)]
    if host_only.startswith(ALIAS_PREFIX):
        host_only = host_only[len(ALIAS_PREFIX) :]
    return host_only


def extract_uri(raw_uri: str | None) -> str:
    """Return the URL-decoded path portion of a request target."""
    if not raw_uri:
        return "/"
    return unquote(raw_uri.split("?", 1)[0]) or "/"


def parse_request(host_header: str | None, raw_uri: str | None, base_domain: str) -> tuple[str, str]:
    """Parse a request into (site_name, uri)."""
    return extract_site_name(host_header, base_domain), extract_uri(raw_uri)


def domain_segment(site_name: str) -> str:
    """Last dot-separated label of a site name ("api.blog" -> "blog")."""
    return site_name.rsplit(".", 1)[-1]


def resolve_rewrite(site_name: str, rewrites: Mapping[str, Iterable[str]]) -> str:
    """
    Map an alias back to its canonical site name.

    The first canonical entry listing ``site_name`` as an alias wins. This is
    a single pass: an alias of an alias is not followed.
    """
    for site, aliases in rewrites.items():
        if site_name in aliases:
            return site
    return site_name
