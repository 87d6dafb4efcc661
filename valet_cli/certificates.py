"""Certificate store lookups for secured sites

A site is secured when the certificate store holds ``<site>.<domain>.crt``.
Certificates are issued elsewhere; the router only checks for their presence.
"""

import logging
from pathlib import Path

logger = logging.getLogger("valet.certificates")

CERTIFICATE_SUFFIX = ".crt"


def load_certificates(cert_dir: Path) -> dict[str, Path]:
    """Map certificate base names (file name without .crt) to their files.

    Args:
        cert_dir: Certificate store directory

    Returns:
        Empty dict when the directory does not exist
    """
    try:
        files = sorted(cert_dir.glob(f"*{CERTIFICATE_SUFFIX}"))
    except OSError as e:
        logger.debug(f"Cannot list certificates in {cert_dir}: {e}")
        return {}
    return {f.name[: -len(CERTIFICATE_SUFFIX)]: f for f in files if f.is_file()}


def is_secured(site_name: str, domain: str, certificates: dict[str, Path]) -> bool:
    """True if a certificate exists for the site, as ``name.domain`` or bare ``name``."""
    return f"{site_name}.{domain}" in certificates or site_name in certificates


def site_url(site_name: str, domain: str, certificates: dict[str, Path]) -> str:
    scheme = "https" if is_secured(site_name, domain, certificates) else "http"
    return f"{scheme}://{site_name}.{domain}"
