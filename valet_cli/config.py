"""Configuration management for the Valet config.json document"""

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

logger = logging.getLogger("valet.config")

CONFIG_FILENAME = "config.json"
CERTIFICATES_DIRNAME = "Certificates"


class UnsupportedConfigValue(ValueError):
    """A configuration value or operation parameter is not recognized."""


def valet_home() -> Path:
    """Return the Valet home directory (VALET_HOME or ~/.valet)."""
    env_home = os.getenv("VALET_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".valet"


def config_path() -> Path:
    return valet_home() / CONFIG_FILENAME


def certificates_path() -> Path:
    return valet_home() / CERTIFICATES_DIRNAME


@dataclass(frozen=True)
class ValetConfig:
    """Immutable snapshot of config.json, taken once per request."""

    domain: str
    paths: tuple[str, ...] = ()
    rewrites: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    drivers: tuple[str, ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "ValetConfig":
        """
        Build a snapshot from a decoded config document.

        Raises:
            UnsupportedConfigValue: if the document is structurally invalid
        """
        is_valid, errors = validate_config(data)
        if not is_valid:
            raise UnsupportedConfigValue("; ".join(errors))

        rewrites = {
            str(site): tuple(str(alias) for alias in aliases)
            for site, aliases in (data.get("rewrites") or {}).items()
        }
        return cls(
            domain=data["domain"].strip().strip("."),
            paths=tuple(data.get("paths") or ()),
            rewrites=MappingProxyType(rewrites),
            drivers=tuple(data.get("drivers") or ()),
            raw=MappingProxyType(dict(data)),
        )

    def to_dict(self) -> dict:
        return json.loads(json.dumps(dict(self.raw)))


def validate_config(data: Any) -> tuple[bool, list[str]]:
    """
    Validate a decoded config document.

    Returns:
        Tuple of (is_valid, errors)
    """
    errors: list[str] = []
    if not isinstance(data, dict):
        return False, ["Config must be a JSON object"]

    domain = data.get("domain")
    if not isinstance(domain, str) or not domain.strip().strip("."):
        errors.append("'domain' must be a non-empty string")
    elif "/" in domain or domain.startswith("http"):
        errors.append("'domain' must be a hostname only (no scheme or path)")

    paths = data.get("paths", [])
    if not isinstance(paths, list):
        errors.append("'paths' must be a list of directories")
    else:
        for path in paths:
            if not isinstance(path, str) or not os.path.isabs(path):
                errors.append(f"Path {path!r} must be an absolute directory path")

    rewrites = data.get("rewrites", {})
    if rewrites is None:
        rewrites = {}
    if not isinstance(rewrites, dict):
        errors.append("'rewrites' must map site names to lists of aliases")
    else:
        for site, aliases in rewrites.items():
            if not isinstance(aliases, list) or not all(isinstance(a, str) for a in aliases):
                errors.append(f"Rewrites for {site!r} must be a list of site names")

    drivers = data.get("drivers", [])
    if not isinstance(drivers, list) or not all(isinstance(d, str) for d in drivers):
        errors.append("'drivers' must be a list of 'module:ClassName' references")

    return not errors, errors


class ConfigStore:
    """
    Process-wide access to config.json.

    The document is re-read whenever its modification time or size changes; callers
    take a fresh snapshot at the start of every request.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path else config_path()
        self._lock = threading.Lock()
        self._stamp: tuple[int, int] | None = None
        self._snapshot: ValetConfig | None = None

    def snapshot(self) -> ValetConfig:
        """
        Return the current configuration.

        Raises:
            UnsupportedConfigValue: if the document is missing or invalid
        """
        try:
            stat = self.path.stat()
        except OSError as exc:
            raise UnsupportedConfigValue(f"Cannot read {self.path}: {exc}") from exc

        stamp = (stat.st_mtime_ns, stat.st_size)
        with self._lock:
            if self._snapshot is not None and stamp == self._stamp:
                return self._snapshot

            try:
                with open(self.path, encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as exc:
                raise UnsupportedConfigValue(f"Failed to load {self.path}: {exc}") from exc

            self._snapshot = ValetConfig.from_dict(data)
            self._stamp = stamp
            logger.info("Loaded config from %s (domain=%s, %d paths)", self.path, self._snapshot.domain, len(self._snapshot.paths))
            return self._snapshot
