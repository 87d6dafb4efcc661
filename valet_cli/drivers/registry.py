"""
Ordered driver selection.
"""

import importlib
import logging
from collections.abc import Iterable
from pathlib import Path

from ..config import UnsupportedConfigValue, ValetConfig
from .base import ValetDriver
from .basic import BasicValetDriver
from .laravel import LaravelValetDriver
from .magento2 import Magento2ValetDriver
from .symfony import SymfonyValetDriver
from .wordpress import WordPressValetDriver

logger = logging.getLogger("valet.drivers")

# Framework drivers before the catch-all basic driver.
DEFAULT_DRIVERS: tuple[type[ValetDriver], ...] = (
    LaravelValetDriver,
    SymfonyValetDriver,
    Magento2ValetDriver,
    WordPressValetDriver,
    BasicValetDriver,
)


def load_driver(reference: str) -> ValetDriver:
    """
    Instantiate a driver from a ``package.module:ClassName`` reference.

    Raises:
        UnsupportedConfigValue: if the reference cannot be imported or is not a driver
    """
    module_name, sep, class_name = reference.partition(":")
    if not sep or not module_name or not class_name:
        raise UnsupportedConfigValue(f"Driver reference {reference!r} must look like 'package.module:ClassName'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise UnsupportedConfigValue(f"Cannot import driver module {module_name!r}: {exc}") from exc
    driver_class = getattr(module, class_name, None)
    if not isinstance(driver_class, type) or not issubclass(driver_class, ValetDriver):
        raise UnsupportedConfigValue(f"{reference!r} is not a ValetDriver subclass")
    return driver_class()


class DriverRegistry:
    """Holds drivers in priority order; the first one that serves a site wins."""

    def __init__(self, drivers: Iterable[ValetDriver] | None = None) -> None:
        if drivers is None:
            drivers = [driver_class() for driver_class in DEFAULT_DRIVERS]
        self.drivers: tuple[ValetDriver, ...] = tuple(drivers)

    @classmethod
    def from_config(cls, config: ValetConfig) -> "DriverRegistry":
        """
        Build the registry from the config's ``drivers`` list, or the defaults.

        Raises:
            UnsupportedConfigValue: if any listed driver cannot be loaded
        """
        if not config.drivers:
            return cls()
        return cls(load_driver(reference) for reference in config.drivers)

    def select(self, site_path: Path, site_name: str, uri: str) -> ValetDriver | None:
        for driver in self.drivers:
            if driver.serves(site_path, site_name, uri):
                logger.debug("Driver %s serves %s", driver.name, site_path)
                return driver
        return None

    @property
    def names(self) -> list[str]:
        return [driver.name for driver in self.drivers]
