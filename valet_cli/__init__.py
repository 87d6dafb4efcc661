"""
valet-router - Local development site router
Serves every project under the configured paths on *.<domain>
"""

__version__ = "1.0.0"

from .config import ConfigStore, UnsupportedConfigValue, ValetConfig
from .drivers import DriverRegistry, ValetDriver
from .router.dispatcher import Dispatcher, HandOff, RequestContext, StaticFile

__all__ = [
    "ConfigStore",
    "UnsupportedConfigValue",
    "ValetConfig",
    "DriverRegistry",
    "ValetDriver",
    "Dispatcher",
    "HandOff",
    "RequestContext",
    "StaticFile",
    "__version__",
]
