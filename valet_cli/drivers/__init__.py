"""Project-type drivers"""

from .base import ValetDriver
from .basic import BasicValetDriver
from .laravel import LaravelValetDriver
from .magento2 import Magento2ValetDriver
from .registry import DEFAULT_DRIVERS, DriverRegistry, load_driver
from .symfony import SymfonyValetDriver
from .wordpress import WordPressValetDriver

__all__ = [
    "ValetDriver",
    "BasicValetDriver",
    "LaravelValetDriver",
    "Magento2ValetDriver",
    "SymfonyValetDriver",
    "WordPressValetDriver",
    "DriverRegistry",
    "DEFAULT_DRIVERS",
    "load_driver",
]
