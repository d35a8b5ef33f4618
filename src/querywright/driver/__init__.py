"""MySQL driver facade and factory."""

from querywright.driver.mysql import MySQLDriver
from querywright.driver.factory import create_driver

__all__ = [
    "MySQLDriver",
    "create_driver",
]
