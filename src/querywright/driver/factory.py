"""Driver factory.

Creates drivers configured from environment settings so callers do not
have to assemble ``DatabaseSettings`` themselves.
"""

from typing import Optional

from querywright.driver.mysql import MySQLDriver
from querywright.settings import DatabaseSettings


def create_driver(settings: Optional[DatabaseSettings] = None, connect: bool = False) -> MySQLDriver:
    """Create a MySQL driver.

    Args:
        settings: Connection settings. When omitted, ``get_settings().database``
            is used, i.e. the ``QUERYWRIGHT_DB_*`` environment variables.
        connect: Open the connection immediately instead of on first use

    Returns:
        Configured MySQLDriver

    Example:
        >>> driver = create_driver()
        >>> driver.create_query().table("category").get_select_sql()
        'SELECT * FROM `category`'
    """
    if settings is None:
        from querywright.settings import get_settings
        settings = get_settings().database

    driver = MySQLDriver(settings)
    if connect:
        driver.connect()
    return driver
