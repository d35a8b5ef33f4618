"""Settings built on pydantic-settings.

Configuration Sources (precedence order):
    1. Environment variables (highest priority)
    2. ``.env`` file in the working directory
    3. Default values in code (lowest priority)

Environment Variable Naming:
    - Application: ``QUERYWRIGHT_LOG_LEVEL``
    - Connection: ``QUERYWRIGHT_DB_HOST``, ``QUERYWRIGHT_DB_USER``, ...

Quick Start:
    >>> from querywright.settings import get_settings
    >>> settings = get_settings()
    >>> settings.database.host
    'localhost'
"""

from .main import _Settings, get_settings, _reload_settings
from .base import QWBaseSettings
from .database import DatabaseSettings

__all__ = [
    "_Settings",
    "get_settings",
    "_reload_settings",
    "QWBaseSettings",
    "DatabaseSettings",
]
