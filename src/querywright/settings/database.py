from typing import Any, Dict, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import SettingsConfigDict
from sqlalchemy.engine import URL

from .base import QWBaseSettings


class DatabaseSettings(QWBaseSettings):
    """Connection settings for a single MySQL server.

    Environment variables use the ``QUERYWRIGHT_DB_`` prefix, e.g.
    ``QUERYWRIGHT_DB_HOST`` or ``QUERYWRIGHT_DB_PASSWORD``.
    """

    model_config = SettingsConfigDict(
        env_prefix="QUERYWRIGHT_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    name: str = Field(
        default="default",
        description="Driver name used in logs and error messages"
    )
    host: str = Field(default="localhost", description="MySQL server host")
    port: Optional[int] = Field(
        default=None,
        ge=1,
        le=65535,
        description="MySQL server port; driver default (3306) when unset"
    )
    unix_socket: Optional[str] = Field(
        default=None,
        description="Path to the server socket, used instead of host/port when set"
    )
    user: str = Field(default="root", description="Login user")
    password: SecretStr = Field(default=SecretStr(""), description="Login password")
    database: Optional[str] = Field(default=None, description="Default schema")

    charset: str = Field(default="utf8", description="Connection character set")
    init_command: str = Field(
        default="SET CHARACTER SET utf8",
        description="Statement run by the client right after connecting"
    )
    connect_timeout: int = Field(
        default=3,
        ge=1,
        le=300,
        description="Seconds to wait for the server during connection establishment"
    )

    @field_validator("charset")
    @classmethod
    def validate_charset(cls, v: str) -> str:
        v = v.strip()
        if not v.replace("_", "").isalnum():
            raise ValueError(f"Invalid charset '{v}'")
        return v

    def get_sqlalchemy_url(self) -> URL:
        """Build the ``mysql+pymysql`` URL for SQLAlchemy."""
        return URL.create(
            "mysql+pymysql",
            username=self.user,
            password=self.password.get_secret_value() or None,
            host=None if self.unix_socket else self.host,
            port=None if self.unix_socket else self.port,
            database=self.database,
        )

    def get_connect_args(self) -> Dict[str, Any]:
        """DBAPI-level options passed to ``pymysql.connect``."""
        args: Dict[str, Any] = {
            "charset": self.charset,
            "init_command": self.init_command,
            "connect_timeout": self.connect_timeout,
            # Statements are executed one by one, never in explicit transactions
            "autocommit": True,
        }
        if self.unix_socket:
            args["unix_socket"] = self.unix_socket
        return args
