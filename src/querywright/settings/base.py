from pydantic_settings import BaseSettings, SettingsConfigDict


class QWBaseSettings(BaseSettings):
    """Base class for every querywright settings group.

    Values come from environment variables (case-insensitive) and an optional
    ``.env`` file. Unknown variables are ignored.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__"
    )
