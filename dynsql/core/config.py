"""
Runtime settings for dynsql.

Values are read from the environment with the ``DYNSQL_`` prefix, e.g.
``DYNSQL_DATABASE_URL=sqlite:///dogs.db``.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DYNSQL_",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Default connection target used by QueryExecutor.open()
    DATABASE_URL: str = "sqlite:///:memory:"
    CONNECT_TIMEOUT: int = 10

    TEMPLATE_CACHE_SIZE: int = 400
    TEMPLATE_PREVIEW_CHARS: int = 500

    LOG_RENDERED_SQL: bool = True
    # Reject statements whose placeholders have no bound value before they
    # reach the driver.
    STRICT_BINDING: bool = True


settings = Settings()
