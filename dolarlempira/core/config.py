from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g. BCH_API_KEY,
    DEBUG, DATA_DIR, CACHE_TTL_SECONDS).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Dólar Lempira"
    debug: bool = False
    version: str = "1.0.0"
    environment: str = "development"

    # Local persisted store
    data_dir: Path = Path("data")
    db_filename: str = "dolarlempira.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Upstream indicator API (BCH indicator 97, USD/HNL)
    bch_api_url: AnyHttpUrl = "https://bchapi-am.azure-api.net/api/v1/indicadores/97/cifras"
    bch_api_key: Optional[str] = None
    upstream_timeout_seconds: float = 10.0
    user_agent: str = "DolarLempira.com/1.0"

    # Client side rate loading
    proxy_url: str = "http://localhost:8000/api/tipo-cambio"
    fetch_timeout_seconds: float = 10.0
    cache_key: str = "dolarlempira_cache"
    cache_ttl_seconds: int = 3600  # 1 hour
    refresh_interval_seconds: int = 1800  # 30 minutes
    advisory_seconds: float = 5.0

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if self.cache_ttl_seconds <= 0:
            raise ValueError("cache_ttl_seconds must be positive")
        if self.fetch_timeout_seconds <= 0 or self.upstream_timeout_seconds <= 0:
            raise ValueError("timeouts must be positive seconds")
        if self.refresh_interval_seconds <= 0:
            raise ValueError("refresh_interval_seconds must be positive")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
