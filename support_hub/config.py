"""
Support Hub - Configuration Management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # FastAPI
    fastapi_env: str = "development"
    fastapi_host: str = "0.0.0.0"
    fastapi_port: int = 8000

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_db_password: str = ""
    supabase_db_host: str = ""
    supabase_db_port: int = 6543
    supabase_db_name: str = "postgres"
    supabase_db_user: str = ""
    tickets_table: str = "tickets"

    # Realtime (listen for changes made by other clients)
    realtime_enabled: bool = False

    # Analysis webhook (workflow automation endpoint)
    analysis_webhook_url: str = ""

    # Dashboard timings
    form_reset_delay_seconds: float = 3.0
    demo_seed_delay_seconds: float = 1.0
    stream_heartbeat_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False
    )

    @property
    def supabase_configured(self) -> bool:
        """True when both Supabase URL and key are set"""
        return bool(self.supabase_url and self.supabase_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
