from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    # Maersk (primary carrier)
    maersk_base_url: str = "https://api.maersk.com/track"
    maersk_api_key: SecretStr = SecretStr("")

    # ShipsGo (container aggregator)
    shipsgo_base_url: str = "https://api.shipsgo.com/v2/tracking"
    shipsgo_api_key: SecretStr = SecretStr("")

    # Retry envelope (seconds)
    retry_base_delay: float = 1.0
    retry_max_delay: float = 5.0

    # Adaptive cache
    cache_max_entries: int = 10_000
    cache_ttl_terminal: int = 24 * 60 * 60
    cache_ttl_active: int = 15 * 60
    cache_ttl_default: int = 2 * 60
    cache_stale_retention: int = 7 * 24 * 60 * 60

    # Router
    failure_quiet_period: int = 60 * 60
    failure_penalty_window_hours: float = 24.0

    # Pipeline
    request_deadline: float | None = None
    batch_max_concurrency: int = 5

    # Logging
    log_level: str = "INFO"
    log_format: str = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


config = Config()
