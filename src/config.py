from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "MedScribe"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite:///./medscribe.db"
    catalog_csv_path: str = "data/medicines.csv"

    recognizer_backend: str = "mock"
    google_handwriting_url: str = (
        "https://inputtools.google.com/request?ime=handwriting&app=mobilesearch&cs=1&oe=UTF-8"
    )
    recognizer_language: str = "en"
    recognizer_timeout_seconds: float = 10.0

    search_cache_ttl_seconds: float = 300.0
    search_cache_sweep_interval_seconds: float = 60.0
    retrieval_timeout_seconds: Optional[float] = None

    match_threshold: float = 0.6
    max_matches: int = 10
    per_candidate_limit: int = 5
    retrieval_limit: int = 50

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False


settings = Settings()
