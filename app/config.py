from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "knowledge" / "catalog.yaml"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./sprout.db"
    debug: bool = False
    log_level: str = "INFO"

    # WhatsApp Cloud API
    whatsapp_token: Optional[str] = None
    phone_number_id: Optional[str] = None
    graph_api_version: str = "v21.0"
    graph_api_base_url: str = "https://graph.facebook.com"
    send_timeout_seconds: float = 30.0
    webhook_verify_token: Optional[str] = None
    process_on_webhook: bool = True

    admin_token: Optional[str] = None
    catalog_path: Path = DEFAULT_CATALOG_PATH

    poll_enabled: bool = True
    poll_interval_seconds: float = 5.0

    dedup_id_capacity: int = 1000
    dedup_content_window_seconds: float = 10.0
    dedup_content_capacity: int = 1000

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
