from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Order-management backend (FastAPI)
    backend_url: str = "http://localhost:8080"
    backend_timeout_seconds: float = 30.0

    # WhatsApp gateway (owns the WhatsApp Web session)
    whatsapp_gateway_url: str = "http://localhost:3001"
    whatsapp_gateway_api_key: str = ""  # Optional: sent as X-Api-Key
    whatsapp_session: str = "default"
    whatsapp_webhook_secret: str = ""  # Optional: for webhook verification
    gateway_timeout_seconds: float = 30.0

    # Reconnect policy after the gateway reports a disconnect
    reconnect_delay_seconds: float = 5.0
    reconnect_attempts: int = 1

    # Service
    service_name: str = "Relámpago Express WhatsApp Bot"
    port: int = 3000
    environment: str = "development"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
