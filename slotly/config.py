"""Configuration for the Slotly booking core."""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./slotly.db"
    api_prefix: str = "/api/v1"
    debug: bool = False

    # Outbound webhooks
    webhook_max_attempts: int = 3
    webhook_timeout_seconds: float = 10.0
    webhook_response_body_limit: int = 2000
    webhook_signature_header: str = "X-Slotly-Signature"
    webhook_event_header: str = "X-Slotly-Event"

    # Used when a booking has no event type to take a duration from
    default_duration_minutes: int = 30

    model_config = {"env_prefix": "SLOTLY_"}

    @field_validator("webhook_max_attempts")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        if value < 1:
            raise ValueError("webhook_max_attempts must be >= 1")
        return value


settings = Settings()
