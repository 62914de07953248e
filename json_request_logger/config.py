from dataclasses import dataclass, field

from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings


@dataclass(frozen=True)
class FilterConfig:
    """Keys to redact inside params and base fields to drop from records."""

    filtered_keys: frozenset[str] = field(default_factory=frozenset)
    suppressed_keys: frozenset[str] = field(default_factory=frozenset)


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="REQUEST_LOGGER_",
    )

    # Redaction
    filtered_keys: list[str] | str = []
    suppressed_keys: list[str] | str = []

    # Logging
    log_level: str = "info"
    log_format: str = "json"  # json or console

    # Correlation
    request_id_header: str = "x-request-id"

    @field_validator("filtered_keys", "suppressed_keys", mode="before")
    @classmethod
    def parse_key_list(cls, v):
        """Parse key lists from comma-separated string or list."""
        if isinstance(v, str):
            return [key.strip() for key in v.split(",") if key.strip()]
        return v

    def filter_config(self) -> FilterConfig:
        return FilterConfig(
            filtered_keys=frozenset(self.filtered_keys),
            suppressed_keys=frozenset(self.suppressed_keys),
        )


settings = Settings()
