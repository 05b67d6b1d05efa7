import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Result cache
    cache_ttl: float = float(os.getenv("CACHE_TTL", "3600"))  # 1 hour default
    cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "500"))

    # Telemetry
    telemetry_buffer_size: int = int(os.getenv("TELEMETRY_BUFFER_SIZE", "10000"))
    telemetry_autostart: bool = os.getenv("TELEMETRY_AUTOSTART", "true").lower() == "true"

    # Recovery
    max_retry_attempts: int = int(os.getenv("RECOVERY_MAX_RETRY_ATTEMPTS", "3"))
    auto_recovery: bool = os.getenv("RECOVERY_AUTO_RECOVERY", "true").lower() == "true"
    settle_delay: float = float(os.getenv("RECOVERY_SETTLE_DELAY", "2.0"))
    telemetry_restart_delay: float = float(os.getenv("RECOVERY_TELEMETRY_RESTART_DELAY", "1.0"))

    # Calculation
    weight_tolerance: float = float(os.getenv("WEIGHT_TOLERANCE", "0.01"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.cache_ttl <= 0:
            raise ValueError("CACHE_TTL must be positive")

        if self.cache_max_entries < 1:
            raise ValueError("CACHE_MAX_ENTRIES must be at least 1")

        if self.telemetry_buffer_size < 1:
            raise ValueError("TELEMETRY_BUFFER_SIZE must be at least 1")

        if self.max_retry_attempts < 1:
            raise ValueError("RECOVERY_MAX_RETRY_ATTEMPTS must be at least 1")

        if self.settle_delay < 0 or self.telemetry_restart_delay < 0:
            raise ValueError("Recovery delays cannot be negative")

        if not 0 <= self.weight_tolerance < 100:
            raise ValueError(
                f"WEIGHT_TOLERANCE must be between 0 and 100, got {self.weight_tolerance}"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the application process."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
