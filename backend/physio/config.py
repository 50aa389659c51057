# backend/physio/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/physio.db"
    redis_url: str = "redis://localhost:6379/0"
    log_level: str = "INFO"

    # Booking rules
    max_per_day: int = 4
    advance_days: int = 14
    min_hours_before_booking: int = 3
    cancellation_hours: int = 24
    slot_duration_minutes: int = 60
    booking_code_prefix: str = "CVA"

    # Contact info used in patient e-mails
    provider_name: str = "Cureva Fisio"
    provider_phone: str = "+62 812-0000-0000"
    admin_email: str = "admin@cureva.local"
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative sqlite path is anchored at the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
