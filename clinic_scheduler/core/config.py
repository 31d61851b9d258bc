from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Clinic webhook backend (owns all persistence)
    backend_base_url: str
    backend_timeout_seconds: float = 10.0
    users_path: str = "users"
    working_hours_path: str = "working_hours"
    appointments_path: str = "appointmens"  # the backend's route really is spelled this way
    schedule_path: str = "schedule-appointment"
    login_path: str = "login"

    # JWT
    secret_key: str
    access_token_expire_minutes: int = 60 * 12
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:5173"

    # Scheduling rules
    slot_step_minutes: int = 30
    default_duration_minutes: int = 60
    fully_booked_horizon_days: int = 60
    timezone: str = "America/Sao_Paulo"

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def backend_url(self) -> str:
        return self.backend_base_url.rstrip("/") + "/"


settings = Settings()
