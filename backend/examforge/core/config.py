from functools import lru_cache
import json
from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from examforge.core.exceptions import ConfigurationError
from examforge.schemas.domain import Algorithm


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_TIME_SLOT_LABELS = [
    "09:00 - 12:00",
    "13:00 - 16:00",
    "17:00 - 20:00",
]


class Settings(BaseSettings):
    # Resolve to backend/.env so the app and scripts behave the same from any cwd.
    model_config = SettingsConfigDict(
        env_file=str(BACKEND_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="EXAMFORGE_",
    )

    project_name: str = "ExamForge API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # Fitness weighting: one hard violation outweighs any realistic soft total.
    hard_violation_weight: int = 1000

    # Horizon sizing policy used by the API and CLI, not by the engine itself.
    time_slot_labels: list[str] = DEFAULT_TIME_SLOT_LABELS
    min_exam_days: int = 5
    skip_weekends: bool = False

    spread_group_key: str = "department_id"
    progress_interval: int = 1
    # Used when a request or caller does not name an algorithm.
    default_algorithm: Algorithm = Algorithm.genetic

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", "time_slot_labels", mode="before")
    @classmethod
    def split_list(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("time_slot_labels")
    @classmethod
    def validate_time_slots(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one exam time slot label is required")
        return value

    @field_validator("spread_group_key")
    @classmethod
    def validate_group_key(cls, value: str) -> str:
        if value not in {"department_id", "year"}:
            raise ValueError("spread_group_key must be 'department_id' or 'year'")
        return value

    @field_validator("hard_violation_weight", "min_exam_days", "progress_interval")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("value must be a positive integer")
        return value


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        raise ConfigurationError("Invalid ExamForge settings", details={"errors": errors}) from exc
