from pydantic import BaseModel, Field, ValidationError

from gamification_service import DEFAULT_STREAK


class SettingsSchema(BaseModel):
    api_url: str = "http://localhost:8080"
    api_token: str | None = None
    request_timeout: float = Field(10.0, gt=0)
    streak: int = Field(DEFAULT_STREAK, ge=0)
    db_path: str = "fitquest.db"
    default_workout_name: str = "Workout Session"
    log_level: str = "INFO"

def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
