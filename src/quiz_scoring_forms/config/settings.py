"""Configuration settings using Pydantic."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FormSettings(BaseSettings):
    """Form session configuration."""
    model_config = SettingsConfigDict(env_prefix="FORM_")

    plugin_abbrev: str = "qsf"  # prefix for every field and section id
    storage_key: str = "quiz_scoring_forms_state"
    snapshot_ttl_seconds: int = 600
    answer_debounce_seconds: float = 0.05


class StorageSettings(BaseSettings):
    """Storage backend configuration."""
    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_path: str = "./data"
    quiz_file: str = "quizzes.json"
    submissions_file: str = "submissions.json"


class ScoringSettings(BaseSettings):
    """Scoring configuration."""
    model_config = SettingsConfigDict(env_prefix="SCORING_")

    # Used when a quiz definition does not declare maxAnswerValue itself
    max_answer_value: Optional[float] = None


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    log_level: str = "INFO"
    quiz_slug: str = ""

    form: FormSettings = Field(default_factory=FormSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
