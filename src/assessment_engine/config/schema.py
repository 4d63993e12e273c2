from __future__ import annotations

from pathlib import Path
from pydantic import BaseModel, Field, validator


class EngineConfig(BaseModel):
    """Session engine timing."""

    tick_seconds: int = Field(1, ge=1, description="Countdown tick interval.")


class PrerequisiteConfig(BaseModel):
    """Thresholds for the gate consulted before an attempt may start."""

    video_completion_percent: float = Field(90, ge=0, le=100)


class PathsConfig(BaseModel):
    """Filesystem layout for question sets and stored learner records."""

    question_sets_dir: Path = Field(Path("data/question_sets"))
    attempts_path: Path = Field(Path("data/attempts.jsonl"))
    video_progress_path: Path = Field(Path("data/video_progress.jsonl"))


class LoggingConfig(BaseModel):
    """Controls for engine logging output and format."""

    level: str = Field("INFO")
    json_output: bool = Field(False, alias="json")

    model_config = {"populate_by_name": True}

    @validator("level")
    def known_level(cls, value: str) -> str:
        """Reject level names the logging module would not understand."""
        level = value.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unknown log level: {value}")
        return level


class Settings(BaseModel):
    """Top-level project configuration aggregating all sub-settings."""

    project_name: str = Field("Course Assessment Engine")
    engine: EngineConfig = Field(default_factory=EngineConfig)
    prerequisites: PrerequisiteConfig = Field(default_factory=PrerequisiteConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
