from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_VIDEO_COMPLETION_PERCENT = 90.0


class VideoProgress(BaseModel):
    """How far a learner has watched the lecture video attached to a subject."""

    user_id: str
    subject_id: str
    progress: float = Field(0.0, ge=0, le=100)  # percentage watched
    current_time: float = Field(0.0, ge=0)  # seconds
    duration: float = Field(0.0, ge=0)  # seconds
    completed: bool = False
    last_watched: Optional[datetime] = None


def video_prerequisite_satisfied(
    progress: Optional[VideoProgress],
    threshold: float = DEFAULT_VIDEO_COMPLETION_PERCENT,
) -> bool:
    """A quiz unlocks once the video is marked complete or watched past ``threshold`` percent."""
    if progress is None:
        return False
    return progress.completed or progress.progress >= threshold
