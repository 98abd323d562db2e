"""Crop monitoring schedule models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

TaskType = Literal["watering", "fertilizing", "pesticide", "pruning", "harvesting", "inspection"]
Priority = Literal["low", "medium", "high"]


class ScheduleTask(BaseModel):
    id: str
    type: TaskType
    title: str
    description: str = ""
    date: datetime
    completed: bool = False
    priority: Priority = "medium"


class NewTask(BaseModel):
    """Payload for adding a task; title and date default from the type."""

    type: TaskType
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    date: Optional[datetime] = None
    priority: Priority = "medium"
