"""In-memory crop monitoring schedule."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from models.schedule_models import NewTask, ScheduleTask

DEFAULT_TITLES = {
    "watering": ("Water the crops", "Deep watering at the base of plants, early morning."),
    "fertilizing": ("Apply fertilizer", "Apply balanced NPK as per crop stage."),
    "pesticide": ("Pest control spray", "Spray recommended treatment; wear protective equipment."),
    "pruning": ("Prune plants", "Remove diseased and overcrowded branches."),
    "harvesting": ("Harvest", "Harvest mature produce and respect pre-harvest intervals."),
    "inspection": ("Inspect for disease", "Check leaves and stems for spots, wilting or pests."),
}


class TaskStore:
    """Manage scheduled farm tasks."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now, seed: bool = True) -> None:
        self._clock = clock
        self._tasks: Dict[str, ScheduleTask] = {}
        if seed:
            self._seed()

    def _seed(self) -> None:
        now = self._clock()
        for offset, task_type, priority in (
            (0, "watering", "high"),
            (1, "inspection", "medium"),
            (2, "fertilizing", "medium"),
            (3, "pesticide", "low"),
        ):
            self.add(NewTask(type=task_type, date=now + timedelta(days=offset), priority=priority))

    def add(self, payload: NewTask) -> ScheduleTask:
        """Add a task, filling title, description and date from its type."""
        title, description = DEFAULT_TITLES[payload.type]
        task = ScheduleTask(
            id=uuid4().hex,
            type=payload.type,
            title=(payload.title or "").strip() or title,
            description=(payload.description or "").strip() or description,
            date=payload.date or self._clock(),
            priority=payload.priority,
        )
        self._tasks[task.id] = task
        return task

    def get(self, task_id: str) -> ScheduleTask:
        task = self._tasks.get(task_id)
        if task is None:
            raise KeyError(f"Task {task_id} not found")
        return task

    def toggle(self, task_id: str) -> ScheduleTask:
        """Flip the completed flag of a task."""
        task = self.get(task_id)
        task.completed = not task.completed
        return task

    def remove(self, task_id: str) -> None:
        self.get(task_id)
        del self._tasks[task_id]

    def list_tasks(self, completed: Optional[bool] = None) -> List[ScheduleTask]:
        """Return pending tasks ordered by date, then completed ones."""
        pending = sorted((t for t in self._tasks.values() if not t.completed), key=lambda t: t.date)
        done = [t for t in self._tasks.values() if t.completed]
        if completed is True:
            return done
        if completed is False:
            return pending
        return pending + done
