"""FastAPI routes for speech, weather and the monitoring schedule."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from controllers.farm_controller import (
    add_task,
    current_weather,
    list_tasks,
    remove_task,
    synthesize_speech,
    toggle_task,
)
from models.schedule_models import NewTask
from services.weather.weather_client import DEFAULT_LATITUDE, DEFAULT_LONGITUDE

router = APIRouter(prefix="/api", tags=["farm"])


class SpeechPayload(BaseModel):
    text: str
    language: Optional[str] = None


@router.post("/tts")
async def tts_route(request: Request, payload: SpeechPayload):
    """Return `{audioContent}` as base64 MP3."""
    try:
        return await synthesize_speech(request, payload.text, payload.language)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/weather")
async def weather_route(
    request: Request,
    lat: float = Query(DEFAULT_LATITUDE),
    lon: float = Query(DEFAULT_LONGITUDE),
):
    """Current conditions; defaults to New Delhi when no location is given."""
    return await current_weather(request, lat, lon)


@router.get("/schedule/tasks")
async def list_tasks_route(request: Request, completed: Optional[bool] = None):
    return await list_tasks(request, completed)


@router.post("/schedule/tasks", status_code=201)
async def add_task_route(request: Request, payload: NewTask):
    return await add_task(request, payload)


@router.post("/schedule/tasks/{task_id}/toggle")
async def toggle_task_route(request: Request, task_id: str):
    return await toggle_task(request, task_id)


@router.delete("/schedule/tasks/{task_id}")
async def remove_task_route(request: Request, task_id: str):
    return await remove_task(request, task_id)
