"""Controllers for speech, weather and the monitoring schedule."""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request

from controllers.state import require_state
from models.schedule_models import NewTask
from services.schedule.task_store import TaskStore
from services.speech.speech_service import SpeechService
from services.weather.weather_client import WeatherClient, WeatherError


async def synthesize_speech(request: Request, text: str, language: Optional[str]) -> Dict[str, str]:
    """Return base64 audio for `text`, using the fallback voice if needed."""
    speech: SpeechService = require_state(request, "speech", "Speech service")
    try:
        return await speech.synthesize(text, language=language)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=502, detail="Speech synthesis failed.") from exc


async def current_weather(request: Request, latitude: float, longitude: float) -> Dict[str, Any]:
    weather: WeatherClient = require_state(request, "weather", "Weather client")
    try:
        return await weather.current(latitude, longitude)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except WeatherError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


def _tasks(request: Request) -> TaskStore:
    return require_state(request, "task_store", "Task store")


async def list_tasks(request: Request, completed: Optional[bool]) -> List[Dict[str, Any]]:
    return [task.model_dump(mode="json") for task in _tasks(request).list_tasks(completed)]


async def add_task(request: Request, payload: NewTask) -> Dict[str, Any]:
    return _tasks(request).add(payload).model_dump(mode="json")


async def toggle_task(request: Request, task_id: str) -> Dict[str, Any]:
    try:
        return _tasks(request).toggle(task_id).model_dump(mode="json")
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


async def remove_task(request: Request, task_id: str) -> Dict[str, Any]:
    try:
        _tasks(request).remove(task_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"id": task_id, "removed": True}
