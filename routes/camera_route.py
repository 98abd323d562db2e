"""FastAPI routes for the attached camera."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.camera_controller import camera_status, capture_image, close_camera, open_camera, toggle_camera
from models.camera_models import FacingDirection

router = APIRouter(prefix="/api/camera", tags=["camera"])


class OpenPayload(BaseModel):
    facing: FacingDirection = FacingDirection.REAR


class CapturePayload(BaseModel):
    analyze: bool = False
    language: Optional[str] = None


@router.get("")
async def camera_status_route(request: Request):
    return await camera_status(request)


@router.post("/open")
async def open_camera_route(request: Request, payload: OpenPayload):
    """Open the camera facing the requested direction."""
    try:
        return await open_camera(request, payload.facing)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/toggle")
async def toggle_camera_route(request: Request):
    try:
        return await toggle_camera(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/capture")
async def capture_route(request: Request, payload: CapturePayload):
    """Capture a still; with `analyze` the still is diagnosed right away."""
    try:
        return await capture_image(request, payload.analyze, payload.language)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/close")
async def close_camera_route(request: Request):
    return await close_camera(request)
