"""Controller for the attached camera."""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from controllers.analysis_controller import analyze_image
from controllers.state import require_state
from models.camera_models import CameraErrorReason, FacingDirection
from services.camera.capture_controller import CameraCaptureController, CameraError, CameraStateError

ERROR_STATUS = {
    CameraErrorReason.PERMISSION_DENIED: 403,
    CameraErrorReason.INSECURE_CONTEXT: 403,
    CameraErrorReason.NOT_FOUND: 404,
    CameraErrorReason.BUSY: 409,
    CameraErrorReason.OVERCONSTRAINED: 422,
    CameraErrorReason.TIMEOUT: 504,
    CameraErrorReason.UNKNOWN: 500,
}


def _camera(request: Request) -> CameraCaptureController:
    return require_state(request, "camera", "Camera controller")


def _camera_http_error(exc: CameraError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS.get(exc.reason, 500),
        detail={"error": exc.message, "reason": exc.reason.value},
    )


async def open_camera(request: Request, facing: FacingDirection) -> Dict[str, Any]:
    try:
        return await _camera(request).open(facing)
    except CameraError as exc:
        raise _camera_http_error(exc) from exc


async def toggle_camera(request: Request) -> Dict[str, Any]:
    try:
        return await _camera(request).toggle()
    except CameraError as exc:
        raise _camera_http_error(exc) from exc


async def capture_image(request: Request, analyze: bool = False, language: Optional[str] = None) -> Dict[str, Any]:
    """Capture a still and optionally send it straight to analysis."""
    try:
        captured = await _camera(request).capture()
    except CameraStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except CameraError as exc:
        raise _camera_http_error(exc) from exc

    result: Dict[str, Any] = captured.to_dict()
    if analyze:
        result["analysis"] = await analyze_image(request, captured.data_url, language)
    return result


async def close_camera(request: Request) -> Dict[str, Any]:
    return _camera(request).close()


async def camera_status(request: Request) -> Dict[str, Any]:
    return _camera(request).snapshot()
