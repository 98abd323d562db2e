import asyncio
import base64
import io

import numpy as np
import pytest
from PIL import Image

from conftest import FakeCameraBackend
from models.camera_models import CameraConstraints, CameraErrorReason, CameraState, FacingDirection
from services.camera.camera_backend import CameraAcquisitionError
from services.camera.capture_controller import (
    CameraCaptureController,
    CameraError,
    CameraStateError,
    first_successful,
)
from services.camera.frame_encoder import FrameEncoder


def controller_for(backend, **kwargs):
    return CameraCaptureController(backend, FrameEncoder("PNG"), **kwargs)


def decode(data_url: str) -> np.ndarray:
    _, encoded = data_url.split(",", 1)
    return np.array(Image.open(io.BytesIO(base64.b64decode(encoded))).convert("RGB"))


async def test_open_reaches_ready_with_most_specific_constraints(camera_backend):
    camera = controller_for(camera_backend)

    snapshot = await camera.open(FacingDirection.REAR)

    assert snapshot["state"] == "ready"
    assert camera.constraints == CameraConstraints(facing=FacingDirection.REAR, width=1920, height=1080)
    assert camera_backend.acquire_count == 1


async def test_falls_back_to_any_camera_after_three_failures():
    backend = FakeCameraBackend(fail_first=3)
    camera = controller_for(backend)

    await camera.open(FacingDirection.REAR)

    assert camera.state is CameraState.READY
    assert len(backend.attempts) == 4
    assert backend.attempts[1].exact is True
    assert backend.attempts[3] == CameraConstraints()
    assert camera.constraints == CameraConstraints()
    assert backend.acquire_count == 1
    assert backend.stop_calls == 0


async def test_total_failure_is_classified_and_holds_nothing():
    reasons = [
        CameraErrorReason.OVERCONSTRAINED,
        CameraErrorReason.OVERCONSTRAINED,
        CameraErrorReason.BUSY,
        CameraErrorReason.PERMISSION_DENIED,
    ]
    backend = FakeCameraBackend(fail_first=4, reasons=reasons)
    camera = controller_for(backend)

    with pytest.raises(CameraError) as excinfo:
        await camera.open(FacingDirection.FRONT)

    assert excinfo.value.reason is CameraErrorReason.PERMISSION_DENIED
    assert camera.state is CameraState.ERROR
    assert camera.snapshot()["error_reason"] == "permission_denied"
    assert not camera.is_active

    camera.close()
    assert camera.state is CameraState.CLOSED
    assert camera.snapshot()["error_reason"] is None


async def test_first_frame_timeout_releases_stream(camera_backend):
    camera_backend.never_ready = True
    camera = controller_for(camera_backend, first_frame_timeout=0.05)

    with pytest.raises(CameraError) as excinfo:
        await camera.open()

    assert excinfo.value.reason is CameraErrorReason.TIMEOUT
    assert camera.state is CameraState.ERROR
    assert camera_backend.active == 0
    assert camera_backend.stop_calls == camera_backend.acquire_count == 1


@pytest.mark.parametrize("setup", ["closed", "ready", "error"])
async def test_close_in_any_state_leaves_no_stream(setup, camera_backend):
    camera = controller_for(camera_backend)
    if setup == "ready":
        await camera.open()
    elif setup == "error":
        camera_backend.fail_first = 4
        with pytest.raises(CameraError):
            await camera.open()

    camera.close()
    camera.close()

    assert camera.state is CameraState.CLOSED
    assert camera_backend.active == 0
    assert camera_backend.stop_calls == camera_backend.acquire_count


async def test_close_while_acquiring_stops_late_stream(camera_backend):
    camera_backend.gate = asyncio.Event()
    camera = controller_for(camera_backend)

    pending = asyncio.create_task(camera.open())
    await asyncio.sleep(0)
    assert camera.state is CameraState.OPENING

    camera.close()
    camera_backend.gate.set()
    snapshot = await pending

    assert snapshot["state"] == "closed"
    assert camera_backend.acquire_count == 1
    assert camera_backend.stop_calls == 1
    assert camera_backend.active == 0


async def test_close_while_waiting_for_first_frame(camera_backend):
    camera_backend.never_ready = True
    camera = controller_for(camera_backend, first_frame_timeout=5)

    pending = asyncio.create_task(camera.open())
    for _ in range(5):
        await asyncio.sleep(0)
    camera.close()
    pending.cancel()
    with pytest.raises(asyncio.CancelledError):
        await pending

    assert camera.state is CameraState.CLOSED
    assert camera_backend.active == 0
    assert camera_backend.stop_calls == camera_backend.acquire_count


async def test_toggle_never_holds_two_streams(camera_backend):
    camera = controller_for(camera_backend)
    await camera.open(FacingDirection.REAR)

    for _ in range(3):
        await camera.toggle()

    assert camera.facing is FacingDirection.FRONT
    assert camera_backend.acquire_count == 4
    assert camera_backend.max_active == 1
    assert camera_backend.active == 1


async def test_concurrent_opens_are_serialized(camera_backend):
    camera = controller_for(camera_backend)

    await asyncio.gather(
        camera.open(FacingDirection.REAR),
        camera.open(FacingDirection.FRONT),
        camera.toggle(),
    )

    assert camera.state is CameraState.READY
    assert camera_backend.max_active == 1
    assert camera_backend.active == 1


async def test_capture_requires_ready(camera_backend):
    camera = controller_for(camera_backend)

    with pytest.raises(CameraStateError):
        await camera.capture()


async def test_capture_closes_camera(camera_backend):
    camera = controller_for(camera_backend)
    await camera.open()

    captured = await camera.capture()

    assert captured.mime_type == "image/png"
    assert captured.data_url.startswith("data:image/png;base64,")
    assert (captured.width, captured.height) == (8, 4)
    assert camera.state is CameraState.CLOSED
    assert camera_backend.active == 0
    assert camera_backend.stop_calls == camera_backend.acquire_count


async def test_front_capture_is_mirror_of_rear_capture(camera_backend):
    camera = controller_for(camera_backend)

    await camera.open(FacingDirection.REAR)
    rear = decode((await camera.capture()).data_url)
    await camera.open(FacingDirection.FRONT)
    front = decode((await camera.capture()).data_url)

    np.testing.assert_array_equal(rear, camera_backend.frame)
    np.testing.assert_array_equal(front, rear[:, ::-1, :])


async def test_first_successful_raises_last_error():
    async def attempt(value):
        raise CameraAcquisitionError(CameraErrorReason.NOT_FOUND if value else CameraErrorReason.BUSY)

    with pytest.raises(CameraAcquisitionError) as excinfo:
        await first_successful([0, 1], attempt)

    assert excinfo.value.reason is CameraErrorReason.NOT_FOUND


async def test_first_successful_short_circuits():
    tried = []

    async def attempt(value):
        tried.append(value)
        if value < 2:
            raise CameraAcquisitionError(CameraErrorReason.OVERCONSTRAINED)
        return value * 10

    assert await first_successful([0, 1, 2, 3], attempt) == (20, 2)
    assert tried == [0, 1, 2]


async def test_cancelled_open_returns_to_closed(camera_backend):
    camera_backend.gate = asyncio.Event()
    camera = controller_for(camera_backend)

    pending = asyncio.create_task(camera.open())
    await asyncio.sleep(0)
    assert camera.state is CameraState.OPENING

    pending.cancel()
    with pytest.raises(asyncio.CancelledError):
        await pending

    assert camera.state is CameraState.CLOSED
    assert camera.snapshot()["state"] == "closed"
    assert camera_backend.active == 0

    camera_backend.gate.set()
    assert (await camera.open())["state"] == "ready"
