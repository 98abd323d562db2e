"""Shared test doubles for the gateway client and camera hardware."""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional

import httpx
import numpy as np
import pytest
from openai import APIStatusError

from models.camera_models import CameraConstraints, CameraErrorReason
from services.camera.camera_backend import CameraAcquisitionError


def sse(*contents: str, done: bool = True) -> bytes:
    """Build an OpenAI-style SSE body from text deltas."""
    lines = [f"data: {json.dumps({'choices': [{'delta': {'content': c}}]}, ensure_ascii=False)}\n" for c in contents]
    if done:
        lines.append("data: [DONE]\n")
    return "".join(lines).encode("utf-8")


def status_error(status: int, body: Any = None) -> APIStatusError:
    request = httpx.Request("POST", "https://gateway.test/v1/chat/completions")
    response = httpx.Response(status, request=request, json=body)
    return APIStatusError(f"Error code: {status}", response=response, body=body)


class FakeStreamingResponse:
    def __init__(self, chunks: Iterable[bytes], fail_after: Optional[int] = None) -> None:
        self.chunks = list(chunks)
        self.fail_after = fail_after

    async def iter_bytes(self):
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise httpx.ReadError("connection closed")
            yield chunk


class FakeStreamContext:
    def __init__(self, owner: "FakeCompletions", kwargs: Dict[str, Any]) -> None:
        self.owner = owner
        self.kwargs = kwargs

    async def __aenter__(self) -> FakeStreamingResponse:
        self.owner.stream_calls.append(self.kwargs)
        if self.owner.stream_error is not None:
            raise self.owner.stream_error
        return FakeStreamingResponse(self.owner.stream_chunks, self.owner.fail_after)

    async def __aexit__(self, *exc_info) -> None:
        self.owner.closed_streams += 1


class FakeCompletions:
    def __init__(self) -> None:
        self.reply: str = ""
        self.create_error: Optional[Exception] = None
        self.create_calls: List[Dict[str, Any]] = []
        self.stream_chunks: List[bytes] = []
        self.stream_error: Optional[Exception] = None
        self.fail_after: Optional[int] = None
        self.stream_calls: List[Dict[str, Any]] = []
        self.closed_streams = 0
        self.with_streaming_response = SimpleNamespace(create=self._stream)

    async def create(self, **kwargs):
        self.create_calls.append(kwargs)
        if self.create_error is not None:
            raise self.create_error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.reply))],
            usage=SimpleNamespace(prompt_tokens=120, completion_tokens=45),
        )

    def _stream(self, **kwargs) -> FakeStreamContext:
        return FakeStreamContext(self, kwargs)


class FakeSpeech:
    def __init__(self) -> None:
        self.audio = b"ID3-fake-mp3"
        self.error: Optional[Exception] = None
        self.calls: List[Dict[str, Any]] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.audio)


class FakeOpenAI:
    """Mimics the parts of `AsyncOpenAI` used by the services."""

    def __init__(self) -> None:
        self.chat = SimpleNamespace(completions=FakeCompletions())
        self.audio = SimpleNamespace(speech=FakeSpeech())

    @property
    def completions(self) -> FakeCompletions:
        return self.chat.completions


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


# Camera doubles -------------------------------------------------------------


class FakeTrack:
    def __init__(self, backend: "FakeCameraBackend") -> None:
        self.backend = backend
        self.stopped = False

    def stop(self) -> None:
        self.backend.stop_calls += 1
        if not self.stopped:
            self.stopped = True
            self.backend.active -= 1


class FakeStream:
    def __init__(self, backend: "FakeCameraBackend", constraints: CameraConstraints) -> None:
        self.backend = backend
        self.constraints = constraints
        self.frame = backend.frame
        self.height, self.width = self.frame.shape[:2]
        self._tracks = [FakeTrack(backend)]

    @property
    def tracks(self):
        return self._tracks

    async def wait_first_frame(self) -> None:
        if self.backend.never_ready:
            await asyncio.Event().wait()

    async def read_frame(self) -> np.ndarray:
        return self.frame.copy()


class FakeCameraBackend:
    """Counts acquired and stopped tracks; fails the first `fail_first` attempts."""

    def __init__(self, frame: Optional[np.ndarray] = None, fail_first: int = 0,
                 reasons: Optional[List[CameraErrorReason]] = None) -> None:
        self.frame = frame if frame is not None else make_frame()
        self.fail_first = fail_first
        self.reasons = reasons or []
        self.attempts: List[CameraConstraints] = []
        self.acquire_count = 0
        self.stop_calls = 0
        self.active = 0
        self.max_active = 0
        self.never_ready = False
        self.gate: Optional[asyncio.Event] = None

    async def acquire(self, constraints: CameraConstraints) -> FakeStream:
        attempt = len(self.attempts)
        self.attempts.append(constraints)
        if self.gate is not None:
            await self.gate.wait()
        if attempt < self.fail_first:
            reason = self.reasons[attempt] if attempt < len(self.reasons) else CameraErrorReason.OVERCONSTRAINED
            raise CameraAcquisitionError(reason, f"attempt {attempt + 1} failed")
        self.acquire_count += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        return FakeStream(self, constraints)


def make_frame(width: int = 8, height: int = 4) -> np.ndarray:
    """An asymmetric RGB gradient so mirroring is observable."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[..., 0] = np.arange(width, dtype=np.uint8)[None, :] * 30
    frame[..., 1] = np.arange(height, dtype=np.uint8)[:, None] * 60
    frame[..., 2] = 200
    return frame


@pytest.fixture
def camera_backend() -> FakeCameraBackend:
    return FakeCameraBackend()
