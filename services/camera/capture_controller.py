"""Camera lifecycle and still capture.

States: CLOSED -> OPENING -> READY -> CAPTURING -> CLOSED, with
OPENING -> ERROR on failure and READY/ERROR -> CLOSED on close().

The controller is the only owner of the hardware stream. Outside READY and
CAPTURING it holds no stream, and it never holds two at once: `open` and
`capture` are serialized by a lock and the previous stream is released
before a new acquisition starts. `close` does not wait for the lock; it
bumps a generation counter so an acquisition that is still in flight stops
whatever it obtains as soon as it settles.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple, TypeVar

from models.camera_models import (
	ERROR_MESSAGES,
	CameraConstraints,
	CameraErrorReason,
	CameraState,
	CapturedImage,
	FacingDirection,
	constraint_candidates,
)
from services.camera.camera_backend import CameraAcquisitionError, CameraBackend, CameraStream
from services.camera.frame_encoder import FrameEncoder

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C")


class CameraError(Exception):
	"""The camera could not be opened or captured from."""

	def __init__(self, reason: CameraErrorReason, message: Optional[str] = None) -> None:
		self.reason = reason
		self.message = message or ERROR_MESSAGES[reason]
		super().__init__(self.message)


class CameraStateError(Exception):
	"""An operation was requested in a state that does not allow it."""


async def first_successful(
	candidates: Iterable[C], attempt: Callable[[C], Awaitable[T]]
) -> Tuple[T, C]:
	"""Return the first successful `attempt(candidate)` and its candidate.

	Raises the last `CameraAcquisitionError` when every candidate fails.
	"""
	last_error: Optional[CameraAcquisitionError] = None
	for candidate in candidates:
		try:
			return await attempt(candidate), candidate
		except CameraAcquisitionError as exc:
			LOGGER.info("Camera attempt failed (%s): %s", getattr(candidate, "describe", lambda: candidate)(), exc)
			last_error = exc
	if last_error is None:
		raise CameraAcquisitionError(CameraErrorReason.UNKNOWN, "No camera configurations to try.")
	raise last_error


class CameraCaptureController:
	"""Open, switch, capture from and close a device camera."""

	def __init__(
		self,
		backend: CameraBackend,
		encoder: Optional[FrameEncoder] = None,
		*,
		first_frame_timeout: float = 10.0,
		preferred_size: Tuple[int, int] = (1920, 1080),
	) -> None:
		self.backend = backend
		self.encoder = encoder or FrameEncoder()
		self.first_frame_timeout = first_frame_timeout
		self.preferred_size = preferred_size
		self.state = CameraState.CLOSED
		self.facing = FacingDirection.REAR
		self.error: Optional[CameraError] = None
		self.constraints: Optional[CameraConstraints] = None
		self._stream: Optional[CameraStream] = None
		self._generation = 0
		self._lock = asyncio.Lock()

	@property
	def is_active(self) -> bool:
		return self._stream is not None

	def snapshot(self) -> Dict[str, Any]:
		return {
			"state": self.state.value,
			"facing": self.facing.value,
			"constraints": self.constraints.describe() if self.constraints else None,
			"error_reason": self.error.reason.value if self.error else None,
			"error_message": self.error.message if self.error else None,
		}

	async def open(self, facing: FacingDirection = FacingDirection.REAR) -> Dict[str, Any]:
		"""Acquire a camera facing `facing` and wait for its first frame.

		Raises:
			CameraError: If no configuration works or no frame arrives in time.
		"""
		async with self._lock:
			self._generation += 1
			generation = self._generation
			self._release()
			self.facing = facing
			self.error = None
			self.constraints = None
			self.state = CameraState.OPENING

			try:
				stream, constraints = await first_successful(
					constraint_candidates(facing, self.preferred_size), self.backend.acquire
				)
			except CameraAcquisitionError as exc:
				if generation != self._generation:
					return self.snapshot()
				raise self._fail(exc.reason) from exc
			except BaseException:
				if generation == self._generation:
					self.state = CameraState.CLOSED
				raise

			if generation != self._generation:
				# Closed while acquiring.
				_stop_stream(stream)
				return self.snapshot()
			self._stream = stream
			self.constraints = constraints

			try:
				await asyncio.wait_for(stream.wait_first_frame(), timeout=self.first_frame_timeout)
			except asyncio.TimeoutError as exc:
				if generation != self._generation:
					return self.snapshot()
				LOGGER.warning("Camera produced no frame within %.1fs", self.first_frame_timeout)
				raise self._fail(CameraErrorReason.TIMEOUT) from exc
			except CameraAcquisitionError as exc:
				if generation != self._generation:
					return self.snapshot()
				raise self._fail(exc.reason, str(exc)) from exc
			except BaseException:
				if generation == self._generation:
					self._release()
					self.state = CameraState.CLOSED
				raise

			if generation != self._generation:
				return self.snapshot()
			self.state = CameraState.READY
			LOGGER.info("Camera ready (%s)", constraints.describe())
			return self.snapshot()

	async def toggle(self) -> Dict[str, Any]:
		"""Re-open with the opposite facing direction."""
		return await self.open(self.facing.opposite())

	async def capture(self) -> CapturedImage:
		"""Encode the current frame, then close the camera.

		Raises:
			CameraStateError: If the camera is not ready.
			CameraError: If the frame could not be read.
		"""
		async with self._lock:
			stream = self._stream
			if self.state is not CameraState.READY or stream is None:
				raise CameraStateError(f"Camera is {self.state.value}; open it before capturing.")
			generation = self._generation
			self.state = CameraState.CAPTURING
			facing = self.facing
			try:
				frame = await stream.read_frame()
				if generation != self._generation:
					raise CameraStateError("Camera was closed during capture.")
				data, mime_type = self.encoder.encode(
					frame,
					size=(stream.width, stream.height),
					mirror=facing is FacingDirection.FRONT,
				)
			except CameraAcquisitionError as exc:
				raise CameraError(CameraErrorReason.UNKNOWN, str(exc)) from exc
			finally:
				if generation == self._generation:
					self.close()

		width, height = (stream.width, stream.height) if stream.width and stream.height else frame.shape[1::-1]
		return CapturedImage(
			data_url=self.encoder.to_data_url(data),
			mime_type=mime_type,
			width=int(width),
			height=int(height),
			facing=facing,
		)

	def close(self) -> Dict[str, Any]:
		"""Release the camera from any state. Safe to call repeatedly."""
		self._generation += 1
		self._release()
		self.state = CameraState.CLOSED
		self.error = None
		self.constraints = None
		return self.snapshot()

	def _release(self) -> None:
		stream, self._stream = self._stream, None
		if stream is not None:
			_stop_stream(stream)

	def _fail(self, reason: CameraErrorReason, message: Optional[str] = None) -> CameraError:
		self._release()
		self.state = CameraState.ERROR
		self.error = CameraError(reason, message)
		LOGGER.error("Camera error: %s", self.error.message)
		return self.error


def _stop_stream(stream: CameraStream) -> None:
	for track in stream.tracks:
		try:
			track.stop()
		except Exception as exc:
			LOGGER.warning("Failed to stop camera track: %s", exc)
