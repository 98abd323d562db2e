"""Camera hardware access.

`CameraBackend` is the seam between `CameraCaptureController` and real
devices. `OpenCVCameraBackend` drives local cameras through
`cv2.VideoCapture`; blocking OpenCV calls run in worker threads so the event
loop keeps serving requests while a device warms up.

Frames are returned as RGB `uint8` arrays of shape (height, width, 3).
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
import time
from typing import List, Optional, Protocol, Sequence

import cv2
import numpy as np

from models.camera_models import CameraConstraints, CameraErrorReason, FacingDirection

LOGGER = logging.getLogger(__name__)


class CameraAcquisitionError(Exception):
	"""A single acquisition attempt failed for a classified reason."""

	def __init__(self, reason: CameraErrorReason, message: str = "") -> None:
		super().__init__(message or reason.value)
		self.reason = reason


class CameraTrack(Protocol):
	def stop(self) -> None: ...


class CameraStream(Protocol):
	width: int
	height: int

	@property
	def tracks(self) -> Sequence[CameraTrack]: ...

	async def wait_first_frame(self) -> None: ...

	async def read_frame(self) -> np.ndarray: ...


class CameraBackend(Protocol):
	async def acquire(self, constraints: CameraConstraints) -> CameraStream: ...


def classify_device_failure(index: int) -> CameraErrorReason:
	"""Guess why a device index failed to open."""
	if not sys.platform.startswith("linux"):
		return CameraErrorReason.NOT_FOUND
	path = f"/dev/video{index}"
	if not os.path.exists(path):
		return CameraErrorReason.NOT_FOUND
	if not os.access(path, os.R_OK | os.W_OK):
		return CameraErrorReason.PERMISSION_DENIED
	return CameraErrorReason.BUSY


class OpenCVTrack:
	"""Owns one `cv2.VideoCapture`; stopping releases the device."""

	def __init__(self, capture: "cv2.VideoCapture", index: int) -> None:
		self.capture = capture
		self.index = index
		self._lock = threading.Lock()
		self.stopped = False

	def read(self) -> Optional[np.ndarray]:
		with self._lock:
			if self.stopped:
				return None
			ok, frame = self.capture.read()
		return frame if ok and frame is not None else None

	def stop(self) -> None:
		with self._lock:
			if self.stopped:
				return
			self.stopped = True
			self.capture.release()
		LOGGER.info("Released camera device %d", self.index)


class OpenCVStream:
	"""Live stream backed by a single OpenCV capture device."""

	def __init__(self, track: OpenCVTrack, facing: Optional[FacingDirection]) -> None:
		self._track = track
		self.facing = facing
		self.width = int(track.capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
		self.height = int(track.capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)

	@property
	def tracks(self) -> Sequence[OpenCVTrack]:
		return [self._track]

	async def wait_first_frame(self) -> None:
		await asyncio.to_thread(self._poll_first_frame)

	def _poll_first_frame(self) -> None:
		while not self._track.stopped:
			frame = self._track.read()
			if frame is not None:
				height, width = frame.shape[:2]
				self.width, self.height = width, height
				return
			time.sleep(0.05)
		raise CameraAcquisitionError(CameraErrorReason.UNKNOWN, "Camera stopped before producing a frame.")

	async def read_frame(self) -> np.ndarray:
		frame = await asyncio.to_thread(self._track.read)
		if frame is None:
			raise CameraAcquisitionError(CameraErrorReason.UNKNOWN, "Camera returned no frame.")
		if frame.ndim == 2:
			return cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB)
		return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)


class OpenCVCameraBackend:
	"""Acquire local cameras by device index.

	Args:
		rear_index: Device index treated as the rear (environment) camera.
		front_index: Device index treated as the front (user) camera.
		max_devices: How many indices "any camera" probes.
	"""

	def __init__(self, rear_index: int = 0, front_index: int = 1, max_devices: int = 4) -> None:
		self.indices = {FacingDirection.REAR: rear_index, FacingDirection.FRONT: front_index}
		self.max_devices = max_devices

	def _candidate_indices(self, constraints: CameraConstraints) -> List[int]:
		if constraints.facing is None:
			return list(range(self.max_devices))
		preferred = self.indices[constraints.facing]
		if constraints.exact:
			return [preferred]
		other = self.indices[constraints.facing.opposite()]
		return [preferred] if other == preferred else [preferred, other]

	async def acquire(self, constraints: CameraConstraints) -> OpenCVStream:
		loop = asyncio.get_running_loop()
		future = loop.run_in_executor(None, self._open, constraints)
		try:
			return await asyncio.shield(future)
		except asyncio.CancelledError:
			# The open keeps running in its thread; stop whatever it yields.
			future.add_done_callback(_stop_abandoned)
			raise

	def _open(self, constraints: CameraConstraints) -> OpenCVStream:
		reason = CameraErrorReason.NOT_FOUND
		for index in self._candidate_indices(constraints):
			capture = cv2.VideoCapture(index)
			if not capture.isOpened():
				capture.release()
				reason = classify_device_failure(index)
				continue
			if constraints.width and constraints.height:
				capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.width)
				capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.height)
			facing = constraints.facing
			if facing is None:
				facing = next((f for f, i in self.indices.items() if i == index), None)
			LOGGER.info("Opened camera device %d (%s)", index, constraints.describe())
			return OpenCVStream(OpenCVTrack(capture, index), facing)
		raise CameraAcquisitionError(reason, f"No camera matched {constraints.describe()}.")


def _stop_abandoned(future: "asyncio.Future") -> None:
	if future.cancelled() or future.exception() is not None:
		return
	for track in future.result().tracks:
		track.stop()
