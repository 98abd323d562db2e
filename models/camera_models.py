"""Camera domain models: facing direction, states, constraints and captures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class FacingDirection(str, Enum):
	FRONT = "front"
	REAR = "rear"

	def opposite(self) -> "FacingDirection":
		return FacingDirection.REAR if self is FacingDirection.FRONT else FacingDirection.FRONT


class CameraState(str, Enum):
	CLOSED = "closed"
	OPENING = "opening"
	READY = "ready"
	CAPTURING = "capturing"
	ERROR = "error"


class CameraErrorReason(str, Enum):
	PERMISSION_DENIED = "permission_denied"
	NOT_FOUND = "not_found"
	BUSY = "busy"
	OVERCONSTRAINED = "overconstrained"
	INSECURE_CONTEXT = "insecure_context"
	TIMEOUT = "timeout"
	UNKNOWN = "unknown"


ERROR_MESSAGES = {
	CameraErrorReason.PERMISSION_DENIED: "Camera permission denied. Please allow camera access and try again.",
	CameraErrorReason.NOT_FOUND: "No camera found on this device.",
	CameraErrorReason.BUSY: "Camera is in use by another application.",
	CameraErrorReason.OVERCONSTRAINED: "Camera does not support the requested settings.",
	CameraErrorReason.INSECURE_CONTEXT: "Camera access requires a secure connection.",
	CameraErrorReason.TIMEOUT: "Camera did not start in time. Please try again.",
	CameraErrorReason.UNKNOWN: "Unable to access the camera.",
}


@dataclass(frozen=True)
class CameraConstraints:
	"""One acquisition attempt.

	`facing=None` means any camera; `exact` requires the facing to match
	rather than treating it as a preference.
	"""

	facing: Optional[FacingDirection] = None
	exact: bool = False
	width: Optional[int] = None
	height: Optional[int] = None

	def describe(self) -> str:
		if self.facing is None:
			return "any camera"
		mode = "exact" if self.exact else "ideal"
		size = f" {self.width}x{self.height}" if self.width and self.height else ""
		return f"{mode} {self.facing.value}{size}"


def constraint_candidates(
	facing: FacingDirection, preferred_size: tuple = (1920, 1080)
) -> List[CameraConstraints]:
	"""Return acquisition attempts from most to least specific."""
	width, height = preferred_size
	return [
		CameraConstraints(facing=facing, width=width, height=height),
		CameraConstraints(facing=facing, exact=True),
		CameraConstraints(facing=facing),
		CameraConstraints(),
	]


@dataclass
class CapturedImage:
	"""Encoded still produced by a capture."""

	data_url: str
	mime_type: str
	width: int
	height: int
	facing: FacingDirection

	def to_dict(self) -> dict:
		return {
			"image": self.data_url,
			"mime_type": self.mime_type,
			"width": self.width,
			"height": self.height,
			"facing": self.facing.value,
		}
