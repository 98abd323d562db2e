"""Conversation models for the crop assistant chat."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Union
from uuid import uuid4

Role = Literal["user", "assistant"]


def _new_message_id() -> str:
	return uuid4().hex


@dataclass
class PendingMessage:
	"""Assistant reply that is still streaming in.

	A pending message has no identifier; it only becomes addressable once
	finalized.
	"""

	text: str = ""
	role: Role = "assistant"
	created_at: float = field(default_factory=lambda: time.time())


@dataclass
class FinalizedMessage:
	"""A complete message with its permanent identifier."""

	id: str
	role: Role
	text: str
	created_at: float = field(default_factory=lambda: time.time())


ChatMessage = Union[PendingMessage, FinalizedMessage]


@dataclass
class ChatSession:
	"""In-memory chat session with at most one in-flight assistant reply."""

	session_id: str
	language: str = "English"
	context: Optional[str] = None
	messages: List[FinalizedMessage] = field(default_factory=list)
	pending: Optional[PendingMessage] = None
	closed: bool = False
	awaiting_reply: bool = False

	@property
	def reply_in_flight(self) -> bool:
		"""True from the user's turn until its reply is finalized."""
		return self.awaiting_reply or self.pending is not None

	def add_user_message(self, text: str) -> FinalizedMessage:
		"""Append a user turn and reserve the session for its reply."""
		message = FinalizedMessage(id=_new_message_id(), role="user", text=text)
		self.messages.append(message)
		self.awaiting_reply = True
		return message

	def discard_turn(self, message_id: str) -> None:
		"""Drop an unanswered user turn whose reply could not be started."""
		self.messages = [msg for msg in self.messages if msg.id != message_id]
		self.pending = None
		self.awaiting_reply = False

	def publish_partial(self, text: str) -> PendingMessage:
		"""Replace the in-flight reply text, creating the reply on first use."""
		if self.pending is None:
			self.pending = PendingMessage(text=text)
		else:
			self.pending.text = text
		return self.pending

	def finalize_pending(self) -> Optional[FinalizedMessage]:
		"""Promote the in-flight reply to a finalized message."""
		pending = self.pending
		self.awaiting_reply = False
		if pending is None:
			return None
		message = FinalizedMessage(
			id=_new_message_id(),
			role=pending.role,
			text=pending.text,
			created_at=pending.created_at,
		)
		self.messages.append(message)
		self.pending = None
		return message

	def history(self) -> List[dict]:
		"""Return finalized messages in the gateway's `{role, content}` shape."""
		return [{"role": msg.role, "content": msg.text} for msg in self.messages]
