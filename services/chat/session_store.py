"""Simple in-memory store for chat sessions."""

from __future__ import annotations

from typing import Dict, Iterable, Optional
from uuid import uuid4

from models.chat_models import ChatSession, FinalizedMessage, PendingMessage


class ChatSessionStore:
	"""Manage chat sessions and their in-flight assistant replies."""

	def __init__(self) -> None:
		self._sessions: Dict[str, ChatSession] = {}

	def create(self, language: str = "English", context: Optional[str] = None) -> ChatSession:
		"""Create a new session for the given response language."""
		session_id = uuid4().hex
		state = ChatSession(session_id=session_id, language=language, context=context)
		self._sessions[session_id] = state
		return state

	def get(self, session_id: str) -> ChatSession:
		"""Return a session or raise KeyError if missing."""
		state = self._sessions.get(session_id)
		if state is None:
			raise KeyError(f"Session {session_id} not found")
		return state

	def add_user_message(self, session_id: str, text: str) -> FinalizedMessage:
		"""Append a user message to the session conversation."""
		state = self.get(session_id)
		if state.closed:
			raise RuntimeError("Session is closed; start a new session.")
		if state.reply_in_flight:
			raise RuntimeError("An assistant reply is still streaming for this session.")
		return state.add_user_message(text.strip())

	def publish_partial(self, session_id: str, text: str) -> PendingMessage:
		"""Replace the in-flight assistant text for a session."""
		return self.get(session_id).publish_partial(text)

	def finalize(self, session_id: str) -> Optional[FinalizedMessage]:
		"""Finalize the in-flight reply, if any."""
		return self.get(session_id).finalize_pending()

	def discard_turn(self, session_id: str, message_id: str) -> None:
		"""Undo a user message whose reply never started."""
		self.get(session_id).discard_turn(message_id)

	def set_context(self, session_id: str, context: Optional[str]) -> ChatSession:
		state = self.get(session_id)
		state.context = context
		return state

	def close(self, session_id: str) -> ChatSession:
		"""Mark a session as closed, keeping its transcript readable."""
		state = self.get(session_id)
		state.finalize_pending()
		state.closed = True
		return state

	def transcript(self, session_id: str, limit: int = 20) -> Dict[str, object]:
		"""Return recent messages plus any partial reply for display."""
		state = self.get(session_id)
		slice_: Iterable[FinalizedMessage] = state.messages[-limit:] if limit else state.messages
		return {
			"session_id": state.session_id,
			"language": state.language,
			"closed": state.closed,
			"awaiting_reply": state.reply_in_flight,
			"messages": [
				{"id": msg.id, "role": msg.role, "content": msg.text, "created_at": msg.created_at}
				for msg in slice_
			],
			"pending": (
				{"role": state.pending.role, "content": state.pending.text, "created_at": state.pending.created_at}
				if state.pending is not None
				else None
			),
		}
