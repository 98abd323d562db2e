"""Chat relay and chat session helpers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.responses import StreamingResponse

from controllers.state import get_openai_client, get_settings, require_state
from services.chat.chat_service import ChatStream, CropChatService
from services.chat.session_store import ChatSessionStore
from services.gateway_errors import GatewayError
from services.languages import language_name

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def _chat_service(request: Request) -> CropChatService:
	settings = get_settings(request)
	return CropChatService(get_openai_client(request), model=settings.chat_model)


def _session_store(request: Request) -> ChatSessionStore:
	return require_state(request, "chat_store", "Chat session store")


async def _open(
	request: Request, messages: Any, language: Optional[str], context: Optional[str]
) -> ChatStream:
	try:
		return await _chat_service(request).open_stream(messages, language=language, context=context)
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except GatewayError as exc:
		raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


async def relay_chat(
	request: Request, messages: List[Dict[str, str]], language: Optional[str], context: Optional[str]
) -> StreamingResponse:
	"""Stream a stateless chat completion back to the caller."""
	stream = await _open(request, messages, language, context)
	return StreamingResponse(stream.relay(), media_type="text/event-stream", headers=SSE_HEADERS)


async def start_session(request: Request, language: Optional[str], context: Optional[str]) -> Dict[str, Any]:
	"""Create a new chat session and return its id."""
	state = _session_store(request).create(language=language_name(language), context=context)
	return {"session_id": state.session_id, "language": state.language}


async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Return the transcript, including any reply still streaming in."""
	try:
		return _session_store(request).transcript(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc


async def set_session_context(request: Request, session_id: str, context: Optional[str]) -> Dict[str, Any]:
	try:
		state = _session_store(request).set_context(session_id, context)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return {"session_id": session_id, "has_context": bool(state.context)}


async def send_session_message(request: Request, session_id: str, text: str) -> StreamingResponse:
	"""Add a user message and stream the assistant reply into the session."""
	store = _session_store(request)
	if not text or not text.strip():
		raise HTTPException(status_code=400, detail="Message text is required.")
	try:
		state = store.get(session_id)
		message = store.add_user_message(session_id, text)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	except RuntimeError as exc:
		raise HTTPException(status_code=409, detail=str(exc)) from exc

	try:
		stream = await _open(request, state.history(), state.language, state.context)
	except BaseException:
		store.discard_turn(session_id, message.id)
		raise
	return StreamingResponse(
		stream.relay(
			on_update=lambda partial: store.publish_partial(session_id, partial),
			on_finish=lambda _text: store.finalize(session_id),
		),
		media_type="text/event-stream",
		headers=SSE_HEADERS,
	)


async def close_session(request: Request, session_id: str) -> Dict[str, Any]:
	try:
		state = _session_store(request).close(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return {"session_id": session_id, "closed": state.closed, "message_count": len(state.messages)}
