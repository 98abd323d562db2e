"""FastAPI routes for the crop assistant chat."""

from typing import Any, List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.chat_controller import (
	close_session,
	get_session,
	relay_chat,
	send_session_message,
	set_session_context,
	start_session,
)

router = APIRouter(prefix="/api/chat", tags=["chat"])


class ChatPayload(BaseModel):
	messages: Optional[List[Any]] = None
	language: Optional[str] = None
	context: Optional[str] = None


class StartPayload(BaseModel):
	language: Optional[str] = None
	context: Optional[str] = None


class ContextPayload(BaseModel):
	context: Optional[str] = None


class MessagePayload(BaseModel):
	text: str


@router.post("")
async def chat_route(request: Request, payload: ChatPayload):
	"""Relay a streamed answer for a stateless conversation."""
	try:
		return await relay_chat(request, payload.messages, payload.language, payload.context)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/sessions")
async def start_session_route(request: Request, payload: StartPayload):
	try:
		return await start_session(request, payload.language, payload.context)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/sessions/{session_id}")
async def get_session_route(request: Request, session_id: str):
	try:
		return await get_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/sessions/{session_id}/context")
async def set_context_route(request: Request, session_id: str, payload: ContextPayload):
	"""Attach the latest crop analysis to a session."""
	try:
		return await set_session_context(request, session_id, payload.context)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/sessions/{session_id}/messages")
async def post_message_route(request: Request, session_id: str, payload: MessagePayload):
	"""Stream the assistant reply while recording it in the session."""
	try:
		return await send_session_message(request, session_id, payload.text)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/sessions/{session_id}/close")
async def close_session_route(request: Request, session_id: str):
	try:
		return await close_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
