"""Crop assistant chat relayed from the model gateway as an SSE stream."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from openai import AsyncOpenAI

from services.chat.prompts import chat_system_prompt, with_analysis_context
from services.gateway_errors import gateway_error_from
from services.languages import language_name
from services.streaming.sse_assembler import StreamingResponseAssembler

LOGGER = logging.getLogger(__name__)

ALLOWED_ROLES = {"user", "assistant"}


def normalize_messages(messages: Any) -> List[Dict[str, str]]:
	"""Validate `[{role, content}]` input and drop anything else."""
	if not isinstance(messages, list):
		raise ValueError("Messages array is required")
	cleaned: List[Dict[str, str]] = []
	for item in messages:
		if not isinstance(item, dict):
			raise ValueError("Each message must be an object with role and content.")
		role = item.get("role")
		content = item.get("content")
		if role not in ALLOWED_ROLES:
			raise ValueError(f"Unsupported message role: {role!r}")
		if not isinstance(content, str):
			raise ValueError("Message content must be a string.")
		cleaned.append({"role": role, "content": content})
	return cleaned


class ChatStream:
	"""An open gateway response whose SSE body has not been read yet."""

	def __init__(self, response: Any, stack: AsyncExitStack) -> None:
		self.response = response
		self._stack = stack
		self.text = ""

	async def relay(
		self,
		on_update: Optional[Callable[[str], None]] = None,
		on_finish: Optional[Callable[[str], None]] = None,
	) -> AsyncIterator[bytes]:
		"""Yield the raw SSE bytes while assembling the reply text.

		`on_finish` always runs, so a broken stream still hands over the
		text received so far.
		"""
		assembler = StreamingResponseAssembler(on_update=on_update)
		try:
			async for chunk in self.response.iter_bytes():
				assembler.feed(chunk)
				yield chunk
		except Exception as exc:
			LOGGER.error("Chat stream ended abruptly after %d characters: %s", len(assembler.text), exc)
		finally:
			self.text = assembler.finish()
			if on_finish is not None:
				on_finish(self.text)
			await self._stack.aclose()

	async def collect(self, on_update: Optional[Callable[[str], None]] = None) -> str:
		"""Read the whole stream and return the assembled text."""
		async for _ in self.relay(on_update=on_update):
			pass
		return self.text


class CropChatService:
	"""Open streamed chat completions for the crop assistant."""

	def __init__(self, client: AsyncOpenAI, model: str = "google/gemini-2.5-flash") -> None:
		if client is None:
			raise ValueError("AsyncOpenAI client is required.")
		self.client = client
		self.model = model

	def build_messages(
		self, messages: List[Dict[str, str]], language: Optional[str], context: Optional[str]
	) -> List[Dict[str, str]]:
		"""Prefix the conversation with the language-locked system prompt."""
		name = language_name(language)
		system_prompt = with_analysis_context(chat_system_prompt(name), context, name)
		return [{"role": "system", "content": system_prompt}, *messages]

	async def open_stream(
		self,
		messages: Any,
		*,
		language: Optional[str] = None,
		context: Optional[str] = None,
	) -> ChatStream:
		"""Start a streamed completion.

		Raises:
			ValueError: If `messages` is malformed.
			GatewayError: If the gateway rejects the request before streaming.
		"""
		cleaned = normalize_messages(messages)
		LOGGER.info(
			"Processing chat message, language: %s, has context: %s", language_name(language), bool(context)
		)
		stack = AsyncExitStack()
		try:
			response = await stack.enter_async_context(
				self.client.chat.completions.with_streaming_response.create(
					model=self.model,
					messages=self.build_messages(cleaned, language, context),
					stream=True,
				)
			)
		except Exception as exc:
			await stack.aclose()
			raise gateway_error_from(exc) from exc
		return ChatStream(response, stack)
