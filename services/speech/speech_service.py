"""Text-to-speech with the gateway first and gTTS as a fallback."""

import asyncio
import base64
import io
import logging
from typing import Dict, Optional, Set

from gtts import gTTS
from openai import AsyncOpenAI

from services.languages import resolve_code

LOGGER = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 4096


class SpeechService:
    """Create spoken audio for assistant answers.

    One instance is owned by the application and closed on shutdown; closing
    cancels any synthesis still running.
    """

    def __init__(self, client: Optional[AsyncOpenAI], *, model: str = "tts-1", voice: str = "alloy") -> None:
        self.client = client
        self.model = model
        self.voice = voice
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    async def __aenter__(self) -> "SpeechService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def synthesize(self, text: str, *, language: Optional[str] = None) -> Dict[str, str]:
        """Return `{audioContent, source, mime_type}` for the given text."""
        if self._closed:
            raise RuntimeError("Speech service is closed.")
        text = (text or "").strip()
        if not text:
            raise ValueError("Text is required for speech synthesis.")
        text = text[:MAX_TEXT_LENGTH]
        code = resolve_code(language)

        task = asyncio.ensure_future(self._synthesize(text, code))
        self._tasks.add(task)
        try:
            return await task
        finally:
            self._tasks.discard(task)

    async def _synthesize(self, text: str, code: str) -> Dict[str, str]:
        if self.client is not None:
            try:
                audio = await self._gateway_speech(text)
                return {"audioContent": base64.b64encode(audio).decode("utf-8"), "source": "gateway", "mime_type": "audio/mpeg"}
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                LOGGER.warning("Gateway speech failed, falling back to gTTS: %s", exc)
        audio = await asyncio.to_thread(self._fallback_speech, text, code)
        return {"audioContent": base64.b64encode(audio).decode("utf-8"), "source": "fallback", "mime_type": "audio/mpeg"}

    async def _gateway_speech(self, text: str) -> bytes:
        response = await self.client.audio.speech.create(model=self.model, voice=self.voice, input=text)
        audio = getattr(response, "content", None)
        if not audio:
            raise RuntimeError("Speech response did not include audio.")
        return audio

    @staticmethod
    def _fallback_speech(text: str, code: str) -> bytes:
        buffer = io.BytesIO()
        gTTS(text, lang=code).write_to_fp(buffer)
        audio = buffer.getvalue()
        if not audio:
            raise RuntimeError("Fallback speech produced no audio.")
        return audio

    async def close(self) -> None:
        """Cancel pending syntheses and refuse new ones."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
