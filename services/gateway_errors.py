"""Translate model gateway failures into user-facing errors."""

from __future__ import annotations

import logging
from typing import Any, Optional

from openai import APIConnectionError, APIStatusError

LOGGER = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."
CREDITS_MESSAGE = "AI usage limit reached. Please add credits to continue."


class GatewayError(Exception):
    """A gateway request failed before any result was produced."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _server_message(body: Any) -> Optional[str]:
    if isinstance(body, str):
        return body.strip() or None
    if not isinstance(body, dict):
        return None
    error = body.get("error", body)
    if isinstance(error, str):
        return error.strip() or None
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message.strip()
    return None


def gateway_error_from(exc: Exception) -> GatewayError:
    """Map an OpenAI client exception onto a `GatewayError`."""
    if isinstance(exc, GatewayError):
        return exc
    if isinstance(exc, APIStatusError):
        status = exc.status_code
        LOGGER.error("AI gateway error: %s %s", status, exc.message)
        if status == 429:
            return GatewayError(429, RATE_LIMIT_MESSAGE)
        if status == 402:
            return GatewayError(402, CREDITS_MESSAGE)
        message = _server_message(exc.body) or f"AI Gateway error: {status}"
        return GatewayError(status if status >= 400 else 502, message)
    if isinstance(exc, APIConnectionError):
        LOGGER.error("AI gateway unreachable: %s", exc)
        return GatewayError(502, "AI gateway is unreachable. Please try again.")
    LOGGER.error("Unexpected AI gateway failure: %s", exc)
    return GatewayError(500, str(exc) or "Unknown error occurred")
