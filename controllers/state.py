"""Accessors for shared objects kept on `app.state`."""

from typing import Any

from fastapi import HTTPException, Request


def require_state(request: Request, name: str, label: str) -> Any:
    """Return `app.state.<name>` or raise a 500 if it was never initialized."""
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=500, detail=f"{label} not initialized.")
    return value


def get_openai_client(request: Request):
    """Retrieve the shared gateway client from the app state."""
    return require_state(request, "openai_client", "AI gateway client")


def get_settings(request: Request):
    return require_state(request, "settings", "Settings")
