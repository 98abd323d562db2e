import inspect
import logging
from contextlib import asynccontextmanager

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from starlette.exceptions import HTTPException as StarletteHTTPException

from routes.analysis_route import router as analysis_router
from routes.camera_route import router as camera_router
from routes.chat_route import router as chat_router
from routes.farm_route import router as farm_router
from services.camera.camera_backend import OpenCVCameraBackend
from services.camera.capture_controller import CameraCaptureController
from services.chat.session_store import ChatSessionStore
from services.schedule.task_store import TaskStore
from services.speech.speech_service import SpeechService
from services.weather.weather_client import WeatherClient
from utils.settings import Settings

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger("cropguard")


async def _aclose(resource) -> None:
    """Close a client exposing `aclose` or `close`, sync or async."""
    if resource is None:
        return
    aclose = getattr(resource, "aclose", None) or getattr(resource, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        # Shutdown errors must not mask the original exit reason.
        LOGGER.warning("Error while closing %s: %s", type(resource).__name__, exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the AI gateway client (OpenAI-compatible) and the weather HTTP client
      - in-memory chat sessions and the monitoring schedule
      - the speech service and the camera controller
    and attach them to `app.state`. Everything is released on shutdown, the
    camera first so no device stays open after the app stops.
    """
    settings: Settings = app.state.settings
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        openai_client = AsyncOpenAI(
            api_key=settings.require_api_key(),
            base_url=settings.gateway_base_url,
            max_retries=0,
        )
    except RuntimeError:
        raise
    except Exception as exc:
        raise RuntimeError("Failed to initialize AI gateway client") from exc

    http_client = httpx.AsyncClient(timeout=10.0)

    app.state.openai_client = openai_client
    app.state.http_client = http_client
    app.state.weather = WeatherClient(
        http_client,
        weather_base_url=settings.weather_base_url,
        geocode_base_url=settings.geocode_base_url,
    )
    app.state.chat_store = ChatSessionStore()
    app.state.task_store = TaskStore()
    app.state.speech = SpeechService(openai_client, model=settings.tts_model, voice=settings.tts_voice)
    app.state.camera = CameraCaptureController(
        OpenCVCameraBackend(rear_index=settings.camera_rear_index, front_index=settings.camera_front_index),
        first_frame_timeout=settings.camera_first_frame_timeout,
    )
    LOGGER.info("CropGuard started (gateway %s)", settings.gateway_base_url)

    try:
        yield
    finally:
        app.state.camera.close()
        await app.state.speech.close()
        await _aclose(http_client)
        await _aclose(openai_client)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(title="CropGuard AI", lifespan=lifespan)
    app.state.settings = settings or Settings.from_env()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        """Render errors as `{"error": message}`."""
        body = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid request body.", "details": jsonable_encoder(exc.errors())},
        )

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports gateway client presence and camera state.
        """
        state = request.app.state
        has_openai = getattr(state, "openai_client", None) is not None
        camera = getattr(state, "camera", None)
        return {
            "ok": True,
            "openai_available": has_openai,
            "camera_state": camera.state.value if camera is not None else None,
        }

    # Register application routers
    app.include_router(analysis_router)
    app.include_router(chat_router)
    app.include_router(camera_router)
    app.include_router(farm_router)

    return app


app = create_app()
