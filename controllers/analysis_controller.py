"""Controller for crop image analysis requests."""

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from controllers.state import get_openai_client, get_settings
from services.analysis.crop_analyzer import CropAnalyzer
from services.gateway_errors import GatewayError

LOGGER = logging.getLogger(__name__)


async def analyze_image(request: Request, image: Optional[str], language: Optional[str]) -> Dict[str, Any]:
    """Analyze a base64 image and return the structured result.

    Args:
        request: FastAPI request giving access to the shared gateway client.
        image: Base64 image data, optionally a `data:` URI.
        language: Language code or name for the response text.

    Returns:
        The analysis (`CropAnalysis`) or the not-a-plant result as a dict.

    Raises:
        HTTPException: 400 for a missing or invalid image, the gateway's
            status for gateway failures.
    """
    if not image:
        raise HTTPException(status_code=400, detail="No image provided")
    settings = get_settings(request)
    analyzer = CropAnalyzer(get_openai_client(request), model=settings.analysis_model)
    try:
        outcome = await analyzer.analyze(image, language=language)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except GatewayError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    LOGGER.info(
        "Analysis finished in %.2fs (input_tokens=%s, output_tokens=%s)",
        outcome["latency"],
        outcome.get("input_tokens"),
        outcome.get("output_tokens"),
    )
    return outcome["result"].model_dump()
