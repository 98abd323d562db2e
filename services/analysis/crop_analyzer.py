"""Description: Crop disease analysis using a multimodal model behind the AI gateway."""

import logging
import time
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from models.analysis_models import AnalysisResult
from services.analysis.media_inputs import build_messages
from services.analysis.prompts import USER_PROMPT, build_system_prompt
from services.analysis.response_parser import extract_content, extract_usage, parse_analysis
from services.gateway_errors import gateway_error_from
from services.languages import resolve_code

LOGGER = logging.getLogger(__name__)


class CropAnalyzer:
    """Send a plant photo to the gateway and parse the structured diagnosis."""

    def __init__(self, client: AsyncOpenAI, model: str = "google/gemini-2.5-pro") -> None:
        """Initialize the analyzer with an OpenAI-compatible async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model

    async def analyze(self, image: str, *, language: Optional[str] = None) -> Dict[str, Any]:
        """Analyze a base64 image (or data URI) in the requested language.

        Returns:
            A dict with the parsed `result` plus `latency` and token usage.

        Raises:
            ValueError: If the image payload is missing or not base64.
            GatewayError: If the gateway rejects the request.
        """
        start_time = time.time()
        code = resolve_code(language)
        messages = build_messages(build_system_prompt(code), USER_PROMPT, image)
        LOGGER.info("Analyzing crop image, language: %s", code)
        response = await self._create_completion(messages)
        content = extract_content(response)
        LOGGER.debug("Analysis response received: %s", content[:500])
        result: AnalysisResult = parse_analysis(content)
        payload: Dict[str, Any] = {"result": result, "latency": time.time() - start_time}
        payload.update(extract_usage(response))
        return payload

    async def _create_completion(self, messages: List[Dict[str, Any]]) -> Any:
        """Send the multimodal request to the chat completions endpoint."""
        try:
            return await self.client.chat.completions.create(model=self.model, messages=messages)
        except Exception as exc:
            raise gateway_error_from(exc) from exc

# end of CropAnalyzer
