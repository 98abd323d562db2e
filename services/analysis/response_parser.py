"""Helpers to parse the model's JSON-shaped analysis reply."""

import json
import logging
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError

from models.analysis_models import AnalysisResult, CropAnalysis, Fertilizer, NotPlantResult, Treatment

LOGGER = logging.getLogger(__name__)

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


def extract_content(response: Any) -> str:
    """Return `choices[0].message.content` from a chat completion."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None) or ""


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "prompt_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "completion_tokens", None) if usage else None,
    }


def fallback_analysis(content: str) -> CropAnalysis:
    """Conservative result used when the reply cannot be parsed."""
    return CropAnalysis(
        name="Analysis Complete",
        cropType="Unknown",
        confidence=75,
        isHealthy=True,
        description=content.strip() or "Unable to fully analyze the image. Please try with a clearer photo.",
        severity="mild",
        precautions=[
            "Monitor regularly",
            "Maintain proper watering",
            "Ensure good soil health",
            "Check for pests weekly",
            "Maintain proper spacing",
        ],
        fertilizers=[
            Fertilizer(name="Balanced NPK (10-10-10)", dosage="100g per plant", timing="Monthly during growing season")
        ],
        organicTreatments=[
            Treatment(
                name="Neem Oil Solution",
                dosage="2-3ml per liter of water",
                timing="Weekly spray in early morning",
                safetyNote="Safe for humans and beneficial insects",
            )
        ],
        chemicalTreatments=[
            Treatment(
                name="Mancozeb 75% WP",
                dosage="2g per liter of water",
                timing="Bi-weekly when symptoms appear",
                safetyNote="Wear gloves and mask during application. Wait 7 days before harvest.",
            )
        ],
        preventiveMeasures=["Crop rotation", "Proper drainage", "Balanced fertilization"],
    )


def _clamp_confidence(data: Dict[str, Any]) -> None:
    confidence = data.get("confidence")
    if isinstance(confidence, str):
        confidence = confidence.strip().rstrip("%")
    try:
        value = float(confidence)
    except (TypeError, ValueError):
        data.pop("confidence", None)
        return
    if 0 < value < 1:
        value *= 100
    data["confidence"] = max(0.0, min(100.0, value))


def _normalize_severity(data: Dict[str, Any]) -> None:
    severity = str(data.get("severity") or "").strip().lower()
    for level in ("severe", "moderate", "mild"):
        if level in severity:
            data["severity"] = level
            return
    data.pop("severity", None)


def parse_analysis(content: str) -> AnalysisResult:
    """Parse the first JSON object in `content`, falling back on failure."""
    match = _JSON_BLOCK.search(content or "")
    if not match:
        LOGGER.warning("No JSON found in analysis response; using fallback result")
        return fallback_analysis(content or "")
    try:
        data = json.loads(match.group(0))
    except ValueError as exc:
        LOGGER.warning("Failed to parse analysis response: %s", exc)
        return fallback_analysis(content)
    if not isinstance(data, dict):
        return fallback_analysis(content)

    if data.get("isPlant") is False:
        message = data.get("notPlantMessage")
        return NotPlantResult(notPlantMessage=message) if message else NotPlantResult()

    data["isPlant"] = True
    data.setdefault("name", "Analysis Complete")
    _clamp_confidence(data)
    _normalize_severity(data)
    try:
        return CropAnalysis.model_validate(data)
    except ValidationError as exc:
        LOGGER.warning("Analysis response did not match the expected shape: %s", exc)
        return fallback_analysis(content)
