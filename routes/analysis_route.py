"""FastAPI routes for crop image analysis."""

from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from controllers.analysis_controller import analyze_image
from services.languages import list_languages
from utils.media_validation import read_image_upload

router = APIRouter(prefix="/api", tags=["analysis"])


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image: Optional[str] = Field(default=None, alias="imageBase64")
    language: Optional[str] = "en"


@router.get("/languages")
async def languages():
    """List the languages answers can be given in."""
    return list_languages()


@router.post("/analyze", summary="Analyze a crop photo")
async def analyze_route(request: Request, payload: AnalyzeRequest):
    """Identify disease and treatments for a base64 photo (data URI accepted)."""
    try:
        return await analyze_image(request, payload.image, payload.language)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc) or "Unknown error occurred") from exc


@router.post("/analyze/upload", summary="Analyze an uploaded crop photo")
async def analyze_upload_route(request: Request, image: UploadFile = File(...), language: str = Form("en")):
    """Multipart variant of `/api/analyze` for plain file uploads."""
    try:
        data_url = await read_image_upload(image)
        return await analyze_image(request, data_url, language)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc) or "Unknown error occurred") from exc
