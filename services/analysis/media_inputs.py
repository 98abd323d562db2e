"""Utilities to build multimodal chat payloads for image analysis."""

from typing import Any, Dict, List

from utils.media_validation import normalize_image_payload


def to_image_data_url(image: str) -> str:
    """Return a data URL for a base64 image, keeping existing data URIs as-is."""
    image = normalize_image_payload(image)
    if image.startswith("data:"):
        return image
    return f"data:image/jpeg;base64,{image}"


def build_messages(system_prompt: str, user_prompt: str, image: str) -> List[Dict[str, Any]]:
    """Build the chat completions message list with the image attached."""
    return [
        {"role": "system", "content": system_prompt},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": user_prompt},
                {"type": "image_url", "image_url": {"url": to_image_data_url(image)}},
            ],
        },
    ]
