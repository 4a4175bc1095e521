"""Utilities to build data URIs and multimodal input payloads for the Responses API."""

import base64
import io
import os
import re
from typing import Any, Dict, List, Optional, Sequence

from PIL import Image, UnidentifiedImageError

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))

_IMAGE_DATA_URI = re.compile(r"^data:image/[\w.+-]+;base64,[A-Za-z0-9+/=\s]+$")


def detect_image_mime(image_bytes: bytes) -> str:
    """Return the MIME type of the encoded image, raising ValueError if it is not one."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            image_format = img.format
            img.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as exc:
        raise ValueError("Uploaded bytes are not a supported image format") from exc

    mime_type = Image.MIME.get(image_format or "")
    if not mime_type:
        raise ValueError(f"Unsupported image format '{image_format}'")
    return mime_type


def to_image_data_uri(image_bytes: bytes, mime_type: Optional[str] = None) -> str:
    """Encode raw upload bytes as a base64 data URI.

    The declared MIME type is only trusted when it names an image; otherwise the
    type detected from the bytes is used.
    """
    if not image_bytes:
        raise ValueError("Uploaded file is empty.")
    if len(image_bytes) > MAX_UPLOAD_BYTES:
        raise ValueError(f"Uploaded file exceeds {MAX_UPLOAD_BYTES} bytes.")

    detected = detect_image_mime(image_bytes)
    declared = (mime_type or "").lower().split(";", 1)[0].strip()
    resolved = declared if declared.startswith("image/") else detected

    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{resolved};base64,{encoded}"


def is_image_data_uri(value: Optional[str]) -> bool:
    """Return True for strings shaped like `data:image/<type>;base64,<payload>`."""
    return bool(value) and bool(_IMAGE_DATA_URI.match(value))


def build_inputs(
    system_prompt: str,
    user_prompt: str,
    *,
    image_urls: Sequence[str],
) -> List[Dict[str, Any]]:
    """Build the Responses API input array: system prompt, user prompt, then one message per image."""
    inputs: List[Dict[str, Any]] = [
        {
            "type": "message",
            "role": "system",
            "content": [{"type": "input_text", "text": system_prompt}],
        },
        {"type": "message", "role": "user", "content": [{"type": "input_text", "text": user_prompt}]},
    ]
    for image_url in image_urls:
        inputs.append(
            {"type": "message", "role": "user", "content": [{"type": "input_image", "image_url": image_url}]}
        )
    return inputs
