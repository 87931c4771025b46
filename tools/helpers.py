"""Shared helper functions for tool implementations"""

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from exceptions import SeoGeneratorError, UpstreamError, ValidationError
from models.config import UploadConfig

logger = logging.getLogger("SEO_Server")

GENERIC_FAILURE_MESSAGE = "Failed to generate SEO assets"


@dataclass(frozen=True)
class UploadedImage:
    """A received upload that passed type and size checks"""
    path: Path
    original_filename: str
    mime_type: str
    size_bytes: int


def validate_upload(
    path: Union[str, Path],
    mime_type: Optional[str] = None,
    config: Optional[UploadConfig] = None,
    original_filename: Optional[str] = None,
) -> UploadedImage:
    """Check an uploaded image against the size ceiling and type allow-list.

    Args:
        path: Path to the received file
        mime_type: Declared MIME type; guessed from the extension when omitted
        config: Upload limits (defaults to 5 MiB and JPEG/PNG/SVG)
        original_filename: Client-side filename, defaults to the file's name

    Returns:
        UploadedImage describing the file

    Raises:
        ValidationError: If the file is missing, too large, or of a disallowed type
    """
    config = config or UploadConfig()
    upload_path = Path(path)
    if not upload_path.is_file():
        raise ValidationError("Uploaded image not found")

    resolved_type = (mime_type or mimetypes.guess_type(upload_path.name)[0] or "").lower()
    if resolved_type not in config.allowed_mime_types:
        raise ValidationError("Only image files (JPEG, PNG, SVG) are allowed")

    size_bytes = upload_path.stat().st_size
    if size_bytes > config.max_bytes:
        raise ValidationError(f"Image exceeds the {config.max_bytes // (1024 * 1024)}MB upload limit")
    if size_bytes == 0:
        raise ValidationError("Uploaded image is empty")

    return UploadedImage(
        path=upload_path,
        original_filename=original_filename or upload_path.name,
        mime_type=resolved_type,
        size_bytes=size_bytes,
    )


def error_response(error: Exception, generic_message: str = GENERIC_FAILURE_MESSAGE) -> Dict[str, Any]:
    """Translate an exception into a tool error dict.

    Known errors keep their message and code. Anything else is logged with its
    traceback and reported with a generic message only.
    """
    if isinstance(error, SeoGeneratorError):
        response: Dict[str, Any] = {"error": str(error), "error_code": error.error_code}
        if isinstance(error, UpstreamError):
            response["retryable"] = error.retryable
        return response

    logger.error(f"Unhandled error: {error}", exc_info=error)
    return {"error": generic_message, "error_code": "INTERNAL_ERROR"}
