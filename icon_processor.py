"""Image processing utilities for icon catalog generation"""

import logging
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple, Union

from PIL import Image, ImageColor, ImageOps

logger = logging.getLogger("IconProcessor")

TRANSPARENT = (255, 255, 255, 0)


def open_source_image(source: Union[str, Path]) -> Tuple[Image.Image, Dict[str, Any]]:
    """Decode the source image and normalize it to RGBA.

    Args:
        source: Path to an uploaded image

    Returns:
        Tuple of (RGBA image, metadata dict with width, height, format)

    Raises:
        OSError: If the file cannot be opened or decoded (PIL.UnidentifiedImageError
            is a subclass)
    """
    with Image.open(source) as loaded_im:
        fmt = loaded_im.format
        # Apply EXIF orientation correction (returns new Image object)
        im = ImageOps.exif_transpose(loaded_im)
        im.load()
        width, height = im.size
        if im.mode != "RGBA":
            im = im.convert("RGBA")
    return im, {"width": width, "height": height, "format": fmt}


def contain_square(image: Image.Image, size: int) -> Image.Image:
    """Fit image inside a size x size box without cropping, padding with transparency"""
    canvas = Image.new("RGBA", (size, size), TRANSPARENT)
    fitted = ImageOps.contain(image, (size, size), Image.Resampling.LANCZOS)
    offset = ((size - fitted.width) // 2, (size - fitted.height) // 2)
    canvas.paste(fitted, offset, fitted)
    return canvas


def compose_social_preview(
    image: Image.Image,
    width: int,
    height: int,
    logo_box: int = 400,
    background: str = "#ffffff",
) -> Image.Image:
    """Center a bounded reduction of image on an opaque canvas.

    Non-square logos keep their aspect ratio; the logo is never upscaled past
    logo_box and never exceeds the canvas.
    """
    canvas = Image.new("RGB", (width, height), ImageColor.getrgb(background))
    box = min(logo_box, width, height)
    fitted = ImageOps.contain(image, (box, box), Image.Resampling.LANCZOS)
    offset = ((width - fitted.width) // 2, (height - fitted.height) // 2)
    canvas.paste(fitted, offset, fitted)
    return canvas


def encode_png(image: Image.Image) -> bytes:
    """Encode as optimized PNG"""
    output = BytesIO()
    image.save(output, format="PNG", optimize=True)
    return output.getvalue()


def encode_ico(image: Image.Image, sizes: Sequence[int]) -> bytes:
    """Encode a multi-size ICO from an RGBA image at least max(sizes) wide"""
    largest = max(sizes)
    source = contain_square(image, largest)
    output = BytesIO()
    source.save(output, format="ICO", sizes=[(size, size) for size in sorted(sizes)])
    return output.getvalue()


def write_bytes_atomic(target_path: Path, data: bytes):
    """Write through a temp file in the same directory, then rename"""
    temp_path = target_path.with_suffix(target_path.suffix + ".tmp")
    try:
        with open(temp_path, "wb") as f:
            f.write(data)
        temp_path.replace(target_path)
    except OSError:
        # Clean up temp file on error
        if temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                logger.warning(f"Could not remove temp file {temp_path}")
        raise
