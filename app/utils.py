"""Stored product images."""
from pathlib import Path
from typing import Optional
import uuid

from fastapi import UploadFile

from app.core.config import settings
from app.error_handlers import ValidationError
from app.logging_config import get_logger

logger = get_logger("uploads")


def upload_dir() -> Path:
    path = Path(settings.upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


async def save_image(file: UploadFile, filename_hint: str = "product") -> str:
    """
    Store an uploaded image and return its public URL (``/uploads/<name>``).

    Raises:
        ValidationError: unsupported extension, empty or oversized file
    """
    extension = Path(file.filename or "").suffix.lower().lstrip(".")
    if extension not in settings.allowed_extensions:
        raise ValidationError(
            "Unsupported image type",
            {"image": f"Allowed types: {', '.join(sorted(settings.allowed_extensions))}"}
        )

    content = await file.read()
    if not content:
        raise ValidationError("Empty image", {"image": "The uploaded image is empty"})
    if len(content) > settings.max_upload_size:
        raise ValidationError(
            "Image too large",
            {"image": f"Maximum size is {settings.max_upload_size} bytes"}
        )

    filename = f"{filename_hint}_{uuid.uuid4().hex}.{extension}"
    with open(upload_dir() / filename, "wb") as f:
        f.write(content)

    logger.debug(f"Stored image {filename} ({len(content)} bytes)")
    return f"{settings.upload_url_prefix}/{filename}"


def image_path(image_url: str) -> Path:
    # Only the final path component is trusted
    return Path(settings.upload_dir) / Path(image_url).name


def delete_image(image_url: Optional[str]) -> bool:
    """Remove a stored image. Returns False when there was nothing to remove."""
    if not image_url:
        return False

    path = image_path(image_url)
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning(f"Stored image already missing: {path}")
        return False

    logger.debug(f"Deleted image {path}")
    return True
