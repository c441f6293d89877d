"""Image upload validation utilities"""

import os
import re
from typing import Dict, List, Set

from fastapi import HTTPException, UploadFile

from deckcanvas.config import settings

ALLOWED_EXTENSIONS: Set[str] = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
ALLOWED_MIME_TYPES: Set[str] = {"image/png", "image/jpeg", "image/gif", "image/webp"}

# Magic bytes for file type validation
MAGIC_BYTES: Dict[str, List[bytes]] = {
    ".png": [b"\x89PNG\r\n\x1a\n"],
    ".jpg": [b"\xff\xd8\xff"],
    ".jpeg": [b"\xff\xd8\xff"],
    ".gif": [b"GIF87a", b"GIF89a"],
    ".webp": [b"RIFF"],  # followed by size and "WEBP" at offset 8
}


def detect_image_extension(content: bytes) -> str:
    """Extension matching the file signature, or "" when unrecognized"""
    if content.startswith(b"\x89PNG\r\n\x1a\n"):
        return ".png"
    if content.startswith(b"\xff\xd8\xff"):
        return ".jpg"
    if content[:6] in (b"GIF87a", b"GIF89a"):
        return ".gif"
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return ".webp"
    return ""


async def validate_image_file(file: UploadFile, max_size: int = 0) -> bytes:
    """
    Validate uploaded image file

    Args:
        file: Uploaded file from FastAPI
        max_size: Size limit in bytes (defaults to the configured upload limit)

    Returns:
        File content as bytes

    Raises:
        HTTPException: If validation fails
    """
    max_size = max_size or settings.max_upload_size

    # Check file extension
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    file_ext = os.path.splitext(file.filename)[1].lower()
    if file_ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Only {', '.join(sorted(ALLOWED_EXTENSIONS))} files are allowed",
        )

    # Check MIME type
    if file.content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(status_code=400, detail=f"Invalid content type: {file.content_type}")

    # Read and check file size
    content = await file.read()
    file_size = len(content)

    if file_size > max_size:
        size_mb = file_size / (1024 * 1024)
        max_mb = max_size / (1024 * 1024)
        raise HTTPException(status_code=413, detail=f"File too large ({size_mb:.2f}MB). Maximum size is {max_mb}MB")

    if file_size == 0:
        raise HTTPException(status_code=400, detail="Empty file")

    # Validate magic bytes (file signature)
    is_valid_magic = any(content.startswith(magic) for magic in MAGIC_BYTES[file_ext])
    if file_ext == ".webp":
        is_valid_magic = is_valid_magic and content[8:12] == b"WEBP"
    if not is_valid_magic:
        raise HTTPException(
            status_code=400, detail=f"Invalid file format. File does not match expected {file_ext} signature"
        )

    await file.seek(0)

    return content


def get_safe_filename(filename: str) -> str:
    """
    Sanitize filename to prevent path traversal attacks

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    filename = os.path.basename(filename.replace("\\", "/"))
    filename = filename.replace("..", "")

    # Keep word characters, dots, hyphens and spaces, then turn spaces into underscores
    filename = re.sub(r"[^\w\s.-]", "", filename)
    filename = filename.replace(" ", "_")

    while ".." in filename:
        filename = filename.replace("..", ".")

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[: 255 - len(ext)] + ext

    return filename
