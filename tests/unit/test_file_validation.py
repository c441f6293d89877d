from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from deckcanvas.utils.file_validation import detect_image_extension, get_safe_filename, validate_image_file

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 100
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 100
WEBP = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 100


def create_upload_file(filename: str, content: bytes, content_type: str):
    """Helper to create a mock UploadFile"""
    file = MagicMock()
    file.filename = filename
    file.content_type = content_type
    file.read = AsyncMock(return_value=content)
    file.seek = AsyncMock()
    return file


@pytest.mark.asyncio
async def test_validate_valid_png():
    """Test validation of a valid PNG file"""
    content = PNG
    file = create_upload_file("photo.png", content, "image/png")

    result = await validate_image_file(file)
    assert result == content
    file.seek.assert_awaited_once_with(0)


@pytest.mark.asyncio
async def test_validate_valid_webp():
    file = create_upload_file("photo.webp", WEBP, "image/webp")
    assert await validate_image_file(file) == WEBP


@pytest.mark.asyncio
async def test_validate_invalid_extension():
    """Test rejection of invalid file extension"""
    file = create_upload_file("deck.pptx", b"content", "image/png")

    with pytest.raises(HTTPException) as exc_info:
        await validate_image_file(file)

    assert exc_info.value.status_code == 400
    assert "Invalid file type" in exc_info.value.detail


@pytest.mark.asyncio
async def test_validate_invalid_mime_type():
    """Test rejection of invalid MIME type"""
    file = create_upload_file("photo.png", PNG, "application/pdf")

    with pytest.raises(HTTPException) as exc_info:
        await validate_image_file(file)

    assert exc_info.value.status_code == 400
    assert "Invalid content type" in exc_info.value.detail


@pytest.mark.asyncio
async def test_validate_missing_filename():
    file = create_upload_file("", PNG, "image/png")

    with pytest.raises(HTTPException) as exc_info:
        await validate_image_file(file)

    assert exc_info.value.detail == "No filename provided"


@pytest.mark.asyncio
async def test_validate_file_too_large():
    """Test rejection of oversized file"""
    file = create_upload_file("photo.png", PNG + b"\x00" * 2048, "image/png")

    with pytest.raises(HTTPException) as exc_info:
        await validate_image_file(file, max_size=1024)

    assert exc_info.value.status_code == 413
    assert "File too large" in exc_info.value.detail


@pytest.mark.asyncio
async def test_validate_empty_file():
    """Test rejection of empty file"""
    file = create_upload_file("photo.png", b"", "image/png")

    with pytest.raises(HTTPException) as exc_info:
        await validate_image_file(file)

    assert exc_info.value.status_code == 400
    assert "Empty file" in exc_info.value.detail


@pytest.mark.asyncio
async def test_validate_signature_mismatch():
    """Test rejection of a file whose bytes do not match its extension"""
    file = create_upload_file("photo.png", JPEG, "image/png")

    with pytest.raises(HTTPException) as exc_info:
        await validate_image_file(file)

    assert exc_info.value.status_code == 400
    assert "signature" in exc_info.value.detail


@pytest.mark.asyncio
async def test_validate_riff_without_webp_marker():
    file = create_upload_file("photo.webp", b"RIFF\x00\x00\x00\x00WAVE" + b"\x00" * 10, "image/webp")

    with pytest.raises(HTTPException):
        await validate_image_file(file)


@pytest.mark.parametrize(
    "content,expected",
    [
        (PNG, ".png"),
        (JPEG, ".jpg"),
        (b"GIF89a" + b"\x00" * 10, ".gif"),
        (WEBP, ".webp"),
        (b"not an image", ""),
    ],
)
def test_detect_image_extension(content, expected):
    assert detect_image_extension(content) == expected


def test_get_safe_filename():
    """Test filename sanitization"""
    assert get_safe_filename("photo.png") == "photo.png"
    assert get_safe_filename("../../../etc/passwd") == "passwd"
    assert get_safe_filename("..\\..\\windows\\system32") == "system32"
    assert get_safe_filename("file<>name.png") == "filename.png"
    assert get_safe_filename("my photo.png") == "my_photo.png"


def test_get_safe_filename_long():
    """Test that long names keep their extension"""
    result = get_safe_filename("a" * 300 + ".png")
    assert len(result) <= 255
    assert result.endswith(".png")
