"""Tests for input validation and photo checks."""

import io

import pytest
from PIL import Image

from chefgenius.config import settings
from chefgenius.services.image_service import ImageService
from chefgenius.utils.exceptions import ImageProcessingError, ValidationError
from chefgenius.utils.validators import validate_ingredients_list, validate_rating, validate_source_url


def test_validate_source_url():
    assert validate_source_url(" https://example.com/recipe ") == "https://example.com/recipe"
    assert validate_source_url("") is None
    assert validate_source_url(None) is None


@pytest.mark.parametrize("url", ["ftp://example.com", "example.com/recipe", "https://"])
def test_validate_source_url_rejects(url):
    with pytest.raises(ValidationError):
        validate_source_url(url)


def test_validate_ingredients_list():
    assert validate_ingredients_list([" eggs ", "", "milk"]) == ["eggs", "milk"]
    with pytest.raises(ValidationError):
        validate_ingredients_list(["  "])
    with pytest.raises(ValidationError):
        validate_ingredients_list(["x"] * 51)
    with pytest.raises(ValidationError):
        validate_ingredients_list("eggs")


@pytest.mark.parametrize("rating", [0, 3, 5])
def test_validate_rating_accepts(rating):
    assert validate_rating(rating) == rating


@pytest.mark.parametrize("rating", [-1, 6, True, 2.5])
def test_validate_rating_rejects(rating):
    with pytest.raises(ValidationError):
        validate_rating(rating)


def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), (255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_image_magic_bytes():
    assert ImageService.validate_image(png_bytes(), "fridge.png")[1] == "image/png"
    assert ImageService.validate_image(b"\xff\xd8\xff\xe0rest", "fridge.jpg")[1] == "image/jpeg"
    assert ImageService.validate_image(b"RIFF\x00\x00\x00\x00WEBPVP8 ", "fridge.webp")[1] == "image/webp"


def test_image_pillow_fallback_rejects_other_formats():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4)).save(buffer, format="GIF")
    with pytest.raises(ImageProcessingError, match="image/gif"):
        ImageService.validate_image(buffer.getvalue(), "fridge.gif")


@pytest.mark.parametrize("content", [b"", b"plain text, not an image"])
def test_image_rejects_empty_or_garbage(content):
    with pytest.raises(ImageProcessingError):
        ImageService.validate_image(content, "fridge")


def test_image_rejects_oversized(monkeypatch):
    monkeypatch.setattr(settings, "max_upload_size", 10)
    with pytest.raises(ImageProcessingError, match="too large"):
        ImageService.validate_image(png_bytes(), "fridge.png")
