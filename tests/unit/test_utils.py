import io

import pytest
from fastapi import HTTPException, UploadFile
from PIL import Image
from starlette.datastructures import Headers

from bgremover.api.middleware.validation import FileValidator
from bgremover.utils.image import (
    data_url_payload,
    result_data_url,
    sniff_base64_mime_type,
    sniff_mime_type,
    to_data_url,
    verify_image,
)
from bgremover.utils.secrets import get_secret_or_env, parse_list_secret


def make_upload(content: bytes, content_type: str, filename: str = "image.png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def test_to_data_url():
    assert to_data_url(b"abc", "image/gif") == "data:image/gif;base64,YWJj"


def test_result_data_url_is_png():
    assert result_data_url("iVBORtest") == "data:image/png;base64,iVBORtest"


def test_data_url_payload():
    assert data_url_payload("data:image/png;base64,YWJj") == b"abc"


def test_sniff_mime_type(sample_image_bytes, cat_jpeg_bytes):
    assert sniff_mime_type(sample_image_bytes) == "image/png"
    assert sniff_mime_type(cat_jpeg_bytes) == "image/jpeg"
    assert sniff_mime_type(b"plain text") is None


def test_sniff_base64_mime_type(png_result_base64):
    assert sniff_base64_mime_type(png_result_base64) == "image/png"
    assert sniff_base64_mime_type("iVBORtest") is None


def test_verify_image(sample_image_bytes):
    image = verify_image(sample_image_bytes)
    assert isinstance(image, Image.Image)
    assert image.size == (256, 256)


class TestFileValidator:
    """Tests for upload validation."""

    @pytest.mark.asyncio
    async def test_accepts_any_image_type(self, sample_image_bytes):
        upload = make_upload(sample_image_bytes, "image/x-custom")
        selected = await FileValidator().validate_image(upload)

        assert selected.content == sample_image_bytes
        assert selected.mime_type == "image/x-custom"
        assert selected.filename == "image.png"

    @pytest.mark.asyncio
    async def test_rejects_large_files(self, sample_image_bytes):
        with pytest.raises(HTTPException) as exc_info:
            await FileValidator(max_size=10).validate_image(make_upload(sample_image_bytes, "image/png"))
        assert exc_info.value.status_code == 413

    @pytest.mark.asyncio
    async def test_rejects_empty_files(self):
        with pytest.raises(HTTPException) as exc_info:
            await FileValidator().validate_image(make_upload(b"", "image/png"))
        assert exc_info.value.status_code == 400


class TestSecrets:
    """Tests for secret lookup."""

    def test_env_var_first(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        assert get_secret_or_env("", "gemini-api-key", "GEMINI_API_KEY") == "from-env"

    def test_fallback_env_var(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("API_KEY", "legacy")
        value = get_secret_or_env("", "gemini-api-key", "GEMINI_API_KEY", fallback_env_vars=("API_KEY",))
        assert value == "legacy"

    def test_default_without_project(self, monkeypatch):
        monkeypatch.delenv("CORS_ORIGINS", raising=False)
        assert get_secret_or_env("", "cors-origins", "CORS_ORIGINS", default="x") == "x"

    def test_parse_list_secret(self):
        assert parse_list_secret("a, b,,c ") == ["a", "b", "c"]
        assert parse_list_secret(None) is None
