"""
Integration tests against the real Gemini API.

These tests need a GEMINI_API_KEY and network access.
Run with: pytest tests/integration -v
"""

import base64
import os

import pytest

from bgremover.services import GeminiBackgroundRemover

pytestmark = pytest.mark.skipif(
    not os.getenv("GEMINI_API_KEY"),
    reason="Requires GEMINI_API_KEY",
)


@pytest.mark.asyncio
async def test_remove_background_returns_image(sample_image_bytes):
    """A real request comes back with decodable image data."""
    remover = GeminiBackgroundRemover()

    result = await remover.remove_background(
        base64.b64encode(sample_image_bytes).decode(), "image/png"
    )

    assert base64.b64decode(result)
