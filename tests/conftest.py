import asyncio
import base64
import io

import pytest
from PIL import Image

from bgremover.services import SelectedFile


class FakeRemover:
    """Stands in for the Gemini client."""

    def __init__(self, result: str = "iVBORtest", error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls = []
        self.release = None  # set to an asyncio.Event to hold calls open

    async def remove_background(self, base64_image: str, mime_type: str) -> str:
        self.calls.append((base64_image, mime_type))
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def sample_image():
    """Create a sample test image."""
    img = Image.new("RGB", (256, 256), color="red")
    return img


@pytest.fixture
def sample_image_bytes():
    """Create sample image as PNG bytes."""
    img = Image.new("RGB", (256, 256), color="red")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    buffer.seek(0)
    return buffer.getvalue()


@pytest.fixture
def cat_jpeg_bytes():
    """Valid JPEG bytes for a file called cat.jpg."""
    img = Image.new("RGB", (64, 48), color=(200, 150, 100))
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def cat_file(cat_jpeg_bytes):
    return SelectedFile(content=cat_jpeg_bytes, mime_type="image/jpeg", filename="cat.jpg")


@pytest.fixture
def png_result_base64():
    """Base64 of a real transparent PNG, as the model would return it."""
    img = Image.new("RGBA", (32, 32), color=(0, 0, 0, 0))
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def fake_remover():
    return FakeRemover()


@pytest.fixture
def gated_remover():
    """Remover whose calls block until ``remover.release.set()``."""
    remover = FakeRemover()
    remover.release = asyncio.Event()
    return remover
