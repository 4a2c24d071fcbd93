import base64
import binascii
import io

from PIL import Image, UnidentifiedImageError

RESULT_MIME_TYPE = "image/png"


def to_data_url(data: bytes, mime_type: str) -> str:
    """Encode raw bytes as a ``data:<mime>;base64,<payload>`` URI."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def result_data_url(base64_image: str) -> str:
    """Data URI for a model result, which is always treated as PNG."""
    return f"data:{RESULT_MIME_TYPE};base64,{base64_image}"


def data_url_payload(data_url: str) -> bytes:
    """Decode the base64 body of a data URI."""
    _, _, payload = data_url.partition(",")
    return base64.b64decode(payload)


def sniff_mime_type(data: bytes) -> str | None:
    """Return the MIME type Pillow detects for ``data``, or None."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return Image.MIME.get(image.format or "")
    except (UnidentifiedImageError, OSError):
        return None


def sniff_base64_mime_type(base64_image: str) -> str | None:
    """Like :func:`sniff_mime_type` for a base64 string."""
    try:
        data = base64.b64decode(base64_image, validate=True)
    except (binascii.Error, ValueError):
        return None
    return sniff_mime_type(data)


def verify_image(data: bytes) -> Image.Image:
    """Open and verify image bytes.

    Raises:
        UnidentifiedImageError / OSError: If the bytes are not a readable image
    """
    image = Image.open(io.BytesIO(data))
    image.verify()  # Verify it's a valid image

    # Re-open after verify (verify() leaves file in unusable state)
    return Image.open(io.BytesIO(data))
