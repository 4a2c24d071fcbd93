import asyncio
import re

from pydantic import BaseModel, ConfigDict

from bgremover.core.exceptions import EncodingError
from bgremover.core.logging import logger
from bgremover.utils.image import to_data_url

DEFAULT_MIME_TYPE = "application/octet-stream"

_MIME_TYPE_PATTERN = re.compile(r":(.*?);")


class SelectedFile(BaseModel):
    """Image chosen by the user."""

    model_config = ConfigDict(frozen=True)

    content: bytes
    mime_type: str = ""
    filename: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


class EncodedPayload(BaseModel):
    """Base64 body of a file plus its MIME type."""

    model_config = ConfigDict(frozen=True)

    base64: str
    mime_type: str


async def read_as_data_url(file: SelectedFile) -> str:
    """Read the whole file into a data URI without blocking the event loop."""
    mime_type = file.mime_type or DEFAULT_MIME_TYPE
    return await asyncio.to_thread(to_data_url, file.content, mime_type)


def parse_data_url(data_url: str) -> EncodedPayload:
    """Split a data URI into its base64 body and MIME type.

    Raises:
        EncodingError: If the URI does not have exactly one comma, or the
            header carries no MIME type.
    """
    parts = data_url.split(",")
    if len(parts) != 2:
        raise EncodingError(
            "Invalid data URL format",
            reason=EncodingError.MALFORMED_REPRESENTATION,
        )

    header, body = parts
    match = _MIME_TYPE_PATTERN.search(header)
    if not match or not match.group(1):
        raise EncodingError(
            "Could not determine MIME type from data URL",
            reason=EncodingError.MIME_TYPE_UNRECOVERABLE,
        )

    return EncodedPayload(base64=body, mime_type=match.group(1))


async def file_to_base64(file: SelectedFile) -> EncodedPayload:
    """Convert a selected file into an :class:`EncodedPayload`."""
    data_url = await read_as_data_url(file)
    payload = parse_data_url(data_url)
    logger.debug(
        f"Encoded {file.filename or 'upload'} ({file.size} bytes, {payload.mime_type})"
    )
    return payload
