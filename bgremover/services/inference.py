import base64
from typing import Any, Protocol

import httpx
from google import genai
from google.genai import errors, types

from bgremover.core.config import settings
from bgremover.core.exceptions import InferenceError, TransportFault
from bgremover.core.logging import logger

REMOVE_BACKGROUND_PROMPT = (
    "remove the background of this image and make the background transparent. "
    "Do not alter the foreground subject. "
    "Output only the image with a transparent background."
)


class BackgroundRemover(Protocol):
    """Anything that turns a base64 image into a background-free base64 image."""

    async def remove_background(self, base64_image: str, mime_type: str) -> str:
        ...


def extract_image_data(response: Any) -> str:
    """Return the base64 payload of the first inline image in ``response``.

    Only the first candidate is examined; its parts are scanned in order.

    Raises:
        InferenceError: If there is no candidate, no content, or no part
            carrying inline image data.
    """
    candidates = getattr(response, "candidates", None) or []
    content = candidates[0].content if candidates else None
    parts = (content.parts if content else None) or []

    for part in parts:
        inline_data = part.inline_data
        # Empty blobs are skipped, a later part may still carry the image
        if inline_data is not None and inline_data.data:
            data = inline_data.data
            if isinstance(data, bytes):
                return base64.b64encode(data).decode("ascii")
            return data

    raise InferenceError("No image data found in the API response.")


class GeminiBackgroundRemover:
    """Background removal backed by a Gemini image model."""

    def __init__(
        self,
        client: genai.Client | None = None,
        model: str | None = None,
        api_key: str | None = None,
    ):
        self.model = model or settings.gemini_model
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key or settings.gemini_api_key)
        return self._client

    def build_contents(self, base64_image: str, mime_type: str) -> types.Content:
        """Inline image part followed by the fixed instruction."""
        return types.Content(
            role="user",
            parts=[
                types.Part.from_bytes(
                    data=base64.b64decode(base64_image),
                    mime_type=mime_type,
                ),
                types.Part.from_text(text=REMOVE_BACKGROUND_PROMPT),
            ],
        )

    async def remove_background(self, base64_image: str, mime_type: str) -> str:
        """Send one request to the model and return the resulting image as base64.

        Raises:
            TransportFault: If the API call itself fails
            InferenceError: If the response carries no image
        """
        config = types.GenerateContentConfig(
            response_modalities=[types.Modality.IMAGE],
        )
        contents = self.build_contents(base64_image, mime_type)

        logger.info(f"Requesting background removal from {self.model} ({mime_type})")
        try:
            # Client creation fails with ValueError when no API key is configured
            client = self.client
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
        except (errors.APIError, httpx.HTTPError, ValueError) as e:
            raise TransportFault(f"Gemini request failed: {e}") from e

        return extract_image_data(response)
