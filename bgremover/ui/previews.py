import uuid

from bgremover.core.logging import logger

PREVIEW_PREFIX = "/previews/"


class Preview:
    """Bytes held for a preview URL until released."""

    def __init__(self, content: bytes, mime_type: str):
        self.content = content
        self.mime_type = mime_type


class PreviewStore:
    """In-memory stand-in for browser object URLs.

    Each acquired preview stays reachable under ``/previews/<token>`` until it
    is released.
    """

    def __init__(self):
        self._previews: dict[str, Preview] = {}

    def __len__(self) -> int:
        return len(self._previews)

    def acquire(self, content: bytes, mime_type: str) -> str:
        token = uuid.uuid4().hex
        self._previews[token] = Preview(content, mime_type)
        return f"{PREVIEW_PREFIX}{token}"

    def get(self, token: str) -> Preview | None:
        return self._previews.get(token)

    def release(self, url: str | None) -> None:
        if not url or not url.startswith(PREVIEW_PREFIX):
            return
        if self._previews.pop(url[len(PREVIEW_PREFIX):], None) is not None:
            logger.debug(f"Released preview {url}")

