import time
from typing import Awaitable, Callable

from pydantic import BaseModel

import bgremover.ui.state as transitions
from bgremover.core.config import settings
from bgremover.core.logging import logger
from bgremover.services.encoder import EncodedPayload, SelectedFile, file_to_base64
from bgremover.services.inference import BackgroundRemover
from bgremover.ui.previews import PreviewStore
from bgremover.ui.state import SessionState, ViewState
from bgremover.utils.image import (
    RESULT_MIME_TYPE,
    data_url_payload,
    result_data_url,
    sniff_base64_mime_type,
)

Encoder = Callable[[SelectedFile], Awaitable[EncodedPayload]]
StateListener = Callable[[SessionState, SessionState], None]


class DownloadableImage(BaseModel):
    filename: str
    content_type: str
    content: bytes


class RemovalController:
    """Owns the session state and drives select -> remove -> download.

    At most one removal is in flight at a time; a trigger while loading is
    ignored rather than restarting the request. Selecting a new file while a
    removal is running drops that removal's outcome when it arrives.
    """

    def __init__(
        self,
        remover: BackgroundRemover,
        encoder: Encoder = file_to_base64,
        previews: PreviewStore | None = None,
        download_filename: str | None = None,
    ):
        self.remover = remover
        self.encoder = encoder
        self.previews = previews or PreviewStore()
        self.download_filename = download_filename or settings.download_filename
        self._state = SessionState()
        self._listeners: list[StateListener] = []
        self._generation = 0
        self.last_duration: float | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def view_state(self) -> ViewState:
        return self._state.view_state

    def subscribe(self, listener: StateListener) -> None:
        """Call ``listener(previous, current)`` after every transition."""
        self._listeners.append(listener)

    def _set_state(self, new_state: SessionState) -> None:
        previous, self._state = self._state, new_state
        for listener in self._listeners:
            try:
                listener(previous, new_state)
            except Exception:
                logger.exception(f"State listener {listener!r} failed")

    def select_file(self, file: SelectedFile) -> SessionState:
        """Make ``file`` the current image, releasing the previous preview first."""
        self._generation += 1
        self.previews.release(self._state.preview_url)
        preview_url = self.previews.acquire(file.content, file.mime_type)
        self._set_state(transitions.select_file(self._state, file, preview_url))
        logger.info(f"Selected {file.filename or 'upload'} ({file.size} bytes)")
        return self._state

    def begin(self) -> int | None:
        """Enter LOADING for the current file.

        Returns:
            A token to pass to :meth:`run`, or None if no file is selected
            or a removal is already in flight.
        """
        if not self._state.can_trigger:
            logger.debug(f"Ignoring trigger in state {self.view_state.value}")
            return None

        self._generation += 1
        self._set_state(transitions.begin_removal(self._state))
        return self._generation

    async def run(self, token: int) -> SessionState:
        """Encode the current file, call the model and record the outcome."""
        file = self._state.file
        start_time = time.time()
        result = None
        try:
            payload = await self.encoder(file)
            base64_image = await self.remover.remove_background(
                payload.base64, payload.mime_type
            )
            self._check_result_format(base64_image)
            result = result_data_url(base64_image)
        except Exception as e:
            logger.error(f"Background removal failed: {type(e).__name__}: {e}")
        finally:
            self.last_duration = time.time() - start_time
            if token != self._generation:
                logger.info("Discarding outcome of a removal for a replaced file")
            else:
                if result is not None:
                    new_state = transitions.removal_succeeded(self._state, result)
                else:
                    new_state = transitions.removal_failed(self._state)
                self._set_state(transitions.finish_loading(new_state))

        return self._state

    async def trigger(self) -> SessionState:
        """Run one background removal for the current file.

        No-op when no file is selected or a removal is already running.
        """
        token = self.begin()
        if token is None:
            return self._state
        return await self.run(token)

    def download(self) -> DownloadableImage | None:
        """The current result as a file, or None unless in SUCCEEDED."""
        if self.view_state is not ViewState.SUCCEEDED:
            return None
        return DownloadableImage(
            filename=self.download_filename,
            content_type=RESULT_MIME_TYPE,
            content=data_url_payload(self._state.result),
        )

    def close(self) -> None:
        """Release the preview resource held by this controller."""
        self.previews.release(self._state.preview_url)

    def _check_result_format(self, base64_image: str) -> None:
        detected = sniff_base64_mime_type(base64_image)
        if detected is not None and detected != RESULT_MIME_TYPE:
            logger.warning(
                f"Model returned {detected}, result is labelled {RESULT_MIME_TYPE}"
            )
