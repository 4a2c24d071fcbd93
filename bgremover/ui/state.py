from enum import Enum

from pydantic import BaseModel, ConfigDict

from bgremover.services.encoder import SelectedFile

REMOVAL_FAILED_MESSAGE = "Failed to remove background. Please try again."


class ViewState(str, Enum):
    IDLE = "idle"
    READY = "ready"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SessionState(BaseModel):
    """Everything the page needs to render; replaced, never mutated."""

    model_config = ConfigDict(frozen=True)

    file: SelectedFile | None = None
    preview_url: str | None = None
    is_loading: bool = False
    error: str | None = None
    result: str | None = None  # data URI of the processed image

    @property
    def view_state(self) -> ViewState:
        if self.file is None:
            return ViewState.IDLE
        if self.is_loading:
            return ViewState.LOADING
        if self.error is not None:
            return ViewState.FAILED
        if self.result is not None:
            return ViewState.SUCCEEDED
        return ViewState.READY

    @property
    def can_trigger(self) -> bool:
        return self.file is not None and not self.is_loading


def select_file(state: SessionState, file: SelectedFile, preview_url: str) -> SessionState:
    """Any state -> READY with the new file."""
    return SessionState(file=file, preview_url=preview_url)


def begin_removal(state: SessionState) -> SessionState:
    """READY/SUCCEEDED/FAILED -> LOADING, dropping the previous outcome."""
    return state.model_copy(update={"is_loading": True, "error": None, "result": None})


def removal_succeeded(state: SessionState, result: str) -> SessionState:
    return state.model_copy(update={"result": result, "error": None})


def removal_failed(state: SessionState, message: str = REMOVAL_FAILED_MESSAGE) -> SessionState:
    return state.model_copy(update={"error": message, "result": None})


def finish_loading(state: SessionState) -> SessionState:
    return state.model_copy(update={"is_loading": False})
