from pydantic import BaseModel

from bgremover.ui.state import SessionState, ViewState


class RemovalResponse(BaseModel):
    """Result of a direct background removal call."""
    image: str  # data URI, always labelled image/png
    mime_type: str = "image/png"
    filename: str


class SessionStateResponse(BaseModel):
    """Snapshot of the page state for polling clients."""
    view_state: ViewState
    is_loading: bool
    can_trigger: bool
    filename: str | None = None
    preview_url: str | None = None
    error: str | None = None
    result: str | None = None
    download_url: str | None = None

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionStateResponse":
        succeeded = state.view_state is ViewState.SUCCEEDED
        return cls(
            view_state=state.view_state,
            is_loading=state.is_loading,
            can_trigger=state.can_trigger,
            filename=state.file.filename if state.file else None,
            preview_url=state.preview_url,
            error=state.error,
            result=state.result,
            download_url="/download" if succeeded else None,
        )


class ErrorDetail(BaseModel):
    code: str
    message: str
    request_id: str | None = None
    details: dict | None = None


class ErrorResponse(BaseModel):
    """Error response."""
    error: ErrorDetail
