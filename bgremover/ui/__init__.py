from bgremover.ui.controller import DownloadableImage, RemovalController
from bgremover.ui.previews import PreviewStore
from bgremover.ui.state import REMOVAL_FAILED_MESSAGE, SessionState, ViewState
from bgremover.ui.view import render_page

__all__ = [
    "DownloadableImage",
    "PreviewStore",
    "REMOVAL_FAILED_MESSAGE",
    "RemovalController",
    "SessionState",
    "ViewState",
    "render_page",
]
