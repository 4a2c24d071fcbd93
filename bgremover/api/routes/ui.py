# =============================================================================
# PAGE ROUTES
# =============================================================================
#
# Server-rendered page driven by the removal controller:
#   - GET  /                  current view state
#   - POST /select            choose an image
#   - POST /remove            start background removal
#   - GET  /download          processed PNG as an attachment
#   - GET  /previews/{token}  preview of the selected image
#   - GET  /state             JSON snapshot for polling
#
# =============================================================================

from functools import lru_cache

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from bgremover.api.middleware import ctx_logger, get_validated_file, metrics
from bgremover.api.schemas import ErrorResponse, SessionStateResponse
from bgremover.core.config import settings
from bgremover.services import SelectedFile, get_background_remover
from bgremover.ui import RemovalController, SessionState, ViewState, render_page

router = APIRouter()


# =============================================================================
# CONTROLLER
# =============================================================================

def observe_transitions(controller: RemovalController):
    """Build a listener that logs view changes and records removal metrics."""

    def listener(previous: SessionState, current: SessionState):
        if previous.view_state is not current.view_state:
            ctx_logger.info(
                "View state changed",
                from_state=previous.view_state.value,
                to_state=current.view_state.value,
            )
            metrics.view_changed(previous.view_state.value, current.view_state.value)
        if previous.is_loading and not current.is_loading:
            metrics.removal_finished(
                "ui",
                current.view_state is ViewState.SUCCEEDED,
                controller.last_duration,
            )

    return listener


@lru_cache
def get_controller() -> RemovalController:
    """Get the controller that owns this process's page state."""
    controller = RemovalController(remover=get_background_remover())
    controller.subscribe(observe_transitions(controller))
    return controller


def _back_to_page() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=303)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def page(controller: RemovalController = Depends(get_controller)):
    """Render the page for the current view state."""
    return HTMLResponse(
        render_page(
            controller.state,
            download_filename=controller.download_filename,
            refresh_seconds=settings.loading_refresh_seconds,
        )
    )


@router.post("/select")
async def select_file(
    upload: SelectedFile = Depends(get_validated_file),
    controller: RemovalController = Depends(get_controller),
):
    """Make the uploaded image the current one."""
    metrics.file_uploaded(upload.size)
    controller.select_file(upload)
    return _back_to_page()


@router.post("/remove")
async def remove_background(
    background_tasks: BackgroundTasks,
    controller: RemovalController = Depends(get_controller),
):
    """Start removing the background of the current image.

    Ignored when no image is selected or a removal is already running.
    """
    token = controller.begin()
    if token is not None:
        background_tasks.add_task(controller.run, token)
    return _back_to_page()


@router.get(
    "/download",
    responses={404: {"model": ErrorResponse}},
)
async def download(controller: RemovalController = Depends(get_controller)):
    """Processed image as a PNG attachment."""
    image = controller.download()
    if image is None:
        raise HTTPException(status_code=404, detail="No processed image available")

    return Response(
        content=image.content,
        media_type=image.content_type,
        headers={"Content-Disposition": f'attachment; filename="{image.filename}"'},
    )


@router.get(
    "/previews/{token}",
    responses={404: {"model": ErrorResponse}},
)
async def preview(token: str, controller: RemovalController = Depends(get_controller)):
    """Serve the preview of the selected image until it is replaced."""
    item = controller.previews.get(token)
    if item is None:
        raise HTTPException(status_code=404, detail="Preview not found")
    return Response(content=item.content, media_type=item.mime_type or "application/octet-stream")


@router.get("/state", response_model=SessionStateResponse)
async def state(controller: RemovalController = Depends(get_controller)):
    """Current page state as JSON."""
    return SessionStateResponse.from_state(controller.state)
