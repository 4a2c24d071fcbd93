# =============================================================================
# IMAGE PROCESSING ROUTES
# =============================================================================
#
# Direct (stateless) background removal for programmatic clients:
#   - File validation
#   - Encode -> remote model -> PNG data URI
#   - Usage metrics
#
# =============================================================================

import time

from fastapi import APIRouter, Depends

from bgremover.api.middleware import ctx_logger, get_validated_file, metrics
from bgremover.api.schemas import ErrorResponse, RemovalResponse
from bgremover.core.config import settings
from bgremover.core.exceptions import BgRemoverError
from bgremover.services import (
    BackgroundRemover,
    SelectedFile,
    file_to_base64,
    get_background_remover,
)
from bgremover.utils.image import result_data_url

router = APIRouter()


@router.post(
    "/background/remove",
    response_model=RemovalResponse,
    responses={
        400: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def remove_background(
    upload: SelectedFile = Depends(get_validated_file),
    remover: BackgroundRemover = Depends(get_background_remover),
):
    """
    Remove the background from an image with Gemini.

    Returns the processed image as a PNG data URI.
    """
    metrics.file_uploaded(upload.size)
    ctx_logger.info(
        "Processing upload",
        filename=upload.filename,
        file_size=upload.size,
        mime_type=upload.mime_type,
    )

    start_time = time.time()
    try:
        payload = await file_to_base64(upload)
        base64_image = await remover.remove_background(payload.base64, payload.mime_type)
    except BgRemoverError:
        metrics.removal_finished("api", False, time.time() - start_time)
        raise

    metrics.removal_finished("api", True, time.time() - start_time)
    return RemovalResponse(
        image=result_data_url(base64_image),
        filename=settings.download_filename,
    )
