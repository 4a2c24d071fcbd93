# =============================================================================
# REQUEST VALIDATION MODULE
# =============================================================================
#
# Validates incoming uploads for:
#   - Request body size
#   - Image content type
#   - Decodable image data
#
# =============================================================================

from fastapi import HTTPException, UploadFile
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from bgremover.api.middleware.logging import ctx_logger
from bgremover.core.config import settings
from bgremover.services.encoder import SelectedFile
from bgremover.utils.image import verify_image

# Maximum request body size for non-upload requests
MAX_BODY_SIZE = 1 * 1024 * 1024  # 1 MB

# Multipart framing on top of the file itself
MULTIPART_OVERHEAD = 64 * 1024


# =============================================================================
# SIZE LIMIT MIDDLEWARE
# =============================================================================

class SizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware to enforce request size limits.

    Checks Content-Length header before reading body.
    """

    def __init__(self, app, max_body_size: int = MAX_BODY_SIZE, max_upload_size: int | None = None):
        super().__init__(app)
        self.max_body_size = max_body_size
        self.max_upload_size = max_upload_size or settings.max_upload_size

    async def dispatch(self, request: Request, call_next):
        if request.method in ["GET", "HEAD", "OPTIONS"]:
            return await call_next(request)

        content_length = request.headers.get("Content-Length")
        if content_length and content_length.isdigit():
            size = int(content_length)

            if "multipart/form-data" in request.headers.get("Content-Type", ""):
                max_size = self.max_upload_size + MULTIPART_OVERHEAD
            else:
                max_size = self.max_body_size

            if size > max_size:
                ctx_logger.warning(
                    "Request too large",
                    content_length=size,
                    max_size=max_size,
                    path=request.url.path,
                )
                return JSONResponse(
                    status_code=413,
                    content={
                        "error": {
                            "code": "ERR_413",
                            "message": f"Request too large. Maximum size: {settings.max_upload_size_mb} MB",
                        }
                    },
                )

        return await call_next(request)


# =============================================================================
# FILE VALIDATION
# =============================================================================

class FileValidator:
    """Validates uploaded images and turns them into SelectedFile objects."""

    def __init__(self, max_size: int | None = None):
        self.max_size = max_size

    async def validate_image(self, file: UploadFile) -> SelectedFile:
        """
        Validate and read an uploaded image.

        Any ``image/*`` content type is accepted as long as Pillow can
        decode the data.

        Raises:
            HTTPException: If validation fails
        """
        max_size = self.max_size or settings.max_upload_size
        content_type = file.content_type or ""

        if not content_type.startswith("image/"):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid file type: {content_type or 'unknown'}. Expected an image.",
            )

        contents = await file.read()

        if not contents:
            raise HTTPException(status_code=400, detail="Empty file.")

        if len(contents) > max_size:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: {len(contents) // (1024 * 1024)} MB. "
                       f"Maximum: {max_size // (1024 * 1024)} MB",
            )

        try:
            verify_image(contents)
        except Exception as e:
            ctx_logger.warning("Invalid image file", error=str(e), filename=file.filename)
            raise HTTPException(
                status_code=400,
                detail="Invalid or corrupted image file.",
            )

        return SelectedFile(
            content=contents,
            mime_type=content_type,
            filename=file.filename,
        )


# Singleton instance
file_validator = FileValidator()


# =============================================================================
# DEPENDENCY FOR VALIDATED IMAGE UPLOAD
# =============================================================================

async def get_validated_file(file: UploadFile) -> SelectedFile:
    """
    FastAPI dependency to validate an uploaded image.

    Usage:
        @router.post("/select")
        async def select(upload: SelectedFile = Depends(get_validated_file)):
            ...
    """
    return await file_validator.validate_image(file)
