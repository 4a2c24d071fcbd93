from bgremover.api.schemas.images import (
    ErrorDetail,
    ErrorResponse,
    RemovalResponse,
    SessionStateResponse,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "RemovalResponse",
    "SessionStateResponse",
]
