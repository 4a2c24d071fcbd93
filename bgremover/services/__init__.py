from functools import lru_cache

from bgremover.services.encoder import EncodedPayload, SelectedFile, file_to_base64
from bgremover.services.inference import (
    BackgroundRemover,
    GeminiBackgroundRemover,
    extract_image_data,
)


@lru_cache
def get_background_remover() -> BackgroundRemover:
    """Get the process-wide background removal client."""
    return GeminiBackgroundRemover()


__all__ = [
    "BackgroundRemover",
    "EncodedPayload",
    "GeminiBackgroundRemover",
    "SelectedFile",
    "extract_image_data",
    "file_to_base64",
    "get_background_remover",
]
