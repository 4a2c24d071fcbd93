class BgRemoverError(Exception):
    """Base exception for the background remover."""

    reason: str = "error"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class EncodingError(BgRemoverError):
    """Local file could not be turned into a base64 payload."""

    MALFORMED_REPRESENTATION = "malformed-representation"
    MIME_TYPE_UNRECOVERABLE = "mime-type-unrecoverable"


class InferenceError(BgRemoverError):
    """Remote model answered but returned no usable image."""

    NO_IMAGE_IN_RESPONSE = "no-image-in-response"
    reason = NO_IMAGE_IN_RESPONSE


class TransportFault(BgRemoverError):
    """Remote call failed (network, auth, server error)."""

    reason = "transport-fault"
