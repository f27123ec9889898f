"""Exception hierarchy for the ID verification pipeline."""


class IDVerificationError(Exception):
    """Base class for all pipeline errors."""


class RequestShapeError(IDVerificationError):
    """Request is structurally unusable (wrong method, missing upload)."""

    def __init__(self, reason: str, status_code: int = 400):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class ImageDecodeError(IDVerificationError):
    """Uploaded payload could not be decoded as an image."""


class OcrEngineError(IDVerificationError):
    """OCR engine could not be created or failed while recognizing."""


class OcrTimeoutError(OcrEngineError):
    """Recognition did not settle before the timeout."""
