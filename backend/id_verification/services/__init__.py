"""Services for image preprocessing, OCR, field extraction, claim validation and orchestration."""

from .errors import IDVerificationError, RequestShapeError, ImageDecodeError, OcrEngineError, OcrTimeoutError
from .preprocessing import ImagePreprocessor, decode_image_payload
from .ocr import OCREngine, EasyOCREngine, TesseractEngine, OCRAdapter, create_engine_factory, engine_session
from .extraction import FieldExtractor, ExtractedFields
from .verification import ClaimValidator, ValidationOutcome
from .orchestrator import (
    VerificationOrchestrator,
    VerificationRequest,
    VerificationVerdict,
    VerdictStatus,
    PipelineConfig,
)

__all__ = [
    "IDVerificationError",
    "RequestShapeError",
    "ImageDecodeError",
    "OcrEngineError",
    "OcrTimeoutError",
    "ImagePreprocessor",
    "decode_image_payload",
    "OCREngine",
    "EasyOCREngine",
    "TesseractEngine",
    "OCRAdapter",
    "create_engine_factory",
    "engine_session",
    "FieldExtractor",
    "ExtractedFields",
    "ClaimValidator",
    "ValidationOutcome",
    "VerificationOrchestrator",
    "VerificationRequest",
    "VerificationVerdict",
    "VerdictStatus",
    "PipelineConfig",
]
