"""Verification orchestrator: runs one ID photo through the whole pipeline.

Stages: preprocess -> recognize (raced against a timeout) -> extract ->
validate. Every outcome maps onto one of two verdicts:
- verified (confidence 85): all claim checks passed
- manual_review (confidence 60): checks ran but something did not match
- manual_review (confidence 0): the pipeline itself failed (bad image,
  OCR timeout, engine error); a human looks at the upload instead
"""

import asyncio
import time
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..config import Settings
from .errors import ImageDecodeError, OcrEngineError, OcrTimeoutError
from .extraction import ExtractedFields, FieldExtractor
from .ocr import EngineFactory, OCRAdapter, engine_session
from .preprocessing import ImagePreprocessor, decode_image_payload
from .verification import ClaimValidator

logger = logging.getLogger(__name__)


VERIFIED_CONFIDENCE = 85
REVIEW_CONFIDENCE = 60
FALLBACK_CONFIDENCE = 0

DEFAULT_REVIEW_REASON = "Requires manual verification"
FALLBACK_REASON = "Automatic verification unavailable. Your ID has been submitted for manual review."


class VerdictStatus(str, Enum):
    """Public verdict of a verification."""
    VERIFIED = "verified"
    MANUAL_REVIEW = "manual_review"


class VerificationStage(str, Enum):
    """Where a request is in the pipeline."""
    RECEIVED = "received"
    PREPROCESSING = "preprocessing"
    RECOGNIZING = "recognizing"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    TERMINATING = "terminating"
    RESPONDED = "responded"


@dataclass
class VerificationRequest:
    """One verification call. ``image_data`` is raw bytes or (data-URL) base64."""
    image_data: Union[str, bytes]
    claimed_full_name: Optional[str] = None
    claimed_birthdate: Optional[str] = None


@dataclass(frozen=True)
class VerificationVerdict:
    """The only result callers ever see."""
    status: VerdictStatus
    confidence: int
    extracted: Optional[ExtractedFields] = None
    reason: Optional[str] = None

    @classmethod
    def verified(cls, extracted: ExtractedFields) -> "VerificationVerdict":
        return cls(status=VerdictStatus.VERIFIED, confidence=VERIFIED_CONFIDENCE, extracted=extracted)

    @classmethod
    def review(cls, reason: str, extracted: ExtractedFields) -> "VerificationVerdict":
        return cls(
            status=VerdictStatus.MANUAL_REVIEW,
            confidence=REVIEW_CONFIDENCE,
            extracted=extracted,
            reason=reason or DEFAULT_REVIEW_REASON,
        )

    @classmethod
    def fallback(cls) -> "VerificationVerdict":
        """Create the verdict used when automatic verification could not run."""
        return cls(status=VerdictStatus.MANUAL_REVIEW, confidence=FALLBACK_CONFIDENCE, reason=FALLBACK_REASON)


@dataclass(frozen=True)
class PipelineConfig:
    """Tunables for one orchestrator."""
    ocr_timeout_seconds: float = 30.0
    ocr_max_workers: int = 2
    jpeg_quality: int = 85
    contrast_gain: float = 1.2
    contrast_offset: float = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        return cls(
            ocr_timeout_seconds=settings.ocr_timeout_seconds,
            ocr_max_workers=settings.ocr_max_workers,
            jpeg_quality=settings.jpeg_quality,
            contrast_gain=settings.contrast_gain,
            contrast_offset=settings.contrast_offset,
        )


class VerificationOrchestrator:
    """Sequences the pipeline and applies the verdict policy."""

    def __init__(
        self,
        engine_factory: EngineFactory,
        config: Optional[PipelineConfig] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
        extractor: Optional[FieldExtractor] = None,
        validator: Optional[ClaimValidator] = None,
    ):
        self.config = config or PipelineConfig()
        self.engine_factory = engine_factory
        self.preprocessor = preprocessor or ImagePreprocessor(
            jpeg_quality=self.config.jpeg_quality,
            contrast_gain=self.config.contrast_gain,
            contrast_offset=self.config.contrast_offset,
        )
        self.ocr = OCRAdapter(
            timeout_seconds=self.config.ocr_timeout_seconds,
            max_workers=self.config.ocr_max_workers,
        )
        self.extractor = extractor or FieldExtractor()
        self.validator = validator or ClaimValidator()

    async def verify(self, request: VerificationRequest) -> VerificationVerdict:
        """
        Verify one ID photo against the claimed identity.

        Never raises for pipeline failures: they become a confidence-0
        manual_review verdict. The OCR engine is terminated before this
        returns, whatever happened.
        """
        start_time = time.time()
        timings = {}
        stage = VerificationStage.RECEIVED

        try:
            stage = VerificationStage.PREPROCESSING
            stage_start = time.time()
            image_bytes = decode_image_payload(request.image_data)
            processed = await asyncio.to_thread(self.preprocessor.preprocess, image_bytes)
            timings["preprocess_ms"] = int((time.time() - stage_start) * 1000)

            async with engine_session(self.engine_factory) as engine:
                stage = VerificationStage.RECOGNIZING
                stage_start = time.time()
                text = await self.ocr.recognize(engine, processed)
                timings["ocr_ms"] = int((time.time() - stage_start) * 1000)

                stage = VerificationStage.EXTRACTING
                extracted = self.extractor.extract(text)

                stage = VerificationStage.VALIDATING
                outcome = self.validator.validate(
                    extracted,
                    request.claimed_full_name,
                    request.claimed_birthdate,
                )
                if outcome.is_valid:
                    verdict = VerificationVerdict.verified(extracted)
                else:
                    verdict = VerificationVerdict.review(" ".join(outcome.errors), extracted)

                # Engine is released as the session exits
                stage = VerificationStage.TERMINATING

        except ImageDecodeError as e:
            logger.warning(f"ID image could not be decoded: {e}")
            verdict = VerificationVerdict.fallback()
        except OcrTimeoutError as e:
            logger.warning(f"OCR timed out: {e}")
            verdict = VerificationVerdict.fallback()
        except OcrEngineError as e:
            logger.error(f"OCR engine failed during {stage.value}: {e}")
            verdict = VerificationVerdict.fallback()
        except Exception as e:
            logger.exception(f"Unexpected error during {stage.value}: {e}")
            verdict = VerificationVerdict.fallback()

        stage = VerificationStage.RESPONDED
        timings["total_ms"] = int((time.time() - start_time) * 1000)
        logger.info(
            f"ID verification {stage.value}: status={verdict.status.value}, "
            f"confidence={verdict.confidence}, timings={timings}"
        )
        return verdict
