"""API route definitions."""

from functools import lru_cache
from typing import Optional, Union
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..models import (
    VerifyIdRequest,
    ExtractedFieldsOut,
    VerifiedResponse,
    ManualReviewResponse,
    FailedResponse,
    HealthResponse,
)
from ..services import (
    RequestShapeError,
    VerificationOrchestrator,
    VerificationRequest,
    VerificationVerdict,
    VerdictStatus,
    PipelineConfig,
    ExtractedFields,
    create_engine_factory,
)
from ..config import get_settings
from .. import __version__

logger = logging.getLogger(__name__)
router = APIRouter()


@lru_cache
def get_orchestrator() -> VerificationOrchestrator:
    """Build the orchestrator once; it holds no per-request state."""
    settings = get_settings()
    return VerificationOrchestrator(
        engine_factory=create_engine_factory(settings),
        config=PipelineConfig.from_settings(settings),
    )


def _fields_out(fields: ExtractedFields) -> ExtractedFieldsOut:
    return ExtractedFieldsOut(**fields.to_dict())


def verdict_to_payload(verdict: VerificationVerdict) -> dict:
    """Render a verdict as the JSON body sent to the client."""
    if verdict.status == VerdictStatus.VERIFIED:
        response = VerifiedResponse(confidence=verdict.confidence, extracted=_fields_out(verdict.extracted))
        return response.model_dump(by_alias=True)

    response = ManualReviewResponse(
        confidence=verdict.confidence,
        reason=verdict.reason,
        extracted=_fields_out(verdict.extracted) if verdict.extracted else None,
    )
    # No extracted block at all when OCR never produced fields
    exclude = {"extracted"} if verdict.extracted is None else None
    return response.model_dump(by_alias=True, exclude=exclude)


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Check API health and configured OCR backend."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        ocr_backend=get_settings().ocr_backend
    )


@router.post(
    "/verify-id",
    response_model=Union[VerifiedResponse, ManualReviewResponse],
    responses={
        400: {"model": FailedResponse, "description": "No image uploaded or malformed body"},
        405: {"model": FailedResponse, "description": "Method not allowed"},
        413: {"model": FailedResponse, "description": "Request body too large"},
    },
    tags=["Verification"]
)
async def verify_id(
    body: Optional[VerifyIdRequest] = None,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
):
    """
    Verify an uploaded ID photo against the identity the user claimed.

    Always answers 200 once an image is supplied: either `verified`
    (confidence 85) or `manual_review` (confidence 60 when fields did not
    match, 0 when automatic verification could not run).
    """
    if body is None or not body.file:
        raise RequestShapeError("No image file uploaded.", status_code=400)

    logger.info("Starting ID verification")
    verdict = await orchestrator.verify(VerificationRequest(
        image_data=body.file,
        claimed_full_name=body.full_name,
        claimed_birthdate=body.birthdate,
    ))

    return JSONResponse(status_code=200, content=verdict_to_payload(verdict))
