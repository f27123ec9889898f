"""Pydantic models for request/response schemas."""

from .schemas import (
    VerifyIdRequest,
    ExtractedFieldsOut,
    VerifiedResponse,
    ManualReviewResponse,
    FailedResponse,
    HealthResponse,
)

__all__ = [
    "VerifyIdRequest",
    "ExtractedFieldsOut",
    "VerifiedResponse",
    "ManualReviewResponse",
    "FailedResponse",
    "HealthResponse",
]
