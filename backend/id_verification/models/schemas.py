"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import Optional, Literal


class VerifyIdRequest(BaseModel):
    """Request body for ID verification."""
    file: Optional[str] = Field(None, description="Base64 image, data-URL prefix allowed")
    full_name: Optional[str] = Field(None, alias="fullName", description="Full name the user entered")
    birthdate: Optional[str] = Field(None, description="Birthdate the user entered")
    
    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "file": "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQ...",
                "fullName": "Juan Dela Cruz",
                "birthdate": "1990-01-15"
            }
        }


class ExtractedFieldsOut(BaseModel):
    """Fields read off the ID card. Absent fields are null."""
    name: Optional[str] = None
    birthdate: Optional[str] = None
    id_number: Optional[str] = Field(None, alias="idNumber")
    
    class Config:
        populate_by_name = True


class VerifiedResponse(BaseModel):
    """ID verified automatically."""
    status: Literal["verified"] = "verified"
    confidence: int
    extracted: ExtractedFieldsOut
    
    class Config:
        json_schema_extra = {
            "example": {
                "status": "verified",
                "confidence": 85,
                "extracted": {
                    "name": "Juan Dela Cruz",
                    "birthdate": "01/15/1990",
                    "idNumber": "123-4567-890"
                }
            }
        }


class ManualReviewResponse(BaseModel):
    """ID handed off to a human reviewer. ``extracted`` is omitted when OCR never ran."""
    status: Literal["manual_review"] = "manual_review"
    confidence: int
    reason: str
    extracted: Optional[ExtractedFieldsOut] = None
    
    class Config:
        json_schema_extra = {
            "example": {
                "status": "manual_review",
                "confidence": 60,
                "reason": "Birthdate not found",
                "extracted": {
                    "name": "Juan Dela Cruz",
                    "birthdate": None,
                    "idNumber": "123-4567-890"
                }
            }
        }


class FailedResponse(BaseModel):
    """Request rejected before verification ran."""
    status: Literal["failed"] = "failed"
    reason: str
    
    class Config:
        json_schema_extra = {
            "example": {
                "status": "failed",
                "reason": "No image file uploaded."
            }
        }


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    ocr_backend: str
