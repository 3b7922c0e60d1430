"""Pydantic schemas for letter generation and history."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LetterGenerationRequest(BaseModel):
    """Inputs for one GST compliance letter."""

    client_name: str = Field(..., min_length=1, max_length=255, alias="clientName")
    compliance_type: str = Field(..., min_length=1, max_length=100, alias="complianceType")
    period: str = Field(..., min_length=1, max_length=100)
    gstin: Optional[str] = Field(None, max_length=15)
    due_date: Optional[str] = Field(None, max_length=50, alias="dueDate")
    consequence: Optional[str] = Field(None, max_length=1000)
    tone: str = Field("Polite", max_length=20)
    language: str = Field("English", max_length=30)

    # Letter header
    letter_date: Optional[str] = Field(None, max_length=50, alias="letterDate")
    place: Optional[str] = Field(None, max_length=100)

    # Signature
    signer_name: Optional[str] = Field(None, max_length=255, alias="signerName")
    designation: Optional[str] = Field(None, max_length=255)
    firm_name: Optional[str] = Field(None, max_length=255, alias="firmName")

    additional_instructions: Optional[str] = Field(
        None, max_length=2000, alias="additionalInstructions"
    )

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "clientName": "Sri Lakshmi Traders",
                "gstin": "33AABCS1234F1Z5",
                "complianceType": "GSTR-3B",
                "period": "March 2025",
                "dueDate": "20-04-2025",
                "tone": "Polite",
                "language": "English",
            }
        },
    }

    @field_validator("client_name", "compliance_type", "period")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field must not be blank")
        return v.strip()


class LetterGenerationResponse(BaseModel):
    success: bool = True
    letter: str
    credits: int = Field(..., description="Credits remaining after this generation")
    letter_id: uuid.UUID = Field(..., alias="letterId")

    model_config = {"populate_by_name": True}


class LetterSummary(BaseModel):
    id: uuid.UUID
    client_name: str = Field(..., alias="clientName")
    gstin: Optional[str] = None
    compliance_type: str = Field(..., alias="complianceType")
    language: str
    content: str
    created_at: datetime = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True, "from_attributes": True}


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(..., alias="totalPages")

    model_config = {"populate_by_name": True}


class LetterListResponse(BaseModel):
    letters: list[LetterSummary]
    pagination: Pagination
