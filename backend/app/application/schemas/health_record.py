"""Pydantic DTOs (Data Transfer Objects) for the HealthRecord feature."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.domain.entities import UserDocument


class HealthRecordCreate(BaseModel):
    """Schema for creating a new health record."""

    name: str = Field(..., min_length=1, max_length=255, examples=["Blood panel"])
    record_type: str = Field("", max_length=100, examples=["lab_result"])
    record_date: str = Field("", max_length=32, examples=["2024-03-01"])
    comment: str = ""
    detailed_analysis: str = ""

    def to_document_data(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "recordType": self.record_type,
            "recordDate": self.record_date,
            "comment": self.comment,
            "detailedAnalysis": self.detailed_analysis,
        }


class HealthRecordUpdate(BaseModel):
    """Schema for updating an existing health record — all fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    record_type: str | None = Field(None, max_length=100)
    record_date: str | None = Field(None, max_length=32)
    comment: str | None = None
    detailed_analysis: str | None = None

    def to_document_fields(self) -> dict[str, Any]:
        keys = {
            "name": "name",
            "record_type": "recordType",
            "record_date": "recordDate",
            "comment": "comment",
            "detailed_analysis": "detailedAnalysis",
        }
        return {
            keys[name]: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class HealthRecordResponse(BaseModel):
    """Schema returned to the client."""

    id: str
    user_id: str
    name: str
    record_type: str
    record_date: str
    comment: str
    detailed_analysis: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: UserDocument) -> "HealthRecordResponse":
        data = document.data
        return cls(
            id=document.key,
            user_id=document.user_id,
            name=data.get("name") or "",
            record_type=data.get("recordType") or "",
            record_date=data.get("recordDate") or "",
            comment=data.get("comment") or "",
            detailed_analysis=data.get("detailedAnalysis") or "",
            created_at=document.created_at,
            updated_at=document.updated_at,
        )


class RecordSummaryUpsert(BaseModel):
    text: str = Field(..., min_length=1)


class RecordSummaryResponse(BaseModel):
    record_id: str
    text: str
    updated_at: datetime
