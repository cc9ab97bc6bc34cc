"""Health record CRUD endpoints — every mutation flags the user's analysis for update."""

from fastapi import APIRouter, Depends, HTTPException, status

from app.application.schemas.health_record import (
    HealthRecordCreate,
    HealthRecordResponse,
    HealthRecordUpdate,
    RecordSummaryResponse,
    RecordSummaryUpsert,
)
from app.application.services import HealthRecordService
from app.domain.exceptions import EntityNotFoundError
from app.infrastructure.dependencies import get_health_record_service

router = APIRouter(prefix="/users/{user_id}/records", tags=["Health Records"])


@router.get("", response_model=list[HealthRecordResponse])
async def list_records(
    user_id: str,
    service: HealthRecordService = Depends(get_health_record_service),
) -> list[HealthRecordResponse]:
    """Retrieve every health record of a user, oldest first."""
    records = await service.list_records(user_id)
    return [HealthRecordResponse.from_document(r) for r in records]


@router.get("/{record_id}", response_model=HealthRecordResponse)
async def get_record(
    user_id: str,
    record_id: str,
    service: HealthRecordService = Depends(get_health_record_service),
) -> HealthRecordResponse:
    """Retrieve a single health record by ID."""
    try:
        record = await service.get_record(user_id, record_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HealthRecordResponse.from_document(record)


@router.post("", response_model=HealthRecordResponse, status_code=status.HTTP_201_CREATED)
async def create_record(
    user_id: str,
    data: HealthRecordCreate,
    service: HealthRecordService = Depends(get_health_record_service),
) -> HealthRecordResponse:
    """Create a new health record."""
    record = await service.create_record(user_id, data)
    return HealthRecordResponse.from_document(record)


@router.put("/{record_id}", response_model=HealthRecordResponse)
async def update_record(
    user_id: str,
    record_id: str,
    data: HealthRecordUpdate,
    service: HealthRecordService = Depends(get_health_record_service),
) -> HealthRecordResponse:
    """Update an existing health record."""
    try:
        record = await service.update_record(user_id, record_id, data)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HealthRecordResponse.from_document(record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    user_id: str,
    record_id: str,
    service: HealthRecordService = Depends(get_health_record_service),
) -> None:
    """Delete a health record and its summary."""
    try:
        await service.delete_record(user_id, record_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/{record_id}/summary", response_model=RecordSummaryResponse)
async def set_record_summary(
    user_id: str,
    record_id: str,
    data: RecordSummaryUpsert,
    service: HealthRecordService = Depends(get_health_record_service),
) -> RecordSummaryResponse:
    """Store the summary of a health record."""
    try:
        summary = await service.set_summary(user_id, record_id, data.text)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return RecordSummaryResponse(
        record_id=record_id, text=summary.data["text"], updated_at=summary.updated_at
    )


@router.get("/{record_id}/summary", response_model=RecordSummaryResponse)
async def get_record_summary(
    user_id: str,
    record_id: str,
    service: HealthRecordService = Depends(get_health_record_service),
) -> RecordSummaryResponse:
    """Retrieve the summary of a health record."""
    try:
        summary = await service.get_summary(user_id, record_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return RecordSummaryResponse(
        record_id=record_id, text=summary.data.get("text") or "", updated_at=summary.updated_at
    )
