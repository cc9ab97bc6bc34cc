"""Application service (use case) for HealthRecord operations."""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from uuid import uuid4

from app.application.interfaces import UserDocumentRepository
from app.application.schemas.health_record import HealthRecordCreate, HealthRecordUpdate
from app.domain.entities import (
    ANALYSIS_COLLECTION,
    ANALYSIS_KEY,
    RECORDS_COLLECTION,
    SUMMARIES_COLLECTION,
    UserDocument,
)
from app.domain.exceptions import EntityNotFoundError

logger = logging.getLogger(__name__)

RecordsChangedHook = Callable[[str], Awaitable[None]]


class HealthRecordService:
    """Orchestrates health record CRUD logic. Depends on the repository port (DI).

    Every mutation also flags the user's analysis as needing an update, in
    the same unit of work as the record change.
    """

    def __init__(
        self,
        repository: UserDocumentRepository,
        on_records_changed: RecordsChangedHook | None = None,
    ):
        self._repository = repository
        self._on_records_changed = on_records_changed

    async def get_record(self, user_id: str, record_id: str) -> UserDocument:
        record = await self._repository.get(user_id, RECORDS_COLLECTION, record_id)
        if record is None:
            raise EntityNotFoundError("HealthRecord", record_id)
        return record

    async def list_records(self, user_id: str) -> list[UserDocument]:
        return await self._repository.list(user_id, RECORDS_COLLECTION)

    async def create_record(self, user_id: str, data: HealthRecordCreate) -> UserDocument:
        record = await self._repository.put(
            UserDocument(
                user_id=user_id,
                collection=RECORDS_COLLECTION,
                key=str(uuid4()),
                data=data.to_document_data(),
            )
        )
        await self._records_changed(user_id, record_added=True)
        return record

    async def update_record(
        self, user_id: str, record_id: str, data: HealthRecordUpdate
    ) -> UserDocument:
        record = await self.get_record(user_id, record_id)
        fields = data.to_document_fields()
        if not fields:
            return record

        record.merge_data(fields)
        record = await self._repository.put(record)
        await self._records_changed(user_id)
        return record

    async def delete_record(self, user_id: str, record_id: str) -> bool:
        await self.get_record(user_id, record_id)
        deleted = await self._repository.delete(user_id, RECORDS_COLLECTION, record_id)
        await self._repository.delete(user_id, SUMMARIES_COLLECTION, record_id)
        await self._records_changed(user_id)
        return deleted

    # ── Summary sub-resource ────────────────────────────────────────

    async def get_summary(self, user_id: str, record_id: str) -> UserDocument:
        summary = await self._repository.get(user_id, SUMMARIES_COLLECTION, record_id)
        if summary is None:
            raise EntityNotFoundError("RecordSummary", record_id)
        return summary

    async def set_summary(self, user_id: str, record_id: str, text: str) -> UserDocument:
        await self.get_record(user_id, record_id)
        summary = await self._repository.put(
            UserDocument(
                user_id=user_id,
                collection=SUMMARIES_COLLECTION,
                key=record_id,
                parent_key=record_id,
                data={"text": text},
            )
        )
        await self._records_changed(user_id)
        return summary

    async def _records_changed(self, user_id: str, *, record_added: bool = False) -> None:
        fields: dict[str, object] = {"needsUpdate": True}
        if record_added:
            fields["lastRecordAdded"] = datetime.now(timezone.utc).isoformat()
        await self._repository.merge(user_id, ANALYSIS_COLLECTION, ANALYSIS_KEY, fields)
        logger.info("Analysis for user %s flagged for update", user_id)

        if self._on_records_changed is not None:
            await self._on_records_changed(user_id)
