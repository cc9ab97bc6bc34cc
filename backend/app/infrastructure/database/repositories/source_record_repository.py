"""Read-only adapter exposing a user's health records to the analysis engine."""

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces import SourceRecordRepository
from app.domain.entities import (
    RECORDS_COLLECTION,
    SUMMARIES_COLLECTION,
    SourceRecord,
    UserDocument,
)
from app.domain.exceptions import RemoteReadFailure
from app.infrastructure.database.repositories.user_document_repository import (
    SQLAlchemyUserDocumentRepository,
)


def _text(value: Any) -> str:
    return str(value) if value else ""


def document_to_source_record(document: UserDocument) -> SourceRecord:
    """Map a stored record document (camelCase body) to a SourceRecord."""
    data = document.data
    return SourceRecord(
        id=document.key,
        name=_text(data.get("name")),
        record_type=_text(data.get("recordType")),
        record_date=_text(data.get("recordDate")),
        comment=_text(data.get("comment")),
        detailed_analysis=_text(data.get("detailedAnalysis")),
        created_at=document.created_at,
    )


class SQLAlchemySourceRecordRepository(SourceRecordRepository):
    """Implements the SourceRecordRepository port on top of the user document table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_records(self, user_id: str) -> list[SourceRecord]:
        try:
            async with self._session_factory() as session:
                repo = SQLAlchemyUserDocumentRepository(session)
                documents = await repo.list(user_id, RECORDS_COLLECTION)
        except (SQLAlchemyError, OSError) as exc:
            raise RemoteReadFailure(f"users/{user_id}/{RECORDS_COLLECTION}", str(exc)) from exc
        return [document_to_source_record(d) for d in documents]

    async def get_summary(self, user_id: str, record_id: str) -> str | None:
        try:
            async with self._session_factory() as session:
                repo = SQLAlchemyUserDocumentRepository(session)
                document = await repo.get(user_id, SUMMARIES_COLLECTION, record_id)
        except (SQLAlchemyError, OSError) as exc:
            raise RemoteReadFailure(
                f"users/{user_id}/{SUMMARIES_COLLECTION}/{record_id}", str(exc)
            ) from exc
        if document is None:
            return None
        return _text(document.data.get("text")) or None
