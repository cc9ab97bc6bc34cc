"""Durable store for the holistic analysis — the ``users/<uid>/analysis/holistic`` document.

Each call opens its own short-lived session and commits before returning,
so a read issued after a write observes committed data rather than the
session's identity map.
"""

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces import AnalysisRepository
from app.domain.entities import (
    ANALYSIS_COLLECTION,
    ANALYSIS_KEY,
    AnalysisArtifact,
    UserDocument,
)
from app.domain.exceptions import RemoteReadFailure, RemoteWriteFailure
from app.infrastructure.database.repositories.user_document_repository import (
    SQLAlchemyUserDocumentRepository,
)

logger = logging.getLogger(__name__)


def _path(user_id: str) -> str:
    return f"users/{user_id}/{ANALYSIS_COLLECTION}/{ANALYSIS_KEY}"


class SQLAlchemyAnalysisRepository(AnalysisRepository):
    """Implements the AnalysisRepository port on top of the user document table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, user_id: str) -> AnalysisArtifact | None:
        try:
            async with self._session_factory() as session:
                repo = SQLAlchemyUserDocumentRepository(session)
                document = await repo.get(user_id, ANALYSIS_COLLECTION, ANALYSIS_KEY)
        except (SQLAlchemyError, OSError) as exc:
            raise RemoteReadFailure(_path(user_id), str(exc)) from exc

        if document is None:
            return None
        return AnalysisArtifact.from_document(document.data)

    async def save(self, user_id: str, artifact: AnalysisArtifact) -> None:
        try:
            async with self._session_factory() as session:
                repo = SQLAlchemyUserDocumentRepository(session)
                await repo.put(
                    UserDocument(
                        user_id=user_id,
                        collection=ANALYSIS_COLLECTION,
                        key=ANALYSIS_KEY,
                        data=artifact.to_document(),
                    )
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            raise RemoteWriteFailure(_path(user_id), str(exc)) from exc
        logger.debug("Saved analysis document %s", _path(user_id))

    async def merge(self, user_id: str, fields: dict[str, Any]) -> None:
        try:
            async with self._session_factory() as session:
                repo = SQLAlchemyUserDocumentRepository(session)
                await repo.merge(user_id, ANALYSIS_COLLECTION, ANALYSIS_KEY, fields)
                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            raise RemoteWriteFailure(_path(user_id), str(exc)) from exc
        logger.debug("Merged %s into %s", sorted(fields), _path(user_id))
