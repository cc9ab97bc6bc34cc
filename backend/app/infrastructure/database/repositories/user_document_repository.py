"""Concrete repository implementation for UserDocument backed by SQLAlchemy."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces import UserDocumentRepository
from app.domain.entities import UserDocument
from app.infrastructure.database.models import UserDocumentModel


class SQLAlchemyUserDocumentRepository(UserDocumentRepository):
    """Implements the UserDocumentRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: UserDocumentModel) -> UserDocument:
        """Map ORM model → domain entity."""
        return UserDocument(
            id=model.id,
            user_id=model.user_id,
            collection=model.collection,
            key=model.key,
            parent_key=model.parent_key,
            data=dict(model.data or {}),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: UserDocument) -> UserDocumentModel:
        """Map domain entity → ORM model (for creation)."""
        return UserDocumentModel(
            id=entity.id,
            user_id=entity.user_id,
            collection=entity.collection,
            key=entity.key,
            parent_key=entity.parent_key,
            data=dict(entity.data),
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    @staticmethod
    def _select_document(
        user_id: str, collection: str, key: str, *, for_update: bool = False
    ) -> Select:
        stmt = select(UserDocumentModel).where(
            UserDocumentModel.user_id == user_id,
            UserDocumentModel.collection == collection,
            UserDocumentModel.key == key,
        )
        if for_update:
            # Row lock held until commit; reload past the identity map
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return stmt

    async def _get_model(
        self, user_id: str, collection: str, key: str, *, for_update: bool = False
    ) -> UserDocumentModel | None:
        stmt = self._select_document(user_id, collection, key, for_update=for_update)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, user_id: str, collection: str, key: str) -> UserDocument | None:
        model = await self._get_model(user_id, collection, key)
        return self._to_entity(model) if model else None

    async def list(
        self,
        user_id: str,
        collection: str,
        *,
        parent_key: str | None = None,
    ) -> list[UserDocument]:
        stmt = select(UserDocumentModel).where(
            UserDocumentModel.user_id == user_id,
            UserDocumentModel.collection == collection,
        )
        if parent_key is not None:
            stmt = stmt.where(UserDocumentModel.parent_key == parent_key)

        stmt = stmt.order_by(UserDocumentModel.created_at.asc())
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def put(self, document: UserDocument) -> UserDocument:
        model = await self._get_model(
            document.user_id, document.collection, document.key, for_update=True
        )
        if model is None:
            model = self._to_model(document)
            self._session.add(model)
        else:
            # New dict so the JSON column registers the change
            model.data = dict(document.data)
            model.parent_key = document.parent_key
            model.updated_at = datetime.now(timezone.utc)
        await self._session.flush()
        return self._to_entity(model)

    async def merge(
        self, user_id: str, collection: str, key: str, fields: dict[str, Any]
    ) -> UserDocument:
        model = await self._get_model(user_id, collection, key, for_update=True)
        if model is None:
            return await self.put(
                UserDocument(user_id=user_id, collection=collection, key=key, data=fields)
            )
        model.data = {**(model.data or {}), **fields}
        model.updated_at = datetime.now(timezone.utc)
        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, user_id: str, collection: str, key: str) -> bool:
        model = await self._get_model(user_id, collection, key, for_update=True)
        if model is None:
            return False
        await self._session.delete(model)
        await self._session.flush()
        return True
