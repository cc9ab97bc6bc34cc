"""SQLAlchemy ORM model for the UserDocument entity."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.database.base import Base


class UserDocumentModel(Base):
    """ORM model — maps to the 'user_documents' table."""

    __tablename__ = "user_documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    collection: Mapped[str] = mapped_column(String(100), nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "collection", "key", name="uq_user_documents_path"),
        Index("ix_user_documents_collection", "user_id", "collection"),
        Index("ix_user_documents_parent", "parent_key"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserDocumentModel(id={self.id}, "
            f"path='users/{self.user_id}/{self.collection}/{self.key}')>"
        )
