"""Integration tests for the SQLAlchemy-backed stores (aiosqlite database file)."""

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.domain.entities import (
    RECORDS_COLLECTION,
    SUMMARIES_COLLECTION,
    AnalysisArtifact,
    UserDocument,
)
from app.domain.exceptions import RemoteReadFailure, RemoteWriteFailure
from app.infrastructure.database import Base
from app.infrastructure.database.models import UserDocumentModel
from app.infrastructure.database.repositories import (
    SQLAlchemyAnalysisRepository,
    SQLAlchemySourceRecordRepository,
    SQLAlchemyUserDocumentRepository,
)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def broken_factory(tmp_path):
    # No tables created: every statement fails
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.mark.asyncio
async def test_missing_analysis_reads_as_none(session_factory):
    assert await SQLAlchemyAnalysisRepository(session_factory).get("u1") is None


@pytest.mark.asyncio
async def test_save_then_get_round_trip(session_factory):
    repository = SQLAlchemyAnalysisRepository(session_factory)
    artifact = AnalysisArtifact(text="Durable", generated_by="openai", record_count=7, comments_used=True)

    await repository.save("u1", artifact)

    assert await repository.get("u1") == artifact


@pytest.mark.asyncio
async def test_merge_creates_then_preserves_other_fields(session_factory):
    repository = SQLAlchemyAnalysisRepository(session_factory)

    await repository.merge("u1", {"needsUpdate": True})
    flagged = await repository.get("u1")
    assert flagged.needs_update is True
    assert flagged.text == ""

    await repository.save("u1", AnalysisArtifact(text="Generated", record_count=2))
    await repository.merge("u1", {"needsUpdate": True})

    stored = await repository.get("u1")
    assert stored.text == "Generated"
    assert stored.record_count == 2
    assert stored.needs_update is True


@pytest.mark.asyncio
async def test_save_replaces_whole_document(session_factory):
    repository = SQLAlchemyAnalysisRepository(session_factory)
    await repository.merge("u1", {"needsUpdate": True, "lastRecordAdded": "2024-01-01"})

    await repository.save("u1", AnalysisArtifact(text="Fresh"))

    async with session_factory() as session:
        document = await SQLAlchemyUserDocumentRepository(session).get("u1", "analysis", "holistic")
    assert "lastRecordAdded" not in document.data
    assert document.data["needsUpdate"] is False


@pytest.mark.asyncio
async def test_merge_sees_fields_committed_by_another_session(session_factory):
    repository = SQLAlchemyAnalysisRepository(session_factory)
    await repository.save("u1", AnalysisArtifact(text="Generated"))

    async with session_factory() as session:
        # Row already loaded in this session before the other writer commits
        held = (
            await session.execute(select(UserDocumentModel).where(UserDocumentModel.user_id == "u1"))
        ).scalar_one()

        await repository.merge("u1", {"updateStartedAt": "2024-05-01T12:00:00+00:00"})

        await SQLAlchemyUserDocumentRepository(session).merge(
            "u1", "analysis", "holistic", {"needsUpdate": True}
        )
        await session.commit()
        assert held.data["updateStartedAt"] == "2024-05-01T12:00:00+00:00"

    stored = await repository.get("u1")
    assert stored.text == "Generated"
    assert stored.needs_update is True
    assert stored.update_started_at is not None


def test_writes_lock_the_document_row():
    dialect = postgresql.dialect()
    repository = SQLAlchemyUserDocumentRepository
    locked = repository._select_document("u1", "analysis", "holistic", for_update=True)
    plain = repository._select_document("u1", "analysis", "holistic")

    assert "FOR UPDATE" in str(locked.compile(dialect=dialect))
    assert "FOR UPDATE" not in str(plain.compile(dialect=dialect))


@pytest.mark.asyncio
async def test_database_errors_become_remote_failures(broken_factory):
    repository = SQLAlchemyAnalysisRepository(broken_factory)

    with pytest.raises(RemoteReadFailure):
        await repository.get("u1")
    with pytest.raises(RemoteWriteFailure):
        await repository.save("u1", AnalysisArtifact(text="x"))
    with pytest.raises(RemoteWriteFailure):
        await repository.merge("u1", {"needsUpdate": True})
    with pytest.raises(RemoteReadFailure):
        await SQLAlchemySourceRecordRepository(broken_factory).list_records("u1")


@pytest.mark.asyncio
async def test_source_records_and_summaries(session_factory):
    async with session_factory() as session:
        documents = SQLAlchemyUserDocumentRepository(session)
        for key, name in (("r1", "Lipids"), ("r2", "")):
            await documents.put(
                UserDocument(
                    user_id="u1",
                    collection=RECORDS_COLLECTION,
                    key=key,
                    data={"name": name, "recordType": "lab", "comment": f"note {key}"},
                )
            )
        await documents.put(
            UserDocument(
                user_id="u1",
                collection=SUMMARIES_COLLECTION,
                key="r1",
                parent_key="r1",
                data={"text": "LDL elevated"},
            )
        )
        await documents.put(
            UserDocument(user_id="u2", collection=RECORDS_COLLECTION, key="r9", data={"name": "Other"})
        )
        await session.commit()

    repository = SQLAlchemySourceRecordRepository(session_factory)
    records = await repository.list_records("u1")

    assert [r.id for r in records] == ["r1", "r2"]
    assert records[0].record_type == "lab"
    assert records[1].display_name == "r2"
    assert records[1].comment == "note r2"
    assert await repository.get_summary("u1", "r1") == "LDL elevated"
    assert await repository.get_summary("u1", "r2") is None
