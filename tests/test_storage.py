"""Tests for the SQLite chunk store, file bucket and database lifecycle.

These tests verify:
- Chunk insertion and full-collection reads in insertion order
- Uniqueness of (fileId, page)
- Piecewise upload, checksum-verified download
- Cleanup of pieces when an upload is aborted
- Storage errors and timeouts surface as StorageError
"""

import asyncio
import sqlite3
import time
from dataclasses import replace

import pytest

from conftest import sqlite_storage_config
from pdf_rag.exceptions import StorageError, StorageTimeoutError
from pdf_rag.models.vector_chunk import ChunkSource, VectorChunk
from pdf_rag.services.database import Database
from pdf_rag.services.storage_call import run_storage_call


def make_chunk(page: int, file_id: str = "file-1", text: str = None) -> VectorChunk:
    return VectorChunk(
        text=text or f"chunk {page}",
        embedding=[float(page), 0.5],
        source=ChunkSource(file_id=file_id, filename="doc.pdf", page=page),
    )


class TestSqliteChunkStore:
    """Test chunk persistence."""

    @pytest.mark.asyncio
    async def test_insert_assigns_id(self, database):
        stored = await database.chunks.insert_chunk(make_chunk(1))

        assert stored.id is not None
        assert stored.text == "chunk 1"
        assert stored.source == ChunkSource("file-1", "doc.pdf", 1)

    @pytest.mark.asyncio
    async def test_find_all_round_trips_in_insertion_order(self, database):
        for page in (1, 2, 3):
            await database.chunks.insert_chunk(make_chunk(page))
        await database.chunks.insert_chunk(make_chunk(1, file_id="file-2"))

        chunks = await database.chunks.find_all()

        assert [(c.source.file_id, c.source.page) for c in chunks] == [
            ("file-1", 1),
            ("file-1", 2),
            ("file-1", 3),
            ("file-2", 1),
        ]
        assert chunks[1].embedding == [2.0, 0.5]
        assert chunks[0].created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_empty_store(self, database):
        assert await database.chunks.find_all() == []
        assert await database.chunks.count() == 0

    @pytest.mark.asyncio
    async def test_duplicate_page_rejected(self, database):
        await database.chunks.insert_chunk(make_chunk(1))

        with pytest.raises(StorageError):
            await database.chunks.insert_chunk(make_chunk(1, text="again"))

        assert await database.chunks.count() == 1


class TestSqliteFileBucket:
    """Test upload storage (piece size is 8 bytes in these tests)."""

    @pytest.mark.asyncio
    async def test_upload_and_download(self, database):
        payload = b"%PDF-1.4 some binary \x00\x01\x02 content that spans pieces"

        async with database.files.open_upload_stream("doc.pdf") as stream:
            await stream.write(payload[:10])
            await stream.write(payload[10:])

        assert stream.stored_file is not None
        assert stream.stored_file.length == len(payload)
        assert await database.files.download(stream.file_id) == payload

    @pytest.mark.asyncio
    async def test_file_record_metadata(self, database):
        async with database.files.open_upload_stream("report.pdf") as stream:
            await stream.write(b"12345678")

        record = await database.files.get_file(stream.file_id)

        assert record.filename == "report.pdf"
        assert record.length == 8
        assert record.piece_size == 8
        assert record.md5 == "25d55ad283aa400af464c76d713c07ad"

    @pytest.mark.asyncio
    async def test_unknown_file_rejected(self, database):
        with pytest.raises(StorageError):
            await database.files.download("missing")

    @pytest.mark.asyncio
    async def test_failed_upload_removes_pieces(self, database):
        with pytest.raises(RuntimeError):
            async with database.files.open_upload_stream("doc.pdf") as stream:
                await stream.write(b"x" * 20)
                raise RuntimeError("client went away")

        assert await database.files.get_file(stream.file_id) is None
        assert await database.files._load_pieces(stream.file_id) == []

    @pytest.mark.asyncio
    async def test_write_after_completion_rejected(self, database):
        async with database.files.open_upload_stream("doc.pdf") as stream:
            await stream.write(b"abc")

        with pytest.raises(StorageError):
            await stream.write(b"more")

    @pytest.mark.asyncio
    async def test_corrupted_piece_detected(self, database):
        async with database.files.open_upload_stream("doc.pdf") as stream:
            await stream.write(b"0123456789abcdef")

        database._client.execute_query(
            "UPDATE upload_pieces SET data = ? WHERE file_id = ? AND n = 0",
            (b"XXXXXXXX", stream.file_id),
        )

        with pytest.raises(StorageError):
            await database.files.download(stream.file_id)


class TestDatabaseLifecycle:
    """Test connect/close behaviour."""

    @pytest.mark.asyncio
    async def test_stores_unavailable_before_connect(self):
        db = Database(sqlite_storage_config())

        with pytest.raises(RuntimeError):
            _ = db.chunks

    @pytest.mark.asyncio
    async def test_context_manager_connects_and_closes(self):
        async with Database(sqlite_storage_config()) as db:
            assert db.is_connected
            await db.ping()

        assert not db.is_connected

    @pytest.mark.asyncio
    async def test_unreachable_database_fails_fast(self, tmp_path):
        bad_url = f"sqlite:///{tmp_path / 'missing-dir' / 'db.sqlite'}"
        db = Database(replace(sqlite_storage_config(), database_url=bad_url))

        with pytest.raises(StorageError):
            await db.connect()

        assert not db.is_connected


class TestRunStorageCall:
    """Test timeout and error translation."""

    @pytest.mark.asyncio
    async def test_timeout_raises_storage_timeout(self):
        async def _slow():
            await asyncio.sleep(1)

        with pytest.raises(StorageTimeoutError):
            await run_storage_call(_slow, "sleeping", 0.01, (sqlite3.Error,))

    @pytest.mark.asyncio
    async def test_backend_error_wrapped(self):
        async def _broken():
            raise sqlite3.OperationalError("disk I/O error")

        with pytest.raises(StorageError) as exc_info:
            await run_storage_call(_broken, "writing", 1.0, (sqlite3.Error,))

        assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        async def _bug():
            raise KeyError("oops")

        with pytest.raises(KeyError):
            await run_storage_call(_bug, "reading", 1.0, (sqlite3.Error,))


class TestSqliteTimeouts:
    """SQLite calls run off the event loop, so the storage timeout applies."""

    @pytest.fixture
    async def slow_database(self, monkeypatch):
        db = Database(replace(sqlite_storage_config(), timeout_seconds=0.05))
        await db.connect()

        def _slow_execute(query, params=None):
            time.sleep(0.5)
            return []

        monkeypatch.setattr(db._client, "execute_query", _slow_execute)
        yield db
        monkeypatch.undo()
        await db.close()

    @pytest.mark.asyncio
    async def test_slow_read_times_out(self, slow_database):
        started = time.monotonic()

        with pytest.raises(StorageTimeoutError):
            await slow_database.chunks.find_all()

        assert time.monotonic() - started < 0.4

    @pytest.mark.asyncio
    async def test_slow_write_times_out(self, slow_database):
        with pytest.raises(StorageTimeoutError):
            await slow_database.chunks.insert_chunk(make_chunk(1))

    @pytest.mark.asyncio
    async def test_event_loop_keeps_running_during_slow_call(self, slow_database):
        ticks = 0

        async def _ticker():
            nonlocal ticks
            while True:
                await asyncio.sleep(0.01)
                ticks += 1

        ticker = asyncio.create_task(_ticker())
        try:
            with pytest.raises(StorageTimeoutError):
                await slow_database.files.get_file("any")
        finally:
            ticker.cancel()

        assert ticks >= 2
