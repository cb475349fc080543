"""File bucket: raw upload storage split into ordered pieces.

Uploads are written through ``open_upload_stream()``, an async context
manager. Leaving the block normally confirms the upload by writing its file
record; leaving it with an exception deletes every piece already written, so
a failed upload never leaves orphaned bytes behind.
"""

import base64
import hashlib
import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional

from azure.core.exceptions import AzureError

from pdf_rag.clients.cosmosdb_client import CosmosDBClient
from pdf_rag.clients.sqlite_client import SqliteClient
from pdf_rag.exceptions import StorageError
from pdf_rag.models.stored_file import StoredFile
from pdf_rag.services.storage_call import run_storage_call

logger = logging.getLogger(__name__)

DEFAULT_PIECE_SIZE = 255 * 1024


class UploadStream:
    """Write handle for one upload. Obtain it from ``FileBucket.open_upload_stream``."""

    def __init__(self, bucket: "FileBucket", file_id: str, filename: str, piece_size: int):
        self._bucket = bucket
        self._file_id = file_id
        self._filename = filename
        self._piece_size = piece_size
        self._buffer = bytearray()
        self._md5 = hashlib.md5()
        self._length = 0
        self._pieces_written = 0
        self._stored_file: Optional[StoredFile] = None

    @property
    def file_id(self) -> str:
        return self._file_id

    @property
    def stored_file(self) -> Optional[StoredFile]:
        """The confirmed file record, set once the stream completes."""
        return self._stored_file

    async def write(self, data: bytes) -> None:
        if self._stored_file is not None:
            raise StorageError(f"Upload stream for file {self._file_id} is already closed")

        self._buffer.extend(data)
        self._md5.update(data)
        self._length += len(data)

        while len(self._buffer) >= self._piece_size:
            await self._flush_piece(bytes(self._buffer[: self._piece_size]))
            del self._buffer[: self._piece_size]

    async def _flush_piece(self, piece: bytes) -> None:
        await self._bucket._store_piece(self._file_id, self._pieces_written, piece)
        self._pieces_written += 1

    async def _complete(self) -> StoredFile:
        if self._buffer:
            await self._flush_piece(bytes(self._buffer))
            self._buffer.clear()

        stored_file = StoredFile(
            file_id=self._file_id,
            filename=self._filename,
            length=self._length,
            piece_size=self._piece_size,
            md5=self._md5.hexdigest(),
            upload_date=datetime.now(timezone.utc),
        )
        await self._bucket._store_file(stored_file)
        self._stored_file = stored_file
        logger.info(
            f"Stored upload {self._filename} as {self._file_id} "
            f"({self._length} bytes, {self._pieces_written} pieces)"
        )
        return stored_file

    async def _abort(self) -> None:
        if self._pieces_written == 0:
            return
        try:
            await self._bucket._remove_pieces(self._file_id)
        except StorageError as e:
            logger.error(f"Failed to clean up pieces of aborted upload {self._file_id}: {e}")


class FileBucket(ABC):
    """Contract shared by all file bucket backends."""

    _backend_errors: tuple = ()

    def __init__(self, piece_size: int = DEFAULT_PIECE_SIZE, timeout_seconds: float = 30.0):
        if piece_size < 1:
            raise ValueError("piece_size must be positive")
        self._piece_size = piece_size
        self._timeout_seconds = timeout_seconds

    @asynccontextmanager
    async def open_upload_stream(self, filename: str) -> AsyncIterator[UploadStream]:
        """
        Open a scoped upload.

        Args:
            filename: Original filename recorded with the upload.

        Yields:
            UploadStream whose ``file_id`` is assigned up front.

        Raises:
            StorageError: If any piece or the file record cannot be written.
        """
        stream = UploadStream(self, uuid.uuid4().hex, filename, self._piece_size)
        try:
            yield stream
            await stream._complete()
        except Exception:
            await stream._abort()
            raise

    async def download(self, file_id: str) -> bytes:
        """
        Read a confirmed upload back.

        Raises:
            StorageError: If the file is unknown, incomplete or corrupted.
        """
        stored_file = await self.get_file(file_id)
        if stored_file is None:
            raise StorageError(f"File {file_id} not found")

        data = b"".join(await self._load_pieces(file_id))
        if len(data) != stored_file.length:
            raise StorageError(
                f"File {file_id} is incomplete: read {len(data)} of {stored_file.length} bytes"
            )
        if hashlib.md5(data).hexdigest() != stored_file.md5:
            raise StorageError(f"File {file_id} failed its checksum")
        return data

    async def _call(self, operation, action: str):
        return await run_storage_call(
            operation, action, self._timeout_seconds, self._backend_errors
        )

    @abstractmethod
    async def get_file(self, file_id: str) -> Optional[StoredFile]:
        """Return the file record, or None if no confirmed upload exists."""

    @abstractmethod
    async def _store_piece(self, file_id: str, n: int, data: bytes) -> None: ...

    @abstractmethod
    async def _store_file(self, stored_file: StoredFile) -> None: ...

    @abstractmethod
    async def _load_pieces(self, file_id: str) -> List[bytes]: ...

    @abstractmethod
    async def _remove_pieces(self, file_id: str) -> None: ...


CREATE_FILES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS upload_files (
    file_id TEXT PRIMARY KEY,
    filename TEXT NOT NULL,
    length INTEGER NOT NULL,
    piece_size INTEGER NOT NULL,
    md5 TEXT NOT NULL,
    upload_date TEXT NOT NULL
)
"""

CREATE_PIECES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS upload_pieces (
    file_id TEXT NOT NULL,
    n INTEGER NOT NULL,
    data BLOB NOT NULL,
    PRIMARY KEY (file_id, n)
)
"""


class SqliteFileBucket(FileBucket):
    """File bucket backed by two SQLite tables (file records and pieces)."""

    _backend_errors = (sqlite3.Error,)

    def __init__(
        self,
        sqlite_client: SqliteClient,
        piece_size: int = DEFAULT_PIECE_SIZE,
        timeout_seconds: float = 30.0,
    ):
        super().__init__(piece_size, timeout_seconds)
        self._sqlite_client = sqlite_client

    def ensure_schema(self) -> None:
        """Create the upload tables if they don't exist."""
        self._sqlite_client.execute_query(CREATE_FILES_TABLE_SQL)
        self._sqlite_client.execute_query(CREATE_PIECES_TABLE_SQL)
        logger.debug("Upload tables initialized")

    async def get_file(self, file_id: str) -> Optional[StoredFile]:
        async def _select():
            return await self._sqlite_client.execute_query_async(
                "SELECT filename, length, piece_size, md5, upload_date "
                "FROM upload_files WHERE file_id = ?",
                (file_id,),
            )

        rows = await self._call(_select, f"reading file record {file_id}")
        if not rows:
            return None

        filename, length, piece_size, md5, upload_date = rows[0]
        return StoredFile(
            file_id=file_id,
            filename=filename,
            length=length,
            piece_size=piece_size,
            md5=md5,
            upload_date=datetime.fromisoformat(upload_date),
        )

    async def _store_piece(self, file_id: str, n: int, data: bytes) -> None:
        async def _insert():
            await self._sqlite_client.execute_query_async(
                "INSERT INTO upload_pieces (file_id, n, data) VALUES (?, ?, ?)",
                (file_id, n, data),
            )

        await self._call(_insert, f"writing piece {n} of file {file_id}")

    async def _store_file(self, stored_file: StoredFile) -> None:
        async def _insert():
            await self._sqlite_client.execute_query_async(
                "INSERT INTO upload_files (file_id, filename, length, piece_size, md5, upload_date) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    stored_file.file_id,
                    stored_file.filename,
                    stored_file.length,
                    stored_file.piece_size,
                    stored_file.md5,
                    stored_file.upload_date.isoformat(),
                ),
            )

        await self._call(_insert, f"writing file record {stored_file.file_id}")

    async def _load_pieces(self, file_id: str) -> List[bytes]:
        async def _select():
            return await self._sqlite_client.execute_query_async(
                "SELECT data FROM upload_pieces WHERE file_id = ? ORDER BY n",
                (file_id,),
            )

        rows = await self._call(_select, f"reading pieces of file {file_id}")
        return [bytes(data) for (data,) in rows]

    async def _remove_pieces(self, file_id: str) -> None:
        async def _delete():
            await self._sqlite_client.execute_query_async(
                "DELETE FROM upload_pieces WHERE file_id = ?", (file_id,)
            )

        await self._call(_delete, f"deleting pieces of file {file_id}")


class CosmosFileBucket(FileBucket):
    """File bucket backed by one Cosmos DB container partitioned by /file_id.

    The file record and its pieces share a partition; pieces carry their
    bytes base64-encoded.
    """

    PARTITION_KEY_PATH = "/file_id"

    _backend_errors = (AzureError,)

    def __init__(
        self,
        cosmos_client: CosmosDBClient,
        container_name: str,
        piece_size: int = DEFAULT_PIECE_SIZE,
        timeout_seconds: float = 30.0,
    ):
        super().__init__(piece_size, timeout_seconds)
        self._cosmos_client = cosmos_client
        self._container_name = container_name

    async def get_file(self, file_id: str) -> Optional[StoredFile]:
        items = await self._call(
            lambda: self._cosmos_client.query_items(
                self._container_name,
                "SELECT * FROM c WHERE c.file_id = @file_id AND c.type = 'file'",
                parameters=[{"name": "@file_id", "value": file_id}],
                partition_key=file_id,
            ),
            f"reading file record {file_id}",
        )
        if not items:
            return None

        item = items[0]
        return StoredFile(
            file_id=file_id,
            filename=item["filename"],
            length=item["length"],
            piece_size=item["piece_size"],
            md5=item["md5"],
            upload_date=datetime.fromisoformat(item["upload_date"]),
        )

    async def _store_piece(self, file_id: str, n: int, data: bytes) -> None:
        item = {
            "id": f"{file_id}-{n}",
            "file_id": file_id,
            "type": "piece",
            "n": n,
            "data": base64.b64encode(data).decode("ascii"),
        }
        await self._call(
            lambda: self._cosmos_client.upsert_item(self._container_name, item),
            f"writing piece {n} of file {file_id}",
        )

    async def _store_file(self, stored_file: StoredFile) -> None:
        item = {
            "id": stored_file.file_id,
            "file_id": stored_file.file_id,
            "type": "file",
            "filename": stored_file.filename,
            "length": stored_file.length,
            "piece_size": stored_file.piece_size,
            "md5": stored_file.md5,
            "upload_date": stored_file.upload_date.isoformat(),
        }
        await self._call(
            lambda: self._cosmos_client.upsert_item(self._container_name, item),
            f"writing file record {stored_file.file_id}",
        )

    async def _piece_items(self, file_id: str) -> List[dict]:
        return await self._call(
            lambda: self._cosmos_client.query_items(
                self._container_name,
                "SELECT c.id, c.n, c.data FROM c WHERE c.file_id = @file_id AND c.type = 'piece'",
                parameters=[{"name": "@file_id", "value": file_id}],
                partition_key=file_id,
            ),
            f"reading pieces of file {file_id}",
        )

    async def _load_pieces(self, file_id: str) -> List[bytes]:
        items = sorted(await self._piece_items(file_id), key=lambda item: item["n"])
        return [base64.b64decode(item["data"]) for item in items]

    async def _remove_pieces(self, file_id: str) -> None:
        for item in await self._piece_items(file_id):
            await self._call(
                lambda: self._cosmos_client.delete_item(
                    self._container_name, item["id"], partition_key=file_id
                ),
                f"deleting piece {item['n']} of file {file_id}",
            )
