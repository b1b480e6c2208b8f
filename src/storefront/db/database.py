# local document store on top of aiosqlite, one JSON body per (collection, id)
import asyncio
import json
import os.path
import random
import sqlite3
from contextlib import asynccontextmanager
from sqlite3 import Row
from typing import Any, Dict, List, Optional

import aiosqlite

from storefront.db.port import Document, SortOrder
from storefront.utils.errors import NotFoundError, TransportError
from storefront.utils.logger import get_logger

_logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id         TEXT NOT NULL,
    body       TEXT NOT NULL,
    PRIMARY KEY (collection, id)
);
"""


def _json_path(field: str) -> str:
    return f'$."{field}"'


class SqliteDocumentStore:
    """DocumentStore backed by a single sqlite file."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def _init_db(self, conn: aiosqlite.Connection) -> None:
        _logger.info(f"Initializing document store at {self.db_path}...")
        await conn.executescript(SCHEMA)
        await conn.commit()

    @asynccontextmanager
    async def connect(self) -> aiosqlite.Connection:
        """Async context manager yielding a connection to an initialized store.

        sqlite failures surface as TransportError so callers handle the local
        file the same way as a remote API.
        """
        if not self._initialized:
            folder = os.path.dirname(self.db_path)
            if folder:
                os.makedirs(folder, exist_ok=True)
        try:
            conn = await aiosqlite.connect(self.db_path)
        except sqlite3.Error as e:
            raise TransportError(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = Row
        try:
            if not self._initialized:
                async with self._init_lock:
                    if not self._initialized:
                        await self._init_db(conn)
                        self._initialized = True
            yield conn
        except sqlite3.Error as e:
            _logger.error(f"sqlite error on {self.db_path}: {e}")
            raise TransportError(f"sqlite error: {e}") from e
        finally:
            await conn.close()

    async def _exists(self, conn: aiosqlite.Connection, collection: str, doc_id: str) -> bool:
        cur = await conn.execute(
            "SELECT 1 FROM documents WHERE collection = ? AND id = ?;",
            (collection, doc_id),
        )
        row = await cur.fetchone()
        await cur.close()
        return row is not None

    async def _generate_id(self, conn: aiosqlite.Connection, collection: str) -> str:
        """Pick a random id not yet used in the collection."""
        while True:
            doc_id = str(random.randint(100000, 999999))
            if not await self._exists(conn, collection, doc_id):
                return doc_id

    async def create(self, collection: str, doc: Document) -> Document:
        async with self.connect() as conn:
            doc_id = doc.get("id")
            if doc_id is None:
                doc_id = await self._generate_id(conn, collection)
            body = {**doc, "id": str(doc_id)}
            await conn.execute(
                "INSERT INTO documents(collection, id, body) VALUES (?, ?, ?);",
                (collection, body["id"], json.dumps(body)),
            )
            await conn.commit()
        return body

    async def get(self, collection: str, doc_id: str) -> Document:
        async with self.connect() as conn:
            cur = await conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND id = ?;",
                (collection, str(doc_id)),
            )
            row = await cur.fetchone()
            await cur.close()
        if not row:
            raise NotFoundError(collection, doc_id)
        return json.loads(row[0])

    async def update(self, collection: str, doc_id: str, doc: Document) -> Document:
        """Whole-record overwrite; the stored id always wins over the body's."""
        body = {**doc, "id": str(doc_id)}
        async with self.connect() as conn:
            res = await conn.execute(
                "UPDATE documents SET body = ? WHERE collection = ? AND id = ?;",
                (json.dumps(body), collection, str(doc_id)),
            )
            await conn.commit()
            if res.rowcount == 0:
                raise NotFoundError(collection, doc_id)
        return body

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self.connect() as conn:
            res = await conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?;",
                (collection, str(doc_id)),
            )
            await conn.commit()
            if res.rowcount == 0:
                raise NotFoundError(collection, doc_id)

    async def list(
        self,
        collection: str,
        where: Optional[Dict[str, Any]] = None,
        sort: Optional[str] = None,
        order: SortOrder = "asc",
    ) -> List[Document]:
        clauses = ["collection = ?"]
        params: List[Any] = [collection]
        for field, value in (where or {}).items():
            clauses.append("json_extract(body, ?) = ?")
            params.extend([_json_path(field), value])
        sql = f"SELECT body FROM documents WHERE {' AND '.join(clauses)}"
        if sort:
            direction = "DESC" if order == "desc" else "ASC"
            sql += f" ORDER BY json_extract(body, ?) {direction}, rowid"
            params.append(_json_path(sort))
        else:
            sql += " ORDER BY rowid"
        async with self.connect() as conn:
            cur = await conn.execute(sql + ";", tuple(params))
            rows = await cur.fetchall()
            await cur.close()
        return [json.loads(row[0]) for row in rows]

    async def close(self) -> None:
        # connections are opened per call
        return None
