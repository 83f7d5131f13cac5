# farmlog/repository.py
"""
Document repository over a single SQLAlchemy table.

Each collection is a set of JSON documents with generated string ids. The
interface is small on purpose: equality query on one field, fetch by id,
insert, field update, delete, and a server timestamp marker that is resolved
to the write time inside the repository.

Sessions are blocking, so every call runs in the threadpool and the event
loop stays free while a query or write is in flight.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from starlette.concurrency import run_in_threadpool

from .errors import DocumentNotFound
from .models import Document

logger = logging.getLogger(__name__)


class _ServerTimestamp:
    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def _resolve(data: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    return {k: (now.isoformat() if v is SERVER_TIMESTAMP else v) for k, v in data.items()}


class DocumentRepository:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    @staticmethod
    def server_timestamp():
        return SERVER_TIMESTAMP

    async def query(self, collection: str, field: Optional[str] = None, value: Optional[str] = None) -> List[Dict[str, Any]]:
        """Documents of a collection, optionally where ``data[field] == value``.

        ``value`` is compared as a string (ids). Every returned dict carries
        its generated ``id``.
        """
        return await run_in_threadpool(self._query, collection, field, value)

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return await run_in_threadpool(self._get, collection, doc_id)

    async def insert(self, collection: str, data: Dict[str, Any]) -> str:
        return await run_in_threadpool(self._insert, collection, data)

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Set the given fields on an existing document; keys not passed are kept."""
        await run_in_threadpool(self._update, collection, doc_id, fields)

    async def delete(self, collection: str, doc_id: str) -> None:
        await run_in_threadpool(self._delete, collection, doc_id)

    def _query(self, collection, field, value):
        stmt = select(Document).where(Document.collection == collection)
        if field is not None:
            stmt = stmt.where(Document.data[field].as_string() == value)
        db = self.session_factory()
        try:
            rows = db.scalars(stmt).all()
            return [{"id": row.id, **row.data} for row in rows]
        finally:
            db.close()

    def _get(self, collection, doc_id):
        db = self.session_factory()
        try:
            row = db.get(Document, doc_id)
            if row is None or row.collection != collection:
                return None
            return {"id": row.id, **row.data}
        finally:
            db.close()

    def _insert(self, collection, data):
        doc_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        row = Document(
            id=doc_id,
            collection=collection,
            data=_resolve(data, now),
            created_at=now,
            updated_at=now,
        )
        db = self.session_factory()
        try:
            db.add(row)
            db.commit()
        finally:
            db.close()
        logger.debug("inserted %s/%s", collection, doc_id)
        return doc_id

    def _update(self, collection, doc_id, fields):
        now = datetime.now(timezone.utc)
        db = self.session_factory()
        try:
            row = db.get(Document, doc_id)
            if row is None or row.collection != collection:
                raise DocumentNotFound(collection, doc_id)
            # reassigned, not mutated in place, so the JSON column is flagged dirty
            row.data = {**row.data, **_resolve(fields, now)}
            row.updated_at = now
            db.commit()
        finally:
            db.close()
        logger.debug("updated %s/%s", collection, doc_id)

    def _delete(self, collection, doc_id):
        db = self.session_factory()
        try:
            row = db.get(Document, doc_id)
            if row is None or row.collection != collection:
                raise DocumentNotFound(collection, doc_id)
            db.delete(row)
            db.commit()
        finally:
            db.close()
        logger.debug("deleted %s/%s", collection, doc_id)
