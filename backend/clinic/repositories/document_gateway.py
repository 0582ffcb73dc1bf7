"""SQLAlchemy implementation of the repository gateway.

Stores every collection in the ``documents`` table. Each call opens its own
session and either commits or rolls back before returning, so a gateway call
is never partially applied.
"""

import logging
from typing import Any, Callable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic.core.exceptions import NotFoundError, PersistenceError
from clinic.db.base import Document
from clinic.domain.interfaces import COLLECTIONS, IRepositoryGateway, Record

logger = logging.getLogger(__name__)

# Filter keys backed by indexed columns; other keys are matched on the payload
_COLUMN_FILTERS = {"doctorId": Document.doctor_id, "patientId": Document.patient_id}


class SqlAlchemyGateway(IRepositoryGateway):
    """Repository gateway persisting documents through SQLAlchemy."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    def _check_collection(self, collection: str) -> None:
        if collection not in COLLECTIONS:
            raise PersistenceError(f"Unknown collection '{collection}'")

    def _fail(self, operation: str, collection: str, error: SQLAlchemyError):
        logger.error(
            f"Gateway {operation} failed on {collection}",
            extra={"context": {"collection": collection, "error": str(error)}},
            exc_info=True,
        )
        return PersistenceError(f"Could not {operation} {collection} record: {error}")

    @staticmethod
    def _payload(record: Mapping[str, Any]) -> dict:
        return {key: value for key, value in record.items() if key != "id"}

    def create(self, collection: str, record: Mapping[str, Any]) -> str:
        self._check_collection(collection)
        payload = self._payload(record)
        with self.session_factory() as session:
            try:
                document = Document(
                    collection=collection,
                    doctor_id=payload.get("doctorId"),
                    patient_id=payload.get("patientId"),
                    payload=payload,
                )
                session.add(document)
                session.commit()
                document_id = document.id
            except SQLAlchemyError as e:
                session.rollback()
                raise self._fail("create", collection, e)
        logger.debug(
            f"Created {collection} record",
            extra={"context": {"collection": collection, "id": document_id}},
        )
        return document_id

    def _get(self, session: Session, collection: str, record_id: str) -> Document:
        document = session.get(Document, record_id)
        if document is None or document.collection != collection:
            raise NotFoundError(collection, record_id)
        return document

    def update(self, collection: str, record_id: str, partial: Mapping[str, Any]) -> None:
        self._check_collection(collection)
        changes = self._payload(partial)
        with self.session_factory() as session:
            try:
                document = self._get(session, collection, record_id)
                document.payload = {**(document.payload or {}), **changes}
                if "doctorId" in changes:
                    document.doctor_id = changes["doctorId"]
                if "patientId" in changes:
                    document.patient_id = changes["patientId"]
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise self._fail("update", collection, e)

    def delete(self, collection: str, record_id: str) -> None:
        self._check_collection(collection)
        with self.session_factory() as session:
            try:
                document = self._get(session, collection, record_id)
                session.delete(document)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise self._fail("delete", collection, e)

    def query(
        self, collection: str, filters: Optional[Mapping[str, Any]] = None
    ) -> List[Record]:
        self._check_collection(collection)
        filters = dict(filters or {})
        statement = select(Document).where(Document.collection == collection)
        for key in list(filters):
            if key in _COLUMN_FILTERS:
                statement = statement.where(_COLUMN_FILTERS[key] == filters.pop(key))
        if "id" in filters:
            statement = statement.where(Document.id == filters.pop("id"))

        with self.session_factory() as session:
            try:
                documents = session.scalars(statement).all()
            except SQLAlchemyError as e:
                raise self._fail("query", collection, e)
            records = [document.to_record() for document in documents]

        return [
            record
            for record in records
            if all(record.get(key) == value for key, value in filters.items())
        ]
