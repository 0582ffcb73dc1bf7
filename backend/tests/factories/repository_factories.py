"""
Gateway test factories.

``create_mock_reader`` and ``create_mock_full`` return bare Mock(spec=...)
objects for tests that script every call; ``create_mock_with_records`` backs the same
mock with an in-memory store so services can read back what they wrote.
"""

import itertools
from typing import Dict, List, Optional
from unittest.mock import Mock

from clinic.core.exceptions import NotFoundError
from clinic.domain.interfaces import (
    IGatewayReader,
    IRepositoryGateway,
    Record,
)
from clinic.repositories.mappers import to_record


def record_of(entity) -> Record:
    """Gateway record (with id) for an entity built in a test."""
    return {"id": entity.id, **to_record(entity)}


class GatewayFactory:
    """Factory for creating repository gateway mocks."""

    @staticmethod
    def create_mock_reader() -> Mock:
        """Create mock that only implements IGatewayReader operations."""
        reader = Mock(spec=IGatewayReader)
        reader.query.return_value = []
        return reader

    @staticmethod
    def create_mock_full() -> Mock:
        """Create full gateway mock implementing IRepositoryGateway."""
        gateway = Mock(spec=IRepositoryGateway)
        gateway.query.return_value = []
        gateway.create.return_value = "new-id"
        gateway.update.return_value = None
        gateway.delete.return_value = None
        return gateway

    @staticmethod
    def create_mock_with_records(
        records: Optional[Dict[str, List[Record]]] = None,
    ) -> Mock:
        """Gateway mock backed by a dict of collection -> records.

        Created ids are ``<collection>-<n>``. The store is exposed as
        ``gateway.store`` for assertions.
        """
        store: Dict[str, List[Record]] = {
            collection: [dict(r) for r in rows] for collection, rows in (records or {}).items()
        }
        counter = itertools.count(1)

        def query(collection, filters=None):
            return [
                dict(r)
                for r in store.get(collection, [])
                if all(r.get(k) == v for k, v in (filters or {}).items())
            ]

        def create(collection, record):
            new_id = f"{collection}-{next(counter)}"
            store.setdefault(collection, []).append({**record, "id": new_id})
            return new_id

        def _find(collection, record_id):
            for row in store.get(collection, []):
                if row.get("id") == record_id:
                    return row
            raise NotFoundError(collection, record_id)

        def update(collection, record_id, partial):
            _find(collection, record_id).update(partial)

        def delete(collection, record_id):
            store[collection].remove(_find(collection, record_id))

        gateway = Mock(spec=IRepositoryGateway)
        gateway.query.side_effect = query
        gateway.create.side_effect = create
        gateway.update.side_effect = update
        gateway.delete.side_effect = delete
        gateway.store = store
        return gateway
