"""
Key-value store implementation of Client Repository.
"""

import uuid
from typing import List, Optional

import structlog

from ifood_crm.core.clock import now
from ifood_crm.core.exceptions import EntityNotFoundException
from ifood_crm.domain.models.client import ClientRecord
from ifood_crm.domain.repositories.client_repository import ClientRepository
from ifood_crm.domain.schemas.client import ClientCreate
from ifood_crm.domain.status import ClientStatus
from ifood_crm.infrastructure.repositories.base_repository import KeyValueRepository
from ifood_crm.infrastructure.storage import KeyValueStore

logger = structlog.get_logger(__name__)


def new_client_id() -> str:
    return uuid.uuid4().hex


class KeyValueClientRepository(KeyValueRepository[ClientRecord], ClientRepository):
    """Client repository persisted as a single JSON blob."""

    def __init__(self, store: KeyValueStore, key: str = "ifood_clients"):
        super().__init__(store, key, ClientRecord)

    def add(self, obj_in: ClientCreate) -> ClientRecord:
        """Create a client. Newest manual additions come first."""
        ts = now()
        client = ClientRecord(
            **obj_in.model_dump(),
            id=new_client_id(),
            status=ClientStatus.NOT_CONTACTED,
            created_at=ts,
            updated_at=ts,
        )
        self.insert(client, front=True)
        logger.info("Client added", client_id=client.id, name=client.name)
        return client

    def update(self, obj: ClientRecord) -> ClientRecord:
        """Full replace by id. Provenance fields always come from the stored record."""
        idx = self._index_of(obj.id)
        if idx == -1:
            raise EntityNotFoundException(details={"id": obj.id})

        current = self._items[idx]
        updated_at = obj.updated_at
        if updated_at == current.updated_at:
            updated_at = now()

        updated = obj.model_copy(update={
            "created_at": current.created_at,
            "updated_at": max(updated_at, current.created_at),
        })
        self._items[idx] = updated
        self.persist()
        return updated

    def find_by_name(self, name: str) -> Optional[ClientRecord]:
        target = (name or "").lower()
        return next((c for c in self._items if c.name.lower() == target), None)

    def replace_all(self, clients: List[ClientRecord]) -> None:
        super().replace_all(clients)
        logger.info("Client collection replaced", count=len(clients))
