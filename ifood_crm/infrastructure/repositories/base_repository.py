"""
Key-value store implementation of the Base Repository.
The whole collection is serialized as one JSON blob under a fixed key.
"""

from typing import Generic, List, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from ifood_crm.infrastructure.storage import KeyValueStore

ModelType = TypeVar("ModelType", bound=BaseModel)

logger = structlog.get_logger(__name__)


class KeyValueRepository(Generic[ModelType]):
    """Ordered in-memory collection with write-through persistence."""

    def __init__(self, store: KeyValueStore, key: str, model: Type[ModelType]):
        self.store = store
        self.key = key
        self.model = model
        self._adapter = TypeAdapter(List[model])
        self._items: List[ModelType] = []
        self.load()

    def load(self) -> None:
        """Read the collection. Missing or corrupt blobs start an empty collection."""
        try:
            blob = self.store.get(self.key)
        except (OSError, ValueError) as e:
            logger.warning("Could not read store, starting empty", key=self.key, error=str(e))
            self._items = []
            return

        if not blob:
            self._items = []
            return

        try:
            self._items = self._adapter.validate_json(blob)
        except ValidationError as e:
            logger.warning(
                "Stored collection is corrupt, starting empty",
                key=self.key,
                errors=e.error_count(),
            )
            self._items = []
            return

        logger.info("Collection loaded", key=self.key, count=len(self._items))

    def persist(self) -> None:
        self.store.set(self.key, self._adapter.dump_json(self._items).decode("utf-8"))

    def get_by_id(self, id: str) -> Optional[ModelType]:
        return next((obj for obj in self._items if obj.id == id), None)

    def list(self) -> List[ModelType]:
        return list(self._items)

    def _index_of(self, id: str) -> int:
        for i, obj in enumerate(self._items):
            if obj.id == id:
                return i
        return -1

    def insert(self, obj: ModelType, front: bool = False) -> ModelType:
        if front:
            self._items.insert(0, obj)
        else:
            self._items.append(obj)
        self.persist()
        return obj

    def delete(self, id: str) -> Optional[ModelType]:
        idx = self._index_of(id)
        if idx == -1:
            return None
        obj = self._items.pop(idx)
        self.persist()
        return obj

    def replace_all(self, items: List[ModelType]) -> None:
        self._items = list(items)
        self.persist()

    def __len__(self) -> int:
        return len(self._items)
