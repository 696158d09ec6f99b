"""
Base Repository Interface.
Defines the standard contract for data access operations.
"""

from typing import TypeVar, List, Optional, Any, Protocol

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic CRUD operations over an ordered collection."""

    def get_by_id(self, id: str) -> Optional[T]:
        """Get a single entity by ID."""
        ...

    def list(self) -> List[T]:
        """List all entities in collection order."""
        ...

    def add(self, obj_in: Any) -> T:
        """Create a new entity."""
        ...

    def update(self, obj: T) -> T:
        """Replace an existing entity."""
        ...

    def delete(self, id: str) -> Optional[T]:
        """Delete an entity by ID."""
        ...

    def load(self) -> None:
        """Read the collection from durable storage."""
        ...

    def persist(self) -> None:
        """Write the whole collection to durable storage."""
        ...
