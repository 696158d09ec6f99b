"""
Client Repository Interface.
Defines specific data access operations for Clients.
"""

from typing import List, Optional

from ifood_crm.domain.repositories.base import BaseRepository
from ifood_crm.domain.models.client import ClientRecord


class ClientRepository(BaseRepository[ClientRecord]):
    """Interface for Client-specific operations."""

    def find_by_name(self, name: str) -> Optional[ClientRecord]:
        """First client whose name matches case-insensitively."""
        ...

    def replace_all(self, clients: List[ClientRecord]) -> None:
        """Swap the whole collection, e.g. after a merge import."""
        ...
