"""
CLI Dependencies.
"""

from typing import Optional

from ifood_crm.config import Settings, get_settings
from ifood_crm.domain.repositories.client_repository import ClientRepository
from ifood_crm.infrastructure.repositories.client_repository import KeyValueClientRepository
from ifood_crm.infrastructure.storage import JsonFileStore


def get_client_repository(settings: Optional[Settings] = None) -> ClientRepository:
    """Get client repository instance backed by the configured store file."""
    settings = settings or get_settings()
    return KeyValueClientRepository(JsonFileStore(settings.STORE_FILE), settings.STORAGE_KEY)
