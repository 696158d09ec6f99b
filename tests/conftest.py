from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Sequence

import pytest
import pytz

from ifood_crm.config import get_settings
from ifood_crm.domain.models.client import ClientRecord
from ifood_crm.domain.status import ClientStatus
from ifood_crm.infrastructure.repositories.client_repository import KeyValueClientRepository
from ifood_crm.infrastructure.spreadsheet import write_table
from ifood_crm.infrastructure.storage import MemoryStore

TZ = pytz.timezone("America/Sao_Paulo")


@pytest.fixture(autouse=True)
def settings_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("TIMEZONE", "America/Sao_Paulo")
    monkeypatch.setenv("STORE_FILE", str(tmp_path / "store.json"))
    monkeypatch.setenv("EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.setenv("ENVIRONMENT", "test")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def repo(store: MemoryStore) -> KeyValueClientRepository:
    return KeyValueClientRepository(store)


def local(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return TZ.localize(datetime(year, month, day, hour))


def make_client(name: str, client_id: str | None = None, **overrides) -> ClientRecord:
    data: Dict[str, Any] = {
        "id": client_id or f"id-{name.lower().replace(' ', '-')}",
        "name": name,
        "status": ClientStatus.NOT_CONTACTED,
        "created_at": local(2024, 1, 1),
        "updated_at": local(2024, 1, 1),
    }
    data.update(overrides)
    return ClientRecord(**data)


@pytest.fixture()
def xlsx_bytes() -> Callable[..., bytes]:
    """Build a real workbook from header-keyed rows."""
    def _build(rows: List[Dict[str, Any]], columns: Sequence[str] | None = None) -> bytes:
        if columns is None:
            columns = []
            for row in rows:
                for key in row:
                    if key not in columns:
                        columns.append(key)
        return write_table(rows, columns=columns, sheet_name="Clientes")
    return _build
