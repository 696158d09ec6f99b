"""Client merge-import service.

Handles:
- Decoding spreadsheet rows into DecodedImportRow (all field defaults live here)
- Reconciling rows against the current clients by case-insensitive name
- Counting inserted vs updated clients in the same pass
- Committing the merged collection to the repository, one import at a time

Provenance rules: an updated client keeps its id and created_at; every other
field comes from the spreadsheet row.
"""

import asyncio
import math
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import structlog

from ifood_crm.application.services.date_parser import parse_local_date
from ifood_crm.core.clock import now as current_time
from ifood_crm.core.exceptions import ImportInProgressError, SpreadsheetDecodeError
from ifood_crm.domain.models.client import ClientRecord
from ifood_crm.domain.repositories.client_repository import ClientRepository
from ifood_crm.domain.schemas.client import DecodedImportRow, ImportResult
from ifood_crm.domain.status import ClientStatus, status_of
from ifood_crm.infrastructure.spreadsheet import read_table

logger = structlog.get_logger(__name__)

INVALID_FILE_MESSAGE = "Arquivo Excel inválido ou corrompido"

# Spreadsheet header → ClientRecord field
CLIENT_COLUMN_MAP = {
    "Nome": "name",
    "Link iFood": "ifood_link",
    "Link Google": "google_link",
    "Instagram": "instagram_link",
    "WhatsApp": "whatsapp_number",
    "Status": "status",
    "Forma de Pagamento": "payment_method",
    "Observações": "notes",
    "Valor do Projeto": "value",
    "Nível de Interesse": "interest_level",
    "Criado em": "created_at",
    "Atualizado em": "updated_at",
}

TEXT_FIELDS = ("name", "ifood_link", "google_link", "instagram_link", "whatsapp_number", "payment_method", "notes")

_INVALID_CELLS = ("#REF!", "#ERROR!", "#DIV/0!", "#N/A", "nan")

_HEADER_LOOKUP = {header.upper(): field_name for header, field_name in CLIENT_COLUMN_MAP.items()}


def _normalize_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Re-key a raw row by field name using case-insensitive header matching."""
    out: Dict[str, Any] = {}
    for header, cell in row.items():
        field_name = _HEADER_LOOKUP.get(str(header).strip().upper())
        if field_name and field_name not in out:
            out[field_name] = cell
    return out


def _clean_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if value != value:  # NaN
            return ""
        if value.is_integer():
            return str(int(value))
    s = str(value).strip()
    return "" if s in _INVALID_CELLS else s


def _parse_brazilian_number(value) -> Optional[float]:
    """Parse numbers in Brazilian format (e.g., 'R$ 1.234,56' → 1234.56)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        s = value
    else:
        s = str(value).strip()
        if not s or s in _INVALID_CELLS or s == "-":
            return None
        s = re.sub(r"[R$\s]", "", s)
        if "," in s:
            s = s.replace(".", "").replace(",", ".")
    try:
        number = float(s)
    except (ValueError, OverflowError):
        return None
    # NaN, Infinity, 1e400
    return number if math.isfinite(number) else None


def _parse_value(value) -> Optional[float]:
    amount = _parse_brazilian_number(value)
    if amount is None or amount < 0:
        return None
    return amount


def _parse_interest_level(value) -> Optional[int]:
    level = _parse_brazilian_number(value)
    if level is None or not level.is_integer() or not 0 <= level <= 5:
        return None
    return int(level)


def decode_row(row: Mapping[str, Any], index: int, now: datetime) -> DecodedImportRow:
    """Map one untyped spreadsheet row into a DecodedImportRow.

    Never fails: blank or unknown cells fall back to defaults (empty text,
    no value, status not_contacted, timestamps = now).
    """
    cells = _normalize_row(row)
    text = {name: _clean_text(cells.get(name)) for name in TEXT_FIELDS}

    created_at = parse_local_date(cells.get("created_at")) or now
    updated_at = max(parse_local_date(cells.get("updated_at")) or now, created_at)

    return DecodedImportRow(
        id=f"temp-{index}",
        **text,
        status=status_of(_clean_text(cells.get("status"))) or ClientStatus.NOT_CONTACTED,
        value=_parse_value(cells.get("value")),
        interest_level=_parse_interest_level(cells.get("interest_level")),
        created_at=created_at,
        updated_at=updated_at,
    )


@dataclass
class MergeOutcome:
    clients: List[ClientRecord]
    inserted_count: int = 0
    updated_count: int = 0
    inserted_ids: List[str] = field(default_factory=list)


def merge_rows(current: List[ClientRecord], rows: List[DecodedImportRow], now: datetime) -> MergeOutcome:
    """Reconcile decoded rows against a working copy of the current clients.

    Rows are applied in order against the working collection, so a name that
    appears twice in one sheet ends up with the values of its last row.
    Rows without a name never match and are always inserted.
    """
    merged = list(current)
    outcome = MergeOutcome(clients=merged)

    for row in rows:
        target = row.name.lower()
        idx = -1
        if target:
            idx = next((i for i, c in enumerate(merged) if c.name.lower() == target), -1)
        data = row.model_dump(exclude={"id"})

        if idx != -1:
            existing = merged[idx]
            data.update(id=existing.id, created_at=existing.created_at, updated_at=now)
            merged[idx] = ClientRecord(**data)
            outcome.updated_count += 1
        else:
            data["id"] = uuid.uuid4().hex
            merged.append(ClientRecord(**data))
            outcome.inserted_ids.append(data["id"])
            outcome.inserted_count += 1

    return outcome


def summary_message(inserted: int, updated: int) -> str:
    return (
        f"Importação concluída: {inserted} novos clientes adicionados, "
        f"{updated} clientes atualizados."
    )


def merge_table(rows: List[Dict[str, Any]], current: List[ClientRecord], now: datetime) -> ImportResult:
    """Decode and reconcile rows that were already read from a spreadsheet."""
    decoded = [decode_row(row, i, now) for i, row in enumerate(rows)]
    outcome = merge_rows(current, decoded, now)
    return ImportResult(
        success=True,
        clients=outcome.clients,
        inserted_count=outcome.inserted_count,
        updated_count=outcome.updated_count,
        message=summary_message(outcome.inserted_count, outcome.updated_count),
    )


def merge_import(
    data: bytes,
    current: List[ClientRecord],
    now: Optional[datetime] = None,
    filename: Optional[str] = None,
) -> ImportResult:
    """Merge spreadsheet bytes into a copy of current. current is never mutated."""
    try:
        rows = read_table(data, filename)
    except SpreadsheetDecodeError:
        return ImportResult(success=False, error=INVALID_FILE_MESSAGE)
    return merge_table(rows, current, now or current_time())


class ClientImporter:
    """Runs merge imports against a repository, one at a time."""

    def __init__(self, repo: ClientRepository):
        self.repo = repo
        self._running = False

    @property
    def busy(self) -> bool:
        return self._running

    def _acquire(self) -> None:
        if self._running:
            raise ImportInProgressError()
        self._running = True

    def _commit(self, result: ImportResult, filename: Optional[str]) -> ImportResult:
        if not result.success:
            logger.warning("Client import rejected", filename=filename, error=result.error)
            return result

        self.repo.replace_all(result.clients)
        logger.info(
            "Client import completed",
            filename=filename,
            inserted=result.inserted_count,
            updated=result.updated_count,
            total=len(result.clients),
        )
        return result

    def import_bytes(self, data: bytes, filename: Optional[str] = None) -> ImportResult:
        """Merge a spreadsheet into the repository and persist the result."""
        self._acquire()
        try:
            logger.info("Client import started", filename=filename, size=len(data))
            result = merge_import(data, self.repo.list(), filename=filename)
            return self._commit(result, filename)
        finally:
            self._running = False

    def import_file(self, path: str | Path) -> ImportResult:
        path = Path(path)
        return self.import_bytes(path.read_bytes(), filename=path.name)

    async def aimport_bytes(self, data: bytes, filename: Optional[str] = None) -> ImportResult:
        """Async variant: the table decode runs in a worker thread."""
        self._acquire()
        try:
            logger.info("Client import started", filename=filename, size=len(data))
            try:
                rows = await asyncio.to_thread(read_table, data, filename)
            except SpreadsheetDecodeError:
                result = ImportResult(success=False, error=INVALID_FILE_MESSAGE)
            else:
                result = merge_table(rows, self.repo.list(), current_time())
            return self._commit(result, filename)
        finally:
            self._running = False
