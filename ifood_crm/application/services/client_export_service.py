"""Client spreadsheet export — repository → single-sheet .xlsx backup."""

from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from ifood_crm.application.services.date_parser import format_local_date
from ifood_crm.config import get_settings
from ifood_crm.core.clock import now
from ifood_crm.domain.models.client import ClientRecord
from ifood_crm.domain.repositories.client_repository import ClientRepository
from ifood_crm.domain.status import label_of
from ifood_crm.infrastructure.spreadsheet import write_table

logger = structlog.get_logger(__name__)

# Header → column width, in sheet order. "Valor do Projeto" is read on import but never written.
EXPORT_COLUMNS = {
    "Nome": 25,
    "Link iFood": 40,
    "Link Google": 40,
    "Instagram": 30,
    "WhatsApp": 15,
    "Status": 15,
    "Forma de Pagamento": 20,
    "Observações": 50,
    "Criado em": 12,
    "Atualizado em": 12,
}


def client_to_row(client: ClientRecord) -> Dict[str, str]:
    return {
        "Nome": client.name,
        "Link iFood": client.ifood_link,
        "Link Google": client.google_link,
        "Instagram": client.instagram_link,
        "WhatsApp": client.whatsapp_number,
        "Status": label_of(client.status),
        "Forma de Pagamento": client.payment_method or "",
        "Observações": client.notes,
        "Criado em": format_local_date(client.created_at),
        "Atualizado em": format_local_date(client.updated_at),
    }


def build_export_rows(clients: List[ClientRecord]) -> List[Dict[str, str]]:
    return [client_to_row(c) for c in clients]


def export_filename(today: Optional[date] = None) -> str:
    settings = get_settings()
    today = today or now().date()
    return f"{settings.EXPORT_FILE_PREFIX}-{today.isoformat()}.xlsx"


def export_workbook(clients: List[ClientRecord]) -> bytes:
    return write_table(
        build_export_rows(clients),
        columns=list(EXPORT_COLUMNS),
        column_widths=list(EXPORT_COLUMNS.values()),
        sheet_name=get_settings().EXPORT_SHEET_NAME,
    )


def export_clients(repo: ClientRepository, output_dir: Optional[str | Path] = None) -> Path:
    """Write all clients to <output_dir>/clientes-ifood-<date>.xlsx and return the path."""
    settings = get_settings()
    out = Path(output_dir or settings.EXPORT_DIR)
    out.mkdir(parents=True, exist_ok=True)

    clients = repo.list()
    path = out / export_filename()
    path.write_bytes(export_workbook(clients))

    logger.info("Clients exported", path=str(path), count=len(clients))
    return path
