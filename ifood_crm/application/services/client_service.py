"""Client service — business logic for client edits, search and stats."""

import re
from typing import List, Optional

from pydantic import ValidationError

from ifood_crm.core.clock import now
from ifood_crm.core.exceptions import BusinessRuleViolationException, EntityNotFoundException
from ifood_crm.domain.models.client import ClientRecord
from ifood_crm.domain.repositories.client_repository import ClientRepository
from ifood_crm.domain.schemas.client import ClientCreate, ClientFilter, ClientStats
from ifood_crm.domain.status import CONTACTED_STATUSES, ClientStatus

# Suggested options; any free text is accepted
PAYMENT_METHODS = [
    "PIX",
    "Cartão de Crédito",
    "Cartão de Débito",
    "Dinheiro",
    "Transferência Bancária",
    "Boleto",
]

INTEREST_LABELS = {
    1: "Baixo interesse",
    2: "Interesse limitado",
    3: "Interesse moderado",
    4: "Alto interesse",
    5: "Interesse muito alto",
}


def _get_or_raise(repo: ClientRepository, client_id: str) -> ClientRecord:
    client = repo.get_by_id(client_id)
    if client is None:
        raise EntityNotFoundException(details={"id": client_id})
    return client


def _touch(repo: ClientRepository, client: ClientRecord, **changes) -> ClientRecord:
    return repo.update(client.model_copy(update={**changes, "updated_at": now()}))


def add_client(repo: ClientRepository, **data) -> ClientRecord:
    """Create a client from keyword fields. The name is required."""
    try:
        payload = ClientCreate(**data)
    except ValidationError as e:
        raise BusinessRuleViolationException(
            "Dados do cliente inválidos",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e
    return repo.add(payload)


def update_client(repo: ClientRepository, client: ClientRecord) -> ClientRecord:
    """Save an edited client. updated_at is refreshed here."""
    if not client.name.strip():
        raise BusinessRuleViolationException("O nome do cliente é obrigatório")
    _get_or_raise(repo, client.id)
    return _touch(repo, client)


def edit_client(repo: ClientRepository, client_id: str, **changes) -> ClientRecord:
    """Apply edited form fields to a saved client. None means unchanged."""
    client = _get_or_raise(repo, client_id)
    changes = {k: v for k, v in changes.items() if v is not None}
    if "name" in changes:
        changes["name"] = changes["name"].strip()
    try:
        edited = ClientRecord.model_validate({**client.model_dump(), **changes})
    except ValidationError as e:
        raise BusinessRuleViolationException(
            "Dados do cliente inválidos",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e
    return update_client(repo, edited)


def change_status(repo: ClientRepository, client_id: str, status: ClientStatus) -> ClientRecord:
    return _touch(repo, _get_or_raise(repo, client_id), status=ClientStatus(status))


def save_notes(repo: ClientRepository, client_id: str, notes: str) -> ClientRecord:
    return _touch(repo, _get_or_raise(repo, client_id), notes=notes)


def save_payment_method(repo: ClientRepository, client_id: str, method: str) -> ClientRecord:
    return _touch(repo, _get_or_raise(repo, client_id), payment_method=method.strip() or None)


def set_interest_level(repo: ClientRepository, client_id: str, level: int) -> ClientRecord:
    if not 0 <= level <= 5:
        raise BusinessRuleViolationException(
            "Nível de interesse deve estar entre 0 e 5", details={"level": level}
        )
    return _touch(repo, _get_or_raise(repo, client_id), interest_level=level)


def delete_client(repo: ClientRepository, client_id: str) -> ClientRecord:
    deleted = repo.delete(client_id)
    if deleted is None:
        raise EntityNotFoundException(details={"id": client_id})
    return deleted


def search_clients(repo: ClientRepository, filters: ClientFilter) -> List[ClientRecord]:
    """Name substring (case-insensitive) and optional status."""
    term = (filters.search or "").lower()
    return [
        c for c in repo.list()
        if term in c.name.lower()
        and (filters.status is None or c.status == filters.status)
    ]


def get_client_stats(repo: ClientRepository) -> ClientStats:
    clients = repo.list()
    closed = [c for c in clients if c.status == ClientStatus.CLOSED]
    return ClientStats(
        total_clients=len(clients),
        contacted=sum(1 for c in clients if c.status in CONTACTED_STATUSES),
        closed=len(closed),
        total_revenue=sum(c.value or 0 for c in closed),
    )


def interest_level_label(level: Optional[int]) -> str:
    return INTEREST_LABELS.get(level or 0, "Sem avaliação")


def whatsapp_url(number: Optional[str]) -> Optional[str]:
    """wa.me link for a Brazilian number; the 55 country code is added when missing."""
    digits = re.sub(r"\D", "", number or "")
    if not digits:
        return None
    if not digits.startswith("55"):
        digits = f"55{digits}"
    return f"https://wa.me/{digits}"
