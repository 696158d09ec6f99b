"""Pipeline status vocabulary — stage ↔ pt-BR label, used by export and import."""

from enum import Enum
from typing import Optional


class ClientStatus(str, Enum):
    NOT_CONTACTED = "not_contacted"
    CONTACTED = "contacted"
    RESPONDED = "responded"
    PROPOSAL_SENT = "proposal_sent"
    CLOSED = "closed"
    REJECTED = "rejected"


# Pipeline order; export and CLI listings follow it
STATUS_LABELS = {
    ClientStatus.NOT_CONTACTED: "Não Contatado",
    ClientStatus.CONTACTED: "Contatado",
    ClientStatus.RESPONDED: "Respondeu",
    ClientStatus.PROPOSAL_SENT: "Proposta Enviada",
    ClientStatus.CLOSED: "Fechado",
    ClientStatus.REJECTED: "Recusado",
}

_LABEL_TO_STATUS = {label: status for status, label in STATUS_LABELS.items()}

# Clients that were reached at least once
CONTACTED_STATUSES = frozenset({
    ClientStatus.CONTACTED,
    ClientStatus.RESPONDED,
    ClientStatus.PROPOSAL_SENT,
    ClientStatus.CLOSED,
})


def label_of(status: ClientStatus) -> str:
    """Human label for a status. Total over ClientStatus."""
    return STATUS_LABELS[ClientStatus(status)]


def status_of(label: Optional[str]) -> Optional[ClientStatus]:
    """Status for a label, or None when the label is blank or unknown.

    The caller decides the fallback; this never guesses.
    """
    if label is None:
        return None
    return _LABEL_TO_STATUS.get(str(label).strip())
