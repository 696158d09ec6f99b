"""Client domain model — one prospect tracked through the outreach pipeline."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ifood_crm.domain.status import ClientStatus


class ClientRecord(BaseModel):
    id: str
    name: str

    # Contact links
    ifood_link: str = ""
    google_link: str = ""
    instagram_link: str = ""
    whatsapp_number: str = ""

    # Pipeline
    status: ClientStatus = ClientStatus.NOT_CONTACTED
    notes: str = ""
    payment_method: Optional[str] = None
    value: Optional[float] = Field(default=None, ge=0)
    interest_level: Optional[int] = Field(default=None, ge=0, le=5)

    # Metadata
    created_at: datetime
    updated_at: datetime

    def __repr__(self):
        return f"<Client {self.id} - {self.name}>"
