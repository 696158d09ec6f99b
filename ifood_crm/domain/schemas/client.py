"""Pydantic schemas for Client domain."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional

from ifood_crm.domain.models.client import ClientRecord
from ifood_crm.domain.status import ClientStatus


class ClientBase(BaseModel):
    name: str
    ifood_link: str = ""
    google_link: str = ""
    instagram_link: str = ""
    whatsapp_number: str = ""
    notes: str = ""
    payment_method: Optional[str] = None
    value: Optional[float] = Field(default=None, ge=0)
    interest_level: Optional[int] = Field(default=None, ge=0, le=5)


class ClientCreate(ClientBase):
    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v


class DecodedImportRow(ClientRecord):
    """One spreadsheet row after decoding. The id is a placeholder."""


class ClientFilter(BaseModel):
    search: Optional[str] = None
    status: Optional[ClientStatus] = None


class ClientStats(BaseModel):
    total_clients: int
    contacted: int
    closed: int
    total_revenue: float


class ImportResult(BaseModel):
    success: bool
    clients: list[ClientRecord] = []
    inserted_count: int = 0
    updated_count: int = 0
    message: Optional[str] = None
    error: Optional[str] = None
