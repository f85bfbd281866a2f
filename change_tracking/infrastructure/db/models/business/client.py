from typing import Optional

from sqlmodel import Field

from change_tracking.infrastructure.db.models.base import BaseModelWithTimestamp


class ClientBase(BaseModelWithTimestamp):
    """Base model for clients."""
    name: str = Field(max_length=255, index=True, description="Legal or display name of the client")
    short_name: Optional[str] = Field(default=None, max_length=50)
    domain: Optional[str] = Field(default=None, max_length=255)
    industry: Optional[str] = Field(default=None, max_length=100)
    status: str = Field(default="active", max_length=20, index=True)
    notes: Optional[str] = Field(default=None)


class Client(ClientBase, table=True):
    """Client model for database storage."""
    __tablename__ = "clients"
