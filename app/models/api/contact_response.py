# app/models/api/contact_response.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.domain.contact_domain import Contact, Label


class LabelResponse(BaseModel):
    id: str
    name: str
    color: str

    @classmethod
    def from_domain(cls, label: Label) -> "LabelResponse":
        return cls(id=label.id, name=label.name, color=label.color)


class ContactResponse(BaseModel):
    """Contact as returned by the /api/users endpoints (camelCase dates)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    role: str | None = None
    status: str
    avatar: str | None = None
    last_contact: str | None = Field(None, serialization_alias="lastContact")
    notes: str | None = None
    created_at: datetime | None = Field(None, serialization_alias="createdAt")
    updated_at: datetime | None = Field(None, serialization_alias="updatedAt")
    labels: list[LabelResponse] = []

    @classmethod
    def from_domain(cls, contact: Contact) -> "ContactResponse":
        return cls(
            id=contact.id,
            name=contact.name,
            email=contact.email,
            phone=contact.phone,
            company=contact.company,
            role=contact.role,
            status=contact.status,
            avatar=contact.avatar,
            last_contact=contact.last_contact,
            notes=contact.notes,
            created_at=contact.created_at,
            updated_at=contact.updated_at,
            labels=[LabelResponse.from_domain(label) for label in contact.labels],
        )


class DeleteContactResponse(BaseModel):
    message: str


class FilterOptionsResponse(BaseModel):
    """Response for GET /api/filters"""

    companies: list[str]
    roles: list[str]


class ApiInfoResponse(BaseModel):
    """Response for GET /"""

    message: str
    version: str
    timestamp: datetime
