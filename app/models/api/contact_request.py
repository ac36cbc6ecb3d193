# app/models/api/contact_request.py
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.models.domain.contact_domain import ContactStatus, LabelColor


class ContactCreateRequest(BaseModel):
    """Request body for POST /api/users."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    phone: str | None = None
    company: str | None = None
    role: str | None = None
    status: ContactStatus = ContactStatus.ACTIVE
    avatar: str | None = None
    last_contact: str | None = Field(
        None, validation_alias=AliasChoices("lastContact", "last_contact")
    )
    notes: str | None = None
    labels: list[str] = Field(default_factory=list, description="Label ids to attach")

    @field_validator("name", "email")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def _email_shape(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("must be an email address")
        return value

    def contact_fields(self) -> dict[str, Any]:
        """Column values for the contacts table (everything except labels)."""
        fields = self.model_dump(exclude={"labels"})
        fields["status"] = self.status.value
        return fields


class ContactUpdateRequest(ContactCreateRequest):
    """
    Request body for PUT /api/users/{id}.

    Full replacement: omitted optional fields are cleared and an omitted
    labels list removes every label from the contact.
    """


class LabelCreateRequest(BaseModel):
    """Request body for POST /api/labels."""

    name: str = Field(..., min_length=1, max_length=50)
    color: LabelColor = LabelColor.BLUE

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value
