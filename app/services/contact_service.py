"""
Contact service.
Handles the contact CRUD surface and label association replacement.

Service layer returns domain models and raises ContactServiceError
subclasses for expected outcomes (missing contact, duplicate email, unknown
label). Anything else is a DatabaseError or an unexpected exception and is
left for the API layer's generic failure handling.
"""

import uuid
from typing import Any

from app.db.helpers import (
    ForeignKeyViolationError,
    UniqueViolationError,
    with_db_retry,
)
from app.db.pool import db_pool
from app.infrastructure.observability.logging import get_logger
from app.models.domain.contact_domain import Contact, FilterCriteria
from app.repositories.contact_repository import ContactRepository

logger = get_logger(__name__)

EMAIL_UNIQUE_CONSTRAINT = "uq_contacts_email"


class ContactServiceError(Exception):
    """Base class for expected contact service outcomes."""


class ContactNotFoundError(ContactServiceError):
    def __init__(self, contact_id: str):
        super().__init__(f"User not found: {contact_id}")
        self.contact_id = contact_id


class DuplicateEmailError(ContactServiceError):
    def __init__(self, email: str | None):
        super().__init__(f"A user with email {email} already exists")
        self.email = email


class UnknownLabelError(ContactServiceError):
    def __init__(self, label_ids: list[str]):
        super().__init__(f"Unknown label id in {label_ids}")
        self.label_ids = label_ids


def unique_label_ids(label_ids: list[str] | None) -> list[str]:
    """Collapse repeated ids, first occurrence wins."""
    return list(dict.fromkeys(label_ids or []))


def _translate_write_error(
    error: Exception, fields: dict[str, Any], label_ids: list[str]
) -> Exception:
    if isinstance(error, UniqueViolationError) and error.constraint in (
        EMAIL_UNIQUE_CONSTRAINT,
        None,
    ):
        return DuplicateEmailError(fields.get("email"))
    if isinstance(error, ForeignKeyViolationError):
        return UnknownLabelError(label_ids)
    return error


@with_db_retry(max_retries=2, base_delay=0.1)
async def list_contacts(criteria: FilterCriteria | None = None) -> list[Contact]:
    """
    List contacts matching the server-side filter, newest first.

    Args:
        criteria: search / statuses / company / role / label ids; None lists all

    Returns:
        Contacts with their labels
    """
    criteria = criteria or FilterCriteria()
    contacts = await ContactRepository.list_contacts(criteria)

    logger.info("Contacts listed", count=len(contacts), filtered=not criteria.is_empty)
    return contacts


@with_db_retry(max_retries=2, base_delay=0.1)
async def get_contact(contact_id: str) -> Contact:
    """Fetch one contact with labels or raise ContactNotFoundError."""
    contact = await ContactRepository.get_contact(contact_id)
    if contact is None:
        raise ContactNotFoundError(contact_id)
    return contact


async def create_contact(fields: dict[str, Any], label_ids: list[str] | None = None) -> Contact:
    """
    Insert a contact and its label associations in one transaction.

    Args:
        fields: contact columns (name, email, phone, ...)
        label_ids: ids of existing labels to attach

    Raises:
        DuplicateEmailError: email already used; nothing is inserted
        UnknownLabelError: a label id does not exist; nothing is inserted
    """
    contact_id = str(uuid.uuid4())
    label_ids = unique_label_ids(label_ids)

    try:
        async with db_pool.transaction() as conn:
            await ContactRepository.insert_contact(contact_id, fields, connection=conn)
            if label_ids:
                await ContactRepository.replace_labels(contact_id, label_ids, connection=conn)
            contact = await ContactRepository.get_contact(contact_id, connection=conn)
    except (UniqueViolationError, ForeignKeyViolationError) as e:
        logger.warning("Contact create rejected", email=fields.get("email"), error=str(e))
        raise _translate_write_error(e, fields, label_ids) from e

    logger.info("Contact created", contact_id=contact_id, label_count=len(label_ids))
    return contact


async def update_contact(
    contact_id: str, fields: dict[str, Any], label_ids: list[str] | None = None
) -> Contact:
    """
    Full update of a contact, replacing its label set.

    The row update, the association delete and the association insert share
    one transaction, so a failure leaves the previous labels untouched.

    Raises:
        ContactNotFoundError: no contact with this id
        DuplicateEmailError: email belongs to another contact
        UnknownLabelError: a label id does not exist
    """
    label_ids = unique_label_ids(label_ids)

    try:
        async with db_pool.transaction() as conn:
            updated = await ContactRepository.update_contact(contact_id, fields, connection=conn)
            if not updated:
                raise ContactNotFoundError(contact_id)

            await ContactRepository.replace_labels(contact_id, label_ids, connection=conn)
            contact = await ContactRepository.get_contact(contact_id, connection=conn)
    except (UniqueViolationError, ForeignKeyViolationError) as e:
        logger.warning("Contact update rejected", contact_id=contact_id, error=str(e))
        raise _translate_write_error(e, fields, label_ids) from e

    logger.info("Contact updated", contact_id=contact_id, label_count=len(label_ids))
    return contact


async def delete_contact(contact_id: str) -> None:
    """Delete a contact or raise ContactNotFoundError."""
    deleted = await ContactRepository.delete_contact(contact_id)
    if not deleted:
        raise ContactNotFoundError(contact_id)

    logger.info("Contact deleted", contact_id=contact_id)


@with_db_retry(max_retries=2, base_delay=0.1)
async def get_filter_options() -> dict[str, list[str]]:
    """Distinct non-empty company and role values, each sorted."""
    return {
        "companies": await ContactRepository.distinct_companies(),
        "roles": await ContactRepository.distinct_roles(),
    }
