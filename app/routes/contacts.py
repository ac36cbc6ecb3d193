"""
contacts.py
-----------
Purpose:
    REST endpoints for contact ("user") records.

Architecture:
    - API layer: HTTP concerns, validation, status codes
    - Service layer: returns Contact domain models, raises ContactServiceError
    - API layer: converts domain models -> ContactResponse

Usage:
    GET    /api/users        - list, optional search/status/company/role/labels
    GET    /api/users/{id}   - fetch one
    POST   /api/users        - create
    PUT    /api/users/{id}   - full update, replaces labels
    DELETE /api/users/{id}   - delete
"""

from fastapi import APIRouter, HTTPException, Query, status

from app.db.helpers import DatabaseError
from app.infrastructure.observability.logging import get_logger
from app.models.api.contact_request import ContactCreateRequest, ContactUpdateRequest
from app.models.api.contact_response import ContactResponse, DeleteContactResponse
from app.models.domain.contact_domain import ContactStatus, FilterCriteria
from app.services import contact_service
from app.services.contact_service import (
    ContactNotFoundError,
    DuplicateEmailError,
    UnknownLabelError,
)

router = APIRouter(prefix="/api/users", tags=["users"])
logger = get_logger(__name__)


def _persistence_failure(action: str, error: DatabaseError) -> HTTPException:
    logger.error(f"Failed to {action}", error=str(error), operation=error.operation)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


@router.get("", response_model=list[ContactResponse])
async def list_users(
    search: str | None = None,
    status_filter: list[ContactStatus] = Query(default=[], alias="status"),
    company: str | None = None,
    role: str | None = None,
    labels: list[str] = Query(default=[]),
):
    """List contacts, newest first, narrowed by the optional query filters."""
    criteria = FilterCriteria(
        search=search,
        statuses=status_filter,
        label_ids=labels,
        company=company,
        role=role,
    )

    try:
        contacts = await contact_service.list_contacts(criteria)
    except DatabaseError as e:
        raise _persistence_failure("list users", e) from e

    return [ContactResponse.from_domain(contact) for contact in contacts]


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_user(contact_id: str):
    """
    Fetch one contact with its labels.

    Raises:
        404: no contact with this id
    """
    try:
        contact = await contact_service.get_contact(contact_id)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from e
    except DatabaseError as e:
        raise _persistence_failure("get user", e) from e

    return ContactResponse.from_domain(contact)


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_user(request: ContactCreateRequest):
    """
    Create a contact, attaching the given label ids.

    Raises:
        409: email already in use
        422: unknown label id
    """
    try:
        contact = await contact_service.create_contact(request.contact_fields(), request.labels)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except UnknownLabelError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except DatabaseError as e:
        raise _persistence_failure("create user", e) from e

    return ContactResponse.from_domain(contact)


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_user(contact_id: str, request: ContactUpdateRequest):
    """
    Replace a contact's fields and label set.

    Raises:
        404: no contact with this id
        409: email belongs to another contact
        422: unknown label id
    """
    try:
        contact = await contact_service.update_contact(
            contact_id, request.contact_fields(), request.labels
        )
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from e
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except UnknownLabelError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except DatabaseError as e:
        raise _persistence_failure("update user", e) from e

    return ContactResponse.from_domain(contact)


@router.delete("/{contact_id}", response_model=DeleteContactResponse)
async def delete_user(contact_id: str):
    """Delete a contact. 404 when it does not exist."""
    try:
        await contact_service.delete_contact(contact_id)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from e
    except DatabaseError as e:
        raise _persistence_failure("delete user", e) from e

    return DeleteContactResponse(message="User deleted successfully")
