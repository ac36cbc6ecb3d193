from fastapi import APIRouter, HTTPException, status

from app.db.helpers import DatabaseError
from app.infrastructure.observability.logging import get_logger
from app.models.api.contact_request import LabelCreateRequest
from app.models.api.contact_response import FilterOptionsResponse, LabelResponse
from app.services import contact_service, label_service

router = APIRouter(prefix="/api", tags=["labels"])
logger = get_logger(__name__)


@router.get("/labels", response_model=list[LabelResponse])
async def list_labels():
    """All labels sorted by name."""
    try:
        labels = await label_service.list_labels()
    except DatabaseError as e:
        logger.error("Failed to list labels", error=str(e))
        raise HTTPException(status_code=500, detail=str(e)) from e

    return [LabelResponse.from_domain(label) for label in labels]


@router.post("/labels", response_model=LabelResponse, status_code=status.HTTP_201_CREATED)
async def create_label(request: LabelCreateRequest):
    try:
        label = await label_service.create_label(request.name, request.color)
    except DatabaseError as e:
        logger.error("Failed to create label", name=request.name, error=str(e))
        raise HTTPException(status_code=500, detail=str(e)) from e

    return LabelResponse.from_domain(label)


@router.get("/filters", response_model=FilterOptionsResponse)
async def filter_options():
    """Distinct companies and roles for the filter dropdowns."""
    try:
        options = await contact_service.get_filter_options()
    except DatabaseError as e:
        logger.error("Failed to load filter options", error=str(e))
        raise HTTPException(status_code=500, detail=str(e)) from e

    return FilterOptionsResponse(**options)
