"""Label service: the shared label catalogue."""

import uuid

from app.db.helpers import with_db_retry
from app.infrastructure.observability.logging import get_logger
from app.models.domain.contact_domain import Label, LabelColor
from app.repositories.label_repository import LabelRepository

logger = get_logger(__name__)


@with_db_retry(max_retries=2, base_delay=0.1)
async def list_labels() -> list[Label]:
    """All labels sorted by name."""
    return await LabelRepository.list_labels()


async def create_label(name: str, color: LabelColor | str) -> Label:
    """Create a label with a fresh id."""
    label_id = str(uuid.uuid4())
    color_value = color.value if isinstance(color, LabelColor) else LabelColor(color).value

    label = await LabelRepository.insert_label(label_id, name.strip(), color_value)

    logger.info("Label created", label_id=label.id, name=label.name, color=label.color)
    return label
