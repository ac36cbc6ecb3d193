"""Persistence for the shared label catalogue."""

from app.db.helpers import fetch_all, fetch_one
from app.infrastructure.observability.logging import get_logger
from app.models.domain.contact_domain import Label

logger = get_logger(__name__)


class LabelRepository:
    """SQL helpers for the labels table."""

    @classmethod
    def _row_to_label(cls, row: dict) -> Label:
        return Label(id=str(row["id"]), name=row["name"], color=row["color"])

    @classmethod
    async def list_labels(cls) -> list[Label]:
        rows = await fetch_all("SELECT id, name, color FROM labels ORDER BY name, id")
        return [cls._row_to_label(row) for row in rows]

    @classmethod
    async def insert_label(cls, label_id: str, name: str, color: str) -> Label:
        row = await fetch_one(
            """
            INSERT INTO labels (id, name, color)
            VALUES (%s, %s, %s)
            RETURNING id, name, color
            """,
            (label_id, name, color),
        )
        logger.debug("Label row inserted", label_id=label_id)
        return cls._row_to_label(row)
