"""
Persistence for contacts and their label associations.

All SQL for the contacts and contact_labels tables lives here. Methods that
take part in a multi-statement write accept an optional connection so the
service layer can run them inside one transaction.
"""

from typing import Any

import psycopg

from app.db.helpers import execute_query, fetch_all, fetch_one
from app.infrastructure.observability.logging import get_logger
from app.models.domain.contact_domain import Contact, FilterCriteria, Label

logger = get_logger(__name__)

# Writable columns, in INSERT/UPDATE order
CONTACT_FIELDS = (
    "name",
    "email",
    "phone",
    "company",
    "role",
    "status",
    "avatar",
    "last_contact",
    "notes",
)


def build_list_query(criteria: FilterCriteria) -> tuple[str, tuple]:
    """
    Build the filtered contact list query.

    Mirrors the in-memory predicate: case-insensitive substring matching via
    strpos (so user input is never treated as a LIKE pattern), set membership
    for statuses and label ids, newest contacts first.
    """
    clauses: list[str] = []
    params: list[Any] = []

    if criteria.search:
        clauses.append(
            """(
                strpos(lower(c.name), lower(%s)) > 0
                OR strpos(lower(c.email), lower(%s)) > 0
                OR strpos(lower(COALESCE(c.company, '')), lower(%s)) > 0
                OR EXISTS (
                    SELECT 1
                    FROM contact_labels cl
                    JOIN labels l ON l.id = cl.label_id
                    WHERE cl.contact_id = c.id
                      AND strpos(lower(l.name), lower(%s)) > 0
                )
            )"""
        )
        params.extend([criteria.search] * 4)

    if criteria.statuses:
        clauses.append("c.status = ANY(%s)")
        params.append(sorted(criteria.statuses))

    if criteria.label_ids:
        clauses.append(
            """EXISTS (
                SELECT 1 FROM contact_labels cl
                WHERE cl.contact_id = c.id AND cl.label_id = ANY(%s)
            )"""
        )
        params.append(sorted(criteria.label_ids))

    if criteria.company:
        clauses.append("strpos(lower(COALESCE(c.company, '')), lower(%s)) > 0")
        params.append(criteria.company)

    if criteria.role:
        clauses.append("strpos(lower(COALESCE(c.role, '')), lower(%s)) > 0")
        params.append(criteria.role)

    where = " AND ".join(clauses) if clauses else "TRUE"
    query = f"""
        SELECT {ContactRepository.SELECT_COLUMNS}
        FROM contacts c
        WHERE {where}
        ORDER BY c.created_at DESC, c.id
    """
    return query, tuple(params)


class ContactRepository:
    """SQL helpers backing the contact service."""

    SELECT_COLUMNS = """
        c.id, c.name, c.email, c.phone, c.company, c.role, c.status,
        c.avatar, c.last_contact, c.notes, c.created_at, c.updated_at
    """

    @classmethod
    def _row_to_contact(cls, row: dict, labels: list[Label] | None = None) -> Contact:
        return Contact(
            id=str(row["id"]),
            name=row["name"],
            email=row["email"],
            phone=row.get("phone"),
            company=row.get("company"),
            role=row.get("role"),
            status=row["status"],
            avatar=row.get("avatar"),
            last_contact=row.get("last_contact"),
            notes=row.get("notes"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            labels=labels or [],
        )

    @classmethod
    async def _labels_for(
        cls, contact_ids: list[str], connection: psycopg.AsyncConnection | None = None
    ) -> dict[str, list[Label]]:
        """Labels of each contact id, ordered by label name."""
        if not contact_ids:
            return {}

        query = """
            SELECT cl.contact_id, l.id, l.name, l.color
            FROM contact_labels cl
            JOIN labels l ON l.id = cl.label_id
            WHERE cl.contact_id = ANY(%s)
            ORDER BY l.name, l.id
        """
        rows = await fetch_all(query, (contact_ids,), connection=connection)

        labels: dict[str, list[Label]] = {contact_id: [] for contact_id in contact_ids}
        for row in rows:
            labels[str(row["contact_id"])].append(
                Label(id=str(row["id"]), name=row["name"], color=row["color"])
            )
        return labels

    @classmethod
    async def list_contacts(cls, criteria: FilterCriteria) -> list[Contact]:
        query, params = build_list_query(criteria)
        rows = await fetch_all(query, params)

        labels = await cls._labels_for([str(row["id"]) for row in rows])
        return [cls._row_to_contact(row, labels.get(str(row["id"]))) for row in rows]

    @classmethod
    async def get_contact(
        cls, contact_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> Contact | None:
        query = f"SELECT {cls.SELECT_COLUMNS} FROM contacts c WHERE c.id = %s"
        row = await fetch_one(query, (contact_id,), connection=connection)
        if not row:
            return None

        labels = await cls._labels_for([contact_id], connection=connection)
        return cls._row_to_contact(row, labels.get(contact_id))

    @classmethod
    async def insert_contact(
        cls,
        contact_id: str,
        fields: dict[str, Any],
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> None:
        columns = ", ".join(("id",) + CONTACT_FIELDS)
        placeholders = ", ".join(["%s"] * (len(CONTACT_FIELDS) + 1))
        query = f"INSERT INTO contacts ({columns}) VALUES ({placeholders})"
        params = (contact_id,) + tuple(fields.get(name) for name in CONTACT_FIELDS)

        await execute_query(query, params, connection=connection)
        logger.debug("Contact row inserted", contact_id=contact_id)

    @classmethod
    async def update_contact(
        cls,
        contact_id: str,
        fields: dict[str, Any],
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> bool:
        """Overwrite every writable column. False when the id does not exist."""
        assignments = ", ".join(f"{name} = %s" for name in CONTACT_FIELDS)
        query = f"UPDATE contacts SET {assignments}, updated_at = NOW() WHERE id = %s"
        params = tuple(fields.get(name) for name in CONTACT_FIELDS) + (contact_id,)

        affected = await execute_query(query, params, connection=connection)
        return affected > 0

    @classmethod
    async def replace_labels(
        cls,
        contact_id: str,
        label_ids: list[str],
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> None:
        """Delete every association of the contact, then insert the new set."""
        await execute_query(
            "DELETE FROM contact_labels WHERE contact_id = %s",
            (contact_id,),
            connection=connection,
        )

        if label_ids:
            await execute_query(
                """
                INSERT INTO contact_labels (contact_id, label_id)
                SELECT %s, label_id FROM unnest(%s::text[]) AS label_id
                """,
                (contact_id, list(label_ids)),
                connection=connection,
            )

    @classmethod
    async def delete_contact(cls, contact_id: str) -> bool:
        """Delete the contact; associations go with it (ON DELETE CASCADE)."""
        affected = await execute_query("DELETE FROM contacts WHERE id = %s", (contact_id,))
        return affected > 0

    @classmethod
    async def distinct_companies(cls) -> list[str]:
        rows = await fetch_all(
            """
            SELECT DISTINCT company FROM contacts
            WHERE company IS NOT NULL AND company != ''
            ORDER BY company
            """
        )
        return [row["company"] for row in rows]

    @classmethod
    async def distinct_roles(cls) -> list[str]:
        rows = await fetch_all(
            """
            SELECT DISTINCT role FROM contacts
            WHERE role IS NOT NULL AND role != ''
            ORDER BY role
            """
        )
        return [row["role"] for row in rows]
