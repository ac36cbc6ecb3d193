# app/db/schema.py
"""
Schema bootstrap for the CRM tables.

Tables are created idempotently on startup. When SEED_SAMPLE_DATA is on,
the default labels and a handful of sample contacts are inserted with
ON CONFLICT DO NOTHING so restarts never duplicate them.
"""

from app.db.helpers import execute_transaction
from app.infrastructure.observability.logging import get_logger
from app.models.domain.contact_domain import ContactStatus, LabelColor

logger = get_logger(__name__)

_STATUS_CHECK = ", ".join(f"'{status.value}'" for status in ContactStatus)
_COLOR_CHECK = ", ".join(f"'{color.value}'" for color in LabelColor)

SCHEMA_STATEMENTS = [
    f"""
    CREATE TABLE IF NOT EXISTS contacts (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        phone TEXT,
        company TEXT,
        role TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        avatar TEXT,
        last_contact TEXT,
        notes TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        CONSTRAINT uq_contacts_email UNIQUE (email),
        CONSTRAINT ck_contacts_status CHECK (status IN ({_STATUS_CHECK}))
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS labels (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        color TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        CONSTRAINT ck_labels_color CHECK (color IN ({_COLOR_CHECK}))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS contact_labels (
        contact_id TEXT NOT NULL REFERENCES contacts (id) ON DELETE CASCADE,
        label_id TEXT NOT NULL REFERENCES labels (id) ON DELETE CASCADE,
        PRIMARY KEY (contact_id, label_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_contact_labels_label_id ON contact_labels (label_id)",
]

DEFAULT_LABELS = [
    ("label-1", "VIP", LabelColor.PURPLE.value),
    ("label-2", "Lead", LabelColor.BLUE.value),
    ("label-3", "Customer", LabelColor.GREEN.value),
    ("label-4", "Prospect", LabelColor.YELLOW.value),
    ("label-5", "Partner", LabelColor.RED.value),
]

SAMPLE_CONTACTS = [
    (
        "user-1",
        "Sarah Johnson",
        "sarah.johnson@techcorp.com",
        "+1 (555) 123-4567",
        "TechCorp Solutions",
        "CEO",
        "active",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Sarah",
        "2024-01-15",
        "Interested in enterprise solutions",
    ),
    (
        "user-2",
        "Michael Chen",
        "michael.chen@innovate.io",
        "+1 (555) 234-5678",
        "Innovate Labs",
        "CTO",
        "active",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Michael",
        "2024-01-10",
        "Technical decision maker",
    ),
    (
        "user-3",
        "Emily Rodriguez",
        "emily.rodriguez@startup.com",
        "+1 (555) 345-6789",
        "StartupCo",
        "Founder",
        "pending",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Emily",
        "2024-01-08",
        "Early stage startup",
    ),
]

SAMPLE_CONTACT_LABELS = [
    ("user-1", "label-1"),
    ("user-1", "label-3"),
    ("user-2", "label-2"),
    ("user-3", "label-4"),
]


def seed_statements() -> list[tuple]:
    """(query, params) pairs inserting the default labels and sample contacts."""
    statements = [
        ("INSERT INTO labels (id, name, color) VALUES (%s, %s, %s) ON CONFLICT DO NOTHING", label)
        for label in DEFAULT_LABELS
    ]
    statements += [
        (
            """
            INSERT INTO contacts (
                id, name, email, phone, company, role, status, avatar, last_contact, notes
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT DO NOTHING
            """,
            contact,
        )
        for contact in SAMPLE_CONTACTS
    ]
    statements += [
        (
            "INSERT INTO contact_labels (contact_id, label_id) VALUES (%s, %s) ON CONFLICT DO NOTHING",
            link,
        )
        for link in SAMPLE_CONTACT_LABELS
    ]
    return statements


async def initialize_schema(seed: bool = False) -> None:
    """Create tables (and optionally seed sample data) in one transaction."""
    statements = [(statement, ()) for statement in SCHEMA_STATEMENTS]
    if seed:
        statements += seed_statements()

    await execute_transaction(statements)
    logger.info("Database schema ready", seeded=seed, statement_count=len(statements))
