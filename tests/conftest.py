from contextlib import asynccontextmanager

import pytest

from app.models.domain.contact_domain import Contact, Label


@pytest.fixture
def sample_labels():
    return [
        Label(id="label-1", name="VIP", color="purple"),
        Label(id="label-2", name="Lead", color="blue"),
        Label(id="label-3", name="Customer", color="green"),
        Label(id="label-4", name="Prospect", color="yellow"),
    ]


@pytest.fixture
def sample_contacts(sample_labels):
    vip, lead, customer, prospect = sample_labels
    return [
        Contact(
            id="user-1",
            name="Sarah Johnson",
            email="sarah.johnson@techcorp.com",
            company="TechCorp Solutions",
            role="CEO",
            status="active",
            last_contact="2024-01-15",
            labels=[vip, customer],
        ),
        Contact(
            id="user-2",
            name="Michael Chen",
            email="michael.chen@innovate.io",
            company="Innovate Labs",
            role="CTO",
            status="active",
            last_contact="2024-01-10",
            labels=[lead],
        ),
        Contact(
            id="user-3",
            name="Emily Rodriguez",
            email="emily.rodriguez@startup.com",
            company="StartupCo",
            role="Founder",
            status="pending",
            last_contact="2024-01-08T09:30:00",
            labels=[prospect],
        ),
        Contact(
            id="user-4",
            name="Dana Park",
            email="dana@example.org",
            company=None,
            role=None,
            status="inactive",
            last_contact="not a date",
            labels=[],
        ),
    ]


class FakePool:
    """Stands in for db_pool: records whether the transaction committed."""

    def __init__(self):
        self.connection = object()
        self.events: list[str] = []

    @asynccontextmanager
    async def transaction(self):
        self.events.append("begin")
        try:
            yield self.connection
        except BaseException:
            self.events.append("rollback")
            raise
        self.events.append("commit")


@pytest.fixture
def fake_pool():
    return FakePool()
