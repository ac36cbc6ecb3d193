from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from app.models.domain.contact_domain import FilterCriteria
from app.repositories.contact_repository import CONTACT_FIELDS, ContactRepository, build_list_query


def contact_row(contact_id: str, name: str, **extra) -> dict:
    row = {
        "id": contact_id,
        "name": name,
        "email": f"{contact_id}@example.com",
        "phone": None,
        "company": None,
        "role": None,
        "status": "active",
        "avatar": None,
        "last_contact": None,
        "notes": None,
        "created_at": datetime(2024, 1, 1, tzinfo=UTC),
        "updated_at": datetime(2024, 1, 2, tzinfo=UTC),
    }
    row.update(extra)
    return row


class TestBuildListQuery:
    def test_no_criteria(self):
        query, params = build_list_query(FilterCriteria())

        assert "WHERE TRUE" in query
        assert "ORDER BY c.created_at DESC, c.id" in query
        assert params == ()

    def test_search_binds_term_for_each_field(self):
        query, params = build_list_query(FilterCriteria(search="Tech"))

        assert params == ("Tech", "Tech", "Tech", "Tech")
        assert "JOIN labels l" in query
        assert "LIKE" not in query

    def test_all_criteria_in_order(self):
        criteria = FilterCriteria(
            search="a",
            statuses=["pending", "active"],
            label_ids=["label-2", "label-1"],
            company="Tech",
            role="CEO",
        )

        query, params = build_list_query(criteria)

        assert params == (
            "a",
            "a",
            "a",
            "a",
            ["active", "pending"],
            ["label-1", "label-2"],
            "Tech",
            "CEO",
        )
        assert query.count("%s") == len(params)
        assert "c.status = ANY(%s)" in query


class TestContactRepository:
    @pytest.mark.asyncio
    async def test_list_contacts_merges_labels(self, monkeypatch):
        fetch_all = AsyncMock(
            side_effect=[
                [contact_row("user-2", "Michael Chen"), contact_row("user-1", "Sarah Johnson")],
                [
                    {"contact_id": "user-1", "id": "label-3", "name": "Customer", "color": "green"},
                    {"contact_id": "user-1", "id": "label-1", "name": "VIP", "color": "purple"},
                ],
            ]
        )
        monkeypatch.setattr("app.repositories.contact_repository.fetch_all", fetch_all)

        contacts = await ContactRepository.list_contacts(FilterCriteria())

        assert [c.id for c in contacts] == ["user-2", "user-1"]
        assert contacts[0].labels == []
        assert [label.name for label in contacts[1].labels] == ["Customer", "VIP"]
        label_query_params = fetch_all.await_args_list[1].args[1]
        assert label_query_params == (["user-2", "user-1"],)

    @pytest.mark.asyncio
    async def test_list_contacts_empty_skips_label_query(self, monkeypatch):
        fetch_all = AsyncMock(return_value=[])
        monkeypatch.setattr("app.repositories.contact_repository.fetch_all", fetch_all)

        assert await ContactRepository.list_contacts(FilterCriteria()) == []
        assert fetch_all.await_count == 1

    @pytest.mark.asyncio
    async def test_get_contact_missing(self, monkeypatch):
        monkeypatch.setattr(
            "app.repositories.contact_repository.fetch_one", AsyncMock(return_value=None)
        )

        assert await ContactRepository.get_contact("missing") is None

    @pytest.mark.asyncio
    async def test_insert_contact_binds_every_column(self, monkeypatch):
        execute_query = AsyncMock(return_value=1)
        monkeypatch.setattr("app.repositories.contact_repository.execute_query", execute_query)
        fields = {"name": "Sarah", "email": "s@example.com", "status": "active"}

        await ContactRepository.insert_contact("user-9", fields)

        query, params = execute_query.await_args.args
        assert params[:3] == ("user-9", "Sarah", "s@example.com")
        assert len(params) == len(CONTACT_FIELDS) + 1
        assert query.count("%s") == len(params)

    @pytest.mark.asyncio
    async def test_update_contact_reports_missing_row(self, monkeypatch):
        monkeypatch.setattr(
            "app.repositories.contact_repository.execute_query", AsyncMock(return_value=0)
        )

        assert await ContactRepository.update_contact("missing", {"name": "X"}) is False

    @pytest.mark.asyncio
    async def test_replace_labels_deletes_then_inserts(self, monkeypatch):
        execute_query = AsyncMock(return_value=1)
        monkeypatch.setattr("app.repositories.contact_repository.execute_query", execute_query)
        conn = object()

        await ContactRepository.replace_labels("user-1", ["label-3"], connection=conn)

        delete_call, insert_call = execute_query.await_args_list
        assert delete_call.args[0].startswith("DELETE FROM contact_labels")
        assert delete_call.kwargs["connection"] is conn
        assert "INSERT INTO contact_labels" in insert_call.args[0]
        assert insert_call.args[1] == ("user-1", ["label-3"])
        assert insert_call.kwargs["connection"] is conn

    @pytest.mark.asyncio
    async def test_replace_labels_with_empty_set_only_deletes(self, monkeypatch):
        execute_query = AsyncMock(return_value=2)
        monkeypatch.setattr("app.repositories.contact_repository.execute_query", execute_query)

        await ContactRepository.replace_labels("user-1", [])

        assert execute_query.await_count == 1
