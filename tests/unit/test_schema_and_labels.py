from unittest.mock import AsyncMock

import pytest

from app.db import schema
from app.models.domain.contact_domain import Label, LabelColor
from app.services import label_service


@pytest.mark.asyncio
async def test_initialize_schema_without_seed(monkeypatch):
    execute_transaction = AsyncMock(return_value=True)
    monkeypatch.setattr("app.db.schema.execute_transaction", execute_transaction)

    await schema.initialize_schema(seed=False)

    statements = execute_transaction.await_args.args[0]
    assert len(statements) == len(schema.SCHEMA_STATEMENTS)
    assert "ON DELETE CASCADE" in statements[2][0]


@pytest.mark.asyncio
async def test_initialize_schema_with_seed(monkeypatch):
    execute_transaction = AsyncMock(return_value=True)
    monkeypatch.setattr("app.db.schema.execute_transaction", execute_transaction)

    await schema.initialize_schema(seed=True)

    statements = execute_transaction.await_args.args[0]
    seeds = statements[len(schema.SCHEMA_STATEMENTS) :]
    assert len(seeds) == (
        len(schema.DEFAULT_LABELS)
        + len(schema.SAMPLE_CONTACTS)
        + len(schema.SAMPLE_CONTACT_LABELS)
    )
    assert all("ON CONFLICT DO NOTHING" in query for query, _ in seeds)


def test_seed_data_is_consistent():
    label_ids = {label[0] for label in schema.DEFAULT_LABELS}
    contact_ids = {contact[0] for contact in schema.SAMPLE_CONTACTS}
    colors = {color.value for color in LabelColor}

    assert all(label[2] in colors for label in schema.DEFAULT_LABELS)
    assert all(
        contact_id in contact_ids and label_id in label_ids
        for contact_id, label_id in schema.SAMPLE_CONTACT_LABELS
    )


@pytest.mark.asyncio
async def test_create_label_assigns_id_and_normalizes(monkeypatch):
    def make_label(label_id, name, color):
        return Label(id=label_id, name=name, color=color)

    insert = AsyncMock(side_effect=make_label)
    monkeypatch.setattr("app.services.label_service.LabelRepository.insert_label", insert)

    label = await label_service.create_label("  Investor ", LabelColor.RED)

    label_id, name, color = insert.await_args.args
    assert name == "Investor"
    assert color == "red"
    assert label.id == label_id


@pytest.mark.asyncio
async def test_create_label_rejects_unknown_color():
    with pytest.raises(ValueError):
        await label_service.create_label("Investor", "#ff0000")


@pytest.mark.asyncio
async def test_list_labels(monkeypatch):
    labels = [Label(id="label-3", name="Customer", color="green")]
    monkeypatch.setattr(
        "app.services.label_service.LabelRepository.list_labels", AsyncMock(return_value=labels)
    )

    assert await label_service.list_labels() == labels
