"""
Testes do EventService (adaptador de registros) sobre SQLite.
"""

import uuid
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import StoreError
from app.schemas.financial_event import (
    EventFilter,
    EventStatus,
    FinancialEventUpdate,
    PaymentSlipData,
)
from app.services.event_service import event_service


# ============================================================
# CRUD
# ============================================================


class TestCreateAndRead:

    async def test_create_assigns_id_and_timestamps(self, db, event_data):
        event = await event_service.create(db, event_data)
        await db.commit()

        assert isinstance(event.id, uuid.UUID)
        assert event.created_at is not None
        assert event.updated_at is not None
        assert event.vehicle_plate == "ABC1234"
        assert event.amount == Decimal("450.75")
        assert event.status == EventStatus.PENDING

    async def test_get_by_id_returns_record(self, db, event_data):
        created = await event_service.create(db, event_data)
        await db.commit()

        found = await event_service.get_by_id(db, created.id)

        assert found is not None
        assert found.id == created.id
        assert found.supplier == "Auto Peças Silva"

    async def test_get_by_id_absent_returns_none(self, db):
        assert await event_service.get_by_id(db, uuid.uuid4()) is None

    async def test_create_with_payment_slips(self, db, event_factory):
        data = event_factory(
            payment_slips=[
                PaymentSlipData(name="boleto.pdf", url="/files/documentos/a/boleto.pdf", due_date=date(2024, 4, 1)),
            ],
        )
        event = await event_service.create(db, data)
        await db.commit()

        assert len(event.payment_slips) == 1
        assert event.payment_slips[0].due_date == date(2024, 4, 1)

    async def test_list_all_newest_event_first(self, db, event_factory):
        await event_service.create(db, event_factory(event_date=date(2024, 1, 5)))
        await event_service.create(db, event_factory(event_date=date(2024, 3, 1)))
        await event_service.create(db, event_factory(event_date=date(2024, 2, 1)))
        await db.commit()

        events = await event_service.list_all(db)

        assert [e.event_date for e in events] == [
            date(2024, 3, 1),
            date(2024, 2, 1),
            date(2024, 1, 5),
        ]


class TestUpdate:

    async def test_status_update_is_persisted(self, db, event_data):
        created = await event_service.create(db, event_data)
        await db.commit()

        updated = await event_service.update(db, created.id, FinancialEventUpdate(status="Pago"))
        await db.commit()

        assert updated.status == EventStatus.PAID
        assert updated.supplier == created.supplier
        assert (await event_service.get_by_id(db, created.id)).status == EventStatus.PAID

    async def test_update_absent_returns_none(self, db):
        result = await event_service.update(db, uuid.uuid4(), FinancialEventUpdate(reason="x"))
        assert result is None

    async def test_collections_are_replaced(self, db, event_factory):
        created = await event_service.create(
            db,
            event_factory(payment_slips=[PaymentSlipData(name="a.pdf", url="/files/documentos/a.pdf")]),
        )
        await db.commit()

        updated = await event_service.update(
            db,
            created.id,
            FinancialEventUpdate(
                payment_slips=[
                    PaymentSlipData(name="b.pdf", url="/files/documentos/b.pdf"),
                    PaymentSlipData(name="c.pdf", url="/files/documentos/c.pdf"),
                ]
            ),
        )
        await db.commit()

        assert sorted(s.name for s in updated.payment_slips) == ["b.pdf", "c.pdf"]

    async def test_explicit_null_keeps_required_fields(self, db, event_data):
        created = await event_service.create(db, event_data)
        await db.commit()

        updated = await event_service.update(
            db,
            created.id,
            FinancialEventUpdate(supplier=None, invoice_url=None),
        )

        assert updated.supplier == created.supplier
        assert updated.invoice_url is None


class TestDelete:

    async def test_delete_then_get_returns_none(self, db, event_data):
        created = await event_service.create(db, event_data)
        await db.commit()

        assert await event_service.delete(db, created.id) is True
        await db.commit()

        assert await event_service.get_by_id(db, created.id) is None

    async def test_delete_absent_returns_false(self, db):
        assert await event_service.delete(db, uuid.uuid4()) is False


# ============================================================
# Filtros
# ============================================================


class TestFilter:

    @pytest.fixture
    async def seeded(self, db, event_factory):
        await event_service.create(db, event_factory(
            supplier="Auto Peças Silva", vehicle_plate="ABC1234",
            event_date=date(2024, 1, 10), reason="Troca de óleo",
        ))
        await event_service.create(db, event_factory(
            supplier="Pneus Brasil", vehicle_plate="XYZ9876",
            event_date=date(2024, 1, 31), reason="Troca de pneus",
        ))
        await event_service.create(db, event_factory(
            supplier="Pneus Brasil", vehicle_plate="ABC1234",
            event_date=date(2024, 2, 15), reason="Alinhamento",
        ))
        await db.commit()
        return db

    async def test_date_range_is_inclusive(self, seeded):
        events = await event_service.filter(
            seeded,
            EventFilter(date_from=date(2024, 1, 10), date_to=date(2024, 1, 31)),
        )
        assert {e.event_date for e in events} == {date(2024, 1, 10), date(2024, 1, 31)}

    async def test_plate_is_compared_uppercase(self, seeded):
        events = await event_service.filter(seeded, EventFilter(vehicle_plate="abc1234"))
        assert len(events) == 2

    async def test_reason_is_case_insensitive_substring(self, seeded):
        events = await event_service.filter(seeded, EventFilter(reason="TROCA"))
        assert len(events) == 2

    async def test_criteria_are_combined(self, seeded):
        events = await event_service.filter(
            seeded,
            EventFilter(supplier="Pneus Brasil", vehicle_plate="ABC1234"),
        )
        assert len(events) == 1
        assert events[0].reason == "Alinhamento"

    async def test_distinct_field_values_sorted(self, seeded):
        options = await event_service.distinct_field_values(seeded)

        assert options.suppliers == ["Auto Peças Silva", "Pneus Brasil"]
        assert options.vehicle_plates == ["ABC1234", "XYZ9876"]
        assert options.reasons == sorted(options.reasons)

    async def test_find_by_plate(self, seeded):
        events = await event_service.find_by_plate(seeded, " abc1234 ")
        assert [e.event_date for e in events] == [date(2024, 2, 15), date(2024, 1, 10)]


# ============================================================
# Erros do banco
# ============================================================


class TestStoreErrors:

    async def test_backend_error_becomes_store_error(self, db):
        db.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("database is locked")))

        with pytest.raises(StoreError) as exc_info:
            await event_service.list_all(db)

        assert "database is locked" in exc_info.value.detail
