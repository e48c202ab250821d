"""
Testes do EventListController: filtros, ordenação, status, exclusão e CSV.
"""

import csv
import io
import uuid
from datetime import date

import pytest

from app.core.exceptions import NotFoundError
from app.schemas.financial_event import EventFilter, EventStatus
from app.services.dashboard_service import summarize
from app.services.event_list_service import CSV_HEADER, EventListController, csv_filename
from app.services.event_service import event_service


@pytest.fixture
async def seeded(db, event_factory):
    # Inseridos fora de ordem de propósito
    for supplier, plate, event_day, pay_day, reason in (
        ("Auto Peças Silva", "ABC1234", 10, 25, "Troca de óleo"),
        ("Pneus Brasil", "XYZ9876", 20, 21, "Troca de pneus, dianteiros"),
        ("Pneus Brasil", "ABC1234", 15, 30, "Alinhamento"),
    ):
        await event_service.create(db, event_factory(
            supplier=supplier,
            vehicle_plate=plate,
            event_date=date(2024, 1, event_day),
            payment_date=date(2024, 1, pay_day),
            reason=reason,
        ))
    await db.commit()
    return db


@pytest.fixture
def controller() -> EventListController:
    return EventListController()


class TestLoadAndFilter:

    async def test_load_fills_sets_and_options(self, seeded, controller):
        displayed = await controller.load(seeded)

        assert [e.event_date.day for e in displayed] == [20, 15, 10]
        assert controller.all_events == displayed
        assert controller.options.suppliers == ["Auto Peças Silva", "Pneus Brasil"]

    async def test_filter_replaces_displayed(self, seeded, controller):
        await controller.load(seeded)

        displayed = await controller.apply_filter(seeded, EventFilter(vehicle_plate="abc1234"))

        assert {e.reason for e in displayed} == {"Troca de óleo", "Alinhamento"}
        assert len(controller.all_events) == 3

    async def test_empty_filter_lists_everything(self, seeded, controller):
        displayed = await controller.apply_filter(seeded, EventFilter(supplier=""))
        assert len(displayed) == 3


class TestSortByPaymentDate:

    async def test_toggle_restores_server_order(self, seeded, controller):
        server = [e.id for e in await controller.load(seeded)]

        by_payment = controller.sort_by_payment_date(True)
        assert [e.payment_date.day for e in by_payment] == [30, 25, 21]

        ascending = controller.sort_by_payment_date(True, descending=False)
        assert [e.payment_date.day for e in ascending] == [21, 25, 30]

        restored = controller.sort_by_payment_date(False)
        assert [e.id for e in restored] == server

    async def test_sort_survives_new_filter(self, seeded, controller):
        await controller.load(seeded)
        controller.sort_by_payment_date(True)

        displayed = await controller.apply_filter(seeded, EventFilter(supplier="Pneus Brasil"))

        assert [e.payment_date.day for e in displayed] == [30, 21]


class TestChangeStatus:

    async def test_paid_count_goes_up(self, seeded, controller):
        await controller.load(seeded)
        before = summarize(controller.all_events).paid_count
        target = controller.displayed[0]

        updated = await controller.change_status(seeded, target.id, EventStatus.PAID)

        assert updated.status == EventStatus.PAID
        assert controller.displayed[0].status == EventStatus.PAID
        assert summarize(controller.all_events).paid_count == before + 1
        assert (await event_service.get_by_id(seeded, target.id)).status == EventStatus.PAID

    async def test_absent_event(self, db, controller):
        with pytest.raises(NotFoundError):
            await controller.change_status(db, uuid.uuid4(), EventStatus.PAID)


class TestDelete:

    async def test_two_step_delete(self, seeded, controller):
        await controller.load(seeded)
        target = controller.displayed[1]

        controller.request_delete(target.id)
        assert await controller.confirm_delete(seeded) is True

        assert target.id not in {e.id for e in controller.displayed}
        assert len(controller.all_events) == 2
        assert await event_service.get_by_id(seeded, target.id) is None

    async def test_cancel_keeps_record(self, seeded, controller):
        await controller.load(seeded)
        controller.request_delete(controller.displayed[0].id)
        controller.cancel_delete()

        assert await controller.confirm_delete(seeded) is False
        assert len(await event_service.list_all(seeded)) == 3


class TestCsvExport:

    async def test_one_line_per_record_plus_header(self, seeded, controller):
        await controller.load(seeded)

        content = controller.export_csv()

        lines = content.splitlines()
        assert len(lines) == 4
        assert lines[0] == ",".join(CSV_HEADER)

    async def test_fields_are_formatted_and_quoted(self, seeded, controller):
        await controller.load(seeded)

        rows = list(csv.reader(io.StringIO(controller.export_csv())))
        first = rows[1]

        assert first[1] == "Pneus Brasil"
        assert first[3] == "450,75"
        assert first[4] == "20/01/2024"
        assert first[5] == "Troca de pneus, dianteiros"
        assert first[7] == "Pendente"
        assert '"Troca de pneus, dianteiros"' in controller.export_csv()

    def test_empty_export_has_only_header(self, controller):
        assert controller.export_csv([]) == ",".join(CSV_HEADER) + "\n"

    def test_filename(self):
        assert csv_filename(date(2024, 3, 5)) == "eventos-financeiros-05-03-2024.csv"
