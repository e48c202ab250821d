"""
Testes da agregação do painel (sem banco).
"""

import datetime
import uuid
from decimal import Decimal

from app.schemas.financial_event import EventStatus, FinancialEventRead
from app.services.dashboard_service import RECENT_EVENTS, summarize

NOW = datetime.datetime(2024, 3, 31, 12, 0, tzinfo=datetime.timezone.utc)


def record(supplier="Auto Peças Silva", amount="100.00", status=EventStatus.PENDING, day=1):
    return FinancialEventRead(
        id=uuid.uuid4(),
        supplier=supplier,
        vehicle_plate="ABC1234",
        amount=Decimal(amount),
        event_date=datetime.date(2024, 3, day),
        reason="Revisão",
        payment_date=datetime.date(2024, 3, day),
        status=status,
        created_at=NOW,
        updated_at=NOW,
    )


class TestSummarize:

    def test_empty_set(self):
        summary = summarize([], now=NOW)

        assert summary.total_count == 0
        assert summary.total_amount == 0
        assert summary.paid_percentage == 0
        assert summary.recent_events == []
        assert [s.count for s in summary.by_status] == [0, 0, 0]

    def test_totals_per_status(self):
        events = [
            record(amount="450.75", status=EventStatus.PAID),
            record(amount="49.25", status=EventStatus.PAID),
            record(amount="100.00", status=EventStatus.PENDING),
            record(amount="10.00", status=EventStatus.CANCELLED),
        ]

        summary = summarize(events, now=NOW)

        assert summary.total_count == 4
        assert summary.total_amount == 610.0
        assert summary.paid_count == 2
        assert summary.paid_amount == 500.0
        assert summary.pending_amount == 100.0
        assert summary.cancelled_count == 1
        assert summary.paid_percentage == 50
        assert summary.generated_at == NOW

    def test_paid_percentage_rounds_half_up(self):
        events = [record(status=EventStatus.PAID)] + [record() for _ in range(7)]
        assert summarize(events).paid_percentage == 13

    def test_by_supplier_highest_first(self):
        events = [
            record(supplier="Pneus Brasil", amount="80.00"),
            record(supplier="Auto Peças Silva", amount="50.00"),
            record(supplier="Auto Peças Silva", amount="60.00"),
        ]

        by_supplier = summarize(events).by_supplier

        assert [(s.supplier, s.amount, s.count) for s in by_supplier] == [
            ("Auto Peças Silva", 110.0, 2),
            ("Pneus Brasil", 80.0, 1),
        ]

    def test_by_date_in_chronological_order(self):
        events = [record(day=15), record(day=2), record(day=15, amount="20.00")]

        by_date = summarize(events).by_date

        assert [(d.date.day, d.total, d.count) for d in by_date] == [(2, 100.0, 1), (15, 120.0, 2)]

    def test_recent_events_are_first_of_list(self):
        events = [record(day=day) for day in range(28, 20, -1)]

        recent = summarize(events).recent_events

        assert len(recent) == RECENT_EVENTS
        assert [e.id for e in recent] == [e.id for e in events[:RECENT_EVENTS]]

    def test_serializes_camel_case(self):
        payload = summarize([record(status=EventStatus.PAID)], now=NOW).model_dump(mode="json", by_alias=True)

        assert payload["paidPercentage"] == 100
        assert payload["recentEvents"][0]["amount"] == 100.0
        assert "bySupplier" in payload
