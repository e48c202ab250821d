"""
Testes dos schemas e das funções de normalização do evento.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.schemas.financial_event import (
    EventFilter,
    EventStatus,
    FinancialEventCreate,
    FinancialEventUpdate,
    format_amount_br,
    infer_status,
    normalize_plate,
    parse_amount,
)
from app.schemas.report import ReportConfig, ReportOrientation


# ============================================================
# Placa
# ============================================================


class TestNormalizePlate:
    """Placa sempre em maiúsculas, mínimo de 7 caracteres."""

    def test_lowercase_plate_is_uppercased(self):
        assert normalize_plate("abc1234") == "ABC1234"

    def test_surrounding_spaces_are_stripped(self):
        assert normalize_plate("  bra2e19 ") == "BRA2E19"

    def test_short_plate_is_rejected(self):
        with pytest.raises(ValueError, match="Placa do veículo inválida"):
            normalize_plate("abc12")

    def test_none_passes_through(self):
        assert normalize_plate(None) is None


# ============================================================
# Valor
# ============================================================


class TestParseAmount:
    """Conversão do valor digitado para Decimal com centavos."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("450,75", Decimal("450.75")),
            ("1.234,56", Decimal("1234.56")),
            ("450.75", Decimal("450.75")),
            ("1.234", Decimal("1234.00")),
            ("R$ 10,00", Decimal("10.00")),
            ("0", Decimal("0.00")),
        ],
    )
    def test_text_formats(self, text, expected):
        assert parse_amount(text) == expected

    def test_numbers_are_accepted(self):
        assert parse_amount(99.9) == Decimal("99.90")
        assert parse_amount(Decimal("10")) == Decimal("10.00")

    def test_rounds_half_up_to_cents(self):
        assert parse_amount("10,005") == Decimal("10.01")

    def test_empty_is_required(self):
        with pytest.raises(ValueError, match="Valor é obrigatório"):
            parse_amount("   ")

    def test_garbage_is_invalid(self):
        with pytest.raises(ValueError, match="Valor inválido"):
            parse_amount("doze reais")

    @pytest.mark.parametrize("text", ["1,234.56", "12,345.6"])
    def test_mixed_separators_are_invalid(self, text):
        with pytest.raises(ValueError, match="Valor inválido"):
            parse_amount(text)

    def test_negative_is_rejected(self):
        with pytest.raises(ValueError, match="negativo"):
            parse_amount("-5,00")

    def test_format_amount_br(self):
        assert format_amount_br(Decimal("1234.5")) == "1234,50"


# ============================================================
# Criação / atualização
# ============================================================


class TestFinancialEventCreate:
    """Schema de criação."""

    def test_normalizes_plate_and_amount(self, event_factory):
        data = event_factory(vehicle_plate="abc1234", amount="1.234,56")

        assert data.vehicle_plate == "ABC1234"
        assert data.amount == Decimal("1234.56")

    def test_status_inferred_pending_without_invoice(self, event_factory):
        assert event_factory().status == EventStatus.PENDING

    def test_status_inferred_paid_with_invoice(self, event_factory):
        data = event_factory(invoice_url="/files/documentos/x/nfe.pdf")
        assert data.status == EventStatus.PAID

    def test_explicit_status_wins(self, event_factory):
        data = event_factory(invoice_url="/files/documentos/x/nfe.pdf", status="Cancelado")
        assert data.status == EventStatus.CANCELLED

    def test_legacy_overdue_status_is_rejected(self, event_factory):
        with pytest.raises(PydanticValidationError):
            event_factory(status="Atrasado")

    def test_accepts_camel_case_payload(self):
        data = FinancialEventCreate.model_validate(
            {
                "supplier": "Oficina Central",
                "vehiclePlate": "xyz9876",
                "amount": 120,
                "eventDate": "2024-05-01T10:00:00Z",
                "reason": "Revisão",
                "paymentDate": "2024-05-02",
            }
        )
        assert data.vehicle_plate == "XYZ9876"
        assert data.event_date == date(2024, 5, 1)
        assert data.payment_date == date(2024, 5, 2)

    def test_blank_supplier_is_rejected(self, event_factory):
        with pytest.raises(PydanticValidationError):
            event_factory(supplier="   ")

    def test_infer_status_helper(self):
        assert infer_status(None) == EventStatus.PENDING
        assert infer_status("https://x/nfe.pdf") == EventStatus.PAID


class TestFinancialEventUpdate:
    """Atualização parcial."""

    def test_only_sent_fields_are_set(self):
        data = FinancialEventUpdate(status="Pago")
        assert data.model_dump(exclude_unset=True) == {"status": EventStatus.PAID}

    def test_plate_is_normalized(self):
        assert FinancialEventUpdate(vehicle_plate="def5678").vehicle_plate == "DEF5678"


# ============================================================
# Filtro e relatório
# ============================================================


class TestEventFilter:

    def test_blank_values_become_none(self):
        criteria = EventFilter(supplier="  ", reason="", date_from="")
        assert criteria.is_empty

    def test_datetime_is_reduced_to_date(self):
        criteria = EventFilter(date_to=datetime(2024, 1, 31, 23, 59))
        assert criteria.date_to == date(2024, 1, 31)
        assert not criteria.is_empty


class TestReportConfig:

    def test_defaults(self):
        config = ReportConfig()
        assert config.orientation == ReportOrientation.PORTRAIT
        assert config.include_attachments is False

    def test_inverted_period_is_rejected(self):
        with pytest.raises(PydanticValidationError):
            ReportConfig(date_from=date(2024, 2, 1), date_to=date(2024, 1, 1))
