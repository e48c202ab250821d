"""
Leitura do formulário multipart do evento
Projeto: Guardiões Financeiro (Eventos Financeiros)

Usado pelos endpoints /api/v1/events/form e pelas páginas de novo
evento e edição. Os nomes dos campos seguem o camelCase da API.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from app.services.event_form_service import EventForm
from app.services.storage_service import PendingFile

# Campo do formulário HTML -> campo do EventForm
FIELD_NAMES = {
    "supplier": "supplier",
    "vehiclePlate": "vehicle_plate",
    "amount": "amount",
    "eventDate": "event_date",
    "reason": "reason",
    "paymentDate": "payment_date",
    "status": "status",
}


@dataclass
class EventFormData:
    """Conteúdo bruto de um envio do formulário."""

    fields: dict[str, Any] = field(default_factory=dict)
    invoice: Optional[PendingFile] = None
    payment_slips: list[tuple[PendingFile, Optional[str]]] = field(default_factory=list)
    receipts: list[tuple[PendingFile, Optional[str]]] = field(default_factory=list)
    submission_key: Optional[str] = None


async def _read_file(value: Any) -> Optional[PendingFile]:
    # Input de arquivo vazio chega sem nome
    if not isinstance(value, UploadFile) or not value.filename:
        return None
    content = await value.read()
    return PendingFile(
        filename=value.filename,
        content=content,
        content_type=value.content_type,
    )


async def read_event_form(request: Request) -> EventFormData:
    """
    Lê campos e arquivos do corpo multipart.

    Boletos e comprovantes são listas; as datas de vencimento
    (paymentSlipDueDates) e de pagamento (receiptPaymentDates) são
    associadas pela posição.
    """
    form = await request.form()
    data = EventFormData(
        submission_key=(
            request.headers.get("Idempotency-Key") or form.get("submissionKey") or None
        ),
    )

    for form_name, field_name in FIELD_NAMES.items():
        if form_name in form:
            data.fields[field_name] = form.get(form_name)

    data.invoice = await _read_file(form.get("invoice"))

    due_dates = form.getlist("paymentSlipDueDates")
    slips = [f for f in form.getlist("paymentSlips") if isinstance(f, UploadFile)]
    for index, upload in enumerate(slips):
        pending = await _read_file(upload)
        if pending is not None:
            due_date = due_dates[index] if index < len(due_dates) else None
            data.payment_slips.append((pending, due_date or None))

    payment_dates = form.getlist("receiptPaymentDates")
    receipts = [f for f in form.getlist("receipts") if isinstance(f, UploadFile)]
    for index, upload in enumerate(receipts):
        pending = await _read_file(upload)
        if pending is not None:
            payment_date = payment_dates[index] if index < len(payment_dates) else None
            data.receipts.append((pending, payment_date or None))

    return data


def apply_event_form(form: EventForm, data: EventFormData) -> None:
    """
    Copia campos e arquivos para o formulário.

    Raises:
        BusinessValidationError: Arquivo com extensão não permitida
    """
    form.set_fields(data.fields)
    if data.invoice is not None:
        form.stage_invoice(data.invoice)
    for pending, due_date in data.payment_slips:
        form.add_payment_slip(pending, due_date)
    for pending, payment_date in data.receipts:
        form.add_receipt(pending, payment_date)
