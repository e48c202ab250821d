"""
Router FastAPI do Evento Financeiro
Projeto: Guardiões Financeiro (Eventos Financeiros)

Define os endpoints da API para eventos: CRUD, filtros, histórico por
placa, exportação CSV e envio do formulário com anexos.
"""

import datetime
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.form_data import apply_event_form, read_event_form
from app.core.database import get_db
from app.core.deps import require_session
from app.core.exceptions import NotFoundError
from app.schemas.event_form import SubmissionResult
from app.schemas.financial_event import (
    EventFilter,
    EventStatusUpdate,
    FilterOptions,
    FinancialEventCreate,
    FinancialEventRead,
    FinancialEventUpdate,
)
from app.services.event_form_service import EventForm
from app.services.event_list_service import EventListController
from app.services.event_service import event_service

# Logger deste módulo
logger = logging.getLogger(__name__)

# Router com prefix, tag e sessão obrigatória
router = APIRouter(
    prefix="/events",
    tags=["Eventos Financeiros"],
    dependencies=[Depends(require_session)],
)


def event_filter_params(
    date_from: Optional[datetime.date] = Query(None, alias="dateFrom", description="Data inicial (inclusiva)"),
    date_to: Optional[datetime.date] = Query(None, alias="dateTo", description="Data final (inclusiva)"),
    supplier: Optional[str] = Query(None, description="Fornecedor (igualdade exata)"),
    vehicle_plate: Optional[str] = Query(None, alias="vehiclePlate", description="Placa do veículo"),
    reason: Optional[str] = Query(None, description="Trecho do motivo"),
) -> EventFilter:
    """Critérios de filtro a partir da query string."""
    return EventFilter(
        date_from=date_from,
        date_to=date_to,
        supplier=supplier,
        vehicle_plate=vehicle_plate,
        reason=reason,
    )


async def _load_list(
    db: AsyncSession,
    criteria: EventFilter,
    sort_by_payment_date: bool,
    descending: bool,
) -> EventListController:
    controller = EventListController()
    await controller.apply_filter(db, criteria)
    controller.sort_by_payment_date(sort_by_payment_date, descending)
    return controller


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

# IMPORTANTE: as rotas fixas (/options, /export.csv, /plate, /form) vêm
# ANTES de /{event_id} para não serem interpretadas como UUID.

@router.get(
    "",
    summary="Lista eventos",
    description="Lista os eventos, com filtros opcionais e ordenação pela data de pagamento.",
    response_model=list[FinancialEventRead],
)
async def list_events(
    criteria: EventFilter = Depends(event_filter_params),
    sort_by_payment_date: bool = Query(False, alias="sortByPaymentDate"),
    descending: bool = Query(True, description="Ordem decrescente quando ordenado por pagamento"),
    db: AsyncSession = Depends(get_db),
) -> list[FinancialEventRead]:
    """
    Lista ou filtra os eventos.

    Sem critérios devolve todos, dos mais recentes aos mais antigos.
    """
    controller = await _load_list(db, criteria, sort_by_payment_date, descending)
    return controller.displayed


@router.get(
    "/options",
    summary="Opções de filtro",
    response_model=FilterOptions,
)
async def get_filter_options(db: AsyncSession = Depends(get_db)) -> FilterOptions:
    """Fornecedores, placas e motivos distintos para os seletores."""
    return await event_service.distinct_field_values(db)


@router.get(
    "/export.csv",
    summary="Exporta CSV",
    response_class=Response,
)
async def export_events_csv(
    criteria: EventFilter = Depends(event_filter_params),
    sort_by_payment_date: bool = Query(False, alias="sortByPaymentDate"),
    descending: bool = Query(True),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """CSV do conjunto filtrado, como exibido na lista."""
    controller = await _load_list(db, criteria, sort_by_payment_date, descending)
    filename = controller.csv_filename()
    logger.info(f"Exportação CSV: {len(controller.displayed)} eventos")
    return Response(
        content=controller.export_csv(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/plate/{plate}",
    summary="Histórico do veículo",
    response_model=list[FinancialEventRead],
)
async def get_events_by_plate(
    plate: str,
    db: AsyncSession = Depends(get_db),
) -> list[FinancialEventRead]:
    """Eventos do mesmo veículo, em qualquer caixa da placa."""
    return await event_service.find_by_plate(db, plate)


@router.post(
    "/form",
    summary="Novo evento (formulário com anexos)",
    response_model=SubmissionResult,
    status_code=status.HTTP_201_CREATED,
)
async def submit_new_event_form(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SubmissionResult:
    """
    Cria um evento a partir do formulário multipart.

    Campos: supplier, vehiclePlate, amount, eventDate, reason,
    paymentDate, status; arquivos: invoice, paymentSlips, receipts.
    O cabeçalho Idempotency-Key (ou o campo submissionKey) recusa
    envios duplicados simultâneos.
    """
    data = await read_event_form(request)
    form = EventForm(submission_key=data.submission_key)
    apply_event_form(form, data)
    return await form.submit(db)


@router.get(
    "/{event_id}",
    summary="Detalhe do evento",
    response_model=FinancialEventRead,
)
async def get_event(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> FinancialEventRead:
    """
    Recupera um evento.

    Raises:
        NotFoundError: Se o evento não existir
    """
    event = await event_service.get_by_id(db, event_id)
    if event is None:
        raise NotFoundError(f"Evento com ID {event_id} não encontrado")
    return event


@router.post(
    "",
    summary="Cria evento",
    response_model=FinancialEventRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_event(
    event_data: FinancialEventCreate,
    db: AsyncSession = Depends(get_db),
) -> FinancialEventRead:
    """Cria um evento (JSON). Sem status, vale Pago se houver invoiceUrl."""
    event = await event_service.create(db, event_data)
    await db.commit()
    return event


@router.patch(
    "/{event_id}",
    summary="Atualiza evento",
    response_model=FinancialEventRead,
)
async def update_event(
    event_id: uuid.UUID,
    event_data: FinancialEventUpdate,
    db: AsyncSession = Depends(get_db),
) -> FinancialEventRead:
    """
    Atualização parcial.

    Raises:
        NotFoundError: Se o evento não existir
    """
    event = await event_service.update(db, event_id, event_data)
    if event is None:
        raise NotFoundError(f"Evento com ID {event_id} não encontrado")
    await db.commit()
    return event


@router.patch(
    "/{event_id}/status",
    summary="Altera status",
    response_model=FinancialEventRead,
)
async def change_event_status(
    event_id: uuid.UUID,
    status_data: EventStatusUpdate,
    db: AsyncSession = Depends(get_db),
) -> FinancialEventRead:
    """Troca o status (Pendente, Pago, Cancelado)."""
    controller = EventListController()
    return await controller.change_status(db, event_id, status_data.status)


@router.post(
    "/{event_id}/form",
    summary="Edita evento (formulário com anexos)",
    response_model=SubmissionResult,
)
async def submit_event_form(
    event_id: uuid.UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SubmissionResult:
    """
    Atualiza um evento a partir do formulário multipart.

    Novos anexos são acrescentados aos existentes.

    Raises:
        NotFoundError: Se o evento não existir
    """
    event = await event_service.get_by_id(db, event_id)
    if event is None:
        raise NotFoundError(f"Evento com ID {event_id} não encontrado")

    data = await read_event_form(request)
    form = EventForm(event=event, submission_key=data.submission_key)
    apply_event_form(form, data)
    return await form.submit(db)


@router.delete(
    "/{event_id}",
    summary="Exclui evento",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_event(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Exclusão definitiva.

    Raises:
        NotFoundError: Se o evento não existir
    """
    controller = EventListController()
    controller.request_delete(event_id)
    if not await controller.confirm_delete(db):
        raise NotFoundError(f"Evento com ID {event_id} não encontrado")
