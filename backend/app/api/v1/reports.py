"""
Router dos relatórios
Projeto: Guardiões Financeiro (Eventos Financeiros)

Relatório PDF dos eventos, gerado com WeasyPrint.
"""

import datetime
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.core.database import get_db
from app.core.deps import require_session
from app.core.exceptions import BusinessValidationError
from app.schemas.report import ReportConfig, ReportOrientation
from app.services.pdf_service import pdf_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reports",
    tags=["Relatórios"],
    dependencies=[Depends(require_session)],
)


def report_config_params(
    title: Optional[str] = Query(None, description="Título do relatório"),
    date_from: Optional[datetime.date] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime.date] = Query(None, alias="dateTo"),
    include_attachments: bool = Query(False, alias="includeAttachments"),
    orientation: ReportOrientation = Query(ReportOrientation.PORTRAIT),
) -> ReportConfig:
    """
    Configuração do relatório a partir da query string.

    Raises:
        BusinessValidationError: Período inválido
    """
    values = {
        "date_from": date_from,
        "date_to": date_to,
        "include_attachments": include_attachments,
        "orientation": orientation,
    }
    if title:
        values["title"] = title

    try:
        return ReportConfig(**values)
    except PydanticValidationError as e:
        message = e.errors()[0]["msg"].removeprefix("Value error, ")
        raise BusinessValidationError(message) from e


@router.get(
    "/events.pdf",
    summary="Relatório PDF de eventos",
    response_class=Response,
)
async def events_report_pdf(
    config: ReportConfig = Depends(report_config_params),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Gera o PDF com os eventos do período, totais e (opcionalmente) anexos."""
    events = await pdf_service.load_events(db, config)
    pdf_bytes = await run_in_threadpool(pdf_service.generate_events_report_pdf, events, config)

    filename = f"relatorio-eventos-{datetime.date.today().strftime('%d-%m-%Y')}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
