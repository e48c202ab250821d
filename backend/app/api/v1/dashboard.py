"""
Router do painel
Projeto: Guardiões Financeiro (Eventos Financeiros)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_session
from app.schemas.dashboard import DashboardSummary
from app.services.dashboard_service import summarize
from app.services.event_service import event_service

router = APIRouter(
    prefix="/dashboard",
    tags=["Painel"],
    dependencies=[Depends(require_session)],
)


@router.get(
    "",
    summary="Resumo do painel",
    response_model=DashboardSummary,
)
async def get_dashboard(db: AsyncSession = Depends(get_db)) -> DashboardSummary:
    """Totais por status e fornecedor, série diária e eventos recentes."""
    events = await event_service.list_all(db)
    return summarize(events)
