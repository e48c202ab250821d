"""
API v1 Routes
Projeto: Guardiões Financeiro (Eventos Financeiros)

Router da versão 1 da API.
"""

from fastapi import APIRouter

from app.api.v1 import dashboard, events, reports, session

# Router agregado da v1
api_v1_router = APIRouter(prefix="/api/v1")

# Inclui os routers dos módulos
api_v1_router.include_router(session.router)
api_v1_router.include_router(events.router)
api_v1_router.include_router(dashboard.router)
api_v1_router.include_router(reports.router)

# Exportação
__all__ = ["api_v1_router"]
