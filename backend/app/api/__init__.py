"""
API Routes
Projeto: Guardiões Financeiro (Eventos Financeiros)

Módulo que agrega os routers versionados e as páginas.
"""

from app.api.v1 import events

# Exportação dos routers
__all__ = ["events"]
