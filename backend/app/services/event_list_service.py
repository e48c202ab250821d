"""
Controller da lista de eventos
Projeto: Guardiões Financeiro (Eventos Financeiros)

Mantém três conjuntos em memória:
- all_events: tudo que veio do banco no último carregamento
- server_order: o conjunto exibido na ordem entregue pelo banco
- displayed: o conjunto exibido, eventualmente reordenado pela data de pagamento

Também exporta o conjunto exibido em CSV.
"""

import csv
import datetime
import io
import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.schemas.financial_event import (
    EventFilter,
    EventStatus,
    FilterOptions,
    FinancialEventRead,
    FinancialEventUpdate,
    format_amount_br,
)
from app.services.event_service import EventService, event_service

# Logger deste módulo
logger = logging.getLogger(__name__)

CSV_HEADER = (
    "ID",
    "Fornecedor",
    "Placa do Veículo",
    "Valor",
    "Data do Evento",
    "Motivo do Evento",
    "Data de Pagamento",
    "Status",
)

DATE_FORMAT_BR = "%d/%m/%Y"


def csv_filename(day: Optional[datetime.date] = None) -> str:
    """Nome do arquivo CSV: eventos-financeiros-DD-MM-AAAA.csv"""
    day = day or datetime.date.today()
    return f"eventos-financeiros-{day.strftime('%d-%m-%Y')}.csv"


def export_csv(records: Iterable[FinancialEventRead]) -> str:
    """
    Gera o CSV dos registros.

    Valores com vírgula decimal e datas em DD/MM/AAAA. O módulo csv cuida
    das aspas de campos com vírgula, aspas ou quebra de linha.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for record in records:
        writer.writerow([
            str(record.id),
            record.supplier,
            record.vehicle_plate,
            format_amount_br(record.amount),
            record.event_date.strftime(DATE_FORMAT_BR),
            record.reason,
            record.payment_date.strftime(DATE_FORMAT_BR),
            record.status.value,
        ])

    return buffer.getvalue()


class EventListController:
    """
    Estado da tela de lista: filtros, ordenação, troca de status e exclusão.

    Args:
        store: Adaptador de registros
    """

    def __init__(self, store: Optional[EventService] = None) -> None:
        self.store = store or event_service
        self.all_events: list[FinancialEventRead] = []
        self.server_order: list[FinancialEventRead] = []
        self.displayed: list[FinancialEventRead] = []
        self.options = FilterOptions()
        self.criteria = EventFilter()
        self.sort_by_payment = False
        self.descending = True
        self.pending_delete: Optional[uuid.UUID] = None

    def _show(self, events: list[FinancialEventRead]) -> None:
        self.server_order = list(events)
        self.displayed = list(events)
        if self.sort_by_payment:
            self._apply_sort()

    def _apply_sort(self) -> None:
        # sorted() é estável: empates mantêm a ordem do servidor
        self.displayed = sorted(
            self.server_order,
            key=lambda e: e.payment_date,
            reverse=self.descending,
        )

    async def load(self, db: AsyncSession) -> list[FinancialEventRead]:
        """Carrega todos os eventos e as opções dos seletores de filtro."""
        self.all_events = await self.store.list_all(db)
        self.options = await self.store.distinct_field_values(db)
        self.criteria = EventFilter()
        self._show(self.all_events)
        return self.displayed

    async def apply_filter(
        self,
        db: AsyncSession,
        criteria: EventFilter,
    ) -> list[FinancialEventRead]:
        """Consulta de novo com os critérios e substitui o conjunto exibido."""
        self.criteria = criteria
        if criteria.is_empty:
            events = await self.store.list_all(db)
        else:
            events = await self.store.filter(db, criteria)
        self._show(events)
        return self.displayed

    def sort_by_payment_date(self, enabled: bool, descending: bool = True) -> list[FinancialEventRead]:
        """
        Liga ou desliga a ordenação pela data de pagamento.

        Desligada, volta à ordem entregue pelo banco.
        """
        self.sort_by_payment = enabled
        self.descending = descending
        if enabled:
            self._apply_sort()
        else:
            self.displayed = list(self.server_order)
        return self.displayed

    async def change_status(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        status: EventStatus,
    ) -> FinancialEventRead:
        """
        Altera o status e reconcilia os conjuntos em memória.

        Raises:
            NotFoundError: Evento inexistente
        """
        updated = await self.store.update(db, event_id, FinancialEventUpdate(status=status))
        if updated is None:
            raise NotFoundError(f"Evento com ID {event_id} não encontrado")
        await db.commit()

        def _replace(events: list[FinancialEventRead]) -> list[FinancialEventRead]:
            return [updated if e.id == event_id else e for e in events]

        self.all_events = _replace(self.all_events)
        self.server_order = _replace(self.server_order)
        self.displayed = _replace(self.displayed)

        logger.info(f"Status do evento {event_id} alterado para {status.value}")
        return updated

    # ------------------------------------------------------------
    # Exclusão em dois passos
    # ------------------------------------------------------------
    def request_delete(self, event_id: uuid.UUID) -> None:
        self.pending_delete = event_id

    def cancel_delete(self) -> None:
        self.pending_delete = None

    async def confirm_delete(self, db: AsyncSession) -> bool:
        """
        Exclui o evento pendente de confirmação.

        Returns:
            True se excluído; False se não havia pedido ou o id não existia
        """
        event_id = self.pending_delete
        self.pending_delete = None
        if event_id is None:
            return False

        deleted = await self.store.delete(db, event_id)
        if not deleted:
            return False
        await db.commit()

        def _without(events: list[FinancialEventRead]) -> list[FinancialEventRead]:
            return [e for e in events if e.id != event_id]

        self.all_events = _without(self.all_events)
        self.server_order = _without(self.server_order)
        self.displayed = _without(self.displayed)
        return True

    # ------------------------------------------------------------
    # Exportação
    # ------------------------------------------------------------
    def export_csv(self, records: Optional[Iterable[FinancialEventRead]] = None) -> str:
        """CSV dos registros informados ou, por padrão, do conjunto exibido."""
        return export_csv(self.displayed if records is None else records)

    def csv_filename(self, day: Optional[datetime.date] = None) -> str:
        return csv_filename(day)
