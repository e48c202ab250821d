"""
Service Layer do Evento Financeiro (adaptador de registros)
Projeto: Guardiões Financeiro (Eventos Financeiros)

Única porta de acesso à tabela de eventos. Traduz entre as colunas
snake_case do banco e os registros da aplicação (FinancialEventRead),
sem cache: toda chamada consulta o banco.

Os métodos fazem flush; o commit é de quem chama (router ou controller).
"""

import logging
import uuid
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import StoreError
from app.models import FinancialEvent, PaymentReceipt, PaymentSlip
from app.schemas.financial_event import (
    EventFilter,
    FilterOptions,
    FinancialEventCreate,
    FinancialEventRead,
    FinancialEventUpdate,
)

# Logger deste módulo
logger = logging.getLogger(__name__)

_COLLECTIONS = {
    "payment_slips": PaymentSlip,
    "receipts": PaymentReceipt,
}

# Única coluna que aceita null explícito no PATCH
_NULLABLE = {"invoice_url"}


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Registra e converte erros do SQLAlchemy em StoreError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Erro do banco ao {action}: {e}")
        raise StoreError(str(e.orig if getattr(e, "orig", None) else e)) from e


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class EventService:
    """
    Service para as operações CRUD sobre eventos financeiros.

    Fornece métodos assíncronos sem dependência do FastAPI.
    Leituras simples devolvem None quando o registro não existe.
    """

    # ------------------------------------------------------------
    # Consultas base
    # ------------------------------------------------------------
    def _ordered(self, query: Select) -> Select:
        # Mais recentes primeiro; empate pela criação mais recente
        return query.order_by(
            FinancialEvent.event_date.desc(),
            FinancialEvent.created_at.desc(),
        )

    async def _fetch(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        refresh: bool = False,
    ) -> Optional[FinancialEvent]:
        query = select(FinancialEvent).where(FinancialEvent.id == event_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def _read_many(self, db: AsyncSession, query: Select) -> list[FinancialEventRead]:
        result = await db.execute(self._ordered(query))
        return [FinancialEventRead.model_validate(e) for e in result.scalars().all()]

    # ------------------------------------------------------------
    # Operações
    # ------------------------------------------------------------
    async def list_all(self, db: AsyncSession) -> list[FinancialEventRead]:
        """
        Recupera todos os eventos.

        Returns:
            Eventos ordenados pela data do evento (mais recentes primeiro)

        Raises:
            StoreError: Falha do banco
        """
        with _store_errors("listar eventos"):
            events = await self._read_many(db, select(FinancialEvent))

        logger.debug(f"Recuperados {len(events)} eventos")
        return events

    async def get_by_id(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
    ) -> Optional[FinancialEventRead]:
        """
        Recupera um evento pelo ID.

        Returns:
            O evento, ou None se não existir
        """
        with _store_errors("buscar evento"):
            event = await self._fetch(db, event_id)

        if event is None:
            logger.warning(f"Evento não encontrado: {event_id}")
            return None

        return FinancialEventRead.model_validate(event)

    async def create(
        self,
        db: AsyncSession,
        event_data: FinancialEventCreate,
    ) -> FinancialEventRead:
        """
        Cria um evento.

        O id e os timestamps são atribuídos aqui, na primeira persistência.

        Args:
            db: Sessão do banco
            event_data: Dados validados (status já resolvido)

        Returns:
            O registro completo, com id e timestamps
        """
        values = {
            key: _column_value(value)
            for key, value in event_data.model_dump(exclude=set(_COLLECTIONS)).items()
        }
        event = FinancialEvent(**values)
        for name, model in _COLLECTIONS.items():
            setattr(
                event,
                name,
                [model(**item.model_dump()) for item in getattr(event_data, name)],
            )

        with _store_errors("criar evento"):
            db.add(event)
            await db.flush()
            created = await self._fetch(db, event.id, refresh=True)

        logger.info(f"Criado evento {created.id} - {created.supplier} / {created.vehicle_plate}")
        return FinancialEventRead.model_validate(created)

    async def update(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        event_data: FinancialEventUpdate,
    ) -> Optional[FinancialEventRead]:
        """
        Atualiza parcialmente um evento.

        Só os campos enviados são aplicados; paymentSlips e receipts,
        quando enviados, substituem a coleção.

        Returns:
            O registro atualizado, ou None se o id não existir
        """
        update_data = event_data.model_dump(exclude_unset=True)

        with _store_errors("atualizar evento"):
            event = await self._fetch(db, event_id)
            if event is None:
                logger.warning(f"Evento não encontrado para atualização: {event_id}")
                return None

            for field, value in update_data.items():
                if field in _COLLECTIONS:
                    model = _COLLECTIONS[field]
                    setattr(event, field, [model(**item) for item in value or []])
                elif value is not None or field in _NULLABLE:
                    setattr(event, field, _column_value(value))

            await db.flush()
            updated = await self._fetch(db, event_id, refresh=True)

        logger.info(f"Atualizado evento {event_id}: {sorted(update_data)}")
        return FinancialEventRead.model_validate(updated)

    async def delete(self, db: AsyncSession, event_id: uuid.UUID) -> bool:
        """
        Exclui definitivamente um evento (boletos e comprovantes juntos).

        Returns:
            True se excluído, False se o id não existia
        """
        with _store_errors("excluir evento"):
            event = await self._fetch(db, event_id)
            if event is None:
                logger.warning(f"Evento não encontrado para exclusão: {event_id}")
                return False

            await db.delete(event)
            await db.flush()

        logger.info(f"Excluído evento {event_id}")
        return True

    async def filter(
        self,
        db: AsyncSession,
        criteria: EventFilter,
    ) -> list[FinancialEventRead]:
        """
        Filtra eventos combinando os critérios informados (AND).

        - date_from / date_to: intervalo inclusivo sobre a data do evento
        - supplier: igualdade exata
        - vehicle_plate: igualdade exata, em maiúsculas
        - reason: trecho do motivo, sem diferenciar maiúsculas

        Returns:
            Eventos na mesma ordem de list_all
        """
        conditions = []

        if criteria.date_from is not None:
            conditions.append(FinancialEvent.event_date >= criteria.date_from)
        if criteria.date_to is not None:
            conditions.append(FinancialEvent.event_date <= criteria.date_to)
        if criteria.supplier:
            conditions.append(FinancialEvent.supplier == criteria.supplier)
        if criteria.vehicle_plate:
            conditions.append(FinancialEvent.vehicle_plate == criteria.vehicle_plate.upper())
        if criteria.reason:
            conditions.append(FinancialEvent.reason.ilike(f"%{criteria.reason}%"))

        query = select(FinancialEvent)
        if conditions:
            query = query.where(*conditions)

        with _store_errors("filtrar eventos"):
            events = await self._read_many(db, query)

        logger.debug(f"Filtro {criteria.model_dump(exclude_none=True)}: {len(events)} eventos")
        return events

    async def distinct_field_values(self, db: AsyncSession) -> FilterOptions:
        """
        Valores distintos de fornecedor, placa e motivo.

        Returns:
            FilterOptions com as três listas ordenadas
        """
        async def _distinct(column) -> list[str]:
            result = await db.execute(select(column).distinct().order_by(column))
            return [value for value in result.scalars().all() if value]

        with _store_errors("carregar opções de filtro"):
            return FilterOptions(
                suppliers=await _distinct(FinancialEvent.supplier),
                vehicle_plates=await _distinct(FinancialEvent.vehicle_plate),
                reasons=await _distinct(FinancialEvent.reason),
            )

    async def find_by_plate(
        self,
        db: AsyncSession,
        plate: str,
    ) -> list[FinancialEventRead]:
        """
        Histórico de eventos de um veículo.

        Args:
            plate: Placa em qualquer caixa
        """
        query = select(FinancialEvent).where(
            FinancialEvent.vehicle_plate == plate.strip().upper()
        )
        with _store_errors("buscar eventos por placa"):
            return await self._read_many(db, query)


# Instância global do service
event_service = EventService()
