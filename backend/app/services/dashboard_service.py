"""
Service do painel
Projeto: Guardiões Financeiro (Eventos Financeiros)

Agregação pura sobre o conjunto carregado: nada é guardado entre chamadas.
"""

import datetime
import logging
import math
from collections import defaultdict
from typing import Iterable, Optional

from app.schemas.dashboard import DailyTotal, DashboardSummary, StatusTotals, SupplierTotal
from app.schemas.financial_event import EventStatus, FinancialEventRead

logger = logging.getLogger(__name__)

RECENT_EVENTS = 5


def summarize(
    events: Iterable[FinancialEventRead],
    now: Optional[datetime.datetime] = None,
) -> DashboardSummary:
    """
    Calcula os totais do painel.

    Os valores são somados em ponto flutuante. paid_percentage é o
    percentual inteiro de eventos pagos sobre o total (0 sem eventos).

    Args:
        events: Todos os eventos
        now: Momento do cálculo (padrão: agora, UTC)

    Returns:
        DashboardSummary
    """
    events = list(events)

    counts: dict[EventStatus, int] = defaultdict(int)
    amounts: dict[EventStatus, float] = defaultdict(float)
    suppliers: dict[str, list] = defaultdict(lambda: [0.0, 0])
    days: dict[datetime.date, list] = defaultdict(lambda: [0.0, 0])
    total_amount = 0.0

    for event in events:
        value = float(event.amount)
        total_amount += value
        counts[event.status] += 1
        amounts[event.status] += value
        suppliers[event.supplier][0] += value
        suppliers[event.supplier][1] += 1
        days[event.event_date][0] += value
        days[event.event_date][1] += 1

    total_count = len(events)
    paid_count = counts[EventStatus.PAID]
    # Meio ponto arredonda para cima (12,5% -> 13%)
    paid_percentage = math.floor(paid_count * 100 / total_count + 0.5) if total_count else 0

    by_supplier = sorted(
        (SupplierTotal(supplier=name, amount=round(amount, 2), count=count)
         for name, (amount, count) in suppliers.items()),
        key=lambda s: s.amount,
        reverse=True,
    )
    by_date = [
        DailyTotal(date=day, total=round(amount, 2), count=count)
        for day, (amount, count) in sorted(days.items())
    ]
    # O conjunto já chega na ordem da lista (mais recentes primeiro)
    recent = events[:RECENT_EVENTS]

    summary = DashboardSummary(
        total_count=total_count,
        total_amount=total_amount,
        paid_count=paid_count,
        paid_amount=amounts[EventStatus.PAID],
        pending_count=counts[EventStatus.PENDING],
        pending_amount=amounts[EventStatus.PENDING],
        cancelled_count=counts[EventStatus.CANCELLED],
        cancelled_amount=amounts[EventStatus.CANCELLED],
        paid_percentage=paid_percentage,
        by_status=[
            StatusTotals(status=status, count=counts[status], amount=amounts[status])
            for status in EventStatus
        ],
        by_supplier=by_supplier,
        by_date=by_date,
        recent_events=recent,
        generated_at=now or datetime.datetime.now(datetime.timezone.utc),
    )

    logger.debug(f"Painel calculado: {total_count} eventos, total {total_amount:.2f}")
    return summary
