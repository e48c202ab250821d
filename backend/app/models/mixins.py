"""
Mixins SQLAlchemy para os modelos
Projeto: Guardiões Financeiro (Eventos Financeiros)

Mixins reutilizáveis com colunas comuns aos modelos.
"""

import datetime
import uuid

from sqlalchemy import DateTime, Uuid
from sqlalchemy import event
from sqlalchemy.orm import Mapped, mapped_column, Session
from sqlalchemy.sql import func


class TimestampMixin:
    """
    Mixin para timestamps de criação e atualização.

    Adiciona os campos:
    - created_at: data/hora de criação (definida pelo servidor)
    - updated_at: data/hora da última atualização (mantida pelo listener)

    Usage:
        class MyModel(Base, TimestampMixin):
            __tablename__ = "my_table"
            ...
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Data/hora de criação do registro",
    )

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Data/hora da última atualização do registro",
    )


class UUIDMixin:
    """
    Mixin para ID UUID gerado no servidor.

    Usage:
        class MyModel(Base, UUIDMixin):
            __tablename__ = "my_table"
            ...
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="UUID primary key",
    )


# ------------------------------------------------------------
# Event Listeners
# ------------------------------------------------------------
@event.listens_for(Session, "before_flush")
def update_timestamp(session: Session, flush_context, instances) -> None:
    """
    Atualiza updated_at antes de cada flush.

    Vale para objetos novos e para objetos efetivamente modificados.
    Objetos novos recebem também created_at, com precisão de microssegundos
    (desempate da ordenação da lista).
    """
    now = datetime.datetime.now(datetime.timezone.utc)

    for obj in session.dirty:
        if hasattr(obj, "updated_at"):
            if session.is_modified(obj, include_collections=False):
                obj.updated_at = now

    for obj in session.new:
        if hasattr(obj, "created_at") and obj.created_at is None:
            obj.created_at = now
        if hasattr(obj, "updated_at"):
            obj.updated_at = now
