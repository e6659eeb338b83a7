# models/novedad.py
from __future__ import annotations

from datetime import datetime
from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utils.db import Base, BigIntPK
from utils.datetime_utils import now_local


class Novedad(Base):
    """
    Novedad (incidencia) sobre una persona.

    Mientras esté activa (resuelta=False) la persona queda en CON_NOVEDAD
    y no puede avanzar en el flujo. Máximo una activa por persona.
    """
    __tablename__ = "novedad"

    novedad_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    persona_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("persona.persona_id", ondelete="CASCADE"), nullable=False, index=True
    )
    observacion: Mapped[str] = mapped_column(Text, nullable=False)
    resuelta: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    resuelta_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    observacion_resolucion: Mapped[str | None] = mapped_column(Text)
    creada_por_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="RESTRICT"), nullable=False
    )
    resuelta_por_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, onupdate=now_local,
                                                 nullable=False)

    persona = relationship("Persona", back_populates="novedades")
    creada_por = relationship("Usuario", foreign_keys=[creada_por_id])
    resuelta_por = relationship("Usuario", foreign_keys=[resuelta_por_id])
