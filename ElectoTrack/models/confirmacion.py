# models/confirmacion.py
from __future__ import annotations

from datetime import datetime
from sqlalchemy import String, BigInteger, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utils.db import Base, BigIntPK
from utils.datetime_utils import now_local


class VotoConfirmacion(Base):
    """Evidencia fotográfica de que una persona votó. Reversible."""
    __tablename__ = "voto_confirmacion"

    confirmacion_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    persona_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("persona.persona_id", ondelete="CASCADE"), nullable=False, index=True
    )
    imagen_url: Mapped[str] = mapped_column(String(500), nullable=False)
    imagen_path: Mapped[str] = mapped_column(String(300), nullable=False)
    confirmado_por_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="RESTRICT"), nullable=False
    )
    confirmado_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
    reversado: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reversado_por_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="SET NULL")
    )
    reversado_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, onupdate=now_local,
                                                 nullable=False)

    persona = relationship("Persona", back_populates="confirmaciones")

    def __repr__(self) -> str:
        return f"<VotoConfirmacion(id={self.confirmacion_id}, persona={self.persona_id}, reversado={self.reversado})>"
