# models/importacion.py
from __future__ import annotations

from datetime import datetime
from sqlalchemy import String, BigInteger, Integer, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column

from utils.db import Base, BigIntPK
from utils.datetime_utils import now_local


class Importacion(Base):
    """Bitácora de cargas masivas de personas desde Excel."""
    __tablename__ = "importacion"

    importacion_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    usuario_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="CASCADE"), nullable=False, index=True
    )
    total_registros: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    registros_exitosos: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    registros_fallidos: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    archivo_nombre: Mapped[str | None] = mapped_column(String(255))
    # Lista de {fila, documento, error}
    errores: Mapped[list | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
