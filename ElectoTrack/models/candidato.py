# models/candidato.py
from __future__ import annotations

from datetime import datetime
from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from utils.db import Base, BigIntPK
from utils.datetime_utils import now_local


class Candidato(Base):
    """
    Candidato (representante) para el que trabaja la estructura de campaña.

    Solo un candidato puede ser el candidato por defecto; se asigna a
    coordinadores y líderes creados sin candidato explícito.
    """
    __tablename__ = "candidato"

    candidato_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    nombre_completo: Mapped[str] = mapped_column(String(150), nullable=False)
    numero_tarjeton: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    partido_grupo: Mapped[str | None] = mapped_column(String(150))
    imagen_url: Mapped[str | None] = mapped_column(String(500))
    imagen_path: Mapped[str | None] = mapped_column(String(300))
    es_por_defecto: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, onupdate=now_local,
                                                 nullable=False)

    def __repr__(self) -> str:
        return f"<Candidato(id={self.candidato_id}, tarjeton='{self.numero_tarjeton}')>"
