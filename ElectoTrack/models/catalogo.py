# models/catalogo.py
from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from utils.db import Base, BigIntPK


class Barrio(Base):
    __tablename__ = "barrio"

    barrio_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    codigo: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    nombre: Mapped[str] = mapped_column(String(120), nullable=False)

    def __repr__(self) -> str:
        return f"<Barrio(id={self.barrio_id}, codigo='{self.codigo}')>"


class PuestoVotacion(Base):
    __tablename__ = "puesto_votacion"

    puesto_votacion_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    codigo: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    nombre: Mapped[str] = mapped_column(String(150), nullable=False)
    direccion: Mapped[str | None] = mapped_column(String(200))

    def __repr__(self) -> str:
        return f"<PuestoVotacion(id={self.puesto_votacion_id}, codigo='{self.codigo}')>"
