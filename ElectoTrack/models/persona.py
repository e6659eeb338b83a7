# models/persona.py
from __future__ import annotations

from datetime import datetime, date
from sqlalchemy import String, BigInteger, Boolean, Date, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from config.settings import settings
from utils.db import Base, BigIntPK
from utils.datetime_utils import now_local
from enums.enums import PersonaEstadoEnum, SituacionEnum


class Persona(Base):
    """
    Persona (votante potencial) registrada por un líder o coordinador.

    Flujo de estados:
    - DATOS_PENDIENTES -> VERIFICADO (validador) -> CONFIRMADO (confirmador)
      -> COMPLETADO (evidencia fotográfica del voto)
    - CON_NOVEDAD mientras exista una novedad activa
    - estado_anterior guarda el estado previo a la última transición
    """
    __tablename__ = "persona"

    persona_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    nombres: Mapped[str] = mapped_column(String(100), nullable=False)
    apellidos: Mapped[str] = mapped_column(String(100), nullable=False)
    tipo_documento: Mapped[str] = mapped_column(String(20), default="CC", nullable=False)
    numero_documento: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    fecha_nacimiento: Mapped[date | None] = mapped_column(Date)
    fecha_expedicion: Mapped[date | None] = mapped_column(Date)
    profesion: Mapped[str | None] = mapped_column(String(120))
    numero_celular: Mapped[str | None] = mapped_column(String(30))
    direccion: Mapped[str | None] = mapped_column(String(200))
    departamento: Mapped[str | None] = mapped_column(String(80), index=True)
    municipio: Mapped[str | None] = mapped_column(String(80))
    mesa_votacion: Mapped[str | None] = mapped_column(String(20))

    barrio_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("barrio.barrio_id", ondelete="SET NULL")
    )
    puesto_votacion_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("puesto_votacion.puesto_votacion_id", ondelete="SET NULL"), index=True
    )
    registrado_por_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="RESTRICT"), nullable=False, index=True
    )

    es_importado: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    importacion_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("importacion.importacion_id", ondelete="SET NULL")
    )

    # Flujo
    estado: Mapped[str] = mapped_column(
        String(20), default=PersonaEstadoEnum.DATOS_PENDIENTES.value, nullable=False, index=True
    )
    estado_anterior: Mapped[str | None] = mapped_column(String(20))
    validado_por_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="SET NULL")
    )
    validado_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    confirmado_estado_por_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="SET NULL")
    )
    confirmado_estado_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False,
                                                 index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, onupdate=now_local,
                                                 nullable=False)

    # Relationships
    registrado_por = relationship("Usuario", foreign_keys=[registrado_por_id])
    validado_por = relationship("Usuario", foreign_keys=[validado_por_id])
    confirmado_estado_por = relationship("Usuario", foreign_keys=[confirmado_estado_por_id])
    barrio = relationship("Barrio")
    puesto_votacion = relationship("PuestoVotacion")
    confirmaciones: Mapped[list[VotoConfirmacion]] = relationship(
        "VotoConfirmacion", back_populates="persona", cascade="all, delete-orphan",
        lazy="selectin", order_by="VotoConfirmacion.confirmacion_id.desc()",
    )
    novedades: Mapped[list[Novedad]] = relationship(
        "Novedad", back_populates="persona", cascade="all, delete-orphan",
    )

    @property
    def confirmacion(self) -> VotoConfirmacion | None:
        """Confirmación vigente: la última no reversada, o la última registrada."""
        if not self.confirmaciones:
            return None
        for c in self.confirmaciones:
            if not c.reversado:
                return c
        return self.confirmaciones[0]

    @property
    def tiene_confirmacion_activa(self) -> bool:
        return any(not c.reversado for c in self.confirmaciones)

    @property
    def situacion(self) -> str:
        """Situación derivada: datos faltantes, pendiente o confirmado."""
        if not self.puesto_votacion_id or not self.mesa_votacion:
            return SituacionEnum.missing_data.value
        if settings.FECHA_EXPEDICION_REQUIRED and not self.fecha_expedicion:
            return SituacionEnum.missing_data.value
        if self.tiene_confirmacion_activa:
            return SituacionEnum.confirmed.value
        return SituacionEnum.pending.value

    def __repr__(self) -> str:
        return f"<Persona(id={self.persona_id}, doc='{self.numero_documento}', estado='{self.estado}')>"
