# models/usuario.py
from __future__ import annotations

from datetime import datetime, date
from sqlalchemy import String, BigInteger, CHAR, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utils.db import Base, BigIntPK
from utils.datetime_utils import now_local
from enums.roles import Role, FILTRO_ROLES


class Usuario(Base):
    """
    Perfil de usuario del sistema (admin, coordinador, líder, filtros, consultor).

    - coordinador_id: líderes y filtros pertenecen a un coordinador
    - candidato_id: candidato al que trabaja la estructura
    """
    __tablename__ = "usuario"

    usuario_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    nombres: Mapped[str] = mapped_column(String(100), nullable=False)
    apellidos: Mapped[str] = mapped_column(String(100), nullable=False)
    tipo_documento: Mapped[str] = mapped_column(String(20), default="CC", nullable=False)
    numero_documento: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    fecha_nacimiento: Mapped[date | None] = mapped_column(Date)
    telefono: Mapped[str | None] = mapped_column(String(30))
    direccion: Mapped[str | None] = mapped_column(String(200))
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    departamento: Mapped[str | None] = mapped_column(String(80))
    municipio: Mapped[str | None] = mapped_column(String(80))
    zona: Mapped[str | None] = mapped_column(String(80))
    mesa_votacion: Mapped[str | None] = mapped_column(String(20))

    barrio_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("barrio.barrio_id", ondelete="SET NULL")
    )
    puesto_votacion_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("puesto_votacion.puesto_votacion_id", ondelete="SET NULL")
    )
    candidato_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("candidato.candidato_id", ondelete="SET NULL")
    )
    coordinador_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="SET NULL"), index=True
    )

    status: Mapped[str] = mapped_column(CHAR(1), default="a", nullable=False)  # a/i
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, onupdate=now_local,
                                                 nullable=False)

    coordinador: Mapped[Usuario | None] = relationship("Usuario", remote_side="Usuario.usuario_id")
    candidato = relationship("Candidato")
    barrio = relationship("Barrio")
    puesto_votacion = relationship("PuestoVotacion")

    @property
    def nombre_completo(self) -> str:
        """Propiedad para devolver el nombre completo."""
        return f"{self.nombres} {self.apellidos}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin.value

    @property
    def is_filtro(self) -> bool:
        return self.role in {r.value for r in FILTRO_ROLES}

    def __repr__(self) -> str:
        return f"<Usuario(id={self.usuario_id}, role='{self.role}', doc='{self.numero_documento}')>"


class FiltroLider(Base):
    """
    Asignación de líderes a un filtro (validador o confirmador).

    El filtro solo puede actuar sobre personas registradas por sus líderes
    asignados.
    """
    __tablename__ = "filtro_lider"
    __table_args__ = (
        UniqueConstraint("filtro_id", "lider_id", name="uq_filtro_lider"),
    )

    filtro_lider_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    filtro_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="CASCADE"), nullable=False, index=True
    )
    lider_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("usuario.usuario_id", ondelete="CASCADE"), nullable=False, index=True
    )
    asignado_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)

    filtro: Mapped[Usuario] = relationship("Usuario", foreign_keys=[filtro_id])
    lider: Mapped[Usuario] = relationship("Usuario", foreign_keys=[lider_id])
