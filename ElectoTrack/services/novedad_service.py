# services/novedad_service.py
import logging

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from models.novedad import Novedad
from models.usuario import Usuario
from schemas.novedad import NovedadCreate, NovedadResolver
from services.persona_service import get_persona, get_persona_visible, count_novedades_activas
from utils.datetime_utils import now_local
from utils.permissions import RoleGroups, ensure_role, ensure_persona_access
from enums.enums import PersonaEstadoEnum
from enums.roles import Role

logger = logging.getLogger(__name__)


def _ensure_puede_gestionar(user: Usuario) -> None:
    if user.role == Role.consultor.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No autorizado: los consultores no pueden gestionar novedades",
        )
    ensure_role(user, RoleGroups.CREAN_NOVEDADES, "No autorizado para gestionar novedades")


def get_novedad(db: Session, user: Usuario, novedad_id: int) -> Novedad:
    """
    Raises:
        HTTPException 404: Si no existe o la persona no es visible
    """
    novedad = db.get(Novedad, novedad_id)
    if not novedad:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Novedad no encontrada")
    get_persona_visible(db, user, novedad.persona_id)
    return novedad


def list_novedades_persona(db: Session, user: Usuario, persona_id: int, activas: bool | None = None) -> list[Novedad]:
    """Novedades de una persona, más recientes primero."""
    get_persona_visible(db, user, persona_id)
    stmt = select(Novedad).where(Novedad.persona_id == persona_id)
    if activas is True:
        stmt = stmt.where(Novedad.resuelta.is_(False))
    elif activas is False:
        stmt = stmt.where(Novedad.resuelta.is_(True))
    stmt = stmt.order_by(Novedad.created_at.desc(), Novedad.novedad_id.desc())
    return list(db.scalars(stmt).all())


def create_novedad(db: Session, user: Usuario, payload: NovedadCreate) -> Novedad:
    """
    Registra una novedad y pasa la persona a CON_NOVEDAD en la misma transacción.

    Raises:
        HTTPException 403: Rol o acceso
        HTTPException 400: Ya existe una novedad activa
    """
    _ensure_puede_gestionar(user)
    persona = get_persona(db, payload.persona_id)
    ensure_persona_access(db, user, persona)

    if count_novedades_activas(db, persona.persona_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La persona ya tiene una novedad activa",
        )

    novedad = Novedad(
        persona_id=persona.persona_id,
        observacion=payload.observacion,
        creada_por_id=user.usuario_id,
    )
    persona.estado_anterior = persona.estado
    persona.estado = PersonaEstadoEnum.CON_NOVEDAD.value
    db.add_all([novedad, persona])
    db.commit()
    db.refresh(novedad)
    logger.info("Novedad %s creada para persona %s por %s", novedad.novedad_id, persona.persona_id, user.usuario_id)
    return novedad


def resolver_novedad(db: Session, user: Usuario, novedad_id: int, payload: NovedadResolver) -> Novedad:
    """
    Marca la novedad como resuelta y restaura el estado previo de la persona.

    Raises:
        HTTPException 400: Si ya estaba resuelta
    """
    _ensure_puede_gestionar(user)
    novedad = db.get(Novedad, novedad_id)
    if not novedad:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Novedad no encontrada")
    persona = get_persona(db, novedad.persona_id)
    ensure_persona_access(db, user, persona)

    if novedad.resuelta:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="La novedad ya está resuelta")

    novedad.resuelta = True
    novedad.resuelta_at = now_local()
    novedad.resuelta_por_id = user.usuario_id
    novedad.observacion_resolucion = payload.observacion_resolucion

    persona.estado = persona.estado_anterior or PersonaEstadoEnum.DATOS_PENDIENTES.value
    persona.estado_anterior = None
    db.add_all([novedad, persona])
    db.commit()
    db.refresh(novedad)
    logger.info("Novedad %s resuelta por %s", novedad_id, user.usuario_id)
    return novedad
