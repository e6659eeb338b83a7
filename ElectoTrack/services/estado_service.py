# services/estado_service.py
"""
Transiciones del flujo de una persona.

    DATOS_PENDIENTES -> VERIFICADO -> CONFIRMADO -> COMPLETADO
    CON_NOVEDAD bloquea el avance hasta resolver la novedad.

Cada transición guarda estado_anterior para poder reversar.
"""
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from models.persona import Persona
from models.usuario import Usuario
from services.persona_service import get_persona, count_novedades_activas
from utils.datetime_utils import now_local
from utils.permissions import RoleGroups, can_access_persona, can_filtro_access_persona, ensure_role
from enums.enums import PersonaEstadoEnum, REVERSE_MAP
from enums.roles import Role

logger = logging.getLogger(__name__)

E = PersonaEstadoEnum

VERIFICABLES = {E.DATOS_PENDIENTES.value, E.CON_NOVEDAD.value}
CONFIRMABLES = {E.VERIFICADO.value, E.DATOS_PENDIENTES.value}


# ========= Guards =========

def _ensure_filtro_access(db: Session, user: Usuario, persona: Persona) -> None:
    """Los filtros solo actúan sobre personas de sus líderes asignados."""
    if user.is_filtro and not can_filtro_access_persona(db, user, persona):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes acceso a esta persona: su líder no está asignado a ti",
        )


def _ensure_sin_novedad_activa(db: Session, persona: Persona) -> None:
    if count_novedades_activas(db, persona.persona_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La persona tiene una novedad activa. Debe resolverse antes de continuar",
        )


def _transicion(persona: Persona, nuevo: PersonaEstadoEnum) -> str:
    anterior = persona.estado
    persona.estado_anterior = anterior
    persona.estado = nuevo.value
    return anterior


# ========= Transiciones =========

def verificar_persona(db: Session, user: Usuario, persona_id: int) -> tuple[Persona, str]:
    """
    Validador (o admin) verifica los datos de la persona.

    Returns:
        (persona, estado_anterior)

    Raises:
        HTTPException 403: Rol no permitido o líder no asignado
        HTTPException 400: Novedad activa o estado no verificable
    """
    ensure_role(user, {Role.admin.value, Role.validador.value}, "Solo validadores pueden verificar personas")
    persona = get_persona(db, persona_id)
    _ensure_filtro_access(db, user, persona)
    _ensure_sin_novedad_activa(db, persona)

    if persona.estado not in VERIFICABLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"No se puede verificar una persona en estado {persona.estado}",
        )

    anterior = _transicion(persona, E.VERIFICADO)
    persona.validado_por_id = user.usuario_id
    persona.validado_at = now_local()
    db.add(persona)
    db.commit()
    db.refresh(persona)
    logger.info("Persona %s verificada por %s (%s -> %s)", persona_id, user.usuario_id, anterior, persona.estado)
    return persona, anterior


def confirmar_estado_persona(db: Session, user: Usuario, persona_id: int) -> tuple[Persona, str]:
    """
    Confirmador (o admin) confirma a la persona.

    Raises:
        HTTPException 403: Rol no permitido o líder no asignado
        HTTPException 400: Novedad activa o estado no confirmable
    """
    ensure_role(user, {Role.admin.value, Role.confirmador.value}, "Solo confirmadores pueden confirmar personas")
    persona = get_persona(db, persona_id)
    _ensure_filtro_access(db, user, persona)
    _ensure_sin_novedad_activa(db, persona)

    if persona.estado not in CONFIRMABLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"No se puede confirmar una persona en estado {persona.estado}",
        )

    anterior = _transicion(persona, E.CONFIRMADO)
    persona.confirmado_estado_por_id = user.usuario_id
    persona.confirmado_estado_at = now_local()
    db.add(persona)
    db.commit()
    db.refresh(persona)
    logger.info("Persona %s confirmada por %s (%s -> %s)", persona_id, user.usuario_id, anterior, persona.estado)
    return persona, anterior


def reversar_estado_persona(db: Session, user: Usuario, persona_id: int) -> tuple[Persona, str]:
    """
    Regresa la persona un paso en el flujo.

    COMPLETADO -> CONFIRMADO (reversa la confirmación de voto activa)
    CONFIRMADO -> VERIFICADO (limpia datos de confirmación)
    VERIFICADO -> DATOS_PENDIENTES (limpia datos de validación)
    CON_NOVEDAD -> DATOS_PENDIENTES (solo sin novedad activa)

    Raises:
        HTTPException 403: Rol sin permiso o persona fuera de alcance
        HTTPException 400: Estado no reversable
    """
    ensure_role(user, RoleGroups.REVERSAN_ESTADO, "No autorizado para reversar estados")
    persona = get_persona(db, persona_id)

    if user.is_filtro:
        _ensure_filtro_access(db, user, persona)
    elif not can_access_persona(db, user, persona):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para reversar el estado de esta persona",
        )

    if persona.estado == E.DATOS_PENDIENTES.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La persona ya está en el estado inicial (DATOS_PENDIENTES)",
        )
    if persona.estado == E.CON_NOVEDAD.value and count_novedades_activas(db, persona_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se puede reversar: la persona tiene una novedad activa",
        )

    actual = E(persona.estado)
    destino = REVERSE_MAP[actual]
    ahora = now_local()

    if actual == E.COMPLETADO:
        for confirmacion in persona.confirmaciones:
            if not confirmacion.reversado:
                confirmacion.reversado = True
                confirmacion.reversado_por_id = user.usuario_id
                confirmacion.reversado_at = ahora
    elif actual == E.CONFIRMADO:
        persona.confirmado_estado_por_id = None
        persona.confirmado_estado_at = None
    elif actual == E.VERIFICADO:
        persona.validado_por_id = None
        persona.validado_at = None

    anterior = _transicion(persona, destino)
    db.add(persona)
    db.commit()
    db.refresh(persona)
    logger.info("Persona %s reversada por %s (%s -> %s)", persona_id, user.usuario_id, anterior, persona.estado)
    return persona, anterior
