"""
Sistema de autorización basado en roles y visibilidad por estructura.

Arquitectura:
- Admin: acceso total
- Consultor: lectura global, no puede modificar nada
- Coordinador: sus líderes y las personas registradas por ellos (más las propias)
- Líder: solo las personas que registró
- Filtros (validador / confirmador): personas de los líderes que tienen asignados
"""
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from models.usuario import Usuario, FiltroLider
from models.persona import Persona
from enums.roles import Role


# ============================================================================
# Grupos de roles
# ============================================================================

class RoleGroups:
    """Conjuntos de roles reutilizados por los endpoints."""
    LECTURA_GLOBAL = {Role.admin.value, Role.consultor.value}
    REGISTRAN_PERSONAS = {Role.admin.value, Role.coordinador.value, Role.lider.value}
    GESTIONAN_ESTRUCTURA = {Role.admin.value, Role.coordinador.value}
    CREAN_NOVEDADES = {
        Role.admin.value,
        Role.coordinador.value,
        Role.lider.value,
        Role.validador.value,
        Role.confirmador.value,
    }
    CONFIRMAN_VOTO = {
        Role.admin.value,
        Role.coordinador.value,
        Role.lider.value,
        Role.confirmador.value,
    }
    REVERSAN_ESTADO = {
        Role.admin.value,
        Role.coordinador.value,
        Role.validador.value,
        Role.confirmador.value,
    }


# ============================================================================
# Guards simples
# ============================================================================

def ensure_role(user: Usuario, allowed: set[str], detail: str = "No autorizado") -> None:
    """
    Verifica que el usuario tenga alguno de los roles permitidos.

    Raises:
        HTTPException 403: Si el rol no está permitido
    """
    if user.role not in allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


# ============================================================================
# Visibilidad
# ============================================================================

def lideres_ids_de_coordinador(db: Session, coordinador_id: int) -> list[int]:
    """IDs de los líderes que pertenecen a un coordinador."""
    stmt = select(Usuario.usuario_id).where(
        Usuario.role == Role.lider.value,
        Usuario.coordinador_id == coordinador_id,
    )
    return list(db.scalars(stmt).all())


def lideres_ids_de_filtro(db: Session, filtro_id: int) -> list[int]:
    """IDs de los líderes asignados a un filtro."""
    stmt = select(FiltroLider.lider_id).where(FiltroLider.filtro_id == filtro_id)
    return list(db.scalars(stmt).all())


def registradores_visibles(db: Session, user: Usuario) -> set[int] | None:
    """
    Conjunto de usuario_id cuyos registros de personas puede ver el usuario.

    Returns:
        None si ve todo (admin / consultor), o el set de registradores visibles
    """
    if user.role in RoleGroups.LECTURA_GLOBAL:
        return None
    if user.role == Role.coordinador.value:
        return set(lideres_ids_de_coordinador(db, user.usuario_id)) | {user.usuario_id}
    if user.role == Role.lider.value:
        return {user.usuario_id}
    if user.is_filtro:
        return set(lideres_ids_de_filtro(db, user.usuario_id))
    return set()


def apply_persona_visibility(db: Session, stmt, user: Usuario):
    """Agrega al statement el filtro de personas visibles para el usuario."""
    visibles = registradores_visibles(db, user)
    if visibles is None:
        return stmt
    return stmt.where(Persona.registrado_por_id.in_(visibles))


def can_access_persona(db: Session, user: Usuario, persona: Persona) -> bool:
    visibles = registradores_visibles(db, user)
    return visibles is None or persona.registrado_por_id in visibles


def can_filtro_access_persona(db: Session, filtro: Usuario, persona: Persona) -> bool:
    """El filtro tiene acceso si el registrador de la persona es uno de sus líderes."""
    stmt = select(FiltroLider.filtro_lider_id).where(
        FiltroLider.filtro_id == filtro.usuario_id,
        FiltroLider.lider_id == persona.registrado_por_id,
    )
    return db.scalars(stmt).first() is not None


def ensure_persona_access(
    db: Session,
    user: Usuario,
    persona: Persona,
    detail: str = "No tienes acceso a esta persona",
    status_code: int = status.HTTP_403_FORBIDDEN,
) -> None:
    """
    Verifica el acceso del usuario a la persona según su rol.

    Raises:
        HTTPException: 403 por defecto (404 cuando no se debe revelar la existencia)
    """
    if not can_access_persona(db, user, persona):
        raise HTTPException(status_code=status_code, detail=detail)
