# services/lider_service.py
"""
Gestión de líderes.

Visibilidad:
- admin / consultor: todos los líderes
- coordinador: solo sus líderes (coordinador_id)
"""
import logging

from fastapi import HTTPException, status
from sqlalchemy import select, func, delete
from sqlalchemy.orm import Session

from models.usuario import Usuario, FiltroLider
from models.persona import Persona
from schemas.usuario import LiderCreate, LiderUpdate
from services.usuario_service import (
    build_usuario,
    apply_usuario_update,
    default_lider_password,
    get_default_candidato_id,
    get_usuario_con_rol,
)
from utils.permissions import RoleGroups, ensure_role
from enums.roles import Role

logger = logging.getLogger(__name__)


# ========= Helpers de visibilidad =========

def _personas_count_subq():
    return (
        select(Persona.registrado_por_id.label("usuario_id"), func.count(Persona.persona_id).label("personas_count"))
        .group_by(Persona.registrado_por_id)
        .subquery()
    )


def _query_visible_lideres(user: Usuario):
    counts = _personas_count_subq()
    stmt = (
        select(Usuario, func.coalesce(counts.c.personas_count, 0))
        .outerjoin(counts, counts.c.usuario_id == Usuario.usuario_id)
        .where(Usuario.role == Role.lider.value)
    )
    if user.role == Role.coordinador.value:
        stmt = stmt.where(Usuario.coordinador_id == user.usuario_id)
    return stmt


def _with_counts(rows) -> list[Usuario]:
    result = []
    for lider, personas_count in rows:
        lider.personas_count = personas_count
        result.append(lider)
    return result


def _get_coordinador(db: Session, coordinador_id: int) -> Usuario:
    coordinador = db.get(Usuario, coordinador_id)
    if not coordinador or coordinador.role != Role.coordinador.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Coordinador no encontrado")
    return coordinador


# ========= Selectores =========

def list_lideres(db: Session, user: Usuario, coordinador_id: int | None = None) -> list[Usuario]:
    """
    Listar líderes visibles con el conteo de personas registradas.

    Args:
        db: Sesión de BD
        user: Usuario autenticado
        coordinador_id: Filtro opcional (admin / consultor)
    """
    ensure_role(user, RoleGroups.LECTURA_GLOBAL | {Role.coordinador.value})
    stmt = _query_visible_lideres(user)
    if coordinador_id is not None:
        stmt = stmt.where(Usuario.coordinador_id == coordinador_id)
    stmt = stmt.order_by(Usuario.created_at.desc(), Usuario.usuario_id.desc())
    return _with_counts(db.execute(stmt).all())


def get_lider_visible(db: Session, user: Usuario, lider_id: int) -> Usuario:
    """
    Devuelve el líder si el usuario tiene visibilidad sobre él.

    Raises:
        HTTPException 404: Si no existe o no es visible
    """
    ensure_role(user, RoleGroups.LECTURA_GLOBAL | {Role.coordinador.value})
    stmt = _query_visible_lideres(user).where(Usuario.usuario_id == lider_id)
    rows = db.execute(stmt).all()
    if not rows:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Líder no encontrado")
    return _with_counts(rows)[0]


# ========= Mutaciones =========

def create_lider(db: Session, user: Usuario, payload: LiderCreate) -> tuple[Usuario, str]:
    """
    Crear líder.

    - Coordinador: el líder queda bajo él y hereda su candidato
    - Admin: puede asignar coordinador; sin candidato se hereda del
      coordinador o, en su defecto, el candidato por defecto
    - Password por defecto: Lider + últimos 4 dígitos del documento

    Returns:
        (líder, contraseña asignada)
    """
    ensure_role(user, RoleGroups.GESTIONAN_ESTRUCTURA, "No autorizado para crear líderes")
    data = payload.model_dump()

    if user.role == Role.coordinador.value:
        data["coordinador_id"] = user.usuario_id
        data["candidato_id"] = user.candidato_id
    else:
        if data.get("coordinador_id"):
            coordinador = _get_coordinador(db, data["coordinador_id"])
            if not data.get("candidato_id"):
                data["candidato_id"] = coordinador.candidato_id
        if not data.get("candidato_id"):
            data["candidato_id"] = get_default_candidato_id(db)

    lider, password = build_usuario(
        db, data, Role.lider, default_password=default_lider_password(data["numero_documento"])
    )
    db.commit()
    db.refresh(lider)
    lider.personas_count = 0
    logger.info("Líder creado: %s por usuario %s", lider.usuario_id, user.usuario_id)
    return lider, password


def update_lider(db: Session, user: Usuario, lider_id: int, payload: LiderUpdate) -> Usuario:
    """
    Actualizar líder.

    - Solo admin puede cambiar coordinador_id
    - Coordinador: el candidato se mantiene el del coordinador
    """
    ensure_role(user, RoleGroups.GESTIONAN_ESTRUCTURA, "No autorizado: los consultores no pueden modificar registros")
    lider = get_lider_visible(db, user, lider_id)
    data = payload.model_dump(exclude_unset=True)

    if user.role == Role.coordinador.value:
        data.pop("coordinador_id", None)
        data["candidato_id"] = user.candidato_id
    elif data.get("coordinador_id"):
        coordinador = _get_coordinador(db, data["coordinador_id"])
        if not data.get("candidato_id") and coordinador.candidato_id:
            data["candidato_id"] = coordinador.candidato_id

    nuevo_doc = data.get("numero_documento")
    default_password = default_lider_password(nuevo_doc) if nuevo_doc else None
    apply_usuario_update(db, lider, data, default_password=default_password)
    db.add(lider)
    db.commit()
    return get_lider_visible(db, user, lider_id)


def delete_lider(db: Session, user: Usuario, lider_id: int) -> None:
    """
    Eliminar líder.

    Raises:
        HTTPException 400: Si tiene personas registradas
    """
    ensure_role(user, RoleGroups.GESTIONAN_ESTRUCTURA, "No autorizado: los consultores no pueden eliminar registros")
    lider = get_lider_visible(db, user, lider_id)
    if lider.personas_count:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se puede eliminar el líder porque tiene personas registradas",
        )
    db.execute(delete(FiltroLider).where(FiltroLider.lider_id == lider_id))
    db.delete(lider)
    db.commit()
    logger.info("Líder eliminado: %s por usuario %s", lider_id, user.usuario_id)


def list_lideres_de_coordinador(db: Session, user: Usuario, coordinador_id: int) -> list[Usuario]:
    """
    Líderes de un coordinador. El coordinador solo puede consultar los suyos.

    Raises:
        HTTPException 403: Si un coordinador consulta a otro
    """
    if user.role == Role.coordinador.value and user.usuario_id != coordinador_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado")
    ensure_role(user, RoleGroups.LECTURA_GLOBAL | {Role.coordinador.value})
    get_usuario_con_rol(db, coordinador_id, Role.coordinador, "Coordinador no encontrado")
    return list_lideres(db, user, coordinador_id=coordinador_id)
