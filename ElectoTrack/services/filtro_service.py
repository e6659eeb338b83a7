# services/filtro_service.py
"""
Gestión de filtros (validadores y confirmadores) y su asignación de líderes.

- Admin: gestiona todos los filtros
- Coordinador: solo filtros de su estructura (coordinador_id = él)
- Los líderes asignados deben pertenecer al coordinador del filtro
"""
import logging

from fastapi import HTTPException, status
from sqlalchemy import select, func, delete, or_
from sqlalchemy.orm import Session

from models.usuario import Usuario, FiltroLider
from models.persona import Persona
from models.confirmacion import VotoConfirmacion
from schemas.usuario import FiltroCreate, FiltroUpdate
from services.usuario_service import build_usuario, apply_usuario_update
from utils.permissions import RoleGroups, ensure_role
from enums.roles import Role, FILTRO_ROLES

logger = logging.getLogger(__name__)

_FILTRO_ROLE_VALUES = [r.value for r in FILTRO_ROLES]


# ========= Helpers =========

def _lideres_count_subq():
    return (
        select(FiltroLider.filtro_id.label("filtro_id"), func.count(FiltroLider.lider_id).label("lideres_count"))
        .group_by(FiltroLider.filtro_id)
        .subquery()
    )


def _get_coordinador(db: Session, coordinador_id: int | None) -> Usuario:
    if not coordinador_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El coordinador es obligatorio")
    coordinador = db.get(Usuario, coordinador_id)
    if not coordinador or coordinador.role != Role.coordinador.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Coordinador no encontrado")
    return coordinador


def _validar_lideres(db: Session, lideres_ids: list[int], coordinador_id: int) -> None:
    """
    Raises:
        HTTPException 400: Si algún líder no existe o no pertenece al coordinador
    """
    stmt = select(func.count(Usuario.usuario_id)).where(
        Usuario.usuario_id.in_(lideres_ids),
        Usuario.role == Role.lider.value,
        Usuario.coordinador_id == coordinador_id,
    )
    if (db.scalar(stmt) or 0) != len(set(lideres_ids)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Todos los líderes deben pertenecer al coordinador seleccionado",
        )


def _asignados(db: Session, filtro_id: int) -> set[int]:
    stmt = select(FiltroLider.lider_id).where(FiltroLider.filtro_id == filtro_id)
    return set(db.scalars(stmt).all())


# ========= Selectores =========

def list_filtros(db: Session, user: Usuario, role: str | None = None) -> list[Usuario]:
    """
    Listar filtros visibles con el conteo de líderes asignados.

    Args:
        role: 'validador' o 'confirmador' (opcional)
    """
    ensure_role(user, RoleGroups.GESTIONAN_ESTRUCTURA)
    counts = _lideres_count_subq()
    stmt = (
        select(Usuario, func.coalesce(counts.c.lideres_count, 0))
        .outerjoin(counts, counts.c.filtro_id == Usuario.usuario_id)
        .where(Usuario.role.in_(_FILTRO_ROLE_VALUES))
    )
    if role:
        if role not in _FILTRO_ROLE_VALUES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El rol debe ser validador o confirmador",
            )
        stmt = stmt.where(Usuario.role == role)
    if user.role == Role.coordinador.value:
        stmt = stmt.where(Usuario.coordinador_id == user.usuario_id)

    result = []
    for filtro, lideres_count in db.execute(stmt.order_by(Usuario.created_at.desc(), Usuario.usuario_id.desc())):
        filtro.lideres_count = lideres_count
        result.append(filtro)
    return result


def get_filtro_visible(db: Session, user: Usuario, filtro_id: int) -> Usuario:
    """
    Raises:
        HTTPException 404: Si no existe, no es filtro o es de otro coordinador
    """
    ensure_role(user, RoleGroups.GESTIONAN_ESTRUCTURA)
    filtro = db.get(Usuario, filtro_id)
    if (
        not filtro
        or filtro.role not in _FILTRO_ROLE_VALUES
        or (user.role == Role.coordinador.value and filtro.coordinador_id != user.usuario_id)
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Filtro no encontrado")
    filtro.lideres_count = len(_asignados(db, filtro_id))
    return filtro


def list_asignaciones(db: Session, user: Usuario, filtro_id: int) -> list[FiltroLider]:
    get_filtro_visible(db, user, filtro_id)
    stmt = (
        select(FiltroLider)
        .where(FiltroLider.filtro_id == filtro_id)
        .order_by(FiltroLider.asignado_at.desc(), FiltroLider.filtro_lider_id.desc())
    )
    return list(db.scalars(stmt).all())


def get_filtro_detalle(db: Session, user: Usuario, filtro_id: int) -> Usuario:
    filtro = get_filtro_visible(db, user, filtro_id)
    filtro.lideres = list_asignaciones(db, user, filtro_id)
    return filtro


# ========= Mutaciones =========

def create_filtro(db: Session, user: Usuario, payload: FiltroCreate) -> Usuario:
    """
    Crear validador o confirmador con sus líderes asignados.

    - Coordinador: el filtro queda bajo él
    - El candidato se hereda del coordinador
    """
    ensure_role(user, RoleGroups.GESTIONAN_ESTRUCTURA, "No autorizado para crear filtros")
    data = payload.model_dump()
    role = Role(data.pop("role"))
    lideres_ids = data.pop("lideres_ids")

    if user.role == Role.coordinador.value:
        data["coordinador_id"] = user.usuario_id
    coordinador = _get_coordinador(db, data.get("coordinador_id"))
    _validar_lideres(db, lideres_ids, coordinador.usuario_id)
    data["candidato_id"] = coordinador.candidato_id

    filtro, _ = build_usuario(db, data, role)
    db.flush()
    for lider_id in lideres_ids:
        db.add(FiltroLider(filtro_id=filtro.usuario_id, lider_id=lider_id))
    db.commit()
    logger.info("Filtro %s creado (%s) con %d líderes", filtro.usuario_id, role.value, len(lideres_ids))
    return get_filtro_detalle(db, user, filtro.usuario_id)


def update_filtro(db: Session, user: Usuario, filtro_id: int, payload: FiltroUpdate) -> Usuario:
    """
    Actualizar filtro. Si vienen lideres_ids, reemplazan las asignaciones.

    - Solo admin puede cambiar el coordinador
    """
    filtro = get_filtro_visible(db, user, filtro_id)
    data = payload.model_dump(exclude_unset=True)
    lideres_ids = data.pop("lideres_ids", None)

    nuevo_coordinador = data.pop("coordinador_id", None)
    if nuevo_coordinador and nuevo_coordinador != filtro.coordinador_id:
        if user.role != Role.admin.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo un administrador puede cambiar el coordinador",
            )
        coordinador = _get_coordinador(db, nuevo_coordinador)
        if lideres_ids is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Al cambiar el coordinador debe asignar líderes del nuevo coordinador",
            )
        filtro.coordinador_id = coordinador.usuario_id
        filtro.candidato_id = coordinador.candidato_id
    data.pop("candidato_id", None)

    if lideres_ids is not None:
        if not lideres_ids:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Debe asignar al menos un líder",
            )
        _validar_lideres(db, lideres_ids, filtro.coordinador_id)
        db.execute(delete(FiltroLider).where(FiltroLider.filtro_id == filtro_id))
        for lider_id in lideres_ids:
            db.add(FiltroLider(filtro_id=filtro_id, lider_id=lider_id))

    apply_usuario_update(db, filtro, data)
    db.add(filtro)
    db.commit()
    return get_filtro_detalle(db, user, filtro_id)


def delete_filtro(db: Session, user: Usuario, filtro_id: int) -> None:
    """
    Eliminar filtro.

    Raises:
        HTTPException 400: Si ya validó o confirmó personas
    """
    filtro = get_filtro_visible(db, user, filtro_id)

    actuadas = db.scalar(
        select(func.count(Persona.persona_id)).where(
            or_(Persona.validado_por_id == filtro_id, Persona.confirmado_estado_por_id == filtro_id)
        )
    )
    votos = db.scalar(
        select(func.count(VotoConfirmacion.confirmacion_id)).where(VotoConfirmacion.confirmado_por_id == filtro_id)
    )
    if actuadas or votos:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se puede eliminar el filtro porque ya validó o confirmó personas",
        )

    db.execute(delete(FiltroLider).where(FiltroLider.filtro_id == filtro_id))
    db.delete(filtro)
    db.commit()
    logger.info("Filtro eliminado: %s por usuario %s", filtro_id, user.usuario_id)


def asignar_lideres(db: Session, user: Usuario, filtro_id: int, lideres_ids: list[int]) -> int:
    """
    Agrega asignaciones omitiendo las existentes.

    Returns:
        Cantidad de líderes nuevos asignados

    Raises:
        HTTPException 400: Si todos ya estaban asignados
    """
    filtro = get_filtro_visible(db, user, filtro_id)
    _validar_lideres(db, lideres_ids, filtro.coordinador_id)

    existentes = _asignados(db, filtro_id)
    nuevos = [lid for lid in dict.fromkeys(lideres_ids) if lid not in existentes]
    if not nuevos:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Todos los líderes ya están asignados a este filtro",
        )
    for lider_id in nuevos:
        db.add(FiltroLider(filtro_id=filtro_id, lider_id=lider_id))
    db.commit()
    return len(nuevos)


def desasignar_lider(db: Session, user: Usuario, filtro_id: int, lider_id: int) -> None:
    get_filtro_visible(db, user, filtro_id)
    stmt = select(FiltroLider).where(FiltroLider.filtro_id == filtro_id, FiltroLider.lider_id == lider_id)
    asignacion = db.scalars(stmt).first()
    if not asignacion:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asignación no encontrada")
    db.delete(asignacion)
    db.commit()
