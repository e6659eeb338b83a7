# services/coordinador_service.py
import logging

from fastapi import HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.orm import Session, aliased

from models.usuario import Usuario
from models.persona import Persona
from schemas.usuario import CoordinadorCreate, CoordinadorUpdate
from services.usuario_service import (
    build_usuario,
    apply_usuario_update,
    get_default_candidato_id,
    get_usuario_con_rol,
)
from enums.roles import Role

logger = logging.getLogger(__name__)


def _lideres_count_subq():
    lider = aliased(Usuario)
    return (
        select(lider.coordinador_id.label("coordinador_id"), func.count(lider.usuario_id).label("lideres_count"))
        .where(lider.role == Role.lider.value)
        .group_by(lider.coordinador_id)
        .subquery()
    )


def list_coordinadores(db: Session) -> list[Usuario]:
    """
    Listar coordinadores con el conteo de sus líderes.

    Returns:
        Lista de usuarios con el atributo adicional 'lideres_count'
    """
    counts = _lideres_count_subq()
    stmt = (
        select(Usuario, func.coalesce(counts.c.lideres_count, 0))
        .outerjoin(counts, counts.c.coordinador_id == Usuario.usuario_id)
        .where(Usuario.role == Role.coordinador.value)
        .order_by(Usuario.created_at.desc(), Usuario.usuario_id.desc())
    )
    result = []
    for coordinador, lideres_count in db.execute(stmt).all():
        coordinador.lideres_count = lideres_count
        result.append(coordinador)
    return result


def get_coordinador(db: Session, coordinador_id: int) -> Usuario:
    coordinador = get_usuario_con_rol(db, coordinador_id, Role.coordinador, "Coordinador no encontrado")
    stmt = select(func.count(Usuario.usuario_id)).where(
        Usuario.role == Role.lider.value, Usuario.coordinador_id == coordinador_id
    )
    coordinador.lideres_count = db.scalar(stmt) or 0
    return coordinador


def create_coordinador(db: Session, payload: CoordinadorCreate) -> Usuario:
    """
    Crear coordinador.

    - Email por defecto: {documento}@dominio del sistema
    - Password por defecto: el número de documento
    - Sin candidato explícito se asigna el candidato por defecto
    """
    data = payload.model_dump()
    if not data.get("candidato_id"):
        data["candidato_id"] = get_default_candidato_id(db)

    coordinador, _ = build_usuario(db, data, Role.coordinador)
    db.commit()
    db.refresh(coordinador)
    coordinador.lideres_count = 0
    logger.info("Coordinador creado: %s (%s)", coordinador.usuario_id, coordinador.numero_documento)
    return coordinador


def update_coordinador(db: Session, coordinador_id: int, payload: CoordinadorUpdate) -> Usuario:
    coordinador = get_usuario_con_rol(db, coordinador_id, Role.coordinador, "Coordinador no encontrado")
    apply_usuario_update(db, coordinador, payload.model_dump(exclude_unset=True))
    db.add(coordinador)
    db.commit()
    return get_coordinador(db, coordinador_id)


def delete_coordinador(db: Session, coordinador_id: int) -> None:
    """
    Eliminar coordinador.

    Raises:
        HTTPException 400: Si tiene personas registradas o líderes asignados
    """
    coordinador = get_usuario_con_rol(db, coordinador_id, Role.coordinador, "Coordinador no encontrado")

    personas = db.scalar(
        select(func.count(Persona.persona_id)).where(Persona.registrado_por_id == coordinador_id)
    )
    if personas:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se puede eliminar el coordinador porque tiene personas registradas",
        )

    lideres = db.scalar(
        select(func.count(Usuario.usuario_id)).where(
            Usuario.role == Role.lider.value, Usuario.coordinador_id == coordinador_id
        )
    )
    if lideres:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se puede eliminar el coordinador porque tiene líderes asignados",
        )

    db.delete(coordinador)
    db.commit()
    logger.info("Coordinador eliminado: %s", coordinador_id)
