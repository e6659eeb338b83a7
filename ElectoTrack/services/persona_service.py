# services/persona_service.py
"""
Registro y consulta de personas con visibilidad por rol.

Visibilidad (ver utils.permissions.registradores_visibles):
- admin / consultor: todas
- coordinador: las de sus líderes y las propias
- líder: solo las propias
- validador / confirmador: las de sus líderes asignados
"""
import logging
import math

from fastapi import HTTPException, status
from sqlalchemy import select, func, or_, and_, not_, exists
from sqlalchemy.orm import Session

from config.settings import settings
from models.persona import Persona
from models.novedad import Novedad
from models.confirmacion import VotoConfirmacion
from models.usuario import Usuario
from models.candidato import Candidato
from schemas.persona import PersonaCreate, PersonaUpdate
from services.documento_registry import DocumentoRegistry
from services.storage_service import StorageClient
from services.usuario_service import ensure_catalogos, get_default_candidato_id
from utils.permissions import (
    RoleGroups,
    apply_persona_visibility,
    can_access_persona,
    ensure_role,
    lideres_ids_de_coordinador,
)
from enums.enums import PersonaEstadoEnum, SituacionEnum
from enums.roles import Role

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


# ========= Expresiones SQL =========

def confirmacion_activa_expr():
    """EXISTS de una confirmación de voto no reversada para la persona."""
    return exists().where(
        VotoConfirmacion.persona_id == Persona.persona_id,
        VotoConfirmacion.reversado.is_(False),
    )


def datos_faltantes_expr():
    conds = [
        Persona.puesto_votacion_id.is_(None),
        Persona.mesa_votacion.is_(None),
        Persona.mesa_votacion == "",
    ]
    if settings.FECHA_EXPEDICION_REQUIRED:
        conds.append(Persona.fecha_expedicion.is_(None))
    return or_(*conds)


def situacion_expr(situacion: SituacionEnum):
    faltantes = datos_faltantes_expr()
    if situacion == SituacionEnum.missing_data:
        return faltantes
    if situacion == SituacionEnum.confirmed:
        return and_(not_(faltantes), confirmacion_activa_expr())
    return and_(not_(faltantes), not_(confirmacion_activa_expr()))


# ========= Selectores =========

def build_personas_query(
    db: Session,
    user: Usuario,
    puesto_votacion_id: int | None = None,
    numero_documento: str | None = None,
    lider_id: int | None = None,
    estado: PersonaEstadoEnum | None = None,
    situacion: SituacionEnum | None = None,
):
    """
    Statement de personas visibles con filtros aplicados (sin orden ni paginación).

    lider_id solo se aplica para admin.
    """
    stmt = apply_persona_visibility(db, select(Persona), user)

    if puesto_votacion_id is not None:
        stmt = stmt.where(Persona.puesto_votacion_id == puesto_votacion_id)
    if numero_documento:
        stmt = stmt.where(Persona.numero_documento.ilike(f"%{numero_documento.strip()}%"))
    if lider_id is not None and user.role == Role.admin.value:
        stmt = stmt.where(Persona.registrado_por_id == lider_id)
    if estado is not None:
        stmt = stmt.where(Persona.estado == estado.value)
    if situacion is not None:
        stmt = stmt.where(situacion_expr(situacion))
    return stmt


def list_personas(
    db: Session,
    user: Usuario,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    **filters,
) -> dict:
    """
    Listar personas visibles, más recientes primero.

    Returns:
        dict con data, total, page, limit y totalPages
    """
    limit = max(1, min(limit, MAX_LIMIT))
    page = max(1, page)
    stmt = build_personas_query(db, user, **filters)

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    items = db.scalars(
        stmt.order_by(Persona.created_at.desc(), Persona.persona_id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return {
        "data": list(items),
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if total else 0,
    }


def count_novedades_activas(db: Session, persona_id: int) -> int:
    stmt = select(func.count(Novedad.novedad_id)).where(
        Novedad.persona_id == persona_id, Novedad.resuelta.is_(False)
    )
    return db.scalar(stmt) or 0


def get_persona(db: Session, persona_id: int) -> Persona:
    persona = db.get(Persona, persona_id)
    if not persona:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Persona no encontrada")
    return persona


def get_persona_visible(db: Session, user: Usuario, persona_id: int) -> Persona:
    """
    Devuelve la persona si el usuario tiene visibilidad sobre ella.

    Raises:
        HTTPException 404: Si no existe o no es visible (no se revela existencia)
    """
    persona = get_persona(db, persona_id)
    if not can_access_persona(db, user, persona):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Persona no encontrada")
    return persona


def get_persona_detalle(db: Session, user: Usuario, persona_id: int) -> Persona:
    persona = get_persona_visible(db, user, persona_id)
    persona.novedades_activas = count_novedades_activas(db, persona_id)
    return persona


# ========= Helpers de mutación =========

def _ensure_documento_disponible(db: Session, numero_documento: str, exclude_id: int | None = None) -> None:
    stmt = select(Persona.persona_id).where(Persona.numero_documento == numero_documento)
    if exclude_id is not None:
        stmt = stmt.where(Persona.persona_id != exclude_id)
    if db.scalars(stmt).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ya existe una persona registrada con este número de documento",
        )


def _resolve_registrador(db: Session, user: Usuario, registrado_por: int | None) -> int:
    """
    Determina quién queda como registrador.

    - Coordinador: puede asignar a uno de sus líderes
    - Admin: puede asignar a cualquier líder o coordinador
    - Resto: siempre el usuario autenticado
    """
    if not registrado_por or registrado_por == user.usuario_id:
        return user.usuario_id

    if user.role == Role.coordinador.value:
        if registrado_por not in lideres_ids_de_coordinador(db, user.usuario_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo puede asignar personas a sus propios líderes",
            )
        return registrado_por

    if user.role == Role.admin.value:
        target = db.get(Usuario, registrado_por)
        if not target or target.role not in (Role.lider.value, Role.coordinador.value):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El registrador debe ser un líder o coordinador",
            )
        return registrado_por

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="No autorizado para asignar el registrador",
    )


def ensure_persona_editable(db: Session, user: Usuario, persona: Persona) -> None:
    """
    Admin edita todo; coordinador las de su estructura; líder las propias.

    Raises:
        HTTPException 403: Consultor y filtros, o persona fuera de alcance
    """
    if user.role == Role.consultor.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No autorizado: los consultores no pueden modificar registros",
        )
    ensure_role(user, RoleGroups.REGISTRAN_PERSONAS, "No autorizado para modificar personas")
    if not can_access_persona(db, user, persona):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para modificar esta persona",
        )


def campana_de(db: Session, registrador_id: int) -> str | None:
    """Nombre del candidato al que trabaja el registrador (place en el registro externo)."""
    registrador = db.get(Usuario, registrador_id)
    candidato_id = (registrador.candidato_id if registrador else None) or get_default_candidato_id(db)
    if candidato_id is None:
        return None
    candidato = db.get(Candidato, candidato_id)
    return candidato.nombre_completo if candidato else None


def ensure_documento_libre_en_registro(registry: DocumentoRegistry | None, numero_documento: str) -> None:
    """
    Raises:
        HTTPException 400: Si otra campaña ya registró el documento
    """
    if registry is None:
        return
    info = registry.get_document_info(numero_documento)
    if info is not None:
        place = info.get("place") or "otra campaña"
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"El documento ya está registrado por {place}",
        )


# ========= Mutaciones =========

def create_persona(
    db: Session,
    user: Usuario,
    payload: PersonaCreate,
    registry: DocumentoRegistry | None = None,
) -> Persona:
    ensure_role(user, RoleGroups.REGISTRAN_PERSONAS, "No autorizado para registrar personas")
    data = payload.model_dump()
    registrado_por = data.pop("registrado_por", None)

    _ensure_documento_disponible(db, data["numero_documento"])
    ensure_catalogos(db, data.get("barrio_id"), data.get("puesto_votacion_id"))
    registrador_id = _resolve_registrador(db, user, registrado_por)
    ensure_documento_libre_en_registro(registry, data["numero_documento"])

    data["tipo_documento"] = data["tipo_documento"].value
    persona = Persona(
        **data,
        registrado_por_id=registrador_id,
        estado=PersonaEstadoEnum.DATOS_PENDIENTES.value,
    )
    db.add(persona)
    db.commit()
    db.refresh(persona)
    logger.info("Persona %s registrada por %s", persona.persona_id, registrador_id)

    if registry is not None:
        registry.create_person(persona.numero_documento, campana_de(db, registrador_id), str(registrador_id))
    return persona


def update_persona(db: Session, user: Usuario, persona_id: int, payload: PersonaUpdate) -> Persona:
    persona = get_persona_visible(db, user, persona_id)
    ensure_persona_editable(db, user, persona)

    data = payload.model_dump(exclude_unset=True)
    registrado_por = data.pop("registrado_por", None)

    if data.get("numero_documento") and data["numero_documento"] != persona.numero_documento:
        _ensure_documento_disponible(db, data["numero_documento"], exclude_id=persona_id)
    ensure_catalogos(db, data.get("barrio_id"), data.get("puesto_votacion_id"))

    if registrado_por and registrado_por != persona.registrado_por_id:
        if user.role not in RoleGroups.GESTIONAN_ESTRUCTURA:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No autorizado para reasignar el registrador",
            )
        persona.registrado_por_id = _resolve_registrador(db, user, registrado_por)

    for field, value in data.items():
        if value is None and field in ("nombres", "apellidos", "numero_documento", "tipo_documento"):
            continue
        setattr(persona, field, getattr(value, "value", value))

    db.add(persona)
    db.commit()
    db.refresh(persona)
    return persona


def delete_persona(
    db: Session,
    user: Usuario,
    persona_id: int,
    storage: StorageClient | None = None,
    registry: DocumentoRegistry | None = None,
) -> None:
    """
    Elimina la persona con sus novedades y confirmaciones.

    Las imágenes de confirmación y el registro externo se limpian en modo best effort.
    """
    persona = get_persona_visible(db, user, persona_id)
    ensure_persona_editable(db, user, persona)

    imagenes = [c.imagen_path for c in persona.confirmaciones if c.imagen_path]
    numero_documento = persona.numero_documento

    db.delete(persona)
    db.commit()
    logger.info("Persona %s eliminada por usuario %s", persona_id, user.usuario_id)

    if storage is not None:
        for path in imagenes:
            storage.delete(path)
    if registry is not None:
        registry.delete_person(numero_documento)
