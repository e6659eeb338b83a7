# services/confirmacion_service.py
"""
Confirmación de voto con evidencia fotográfica.

La persona debe estar CONFIRMADO; al registrar la foto pasa a COMPLETADO.
Reversar la confirmación la regresa a CONFIRMADO.
"""
import logging
import time

from fastapi import HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from models.confirmacion import VotoConfirmacion
from models.persona import Persona
from models.usuario import Usuario
from services.persona_service import get_persona, count_novedades_activas
from services.storage_service import StorageClient, ensure_storage, read_image
from utils.datetime_utils import now_local
from utils.permissions import RoleGroups, can_access_persona
from enums.enums import PersonaEstadoEnum
from enums.roles import Role

logger = logging.getLogger(__name__)


def _ensure_puede_confirmar(user: Usuario) -> None:
    if user.role == Role.consultor.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No autorizado: los consultores no pueden confirmar votos",
        )
    if user.role not in RoleGroups.CONFIRMAN_VOTO:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado para confirmar votos")


def _get_persona_accesible(db: Session, user: Usuario, persona_id: int) -> Persona:
    """Persona fuera del alcance del usuario se reporta como inexistente."""
    persona = get_persona(db, persona_id)
    if not can_access_persona(db, user, persona):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Persona no encontrada")
    return persona


def confirmar_voto(
    db: Session,
    user: Usuario,
    storage: StorageClient | None,
    persona_id: int,
    imagen: UploadFile,
) -> VotoConfirmacion:
    """
    Registra la evidencia de voto.

    Raises:
        HTTPException 403: Rol no permitido
        HTTPException 404: Persona inexistente o fuera de alcance
        HTTPException 415 / 413: Imagen inválida o muy grande
        HTTPException 400: Novedad activa, estado distinto de CONFIRMADO o ya confirmada
    """
    _ensure_puede_confirmar(user)
    persona = _get_persona_accesible(db, user, persona_id)
    data, ext = read_image(imagen)

    if count_novedades_activas(db, persona_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La persona tiene una novedad activa",
        )
    if persona.tiene_confirmacion_activa:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Esta persona ya tiene una confirmación activa",
        )
    if persona.estado != PersonaEstadoEnum.CONFIRMADO.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Solo se puede registrar el voto de personas en estado CONFIRMADO",
        )

    storage = ensure_storage(storage)
    ahora = now_local()
    path = f"confirmaciones/{persona_id}-{int(time.time() * 1000)}.{ext}"
    url = storage.upload(path, data, imagen.content_type)

    try:
        confirmacion = VotoConfirmacion(
            persona_id=persona_id,
            imagen_url=url,
            imagen_path=path,
            confirmado_por_id=user.usuario_id,
            confirmado_at=ahora,
        )
        persona.estado_anterior = persona.estado
        persona.estado = PersonaEstadoEnum.COMPLETADO.value
        db.add_all([confirmacion, persona])
        db.commit()
    except Exception:
        db.rollback()
        storage.delete(path)
        raise

    db.refresh(confirmacion)
    logger.info("Voto confirmado: persona %s por %s", persona_id, user.usuario_id)
    return confirmacion


def reversar_confirmacion(db: Session, user: Usuario, confirmacion_id: int) -> VotoConfirmacion:
    """
    Reversa una confirmación de voto. La imagen se conserva como evidencia.

    Raises:
        HTTPException 400: Si ya estaba reversada
    """
    _ensure_puede_confirmar(user)
    confirmacion = db.get(VotoConfirmacion, confirmacion_id)
    if not confirmacion:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Confirmación no encontrada")
    persona = _get_persona_accesible(db, user, confirmacion.persona_id)

    if confirmacion.reversado:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Esta confirmación ya fue reversada",
        )

    confirmacion.reversado = True
    confirmacion.reversado_por_id = user.usuario_id
    confirmacion.reversado_at = now_local()
    if persona.estado == PersonaEstadoEnum.COMPLETADO.value:
        persona.estado_anterior = persona.estado
        persona.estado = PersonaEstadoEnum.CONFIRMADO.value

    db.add_all([confirmacion, persona])
    db.commit()
    db.refresh(confirmacion)
    logger.info("Confirmación %s reversada por %s", confirmacion_id, user.usuario_id)
    return confirmacion
