# api/personas.py
"""
API de personas (votantes registrados) y su flujo de estados.
"""
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user
from schemas.common import Msg
from schemas.novedad import NovedadOut
from schemas.persona import (
    PersonaCreate,
    PersonaUpdate,
    PersonaOut,
    PersonaDetalleOut,
    PersonaListOut,
    TransicionOut,
)
from services.persona_service import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    list_personas,
    get_persona_detalle,
    create_persona,
    update_persona,
    delete_persona,
)
from services.estado_service import verificar_persona, confirmar_estado_persona, reversar_estado_persona
from services.novedad_service import list_novedades_persona
from services.documento_registry import DocumentoRegistry, get_registry
from services.storage_service import StorageClient, get_optional_storage
from models.usuario import Usuario
from enums.enums import PersonaEstadoEnum, SituacionEnum

router = APIRouter(prefix="/personas", tags=["personas"])


@router.get(
    "",
    response_model=PersonaListOut,
    summary="Listar personas",
    description=(
        "Lista paginada de las personas visibles para el usuario, más recientes primero.\n\n"
        "**Visibilidad:**\n"
        "- Admin / consultor: todas\n"
        "- Coordinador: las de sus líderes y las propias\n"
        "- Líder: solo las propias\n"
        "- Validador / confirmador: las de sus líderes asignados\n\n"
        "**Filtros:** puesto, documento (contiene), líder (solo admin), estado y situación."
    )
)
def list_all(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    puesto_votacion_id: int | None = Query(None, gt=0),
    numero_documento: str | None = Query(None, max_length=30),
    lider_id: int | None = Query(None, gt=0, description="Solo aplica para admin"),
    estado: PersonaEstadoEnum | None = Query(None),
    situacion: SituacionEnum | None = Query(None),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return list_personas(
        db, user, page=page, limit=limit,
        puesto_votacion_id=puesto_votacion_id,
        numero_documento=numero_documento,
        lider_id=lider_id,
        estado=estado,
        situacion=situacion,
    )


@router.post(
    "",
    response_model=PersonaOut,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar persona",
    description=(
        "- Documento único\n"
        "- `registrado_por`: coordinador puede asignar a uno de sus líderes; admin a cualquier líder o coordinador\n"
        "- El estado inicial es DATOS_PENDIENTES\n"
        "- Si el registro documental está habilitado, el documento no puede pertenecer a otra campaña"
    )
)
def create(
    payload: PersonaCreate,
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
    registry: DocumentoRegistry | None = Depends(get_registry),
):
    return create_persona(db, user, payload, registry=registry)


@router.get("/{persona_id}", response_model=PersonaDetalleOut)
def get_one(
    persona_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return get_persona_detalle(db, user, persona_id)


@router.put("/{persona_id}", response_model=PersonaOut)
def update(
    payload: PersonaUpdate,
    persona_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return update_persona(db, user, persona_id, payload)


@router.delete("/{persona_id}", response_model=Msg)
def delete(
    persona_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
    storage: StorageClient | None = Depends(get_optional_storage),
    registry: DocumentoRegistry | None = Depends(get_registry),
):
    delete_persona(db, user, persona_id, storage=storage, registry=registry)
    return {"message": "Persona eliminada correctamente"}


# ========= Flujo de estados =========

def _transicion_out(message: str, persona, estado_anterior: str) -> dict:
    return {
        "message": message,
        "estado_anterior": estado_anterior,
        "estado_nuevo": persona.estado,
        "persona": persona,
    }


@router.post(
    "/{persona_id}/verificar",
    response_model=TransicionOut,
    summary="Verificar datos",
    description="Validador o admin. La persona debe estar en DATOS_PENDIENTES o CON_NOVEDAD sin novedad activa."
)
def verificar(
    persona_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    persona, anterior = verificar_persona(db, user, persona_id)
    return _transicion_out("Persona verificada correctamente", persona, anterior)


@router.post(
    "/{persona_id}/confirmar-estado",
    response_model=TransicionOut,
    summary="Confirmar estado",
    description="Confirmador o admin. La persona debe estar en VERIFICADO o DATOS_PENDIENTES sin novedad activa."
)
def confirmar_estado(
    persona_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    persona, anterior = confirmar_estado_persona(db, user, persona_id)
    return _transicion_out("Estado confirmado correctamente", persona, anterior)


@router.post(
    "/{persona_id}/reversar-estado",
    response_model=TransicionOut,
    summary="Reversar estado",
    description=(
        "Retrocede un paso en el flujo:\n\n"
        "- COMPLETADO → CONFIRMADO (reversa la confirmación de voto activa)\n"
        "- CONFIRMADO → VERIFICADO\n"
        "- VERIFICADO → DATOS_PENDIENTES\n"
        "- CON_NOVEDAD → DATOS_PENDIENTES (sin novedad activa)"
    )
)
def reversar_estado(
    persona_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    persona, anterior = reversar_estado_persona(db, user, persona_id)
    return _transicion_out("Estado reversado correctamente", persona, anterior)


@router.get("/{persona_id}/novedades", response_model=list[NovedadOut])
def get_novedades(
    persona_id: int = Path(..., gt=0),
    activas: bool | None = Query(None),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return list_novedades_persona(db, user, persona_id, activas=activas)
