# api/importaciones.py
"""
Importación masiva de personas desde Excel y exportaciones.
"""
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user
from schemas.importacion import ImportacionResultado, ImportacionOut
from services.importacion_service import (
    importar_personas,
    list_importaciones,
    exportar_personas,
    plantilla_personas,
    xlsx_response,
)
from services.documento_registry import DocumentoRegistry, get_registry
from models.usuario import Usuario
from enums.enums import PersonaEstadoEnum, SituacionEnum

router = APIRouter(prefix="/importaciones", tags=["importaciones"])


@router.post(
    "",
    response_model=ImportacionResultado,
    summary="Importar personas desde Excel",
    description=(
        "Admin, coordinador o líder. Archivo `.xlsx` con la estructura de la plantilla.\n\n"
        "- Columnas detectadas por nombre (sin tildes ni mayúsculas)\n"
        "- Documentos repetidos en el archivo → 400\n"
        "- Personas existentes sin confirmación: se actualiza puesto y mesa\n"
        "- Personas con confirmación activa: se omiten"
    )
)
def importar(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
    registry: DocumentoRegistry | None = Depends(get_registry),
):
    return importar_personas(db, user, file, registry=registry)


@router.get("", response_model=list[ImportacionOut], summary="Historial de importaciones")
def historial(db: Session = Depends(get_db), user: Usuario = Depends(get_current_user)):
    return list_importaciones(db, user)


@router.get("/export", summary="Exportar personas visibles a Excel")
def export(
    puesto_votacion_id: int | None = Query(None, gt=0),
    numero_documento: str | None = Query(None, max_length=30),
    lider_id: int | None = Query(None, gt=0),
    estado: PersonaEstadoEnum | None = Query(None),
    situacion: SituacionEnum | None = Query(None),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    buffer, filename = exportar_personas(
        db, user,
        puesto_votacion_id=puesto_votacion_id,
        numero_documento=numero_documento,
        lider_id=lider_id,
        estado=estado,
        situacion=situacion,
    )
    return xlsx_response(buffer, filename)


@router.get("/template", summary="Plantilla de importación")
def template(user: Usuario = Depends(get_current_user)):
    buffer, filename = plantilla_personas()
    return xlsx_response(buffer, filename)
