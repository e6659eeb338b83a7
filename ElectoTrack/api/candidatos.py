# api/candidatos.py
"""
Candidatos (representantes) de la campaña.
Los endpoints de escritura reciben multipart/form-data por la imagen.
"""
from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import require_roles
from schemas.candidato import CandidatoOut, CandidatoPublicOut
from schemas.common import Msg
from services.candidato_service import (
    list_candidatos,
    get_candidato,
    create_candidato,
    update_candidato,
    delete_candidato,
)
from services.storage_service import StorageClient, get_optional_storage
from models.usuario import Usuario
from enums.roles import Role

router = APIRouter(prefix="/candidatos", tags=["candidatos"])

solo_admin = require_roles(Role.admin, detail="Solo administradores pueden gestionar candidatos")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@router.get(
    "/public",
    response_model=list[CandidatoPublicOut],
    summary="Candidatos (público)",
    description="No requiere autenticación. El candidato por defecto aparece primero."
)
def list_public(db: Session = Depends(get_db)):
    return list_candidatos(db)


@router.get("", response_model=list[CandidatoOut])
def list_all(db: Session = Depends(get_db), user: Usuario = Depends(solo_admin)):
    return list_candidatos(db)


@router.get("/{candidato_id}", response_model=CandidatoOut)
def get_one(
    candidato_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(solo_admin),
):
    return get_candidato(db, candidato_id)


@router.post(
    "",
    response_model=CandidatoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Crear candidato",
    description=(
        "Formulario multipart.\n\n"
        "- `imagen` opcional (image/*, máx. MAX_IMAGE_MB)\n"
        "- `numero_tarjeton` único\n"
        "- `es_por_defecto=true` desmarca al resto de candidatos"
    )
)
def create(
    nombre_completo: str = Form(..., min_length=1, max_length=150),
    numero_tarjeton: str = Form(..., min_length=1, max_length=20),
    partido_grupo: str | None = Form(None, max_length=150),
    es_por_defecto: bool = Form(False),
    imagen: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    storage: StorageClient | None = Depends(get_optional_storage),
    user: Usuario = Depends(solo_admin),
):
    data = {
        "nombre_completo": nombre_completo.strip(),
        "numero_tarjeton": numero_tarjeton.strip(),
        "partido_grupo": _clean(partido_grupo),
        "es_por_defecto": es_por_defecto,
    }
    return create_candidato(db, storage, data, imagen=imagen)


@router.put("/{candidato_id}", response_model=CandidatoOut, summary="Actualizar candidato")
def update(
    candidato_id: int = Path(..., gt=0),
    nombre_completo: str | None = Form(None, max_length=150),
    numero_tarjeton: str | None = Form(None, max_length=20),
    partido_grupo: str | None = Form(None, max_length=150),
    es_por_defecto: bool | None = Form(None),
    remove_imagen: bool = Form(False),
    imagen: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    storage: StorageClient | None = Depends(get_optional_storage),
    user: Usuario = Depends(solo_admin),
):
    data = {}
    if _clean(nombre_completo):
        data["nombre_completo"] = _clean(nombre_completo)
    if _clean(numero_tarjeton):
        data["numero_tarjeton"] = _clean(numero_tarjeton)
    if partido_grupo is not None:
        data["partido_grupo"] = _clean(partido_grupo)
    if es_por_defecto is not None:
        data["es_por_defecto"] = es_por_defecto
    return update_candidato(db, storage, candidato_id, data, imagen=imagen, remove_imagen=remove_imagen)


@router.delete("/{candidato_id}", response_model=Msg)
def delete(
    candidato_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    storage: StorageClient | None = Depends(get_optional_storage),
    user: Usuario = Depends(solo_admin),
):
    delete_candidato(db, storage, candidato_id)
    return {"message": "Candidato eliminado correctamente"}
