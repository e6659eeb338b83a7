from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user
from schemas.confirmacion import ConfirmacionOut
from services.confirmacion_service import confirmar_voto, reversar_confirmacion
from services.storage_service import StorageClient, get_optional_storage
from models.usuario import Usuario

router = APIRouter(prefix="/confirmaciones", tags=["confirmaciones"])


@router.post(
    "",
    response_model=ConfirmacionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Confirmar voto con evidencia",
    description=(
        "Formulario multipart con `persona_id` e `imagen`.\n\n"
        "- La persona debe estar en CONFIRMADO y sin novedad activa\n"
        "- La imagen debe ser image/* y no superar MAX_IMAGE_MB\n"
        "- La persona pasa a COMPLETADO"
    )
)
def create(
    persona_id: int = Form(..., gt=0),
    imagen: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: StorageClient | None = Depends(get_optional_storage),
    user: Usuario = Depends(get_current_user),
):
    return confirmar_voto(db, user, storage, persona_id, imagen)


@router.post("/{confirmacion_id}/reversar", response_model=ConfirmacionOut, summary="Reversar confirmación")
def reversar(
    confirmacion_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return reversar_confirmacion(db, user, confirmacion_id)
