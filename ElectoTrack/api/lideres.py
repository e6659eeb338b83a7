from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user
from schemas.common import Msg
from schemas.usuario import LiderCreate, LiderUpdate, LiderOut, LiderCreadoOut
from services.lider_service import (
    list_lideres,
    get_lider_visible,
    create_lider,
    update_lider,
    delete_lider,
)
from services.importacion_service import exportar_lideres, xlsx_response
from models.usuario import Usuario

router = APIRouter(prefix="/lideres", tags=["lideres"])


@router.get(
    "",
    response_model=list[LiderOut],
    summary="Listar líderes",
    description=(
        "- Admin / consultor: todos (filtro opcional por `coordinador_id`)\n"
        "- Coordinador: solo los suyos\n"
        "- Cada líder incluye `personas_count`"
    )
)
def list_all(
    coordinador_id: int | None = Query(None, gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return list_lideres(db, user, coordinador_id=coordinador_id)


@router.get("/export", summary="Exportar líderes a Excel")
def export(db: Session = Depends(get_db), user: Usuario = Depends(get_current_user)):
    buffer, filename = exportar_lideres(list_lideres(db, user))
    return xlsx_response(buffer, filename)


@router.post(
    "",
    response_model=LiderCreadoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Crear líder",
    description=(
        "- Coordinador: el líder queda bajo él y hereda su candidato\n"
        "- Admin: puede indicar `coordinador_id`\n"
        "- Contraseña por defecto: `Lider` + últimos 4 dígitos del documento\n\n"
        "La respuesta incluye las credenciales generadas."
    )
)
def create(payload: LiderCreate, db: Session = Depends(get_db), user: Usuario = Depends(get_current_user)):
    lider, password = create_lider(db, user, payload)
    return {"lider": lider, "credenciales": {"email": lider.email, "password": password}}


@router.get("/{lider_id}", response_model=LiderOut)
def get_one(
    lider_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return get_lider_visible(db, user, lider_id)


@router.put("/{lider_id}", response_model=LiderOut)
def update(
    payload: LiderUpdate,
    lider_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return update_lider(db, user, lider_id, payload)


@router.delete("/{lider_id}", response_model=Msg)
def delete(
    lider_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    delete_lider(db, user, lider_id)
    return {"message": "Líder eliminado correctamente"}
