from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user, require_roles
from schemas.common import Msg
from schemas.usuario import CoordinadorCreate, CoordinadorUpdate, CoordinadorOut, LiderOut
from services.coordinador_service import (
    list_coordinadores,
    get_coordinador,
    create_coordinador,
    update_coordinador,
    delete_coordinador,
)
from services.lider_service import list_lideres_de_coordinador
from models.usuario import Usuario
from enums.roles import Role

router = APIRouter(prefix="/coordinadores", tags=["coordinadores"])

lectura = require_roles(Role.admin, Role.consultor)
solo_admin = require_roles(Role.admin, detail="Solo administradores pueden gestionar coordinadores")


@router.get("", response_model=list[CoordinadorOut], summary="Listar coordinadores")
def list_all(db: Session = Depends(get_db), user: Usuario = Depends(lectura)):
    return list_coordinadores(db)


@router.post(
    "",
    response_model=CoordinadorOut,
    status_code=status.HTTP_201_CREATED,
    summary="Crear coordinador",
    description=(
        "- Documento y correo únicos\n"
        "- Sin correo se usa `{documento}@sistema.local`; sin contraseña, el documento\n"
        "- Sin candidato se asigna el candidato por defecto"
    )
)
def create(payload: CoordinadorCreate, db: Session = Depends(get_db), user: Usuario = Depends(solo_admin)):
    return create_coordinador(db, payload)


@router.get("/{coordinador_id}", response_model=CoordinadorOut)
def get_one(
    coordinador_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(lectura),
):
    return get_coordinador(db, coordinador_id)


@router.put("/{coordinador_id}", response_model=CoordinadorOut)
def update(
    payload: CoordinadorUpdate,
    coordinador_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(solo_admin),
):
    return update_coordinador(db, coordinador_id, payload)


@router.delete("/{coordinador_id}", response_model=Msg)
def delete(
    coordinador_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(solo_admin),
):
    delete_coordinador(db, coordinador_id)
    return {"message": "Coordinador eliminado correctamente"}


@router.get("/{coordinador_id}/lideres", response_model=list[LiderOut], summary="Líderes de un coordinador")
def list_lideres(
    coordinador_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return list_lideres_de_coordinador(db, user, coordinador_id)
