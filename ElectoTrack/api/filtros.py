# api/filtros.py
"""
Validadores y confirmadores ("filtros") con sus líderes asignados.
Solo admin y coordinadores; el coordinador ve únicamente los suyos.
"""
from typing import Literal

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user
from schemas.common import Msg
from schemas.usuario import (
    FiltroCreate,
    FiltroUpdate,
    FiltroOut,
    FiltroDetalleOut,
    LiderAsignadoOut,
    AsignarLideresIn,
    AsignarLideresOut,
)
from services.filtro_service import (
    list_filtros,
    get_filtro_detalle,
    create_filtro,
    update_filtro,
    delete_filtro,
    list_asignaciones,
    asignar_lideres,
    desasignar_lider,
)
from models.usuario import Usuario

router = APIRouter(prefix="/filtros", tags=["filtros"])


@router.get("", response_model=list[FiltroOut], summary="Listar validadores / confirmadores")
def list_all(
    role: Literal["validador", "confirmador"] | None = Query(None),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return list_filtros(db, user, role=role)


@router.post(
    "",
    response_model=FiltroDetalleOut,
    status_code=status.HTTP_201_CREATED,
    summary="Crear filtro",
    description=(
        "- `role`: validador o confirmador\n"
        "- `coordinador_id` obligatorio para admin; el coordinador se asigna a sí mismo\n"
        "- `lideres_ids`: al menos uno, todos del coordinador\n"
        "- El candidato se hereda del coordinador"
    )
)
def create(payload: FiltroCreate, db: Session = Depends(get_db), user: Usuario = Depends(get_current_user)):
    return create_filtro(db, user, payload)


@router.get("/{filtro_id}", response_model=FiltroDetalleOut)
def get_one(
    filtro_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return get_filtro_detalle(db, user, filtro_id)


@router.put("/{filtro_id}", response_model=FiltroDetalleOut)
def update(
    payload: FiltroUpdate,
    filtro_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return update_filtro(db, user, filtro_id, payload)


@router.delete("/{filtro_id}", response_model=Msg)
def delete(
    filtro_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    delete_filtro(db, user, filtro_id)
    return {"message": "Filtro eliminado correctamente"}


@router.get("/{filtro_id}/lideres", response_model=list[LiderAsignadoOut])
def get_lideres(
    filtro_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return list_asignaciones(db, user, filtro_id)


@router.post("/{filtro_id}/lideres", response_model=AsignarLideresOut)
def add_lideres(
    payload: AsignarLideresIn,
    filtro_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    asignados = asignar_lideres(db, user, filtro_id, payload.lideres_ids)
    return {"message": f"{asignados} líder(es) asignado(s)", "asignados": asignados}


@router.delete("/{filtro_id}/lideres", response_model=Msg)
def remove_lider(
    filtro_id: int = Path(..., gt=0),
    lider_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    desasignar_lider(db, user, filtro_id, lider_id)
    return {"message": "Líder desasignado correctamente"}
