from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user
from schemas.catalogo import BarrioOut, PuestoVotacionOut
from services.catalogo_service import list_barrios, list_puestos_votacion
from models.usuario import Usuario

router = APIRouter(tags=["catalogos"])


@router.get("/barrios", response_model=list[BarrioOut])
def get_barrios(db: Session = Depends(get_db), user: Usuario = Depends(get_current_user)):
    return list_barrios(db)


@router.get("/puestos-votacion", response_model=list[PuestoVotacionOut])
def get_puestos_votacion(db: Session = Depends(get_db), user: Usuario = Depends(get_current_user)):
    return list_puestos_votacion(db)
