from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user, require_roles
from schemas.dashboard import (
    DashboardStats,
    DepartamentoItem,
    LiderItem,
    RepresentanteItem,
    VotosDepartamentoItem,
)
from services.dashboard_service import (
    get_stats,
    chart_departamentos,
    chart_lideres,
    chart_representantes,
    chart_votos_departamentos,
)
from models.usuario import Usuario
from enums.roles import Role

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

lectura_global = require_roles(Role.admin, Role.consultor, detail="Solo administradores y consultores")


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Totales del usuario",
    description="Conteos sobre las personas visibles. Confirmada = tiene confirmación de voto no reversada."
)
def stats(db: Session = Depends(get_db), user: Usuario = Depends(get_current_user)):
    return get_stats(db, user)


@router.get("/charts/departamentos", response_model=list[DepartamentoItem])
def departamentos(db: Session = Depends(get_db), user: Usuario = Depends(lectura_global)):
    return chart_departamentos(db)


@router.get("/charts/lideres", response_model=list[LiderItem])
def lideres(db: Session = Depends(get_db), user: Usuario = Depends(lectura_global)):
    return chart_lideres(db)


@router.get("/charts/representantes", response_model=list[RepresentanteItem])
def representantes(db: Session = Depends(get_db), user: Usuario = Depends(lectura_global)):
    return chart_representantes(db)


@router.get("/charts/votos-departamentos", response_model=list[VotosDepartamentoItem])
def votos_departamentos(db: Session = Depends(get_db), user: Usuario = Depends(lectura_global)):
    return chart_votos_departamentos(db)
