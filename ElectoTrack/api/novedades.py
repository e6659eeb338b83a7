from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user
from schemas.novedad import NovedadCreate, NovedadResolver, NovedadOut, NovedadCreadaOut
from services.novedad_service import create_novedad, resolver_novedad, get_novedad
from models.usuario import Usuario

router = APIRouter(prefix="/novedades", tags=["novedades"])


@router.post(
    "",
    response_model=NovedadCreadaOut,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar novedad",
    description=(
        "Cualquier rol excepto consultor, con acceso a la persona.\n\n"
        "- Solo una novedad activa por persona\n"
        "- La persona pasa a CON_NOVEDAD y guarda su estado anterior"
    )
)
def create(payload: NovedadCreate, db: Session = Depends(get_db), user: Usuario = Depends(get_current_user)):
    novedad = create_novedad(db, user, payload)
    return {"message": "Novedad registrada correctamente", "novedad": novedad}


@router.get("/{novedad_id}", response_model=NovedadOut)
def get_one(
    novedad_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return get_novedad(db, user, novedad_id)


@router.post("/{novedad_id}/resolver", response_model=NovedadOut, summary="Resolver novedad")
def resolver(
    novedad_id: int = Path(..., gt=0),
    payload: NovedadResolver | None = None,
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return resolver_novedad(db, user, novedad_id, payload or NovedadResolver())
