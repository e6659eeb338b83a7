from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user
from schemas.usuario import UsuarioOut, PerfilUpdate
from services.usuario_service import update_perfil
from models.usuario import Usuario

router = APIRouter(prefix="/perfil", tags=["perfil"])


@router.get("", response_model=UsuarioOut, summary="Perfil propio")
def get_perfil(user: Usuario = Depends(get_current_user)):
    return user


@router.put(
    "",
    response_model=UsuarioOut,
    summary="Actualizar perfil propio",
    description=(
        "Actualiza los datos personales del usuario autenticado.\n\n"
        "- Rol, documento y coordinador no se modifican desde aquí.\n"
        "- Para cambiar la contraseña envíe `current_password` y `new_password` (mín. 6 caracteres)."
    )
)
def put_perfil(
    payload: PerfilUpdate,
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    return update_perfil(db, user, payload)
