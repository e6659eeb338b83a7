from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.security import oauth2_scheme, decode_usuario_id
from models.usuario import Usuario
from enums.roles import Role

def get_current_user(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> Usuario:
    """
    Usuario autenticado por el token Bearer.

    Raises:
        HTTPException 401: Token inválido / expirado, o usuario inexistente o inactivo
    """
    user_id = decode_usuario_id(token)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido o expirado")
    user = db.get(Usuario, user_id)
    if not user or user.status != "a":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuario no encontrado o inactivo")
    return user


def require_roles(*roles: Role, detail: str = "No autorizado"):
    """
    Dependencia que exige que el usuario autenticado tenga alguno de los roles.

    Uso:
        user: Usuario = Depends(require_roles(Role.admin, Role.coordinador))
    """
    allowed = {r.value for r in roles}

    def _dependency(user: Usuario = Depends(get_current_user)) -> Usuario:
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return user

    return _dependency
