# services/auth_service.py
"""
Servicio de autenticación.
Login con correo o número de documento y generación de tokens JWT.
"""
from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from utils.security import verify_password, create_access_token
from utils.datetime_utils import now_local
from models.usuario import Usuario
from enums.roles import Role


def resolve_login_identity(db: Session, identity: str) -> Usuario | None:
    """
    Resuelve el usuario a partir de un correo o un número de documento.

    Si el identificador no contiene "@" se trata como documento.
    """
    identity = identity.strip()
    if "@" in identity:
        stmt = select(Usuario).where(func.lower(Usuario.email) == identity.lower())
    else:
        stmt = select(Usuario).where(Usuario.numero_documento == identity)
    return db.scalars(stmt).first()


def authenticate_user(db: Session, identity: str, password: str) -> Usuario:
    """
    Autenticar usuario con correo/documento y password.

    Args:
        db: Sesión de BD
        identity: Correo o número de documento
        password: Contraseña en texto plano

    Returns:
        Usuario autenticado

    Raises:
        HTTPException: Si credenciales inválidas o usuario inactivo
    """
    user = resolve_login_identity(db, identity)

    if not user or user.status != "a" or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales inválidas"
        )

    # Actualizar último login
    user.last_login_at = now_local()
    db.add(user)
    db.commit()
    db.refresh(user)

    return user


def issue_access_token(user: Usuario) -> str:
    """Generar token JWT para un usuario."""
    return create_access_token(user.usuario_id, user.role)


def role_flags(user: Usuario) -> dict:
    """Banderas de rol que usa el frontend para armar la navegación."""
    return {
        "usuario_id": user.usuario_id,
        "role": user.role,
        "is_admin": user.role == Role.admin.value,
        "is_coordinador": user.role == Role.coordinador.value,
        "is_lider": user.role == Role.lider.value,
        "is_filtro": user.is_filtro,
        "is_consultor": user.role == Role.consultor.value,
        "can_write": user.role != Role.consultor.value,
    }
