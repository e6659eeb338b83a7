# utils/security.py
"""
Contraseñas (bcrypt vía passlib) y tokens JWT de sesión.

El token lleva el usuario_id en "sub" y el rol vigente al momento del login;
el rol se vuelve a leer de la BD en cada request.
"""
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from passlib.context import CryptContext
from fastapi.security import OAuth2PasswordBearer

from config.settings import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


# ========= Contraseñas =========

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """False para hashes vacíos o con formato desconocido."""
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


# ========= Tokens =========

def create_access_token(usuario_id: int, role: str, expires_minutes: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": str(usuario_id), "role": role, "iat": now, "exp": expire}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_usuario_id(token: str) -> int | None:
    """
    usuario_id del token, o None si la firma no es válida, expiró
    o el "sub" no es numérico.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return int(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        return None
