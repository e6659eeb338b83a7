# api/auth.py
"""
API de autenticación.
Endpoints: token, logout, me, check-role, email-by-document.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from utils.db import get_db
from utils.dependencies import get_current_user
from schemas.common import Msg
from schemas.usuario import Token, UsuarioOut, CheckRoleOut, EmailByDocumentIn, EmailByDocumentOut
from services.auth_service import authenticate_user, issue_access_token, role_flags
from services.usuario_service import get_by_documento
from models.usuario import Usuario

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/token",
    response_model=Token,
    summary="Login (OAuth2)",
    description=(
        "Autenticación usando OAuth2 Password Flow.\n\n"
        "**Formato:** `application/x-www-form-urlencoded` (estándar OAuth2)\n\n"
        "**Campos:**\n"
        "- `username`: Correo o número de documento\n"
        "- `password`: Contraseña\n\n"
        "**Response:**\n"
        "- `access_token`: Token JWT para usar en header `Authorization: Bearer <token>`\n"
        "- `token_type`: Siempre `bearer`"
    )
)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """Login con correo/documento y password"""
    user = authenticate_user(db, form_data.username, form_data.password)
    token = issue_access_token(user)
    return {"access_token": token, "token_type": "bearer"}


@router.post(
    "/logout",
    response_model=Msg,
    summary="Cerrar sesión",
    description="Los tokens son stateless: el cliente solo debe descartarlo."
)
def logout(current_user: Usuario = Depends(get_current_user)):
    return {"message": "Sesión cerrada correctamente"}


@router.get(
    "/me",
    response_model=UsuarioOut,
    summary="Obtener usuario actual",
    description=(
        "Retorna la información del usuario autenticado.\n\n"
        "**Requiere autenticación:** Sí (Bearer token en header)"
    )
)
def me(current_user: Usuario = Depends(get_current_user)):
    """Obtener información del usuario autenticado"""
    return current_user


@router.get("/check-role", response_model=CheckRoleOut, summary="Banderas de rol del usuario actual")
def check_role(current_user: Usuario = Depends(get_current_user)):
    return role_flags(current_user)


@router.post(
    "/email-by-document",
    response_model=EmailByDocumentOut,
    summary="Correo asociado a un documento",
    description="Endpoint público usado por el login con número de documento."
)
def email_by_document(payload: EmailByDocumentIn, db: Session = Depends(get_db)):
    user = get_by_documento(db, payload.numero_documento)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")
    return {"email": user.email}
