# services/usuario_service.py
"""
Lógica compartida de perfiles: cuentas del sistema, unicidad de documento y
correo, y actualización del perfil propio.

Coordinadores, líderes y filtros se construyen sobre estas funciones.
"""
import logging

from fastapi import HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from config.settings import settings
from models.usuario import Usuario
from models.candidato import Candidato
from models.catalogo import Barrio, PuestoVotacion
from schemas.usuario import PerfilUpdate
from utils.security import hash_password, verify_password
from enums.roles import Role

logger = logging.getLogger(__name__)

# Campos NOT NULL que una actualización no puede dejar vacíos
_REQUIRED_FIELDS = {"nombres", "apellidos", "numero_documento", "tipo_documento"}


# ============================================================================
# Cuentas del sistema
# ============================================================================

def system_email(numero_documento: str) -> str:
    """Correo generado para cuentas sin email propio."""
    return f"{numero_documento}@{settings.SYSTEM_EMAIL_DOMAIN}"


def default_lider_password(numero_documento: str) -> str:
    return f"Lider{numero_documento[-4:]}"


def get_default_candidato_id(db: Session) -> int | None:
    stmt = select(Candidato.candidato_id).where(Candidato.es_por_defecto.is_(True))
    return db.scalars(stmt).first()


# ============================================================================
# Validaciones
# ============================================================================

def ensure_documento_disponible(db: Session, numero_documento: str, exclude_id: int | None = None) -> None:
    """
    Raises:
        HTTPException 400: Si otro usuario ya tiene ese documento
    """
    stmt = select(Usuario.usuario_id).where(Usuario.numero_documento == numero_documento)
    if exclude_id is not None:
        stmt = stmt.where(Usuario.usuario_id != exclude_id)
    if db.scalars(stmt).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ya existe un usuario con este número de documento",
        )


def ensure_email_disponible(db: Session, email: str, exclude_id: int | None = None) -> None:
    stmt = select(Usuario.usuario_id).where(func.lower(Usuario.email) == email.lower())
    if exclude_id is not None:
        stmt = stmt.where(Usuario.usuario_id != exclude_id)
    if db.scalars(stmt).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ya existe un usuario con este correo",
        )


def ensure_catalogos(db: Session, barrio_id: int | None, puesto_votacion_id: int | None) -> None:
    """Valida que barrio y puesto existan cuando se envían."""
    if barrio_id is not None and db.get(Barrio, barrio_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Barrio no encontrado")
    if puesto_votacion_id is not None and db.get(PuestoVotacion, puesto_votacion_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Puesto de votación no encontrado")


def ensure_candidato(db: Session, candidato_id: int | None) -> None:
    if candidato_id is not None and db.get(Candidato, candidato_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Candidato no encontrado")


def get_usuario_con_rol(db: Session, usuario_id: int, role: Role, detail: str) -> Usuario:
    """
    Obtiene un usuario validando su rol.

    Raises:
        HTTPException 404: Si no existe o tiene otro rol
    """
    user = db.get(Usuario, usuario_id)
    if not user or user.role != role.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return user


# ============================================================================
# Alta / edición de perfiles
# ============================================================================

def build_usuario(db: Session, data: dict, role: Role, default_password: str | None = None) -> tuple[Usuario, str]:
    """
    Construye (sin commit) un usuario con email y contraseña por defecto.

    Args:
        db: Sesión de BD
        data: Campos del perfil (incluye opcionalmente email y password)
        role: Rol del nuevo usuario
        default_password: Contraseña si no viene en data (por defecto el documento)

    Returns:
        (usuario, contraseña en texto plano asignada)
    """
    data = dict(data)
    numero_documento = data["numero_documento"]
    ensure_documento_disponible(db, numero_documento)
    ensure_catalogos(db, data.get("barrio_id"), data.get("puesto_votacion_id"))
    ensure_candidato(db, data.get("candidato_id"))

    email = data.pop("email", None) or system_email(numero_documento)
    ensure_email_disponible(db, email)
    password = data.pop("password", None) or default_password or numero_documento

    tipo = data.pop("tipo_documento", "CC")
    user = Usuario(
        **data,
        tipo_documento=getattr(tipo, "value", tipo),
        email=email,
        password_hash=hash_password(password),
        role=role.value,
        status="a",
    )
    db.add(user)
    return user, password


def apply_usuario_update(db: Session, user: Usuario, data: dict, default_password: str | None = None) -> None:
    """
    Aplica cambios de perfil (sin commit).

    - Si cambia el documento y la cuenta usa correo del sistema, se regenera
      el correo y la contraseña vuelve a ser la por defecto.
    - password explícita siempre gana.
    """
    data = dict(data)
    password = data.pop("password", None)
    email = data.pop("email", None)

    nuevo_doc = data.get("numero_documento")
    if nuevo_doc and nuevo_doc != user.numero_documento:
        ensure_documento_disponible(db, nuevo_doc, exclude_id=user.usuario_id)
        if user.email == system_email(user.numero_documento) and not email:
            email = system_email(nuevo_doc)
            if not password:
                password = default_password or nuevo_doc

    if email and email.lower() != user.email.lower():
        ensure_email_disponible(db, email, exclude_id=user.usuario_id)
        user.email = email

    ensure_catalogos(db, data.get("barrio_id"), data.get("puesto_votacion_id"))
    if "candidato_id" in data:
        ensure_candidato(db, data["candidato_id"])

    for field, value in data.items():
        if value is None and field in _REQUIRED_FIELDS:
            continue
        setattr(user, field, getattr(value, "value", value))

    if password:
        user.password_hash = hash_password(password)


# ============================================================================
# Perfil propio
# ============================================================================

def get_by_documento(db: Session, numero_documento: str) -> Usuario | None:
    stmt = select(Usuario).where(Usuario.numero_documento == numero_documento.strip())
    return db.scalars(stmt).first()


def update_perfil(db: Session, user: Usuario, payload: PerfilUpdate) -> Usuario:
    """
    Actualiza el perfil del usuario autenticado.

    Raises:
        HTTPException 400: Contraseña actual incorrecta o faltante
    """
    data = payload.model_dump(exclude_unset=True)
    current_password = data.pop("current_password", None)
    new_password = data.pop("new_password", None)

    if new_password:
        if not current_password or not verify_password(current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La contraseña actual es incorrecta",
            )
        user.password_hash = hash_password(new_password)

    ensure_catalogos(db, data.get("barrio_id"), data.get("puesto_votacion_id"))
    for field, value in data.items():
        if value is None and field in _REQUIRED_FIELDS:
            continue
        setattr(user, field, value)

    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Perfil actualizado: usuario %s", user.usuario_id)
    return user
