# services/candidato_service.py
import logging
import uuid

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from models.candidato import Candidato
from models.usuario import Usuario
from services.storage_service import StorageClient, ensure_storage, read_image

logger = logging.getLogger(__name__)


# ========= Helpers =========

def _ensure_tarjeton_unico(db: Session, numero_tarjeton: str, exclude_id: int | None = None) -> None:
    stmt = select(Candidato.candidato_id).where(Candidato.numero_tarjeton == numero_tarjeton)
    if exclude_id is not None:
        stmt = stmt.where(Candidato.candidato_id != exclude_id)
    if db.scalars(stmt).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ya existe un candidato con este número de tarjetón",
        )


def _unset_default(db: Session, exclude_id: int | None = None) -> None:
    """Solo un candidato puede ser el por defecto."""
    stmt = update(Candidato).where(Candidato.es_por_defecto.is_(True))
    if exclude_id is not None:
        stmt = stmt.where(Candidato.candidato_id != exclude_id)
    db.execute(stmt.values(es_por_defecto=False))


def _upload_imagen(storage: StorageClient | None, imagen: UploadFile) -> tuple[str, str]:
    storage = ensure_storage(storage)
    data, ext = read_image(imagen)
    path = f"candidatos/{uuid.uuid4().hex}.{ext}"
    url = storage.upload(path, data, imagen.content_type)
    return url, path


# ========= Selectores =========

def list_candidatos(db: Session) -> list[Candidato]:
    """Candidato por defecto primero, luego por nombre."""
    stmt = select(Candidato).order_by(Candidato.es_por_defecto.desc(), Candidato.nombre_completo.asc())
    return list(db.scalars(stmt).all())


def get_candidato(db: Session, candidato_id: int) -> Candidato:
    obj = db.get(Candidato, candidato_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidato no encontrado")
    return obj


# ========= Mutaciones =========

def create_candidato(
    db: Session,
    storage: StorageClient | None,
    data: dict,
    imagen: UploadFile | None = None,
) -> Candidato:
    """
    Crea un candidato con imagen opcional.

    Si el insert falla, la imagen ya subida se elimina del bucket.
    """
    _ensure_tarjeton_unico(db, data["numero_tarjeton"])

    imagen_url = imagen_path = None
    if imagen is not None:
        imagen_url, imagen_path = _upload_imagen(storage, imagen)

    try:
        if data.get("es_por_defecto"):
            _unset_default(db)
        obj = Candidato(**data, imagen_url=imagen_url, imagen_path=imagen_path)
        db.add(obj)
        db.commit()
    except Exception:
        db.rollback()
        if imagen_path:
            storage.delete(imagen_path)
        raise
    db.refresh(obj)
    logger.info("Candidato creado: %s (tarjetón %s)", obj.candidato_id, obj.numero_tarjeton)
    return obj


def update_candidato(
    db: Session,
    storage: StorageClient | None,
    candidato_id: int,
    data: dict,
    imagen: UploadFile | None = None,
    remove_imagen: bool = False,
) -> Candidato:
    """
    Actualiza campos, reemplaza o elimina la imagen.

    La imagen anterior se borra del bucket solo después del commit.
    """
    obj = get_candidato(db, candidato_id)

    if data.get("numero_tarjeton"):
        _ensure_tarjeton_unico(db, data["numero_tarjeton"], exclude_id=candidato_id)

    old_path = None
    new_path = None
    if imagen is not None:
        new_url, new_path = _upload_imagen(storage, imagen)
        old_path = obj.imagen_path
        obj.imagen_url, obj.imagen_path = new_url, new_path
    elif remove_imagen and obj.imagen_path:
        old_path = obj.imagen_path
        obj.imagen_url = obj.imagen_path = None

    try:
        if data.get("es_por_defecto"):
            _unset_default(db, exclude_id=candidato_id)
        for field, value in data.items():
            if value is None and field in ("nombre_completo", "numero_tarjeton", "es_por_defecto"):
                continue
            setattr(obj, field, value)
        db.add(obj)
        db.commit()
    except Exception:
        db.rollback()
        if new_path:
            storage.delete(new_path)
        raise

    if old_path and storage is not None:
        storage.delete(old_path)
    db.refresh(obj)
    return obj


def delete_candidato(db: Session, storage: StorageClient | None, candidato_id: int) -> None:
    """
    Elimina un candidato. Los perfiles asociados quedan sin candidato.

    Raises:
        HTTPException 400: Si es el candidato por defecto
    """
    obj = get_candidato(db, candidato_id)
    if obj.es_por_defecto:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se puede eliminar el candidato por defecto",
        )

    imagen_path = obj.imagen_path
    db.execute(
        update(Usuario).where(Usuario.candidato_id == candidato_id).values(candidato_id=None)
    )
    db.delete(obj)
    db.commit()

    if imagen_path and storage is not None:
        storage.delete(imagen_path)
    logger.info("Candidato eliminado: %s", candidato_id)
