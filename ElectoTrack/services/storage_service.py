# services/storage_service.py
"""
Almacenamiento de imágenes en un bucket S3 compatible (R2, MinIO, AWS).
Usado por confirmaciones de voto y candidatos.
"""
import logging
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile, status

from config.settings import settings

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
}


class StorageClient:
    """Cliente delgado sobre boto3 para subir, borrar y resolver URLs públicas."""

    def __init__(self, client, bucket: str, public_base_url: str):
        self._client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{path}"

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """
        Sube un objeto y retorna su URL pública.

        Raises:
            HTTPException 502: Si el proveedor rechaza la subida
        """
        try:
            self._client.put_object(Bucket=self.bucket, Key=path, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Error subiendo %s al bucket %s: %s", path, self.bucket, exc)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Error al subir el archivo al almacenamiento",
            )
        logger.info("Archivo subido: %s (%d bytes)", path, len(data))
        return self.public_url(path)

    def delete(self, path: str | None) -> bool:
        """Borra un objeto. Best effort: los errores solo se registran."""
        if not path:
            return False
        try:
            self._client.delete_object(Bucket=self.bucket, Key=path)
            return True
        except (BotoCoreError, ClientError) as exc:
            logger.warning("No se pudo borrar %s: %s", path, exc)
            return False

    def delete_prefix(self, prefix: str) -> int:
        """Borra todos los objetos bajo un prefijo. Retorna cuántos se borraron."""
        deleted = 0
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            keys = [{"Key": obj["Key"]} for obj in page.get("Contents", [])]
            if not keys:
                continue
            self._client.delete_objects(Bucket=self.bucket, Delete={"Objects": keys, "Quiet": True})
            deleted += len(keys)
        logger.info("Borrados %d objetos bajo %s", deleted, prefix)
        return deleted


@lru_cache
def _build_storage() -> StorageClient:
    client = boto3.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT,
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.S3_ACCESS_KEY_ID,
        aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
    )
    public_base = settings.S3_PUBLIC_URL or f"{settings.S3_ENDPOINT.rstrip('/')}/{settings.S3_BUCKET_NAME}"
    return StorageClient(client, settings.S3_BUCKET_NAME, public_base)


def get_optional_storage() -> StorageClient | None:
    """Dependencia FastAPI: cliente de almacenamiento o None si S3 no está configurado."""
    if not settings.storage_configured:
        return None
    return _build_storage()


def ensure_storage(storage: StorageClient | None) -> StorageClient:
    """
    Raises:
        HTTPException 503: Si S3 no está configurado
    """
    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="El almacenamiento de archivos no está configurado",
        )
    return storage


def read_image(file: UploadFile) -> tuple[bytes, str]:
    """
    Lee y valida una imagen subida.

    Returns:
        (contenido, extensión)

    Raises:
        HTTPException 415: Si no es una imagen
        HTTPException 413: Si excede MAX_IMAGE_MB
    """
    content_type = (file.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="El archivo debe ser una imagen",
        )
    data = file.file.read()
    limit = settings.MAX_IMAGE_MB * 1024 * 1024
    if len(data) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"La imagen no debe superar {settings.MAX_IMAGE_MB}MB",
        )
    ext = IMAGE_EXTENSIONS.get(content_type)
    if not ext and file.filename and "." in file.filename:
        ext = file.filename.rsplit(".", 1)[-1].lower()
    return data, ext or "jpg"
