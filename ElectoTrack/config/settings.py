# config/settings.py
"""
Configuración centralizada de la aplicación usando Pydantic Settings.
Las variables se cargan desde el archivo .env
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    # Base de datos
    DATABASE_URL: str

    # JWT
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720
    ALGORITHM: str = "HS256"
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ALLOW_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"

    # Zona horaria de la campaña
    APP_TIMEZONE: str = "America/Bogota"

    # Cuentas generadas por el sistema ({documento}@dominio)
    SYSTEM_EMAIL_DOMAIN: str = "sistema.local"

    # Personas
    FECHA_EXPEDICION_REQUIRED: bool = False  # Si True, sin fecha de expedición = datos faltantes

    # Imágenes (confirmaciones de voto y candidatos)
    MAX_IMAGE_MB: int = 5

    # Almacenamiento S3 compatible (R2, MinIO, AWS)
    S3_ENDPOINT: str | None = None
    S3_REGION: str = "auto"
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_BUCKET_NAME: str | None = None
    S3_PUBLIC_URL: str | None = None  # Si es None, se arma con endpoint/bucket

    # Registro documental externo (PocketBase)
    DOCUMENTO_VALIDATION_ENABLED: bool = False
    POCKETBASE_URL: str | None = None
    POCKETBASE_EMAIL: str | None = None
    POCKETBASE_PASSWORD: str | None = None
    POCKETBASE_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = True

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Normalizar URLs sin slash final
        if self.POCKETBASE_URL:
            self.POCKETBASE_URL = self.POCKETBASE_URL.rstrip("/")
        if self.S3_PUBLIC_URL:
            self.S3_PUBLIC_URL = self.S3_PUBLIC_URL.rstrip("/")

    @property
    def storage_configured(self) -> bool:
        return bool(
            self.S3_ENDPOINT
            and self.S3_ACCESS_KEY_ID
            and self.S3_SECRET_ACCESS_KEY
            and self.S3_BUCKET_NAME
        )


settings = Settings()
