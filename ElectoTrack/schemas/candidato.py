from datetime import datetime

from schemas.common import ORMModel


class CandidatoPublicOut(ORMModel):
    """Datos visibles sin autenticación (pantalla de login)."""
    candidato_id: int
    nombre_completo: str
    numero_tarjeton: str
    partido_grupo: str | None = None
    imagen_url: str | None = None
    es_por_defecto: bool


class CandidatoOut(CandidatoPublicOut):
    imagen_path: str | None = None
    created_at: datetime
    updated_at: datetime
