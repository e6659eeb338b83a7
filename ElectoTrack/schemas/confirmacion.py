from datetime import datetime

from schemas.common import ORMModel


class ConfirmacionOut(ORMModel):
    confirmacion_id: int
    persona_id: int
    imagen_url: str
    imagen_path: str
    confirmado_por_id: int
    confirmado_at: datetime
    reversado: bool
    reversado_por_id: int | None = None
    reversado_at: datetime | None = None
    created_at: datetime
