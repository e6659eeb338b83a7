from datetime import datetime

from pydantic import BaseModel

from schemas.common import ORMModel


class ErrorFila(BaseModel):
    fila: int
    documento: str | None = None
    error: str


class ImportacionResultado(BaseModel):
    message: str
    importacion_id: int
    registros_exitosos: int
    creados: int
    actualizados: int
    omitidos: int
    documentos_omitidos: list[str] = []
    fallidos: int
    errores: list[ErrorFila] = []


class ImportacionOut(ORMModel):
    importacion_id: int
    usuario_id: int
    total_registros: int
    registros_exitosos: int
    registros_fallidos: int
    archivo_nombre: str | None = None
    errores: list[ErrorFila] | None = None
    created_at: datetime
