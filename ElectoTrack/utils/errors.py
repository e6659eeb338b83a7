# utils/errors.py
"""
Handlers globales de errores.

- 422: errores de validación con el detalle de Pydantic serializable
- 409: violaciones de unicidad / FK que se escapan de las validaciones de servicio
- 500: cualquier otro error de BD, sin exponer el SQL al cliente
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


def _normalize_errors(errs) -> list[dict]:
    """Convierte bytes y excepciones del contexto a str para poder serializar."""
    norm = []
    for e in errs:
        e = dict(e)
        if isinstance(e.get("input"), (bytes, bytearray)):
            e["input"] = e["input"].decode("utf-8", errors="ignore")
        # ctx trae el ValueError original de los validators
        if isinstance(e.get("ctx"), dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        norm.append(e)
    return norm


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"error": "validation_error", "detail": _normalize_errors(exc.errors())},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_handler(request: Request, exc: IntegrityError):
        logger.warning("Conflicto de integridad en %s %s: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(
            status_code=409,
            content={"error": "conflict", "detail": "El registro entra en conflicto con datos existentes"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Error de base de datos en %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "database_error", "detail": "Error interno de base de datos"},
        )
