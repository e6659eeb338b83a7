import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from config.settings import settings
from api.router import api_router
from utils.db import engine
from utils.errors import install_error_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("electotrack")

app = FastAPI(
    title="ElectoTrack API",
    description="Registro, validación y confirmación de votos por estructura de campaña",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],  # nombre de los .xlsx descargados
)

install_error_handlers(app)
app.include_router(api_router)

logger.info(
    "ElectoTrack iniciado (tz=%s, almacenamiento=%s, registro documental=%s)",
    settings.APP_TIMEZONE,
    "sí" if settings.storage_configured else "no",
    "sí" if settings.DOCUMENTO_VALIDATION_ENABLED else "no",
)


@app.get("/health", tags=["health"])
def health():
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok"}
