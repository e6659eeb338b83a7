from fastapi import APIRouter
from .auth import router as auth_router
from .perfil import router as perfil_router
from .catalogos import router as catalogos_router
from .candidatos import router as candidatos_router
from .coordinadores import router as coordinadores_router
from .lideres import router as lideres_router
from .filtros import router as filtros_router
from .personas import router as personas_router
from .novedades import router as novedades_router
from .confirmaciones import router as confirmaciones_router
from .dashboard import router as dashboard_router
from .importaciones import router as importaciones_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(perfil_router)
api_router.include_router(catalogos_router)
api_router.include_router(candidatos_router)
api_router.include_router(coordinadores_router)
api_router.include_router(lideres_router)
api_router.include_router(filtros_router)
api_router.include_router(personas_router)
api_router.include_router(novedades_router)
api_router.include_router(confirmaciones_router)
api_router.include_router(dashboard_router)
api_router.include_router(importaciones_router)
