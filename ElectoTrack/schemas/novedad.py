from datetime import datetime

from pydantic import BaseModel, Field

from schemas.common import ORMModel, FormInput
from schemas.usuario import UsuarioResumen


class NovedadCreate(FormInput):
    persona_id: int = Field(..., gt=0)
    observacion: str = Field(..., min_length=1, max_length=2000)


class NovedadResolver(FormInput):
    observacion_resolucion: str | None = Field(None, max_length=2000)


class NovedadOut(ORMModel):
    novedad_id: int
    persona_id: int
    observacion: str
    resuelta: bool
    resuelta_at: datetime | None = None
    observacion_resolucion: str | None = None
    creada_por_id: int
    resuelta_por_id: int | None = None
    creada_por: UsuarioResumen | None = None
    resuelta_por: UsuarioResumen | None = None
    created_at: datetime
    updated_at: datetime


class NovedadCreadaOut(BaseModel):
    message: str
    novedad: NovedadOut
