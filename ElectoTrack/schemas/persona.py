from datetime import date, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from enums.enums import TipoDocumentoEnum
from schemas.common import ORMModel, FormInput
from schemas.catalogo import BarrioOut, PuestoVotacionOut
from schemas.confirmacion import ConfirmacionOut
from schemas.usuario import UsuarioResumen
from utils.datetime_utils import today_local, years_ago

MAX_EDAD_ANIOS = 150
# Letras, dígitos, punto y guion (pasaportes y documentos extranjeros)
DOCUMENTO_PATTERN = r"^[A-Za-z0-9.-]+$"


def _validar_fecha_nacimiento(value: date | None) -> date | None:
    if value is None:
        return value
    if value > today_local():
        raise ValueError("La fecha de nacimiento no puede ser futura")
    if value < years_ago(MAX_EDAD_ANIOS):
        raise ValueError(f"La fecha de nacimiento no puede ser de hace más de {MAX_EDAD_ANIOS} años")
    return value


def _validar_fecha_expedicion(value: date | None) -> date | None:
    if value is not None and value > today_local():
        raise ValueError("La fecha de expedición no puede ser futura")
    return value


FechaNacimiento = Annotated[date | None, AfterValidator(_validar_fecha_nacimiento)]
FechaExpedicion = Annotated[date | None, AfterValidator(_validar_fecha_expedicion)]


class PersonaCreate(FormInput):
    nombres: str = Field(..., min_length=1, max_length=100)
    apellidos: str = Field(..., min_length=1, max_length=100)
    tipo_documento: TipoDocumentoEnum
    numero_documento: str = Field(..., min_length=1, max_length=30, pattern=DOCUMENTO_PATTERN)
    fecha_nacimiento: FechaNacimiento = None
    fecha_expedicion: FechaExpedicion = None
    profesion: str | None = Field(None, max_length=120)
    numero_celular: str | None = Field(None, max_length=30)
    direccion: str | None = Field(None, max_length=200)
    barrio_id: int | None = Field(None, gt=0)
    departamento: str | None = Field(None, max_length=80)
    municipio: str | None = Field(None, max_length=80)
    puesto_votacion_id: int | None = Field(None, gt=0)
    mesa_votacion: str | None = Field(None, max_length=20)
    registrado_por: int | None = Field(None, gt=0, description="Líder asignado (coordinadores / admin)")


class PersonaUpdate(FormInput):
    nombres: str | None = Field(None, min_length=1, max_length=100)
    apellidos: str | None = Field(None, min_length=1, max_length=100)
    tipo_documento: TipoDocumentoEnum | None = None
    numero_documento: str | None = Field(None, min_length=1, max_length=30, pattern=DOCUMENTO_PATTERN)
    fecha_nacimiento: FechaNacimiento = None
    fecha_expedicion: FechaExpedicion = None
    profesion: str | None = Field(None, max_length=120)
    numero_celular: str | None = Field(None, max_length=30)
    direccion: str | None = Field(None, max_length=200)
    barrio_id: int | None = Field(None, gt=0)
    departamento: str | None = Field(None, max_length=80)
    municipio: str | None = Field(None, max_length=80)
    puesto_votacion_id: int | None = Field(None, gt=0)
    mesa_votacion: str | None = Field(None, max_length=20)
    registrado_por: int | None = Field(None, gt=0)


class PersonaOut(ORMModel):
    persona_id: int
    nombres: str
    apellidos: str
    tipo_documento: str
    numero_documento: str
    fecha_nacimiento: date | None = None
    fecha_expedicion: date | None = None
    profesion: str | None = None
    numero_celular: str | None = None
    direccion: str | None = None
    barrio_id: int | None = None
    departamento: str | None = None
    municipio: str | None = None
    puesto_votacion_id: int | None = None
    mesa_votacion: str | None = None
    registrado_por_id: int
    es_importado: bool
    importacion_id: int | None = None
    estado: str
    estado_anterior: str | None = None
    validado_por_id: int | None = None
    validado_at: datetime | None = None
    confirmado_estado_por_id: int | None = None
    confirmado_estado_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    barrio: BarrioOut | None = None
    puesto_votacion: PuestoVotacionOut | None = None
    registrado_por: UsuarioResumen | None = None
    confirmacion: ConfirmacionOut | None = None
    situacion: str


class PersonaDetalleOut(PersonaOut):
    novedades_activas: int = 0


class PersonaListOut(BaseModel):
    data: list[PersonaOut]
    total: int
    page: int
    limit: int
    totalPages: int


class TransicionOut(BaseModel):
    """Resultado de verificar / confirmar / reversar el estado de una persona"""
    message: str
    estado_anterior: str | None
    estado_nuevo: str
    persona: PersonaOut
