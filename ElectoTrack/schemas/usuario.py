from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from enums.enums import TipoDocumentoEnum
from schemas.common import ORMModel, FormInput
from schemas.catalogo import BarrioOut, PuestoVotacionOut

# Los correos del sistema usan dominios internos (ej. sistema.local)
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UsuarioResumen(ORMModel):
    usuario_id: int
    nombres: str
    apellidos: str
    numero_documento: str
    role: str


class UsuarioOut(ORMModel):
    usuario_id: int
    email: str
    nombres: str
    apellidos: str
    tipo_documento: str
    numero_documento: str
    fecha_nacimiento: date | None = None
    telefono: str | None = None
    direccion: str | None = None
    role: str
    departamento: str | None = None
    municipio: str | None = None
    zona: str | None = None
    mesa_votacion: str | None = None
    barrio_id: int | None = None
    puesto_votacion_id: int | None = None
    candidato_id: int | None = None
    coordinador_id: int | None = None
    status: str
    barrio: BarrioOut | None = None
    puesto_votacion: PuestoVotacionOut | None = None
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CheckRoleOut(BaseModel):
    usuario_id: int
    role: str
    is_admin: bool
    is_coordinador: bool
    is_lider: bool
    is_filtro: bool
    is_consultor: bool
    can_write: bool


class EmailByDocumentIn(BaseModel):
    numero_documento: str = Field(..., min_length=1, max_length=30)


class EmailByDocumentOut(BaseModel):
    email: str


# ============ PERFIL ============

class PerfilUpdate(FormInput):
    """Actualización del perfil propio (no cambia rol, documento ni coordinador)"""
    nombres: str | None = Field(None, min_length=1, max_length=100)
    apellidos: str | None = Field(None, min_length=1, max_length=100)
    fecha_nacimiento: date | None = None
    telefono: str | None = Field(None, max_length=30)
    direccion: str | None = Field(None, max_length=200)
    barrio_id: int | None = Field(None, gt=0)
    departamento: str | None = Field(None, max_length=80)
    municipio: str | None = Field(None, max_length=80)
    zona: str | None = Field(None, max_length=80)
    puesto_votacion_id: int | None = Field(None, gt=0)
    mesa_votacion: str | None = Field(None, max_length=20)
    current_password: str | None = None
    new_password: str | None = Field(None, min_length=6)


# ============ ESTRUCTURA (coordinadores, líderes, filtros) ============

class _PerfilCampos(FormInput):
    nombres: str = Field(..., min_length=1, max_length=100)
    apellidos: str = Field(..., min_length=1, max_length=100)
    numero_documento: str = Field(..., min_length=1, max_length=30)
    fecha_nacimiento: date | None = None
    telefono: str | None = Field(None, max_length=30)
    direccion: str | None = Field(None, max_length=200)
    departamento: str | None = Field(None, max_length=80)
    municipio: str | None = Field(None, max_length=80)
    zona: str | None = Field(None, max_length=80)
    barrio_id: int | None = Field(None, gt=0)
    puesto_votacion_id: int | None = Field(None, gt=0)
    mesa_votacion: str | None = Field(None, max_length=20)
    candidato_id: int | None = Field(None, gt=0)
    email: str | None = Field(None, pattern=EMAIL_PATTERN, max_length=120)
    password: str | None = Field(None, min_length=6)


class _PerfilCamposUpdate(FormInput):
    nombres: str | None = Field(None, min_length=1, max_length=100)
    apellidos: str | None = Field(None, min_length=1, max_length=100)
    numero_documento: str | None = Field(None, min_length=1, max_length=30)
    fecha_nacimiento: date | None = None
    telefono: str | None = Field(None, max_length=30)
    direccion: str | None = Field(None, max_length=200)
    departamento: str | None = Field(None, max_length=80)
    municipio: str | None = Field(None, max_length=80)
    zona: str | None = Field(None, max_length=80)
    barrio_id: int | None = Field(None, gt=0)
    puesto_votacion_id: int | None = Field(None, gt=0)
    mesa_votacion: str | None = Field(None, max_length=20)
    candidato_id: int | None = Field(None, gt=0)
    email: str | None = Field(None, pattern=EMAIL_PATTERN, max_length=120)
    password: str | None = Field(None, min_length=6)


class CoordinadorCreate(_PerfilCampos):
    tipo_documento: TipoDocumentoEnum = TipoDocumentoEnum.CC


class CoordinadorUpdate(_PerfilCamposUpdate):
    tipo_documento: TipoDocumentoEnum | None = None


class CoordinadorOut(UsuarioOut):
    lideres_count: int = 0


class LiderCreate(_PerfilCampos):
    """Los líderes siempre se registran con cédula de ciudadanía"""
    tipo_documento: Literal["CC"] = "CC"
    coordinador_id: int | None = Field(None, gt=0)


class LiderUpdate(_PerfilCamposUpdate):
    coordinador_id: int | None = Field(None, gt=0)


class LiderOut(UsuarioOut):
    personas_count: int = 0


class Credenciales(BaseModel):
    email: str
    password: str


class LiderCreadoOut(BaseModel):
    lider: LiderOut
    credenciales: Credenciales


class FiltroCreate(_PerfilCampos):
    tipo_documento: TipoDocumentoEnum = TipoDocumentoEnum.CC
    role: Literal["validador", "confirmador"]
    coordinador_id: int | None = Field(None, gt=0)  # Obligatorio para admin
    lideres_ids: list[int] = Field(..., min_length=1)

    @field_validator("lideres_ids")
    @classmethod
    def _unique_ids(cls, value: list[int]) -> list[int]:
        return list(dict.fromkeys(value))


class FiltroUpdate(_PerfilCamposUpdate):
    tipo_documento: TipoDocumentoEnum | None = None
    coordinador_id: int | None = Field(None, gt=0)
    lideres_ids: list[int] | None = None

    @field_validator("lideres_ids")
    @classmethod
    def _unique_ids(cls, value: list[int] | None) -> list[int] | None:
        return None if value is None else list(dict.fromkeys(value))


class FiltroOut(UsuarioOut):
    lideres_count: int = 0


class LiderAsignadoOut(ORMModel):
    lider: UsuarioResumen
    asignado_at: datetime


class FiltroDetalleOut(FiltroOut):
    lideres: list[LiderAsignadoOut] = []


class AsignarLideresIn(BaseModel):
    lideres_ids: list[int] = Field(..., min_length=1)


class AsignarLideresOut(BaseModel):
    message: str
    asignados: int
