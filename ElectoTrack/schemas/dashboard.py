from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_registradas: int
    total_confirmadas: int
    total_no_confirmadas: int


class DepartamentoItem(BaseModel):
    departamento: str
    municipio: str
    total: int


class LiderItem(BaseModel):
    lider: str
    confirmados: int
    pendientes: int


class RepresentanteItem(BaseModel):
    representante: str
    total: int


class VotosDepartamentoItem(BaseModel):
    departamento: str
    municipio: str
    confirmados: int
