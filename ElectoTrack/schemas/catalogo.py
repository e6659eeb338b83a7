from schemas.common import ORMModel


class BarrioOut(ORMModel):
    barrio_id: int
    codigo: str
    nombre: str


class PuestoVotacionOut(ORMModel):
    puesto_votacion_id: int
    codigo: str
    nombre: str
    direccion: str | None = None
