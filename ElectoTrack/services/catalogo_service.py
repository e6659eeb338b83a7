from sqlalchemy import select
from sqlalchemy.orm import Session

from models.catalogo import Barrio, PuestoVotacion


def list_barrios(db: Session) -> list[Barrio]:
    return list(db.scalars(select(Barrio).order_by(Barrio.nombre.asc())).all())


def list_puestos_votacion(db: Session) -> list[PuestoVotacion]:
    return list(db.scalars(select(PuestoVotacion).order_by(PuestoVotacion.nombre.asc())).all())
