# scripts/seed.py
"""
Datos iniciales: catálogos de barrios y puestos de votación y el usuario admin.
Se puede ejecutar varias veces; solo crea lo que falte.

    python scripts/seed.py
"""
import sys, pathlib
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from sqlalchemy import select

from utils.db import SessionLocal, Base, engine
from utils.transactions import uow
from utils.security import hash_password
from models import Barrio, PuestoVotacion, Usuario
from enums.roles import Role

ADMIN_EMAIL = "admin@sistema.local"
ADMIN_PASSWORD = "admin123"
ADMIN_DOCUMENTO = "0000000000"

BARRIOS = [
    ("BAR001", "Centro"),
    ("BAR002", "La Esperanza"),
    ("BAR003", "San José"),
    ("BAR004", "El Prado"),
    ("BAR005", "Villa del Río"),
    ("BAR006", "Las Palmas"),
    ("BAR007", "Santa Fe"),
    ("BAR008", "El Carmen"),
    ("BAR009", "La Floresta"),
    ("BAR010", "Los Almendros"),
]

PUESTOS = [
    ("PUE001", "Colegio Nacional", "Calle 10 # 5-20"),
    ("PUE002", "Escuela Simón Bolívar", "Carrera 8 # 12-45"),
    ("PUE003", "Institución Educativa La Salle", "Avenida 3 # 20-10"),
    ("PUE004", "Coliseo Municipal", "Calle 25 # 7-30"),
    ("PUE005", "Universidad Pública", "Carrera 15 # 30-50"),
]


def seed_catalogos(db) -> None:
    with uow(db, "seed de catálogos"):
        existentes = set(db.scalars(select(Barrio.codigo)).all())
        nuevos = [Barrio(codigo=c, nombre=n) for c, n in BARRIOS if c not in existentes]
        db.add_all(nuevos)
        print(f"Barrios creados: {len(nuevos)}")

        existentes = set(db.scalars(select(PuestoVotacion.codigo)).all())
        nuevos = [PuestoVotacion(codigo=c, nombre=n, direccion=d) for c, n, d in PUESTOS if c not in existentes]
        db.add_all(nuevos)
        print(f"Puestos de votación creados: {len(nuevos)}")


def ensure_admin(db) -> Usuario:
    admin = db.scalars(select(Usuario).where(Usuario.email == ADMIN_EMAIL)).first()
    if admin:
        print("Usuario admin ya existe (id:", admin.usuario_id, ").")
        return admin

    admin = Usuario(
        email=ADMIN_EMAIL,
        password_hash=hash_password(ADMIN_PASSWORD),
        nombres="Administrador",
        apellidos="Sistema",
        tipo_documento="CC",
        numero_documento=ADMIN_DOCUMENTO,
        role=Role.admin.value,
        status="a",
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    print("Usuario admin creado. ID:", admin.usuario_id)
    return admin


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_catalogos(db)
        ensure_admin(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
