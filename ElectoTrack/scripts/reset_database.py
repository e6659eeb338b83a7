# scripts/reset_database.py
"""
Limpia los datos operativos de la campaña para empezar de cero.

Borra personas, novedades, confirmaciones, importaciones, asignaciones de
filtros y todos los usuarios que no son admin. Vacía las imágenes del bucket
y deja (o recrea) el admin inicial. Los catálogos y candidatos se conservan.

    python scripts/reset_database.py
"""
import sys, pathlib
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from sqlalchemy import delete, update

from utils.db import SessionLocal
from utils.transactions import uow
from models import Usuario, FiltroLider, Persona, Novedad, VotoConfirmacion, Importacion
from services.storage_service import get_optional_storage
from enums.roles import Role
from scripts.seed import ensure_admin

PREFIJOS_STORAGE = ("confirmaciones/", "candidatos/")


def reset(db) -> None:
    with uow(db, "reset de datos"):
        db.execute(delete(VotoConfirmacion))
        db.execute(delete(Novedad))
        db.execute(delete(Persona))
        db.execute(delete(Importacion))
        db.execute(delete(FiltroLider))
        # coordinador_id es autorreferencia: se limpia antes de borrar
        db.execute(update(Usuario).values(coordinador_id=None))
        db.execute(delete(Usuario).where(Usuario.role != Role.admin.value))
    # Los borrados masivos dejan objetos obsoletos en la sesión
    db.expunge_all()
    print("Datos operativos eliminados.")

    storage = get_optional_storage()
    if storage is None:
        print("Almacenamiento no configurado: no se eliminaron imágenes.")
    else:
        for prefijo in PREFIJOS_STORAGE:
            print(f"Objetos eliminados en {prefijo}: {storage.delete_prefix(prefijo)}")

    ensure_admin(db)


def main():
    respuesta = input("Esto eliminará TODOS los datos de la campaña. Escriba SI para continuar: ")
    if respuesta.strip() != "SI":
        print("Operación cancelada.")
        return
    db = SessionLocal()
    try:
        reset(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
