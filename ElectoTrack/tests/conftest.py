"""
Fixtures compartidas.

La configuración se fija por variables de entorno antes de importar la app:
SQLite en un directorio temporal y bcrypt con el mínimo de rondas.
"""
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="electotrack-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DOCUMENTO_VALIDATION_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from main import app
from utils.db import Base, engine, SessionLocal
from utils.security import hash_password
from models import Usuario, FiltroLider, Persona, Barrio, PuestoVotacion, Candidato
from services.storage_service import get_optional_storage
from services.documento_registry import get_registry
from enums.enums import PersonaEstadoEnum
from enums.roles import Role

DEFAULT_PASSWORD = "secreto123"


class FakeStorage:
    """Bucket en memoria con la misma interfaz que StorageClient."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def public_url(self, path: str) -> str:
        return f"https://cdn.test/{path}"

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.objects[path] = data
        return self.public_url(path)

    def delete(self, path):
        if not path:
            return False
        self.deleted.append(path)
        return self.objects.pop(path, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        keys = [k for k in self.objects if k.startswith(prefix)]
        for key in keys:
            self.delete(key)
        return len(keys)


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def registry():
    """Sobrescribir en un test para simular el registro documental."""
    return None


@pytest.fixture
def client(storage, registry):
    app.dependency_overrides[get_optional_storage] = lambda: storage
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ========= Factories =========

_doc_seq = iter(range(1000000000, 2000000000))


@pytest.fixture
def make_user(db):
    def _make(role: Role, coordinador: Usuario | None = None, **kwargs) -> Usuario:
        documento = kwargs.pop("numero_documento", str(next(_doc_seq)))
        user = Usuario(
            email=kwargs.pop("email", f"{documento}@sistema.local"),
            password_hash=hash_password(kwargs.pop("password", DEFAULT_PASSWORD)),
            nombres=kwargs.pop("nombres", role.value.capitalize()),
            apellidos=kwargs.pop("apellidos", "Prueba"),
            tipo_documento="CC",
            numero_documento=documento,
            role=role.value,
            coordinador_id=coordinador.usuario_id if coordinador else None,
            status=kwargs.pop("status", "a"),
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_persona(db):
    def _make(registrador: Usuario, **kwargs) -> Persona:
        documento = kwargs.pop("numero_documento", str(next(_doc_seq)))
        persona = Persona(
            nombres=kwargs.pop("nombres", "Ana"),
            apellidos=kwargs.pop("apellidos", "Gómez"),
            tipo_documento="CC",
            numero_documento=documento,
            registrado_por_id=registrador.usuario_id,
            estado=kwargs.pop("estado", PersonaEstadoEnum.DATOS_PENDIENTES.value),
            **kwargs,
        )
        db.add(persona)
        db.commit()
        db.refresh(persona)
        return persona
    return _make


@pytest.fixture
def assign(db):
    def _assign(filtro: Usuario, lider: Usuario) -> FiltroLider:
        asignacion = FiltroLider(filtro_id=filtro.usuario_id, lider_id=lider.usuario_id)
        db.add(asignacion)
        db.commit()
        return asignacion
    return _assign


@pytest.fixture
def catalogos(db):
    barrio = Barrio(codigo="BAR001", nombre="Centro")
    puesto = PuestoVotacion(codigo="PUE001", nombre="Colegio Nacional", direccion="Calle 10")
    db.add_all([barrio, puesto])
    db.commit()
    return barrio, puesto


@pytest.fixture
def candidato_defecto(db):
    candidato = Candidato(nombre_completo="María Pérez", numero_tarjeton="101", es_por_defecto=True)
    db.add(candidato)
    db.commit()
    db.refresh(candidato)
    return candidato


@pytest.fixture
def auth(client):
    """Login por /auth/token y retorno del header Authorization."""
    def _auth(user: Usuario, password: str = DEFAULT_PASSWORD) -> dict:
        resp = client.post("/auth/token", data={"username": user.email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return _auth


# ========= Estructura típica =========

@pytest.fixture
def estructura(make_user, assign):
    """
    admin, consultor y dos coordinadores, cada uno con un líder.
    El validador y el confirmador del coordinador A tienen asignado al líder A.
    """
    admin = make_user(Role.admin)
    consultor = make_user(Role.consultor)
    coord_a = make_user(Role.coordinador)
    coord_b = make_user(Role.coordinador)
    lider_a = make_user(Role.lider, coordinador=coord_a)
    lider_b = make_user(Role.lider, coordinador=coord_b)
    validador = make_user(Role.validador, coordinador=coord_a)
    confirmador = make_user(Role.confirmador, coordinador=coord_a)
    assign(validador, lider_a)
    assign(confirmador, lider_a)
    return {
        "admin": admin,
        "consultor": consultor,
        "coord_a": coord_a,
        "coord_b": coord_b,
        "lider_a": lider_a,
        "lider_b": lider_b,
        "validador": validador,
        "confirmador": confirmador,
    }
