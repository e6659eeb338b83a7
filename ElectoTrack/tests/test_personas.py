"""
Registro, visibilidad por rol, filtros y paginación de personas.
"""
from datetime import date

from main import app
from config.settings import settings
from models import Persona, VotoConfirmacion
from services.documento_registry import get_registry
from enums.enums import PersonaEstadoEnum


def _payload(documento: str, **extra) -> dict:
    data = {
        "nombres": "Carlos",
        "apellidos": "Ramírez",
        "tipo_documento": "CC",
        "numero_documento": documento,
    }
    data.update(extra)
    return data


def _documentos(resp) -> set[str]:
    return {p["numero_documento"] for p in resp.json()["data"]}


def test_lider_registra_persona(client, estructura, auth):
    lider = estructura["lider_a"]
    resp = client.post("/personas", headers=auth(lider), json=_payload("111", direccion="  ", mesa_votacion=""))
    assert resp.status_code == 201
    body = resp.json()
    assert body["estado"] == PersonaEstadoEnum.DATOS_PENDIENTES.value
    assert body["registrado_por_id"] == lider.usuario_id
    assert body["direccion"] is None
    assert body["situacion"] == "missing_data"
    assert body["confirmacion"] is None


def test_documento_duplicado(client, estructura, auth, make_persona):
    make_persona(estructura["lider_b"], numero_documento="222")
    resp = client.post("/personas", headers=auth(estructura["lider_a"]), json=_payload("222"))
    assert resp.status_code == 400


def test_roles_sin_registro(client, estructura, auth):
    for key in ("consultor", "validador", "confirmador"):
        resp = client.post("/personas", headers=auth(estructura[key]), json=_payload(f"3{key}"))
        assert resp.status_code == 403, key


def test_fechas_invalidas(client, estructura, auth):
    headers = auth(estructura["lider_a"])
    resp = client.post("/personas", headers=headers, json=_payload("401", fecha_nacimiento="2999-01-01"))
    assert resp.status_code == 422
    resp = client.post("/personas", headers=headers, json=_payload("402", fecha_nacimiento="1800-01-01"))
    assert resp.status_code == 422
    resp = client.post("/personas", headers=headers, json=_payload("403", fecha_expedicion="2999-01-01"))
    assert resp.status_code == 422


def test_registrado_por_coordinador(client, estructura, auth):
    headers = auth(estructura["coord_a"])
    ok = client.post("/personas", headers=headers, json=_payload(
        "501", registrado_por=estructura["lider_a"].usuario_id
    ))
    assert ok.status_code == 201
    assert ok.json()["registrado_por_id"] == estructura["lider_a"].usuario_id

    ajeno = client.post("/personas", headers=headers, json=_payload(
        "502", registrado_por=estructura["lider_b"].usuario_id
    ))
    assert ajeno.status_code == 403


def test_registrado_por_admin(client, estructura, auth):
    headers = auth(estructura["admin"])
    ok = client.post("/personas", headers=headers, json=_payload(
        "601", registrado_por=estructura["coord_b"].usuario_id
    ))
    assert ok.status_code == 201
    invalido = client.post("/personas", headers=headers, json=_payload(
        "602", registrado_por=estructura["validador"].usuario_id
    ))
    assert invalido.status_code == 400


def test_visibilidad_por_rol(client, estructura, auth, make_persona):
    make_persona(estructura["lider_a"], numero_documento="A1")
    make_persona(estructura["coord_a"], numero_documento="A2")
    make_persona(estructura["lider_b"], numero_documento="B1")

    def visibles(key):
        return _documentos(client.get("/personas", headers=auth(estructura[key])))

    assert visibles("admin") == {"A1", "A2", "B1"}
    assert visibles("consultor") == {"A1", "A2", "B1"}
    assert visibles("coord_a") == {"A1", "A2"}
    assert visibles("coord_b") == {"B1"}
    assert visibles("lider_a") == {"A1"}
    assert visibles("validador") == {"A1"}
    assert visibles("confirmador") == {"A1"}


def test_persona_no_visible_es_404(client, estructura, auth, make_persona):
    persona = make_persona(estructura["lider_b"])
    resp = client.get(f"/personas/{persona.persona_id}", headers=auth(estructura["lider_a"]))
    assert resp.status_code == 404
    resp = client.get(f"/personas/{persona.persona_id}", headers=auth(estructura["coord_b"]))
    assert resp.status_code == 200
    assert resp.json()["novedades_activas"] == 0


def test_paginacion(client, estructura, auth, make_persona):
    for i in range(15):
        make_persona(estructura["lider_a"], numero_documento=f"P{i:02d}")
    headers = auth(estructura["admin"])

    page1 = client.get("/personas", headers=headers).json()
    assert page1["total"] == 15
    assert page1["limit"] == 10
    assert page1["totalPages"] == 2
    assert len(page1["data"]) == 10
    # Más recientes primero
    assert page1["data"][0]["numero_documento"] == "P14"

    page2 = client.get("/personas", headers=headers, params={"page": 2}).json()
    assert len(page2["data"]) == 5

    assert client.get("/personas", headers=headers, params={"limit": 101}).status_code == 422
    assert client.get("/personas", headers=headers, params={"page": 0}).status_code == 422


def test_filtros_del_listado(client, estructura, auth, make_persona, catalogos, db):
    _, puesto = catalogos
    lider_a, lider_b = estructura["lider_a"], estructura["lider_b"]
    completa = make_persona(lider_a, numero_documento="10001", puesto_votacion_id=puesto.puesto_votacion_id,
                            mesa_votacion="3")
    confirmada = make_persona(lider_a, numero_documento="10002", puesto_votacion_id=puesto.puesto_votacion_id,
                              mesa_votacion="4", estado=PersonaEstadoEnum.COMPLETADO.value)
    make_persona(lider_b, numero_documento="20001", estado=PersonaEstadoEnum.VERIFICADO.value)
    db.add(VotoConfirmacion(persona_id=confirmada.persona_id, imagen_url="u", imagen_path="p",
                            confirmado_por_id=lider_a.usuario_id))
    db.commit()
    headers = auth(estructura["admin"])

    def docs(**params):
        return _documentos(client.get("/personas", headers=headers, params=params))

    assert docs(numero_documento="1000") == {"10001", "10002"}
    assert docs(puesto_votacion_id=puesto.puesto_votacion_id) == {"10001", "10002"}
    assert docs(lider_id=lider_b.usuario_id) == {"20001"}
    assert docs(estado="VERIFICADO") == {"20001"}
    assert docs(situacion="missing_data") == {"20001"}
    assert docs(situacion="pending") == {completa.numero_documento}
    assert docs(situacion="confirmed") == {"10002"}

    # lider_id solo aplica para admin
    resp = client.get("/personas", headers=auth(estructura["coord_a"]), params={"lider_id": lider_b.usuario_id})
    assert _documentos(resp) == {"10001", "10002"}

    item = next(p for p in client.get("/personas", headers=headers).json()["data"]
                if p["numero_documento"] == "10002")
    assert item["confirmacion"]["reversado"] is False
    assert item["situacion"] == "confirmed"


def test_actualizar_persona(client, estructura, auth, make_persona, db):
    persona = make_persona(estructura["lider_a"], numero_documento="700")
    make_persona(estructura["lider_a"], numero_documento="701")

    resp = client.put(f"/personas/{persona.persona_id}", headers=auth(estructura["lider_a"]),
                      json={"mesa_votacion": "12", "nombres": "Andrea"})
    assert resp.status_code == 200
    assert resp.json()["nombres"] == "Andrea"

    duplicado = client.put(f"/personas/{persona.persona_id}", headers=auth(estructura["lider_a"]),
                           json={"numero_documento": "701"})
    assert duplicado.status_code == 400

    for key in ("consultor", "validador"):
        resp = client.put(f"/personas/{persona.persona_id}", headers=auth(estructura[key]),
                          json={"mesa_votacion": "1"})
        assert resp.status_code == 403, key

    fuera = client.put(f"/personas/{persona.persona_id}", headers=auth(estructura["lider_b"]),
                       json={"mesa_votacion": "1"})
    assert fuera.status_code == 404


def test_reasignar_registrador(client, estructura, auth, make_persona, make_user):
    from enums.roles import Role
    otro_lider = make_user(Role.lider, coordinador=estructura["coord_a"])
    persona = make_persona(estructura["lider_a"])

    resp = client.put(f"/personas/{persona.persona_id}", headers=auth(estructura["lider_a"]),
                      json={"registrado_por": otro_lider.usuario_id})
    assert resp.status_code == 403

    resp = client.put(f"/personas/{persona.persona_id}", headers=auth(estructura["coord_a"]),
                      json={"registrado_por": otro_lider.usuario_id})
    assert resp.status_code == 200
    assert resp.json()["registrado_por_id"] == otro_lider.usuario_id


def test_eliminar_persona_limpia_imagenes(client, estructura, auth, make_persona, db, storage):
    lider = estructura["lider_a"]
    persona = make_persona(lider, estado=PersonaEstadoEnum.COMPLETADO.value)
    db.add(VotoConfirmacion(persona_id=persona.persona_id, imagen_url="u",
                            imagen_path="confirmaciones/x.jpg", confirmado_por_id=lider.usuario_id))
    db.commit()
    persona_id = persona.persona_id

    assert client.delete(f"/personas/{persona_id}", headers=auth(estructura["consultor"])).status_code == 403
    resp = client.delete(f"/personas/{persona_id}", headers=auth(estructura["coord_a"]))
    assert resp.status_code == 200

    db.expire_all()
    assert db.get(Persona, persona_id) is None
    assert db.query(VotoConfirmacion).count() == 0
    assert "confirmaciones/x.jpg" in storage.deleted


# ========= Registro documental =========

class RegistroEnMemoria:
    def __init__(self, tomados: dict[str, str]):
        self.tomados = tomados
        self.creados: list[tuple[str, str | None, str]] = []
        self.borrados: list[str] = []

    def get_document_info(self, documento):
        if documento in self.tomados:
            return {"place": self.tomados[documento]}
        return None

    def create_person(self, documento, place, leader_id):
        self.creados.append((documento, place, leader_id))
        return True

    def delete_person(self, documento):
        self.borrados.append(documento)
        return True


def test_registro_documental_en_alta_y_baja(client, estructura, auth, candidato_defecto, db):
    registro = RegistroEnMemoria({"900": "Campaña Azul"})
    app.dependency_overrides[get_registry] = lambda: registro
    lider = estructura["lider_a"]
    headers = auth(lider)

    tomado = client.post("/personas", headers=headers, json=_payload("900"))
    assert tomado.status_code == 400
    assert tomado.json()["detail"] == "El documento ya está registrado por Campaña Azul"
    assert db.query(Persona).count() == 0

    resp = client.post("/personas", headers=headers, json=_payload("901"))
    assert resp.status_code == 201
    assert registro.creados == [("901", candidato_defecto.nombre_completo, str(lider.usuario_id))]

    resp = client.delete(f"/personas/{resp.json()['persona_id']}", headers=auth(estructura["coord_a"]))
    assert resp.status_code == 200
    assert registro.borrados == ["901"]


def test_documento_con_caracteres_invalidos(client, estructura, auth, make_persona):
    headers = auth(estructura["lider_a"])
    resp = client.post("/personas", headers=headers, json=_payload('1" || document_number != "'))
    assert resp.status_code == 422

    persona = make_persona(estructura["lider_a"])
    resp = client.put(f"/personas/{persona.persona_id}", headers=headers,
                      json={"numero_documento": "1' || id != '"})
    assert resp.status_code == 422
    assert client.put(f"/personas/{persona.persona_id}", headers=headers,
                      json={"numero_documento": "AB-123.4"}).status_code == 200


# ========= Fecha de expedición obligatoria =========

def test_fecha_expedicion_obligatoria(client, estructura, auth, make_persona, catalogos, monkeypatch):
    _, puesto = catalogos
    lider = estructura["lider_a"]
    sin_fecha = make_persona(lider, numero_documento="30001", puesto_votacion_id=puesto.puesto_votacion_id,
                             mesa_votacion="5")
    make_persona(lider, numero_documento="30002", puesto_votacion_id=puesto.puesto_votacion_id,
                 mesa_votacion="5", fecha_expedicion=date(2010, 3, 1))
    headers = auth(estructura["admin"])

    def situaciones():
        data = client.get("/personas", headers=headers).json()["data"]
        return {p["numero_documento"]: p["situacion"] for p in data}

    assert situaciones() == {"30001": "pending", "30002": "pending"}

    monkeypatch.setattr(settings, "FECHA_EXPEDICION_REQUIRED", True)
    assert situaciones() == {"30001": "missing_data", "30002": "pending"}
    assert sin_fecha.situacion == "missing_data"
    missing = client.get("/personas", headers=headers, params={"situacion": "missing_data"})
    assert _documentos(missing) == {"30001"}
    pending = client.get("/personas", headers=headers, params={"situacion": "pending"})
    assert _documentos(pending) == {"30002"}
