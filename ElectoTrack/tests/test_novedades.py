"""
Novedades: una activa por persona, paso a CON_NOVEDAD y restauración al resolver.
"""
from models import Persona
from enums.enums import PersonaEstadoEnum as E


def _crear(client, headers, persona_id, observacion="Teléfono no corresponde"):
    return client.post("/novedades", headers=headers, json={"persona_id": persona_id, "observacion": observacion})


def test_crear_y_resolver(client, estructura, auth, make_persona, db):
    persona = make_persona(estructura["lider_a"], estado=E.VERIFICADO.value)
    headers = auth(estructura["validador"])

    resp = _crear(client, headers, persona.persona_id)
    assert resp.status_code == 201
    novedad = resp.json()["novedad"]
    assert novedad["resuelta"] is False
    assert novedad["creada_por"]["usuario_id"] == estructura["validador"].usuario_id

    db.expire_all()
    persona = db.get(Persona, persona.persona_id)
    assert persona.estado == E.CON_NOVEDAD.value
    assert persona.estado_anterior == E.VERIFICADO.value

    # Solo una activa por persona
    assert _crear(client, headers, persona.persona_id).status_code == 400

    detalle = client.get(f"/personas/{persona.persona_id}", headers=headers).json()
    assert detalle["novedades_activas"] == 1

    resp = client.post(f"/novedades/{novedad['novedad_id']}/resolver", headers=auth(estructura["lider_a"]),
                       json={"observacion_resolucion": "Corregido"})
    assert resp.status_code == 200
    assert resp.json()["resuelta"] is True
    assert resp.json()["observacion_resolucion"] == "Corregido"

    db.expire_all()
    persona = db.get(Persona, persona.persona_id)
    assert persona.estado == E.VERIFICADO.value
    assert persona.estado_anterior is None

    again = client.post(f"/novedades/{novedad['novedad_id']}/resolver", headers=headers)
    assert again.status_code == 400


def test_resolver_sin_estado_anterior(client, estructura, auth, make_persona, db):
    persona = make_persona(estructura["lider_a"], estado=E.VERIFICADO.value)
    headers = auth(estructura["lider_a"])
    novedad_id = _crear(client, headers, persona.persona_id).json()["novedad"]["novedad_id"]

    db.expire_all()
    p = db.get(Persona, persona.persona_id)
    p.estado_anterior = None
    db.commit()

    client.post(f"/novedades/{novedad_id}/resolver", headers=headers)
    db.expire_all()
    assert db.get(Persona, persona.persona_id).estado == E.DATOS_PENDIENTES.value


def test_permisos(client, estructura, auth, make_persona):
    persona = make_persona(estructura["lider_a"])
    assert _crear(client, auth(estructura["consultor"]), persona.persona_id).status_code == 403
    assert _crear(client, auth(estructura["lider_b"]), persona.persona_id).status_code == 403
    assert _crear(client, auth(estructura["coord_b"]), persona.persona_id).status_code == 403
    assert _crear(client, auth(estructura["coord_a"]), persona.persona_id).status_code == 201


def test_observacion_obligatoria(client, estructura, auth, make_persona):
    persona = make_persona(estructura["lider_a"])
    resp = _crear(client, auth(estructura["lider_a"]), persona.persona_id, observacion="")
    assert resp.status_code == 422
    resp = _crear(client, auth(estructura["lider_a"]), persona.persona_id, observacion="x" * 2001)
    assert resp.status_code == 422


def test_listar_y_consultar(client, estructura, auth, make_persona):
    persona = make_persona(estructura["lider_a"])
    headers = auth(estructura["lider_a"])
    primera = _crear(client, headers, persona.persona_id, "Primera").json()["novedad"]
    client.post(f"/novedades/{primera['novedad_id']}/resolver", headers=headers)
    _crear(client, headers, persona.persona_id, "Segunda")

    todas = client.get(f"/personas/{persona.persona_id}/novedades", headers=headers).json()
    assert [n["observacion"] for n in todas] == ["Segunda", "Primera"]

    activas = client.get(f"/personas/{persona.persona_id}/novedades", headers=headers,
                         params={"activas": "true"}).json()
    assert [n["observacion"] for n in activas] == ["Segunda"]

    assert client.get(f"/novedades/{primera['novedad_id']}", headers=headers).status_code == 200
    assert client.get(f"/novedades/{primera['novedad_id']}", headers=auth(estructura["lider_b"])).status_code == 404
    assert client.get(f"/personas/{persona.persona_id}/novedades",
                      headers=auth(estructura["lider_b"])).status_code == 404
