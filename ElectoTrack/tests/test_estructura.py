"""
Coordinadores, líderes y filtros (validadores / confirmadores).
"""
from io import BytesIO

import openpyxl

from models import Usuario, FiltroLider
from enums.roles import Role


def _perfil(documento: str, **extra) -> dict:
    data = {"nombres": "Laura", "apellidos": "Torres", "numero_documento": documento}
    data.update(extra)
    return data


# ========= Coordinadores =========

def test_crear_coordinador_con_valores_por_defecto(client, estructura, auth, candidato_defecto):
    resp = client.post("/coordinadores", headers=auth(estructura["admin"]), json=_perfil("80001234"))
    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "80001234@sistema.local"
    assert body["role"] == "coordinador"
    assert body["candidato_id"] == candidato_defecto.candidato_id
    assert body["lideres_count"] == 0

    login = client.post("/auth/token", data={"username": "80001234", "password": "80001234"})
    assert login.status_code == 200


def test_coordinador_duplicados(client, estructura, auth):
    headers = auth(estructura["admin"])
    existente = estructura["coord_a"]
    resp = client.post("/coordinadores", headers=headers, json=_perfil(existente.numero_documento))
    assert resp.status_code == 400
    resp = client.post("/coordinadores", headers=headers, json=_perfil("123", email=existente.email))
    assert resp.status_code == 400


def test_coordinadores_permisos(client, estructura, auth):
    assert client.get("/coordinadores", headers=auth(estructura["consultor"])).status_code == 200
    assert client.get("/coordinadores", headers=auth(estructura["coord_a"])).status_code == 403
    resp = client.post("/coordinadores", headers=auth(estructura["consultor"]), json=_perfil("999"))
    assert resp.status_code == 403


def test_listar_y_consultar_coordinadores(client, estructura, auth):
    headers = auth(estructura["admin"])
    items = client.get("/coordinadores", headers=headers).json()
    assert {c["usuario_id"] for c in items} == {estructura["coord_a"].usuario_id, estructura["coord_b"].usuario_id}
    assert all(c["lideres_count"] == 1 for c in items)

    assert client.get(f"/coordinadores/{estructura['coord_a'].usuario_id}", headers=headers).status_code == 200
    assert client.get(f"/coordinadores/{estructura['lider_a'].usuario_id}", headers=headers).status_code == 404


def test_actualizar_documento_regenera_credenciales(client, estructura, auth):
    coord = estructura["coord_a"]
    resp = client.put(f"/coordinadores/{coord.usuario_id}", headers=auth(estructura["admin"]),
                      json={"numero_documento": "70707070"})
    assert resp.status_code == 200
    assert resp.json()["email"] == "70707070@sistema.local"
    login = client.post("/auth/token", data={"username": "70707070@sistema.local", "password": "70707070"})
    assert login.status_code == 200


def test_eliminar_coordinador(client, estructura, auth, make_user):
    headers = auth(estructura["admin"])
    resp = client.delete(f"/coordinadores/{estructura['coord_a'].usuario_id}", headers=headers)
    assert resp.status_code == 400

    solo = make_user(Role.coordinador)
    assert client.delete(f"/coordinadores/{solo.usuario_id}", headers=headers).status_code == 200


def test_lideres_de_coordinador(client, estructura, auth, make_persona):
    make_persona(estructura["lider_a"])
    coord_a = estructura["coord_a"]
    items = client.get(f"/coordinadores/{coord_a.usuario_id}/lideres", headers=auth(coord_a)).json()
    assert [l["usuario_id"] for l in items] == [estructura["lider_a"].usuario_id]
    assert items[0]["personas_count"] == 1

    resp = client.get(f"/coordinadores/{estructura['coord_b'].usuario_id}/lideres", headers=auth(coord_a))
    assert resp.status_code == 403
    resp = client.get(f"/coordinadores/{coord_a.usuario_id}/lideres", headers=auth(estructura["consultor"]))
    assert resp.status_code == 200


# ========= Líderes =========

def test_coordinador_crea_lider(client, estructura, auth, candidato_defecto, db):
    coord = estructura["coord_a"]
    coord_db = db.get(Usuario, coord.usuario_id)
    coord_db.candidato_id = candidato_defecto.candidato_id
    db.commit()

    resp = client.post("/lideres", headers=auth(coord), json=_perfil(
        "1098765432", coordinador_id=estructura["coord_b"].usuario_id
    ))
    assert resp.status_code == 201
    body = resp.json()
    assert body["credenciales"] == {"email": "1098765432@sistema.local", "password": "Lider5432"}
    assert body["lider"]["coordinador_id"] == coord.usuario_id
    assert body["lider"]["candidato_id"] == candidato_defecto.candidato_id
    assert body["lider"]["tipo_documento"] == "CC"

    login = client.post("/auth/token", data={"username": "1098765432", "password": "Lider5432"})
    assert login.status_code == 200


def test_admin_crea_lider_con_coordinador(client, estructura, auth, candidato_defecto):
    headers = auth(estructura["admin"])
    resp = client.post("/lideres", headers=headers, json=_perfil(
        "55554444", coordinador_id=estructura["coord_b"].usuario_id
    ))
    assert resp.status_code == 201
    # El coordinador no tiene candidato: se usa el de por defecto
    assert resp.json()["lider"]["candidato_id"] == candidato_defecto.candidato_id

    resp = client.post("/lideres", headers=headers, json=_perfil(
        "55553333", coordinador_id=estructura["lider_a"].usuario_id
    ))
    assert resp.status_code == 400


def test_lider_solo_cc(client, estructura, auth):
    resp = client.post("/lideres", headers=auth(estructura["admin"]), json=_perfil("1", tipo_documento="CE"))
    assert resp.status_code == 422


def test_visibilidad_lideres(client, estructura, auth):
    def ids(key):
        resp = client.get("/lideres", headers=auth(estructura[key]))
        return resp.status_code, {l["usuario_id"] for l in resp.json()} if resp.status_code == 200 else None

    todos = {estructura["lider_a"].usuario_id, estructura["lider_b"].usuario_id}
    assert ids("admin") == (200, todos)
    assert ids("consultor") == (200, todos)
    assert ids("coord_a") == (200, {estructura["lider_a"].usuario_id})
    assert ids("lider_a")[0] == 403
    assert ids("validador")[0] == 403

    lider_b = estructura["lider_b"].usuario_id
    assert client.get(f"/lideres/{lider_b}", headers=auth(estructura["coord_a"])).status_code == 404
    assert client.get(f"/lideres/{lider_b}", headers=auth(estructura["consultor"])).status_code == 200


def test_actualizar_lider(client, estructura, auth):
    lider = estructura["lider_a"]
    resp = client.put(f"/lideres/{lider.usuario_id}", headers=auth(estructura["coord_a"]),
                      json={"numero_documento": "3216549870", "coordinador_id": estructura["coord_b"].usuario_id})
    assert resp.status_code == 200
    body = resp.json()
    assert body["coordinador_id"] == estructura["coord_a"].usuario_id
    assert body["email"] == "3216549870@sistema.local"
    login = client.post("/auth/token", data={"username": "3216549870", "password": "Lider9870"})
    assert login.status_code == 200

    resp = client.put(f"/lideres/{lider.usuario_id}", headers=auth(estructura["consultor"]), json={"nombres": "X"})
    assert resp.status_code == 403
    resp = client.put(f"/lideres/{lider.usuario_id}", headers=auth(estructura["coord_b"]), json={"nombres": "X"})
    assert resp.status_code == 404

    resp = client.put(f"/lideres/{lider.usuario_id}", headers=auth(estructura["admin"]),
                      json={"coordinador_id": estructura["coord_b"].usuario_id})
    assert resp.json()["coordinador_id"] == estructura["coord_b"].usuario_id


def test_eliminar_lider(client, estructura, auth, make_persona, db):
    headers = auth(estructura["admin"])
    make_persona(estructura["lider_b"])
    assert client.delete(f"/lideres/{estructura['lider_b'].usuario_id}", headers=headers).status_code == 400

    lider_a = estructura["lider_a"].usuario_id
    assert client.delete(f"/lideres/{lider_a}", headers=auth(estructura["consultor"])).status_code == 403
    assert client.delete(f"/lideres/{lider_a}", headers=headers).status_code == 200
    db.expire_all()
    assert db.query(FiltroLider).filter_by(lider_id=lider_a).count() == 0


def test_exportar_lideres(client, estructura, auth, catalogos, db):
    barrio, puesto = catalogos
    lider = db.get(Usuario, estructura["lider_a"].usuario_id)
    lider.barrio_id = barrio.barrio_id
    lider.puesto_votacion_id = puesto.puesto_votacion_id
    lider.mesa_votacion = "7"
    lider.telefono = "3000000000"
    db.commit()

    resp = client.get("/lideres/export", headers=auth(estructura["coord_a"]))
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert 'filename="lideres-' in resp.headers["content-disposition"]

    ws = openpyxl.load_workbook(BytesIO(resp.content)).active
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0] == ("Nombres", "Apellidos", "Cédula", "Celular", "Dirección",
                       "Nombre del barrio", "Nombre del puesto de votación", "Mesa")
    assert len(rows) == 2
    assert rows[1][2] == lider.numero_documento
    assert rows[1][5] == "Centro"
    assert rows[1][6] == "Colegio Nacional"
    assert rows[1][7] == "7"


# ========= Filtros =========

def test_crear_filtro(client, estructura, auth, make_user):
    coord = estructura["coord_a"]
    otro_lider = make_user(Role.lider, coordinador=coord)
    resp = client.post("/filtros", headers=auth(coord), json=_perfil(
        "40404040",
        role="validador",
        lideres_ids=[estructura["lider_a"].usuario_id, otro_lider.usuario_id, otro_lider.usuario_id],
    ))
    assert resp.status_code == 201
    body = resp.json()
    assert body["role"] == "validador"
    assert body["coordinador_id"] == coord.usuario_id
    assert body["lideres_count"] == 2
    assert {a["lider"]["usuario_id"] for a in body["lideres"]} == {
        estructura["lider_a"].usuario_id, otro_lider.usuario_id
    }


def test_crear_filtro_validaciones(client, estructura, auth):
    admin = auth(estructura["admin"])
    lider_a = estructura["lider_a"].usuario_id

    sin_coord = client.post("/filtros", headers=admin, json=_perfil("1", role="confirmador", lideres_ids=[lider_a]))
    assert sin_coord.status_code == 400

    ajeno = client.post("/filtros", headers=admin, json=_perfil(
        "2", role="confirmador", coordinador_id=estructura["coord_b"].usuario_id, lideres_ids=[lider_a]
    ))
    assert ajeno.status_code == 400

    sin_lideres = client.post("/filtros", headers=admin, json=_perfil(
        "3", role="confirmador", coordinador_id=estructura["coord_a"].usuario_id, lideres_ids=[]
    ))
    assert sin_lideres.status_code == 422

    rol_invalido = client.post("/filtros", headers=admin, json=_perfil(
        "4", role="lider", coordinador_id=estructura["coord_a"].usuario_id, lideres_ids=[lider_a]
    ))
    assert rol_invalido.status_code == 422


def test_visibilidad_filtros(client, estructura, auth, make_user):
    ajeno = make_user(Role.confirmador, coordinador=estructura["coord_b"])

    propios = client.get("/filtros", headers=auth(estructura["coord_a"])).json()
    assert {f["usuario_id"] for f in propios} == {
        estructura["validador"].usuario_id, estructura["confirmador"].usuario_id
    }
    validadores = client.get("/filtros", headers=auth(estructura["admin"]), params={"role": "validador"}).json()
    assert [f["usuario_id"] for f in validadores] == [estructura["validador"].usuario_id]

    assert client.get(f"/filtros/{ajeno.usuario_id}", headers=auth(estructura["coord_a"])).status_code == 404
    assert client.get("/filtros", headers=auth(estructura["consultor"])).status_code == 403


def test_actualizar_filtro(client, estructura, auth, make_user):
    filtro_id = estructura["validador"].usuario_id
    nuevo_lider = make_user(Role.lider, coordinador=estructura["coord_a"])
    lider_b = estructura["lider_b"].usuario_id

    resp = client.put(f"/filtros/{filtro_id}", headers=auth(estructura["coord_a"]),
                      json={"lideres_ids": [nuevo_lider.usuario_id]})
    assert resp.status_code == 200
    assert [a["lider"]["usuario_id"] for a in resp.json()["lideres"]] == [nuevo_lider.usuario_id]

    resp = client.put(f"/filtros/{filtro_id}", headers=auth(estructura["coord_a"]),
                      json={"coordinador_id": estructura["coord_b"].usuario_id, "lideres_ids": [lider_b]})
    assert resp.status_code == 403

    admin = auth(estructura["admin"])
    resp = client.put(f"/filtros/{filtro_id}", headers=admin,
                      json={"coordinador_id": estructura["coord_b"].usuario_id})
    assert resp.status_code == 400

    resp = client.put(f"/filtros/{filtro_id}", headers=admin,
                      json={"coordinador_id": estructura["coord_b"].usuario_id, "lideres_ids": [lider_b]})
    assert resp.status_code == 200
    assert resp.json()["coordinador_id"] == estructura["coord_b"].usuario_id
    assert resp.json()["lideres_count"] == 1


def test_asignar_y_desasignar(client, estructura, auth, make_user):
    coord = estructura["coord_a"]
    headers = auth(coord)
    filtro_id = estructura["confirmador"].usuario_id
    nuevo = make_user(Role.lider, coordinador=coord)

    resp = client.post(f"/filtros/{filtro_id}/lideres", headers=headers,
                       json={"lideres_ids": [estructura["lider_a"].usuario_id, nuevo.usuario_id]})
    assert resp.status_code == 200
    assert resp.json()["asignados"] == 1

    resp = client.post(f"/filtros/{filtro_id}/lideres", headers=headers,
                       json={"lideres_ids": [nuevo.usuario_id]})
    assert resp.status_code == 400

    asignaciones = client.get(f"/filtros/{filtro_id}/lideres", headers=headers).json()
    assert len(asignaciones) == 2
    assert all(a["asignado_at"] for a in asignaciones)

    resp = client.delete(f"/filtros/{filtro_id}/lideres", headers=headers, params={"lider_id": nuevo.usuario_id})
    assert resp.status_code == 200
    resp = client.delete(f"/filtros/{filtro_id}/lideres", headers=headers, params={"lider_id": nuevo.usuario_id})
    assert resp.status_code == 404


def test_eliminar_filtro(client, estructura, auth, make_persona):
    persona = make_persona(estructura["lider_a"])
    validador = estructura["validador"]
    client.post(f"/personas/{persona.persona_id}/verificar", headers=auth(validador))

    headers = auth(estructura["coord_a"])
    assert client.delete(f"/filtros/{validador.usuario_id}", headers=headers).status_code == 400
    assert client.delete(f"/filtros/{estructura['confirmador'].usuario_id}", headers=headers).status_code == 200
