"""
Login por correo o documento, perfil propio y banderas de rol.
"""
from enums.roles import Role

DEFAULT_PASSWORD = "secreto123"


def test_login_con_correo_y_con_documento(client, make_user, db):
    user = make_user(Role.lider)

    por_correo = client.post("/auth/token", data={"username": user.email, "password": DEFAULT_PASSWORD})
    assert por_correo.status_code == 200
    assert por_correo.json()["token_type"] == "bearer"

    por_documento = client.post(
        "/auth/token", data={"username": user.numero_documento, "password": DEFAULT_PASSWORD}
    )
    assert por_documento.status_code == 200

    db.refresh(user)
    assert user.last_login_at is not None


def test_login_invalido(client, make_user):
    user = make_user(Role.lider)
    inactivo = make_user(Role.lider, status="i")

    resp = client.post("/auth/token", data={"username": user.email, "password": "otra-clave"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Credenciales inválidas"

    resp = client.post("/auth/token", data={"username": inactivo.email, "password": DEFAULT_PASSWORD})
    assert resp.status_code == 401

    resp = client.post("/auth/token", data={"username": "nadie@sistema.local", "password": DEFAULT_PASSWORD})
    assert resp.status_code == 401


def test_me_requiere_token(client):
    assert client.get("/auth/me").status_code == 401
    resp = client.get("/auth/me", headers={"Authorization": "Bearer no-es-un-token"})
    assert resp.status_code == 401


def test_me_y_check_role(client, make_user, auth):
    consultor = make_user(Role.consultor)
    headers = auth(consultor)

    me = client.get("/auth/me", headers=headers).json()
    assert me["usuario_id"] == consultor.usuario_id
    assert "password_hash" not in me

    flags = client.get("/auth/check-role", headers=headers).json()
    assert flags["role"] == "consultor"
    assert flags["is_consultor"] is True
    assert flags["is_admin"] is False
    assert flags["can_write"] is False


def test_check_role_filtro(client, make_user, auth):
    coord = make_user(Role.coordinador)
    validador = make_user(Role.validador, coordinador=coord)
    flags = client.get("/auth/check-role", headers=auth(validador)).json()
    assert flags["is_filtro"] is True
    assert flags["can_write"] is True


def test_logout(client, make_user, auth):
    user = make_user(Role.admin)
    resp = client.post("/auth/logout", headers=auth(user))
    assert resp.status_code == 200
    assert "message" in resp.json()


def test_email_by_document(client, make_user):
    user = make_user(Role.lider, email="lider@campana.co")
    resp = client.post("/auth/email-by-document", json={"numero_documento": user.numero_documento})
    assert resp.status_code == 200
    assert resp.json() == {"email": "lider@campana.co"}

    resp = client.post("/auth/email-by-document", json={"numero_documento": "999"})
    assert resp.status_code == 404


def test_perfil_actualiza_datos_y_password(client, make_user, auth, catalogos):
    barrio, puesto = catalogos
    user = make_user(Role.lider)
    headers = auth(user)

    resp = client.put("/perfil", headers=headers, json={
        "telefono": "3001112233",
        "barrio_id": barrio.barrio_id,
        "puesto_votacion_id": puesto.puesto_votacion_id,
        "role": "admin",
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["telefono"] == "3001112233"
    assert body["barrio"]["nombre"] == "Centro"
    assert body["role"] == "lider"

    resp = client.put("/perfil", headers=headers, json={"current_password": "mala", "new_password": "nueva123"})
    assert resp.status_code == 400

    resp = client.put("/perfil", headers=headers, json={
        "current_password": DEFAULT_PASSWORD, "new_password": "nueva123",
    })
    assert resp.status_code == 200
    login = client.post("/auth/token", data={"username": user.email, "password": "nueva123"})
    assert login.status_code == 200


def test_perfil_password_corta(client, make_user, auth):
    user = make_user(Role.lider)
    resp = client.put("/perfil", headers=auth(user), json={
        "current_password": DEFAULT_PASSWORD, "new_password": "123",
    })
    assert resp.status_code == 422


def test_catalogos_ordenados(client, make_user, auth, db):
    from models import Barrio
    db.add_all([Barrio(codigo="B2", nombre="Zeta"), Barrio(codigo="B1", nombre="Alfa")])
    db.commit()
    headers = auth(make_user(Role.consultor))

    nombres = [b["nombre"] for b in client.get("/barrios", headers=headers).json()]
    assert nombres == ["Alfa", "Zeta"]
    assert client.get("/puestos-votacion", headers=headers).status_code == 200
    assert client.get("/barrios").status_code == 401
