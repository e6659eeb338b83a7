"""
Confirmación de voto con evidencia fotográfica (CONFIRMADO -> COMPLETADO).
"""
from models import Persona, VotoConfirmacion, Novedad
from enums.enums import PersonaEstadoEnum as E

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 64


def _confirmar(client, headers, persona_id, content=PNG, content_type="image/png", filename="voto.png"):
    return client.post(
        "/confirmaciones",
        headers=headers,
        data={"persona_id": str(persona_id)},
        files={"imagen": (filename, content, content_type)},
    )


def test_confirmar_voto(client, estructura, auth, make_persona, storage, db):
    persona = make_persona(estructura["lider_a"], estado=E.CONFIRMADO.value)

    resp = _confirmar(client, auth(estructura["lider_a"]), persona.persona_id)
    assert resp.status_code == 201
    body = resp.json()
    assert body["imagen_path"].startswith(f"confirmaciones/{persona.persona_id}-")
    assert body["imagen_path"].endswith(".png")
    assert body["imagen_url"] == storage.public_url(body["imagen_path"])
    assert body["imagen_path"] in storage.objects

    db.expire_all()
    persona = db.get(Persona, persona.persona_id)
    assert persona.estado == E.COMPLETADO.value
    assert persona.estado_anterior == E.CONFIRMADO.value
    assert persona.tiene_confirmacion_activa

    # Ya tiene una confirmación activa
    resp = _confirmar(client, auth(estructura["lider_a"]), persona.persona_id)
    assert resp.status_code == 400


def test_requiere_estado_confirmado(client, estructura, auth, make_persona, storage):
    persona = make_persona(estructura["lider_a"], estado=E.VERIFICADO.value)
    resp = _confirmar(client, auth(estructura["lider_a"]), persona.persona_id)
    assert resp.status_code == 400
    assert storage.objects == {}


def test_novedad_activa(client, estructura, auth, make_persona, db):
    lider = estructura["lider_a"]
    persona = make_persona(lider, estado=E.CONFIRMADO.value)
    db.add(Novedad(persona_id=persona.persona_id, observacion="Pendiente", creada_por_id=lider.usuario_id))
    db.commit()
    assert _confirmar(client, auth(lider), persona.persona_id).status_code == 400


def test_validacion_de_imagen(client, estructura, auth, make_persona, monkeypatch):
    from config.settings import settings
    persona = make_persona(estructura["lider_a"], estado=E.CONFIRMADO.value)
    headers = auth(estructura["lider_a"])

    resp = _confirmar(client, headers, persona.persona_id, content=b"hola", content_type="text/plain",
                      filename="voto.txt")
    assert resp.status_code == 415

    monkeypatch.setattr(settings, "MAX_IMAGE_MB", 0)
    resp = _confirmar(client, headers, persona.persona_id)
    assert resp.status_code == 413


def test_acceso(client, estructura, auth, make_persona):
    persona = make_persona(estructura["lider_a"], estado=E.CONFIRMADO.value)
    pid = persona.persona_id
    assert _confirmar(client, auth(estructura["consultor"]), pid).status_code == 403
    assert _confirmar(client, auth(estructura["validador"]), pid).status_code == 403
    assert _confirmar(client, auth(estructura["lider_b"]), pid).status_code == 404
    assert _confirmar(client, auth(estructura["coord_b"]), pid).status_code == 404
    assert _confirmar(client, auth(estructura["confirmador"]), pid).status_code == 201


def test_sin_almacenamiento(client, estructura, auth, make_persona):
    from main import app
    from services.storage_service import get_optional_storage
    app.dependency_overrides[get_optional_storage] = lambda: None

    persona = make_persona(estructura["lider_a"], estado=E.CONFIRMADO.value)
    resp = _confirmar(client, auth(estructura["lider_a"]), persona.persona_id)
    assert resp.status_code == 503


def test_reversar_confirmacion(client, estructura, auth, make_persona, db):
    persona = make_persona(estructura["lider_a"], estado=E.CONFIRMADO.value)
    headers = auth(estructura["coord_a"])
    confirmacion = _confirmar(client, headers, persona.persona_id).json()

    resp = client.post(f"/confirmaciones/{confirmacion['confirmacion_id']}/reversar", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["reversado"] is True
    assert resp.json()["reversado_por_id"] == estructura["coord_a"].usuario_id

    db.expire_all()
    assert db.get(Persona, persona.persona_id).estado == E.CONFIRMADO.value

    again = client.post(f"/confirmaciones/{confirmacion['confirmacion_id']}/reversar", headers=headers)
    assert again.status_code == 400

    # Tras reversar se puede registrar una nueva evidencia
    assert _confirmar(client, headers, persona.persona_id).status_code == 201
    assert db.query(VotoConfirmacion).filter_by(persona_id=persona.persona_id).count() == 2

    detalle = client.get(f"/personas/{persona.persona_id}", headers=headers).json()
    assert detalle["confirmacion"]["reversado"] is False


def test_reversar_fuera_de_alcance(client, estructura, auth, make_persona):
    persona = make_persona(estructura["lider_a"], estado=E.CONFIRMADO.value)
    confirmacion = _confirmar(client, auth(estructura["lider_a"]), persona.persona_id).json()
    resp = client.post(f"/confirmaciones/{confirmacion['confirmacion_id']}/reversar",
                       headers=auth(estructura["lider_b"]))
    assert resp.status_code == 404
