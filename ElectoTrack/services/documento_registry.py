# services/documento_registry.py
"""
Registro documental externo (PocketBase) compartido entre campañas.

Permite saber si un documento ya fue registrado por otra campaña antes de
crear una persona. Toda operación es best effort: si el servicio no responde
se registra el error y se continúa sin validación.
"""
import logging
import time

import httpx

from config.settings import settings

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 55 * 60  # El token de PocketBase dura 1 hora
PEOPLE_COLLECTION = "/api/collections/people/records"


def document_filter(document_number: str) -> str:
    """
    Filtro de PocketBase por número de documento.

    El valor va entre comillas simples con `\\` y `'` escapados, igual que
    `pb.filter()` del SDK: nunca se interpreta como parte de la expresión.
    """
    escaped = document_number.replace("\\", "\\\\").replace("'", "\\'")
    return f"document_number='{escaped}'"


class DocumentoRegistry:
    """Cliente httpx con caché del token de autenticación."""

    def __init__(
        self,
        base_url: str,
        email: str,
        password: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._email = email
        self._password = password
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)
        self._token: str | None = None
        self._token_expiry: float = 0.0

    def close(self) -> None:
        self._client.close()

    # ---------- autenticación ----------

    def _authenticate(self) -> str:
        if self._token and time.monotonic() < self._token_expiry:
            return self._token
        resp = self._client.post(
            "/api/collections/users/auth-with-password",
            json={"identity": self._email, "password": self._password},
        )
        resp.raise_for_status()
        self._token = resp.json()["token"]
        self._token_expiry = time.monotonic() + TOKEN_TTL_SECONDS
        return self._token

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        token = self._authenticate()
        headers = {"Authorization": f"Bearer {token}"}
        return self._client.request(method, url, headers=headers, **kwargs)

    def _find(self, document_number: str) -> dict | None:
        resp = self._request(
            "GET",
            PEOPLE_COLLECTION,
            params={"filter": document_filter(document_number), "perPage": 1},
        )
        if resp.status_code != 200:
            return None
        items = resp.json().get("items") or []
        return items[0] if items else None

    # ---------- operaciones públicas ----------

    def document_exists(self, document_number: str) -> bool:
        try:
            return self._find(document_number) is not None
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("Registro documental no disponible (exists %s): %s", document_number, exc)
            return False

    def get_document_info(self, document_number: str) -> dict | None:
        """Retorna {"place": ...} si el documento existe, None si no o si hay error."""
        try:
            record = self._find(document_number)
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("Registro documental no disponible (info %s): %s", document_number, exc)
            return None
        if record is None:
            return None
        return {"place": record.get("place") or None}

    def create_person(self, document_number: str, place: str | None, leader_id: str) -> bool:
        try:
            resp = self._request(
                "POST",
                PEOPLE_COLLECTION,
                json={"document_number": document_number, "place": place, "leader_id": leader_id},
            )
            if resp.status_code >= 400:
                logger.warning("Registro documental rechazó %s: %s", document_number, resp.text)
                return False
            return True
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("No se pudo registrar %s en el registro documental: %s", document_number, exc)
            return False

    def delete_person(self, document_number: str) -> bool:
        try:
            record = self._find(document_number)
            if record is None:
                return False
            resp = self._request("DELETE", f"{PEOPLE_COLLECTION}/{record['id']}")
            return resp.status_code < 400
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("No se pudo eliminar %s del registro documental: %s", document_number, exc)
            return False


_registry: DocumentoRegistry | None = None


def get_registry() -> DocumentoRegistry | None:
    """
    Retorna el cliente del registro si la validación está habilitada y configurada.
    """
    global _registry
    if not settings.DOCUMENTO_VALIDATION_ENABLED:
        return None
    if not (settings.POCKETBASE_URL and settings.POCKETBASE_EMAIL and settings.POCKETBASE_PASSWORD):
        return None
    if _registry is None:
        _registry = DocumentoRegistry(
            settings.POCKETBASE_URL,
            settings.POCKETBASE_EMAIL,
            settings.POCKETBASE_PASSWORD,
            timeout=settings.POCKETBASE_TIMEOUT_SECONDS,
        )
    return _registry
