# schemas/common.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


# -------------------------------------------------------------------
# Objetos de respuesta simples / mensajes
# -------------------------------------------------------------------
class Msg(BaseModel):
    """Respuesta simple con mensaje plano (útil para deletes, acciones, etc.)."""
    message: str


class ORMModel(BaseModel):
    """Base para respuestas construidas desde objetos ORM (SQLAlchemy)."""
    model_config = ConfigDict(from_attributes=True)


class FormInput(BaseModel):
    """
    Base para payloads de formularios.

    Los formularios envían "" en campos opcionales vacíos; se normalizan a None
    y se recortan espacios en los strings.
    """

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any):
        if isinstance(data, dict):
            clean = {}
            for key, value in data.items():
                if isinstance(value, str):
                    value = value.strip()
                    if value == "":
                        value = None
                clean[key] = value
            return clean
        return data
