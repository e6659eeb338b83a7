from enum import Enum

# =====================================================
# 🔐 USUARIOS / ACCESOS
# =====================================================
class TipoDocumentoEnum(str, Enum):
    CC = "CC"
    CE = "CE"
    Pasaporte = "Pasaporte"
    TI = "TI"
    Otro = "Otro"


# =====================================================
# 🗳️ PERSONAS
# =====================================================
class PersonaEstadoEnum(str, Enum):
    """
    Etapas del flujo de una persona.

    DATOS_PENDIENTES -> VERIFICADO -> CONFIRMADO -> COMPLETADO
    CON_NOVEDAD es una rama: bloquea el avance hasta resolverse.
    """
    DATOS_PENDIENTES = "DATOS_PENDIENTES"
    VERIFICADO = "VERIFICADO"
    CON_NOVEDAD = "CON_NOVEDAD"
    CONFIRMADO = "CONFIRMADO"
    COMPLETADO = "COMPLETADO"  # Voto confirmado con evidencia fotográfica


class SituacionEnum(str, Enum):
    """Situación derivada para listados (datos completos / voto)."""
    missing_data = "missing_data"
    pending = "pending"
    confirmed = "confirmed"


# Estado al que se regresa al reversar
REVERSE_MAP: dict[PersonaEstadoEnum, PersonaEstadoEnum] = {
    PersonaEstadoEnum.COMPLETADO: PersonaEstadoEnum.CONFIRMADO,
    PersonaEstadoEnum.CONFIRMADO: PersonaEstadoEnum.VERIFICADO,
    PersonaEstadoEnum.VERIFICADO: PersonaEstadoEnum.DATOS_PENDIENTES,
    PersonaEstadoEnum.CON_NOVEDAD: PersonaEstadoEnum.DATOS_PENDIENTES,
}
