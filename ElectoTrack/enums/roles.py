from enum import Enum

class Role(str, Enum):
    admin = "admin"                # Dueño del sistema, acceso total
    coordinador = "coordinador"    # Gestiona sus líderes y las personas de ellos
    lider = "lider"                # Registra personas (solo ve las propias)
    validador = "validador"        # Filtro: verifica personas de sus líderes asignados
    confirmador = "confirmador"    # Filtro: confirma personas de sus líderes asignados
    consultor = "consultor"        # Solo lectura global


FILTRO_ROLES = (Role.validador, Role.confirmador)
