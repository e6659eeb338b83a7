# models/__init__.py
from utils.db import Base  # re-export
from .catalogo import Barrio, PuestoVotacion
from .candidato import Candidato
from .usuario import Usuario, FiltroLider
from .importacion import Importacion
from .persona import Persona
from .novedad import Novedad
from .confirmacion import VotoConfirmacion
