# utils/transactions.py
import logging
from contextlib import contextmanager

from sqlalchemy.orm import Session

from utils.db import SessionLocal

logger = logging.getLogger(__name__)


@contextmanager
def uow(session: Session | None = None, descripcion: str = "operación"):
    """
    Unidad de trabajo para scripts y tareas por lotes.

    Uso:
        with uow(db, "reset de datos") as tx:
            tx.execute(...)
        # commit al salir, rollback (y log) si algo falla

    Sin sesión se abre una propia y se cierra al terminar.
    """
    owns_session = session is None
    db = session or SessionLocal()
    try:
        yield db
        db.commit()
        logger.info("%s: cambios confirmados", descripcion.capitalize())
    except Exception:
        db.rollback()
        logger.exception("%s: rollback por error", descripcion.capitalize())
        raise
    finally:
        if owns_session:
            db.close()
