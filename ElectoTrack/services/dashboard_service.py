# services/dashboard_service.py
"""
Indicadores agregados para el dashboard.

Las estadísticas generales respetan la visibilidad del usuario; los gráficos
son globales (solo admin / consultor).
"""
from collections import Counter

from sqlalchemy import select, func, case
from sqlalchemy.orm import Session

from models.persona import Persona
from models.usuario import Usuario
from models.candidato import Candidato
from services.persona_service import confirmacion_activa_expr
from utils.permissions import apply_persona_visibility
from enums.roles import Role

SIN_DEPARTAMENTO = "Sin departamento"
SIN_MUNICIPIO = "Sin municipio"
SIN_REPRESENTANTE = "Sin representante"


def _label(value: str | None, default: str) -> str:
    """Valores nulos o vacíos se agrupan bajo una etiqueta por defecto."""
    return (value or "").strip() or default


def get_stats(db: Session, user: Usuario) -> dict:
    base = apply_persona_visibility(db, select(Persona.persona_id), user).subquery()
    total = db.scalar(select(func.count()).select_from(base)) or 0

    confirmadas_stmt = apply_persona_visibility(
        db, select(func.count(Persona.persona_id)).where(confirmacion_activa_expr()), user
    )
    confirmadas = db.scalar(confirmadas_stmt) or 0
    return {
        "total_registradas": total,
        "total_confirmadas": confirmadas,
        "total_no_confirmadas": total - confirmadas,
    }


def _por_departamento(db: Session, solo_confirmadas: bool) -> list[tuple[str, str, int]]:
    stmt = select(Persona.departamento, Persona.municipio, func.count(Persona.persona_id))
    if solo_confirmadas:
        stmt = stmt.where(confirmacion_activa_expr())
    stmt = stmt.group_by(Persona.departamento, Persona.municipio)

    # NULL, "" y valores con espacios se agrupan en Python
    totales: Counter[tuple[str, str]] = Counter()
    for departamento, municipio, total in db.execute(stmt).all():
        totales[(_label(departamento, SIN_DEPARTAMENTO), _label(municipio, SIN_MUNICIPIO))] += total
    return [(d, m, n) for (d, m), n in sorted(totales.items())]


def chart_departamentos(db: Session) -> list[dict]:
    return [
        {"departamento": d, "municipio": m, "total": n}
        for d, m, n in _por_departamento(db, solo_confirmadas=False)
    ]


def chart_votos_departamentos(db: Session) -> list[dict]:
    return [
        {"departamento": d, "municipio": m, "confirmados": n}
        for d, m, n in _por_departamento(db, solo_confirmadas=True)
    ]


def chart_lideres(db: Session) -> list[dict]:
    """Confirmados vs pendientes por líder, los de más registros primero."""
    confirmados = func.coalesce(func.sum(case((confirmacion_activa_expr(), 1), else_=0)), 0)
    total = func.count(Persona.persona_id)
    stmt = (
        select(Usuario.nombres, Usuario.apellidos, confirmados, total)
        .select_from(Usuario)
        .outerjoin(Persona, Persona.registrado_por_id == Usuario.usuario_id)
        .where(Usuario.role == Role.lider.value)
        .group_by(Usuario.usuario_id, Usuario.nombres, Usuario.apellidos)
        .order_by(total.desc(), Usuario.nombres.asc())
    )
    return [
        {"lider": f"{nombres} {apellidos}".strip(), "confirmados": int(conf), "pendientes": int(tot) - int(conf)}
        for nombres, apellidos, conf, tot in db.execute(stmt).all()
    ]


def chart_representantes(db: Session) -> list[dict]:
    """Personas agrupadas por el candidato del usuario que las registró."""
    stmt = (
        select(Candidato.nombre_completo, func.count(Persona.persona_id))
        .select_from(Persona)
        .join(Usuario, Usuario.usuario_id == Persona.registrado_por_id)
        .outerjoin(Candidato, Candidato.candidato_id == Usuario.candidato_id)
        .group_by(Candidato.candidato_id, Candidato.nombre_completo)
    )
    items = [
        {"representante": _label(nombre, SIN_REPRESENTANTE), "total": total}
        for nombre, total in db.execute(stmt).all()
    ]
    return sorted(items, key=lambda item: (-item["total"], item["representante"]))
