# services/importacion_service.py
"""
Carga masiva de personas desde Excel y exportaciones (.xlsx).

Flujo de importación:
1. Detectar columnas por nombre (sin tildes ni mayúsculas)
2. Validar cada fila y acumular errores {fila, documento, error}
3. Rechazar el archivo completo si trae documentos repetidos
4. Crear las personas nuevas y actualizar puesto/mesa de las existentes
   que no tengan confirmación de voto activa
"""
import logging
import unicodedata
from datetime import date, datetime
from io import BytesIO

import openpyxl
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from fastapi import HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from models.catalogo import Barrio, PuestoVotacion
from models.importacion import Importacion
from models.persona import Persona
from models.usuario import Usuario
from services.documento_registry import DocumentoRegistry
from services.persona_service import build_personas_query, campana_de
from utils.permissions import RoleGroups, can_access_persona, ensure_role
from utils.datetime_utils import stamp_for_filename
from schemas.persona import PersonaCreate
from enums.enums import PersonaEstadoEnum, TipoDocumentoEnum
from enums.roles import Role

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (campo, encabezado de la plantilla, fragmento normalizado para detectarlo)
COLUMNAS = [
    ("nombres", "Nombres", "nombres"),
    ("apellidos", "Apellidos", "apellidos"),
    ("tipo_documento", "Tipo de Documento", "tipo de documento"),
    ("numero_documento", "Número de Documento", "numero de documento"),
    ("fecha_nacimiento", "Fecha de Nacimiento", "fecha de nacimiento"),
    ("fecha_expedicion", "Fecha de Expedición", "fecha de expedicion"),
    ("profesion", "Profesión", "profesion"),
    ("numero_celular", "Número de Celular", "numero de celular"),
    ("direccion", "Dirección", "direccion"),
    ("barrio_id", "Barrio", "barrio"),
    ("departamento", "Departamento", "departamento"),
    ("municipio", "Municipio", "municipio"),
    ("puesto_votacion_id", "Puesto de Votación", "puesto de votacion"),
    ("mesa_votacion", "Mesa de Votación", "mesa de votacion"),
]
COLUMNAS_REQUERIDAS = ("nombres", "apellidos", "numero_documento")
TITULOS = {campo: titulo for campo, titulo, _ in COLUMNAS}

EJEMPLO = [
    "Juan Carlos", "Pérez Gómez", "CC", "1234567890", "1990-05-20", "2008-06-01",
    "Docente", "3001234567", "Calle 10 # 5-20", "BAR001", "Cundinamarca",
    "Bogotá", "PUE001", "12",
]
INSTRUCCIONES = (
    "Instrucciones: Nombres, Apellidos y Número de Documento son obligatorios. "
    "Tipo de Documento: CC, CE, Pasaporte, TI u Otro (por defecto CC). "
    "Fechas en formato AAAA-MM-DD. Barrio y Puesto de Votación por código o nombre. "
    "Elimine esta fila y la de ejemplo antes de importar."
)


# ========= Lectura del archivo =========

def normalizar(texto) -> str:
    """Minúsculas, sin tildes y con espacios colapsados."""
    if texto is None:
        return ""
    texto = unicodedata.normalize("NFKD", str(texto))
    texto = "".join(c for c in texto if not unicodedata.combining(c))
    return " ".join(texto.lower().split())


def detectar_columnas(encabezados: tuple) -> dict[str, int]:
    """
    Mapea campo -> índice de columna según los encabezados de la primera fila.

    Raises:
        HTTPException 400: Si falta una columna obligatoria
    """
    indices: dict[str, int] = {}
    for idx, encabezado in enumerate(encabezados):
        nombre = normalizar(encabezado)
        if not nombre:
            continue
        for campo, _, fragmento in COLUMNAS:
            if campo not in indices and fragmento in nombre:
                indices[campo] = idx
                break

    faltantes = [titulo for campo, titulo, _ in COLUMNAS if campo in COLUMNAS_REQUERIDAS and campo not in indices]
    if faltantes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Faltan columnas obligatorias: {', '.join(faltantes)}",
        )
    return indices


def _texto(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, (datetime, date)):
        value = value.strftime("%Y-%m-%d")
    texto = str(value).strip()
    return texto or None


def _fecha(value, campo: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    texto = str(value).strip()
    for formato in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y"):
        try:
            return datetime.strptime(texto, formato).date()
        except ValueError:
            continue
    raise ValueError(f"{campo} inválida: {texto}")


def _tipo_documento(value) -> str:
    texto = _texto(value)
    if not texto:
        return TipoDocumentoEnum.CC.value
    for tipo in TipoDocumentoEnum:
        if normalizar(tipo.value) == normalizar(texto):
            return tipo.value
    raise ValueError(f"Tipo de documento inválido: {texto}")


class _Catalogos:
    """Resuelve barrios y puestos por código o nombre (una sola consulta por tabla)."""

    def __init__(self, db: Session):
        self.barrios: dict[str, int] = {}
        for b in db.scalars(select(Barrio)):
            self.barrios[normalizar(b.codigo)] = b.barrio_id
            self.barrios.setdefault(normalizar(b.nombre), b.barrio_id)
        self.puestos: dict[str, int] = {}
        for p in db.scalars(select(PuestoVotacion)):
            self.puestos[normalizar(p.codigo)] = p.puesto_votacion_id
            self.puestos.setdefault(normalizar(p.nombre), p.puesto_votacion_id)

    def barrio_id(self, value) -> int | None:
        texto = _texto(value)
        if not texto:
            return None
        if normalizar(texto) not in self.barrios:
            raise ValueError(f"Barrio no encontrado: {texto}")
        return self.barrios[normalizar(texto)]

    def puesto_votacion_id(self, value) -> int | None:
        texto = _texto(value)
        if not texto:
            return None
        if normalizar(texto) not in self.puestos:
            raise ValueError(f"Puesto de votación no encontrado: {texto}")
        return self.puestos[normalizar(texto)]


def _mensaje_validacion(exc: ValidationError) -> str:
    """Primer error de pydantic con el encabezado de la columna."""
    error = exc.errors()[0]
    campo = error["loc"][0] if error["loc"] else ""
    titulo = TITULOS.get(campo, campo)
    mensaje = error["msg"].removeprefix("Value error, ")
    return f"{titulo}: {mensaje}" if titulo else mensaje


def parse_fila(valores: tuple, indices: dict[str, int], catalogos: _Catalogos) -> dict:
    """
    Convierte una fila del Excel en los campos de Persona.

    Los valores pasan por PersonaCreate: mismas longitudes y fechas que el
    registro individual.

    Raises:
        ValueError: Con el mensaje que se reporta en el error de la fila
    """
    def celda(campo):
        idx = indices.get(campo)
        if idx is None or idx >= len(valores):
            return None
        return valores[idx]

    faltan = [campo for campo in COLUMNAS_REQUERIDAS if not _texto(celda(campo))]
    if faltan:
        raise ValueError(f"Campos obligatorios vacíos: {', '.join(faltan)}")

    try:
        persona = PersonaCreate(
            nombres=_texto(celda("nombres")),
            apellidos=_texto(celda("apellidos")),
            tipo_documento=_tipo_documento(celda("tipo_documento")),
            numero_documento=_texto(celda("numero_documento")),
            fecha_nacimiento=_fecha(celda("fecha_nacimiento"), "Fecha de nacimiento"),
            fecha_expedicion=_fecha(celda("fecha_expedicion"), "Fecha de expedición"),
            profesion=_texto(celda("profesion")),
            numero_celular=_texto(celda("numero_celular")),
            direccion=_texto(celda("direccion")),
            barrio_id=catalogos.barrio_id(celda("barrio_id")),
            departamento=_texto(celda("departamento")),
            municipio=_texto(celda("municipio")),
            puesto_votacion_id=catalogos.puesto_votacion_id(celda("puesto_votacion_id")),
            mesa_votacion=_texto(celda("mesa_votacion")),
        )
    except ValidationError as e:
        raise ValueError(_mensaje_validacion(e))

    row = persona.model_dump(exclude={"registrado_por"})
    row["tipo_documento"] = persona.tipo_documento.value
    return row


def _leer_libro(file: UploadFile):
    nombre = (file.filename or "").lower()
    if not nombre.endswith(".xlsx"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El archivo debe ser un Excel (.xlsx)",
        )
    contenido = file.file.read()
    try:
        wb = openpyxl.load_workbook(BytesIO(contenido), read_only=True, data_only=True)
    except Exception as e:
        logger.warning("No se pudo leer el Excel %s: %s", file.filename, e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se pudo leer el archivo Excel",
        )
    try:
        filas = list(wb.worksheets[0].iter_rows(values_only=True)) if wb.worksheets else []
    finally:
        wb.close()
    if not filas:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El archivo Excel no contiene datos",
        )
    return filas


# ========= Importación =========

def importar_personas(
    db: Session,
    user: Usuario,
    file: UploadFile,
    registry: DocumentoRegistry | None = None,
) -> dict:
    ensure_role(user, RoleGroups.REGISTRAN_PERSONAS, "No autorizado para importar personas")

    filas = _leer_libro(file)
    indices = detectar_columnas(filas[0])
    catalogos = _Catalogos(db)

    validas: list[tuple[int, dict]] = []
    errores: list[dict] = []
    for numero_fila, valores in enumerate(filas[1:], start=2):
        if valores is None or all(_texto(v) is None for v in valores):
            continue
        try:
            validas.append((numero_fila, parse_fila(valores, indices, catalogos)))
        except ValueError as e:
            idx = indices["numero_documento"]
            documento = _texto(valores[idx]) if idx < len(valores) else None
            errores.append({"fila": numero_fila, "documento": documento, "error": str(e)})
    total_registros = len(validas) + len(errores)

    documentos = [row["numero_documento"] for _, row in validas]
    duplicados = sorted({doc for doc in documentos if documentos.count(doc) > 1})
    if duplicados:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "El archivo contiene números de documento duplicados",
                "duplicados": duplicados,
            },
        )

    existentes = {
        p.numero_documento: p
        for p in db.scalars(select(Persona).where(Persona.numero_documento.in_(documentos)))
    } if documentos else {}

    nuevas: list[tuple[int, dict]] = []
    actualizables: list[tuple[Persona, dict]] = []
    omitidos: list[str] = []
    for numero_fila, row in validas:
        persona = existentes.get(row["numero_documento"])
        if persona is None:
            nuevas.append((numero_fila, row))
        elif not can_access_persona(db, user, persona):
            errores.append({
                "fila": numero_fila,
                "documento": row["numero_documento"],
                "error": "El documento ya está registrado por otro usuario",
            })
        elif persona.tiene_confirmacion_activa:
            omitidos.append(row["numero_documento"])
        else:
            actualizables.append((persona, row))

    # Registro externo: documentos tomados por otra campaña
    if registry is not None and nuevas:
        libres = []
        for numero_fila, row in nuevas:
            info = registry.get_document_info(row["numero_documento"])
            if info is not None:
                errores.append({
                    "fila": numero_fila,
                    "documento": row["numero_documento"],
                    "error": f"El documento ya está registrado por {info.get('place') or 'otra campaña'}",
                })
            else:
                libres.append((numero_fila, row))
        nuevas = libres

    if not nuevas and not actualizables:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "No hay personas nuevas ni actualizables en el archivo",
                "omitidos": len(omitidos),
                "documentos_omitidos": omitidos,
                "errores": errores,
            },
        )

    importacion = Importacion(
        usuario_id=user.usuario_id,
        total_registros=total_registros,
        archivo_nombre=file.filename,
    )
    db.add(importacion)
    db.flush()

    for _, row in nuevas:
        db.add(Persona(
            **row,
            registrado_por_id=user.usuario_id,
            estado=PersonaEstadoEnum.DATOS_PENDIENTES.value,
            es_importado=True,
            importacion_id=importacion.importacion_id,
        ))
    for persona, row in actualizables:
        persona.puesto_votacion_id = row["puesto_votacion_id"]
        persona.mesa_votacion = row["mesa_votacion"]
        db.add(persona)

    exitosos = len(nuevas) + len(actualizables)
    importacion.registros_exitosos = exitosos
    importacion.registros_fallidos = len(errores) + len(omitidos)
    importacion.errores = errores or None
    db.commit()
    db.refresh(importacion)
    logger.info(
        "Importación %s de usuario %s: %s creados, %s actualizados, %s omitidos, %s errores",
        importacion.importacion_id, user.usuario_id, len(nuevas), len(actualizables), len(omitidos), len(errores),
    )

    if registry is not None and nuevas:
        campana = campana_de(db, user.usuario_id)
        for _, row in nuevas:
            registry.create_person(row["numero_documento"], campana, str(user.usuario_id))

    return {
        "message": f"Importación completada: {exitosos} registros procesados",
        "importacion_id": importacion.importacion_id,
        "registros_exitosos": exitosos,
        "creados": len(nuevas),
        "actualizados": len(actualizables),
        "omitidos": len(omitidos),
        "documentos_omitidos": omitidos,
        "fallidos": len(errores),
        "errores": errores,
    }


def list_importaciones(db: Session, user: Usuario) -> list[Importacion]:
    stmt = select(Importacion).order_by(Importacion.created_at.desc(), Importacion.importacion_id.desc())
    if user.role != Role.admin.value:
        stmt = stmt.where(Importacion.usuario_id == user.usuario_id)
    return list(db.scalars(stmt).all())


# ========= Exportaciones =========

def _libro(titulo: str, encabezados: list[str]):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = titulo
    ws.append(encabezados)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    return wb, ws


def _guardar(wb) -> BytesIO:
    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


def xlsx_response(buffer: BytesIO, filename: str) -> StreamingResponse:
    """Descarga .xlsx con el nombre en Content-Disposition."""
    return StreamingResponse(
        buffer,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


SITUACION_LABEL = {
    "missing_data": "Datos faltantes",
    "pending": "Pendiente",
    "confirmed": "Confirmado",
}


def exportar_personas(db: Session, user: Usuario, **filters) -> tuple[BytesIO, str]:
    """Personas visibles con los filtros del listado. Retorna (buffer, filename)."""
    stmt = build_personas_query(db, user, **filters).order_by(Persona.created_at.desc(), Persona.persona_id.desc())
    personas = db.scalars(stmt).all()

    encabezados = [titulo for _, titulo, _ in COLUMNAS] + ["Estado", "Situación", "Registrado por"]
    wb, ws = _libro("Personas", encabezados)
    for p in personas:
        ws.append([
            p.nombres,
            p.apellidos,
            p.tipo_documento,
            p.numero_documento,
            p.fecha_nacimiento.isoformat() if p.fecha_nacimiento else "",
            p.fecha_expedicion.isoformat() if p.fecha_expedicion else "",
            p.profesion or "",
            p.numero_celular or "",
            p.direccion or "",
            p.barrio.nombre if p.barrio else "",
            p.departamento or "",
            p.municipio or "",
            p.puesto_votacion.nombre if p.puesto_votacion else "",
            p.mesa_votacion or "",
            p.estado,
            SITUACION_LABEL.get(p.situacion, p.situacion),
            p.registrado_por.nombre_completo if p.registrado_por else "",
        ])
    return _guardar(wb), f"personas-exportadas-{stamp_for_filename()}.xlsx"


def plantilla_personas() -> tuple[BytesIO, str]:
    wb, ws = _libro("Personas", [titulo for _, titulo, _ in COLUMNAS])
    ws.append(EJEMPLO)
    ws.append([INSTRUCCIONES])
    for col, (_, titulo, _) in enumerate(COLUMNAS, start=1):
        ws.column_dimensions[get_column_letter(col)].width = max(14, len(titulo) + 4)
    return _guardar(wb), f"plantilla-personas-{stamp_for_filename()}.xlsx"


def exportar_lideres(lideres: list[Usuario]) -> tuple[BytesIO, str]:
    wb, ws = _libro("Lideres", [
        "Nombres", "Apellidos", "Cédula", "Celular", "Dirección",
        "Nombre del barrio", "Nombre del puesto de votación", "Mesa",
    ])
    for lider in lideres:
        ws.append([
            lider.nombres,
            lider.apellidos,
            lider.numero_documento,
            lider.telefono or "",
            lider.direccion or "",
            lider.barrio.nombre if lider.barrio else "",
            lider.puesto_votacion.nombre if lider.puesto_votacion else "",
            lider.mesa_votacion or "",
        ])
    return _guardar(wb), f"lideres-{stamp_for_filename()}.xlsx"
