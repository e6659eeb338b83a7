"""
Utilidades centralizadas para manejo de fechas y timestamps.
Todas las operaciones usan la zona horaria de la campaña (APP_TIMEZONE,
por defecto America/Bogota).

Convención del sistema:
- Los timestamps se persisten **naive** en hora local de la campaña.
- Las fechas (nacimiento, expedición) se validan contra el día local.
"""
from datetime import datetime, date
from zoneinfo import ZoneInfo

from config.settings import settings

LOCAL_TZ = ZoneInfo(settings.APP_TIMEZONE)


def now_local() -> datetime:
    """
    Retorna el datetime actual en la zona de la campaña (naive para DATETIME).
    """
    return datetime.now(LOCAL_TZ).replace(tzinfo=None, microsecond=0)


def today_local() -> date:
    """
    Retorna la fecha actual (date) en la zona de la campaña.
    """
    return datetime.now(LOCAL_TZ).date()


def years_ago(years: int, ref: date | None = None) -> date:
    """
    Resta años a una fecha. El 29 de febrero cae al 28 en años no bisiestos.
    """
    ref = ref or today_local()
    try:
        return ref.replace(year=ref.year - years)
    except ValueError:
        return ref.replace(year=ref.year - years, day=28)


def stamp_for_filename(dt: datetime | None = None) -> str:
    """
    Formato DDMMYYYYHHMMSS usado en los nombres de archivos exportados.
    """
    return (dt or now_local()).strftime("%d%m%Y%H%M%S")
