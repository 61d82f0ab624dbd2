# ==============================================================================
# UTILIDADES DE CONVERSIÓN
# ==============================================================================
# Los documentos llegan con tipos sueltos (hojas de cálculo, formularios,
# registros viejos). Estas funciones aplican una sola política de lectura.
# ==============================================================================

import re
from datetime import datetime, timezone
from typing import Any, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

MESES = [
    'enero', 'febrero', 'marzo', 'abril', 'mayo', 'junio',
    'julio', 'agosto', 'septiembre', 'octubre', 'noviembre', 'diciembre',
]

_LEADING_FLOAT = re.compile(r'^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?')
_LEADING_INT = re.compile(r'^\s*[-+]?\d+')


def to_float(value: Any, default: float = 0.0) -> float:
    """
    Convierte un valor a float con la semántica de "parseFloat(x) || 0":
    toma el número al inicio del texto y usa el default si no hay número.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_FLOAT.match(str(value))
        if not match:
            return default
        number = float(match.group(0))
    if number != number or number in (float('inf'), float('-inf')):
        return default
    return number or default


def leading_int(value: Any) -> Optional[int]:
    """Entero al inicio del texto ("12abc" -> 12) o None si no hay."""
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(0)) if match else None


def as_text(value: Any, default: str = '') -> str:
    """Texto sin espacios extremos; None y vacíos usan el default."""
    if value is None:
        return default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or default


def as_datetime(value: Any) -> datetime:
    """
    Normaliza una marca de tiempo leída del almacén.
    Ausente o ilegible -> 1970-01-01 UTC.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return EPOCH
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return EPOCH


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def month_label(moment: datetime) -> str:
    """Etiqueta "octubre de 2026" usada para agrupar pedidos por mes."""
    return f"{MESES[moment.month - 1]} de {moment.year}"


def round_money(amount: float) -> float:
    return round(float(amount), 2)
