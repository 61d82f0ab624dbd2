# ==============================================================================
# CONFIGURACIÓN
# ==============================================================================
# Todos los valores se leen de variables de entorno con un default de
# desarrollo. create_app() acepta un dict de overrides (usado por los tests).
#
# Comando típico en producción:
#   export ROSARIO_SECRET_KEY="clave_larga_y_aleatoria"
#   export ROSARIO_ADMIN_EMAIL="admin@tienda.com"
# ==============================================================================

import os

BASE = os.path.dirname(os.path.abspath(__file__))

_DEFAULT_SECRET = "rosario_store_dev_secret_key_change_in_production"


def _env_bool(name: str, default: bool) -> bool:
    """Interpreta '1', 'true', 'yes', 'on' como True."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on', 'si', 'sí')


class Config:
    """Valores por defecto de la aplicación (se copian a app.config)."""

    SECRET_KEY = os.environ.get("ROSARIO_SECRET_KEY") or _DEFAULT_SECRET

    # Carpeta donde vive el almacén de documentos (un JSON por colección)
    DATA_DIR = os.environ.get("ROSARIO_DATA_DIR") or os.path.join(BASE, "data")

    # Las pantallas de administración se habilitan solo para este correo
    ADMIN_EMAIL = (os.environ.get("ROSARIO_ADMIN_EMAIL") or "admin@rosario.store").strip().lower()

    # False = dos escrituras independientes (comportamiento base)
    # True  = escrituras del libro de créditos dentro de una transacción
    LEDGER_ATOMIC_WRITES = _env_bool("ROSARIO_LEDGER_ATOMIC", False)

    # Prefijo público de las imágenes subidas al almacén de archivos
    BLOB_URL_PREFIX = os.environ.get("ROSARIO_BLOB_URL_PREFIX") or "/media"

    # Logging
    LOG_LEVEL = os.environ.get("ROSARIO_LOG_LEVEL") or "INFO"
    ENABLE_PROFILING = _env_bool("ROSARIO_ENABLE_PROFILING", True)
    LOGS_DIR = os.environ.get("ROSARIO_LOGS_DIR") or os.path.join(BASE, "logs")

    # Upload / limits
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10 MB (hojas de cálculo y fotos)

    # Cookies de sesión
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = _env_bool("ROSARIO_SECURE_COOKIES", False)
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 86400  # 24 horas
