# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide cuánto tardan las rutas de la API y las operaciones de dinero
# (créditos, pagos, abonos, carga masiva) sin cambiar sus respuestas.
#
#   - En memoria: contadores por acción y por función (panel de admin)
#   - En disco (LOGS_DIR): performance.log, slow_routes.log, slow_functions.log
#
# ACTIVAR/DESACTIVAR: ENABLE_PROFILING en la configuración de la app
# (variable de entorno ROSARIO_ENABLE_PROFILING).
# ==============================================================================

import logging
import os
import threading
import time
from datetime import datetime
from functools import wraps

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales en milisegundos
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

PERFORMANCE_LOG = 'performance.log'
SLOW_ROUTES_LOG = 'slow_routes.log'
SLOW_FUNCTIONS_LOG = 'slow_functions.log'

# Las fotos servidas desde el almacén de archivos no se miden
UNTIMED_PREFIXES = ('/media/',)

_settings = {
    'enabled': False,
    'logs_dir': os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs'),
}

# "MÉTODO regla" -> nombre legible en los logs
ROUTE_NAMES = {
    'POST /api/auth/login': 'Iniciar sesión',
    'POST /api/auth/logout': 'Cerrar sesión',

    'GET /api/me/profile': 'Ver perfil',
    'GET /api/me/statement': 'Ver estado de cuenta',
    'GET /api/me/orders': 'Ver mis pedidos',
    'POST /api/me/orders': 'Crear pedido personal',
    'PUT /api/me/orders/<order_id>': 'Editar pedido personal',
    'DELETE /api/me/orders/<order_id>': 'Eliminar pedido personal',

    'GET /api/customers': 'Ver clientes',
    'POST /api/customers': 'Registrar cliente',
    'DELETE /api/customers/<customer_id>': 'Eliminar cliente',
    'GET /api/customers/<customer_id>/credits': 'Ver créditos del cliente',
    'POST /api/customers/<customer_id>/credits': 'Asignar crédito',
    'POST /api/customers/<customer_id>/rebates': 'Abono general',
    'POST /api/credits/<order_id>/payments': 'Registrar pago',
    'GET /api/credits': 'Ver todos los pedidos',

    'GET /api/products': 'Ver catálogo',
    'POST /api/products': 'Crear producto',
    'PUT /api/products/<product_id>': 'Editar producto',
    'DELETE /api/products/<product_id>': 'Eliminar producto',
    'POST /api/products/<product_id>/image': 'Subir foto de producto',
    'POST /api/products/import': 'Cargar hoja de productos',

    'GET /api/checklist/pending': 'Ver pendientes de compras',
    'POST /api/checklist/<category>/items': 'Agregar ítem de lista',

    'GET /api/audit': 'Ver registro de actividad',
}


def configure(enabled=None, logs_dir=None):
    """Ajusta el profiling en tiempo de ejecución (create_app / tests)."""
    if enabled is not None:
        _settings['enabled'] = bool(enabled)
    if logs_dir:
        _settings['logs_dir'] = logs_dir
    if _settings['enabled']:
        os.makedirs(_settings['logs_dir'], exist_ok=True)


def is_enabled():
    return _settings['enabled']


# ═══════════════════════════════════════════════════════════════════════════
# MEDICIONES EN MEMORIA
# ═══════════════════════════════════════════════════════════════════════════

class Timing:
    """Acumulado de tiempos de una acción o función."""

    __slots__ = ('calls', 'total_ms', 'max_ms', 'slow_calls')

    def __init__(self):
        self.calls = 0
        self.total_ms = 0.0
        self.max_ms = 0.0
        self.slow_calls = 0

    def record(self, elapsed_ms):
        self.calls += 1
        self.total_ms += elapsed_ms
        self.max_ms = max(self.max_ms, elapsed_ms)
        if elapsed_ms >= THRESHOLD_WARNING:
            self.slow_calls += 1

    def to_view(self):
        avg = self.total_ms / self.calls if self.calls else 0
        return {
            'calls': self.calls,
            'avg_time': round(avg, 2),
            'max_time': round(self.max_ms, 2),
            'slow_calls': self.slow_calls,
        }


_function_timings = {}
_route_timings = {}
_stats_lock = threading.Lock()
_write_lock = threading.Lock()


def _record(table, key, elapsed_ms):
    with _stats_lock:
        table.setdefault(key, Timing()).record(elapsed_ms)


def _severity(elapsed_ms):
    """None si la medición está dentro de lo normal."""
    if elapsed_ms >= THRESHOLD_CRITICAL:
        return 'CRITICAL'
    if elapsed_ms >= THRESHOLD_WARNING:
        return 'WARNING'
    return None


# ═══════════════════════════════════════════════════════════════════════════
# ARCHIVOS DE LOG
# ═══════════════════════════════════════════════════════════════════════════

def _format_entry(title, fields):
    """Bloque legible: título con fecha y un campo por línea."""
    stamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    lines = [f"[{title}] {stamp}"]
    lines.extend(f"{label}: {value}" for label, value in fields)
    return '\n'.join(lines) + '\n' + '─' * 40 + '\n'


def _write_log(filename, content):
    try:
        with _write_lock:
            with open(os.path.join(_settings['logs_dir'], filename), 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError:
        # El profiling nunca debe tumbar una petición
        logger.debug("No se pudo escribir %s", filename, exc_info=True)


def route_name(method, path, rule=None):
    """Nombre legible de una ruta; la regla de Flask trae los <parámetros>."""
    for key in (f"{method} {path}", f"{method} {rule}" if rule else None):
        if key in ROUTE_NAMES:
            return ROUTE_NAMES[key]
    return f"{method} {rule or path}"


def log_route_timing(method, path, rule, elapsed_ms, user=None):
    """Acumula la medición de una petición y la escribe en los logs."""
    action = route_name(method, path, rule)
    _record(_route_timings, action, elapsed_ms)

    fields = [
        ('Acción', action),
        ('Usuario', user or 'anónimo'),
        ('Ruta', f"{method} {path}"),
        ('Tiempo', f"{elapsed_ms:.0f} ms"),
    ]
    _write_log(PERFORMANCE_LOG, _format_entry('PERFORMANCE', fields))

    level = _severity(elapsed_ms)
    if level:
        _write_log(SLOW_ROUTES_LOG, _format_entry(level, fields))


# ═══════════════════════════════════════════════════════════════════════════
# HOOKS PARA FLASK
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app):
    """
    Lee ENABLE_PROFILING y LOGS_DIR de app.config y, si está activo,
    registra los hooks before_request / after_request.
    """
    configure(app.config.get('ENABLE_PROFILING'), app.config.get('LOGS_DIR'))
    if not is_enabled():
        return

    from flask import g, request, session

    @app.before_request
    def _start_timer():
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        started = g.pop('start_time', None)
        if started is None or request.path.startswith(UNTIMED_PREFIXES):
            return response

        elapsed = (time.perf_counter() - started) * 1000
        rule = str(request.url_rule) if request.url_rule else None
        log_route_timing(request.method, request.path, rule, elapsed, session.get('email'))
        return response


# ═══════════════════════════════════════════════════════════════════════════
# DECORADOR PARA OPERACIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Mide una función de servicio.

    Uso:
        @profile_function(name="Registrar pago")
        def apply_payment(self, ...):
            ...

    Con el profiling apagado al momento de la llamada solo delega.
    Las llamadas que terminan en excepción también se miden.
    """
    def decorator(fn):
        label = name or fn.__qualname__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not is_enabled():
                return fn(*args, **kwargs)

            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                _record(_function_timings, label, elapsed_ms)
                level = _severity(elapsed_ms)
                if level:
                    _write_log(SLOW_FUNCTIONS_LOG, _format_entry(level, [
                        ('Función', label),
                        ('Tiempo', f"{elapsed_ms:.0f} ms"),
                    ]))

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


# ═══════════════════════════════════════════════════════════════════════════
# REPORTES
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """{nombre: {calls, avg_time, max_time, slow_calls}} de las funciones medidas."""
    with _stats_lock:
        return {label: timing.to_view() for label, timing in _function_timings.items()}


def get_route_stats():
    """Lo mismo por acción de la API."""
    with _stats_lock:
        return {action: timing.to_view() for action, timing in _route_timings.items()}


def reset_stats():
    """Vacía los contadores en memoria; los archivos de log se conservan."""
    with _stats_lock:
        _function_timings.clear()
        _route_timings.clear()


def get_log_summary():
    """{archivo: {exists, size_kb, lines}} de los logs en LOGS_DIR."""
    summary = {}
    for key, filename in (('performance', PERFORMANCE_LOG),
                          ('slow_routes', SLOW_ROUTES_LOG),
                          ('slow_functions', SLOW_FUNCTIONS_LOG)):
        path = os.path.join(_settings['logs_dir'], filename)
        if not os.path.exists(path):
            summary[key] = {'exists': False, 'size_kb': 0, 'lines': 0}
            continue
        with open(path, 'r', encoding='utf-8') as f:
            lines = sum(1 for _ in f)
        summary[key] = {'exists': True, 'size_kb': round(os.path.getsize(path) / 1024, 2), 'lines': lines}
    return summary


__all__ = [
    'configure',
    'is_enabled',
    'init_profiling',
    'profile_function',
    'route_name',
    'get_function_stats',
    'get_route_stats',
    'reset_stats',
    'get_log_summary',
]
