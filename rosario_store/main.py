# ==============================================================================
# APLICACIÓN WEB - Rutas JSON
# ==============================================================================
# Las rutas solo orquestan request -> servicio -> respuesta.
# Toda regla de negocio vive en services/.
#
# Formato de respuesta:
#   {"ok": true, ...datos}
#   {"ok": false, "error": "mensaje"}  + código HTTP del error
# ==============================================================================

import json
import logging
import queue
import uuid
from functools import wraps
from typing import Any, Dict, Mapping, Optional

import click
from flask import Blueprint, Flask, Response, request, send_from_directory, session
from flask.cli import with_appcontext
from werkzeug.exceptions import RequestEntityTooLarge

from rosario_store.app_container import EXTENSION_KEY, AppContainer, get_container
from rosario_store.config import Config
from rosario_store.exceptions import RemoteOperationFailed, RosarioError
from rosario_store.models import Principal
from rosario_store.performance_logger import (
    get_function_stats,
    get_log_summary,
    get_route_stats,
    init_profiling,
    reset_stats,
)

logger = logging.getLogger(__name__)

bp = Blueprint('rosario', __name__)

# Segundos entre comentarios keep-alive del stream de listas
STREAM_KEEPALIVE = 15


# ═══════════════════════════════════════════════════════════════════════════
# FÁBRICA DE LA APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Crea la app Flask.

    Args:
        overrides: Valores que reemplazan a Config (los tests pasan DATA_DIR
                   en una carpeta temporal)
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)
    app.config['ADMIN_EMAIL'] = (app.config.get('ADMIN_EMAIL') or '').strip().lower()

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    logger.setLevel(app.config['LOG_LEVEL'])

    app.extensions[EXTENSION_KEY] = AppContainer(app.config)

    # Mide rendimiento de rutas y funciones. Logs en LOGS_DIR
    init_profiling(app)

    app.register_blueprint(bp)
    app.cli.add_command(create_account_command)
    return app


# ═══════════════════════════════════════════════════════════════════════════
# SESIÓN, PERMISOS Y CSRF
# ═══════════════════════════════════════════════════════════════════════════

def current_principal() -> Optional[Principal]:
    email = session.get('email')
    return Principal(email) if email else None


def _actor() -> str:
    return session.get('email') or 'sistema'


def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if 'email' not in session:
            return {"ok": False, "error": "Debes iniciar sesión."}, 401
        return f(*args, **kwargs)
    return wrapper


def admin_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if 'email' not in session:
            return {"ok": False, "error": "Debes iniciar sesión."}, 401
        if not get_container().auth_service.is_admin(current_principal()):
            return {"ok": False, "error": "Permiso denegado."}, 403
        return f(*args, **kwargs)
    return wrapper


def generate_csrf_token() -> str:
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method in ('POST', 'PUT', 'DELETE'):
            token = session.get('csrf_token')
            sent = request.headers.get('X-CSRF-Token') or request.headers.get('X-CSRFToken')
            if not sent and request.is_json:
                sent = (request.get_json(silent=True) or {}).get('csrf_token')
            if not token or not sent or token != sent:
                return {"ok": False, "error": "CSRF token inválido"}, 403
        return f(*args, **kwargs)
    return wrapper


def _payload() -> Dict[str, Any]:
    """Cuerpo JSON o formulario como dict."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()


# ═══════════════════════════════════════════════════════════════════════════
# ERRORES Y CABECERAS
# ═══════════════════════════════════════════════════════════════════════════

@bp.app_errorhandler(RosarioError)
def handle_domain_error(error: RosarioError):
    if isinstance(error, RemoteOperationFailed):
        logger.exception("Falla del almacén en %s %s", request.method, request.path)
    return {"ok": False, "error": error.message}, error.status_code


@bp.app_errorhandler(RequestEntityTooLarge)
def handle_too_large(error):
    return {"ok": False, "error": "El archivo supera el tamaño máximo permitido"}, 413


@bp.after_app_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    # HSTS solo con HTTPS real
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════
# AUTENTICACIÓN
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/auth/login', methods=['POST'])
def login():
    data = _payload()
    principal = get_container().auth_service.sign_in(data.get('email'), data.get('password'))

    session.clear()
    session.permanent = True  # usa PERMANENT_SESSION_LIFETIME
    session['email'] = principal.normalized_email
    return {
        "ok": True,
        "email": principal.normalized_email,
        "isAdmin": get_container().auth_service.is_admin(principal),
        "csrfToken": generate_csrf_token(),
    }


@bp.route('/api/auth/logout', methods=['POST'])
@login_required
@verify_csrf
def logout():
    get_container().auth_service.sign_out(current_principal())
    session.clear()
    return {"ok": True}


# ═══════════════════════════════════════════════════════════════════════════
# CLIENTE AUTENTICADO (perfil, estado de cuenta, pedidos personales)
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/me/profile')
@login_required
def my_profile():
    profile = get_container().customer_service.get_profile(current_principal())
    return {"ok": True, **profile}


@bp.route('/api/me/statement')
@login_required
def my_statement():
    statement = get_container().ledger_service.statement_for(current_principal())
    return {"ok": True, **statement}


@bp.route('/api/me/orders', methods=['GET', 'POST'])
@login_required
@verify_csrf
def my_orders():
    orders = get_container().order_service
    if request.method == 'POST':
        data = _payload()
        order = orders.create_order(current_principal(), data.get('description'),
                                    data.get('status') or 'pending')
        return {"ok": True, "order": order.to_view()}, 201
    return {"ok": True, "orders": [o.to_view() for o in orders.list_orders(current_principal())]}


@bp.route('/api/me/orders/<order_id>', methods=['PUT', 'DELETE'])
@login_required
@verify_csrf
def my_order(order_id):
    orders = get_container().order_service
    if request.method == 'DELETE':
        orders.delete_order(current_principal(), order_id)
        return {"ok": True}
    data = _payload()
    order = orders.update_order(current_principal(), order_id, data.get('description'), data.get('status'))
    return {"ok": True, "order": order.to_view()}


# ═══════════════════════════════════════════════════════════════════════════
# CLIENTES Y CRÉDITOS (administración)
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/customers', methods=['GET', 'POST'])
@admin_required
@verify_csrf
def customers():
    service = get_container().customer_service
    if request.method == 'POST':
        data = _payload()
        customer = service.register_customer(
            data.get('name'), data.get('email'), data.get('phone'),
            data.get('creditLimit'), actor=_actor())
        return {"ok": True, "customer": customer.to_view()}, 201
    found = service.list_customers(request.args.get('q', ''))
    return {"ok": True, "customers": [c.to_view() for c in found]}


@bp.route('/api/customers/<customer_id>', methods=['DELETE'])
@admin_required
@verify_csrf
def delete_customer(customer_id):
    removed = get_container().ledger_service.delete_customer(customer_id, actor=_actor())
    return {"ok": True, "ordersRemoved": removed}


@bp.route('/api/customers/<customer_id>/credits', methods=['GET', 'POST'])
@admin_required
@verify_csrf
def customer_credits(customer_id):
    container = get_container()
    customer = container.customer_service.get_customer(customer_id)
    if request.method == 'POST':
        data = _payload()
        order = container.ledger_service.assign_order(
            customer_id, data.get('amount'), data.get('description'),
            customer=customer, actor=_actor())
        return {"ok": True, "order": order.to_view()}, 201
    orders = container.ledger_service.customer_orders(customer_id)
    return {"ok": True, "customer": customer.to_view(), "orders": [o.to_view() for o in orders]}


@bp.route('/api/credits/<order_id>/payments', methods=['POST'])
@admin_required
@verify_csrf
def credit_payment(order_id):
    result = get_container().ledger_service.apply_payment(
        order_id, _payload().get('amount'), actor=_actor())
    return {"ok": True, **result.to_view()}


@bp.route('/api/customers/<customer_id>/rebates', methods=['POST'])
@admin_required
@verify_csrf
def customer_rebate(customer_id):
    customer = get_container().ledger_service.apply_rebate(
        customer_id, _payload().get('amount'), actor=_actor())
    return {"ok": True, "customer": customer.to_view()}


@bp.route('/api/credits')
@admin_required
def all_credits():
    return {"ok": True, "orders": get_container().ledger_service.all_orders()}


# ═══════════════════════════════════════════════════════════════════════════
# PRODUCTOS
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/products', methods=['GET', 'POST'])
@login_required
@verify_csrf
def products():
    service = get_container().product_service
    if request.method == 'POST':
        if not get_container().auth_service.is_admin(current_principal()):
            return {"ok": False, "error": "Permiso denegado."}, 403
        product = service.create_product(_payload(), actor=_actor())
        return {"ok": True, "product": product.to_view()}, 201

    found = service.list_products(
        category=request.args.get('category'),
        search=request.args.get('q', ''),
        descending=request.args.get('order') == 'desc',
    )
    return {"ok": True, "products": [p.to_view() for p in found]}


@bp.route('/api/products/<product_id>', methods=['PUT', 'DELETE'])
@admin_required
@verify_csrf
def product_detail(product_id):
    service = get_container().product_service
    if request.method == 'DELETE':
        service.delete_product(product_id, actor=_actor())
        return {"ok": True}
    product = service.update_product(product_id, _payload(), actor=_actor())
    return {"ok": True, "product": product.to_view()}


@bp.route('/api/products/<product_id>/image', methods=['POST'])
@admin_required
@verify_csrf
def product_image(product_id):
    upload = request.files.get('image')
    if upload is None:
        return {"ok": False, "error": "No se recibió ninguna imagen"}, 400
    url = get_container().product_service.attach_image(
        product_id, upload.read(), upload.mimetype, actor=_actor())
    return {"ok": True, "imagenUrl": url}


@bp.route('/api/products/import', methods=['POST'])
@admin_required
@verify_csrf
def product_import():
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return {"ok": False, "error": "No se recibió ningún archivo"}, 400
    result = get_container().import_service.import_file(upload.stream, upload.filename, actor=_actor())
    return {"ok": True, **result.to_view()}


@bp.route('/media/<path:filename>')
def media(filename):
    return send_from_directory(get_container().blob_store.root_dir, filename)


# ═══════════════════════════════════════════════════════════════════════════
# LISTAS DE COMPRAS
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/checklist/categories')
@login_required
def checklist_categories():
    return {"ok": True, "categories": get_container().checklist_service.categories()}


@bp.route('/api/checklist/pending')
@login_required
def checklist_pending():
    items = get_container().checklist_service.pending_items()
    return {"ok": True, "items": [i.to_view() for i in items]}


@bp.route('/api/checklist/<category>/items', methods=['GET', 'POST'])
@login_required
@verify_csrf
def checklist_items(category):
    service = get_container().checklist_service
    if request.method == 'POST':
        item = service.add_item(category, _payload().get('text'))
        return {"ok": True, "item": item.to_view()}, 201
    return {"ok": True, "items": [i.to_view() for i in service.list_items(category)]}


@bp.route('/api/checklist/<category>/items/<item_id>/toggle', methods=['POST'])
@login_required
@verify_csrf
def checklist_toggle(category, item_id):
    item = get_container().checklist_service.toggle_item(category, item_id)
    return {"ok": True, "item": item.to_view()}


@bp.route('/api/checklist/<category>/items/<item_id>/complete', methods=['POST'])
@login_required
@verify_csrf
def checklist_complete(category, item_id):
    item = get_container().checklist_service.complete_item(category, item_id)
    return {"ok": True, "item": item.to_view()}


@bp.route('/api/checklist/<category>/items/<item_id>', methods=['DELETE'])
@login_required
@verify_csrf
def checklist_delete(category, item_id):
    get_container().checklist_service.delete_item(category, item_id)
    return {"ok": True}


@bp.route('/api/checklist/<category>/stream')
@login_required
def checklist_stream(category):
    """
    Server-sent events: un evento con la lista completa al conectar y
    otro tras cada cambio. La suscripción se cancela al cerrar la conexión.
    """
    updates: 'queue.Queue' = queue.Queue()
    subscription = get_container().checklist_service.subscribe(category, updates.put)

    def events():
        try:
            while True:
                try:
                    items = updates.get(timeout=STREAM_KEEPALIVE)
                except queue.Empty:
                    yield ': keep-alive\n\n'
                    continue
                payload = json.dumps([i.to_view() for i in items], ensure_ascii=False)
                yield f"data: {payload}\n\n"
        finally:
            subscription.cancel()

    return Response(events(), mimetype='text/event-stream',
                    headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'})


# ═══════════════════════════════════════════════════════════════════════════
# AUDITORÍA Y RENDIMIENTO
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/audit')
@admin_required
def audit_logs():
    service = get_container().audit_service
    logs = service.search_logs(
        query=request.args.get('q', ''),
        log_type=request.args.get('type') or None,
        user=request.args.get('user') or None,
    )
    limit = request.args.get('limit', type=int) or 100
    return {"ok": True, "logs": [log.to_view() for log in logs[:limit]]}


@bp.route('/api/admin/performance', methods=['GET', 'DELETE'])
@admin_required
@verify_csrf
def performance_stats():
    if request.method == 'DELETE':
        # Reinicia los contadores; los archivos de log quedan
        reset_stats()
        return {"ok": True}
    return {
        "ok": True,
        "routes": get_route_stats(),
        "functions": get_function_stats(),
        "logs": get_log_summary(),
    }


# ═══════════════════════════════════════════════════════════════════════════
# COMANDOS DE CONSOLA
# ═══════════════════════════════════════════════════════════════════════════

@click.command('create-account')
@click.argument('email')
@click.argument('password')
@with_appcontext
def create_account_command(email, password):
    """Crea (o actualiza) una cuenta de acceso: flask --app wsgi create-account EMAIL PASSWORD"""
    try:
        principal = get_container().auth_service.register_account(email, password)
    except RosarioError as e:
        raise click.ClickException(e.message) from e
    click.echo(f"Cuenta lista: {principal.normalized_email}")

