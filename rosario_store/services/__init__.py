# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Toda regla de negocio vive aquí. Las rutas solo orquestan
# request -> servicio -> respuesta.
# ==============================================================================

from .audit_service import AuditService
from .auth_service import AuthService
from .identity_service import IdentityService
from .customer_service import CustomerService
from .ledger_service import LedgerService, PaymentResult
from .product_service import ProductService, codigo_sort_key
from .import_service import ImportResult, ImportService
from .order_service import OrderService
from .checklist_service import ChecklistService

__all__ = [
    'AuditService',
    'AuthService',
    'IdentityService',
    'CustomerService',
    'LedgerService',
    'PaymentResult',
    'ProductService',
    'codigo_sort_key',
    'ImportResult',
    'ImportService',
    'OrderService',
    'ChecklistService',
]
