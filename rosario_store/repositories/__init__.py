# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Los repositorios encapsulan el almacén de documentos. Los servicios nunca
# tocan los archivos JSON directamente.
# ==============================================================================

from .interfaces import IBlobStore, IDocumentStore, ISubscription
from .base import JsonDocumentStore, Subscription
from .blob_store import LocalBlobStore
from .account_repository import AccountRepository
from .audit_repository import AuditRepository
from .checklist_repository import ChecklistRepository
from .credit_repository import CreditRepository
from .customer_repository import CustomerRepository
from .product_repository import ProductRepository

__all__ = [
    'IBlobStore',
    'IDocumentStore',
    'ISubscription',
    'JsonDocumentStore',
    'Subscription',
    'LocalBlobStore',
    'AccountRepository',
    'AuditRepository',
    'ChecklistRepository',
    'CreditRepository',
    'CustomerRepository',
    'ProductRepository',
]
