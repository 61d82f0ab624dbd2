# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Independientes del mecanismo de persistencia (almacén de documentos JSON).
# ==============================================================================

from .entities import (
    # Identidad
    Principal,

    # Clientes y créditos
    Customer,
    CreditOrder,
    CreditStatus,
    is_credit_record,

    # Pedidos personales
    PersonalOrder,
    OrderStatus,

    # Catálogo
    Product,
    PRODUCT_CATEGORIES,
    PRODUCT_CATEGORY_IDS,
    DEFAULT_PRODUCT_CATEGORY,
    IMPORT_CATEGORY_SENTINEL,

    # Listas de compras
    ChecklistItem,
    CHECKLIST_CATEGORIES,
    CHECKLIST_CATEGORY_KEYS,

    # Auditoría
    AuditLog,
    AuditType,
)

__all__ = [
    'Principal',
    'Customer',
    'CreditOrder',
    'CreditStatus',
    'is_credit_record',
    'PersonalOrder',
    'OrderStatus',
    'Product',
    'PRODUCT_CATEGORIES',
    'PRODUCT_CATEGORY_IDS',
    'DEFAULT_PRODUCT_CATEGORY',
    'IMPORT_CATEGORY_SENTINEL',
    'ChecklistItem',
    'CHECKLIST_CATEGORIES',
    'CHECKLIST_CATEGORY_KEYS',
    'AuditLog',
    'AuditType',
]
