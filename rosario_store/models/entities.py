# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# Diseñadas para ser independientes del mecanismo de persistencia.
# from_dict() es tolerante: los documentos pueden venir incompletos o con
# números guardados como texto.
# ==============================================================================

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from rosario_store.utils import (
    EPOCH,
    as_datetime,
    as_text,
    to_float,
)


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class CreditStatus(str, Enum):
    """Estados de un pedido a crédito."""
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"

    @classmethod
    def for_amounts(cls, paid_amount: float, amount: float) -> 'CreditStatus':
        """
        Estado que corresponde a un monto abonado.

        paid >= amount      -> paid
        0 < paid < amount   -> partially_paid
        resto               -> pending
        """
        if paid_amount >= amount:
            return cls.PAID
        if paid_amount > 0:
            return cls.PARTIALLY_PAID
        return cls.PENDING

    @property
    def label(self) -> str:
        return {
            CreditStatus.PAID: 'Pagado',
            CreditStatus.PARTIALLY_PAID: 'Parcial',
            CreditStatus.PENDING: 'Pendiente',
        }[self]


class OrderStatus(str, Enum):
    """Estados de la lista personal de pedidos (solo dos)."""
    PENDING = "pending"
    PAID = "paid"


class AuditType(str, Enum):
    """Tipos de eventos de auditoría."""
    CREDITO = "CREDITO"
    PAGO = "PAGO"
    ABONO = "ABONO"
    CLIENTE = "CLIENTE"
    PRODUCTO = "PRODUCTO"
    SISTEMA = "SISTEMA"


# Categorías fijas del catálogo (id, nombre)
PRODUCT_CATEGORIES = (
    ("carnes-frias", "Carnes frías"),
    ("legumbres", "Legumbres"),
    ("frutas-verduras", "Frutas y verduras"),
    ("panes", "Panes"),
    ("gaseosas", "Gaseosas"),
    ("lacteos", "Lacteos"),
    ("mecatos", "Mecatos"),
    ("medicamentos", "Medicamentos"),
    ("aseo-hogar", "Aseo Hogar"),
    ("aseo-personal", "Aseo Personal"),
    ("bastimentos", "Bastimentos"),
    ("enlatados", "Enlatados"),
    ("dulceria", "Dulcería"),
    ("galletas", "Galletas"),
    ("canasta-familiar", "Canasta familiar"),
)
PRODUCT_CATEGORY_IDS = frozenset(cid for cid, _ in PRODUCT_CATEGORIES)
DEFAULT_PRODUCT_CATEGORY = "canasta-familiar"
IMPORT_CATEGORY_SENTINEL = "sin-categoria"

# Categorías fijas de las listas de compras (clave, nombre)
CHECKLIST_CATEGORIES = (
    ("carnes", "Carnes"),
    ("legumbres", "Legumbres"),
    ("frutas-verduras", "Frutas & Verduras"),
    ("pan", "Pan"),
    ("gaseosas", "Gaseosas"),
    ("yogur", "Yogur"),
    ("mecatos", "Mecatos"),
    ("medicamentos", "Medicamentos"),
    ("aseo-hogar", "Aseo del hogar"),
    ("aseo-personal", "Aseo Personal"),
    ("bastimento", "Bastimento"),
    ("enlatados", "Enlatados"),
    ("carnes-frias", "Carnes frías"),
    ("dulces", "Dulces"),
    ("canasta", "Canasta"),
)
CHECKLIST_CATEGORY_KEYS = frozenset(key for key, _ in CHECKLIST_CATEGORIES)


# ==============================================================================
# IDENTIDAD
# ==============================================================================

@dataclass(frozen=True)
class Principal:
    """
    Usuario autenticado por el proveedor de identidad.
    Se pasa explícitamente a cada operación (no hay sesión global).
    """
    email: str

    @property
    def normalized_email(self) -> str:
        return self.email.strip().lower()


# ==============================================================================
# CLIENTES
# ==============================================================================

@dataclass
class Customer:
    """
    Cliente con cupo de crédito.

    Attributes:
        id: ID del documento
        name: Nombre completo
        email: Correo con el que inicia sesión
        phone: Teléfono (opcional)
        credit_limit: Límite de crédito
        current_debt: Deuda actual
    """
    id: str
    name: str
    email: str = ''
    phone: str = ''
    credit_limit: float = 0.0
    current_debt: float = 0.0

    @property
    def available_credit(self) -> float:
        return round(self.credit_limit - self.current_debt, 2)

    @property
    def is_debtor(self) -> bool:
        return self.current_debt > 0

    @property
    def debt_label(self) -> str:
        return "DEUDOR" if self.is_debtor else "AL DÍA"

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'creditLimit': self.credit_limit,
            'currentDebt': self.current_debt,
        }

    def to_view(self) -> Dict[str, Any]:
        data = self.to_dict()
        data.update({
            'id': self.id,
            'availableCredit': self.available_credit,
            'debtLabel': self.debt_label,
        })
        return data

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> 'Customer':
        """Crea instancia desde diccionario."""
        return cls(
            id=doc_id,
            name=as_text(data.get('name')),
            email=as_text(data.get('email')),
            phone=as_text(data.get('phone')),
            credit_limit=to_float(data.get('creditLimit')),
            current_debt=to_float(data.get('currentDebt')),
        )


# ==============================================================================
# PEDIDOS
# ==============================================================================

@dataclass
class CreditOrder:
    """
    Pedido a crédito asignado por el administrador.
    Lleva monto, abonos y estado; su saldo forma parte de la deuda del cliente.
    """
    id: str
    user_id: str
    amount: float
    description: str
    paid_amount: float = 0.0
    status: CreditStatus = CreditStatus.PENDING
    created_at: datetime = EPOCH
    month: str = ''

    @property
    def outstanding(self) -> float:
        return round(max(0.0, self.amount - self.paid_amount), 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'userId': self.user_id,
            'amount': self.amount,
            'paidAmount': self.paid_amount,
            'description': self.description,
            'status': self.status.value,
            'createdAt': self.created_at,
            'date': self.created_at,
            'month': self.month,
        }

    def to_view(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'userId': self.user_id,
            'amount': self.amount,
            'paidAmount': self.paid_amount,
            'outstanding': self.outstanding,
            'description': self.description,
            'status': self.status.value,
            'statusLabel': self.status.label,
            'createdAt': self.created_at.isoformat(),
            'month': self.month,
        }

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> 'CreditOrder':
        try:
            status = CreditStatus(data.get('status') or 'pending')
        except ValueError:
            status = CreditStatus.PENDING
        return cls(
            id=doc_id,
            user_id=as_text(data.get('userId')),
            amount=to_float(data.get('amount')),
            description=as_text(data.get('description'), 'Sin descripción'),
            paid_amount=to_float(data.get('paidAmount')),
            status=status,
            created_at=as_datetime(data.get('createdAt') or data.get('date')),
            month=as_text(data.get('month')),
        )


@dataclass
class PersonalOrder:
    """Pedido de la lista personal del cliente (sin monto ni abonos)."""
    id: str
    user_id: str
    description: str
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = EPOCH

    def to_dict(self) -> Dict[str, Any]:
        return {
            'userId': self.user_id,
            'description': self.description,
            'status': self.status.value,
            'createdAt': self.created_at,
        }

    def to_view(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'userId': self.user_id,
            'description': self.description,
            'status': self.status.value,
            'createdAt': self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> 'PersonalOrder':
        # Cualquier estado distinto de "paid" se muestra como pendiente
        status = OrderStatus.PAID if data.get('status') == 'paid' else OrderStatus.PENDING
        return cls(
            id=doc_id,
            user_id=as_text(data.get('userId')),
            description=as_text(data.get('description'), 'Sin descripción'),
            status=status,
            created_at=as_datetime(data.get('createdAt') or data.get('date')),
        )


def is_credit_record(data: Dict[str, Any]) -> bool:
    """Los pedidos a crédito son los que tienen monto."""
    return data.get('amount') is not None


# ==============================================================================
# PRODUCTOS
# ==============================================================================

@dataclass
class Product:
    """
    Producto del catálogo.

    codigo es solo de presentación y orden; el ID real lo genera el almacén.
    """
    id: str
    codigo: str
    descripcion: str
    unidad_medida: str = '1'
    precio_unitario: float = 0.0
    iva: str = '0%'
    precio_con_iva: float = 0.0
    precio_venta: float = 0.0
    proveedor: str = ''
    categoria: str = DEFAULT_PRODUCT_CATEGORY
    imagen_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'codigo': self.codigo,
            'descripcion': self.descripcion,
            'unidadMedida': self.unidad_medida,
            'precioUnitario': self.precio_unitario,
            'iva': self.iva,
            'precioConIva': self.precio_con_iva,
            'precioVenta': self.precio_venta,
            'proveedor': self.proveedor,
            'categoria': self.categoria,
        }
        if self.imagen_url:
            data['imagenUrl'] = self.imagen_url
        return data

    def to_view(self) -> Dict[str, Any]:
        data = self.to_dict()
        data['id'] = self.id
        data['imagenUrl'] = self.imagen_url
        return data

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> 'Product':
        categoria = data.get('categoria')
        if categoria not in PRODUCT_CATEGORY_IDS:
            categoria = DEFAULT_PRODUCT_CATEGORY
        return cls(
            id=doc_id,
            codigo=as_text(data.get('codigo')),
            descripcion=as_text(data.get('descripcion')),
            unidad_medida=as_text(data.get('unidadMedida'), '1'),
            # Registros antiguos guardaban el costo como costoUnitario
            precio_unitario=to_float(data.get('precioUnitario', data.get('costoUnitario'))),
            iva=as_text(data.get('iva'), '0%'),
            precio_con_iva=to_float(data.get('precioConIva')),
            precio_venta=to_float(data.get('precioVenta')),
            proveedor=as_text(data.get('proveedor')),
            categoria=categoria,
            imagen_url=data.get('imagenUrl') or None,
        )


# ==============================================================================
# LISTAS DE COMPRAS
# ==============================================================================

@dataclass
class ChecklistItem:
    """Ítem de una lista de compras por categoría."""
    id: str
    text: str
    completed: bool = False
    created_at: datetime = EPOCH
    category: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'completed': self.completed,
            'createdAt': self.created_at,
        }

    def to_view(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'text': self.text,
            'completed': self.completed,
            'createdAt': self.created_at.isoformat(),
            'category': self.category,
        }

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any], category: str = '') -> 'ChecklistItem':
        return cls(
            id=doc_id,
            text=as_text(data.get('text')),
            completed=bool(data.get('completed')),
            created_at=as_datetime(data.get('createdAt')),
            category=category,
        )


# ==============================================================================
# AUDITORÍA
# ==============================================================================

@dataclass
class AuditLog:
    """
    Registro de auditoría.

    Attributes:
        type: Tipo de evento
        user: Correo de quien realizó la acción
        message: Mensaje humanizado
        related_id: ID relacionado (cliente, pedido, producto)
        details: Detalles adicionales
    """
    type: AuditType
    user: str
    message: str
    timestamp: datetime = EPOCH
    related_id: str = ''
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'user': self.user,
            'message': self.message,
            'timestamp': self.timestamp,
            'related_id': self.related_id,
            'details': self.details,
        }

    def to_view(self) -> Dict[str, Any]:
        data = self.to_dict()
        data['timestamp'] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditLog':
        try:
            log_type = AuditType(data.get('type', 'SISTEMA'))
        except ValueError:
            log_type = AuditType.SISTEMA
        return cls(
            type=log_type,
            user=data.get('user', 'sistema'),
            message=data.get('message', ''),
            timestamp=as_datetime(data.get('timestamp')),
            related_id=data.get('related_id', ''),
            details=data.get('details') or {},
        )
