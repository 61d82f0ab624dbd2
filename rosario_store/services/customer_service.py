# ==============================================================================
# SERVICIO DE CLIENTES
# ==============================================================================
# Alta, consulta y perfil de clientes con cupo de crédito.
# La eliminación (que arrastra los pedidos) vive en LedgerService.
# ==============================================================================

from typing import Any, Dict, List, Optional

from rosario_store.exceptions import NotFound, ValidationError
from rosario_store.models import CreditOrder, Customer, Principal, is_credit_record
from rosario_store.repositories.credit_repository import CreditRepository
from rosario_store.repositories.customer_repository import CustomerRepository
from rosario_store.services.audit_service import AuditService
from rosario_store.services.identity_service import IdentityService
from rosario_store.utils import as_text, round_money, to_float


class CustomerService:
    """
    Servicio de clientes.

    Responsabilidades:
    - Registrar clientes (deuda inicial 0)
    - Listar / buscar por nombre
    - Perfil del cliente autenticado con totales de crédito
    """

    def __init__(
        self,
        customer_repo: CustomerRepository,
        credit_repo: CreditRepository,
        identity_service: IdentityService,
        audit_service: Optional[AuditService] = None
    ):
        self.customer_repo = customer_repo
        self.credit_repo = credit_repo
        self.identity_service = identity_service
        self.audit_service = audit_service

    def register_customer(
        self,
        name: str,
        email: str,
        phone: str = '',
        credit_limit: Any = 0,
        actor: str = 'sistema'
    ) -> Customer:
        """
        Registra un cliente nuevo.

        Raises:
            ValidationError: Nombre vacío o límite de crédito <= 0
        """
        name = as_text(name)
        limit = round_money(to_float(credit_limit))
        if not name:
            raise ValidationError("El nombre es obligatorio")
        if limit <= 0:
            raise ValidationError("El límite de crédito debe ser mayor a 0")

        customer = Customer(
            id='',
            name=name,
            email=as_text(email).lower(),
            phone=as_text(phone),
            credit_limit=limit,
            current_debt=0.0,
        )
        customer.id = self.customer_repo.create(customer.to_dict())

        if self.audit_service:
            self.audit_service.log_customer_created(actor, customer.id, name, limit)
        return customer

    def list_customers(self, search: str = '') -> List[Customer]:
        """Clientes ordenados por nombre; search filtra por nombre sin distinguir mayúsculas."""
        customers = self.customer_repo.list_all()
        term = as_text(search).lower()
        if term:
            customers = [c for c in customers if term in c.name.lower()]
        return sorted(customers, key=lambda c: (c.name.lower(), c.id))

    def get_customer(self, customer_id: str) -> Customer:
        customer = self.customer_repo.get(customer_id)
        if customer is None:
            raise NotFound("Cliente no encontrado")
        return customer

    def get_profile(self, principal: Optional[Principal]) -> Dict[str, Any]:
        """
        Perfil del usuario autenticado.

        Returns:
            Dict con el cliente, sus pedidos a crédito y los totales
            (total asignado, total abonado, crédito disponible >= 0)
        """
        customer_id, customer = self.identity_service.resolve(principal)

        orders = [
            CreditOrder.from_dict(i, d)
            for i, d in self.credit_repo.find_by_user(customer_id, newest_first=True)
            if is_credit_record(d)
        ]
        total_amount = round_money(sum(o.amount for o in orders))
        total_paid = round_money(sum(o.paid_amount for o in orders))

        return {
            'customer': customer.to_view(),
            'orders': [o.to_view() for o in orders],
            'totals': {
                'amount': total_amount,
                'paid': total_paid,
                'availableCredit': round_money(max(0.0, customer.credit_limit - customer.current_debt)),
            },
        }
