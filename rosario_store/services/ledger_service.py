# ==============================================================================
# LIBRO DE CRÉDITOS
# ==============================================================================
# Mantiene la deuda del cliente consistente con el estado de sus pedidos.
#
# Operaciones que mueven dinero:
#   assign_order  -> crea el pedido y suma a currentDebt
#   apply_payment -> abona a un pedido y resta lo efectivamente aplicado
#   apply_rebate  -> resta a currentDebt sin tocar pedidos
#
# MODO DE ESCRITURA (LEDGER_ATOMIC_WRITES):
#   False -> dos escrituras independientes; el límite se evalúa contra el
#            cliente que trae la pantalla. Dos asignaciones simultáneas
#            con la misma foto pueden perder una actualización.
#   True  -> ambas escrituras dentro de store.atomic(); cliente y pedido se
#            releen dentro de la transacción y un fallo revierte todo.
# ==============================================================================

import logging
from contextlib import nullcontext
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from rosario_store.exceptions import LimitExceeded, NotFound, ValidationError
from rosario_store.models import CreditOrder, CreditStatus, Customer, Principal, is_credit_record
from rosario_store.performance_logger import profile_function
from rosario_store.repositories.credit_repository import CreditRepository
from rosario_store.repositories.customer_repository import CustomerRepository
from rosario_store.repositories.interfaces import IDocumentStore
from rosario_store.services.audit_service import AuditService
from rosario_store.services.identity_service import IdentityService
from rosario_store.utils import as_text, month_label, round_money, to_float, utcnow

logger = logging.getLogger(__name__)


@dataclass
class PaymentResult:
    """Resultado de un abono a pedido."""
    order: CreditOrder
    applied: float
    current_debt: Optional[float]

    def to_view(self) -> Dict[str, Any]:
        return {
            'order': self.order.to_view(),
            'applied': self.applied,
            'currentDebt': self.current_debt,
        }


class LedgerService:
    """
    Servicio del libro de créditos.

    Los parámetros `customer` opcionales son la foto del cliente que tiene
    la pantalla. En modo base se usan tal cual; en modo atómico se ignoran
    y se relee el registro.
    """

    UNKNOWN_OWNER = 'Desconocido'
    UNNAMED_OWNER = 'Usuario'

    def __init__(
        self,
        store: IDocumentStore,
        customer_repo: CustomerRepository,
        credit_repo: CreditRepository,
        identity_service: IdentityService,
        audit_service: Optional[AuditService] = None,
        atomic_writes: bool = False
    ):
        self.store = store
        self.customer_repo = customer_repo
        self.credit_repo = credit_repo
        self.identity_service = identity_service
        self.audit_service = audit_service
        self.atomic_writes = atomic_writes

    def _transaction(self):
        return self.store.atomic() if self.atomic_writes else nullcontext()

    def _snapshot(self, customer_id: str, customer: Optional[Customer]) -> Optional[Customer]:
        if customer is not None and not self.atomic_writes and customer.id == customer_id:
            return customer
        return self.customer_repo.get(customer_id)

    # =========================================================================
    # ESCRITURA
    # =========================================================================

    @profile_function(name="Asignar crédito")
    def assign_order(
        self,
        customer_id: str,
        amount: Any,
        description: str,
        customer: Optional[Customer] = None,
        actor: str = 'sistema'
    ) -> CreditOrder:
        """
        Crea un pedido a crédito y lo suma a la deuda del cliente.

        Raises:
            ValidationError: Monto <= 0 o descripción vacía
            NotFound: El cliente no existe
            LimitExceeded: currentDebt + amount > creditLimit
        """
        amount = round_money(to_float(amount))
        description = as_text(description)
        if amount <= 0:
            raise ValidationError("El monto debe ser mayor a 0")
        if not description:
            raise ValidationError("La descripción es obligatoria")

        with self._transaction():
            snapshot = self._snapshot(customer_id, customer)
            if snapshot is None:
                raise NotFound("Cliente no encontrado")

            new_debt = round_money(snapshot.current_debt + amount)
            if new_debt > snapshot.credit_limit:
                available = max(0.0, snapshot.credit_limit - snapshot.current_debt)
                raise LimitExceeded(
                    f"El pedido supera el límite de crédito. Disponible: $ {available:.2f}")

            now = utcnow()
            order = CreditOrder(
                id='',
                user_id=customer_id,
                amount=amount,
                description=description,
                paid_amount=0.0,
                status=CreditStatus.PENDING,
                created_at=now,
                month=month_label(now),
            )
            order.id = self.credit_repo.create(order.to_dict())
            self.customer_repo.set_debt(customer_id, new_debt)

        if self.audit_service:
            self.audit_service.log_credit_assigned(actor, snapshot.name, order.id, amount, new_debt)
        return order

    @profile_function(name="Registrar pago")
    def apply_payment(
        self,
        order_id: str,
        payment_amount: Any,
        customer: Optional[Customer] = None,
        actor: str = 'sistema'
    ) -> PaymentResult:
        """
        Abona a un pedido a crédito.

        El abono nunca deja paidAmount por encima de amount; a la deuda se
        le resta solo lo efectivamente aplicado (nunca por debajo de 0).

        Raises:
            ValidationError: Abono <= 0 o el registro es un pedido personal
            NotFound: El pedido no existe
        """
        payment = round_money(to_float(payment_amount))
        if payment <= 0:
            raise ValidationError("El monto debe ser mayor a 0")

        with self._transaction():
            data = self.credit_repo.get(order_id)
            if data is None:
                raise NotFound("Pedido no encontrado")
            if not is_credit_record(data):
                raise ValidationError("Este pedido no tiene monto a crédito")

            order = CreditOrder.from_dict(order_id, data)
            new_paid = round_money(min(order.paid_amount + payment, order.amount))
            reduction = round_money(new_paid - order.paid_amount)
            order.paid_amount = new_paid
            order.status = CreditStatus.for_amounts(new_paid, order.amount)
            self.credit_repo.update(order_id, {
                'paidAmount': order.paid_amount,
                'status': order.status.value,
            })

            owner = self._snapshot(order.user_id, customer)
            current_debt = None
            if owner is None:
                logger.warning("Pedido %s sin cliente %s; deuda no actualizada", order_id, order.user_id)
            else:
                current_debt = round_money(max(0.0, owner.current_debt - reduction))
                self.customer_repo.set_debt(owner.id, current_debt)

        if self.audit_service:
            self.audit_service.log_payment(actor, order_id, reduction, order.outstanding)
        return PaymentResult(order=order, applied=reduction, current_debt=current_debt)

    @profile_function(name="Abono general")
    def apply_rebate(
        self,
        customer_id: str,
        amount: Any,
        customer: Optional[Customer] = None,
        actor: str = 'sistema'
    ) -> Customer:
        """
        Reduce la deuda sin tocar ningún pedido (piso 0).

        Después de un abono general la suma de saldos de los pedidos puede
        ser mayor que currentDebt.
        """
        amount = round_money(to_float(amount))
        if amount <= 0:
            raise ValidationError("El monto debe ser mayor a 0")

        with self._transaction():
            snapshot = self._snapshot(customer_id, customer)
            if snapshot is None:
                raise NotFound("Cliente no encontrado")
            new_debt = round_money(max(0.0, snapshot.current_debt - amount))
            self.customer_repo.set_debt(customer_id, new_debt)

        updated = replace(snapshot, current_debt=new_debt)
        if self.audit_service:
            self.audit_service.log_rebate(actor, customer_id, snapshot.name, amount, new_debt)
        return updated

    @profile_function(name="Eliminar cliente")
    def delete_customer(self, customer_id: str, actor: str = 'sistema') -> int:
        """
        Elimina todos los registros de "credits" del cliente y luego el cliente.

        Cada borrado es independiente: si uno falla, los anteriores quedan
        aplicados y el error se propaga.

        Returns:
            Cantidad de pedidos eliminados
        """
        customer = self.customer_repo.get(customer_id)
        if customer is None:
            raise NotFound("Cliente no encontrado")

        removed = 0
        for order_id, _ in self.credit_repo.find_by_user(customer_id):
            self.credit_repo.delete(order_id)
            removed += 1
        self.customer_repo.delete(customer_id)

        if self.audit_service:
            self.audit_service.log_customer_deleted(actor, customer_id, customer.name, removed)
        return removed

    # =========================================================================
    # LECTURA
    # =========================================================================

    def customer_orders(self, customer_id: str) -> List[CreditOrder]:
        """Pedidos a crédito del cliente, más recientes primero."""
        return [
            CreditOrder.from_dict(i, d)
            for i, d in self.credit_repo.find_by_user(customer_id, newest_first=True)
            if is_credit_record(d)
        ]

    def all_orders(self) -> List[Dict[str, Any]]:
        """
        Todos los registros de "credits" con el nombre del cliente,
        más recientes primero (pantalla de administración).
        """
        names = {c.id: c.name for c in self.customer_repo.list_all()}
        rows = []
        for order_id, data in self.credit_repo.list_newest_first():
            user_id = as_text(data.get('userId'))
            if user_id in names:
                owner = names[user_id] or self.UNNAMED_OWNER
            else:
                owner = self.UNKNOWN_OWNER
            if is_credit_record(data):
                view = CreditOrder.from_dict(order_id, data).to_view()
            else:
                view = {
                    'id': order_id,
                    'userId': user_id,
                    'description': as_text(data.get('description'), 'Sin descripción'),
                    'status': as_text(data.get('status'), 'pending'),
                }
            view['customerName'] = owner
            rows.append(view)
        return rows

    def statement_for(self, principal: Optional[Principal]) -> Dict[str, Any]:
        """
        Estado de cuenta del usuario autenticado: pedidos agrupados por mes
        con su saldo pendiente.
        """
        customer_id, customer = self.identity_service.resolve(principal)
        orders = self.customer_orders(customer_id)

        months: Dict[str, List[Dict[str, Any]]] = {}
        for order in orders:
            months.setdefault(order.month or month_label(order.created_at), []).append(order.to_view())

        return {
            'customer': customer.to_view(),
            'months': [{'month': m, 'orders': views} for m, views in months.items()],
            'outstanding': round_money(sum(o.outstanding for o in orders)),
            'currentDebt': customer.current_debt,
        }
