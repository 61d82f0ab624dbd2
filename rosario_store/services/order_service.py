# ==============================================================================
# SERVICIO DE PEDIDOS PERSONALES
# ==============================================================================
# Lista de pedidos del propio cliente. Comparte la colección "credits" con
# el libro de créditos, pero aquí solo hay descripción y estado
# pending/paid; nada de lo que se haga en esta lista toca la deuda.
# ==============================================================================

from typing import List, Optional, Tuple

from rosario_store.exceptions import NotFound, ValidationError
from rosario_store.models import OrderStatus, PersonalOrder, Principal, is_credit_record
from rosario_store.repositories.credit_repository import CreditRepository
from rosario_store.services.identity_service import IdentityService
from rosario_store.utils import as_text, utcnow


class OrderService:
    """Pedidos personales del cliente autenticado."""

    def __init__(self, credit_repo: CreditRepository, identity_service: IdentityService):
        self.credit_repo = credit_repo
        self.identity_service = identity_service

    @staticmethod
    def _validate(description: str, status: str) -> Tuple[str, OrderStatus]:
        description = as_text(description)
        if not description:
            raise ValidationError("La descripción es obligatoria")
        try:
            return description, OrderStatus(as_text(status, 'pending'))
        except ValueError as e:
            raise ValidationError("Estado inválido (pending o paid)") from e

    def _owned_order(self, customer_id: str, order_id: str) -> PersonalOrder:
        """
        Pedido del cliente; uno ajeno se reporta como inexistente.
        Los pedidos a crédito no se editan desde esta lista.
        """
        data = self.credit_repo.get(order_id)
        if data is None or data.get('userId') != customer_id:
            raise NotFound("Pedido no encontrado")
        if is_credit_record(data):
            raise ValidationError("Los pedidos a crédito los gestiona el administrador")
        return PersonalOrder.from_dict(order_id, data)

    def list_orders(self, principal: Optional[Principal]) -> List[PersonalOrder]:
        """Todos los registros del cliente, más recientes primero, con estado pending/paid."""
        customer_id, _ = self.identity_service.resolve(principal)
        return [
            PersonalOrder.from_dict(i, d)
            for i, d in self.credit_repo.find_by_user(customer_id, newest_first=True)
        ]

    def create_order(
        self,
        principal: Optional[Principal],
        description: str,
        status: str = 'pending'
    ) -> PersonalOrder:
        customer_id, _ = self.identity_service.resolve(principal)
        description, order_status = self._validate(description, status)

        order = PersonalOrder(
            id='',
            user_id=customer_id,
            description=description,
            status=order_status,
            created_at=utcnow(),
        )
        order.id = self.credit_repo.create(order.to_dict())
        return order

    def update_order(
        self,
        principal: Optional[Principal],
        order_id: str,
        description: str,
        status: str
    ) -> PersonalOrder:
        """Solo cambian descripción y estado."""
        customer_id, _ = self.identity_service.resolve(principal)
        order = self._owned_order(customer_id, order_id)
        order.description, order.status = self._validate(description, status)
        self.credit_repo.update(order_id, {
            'description': order.description,
            'status': order.status.value,
        })
        return order

    def delete_order(self, principal: Optional[Principal], order_id: str) -> None:
        customer_id, _ = self.identity_service.resolve(principal)
        self._owned_order(customer_id, order_id)
        self.credit_repo.delete(order_id)
