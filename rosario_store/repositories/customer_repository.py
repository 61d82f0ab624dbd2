# ==============================================================================
# REPOSITORIO DE CLIENTES
# ==============================================================================
# Encapsula el acceso a la colección "customers".
# ==============================================================================

from typing import Any, Dict, List, Optional

from rosario_store.models import Customer
from rosario_store.repositories.interfaces import IDocumentStore


class CustomerRepository:
    """
    Repositorio de clientes.

    Formato del documento:
        {"name": "Ana", "email": "ana@x.com", "phone": "",
         "creditLimit": 100.0, "currentDebt": 0.0}
    """

    COLLECTION = 'customers'

    def __init__(self, store: IDocumentStore):
        self.store = store

    def create(self, fields: Dict[str, Any]) -> str:
        return self.store.insert(self.COLLECTION, fields)

    def get(self, customer_id: str) -> Optional[Customer]:
        data = self.store.get(self.COLLECTION, customer_id)
        if data is None:
            return None
        return Customer.from_dict(customer_id, data)

    def list_all(self) -> List[Customer]:
        return [Customer.from_dict(i, d) for i, d in self.store.get_all(self.COLLECTION)]

    def find_by_email(self, email: str) -> List[Customer]:
        """Todos los clientes con ese correo (puede haber más de uno)."""
        return [
            Customer.from_dict(i, d)
            for i, d in self.store.query(self.COLLECTION, where=('email', email))
        ]

    def set_debt(self, customer_id: str, current_debt: float) -> None:
        self.store.update(self.COLLECTION, customer_id, {'currentDebt': current_debt})

    def delete(self, customer_id: str) -> bool:
        return self.store.delete(self.COLLECTION, customer_id)
