# ==============================================================================
# REPOSITORIO DE PEDIDOS
# ==============================================================================
# Encapsula el acceso a la colección "credits".
# La misma colección guarda dos tipos de registro:
#   - pedidos a crédito (amount, paidAmount, status de tres estados)
#   - pedidos personales (solo description y status pending/paid)
# ==============================================================================

from typing import Any, Dict, List, Optional

from rosario_store.repositories.interfaces import Document, IDocumentStore


class CreditRepository:
    """Repositorio de la colección de pedidos."""

    COLLECTION = 'credits'

    def __init__(self, store: IDocumentStore):
        self.store = store

    def create(self, fields: Dict[str, Any]) -> str:
        return self.store.insert(self.COLLECTION, fields)

    def get(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get(self.COLLECTION, order_id)

    def find_by_user(self, user_id: str, newest_first: bool = False) -> List[Document]:
        if newest_first:
            return self.store.query(self.COLLECTION, where=('userId', user_id),
                                    order_by='createdAt', descending=True)
        return self.store.query(self.COLLECTION, where=('userId', user_id))

    def list_newest_first(self) -> List[Document]:
        return self.store.query(self.COLLECTION, order_by='createdAt', descending=True)

    def update(self, order_id: str, fields: Dict[str, Any]) -> None:
        self.store.update(self.COLLECTION, order_id, fields)

    def delete(self, order_id: str) -> bool:
        return self.store.delete(self.COLLECTION, order_id)
