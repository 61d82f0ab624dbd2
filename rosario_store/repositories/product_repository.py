# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# Encapsula el acceso a la colección "products".
# ==============================================================================

from typing import Any, Dict, List, Optional

from rosario_store.models import Product
from rosario_store.repositories.interfaces import IDocumentStore


class ProductRepository:
    """Repositorio del catálogo."""

    COLLECTION = 'products'

    def __init__(self, store: IDocumentStore):
        self.store = store

    def create(self, fields: Dict[str, Any]) -> str:
        return self.store.insert(self.COLLECTION, fields)

    def get(self, product_id: str) -> Optional[Product]:
        data = self.store.get(self.COLLECTION, product_id)
        if data is None:
            return None
        return Product.from_dict(product_id, data)

    def list_all(self) -> List[Product]:
        return [Product.from_dict(i, d) for i, d in self.store.get_all(self.COLLECTION)]

    def update(self, product_id: str, fields: Dict[str, Any]) -> None:
        self.store.update(self.COLLECTION, product_id, fields)

    def delete(self, product_id: str) -> bool:
        return self.store.delete(self.COLLECTION, product_id)
