# ==============================================================================
# REPOSITORIO DE LISTAS DE COMPRAS
# ==============================================================================
# Cada categoría es una subcolección: todo_lists/<categoria>/items
# ==============================================================================

from typing import Any, Dict, List, Optional

from rosario_store.models import ChecklistItem
from rosario_store.repositories.interfaces import IDocumentStore, ISubscription, SnapshotCallback


class ChecklistRepository:
    """Repositorio de ítems por categoría."""

    def __init__(self, store: IDocumentStore):
        self.store = store

    @staticmethod
    def collection_for(category: str) -> str:
        return f"todo_lists/{category}/items"

    def add(self, category: str, fields: Dict[str, Any]) -> str:
        return self.store.insert(self.collection_for(category), fields)

    def get(self, category: str, item_id: str) -> Optional[ChecklistItem]:
        data = self.store.get(self.collection_for(category), item_id)
        if data is None:
            return None
        return ChecklistItem.from_dict(item_id, data, category)

    def list_items(self, category: str) -> List[ChecklistItem]:
        docs = self.store.query(self.collection_for(category), order_by='createdAt', descending=True)
        return [ChecklistItem.from_dict(i, d, category) for i, d in docs]

    def update(self, category: str, item_id: str, fields: Dict[str, Any]) -> None:
        self.store.update(self.collection_for(category), item_id, fields)

    def delete(self, category: str, item_id: str) -> bool:
        return self.store.delete(self.collection_for(category), item_id)

    def subscribe(self, category: str, callback: SnapshotCallback) -> ISubscription:
        return self.store.subscribe(self.collection_for(category), callback,
                                    order_by='createdAt', descending=True)
