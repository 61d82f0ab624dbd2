# ==============================================================================
# SERVICIO DE LISTAS DE COMPRAS
# ==============================================================================
# Una lista por categoría fija (carnes, pan, canasta...). Sin relación con
# el libro de créditos.
# ==============================================================================

from typing import Callable, Dict, List

from rosario_store.exceptions import NotFound, ValidationError
from rosario_store.models import CHECKLIST_CATEGORIES, CHECKLIST_CATEGORY_KEYS, ChecklistItem
from rosario_store.repositories.checklist_repository import ChecklistRepository
from rosario_store.repositories.interfaces import ISubscription
from rosario_store.utils import as_text, utcnow

ItemsCallback = Callable[[List[ChecklistItem]], None]


class ChecklistService:
    """
    Servicio de listas de compras.

    subscribe() entrega la lista completa al suscribirse y después de cada
    cambio en la categoría; el handle devuelto se cancela al salir de la
    vista (o del bloque `with`).
    """

    def __init__(self, checklist_repo: ChecklistRepository):
        self.checklist_repo = checklist_repo

    @staticmethod
    def _check_category(category: str) -> str:
        if category not in CHECKLIST_CATEGORY_KEYS:
            raise ValidationError(f"Categoría inválida: {category}")
        return category

    def _get_item(self, category: str, item_id: str) -> ChecklistItem:
        item = self.checklist_repo.get(self._check_category(category), item_id)
        if item is None:
            raise NotFound("Ítem no encontrado")
        return item

    def categories(self) -> List[Dict[str, str]]:
        return [{'key': key, 'label': label} for key, label in CHECKLIST_CATEGORIES]

    def list_items(self, category: str) -> List[ChecklistItem]:
        """Ítems de la categoría, más recientes primero."""
        return self.checklist_repo.list_items(self._check_category(category))

    def add_item(self, category: str, text: str) -> ChecklistItem:
        self._check_category(category)
        text = as_text(text)
        if not text:
            raise ValidationError("El texto del ítem es obligatorio")

        item = ChecklistItem(id='', text=text, completed=False, created_at=utcnow(), category=category)
        item.id = self.checklist_repo.add(category, item.to_dict())
        return item

    def toggle_item(self, category: str, item_id: str) -> ChecklistItem:
        item = self._get_item(category, item_id)
        item.completed = not item.completed
        self.checklist_repo.update(category, item_id, {'completed': item.completed})
        return item

    def complete_item(self, category: str, item_id: str) -> ChecklistItem:
        item = self._get_item(category, item_id)
        if not item.completed:
            item.completed = True
            self.checklist_repo.update(category, item_id, {'completed': True})
        return item

    def delete_item(self, category: str, item_id: str) -> None:
        if not self.checklist_repo.delete(self._check_category(category), item_id):
            raise NotFound("Ítem no encontrado")

    def pending_items(self) -> List[ChecklistItem]:
        """Ítems sin completar de todas las categorías (se recorre cada una en cada llamada)."""
        pending = []
        for key, _ in CHECKLIST_CATEGORIES:
            pending.extend(item for item in self.checklist_repo.list_items(key) if not item.completed)
        return pending

    def subscribe(self, category: str, callback: ItemsCallback) -> ISubscription:
        self._check_category(category)

        def on_snapshot(docs):
            callback([ChecklistItem.from_dict(i, d, category) for i, d in docs])

        return self.checklist_repo.subscribe(category, on_snapshot)
