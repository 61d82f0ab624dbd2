# ==============================================================================
# INTERFACES DE PERSISTENCIA
# ==============================================================================
#
# Contratos mínimos de los servicios externos:
#
# 1. ALMACÉN DE DOCUMENTOS
#    - Colecciones con nombre, documentos con ID generado
#    - insert / get / get_all / query / update / delete
#    - Suscripción en vivo a una colección (listas de compras)
#
# 2. ALMACÉN DE ARCHIVOS
#    - upload(path, bytes) -> referencia
#    - get_download_url(referencia) -> URL
#
# Los servicios dependen de estas interfaces, NO de la implementación JSON.
# Cambiar a otro backend = nueva clase que cumpla el protocolo +
# cambiar la instanciación en app_container.py.
#
# ==============================================================================

from typing import (
    Any,
    Callable,
    ContextManager,
    Dict,
    List,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)

# Un documento leído: (id, campos)
Document = Tuple[str, Dict[str, Any]]

SnapshotCallback = Callable[[List[Document]], None]


@runtime_checkable
class ISubscription(Protocol):
    """Handle cancelable de una suscripción en vivo."""

    @property
    def active(self) -> bool:
        ...

    def cancel(self) -> None:
        """Deja de recibir notificaciones (idempotente)."""
        ...


@runtime_checkable
class IDocumentStore(Protocol):
    """
    Interfaz del almacén de documentos.
    Toda falla de E/S se reporta como RemoteOperationFailed.
    """

    def insert(self, collection: str, fields: Dict[str, Any]) -> str:
        """Crea un documento y retorna su ID generado."""
        ...

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Obtiene un documento por ID (None si no existe)."""
        ...

    def get_all(self, collection: str) -> List[Document]:
        """Obtiene todos los documentos de la colección."""
        ...

    def query(
        self,
        collection: str,
        where: Optional[Tuple[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        """Filtra por igualdad de un campo y/o ordena por un campo."""
        ...

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Actualización parcial. NotFound si el documento no existe."""
        ...

    def delete(self, collection: str, doc_id: str) -> bool:
        """Elimina un documento. True si existía."""
        ...

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> ISubscription:
        """Llama callback con la lista completa ahora y en cada cambio."""
        ...

    def atomic(self) -> ContextManager[None]:
        """Agrupa escrituras: todas se aplican o ninguna."""
        ...


@runtime_checkable
class IBlobStore(Protocol):
    """Interfaz del almacén de archivos (imágenes de productos)."""

    def upload(self, path: str, data: bytes) -> str:
        """Guarda el contenido y retorna la referencia."""
        ...

    def get_download_url(self, ref: str) -> str:
        """URL pública de una referencia."""
        ...
