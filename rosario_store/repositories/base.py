# ==============================================================================
# ALMACÉN DE DOCUMENTOS JSON
# ==============================================================================
# Implementación local de IDocumentStore: un archivo JSON por colección.
#
#   data/customers.json               -> {id: {...}, id: {...}}
#   data/credits.json
#   data/todo_lists/carnes/items.json -> subcolección por categoría
#
# - Escritura atómica por archivo (temp + os.replace)
# - Un RLock serializa las operaciones del proceso
# - atomic() agrupa varias escrituras con rollback si algo falla
# - subscribe() avisa a los oyentes después de cada cambio confirmado
# ==============================================================================

import copy
import json
import logging
import os
import re
import secrets
import string
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from rosario_store.exceptions import NotFound, RemoteOperationFailed
from rosario_store.repositories.interfaces import Document, SnapshotCallback

logger = logging.getLogger(__name__)

_SEGMENT = re.compile(r'^[A-Za-z0-9_\-]+$')


def _encode(value: Any) -> Any:
    """Hook de json.dump: las fechas se guardan como {"$date": iso}."""
    if isinstance(value, datetime):
        return {'$date': value.isoformat()}
    raise TypeError(f"Tipo no serializable: {type(value).__name__}")


def _decode(obj: Dict[str, Any]) -> Any:
    """Hook de json.load: revive {"$date": iso} como datetime."""
    if len(obj) == 1 and '$date' in obj:
        try:
            return datetime.fromisoformat(obj['$date'])
        except (TypeError, ValueError):
            return obj
    return obj


class BaseRepository(ABC):
    """
    Clase base para un archivo JSON.
    Lectura/escritura con el formato de fechas del almacén.
    """

    def __init__(self, file_path: str):
        """
        Args:
            file_path: Ruta absoluta al archivo JSON de datos
        """
        self.file_path = file_path
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Crea el archivo con datos vacíos si no existe."""
        if not os.path.exists(self.file_path):
            os.makedirs(os.path.dirname(self.file_path), exist_ok=True)
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """Estructura vacía para este archivo."""

    def _read_raw(self) -> Any:
        """
        Lee los datos crudos del archivo JSON.

        Un archivo corrupto o inexistente se lee como vacío.

        Raises:
            RemoteOperationFailed: Si hay error de E/S
        """
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                return json.load(f, object_hook=_decode)
        except (json.JSONDecodeError, FileNotFoundError):
            return self._empty_data()
        except OSError as e:
            raise RemoteOperationFailed(f"No se pudo leer {os.path.basename(self.file_path)}") from e

    def _write_raw(self, data: Any) -> None:
        """
        Escribe datos al archivo JSON (temp + rename).

        Raises:
            RemoteOperationFailed: Si hay error de escritura
        """
        temp_path = self.file_path + '.tmp'
        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=_encode)
            os.replace(temp_path, self.file_path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise RemoteOperationFailed(f"No se pudo guardar {os.path.basename(self.file_path)}") from e


class DictRepository(BaseRepository):
    """
    Archivo JSON con forma de diccionario: el ID es la clave.

    Ejemplo: customers.json -> {"aB3...": {...}, "x9Q...": {...}}
    """

    def _empty_data(self) -> Dict:
        return {}

    def get_all(self) -> Dict[str, Any]:
        data = self._read_raw()
        return data if isinstance(data, dict) else {}

    def save_all(self, data: Dict[str, Any]) -> None:
        self._write_raw(data)


class Subscription:
    """
    Suscripción en vivo a una colección.

    Se cancela con cancel() o al salir del bloque `with`.
    """

    def __init__(
        self,
        store: 'JsonDocumentStore',
        collection: str,
        callback: SnapshotCallback,
        order_by: Optional[str],
        descending: bool,
    ):
        self.collection = collection
        self.order_by = order_by
        self.descending = descending
        self._store = store
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._store._remove_listener(self)

    def deliver(self, docs: List[Document]) -> None:
        if self._active:
            self._callback(docs)

    def __enter__(self) -> 'Subscription':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class JsonDocumentStore:
    """
    Almacén de documentos sobre archivos JSON.

    Uso:
        store = JsonDocumentStore('/ruta/data')
        cid = store.insert('customers', {'name': 'Ana'})
        store.update('customers', cid, {'currentDebt': 10})
    """

    ID_ALPHABET = string.ascii_letters + string.digits
    ID_LENGTH = 20

    def __init__(self, data_dir: str):
        """
        Args:
            data_dir: Carpeta donde viven los archivos de colecciones
        """
        self.data_dir = data_dir
        os.makedirs(data_dir, exist_ok=True)
        self._lock = threading.RLock()
        self._files: Dict[str, DictRepository] = {}
        self._listeners: Dict[str, List[Subscription]] = defaultdict(list)

        # Estado de la transacción en curso (atomic)
        self._tx_owner: Optional[int] = None
        self._tx_depth = 0
        self._tx_backup: Dict[str, Dict[str, Any]] = {}
        self._tx_touched: Set[str] = set()

    # =========================================================================
    # ARCHIVOS POR COLECCIÓN
    # =========================================================================

    def _file(self, collection: str) -> DictRepository:
        repo = self._files.get(collection)
        if repo is None:
            segments = collection.split('/')
            if not all(_SEGMENT.match(s) for s in segments):
                raise ValueError(f"Nombre de colección inválido: {collection!r}")
            path = os.path.join(self.data_dir, *segments) + '.json'
            repo = DictRepository(path)
            self._files[collection] = repo
        return repo

    def _new_id(self) -> str:
        return ''.join(secrets.choice(self.ID_ALPHABET) for _ in range(self.ID_LENGTH))

    def _in_own_tx(self) -> bool:
        return self._tx_depth > 0 and self._tx_owner == threading.get_ident()

    def _save(self, collection: str, data: Dict[str, Any]) -> None:
        repo = self._file(collection)
        if self._in_own_tx() and collection not in self._tx_backup:
            self._tx_backup[collection] = repo.get_all()
        repo.save_all(data)

    # =========================================================================
    # LECTURA
    # =========================================================================

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._file(collection).get_all().get(doc_id)

    def get_all(self, collection: str) -> List[Document]:
        with self._lock:
            return list(self._file(collection).get_all().items())

    def query(
        self,
        collection: str,
        where: Optional[Tuple[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        """
        Filtra por igualdad y/o ordena.

        Los documentos sin el campo de orden van primero en orden ascendente
        (últimos en descendente).
        """
        docs = self.get_all(collection)
        if where is not None:
            field, value = where
            docs = [(i, d) for i, d in docs if d.get(field) == value]
        if order_by:
            def sort_key(item: Document):
                value = item[1].get(order_by)
                return (0, '') if value is None else (1, value)
            docs.sort(key=sort_key, reverse=descending)
        return docs

    # =========================================================================
    # ESCRITURA
    # =========================================================================

    def insert(self, collection: str, fields: Dict[str, Any]) -> str:
        with self._lock:
            data = self._file(collection).get_all()
            doc_id = self._new_id()
            while doc_id in data:
                doc_id = self._new_id()
            data[doc_id] = dict(fields)
            self._save(collection, data)
        self._after_write(collection)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            data = self._file(collection).get_all()
            if doc_id not in data:
                raise NotFound(f"Documento {collection}/{doc_id} no encontrado")
            data[doc_id].update(fields)
            self._save(collection, data)
        self._after_write(collection)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            data = self._file(collection).get_all()
            removed = data.pop(doc_id, None)
            if removed is None:
                return False
            self._save(collection, data)
        self._after_write(collection)
        return True

    # =========================================================================
    # TRANSACCIONES
    # =========================================================================

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Agrupa escrituras. Si el bloque lanza una excepción, cada colección
        tocada vuelve a su contenido previo. Los oyentes se notifican solo
        al confirmar. Bloques anidados se unen al externo.
        """
        with self._lock:
            if self._in_own_tx():
                self._tx_depth += 1
                try:
                    yield
                finally:
                    self._tx_depth -= 1
                return

            self._tx_owner = threading.get_ident()
            self._tx_depth = 1
            self._tx_backup = {}
            self._tx_touched = set()
            committed = False
            try:
                yield
                committed = True
            finally:
                backup, touched = self._tx_backup, self._tx_touched
                self._tx_owner = None
                self._tx_depth = 0
                self._tx_backup = {}
                self._tx_touched = set()
                if not committed:
                    for collection, data in backup.items():
                        logger.warning("Revirtiendo colección %s", collection)
                        self._file(collection).save_all(data)
        if committed:
            for collection in touched:
                self._notify(collection)

    # =========================================================================
    # SUSCRIPCIONES EN VIVO
    # =========================================================================

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> Subscription:
        """Registra un oyente y le entrega el estado actual de inmediato."""
        subscription = Subscription(self, collection, callback, order_by, descending)
        with self._lock:
            self._listeners[collection].append(subscription)
        subscription.deliver(self.query(collection, order_by=order_by, descending=descending))
        return subscription

    def listener_count(self, collection: str) -> int:
        with self._lock:
            return len(self._listeners.get(collection, []))

    def _remove_listener(self, subscription: Subscription) -> None:
        with self._lock:
            listeners = self._listeners.get(subscription.collection, [])
            if subscription in listeners:
                listeners.remove(subscription)

    def _after_write(self, collection: str) -> None:
        if self._in_own_tx():
            self._tx_touched.add(collection)
            return
        self._notify(collection)

    def _notify(self, collection: str) -> None:
        with self._lock:
            listeners = list(self._listeners.get(collection, []))
        for subscription in listeners:
            docs = self.query(collection, order_by=subscription.order_by,
                              descending=subscription.descending)
            subscription.deliver(copy.deepcopy(docs))
