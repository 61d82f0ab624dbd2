# ==============================================================================
# ALMACÉN DE ARCHIVOS LOCAL
# ==============================================================================
# Implementación de IBlobStore sobre el disco:
#   upload('product-images/1700000000000_abc.jpg', bytes)
#     -> data/blobs/product-images/1700000000000_abc.jpg
#   get_download_url(ref) -> '/media/product-images/1700000000000_abc.jpg'
# ==============================================================================

import os

from werkzeug.utils import secure_filename

from rosario_store.exceptions import RemoteOperationFailed, ValidationError


class LocalBlobStore:
    """Guarda archivos bajo una carpeta raíz y los publica con un prefijo."""

    def __init__(self, root_dir: str, url_prefix: str = '/media'):
        """
        Args:
            root_dir: Carpeta raíz de los archivos
            url_prefix: Prefijo de la URL pública (servida por la app)
        """
        self.root_dir = root_dir
        self.url_prefix = url_prefix.rstrip('/')
        os.makedirs(root_dir, exist_ok=True)

    def _normalize(self, path: str) -> str:
        segments = [secure_filename(s) for s in path.replace('\\', '/').split('/') if s]
        if not segments or not all(segments):
            raise ValidationError(f"Ruta de archivo inválida: {path!r}")
        return '/'.join(segments)

    def full_path(self, ref: str) -> str:
        return os.path.join(self.root_dir, *self._normalize(ref).split('/'))

    def upload(self, path: str, data: bytes) -> str:
        ref = self._normalize(path)
        target = self.full_path(ref)
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, 'wb') as f:
                f.write(data)
        except OSError as e:
            raise RemoteOperationFailed("Error al subir la imagen.") from e
        return ref

    def get_download_url(self, ref: str) -> str:
        ref = self._normalize(ref)
        if not os.path.exists(self.full_path(ref)):
            raise RemoteOperationFailed(f"Archivo {ref} no encontrado en el almacén")
        return f"{self.url_prefix}/{ref}"
