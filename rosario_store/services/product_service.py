# ==============================================================================
# SERVICIO DE PRODUCTOS
# ==============================================================================
# Catálogo: alta, edición, baja, búsqueda, orden por código y fotos.
# ==============================================================================

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from rosario_store.exceptions import NotFound, ValidationError
from rosario_store.models import (
    DEFAULT_PRODUCT_CATEGORY,
    IMPORT_CATEGORY_SENTINEL,
    PRODUCT_CATEGORY_IDS,
    Product,
)
from rosario_store.repositories.interfaces import IBlobStore
from rosario_store.repositories.product_repository import ProductRepository
from rosario_store.services.audit_service import AuditService
from rosario_store.utils import as_text, leading_int, round_money, to_float

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('codigo', 'descripcion', 'proveedor')
PRICE_FIELDS = ('precioUnitario', 'precioConIva', 'precioVenta')


def codigo_sort_key(product: Product, descending: bool = False) -> Tuple:
    """
    Orden numérico por código: "9" antes que "10".

    Los códigos sin número al inicio van siempre al final. Empates (mismo
    número, o ambos sin número) se resuelven por el texto del código y
    luego por ID. descending invierte solo la parte numérica.
    """
    number = leading_int(product.codigo)
    if number is None:
        return (1, 0, product.codigo, product.id)
    return (0, -number if descending else number, product.codigo, product.id)


class ProductService:
    """
    Servicio de catálogo.

    Responsabilidades:
    - Crear / editar / eliminar productos
    - Listar con filtro de categoría, búsqueda y orden por código
    - Adjuntar fotos vía el almacén de archivos
    """

    # Campos editables desde el formulario
    ALLOWED_FIELDS = (
        'codigo', 'descripcion', 'unidadMedida', 'precioUnitario', 'iva',
        'precioConIva', 'precioVenta', 'proveedor', 'categoria',
    )

    def __init__(
        self,
        product_repo: ProductRepository,
        blob_store: IBlobStore,
        audit_service: Optional[AuditService] = None
    ):
        self.product_repo = product_repo
        self.blob_store = blob_store
        self.audit_service = audit_service

    # =========================================================================
    # NORMALIZACIÓN
    # =========================================================================

    @staticmethod
    def _clean(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Filtra a los campos permitidos y re-parsea números y textos."""
        clean = {k: v for k, v in fields.items() if k in ProductService.ALLOWED_FIELDS}
        # Registros viejos y algunas hojas usan costoUnitario
        if 'precioUnitario' not in clean and 'costoUnitario' in fields:
            clean['precioUnitario'] = fields['costoUnitario']

        for key in TEXT_FIELDS:
            if key in clean:
                clean[key] = as_text(clean[key])
        for key in PRICE_FIELDS:
            if key in clean:
                clean[key] = round_money(to_float(clean[key]))
        if 'unidadMedida' in clean:
            clean['unidadMedida'] = as_text(clean['unidadMedida'], '1')
        if 'iva' in clean:
            clean['iva'] = as_text(clean['iva'], '0%')
        if 'categoria' in clean:
            clean['categoria'] = as_text(clean['categoria'])
        return clean

    @staticmethod
    def _check_category(categoria: str, allow_sentinel: bool = False) -> None:
        if categoria in PRODUCT_CATEGORY_IDS:
            return
        if allow_sentinel and categoria == IMPORT_CATEGORY_SENTINEL:
            return
        raise ValidationError(f"Categoría inválida: {categoria}")

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_product(
        self,
        fields: Dict[str, Any],
        actor: str = 'sistema',
        from_import: bool = False
    ) -> Product:
        """
        Crea un producto.

        Args:
            fields: Campos del formulario (o de una fila de hoja de cálculo)
            actor: Usuario que crea (para auditoría)
            from_import: Acepta la categoría "sin-categoria", guarda filas sin
                         descripción y no audita por fila

        Raises:
            ValidationError: Sin descripción (fuera de la carga masiva) o con
                             categoría inválida
        """
        clean = self._clean(fields)
        if not clean.get('descripcion') and not from_import:
            raise ValidationError("La descripción es obligatoria")

        categoria = clean.get('categoria') or (
            IMPORT_CATEGORY_SENTINEL if from_import else DEFAULT_PRODUCT_CATEGORY)
        self._check_category(categoria, allow_sentinel=from_import)

        document = {
            'codigo': clean.get('codigo', ''),
            'descripcion': clean.get('descripcion', ''),
            'unidadMedida': clean.get('unidadMedida', '1'),
            'precioUnitario': clean.get('precioUnitario', 0.0),
            'iva': clean.get('iva', '0%'),
            'precioConIva': clean.get('precioConIva', 0.0),
            'precioVenta': clean.get('precioVenta', 0.0),
            'proveedor': clean.get('proveedor', ''),
            'categoria': categoria,
        }
        product_id = self.product_repo.create(document)
        product = Product.from_dict(product_id, document)

        if self.audit_service and not from_import:
            self.audit_service.log_product_created(actor, product_id, product.codigo, product.descripcion)
        return product

    def get_product(self, product_id: str) -> Product:
        product = self.product_repo.get(product_id)
        if product is None:
            raise NotFound("Producto no encontrado")
        return product

    def list_products(
        self,
        category: Optional[str] = None,
        search: str = '',
        descending: bool = False
    ) -> List[Product]:
        """
        Lista el catálogo.

        Args:
            category: ID de categoría; None o "all" = todas
            search: Texto buscado en descripción, código y proveedor
            descending: Códigos de mayor a menor
        """
        products = self.product_repo.list_all()

        if category and category != 'all':
            products = [p for p in products if p.categoria == category]

        term = as_text(search).lower()
        if term:
            products = [
                p for p in products
                if term in p.descripcion.lower()
                or term in p.codigo.lower()
                or term in p.proveedor.lower()
            ]

        return sorted(products, key=lambda p: codigo_sort_key(p, descending))

    def update_product(self, product_id: str, fields: Dict[str, Any], actor: str = 'sistema') -> Product:
        """
        Actualiza un producto.

        Raises:
            NotFound: El producto no existe
            ValidationError: Falta descripción, código o categoría
        """
        existing = self.get_product(product_id)

        clean = self._clean(fields)
        for required, label in (('descripcion', 'descripción'), ('codigo', 'código'), ('categoria', 'categoría')):
            if not clean.get(required):
                raise ValidationError(f"El campo {label} es obligatorio")
        self._check_category(clean['categoria'])

        self.product_repo.update(product_id, clean)

        if self.audit_service:
            self.audit_service.log_product_updated(
                actor, product_id, clean['codigo'], clean['descripcion'], clean)
        return self.product_repo.get(product_id) or existing

    def delete_product(self, product_id: str, actor: str = 'sistema') -> Product:
        product = self.get_product(product_id)
        self.product_repo.delete(product_id)
        if self.audit_service:
            self.audit_service.log_product_deleted(actor, product_id, product.codigo, product.descripcion)
        return product

    # =========================================================================
    # FOTOS
    # =========================================================================

    def attach_image(
        self,
        product_id: str,
        data: bytes,
        content_type: Optional[str] = None,
        actor: str = 'sistema'
    ) -> str:
        """
        Sube la foto a product-images/{millis}_{id}.jpg y guarda la URL
        de descarga en imagenUrl. La extensión es siempre .jpg.

        Returns:
            URL de descarga
        """
        product = self.get_product(product_id)
        if not data:
            raise ValidationError("No se recibió ninguna imagen")
        if content_type and not content_type.startswith('image/'):
            raise ValidationError("El archivo debe ser una imagen")

        millis = int(time.time() * 1000)
        ref = self.blob_store.upload(f"product-images/{millis}_{product_id}.jpg", data)
        url = self.blob_store.get_download_url(ref)
        self.product_repo.update(product_id, {'imagenUrl': url})
        logger.info("Imagen %s asociada al producto %s", ref, product_id)

        if self.audit_service:
            self.audit_service.log_product_updated(
                actor, product_id, product.codigo, product.descripcion, {'imagenUrl': url})
        return url
