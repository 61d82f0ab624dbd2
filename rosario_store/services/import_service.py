# ==============================================================================
# SERVICIO DE CARGA MASIVA
# ==============================================================================
# Lee la primera hoja de un .xlsx (o un .csv) y crea un producto por fila.
#
# Cada campo tiene una lista ordenada de encabezados posibles; gana el
# primero con valor no vacío. Cada fila se guarda por separado: una fila
# que falla se cuenta como error y la carga sigue. No hay rollback.
# ==============================================================================

import csv
import io
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, IO, List, Optional, Tuple

from openpyxl import load_workbook

from rosario_store.exceptions import RemoteOperationFailed, ValidationError
from rosario_store.models import IMPORT_CATEGORY_SENTINEL, PRODUCT_CATEGORY_IDS
from rosario_store.performance_logger import profile_function
from rosario_store.services.audit_service import AuditService
from rosario_store.services.product_service import ProductService
from rosario_store.utils import as_text, to_float

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

# (campo, encabezados candidatos, tipo, default)
FIELD_CANDIDATES: Tuple[Tuple[str, Tuple[str, ...], str, Any], ...] = (
    ('codigo', ('CODIGO', 'codigo', 'Código', 'Id'), 'text', ''),
    ('descripcion', ('DESCRIPCION DEL PRODUCTO', 'descripcion', 'Descripción', 'Nombre'), 'text', ''),
    ('unidadMedida', ('UNIDAD DE MEDIDA', 'unidadMedida', 'Unidad'), 'text', '1'),
    ('precioUnitario', ('PRECIO UNITARIO', 'precioUnitario', 'costoUnitario'), 'number', 0.0),
    ('iva', ('IVA', 'iva'), 'text', '0%'),
    ('precioConIva', ('PRECIO UNITARIO + IVA', 'precioConIva'), 'number', 0.0),
    ('precioVenta', ('PRECIO DE VENTA', 'precioVenta'), 'number', 0.0),
    ('proveedor', ('PROVEEDOR', 'proveedor', 'Proveedor'), 'text', ''),
    ('categoria', ('CATEGORIA', 'categoria', 'Categoría'), 'text', IMPORT_CATEGORY_SENTINEL),
)

EXCEL_EXTENSIONS = ('.xlsx', '.xlsm')


@dataclass
class ImportResult:
    """Resumen de una carga masiva."""
    success: int = 0
    errors: int = 0
    failures: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"{self.success} productos agregados, {self.errors} errores"

    def to_view(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'errors': self.errors,
            'failures': self.failures,
            'message': self.message,
        }


def _first_value(row: Row, candidates: Tuple[str, ...]) -> Any:
    for header in candidates:
        value = row.get(header)
        if value is not None and as_text(value) != '':
            return value
    return None


class ImportService:
    """Carga de productos desde hojas de cálculo."""

    def __init__(self, product_service: ProductService, audit_service: Optional[AuditService] = None):
        self.product_service = product_service
        self.audit_service = audit_service

    # =========================================================================
    # LECTURA DEL ARCHIVO
    # =========================================================================

    def read_rows(self, stream: IO[bytes], filename: str) -> List[Row]:
        """
        Lee el archivo como lista de dicts {encabezado: valor}.
        Las filas totalmente vacías se omiten.

        Raises:
            ValidationError: Extensión no soportada o archivo ilegible
        """
        extension = os.path.splitext(filename or '')[1].lower()
        contents = stream.read()

        if extension in EXCEL_EXTENSIONS:
            return self._read_excel(contents)
        if extension == '.csv':
            return self._read_csv(contents)
        raise ValidationError("Solo se permiten archivos .xlsx o .csv")

    def _read_excel(self, contents: bytes) -> List[Row]:
        try:
            wb = load_workbook(filename=io.BytesIO(contents), data_only=True)
        except Exception as e:
            logger.error("Error leyendo Excel: %s", e)
            raise ValidationError("Error al procesar el archivo Excel.") from e

        ws = wb.worksheets[0]
        values = ws.iter_rows(values_only=True)
        header_row = next(values, None)
        if header_row is None:
            return []

        headers = [as_text(h) for h in header_row]
        rows = []
        for raw in values:
            row = {h: v for h, v in zip(headers, raw) if h}
            if not any(as_text(v) for v in row.values()):
                continue
            rows.append(row)
        return rows

    def _read_csv(self, contents: bytes) -> List[Row]:
        try:
            text = contents.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise ValidationError("El archivo CSV debe estar en UTF-8") from e

        reader = csv.DictReader(io.StringIO(text))
        rows = []
        for raw in reader:
            row = {as_text(k): v for k, v in raw.items() if k}
            if not any(as_text(v) for v in row.values()):
                continue
            rows.append(row)
        return rows

    # =========================================================================
    # MAPEO Y CARGA
    # =========================================================================

    @staticmethod
    def map_row(row: Row) -> Dict[str, Any]:
        """Convierte una fila en campos de producto con los defaults de cada tipo."""
        fields: Dict[str, Any] = {}
        for name, candidates, kind, default in FIELD_CANDIDATES:
            value = _first_value(row, candidates)
            if kind == 'number':
                fields[name] = to_float(value, default)
            else:
                fields[name] = as_text(value, default)

        if fields['categoria'] not in PRODUCT_CATEGORY_IDS:
            fields['categoria'] = IMPORT_CATEGORY_SENTINEL
        return fields

    @profile_function(name="Carga masiva de productos")
    def import_rows(self, rows: List[Row], actor: str = 'sistema', filename: str = '') -> ImportResult:
        """
        Crea un producto por fila. Los errores se cuentan y la carga sigue.

        Returns:
            ImportResult con aciertos, errores y el detalle de cada falla
        """
        result = ImportResult()
        for index, row in enumerate(rows, start=1):
            fields = self.map_row(row)
            try:
                self.product_service.create_product(fields, actor=actor, from_import=True)
                result.success += 1
            except (ValidationError, RemoteOperationFailed) as e:
                logger.warning("Fila %d no importada: %s", index, e.message)
                result.errors += 1
                result.failures.append({'row': index, 'codigo': fields['codigo'], 'error': e.message})

        if self.audit_service:
            self.audit_service.log_import(actor, filename or 'archivo', result.success, result.errors)
        return result

    def import_file(self, stream: IO[bytes], filename: str, actor: str = 'sistema') -> ImportResult:
        return self.import_rows(self.read_rows(stream, filename), actor=actor, filename=filename)
