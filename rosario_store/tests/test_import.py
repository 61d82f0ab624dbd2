import io

import pytest
from openpyxl import Workbook

from rosario_store.exceptions import RemoteOperationFailed, ValidationError
from rosario_store.services import ImportService

HEADERS = ['CODIGO', 'DESCRIPCION DEL PRODUCTO', 'UNIDAD DE MEDIDA', 'PRECIO UNITARIO', 'IVA',
           'PRECIO UNITARIO + IVA', 'PRECIO DE VENTA', 'PROVEEDOR']


def workbook_bytes(rows, headers=HEADERS):
    wb = Workbook()
    ws = wb.active
    ws.append(headers)
    for row in rows:
        ws.append(row)
    # a second sheet that must be ignored
    wb.create_sheet('Otra').append(['CODIGO', 'DESCRIPCION DEL PRODUCTO'])
    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


def test_map_row_uses_first_non_empty_candidate():
    fields = ImportService.map_row({
        'codigo': '',
        'Código': 'A1',
        'Nombre': 'Arroz',
        'PRECIO UNITARIO': 'abc',
        'precioVenta': '3500',
    })

    assert fields['codigo'] == 'A1'
    assert fields['descripcion'] == 'Arroz'
    assert fields['precioUnitario'] == 0
    assert fields['precioVenta'] == 3500
    assert fields['unidadMedida'] == '1'
    assert fields['iva'] == '0%'
    assert fields['proveedor'] == ''
    assert fields['categoria'] == 'sin-categoria'


def test_import_stores_every_row_of_the_first_sheet(container):
    stream = workbook_bytes([
        [1001, 'Arroz', 'KG', 2000, '19%', 2380, 2600, 'Diana'],
        [1002, None, 'UND', 500, None, None, 700, 'Colanta'],
        [1003, 'Leche', 'UND', 3000, '5%', 3150, 3500, 'Alpina'],
        [None, None, None, None, None, None, None, None],
        [1004, 'Sal', None, 900, None, None, 1200, None],
    ])
    service = container.import_service

    rows = service.read_rows(stream, 'productos.xlsx')
    result = service.import_rows(rows)

    assert len(rows) == 4
    assert (result.success, result.errors) == (4, 0)
    assert result.message == '4 productos agregados, 0 errores'
    assert result.failures == []
    products = container.product_service.list_products()
    assert [p.codigo for p in products] == ['1001', '1002', '1003', '1004']
    assert products[1].descripcion == ''
    assert products[1].iva == '0%'
    assert products[0].precio_venta == 2600
    assert products[0].iva == '19%'


def test_import_keeps_going_after_store_errors(container, monkeypatch):
    real_create = container.product_repo.create

    def flaky_create(fields):
        if fields['codigo'] in ('2', '4'):
            raise RemoteOperationFailed("sin conexión")
        return real_create(fields)

    monkeypatch.setattr(container.product_repo, 'create', flaky_create)
    rows = [{'CODIGO': str(n), 'DESCRIPCION DEL PRODUCTO': f'Producto {n}'} for n in range(1, 6)]

    result = container.import_service.import_rows(rows)

    assert (result.success, result.errors) == (3, 2)
    assert len(container.product_repo.list_all()) == 3


def test_rows_without_description_are_stored(container):
    result = container.import_service.import_rows([
        {'CODIGO': '1', 'PRECIO DE VENTA': 500},
        {'CODIGO': '2', 'DESCRIPCION DEL PRODUCTO': 'Sal'},
    ])

    assert (result.success, result.errors) == (2, 0)
    stored = {p.codigo: p for p in container.product_repo.list_all()}
    assert stored['1'].descripcion == ''
    assert stored['1'].precio_venta == 500
    assert stored['2'].descripcion == 'Sal'


def test_manual_create_still_requires_description(container):
    with pytest.raises(ValidationError):
        container.product_service.create_product({'codigo': '1'})


def test_imported_rows_keep_sentinel_category(container):
    result = container.import_service.import_rows([{'codigo': '1', 'descripcion': 'Panela'}])

    assert result.success == 1
    [(product_id, stored)] = container.store.get_all('products')
    assert stored['categoria'] == 'sin-categoria'
    assert container.product_service.get_product(product_id).categoria == 'canasta-familiar'


def test_import_is_audited_once(container):
    container.import_service.import_rows(
        [{'codigo': '1', 'descripcion': 'A'}, {'codigo': '2', 'descripcion': 'B'}],
        actor='admin@rosario.store', filename='lista.xlsx')

    logs = container.audit_service.get_recent_logs()
    assert len(logs) == 1
    assert '2 productos agregados, 0 errores' in logs[0].message


def test_read_csv(container):
    data = 'CODIGO,DESCRIPCION DEL PRODUCTO,PRECIO DE VENTA\n7,Azúcar,4200\n,,\n'.encode('utf-8')

    rows = container.import_service.read_rows(io.BytesIO(data), 'lista.CSV')

    assert rows == [{'CODIGO': '7', 'DESCRIPCION DEL PRODUCTO': 'Azúcar', 'PRECIO DE VENTA': '4200'}]


@pytest.mark.parametrize('filename, data', [
    ('lista.pdf', b'%PDF'),
    ('lista.xlsx', b'not a zip file'),
])
def test_read_rows_rejects_bad_files(container, filename, data):
    with pytest.raises(ValidationError):
        container.import_service.read_rows(io.BytesIO(data), filename)
