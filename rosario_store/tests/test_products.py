import os

import pytest

from rosario_store.exceptions import NotFound, ValidationError


def add_products(container, *codes):
    service = container.product_service
    return [service.create_product({'codigo': code, 'descripcion': f'Producto {code or "sin código"}'})
            for code in codes]


def test_codigo_orders_numerically(container):
    add_products(container, '10', '9', 'abc', '2', '1a', '')

    codes = [p.codigo for p in container.product_service.list_products()]

    assert codes == ['1a', '2', '9', '10', '', 'abc']


def test_codigo_descending_keeps_non_numeric_last(container):
    add_products(container, '10', '9', 'abc', '2')

    codes = [p.codigo for p in container.product_service.list_products(descending=True)]

    assert codes == ['10', '9', '2', 'abc']


def test_codigo_ties_break_by_text(container):
    add_products(container, '7', '007')

    assert [p.codigo for p in container.product_service.list_products()] == ['007', '7']


def test_filter_by_category_and_search(container):
    service = container.product_service
    service.create_product({'codigo': '1', 'descripcion': 'Arroz', 'categoria': 'bastimentos', 'proveedor': 'Diana'})
    service.create_product({'codigo': '2', 'descripcion': 'Jabón', 'categoria': 'aseo-hogar'})
    service.create_product({'codigo': '3', 'descripcion': 'Panela'})

    assert [p.descripcion for p in service.list_products(category='aseo-hogar')] == ['Jabón']
    assert len(service.list_products(category='all')) == 3
    assert [p.descripcion for p in service.list_products(search='diana')] == ['Arroz']
    assert [p.codigo for p in service.list_products(search='3')] == ['3']


def test_create_defaults_and_validation(container):
    service = container.product_service
    product = service.create_product({'descripcion': 'Panela', 'precioVenta': '2500'})

    assert product.categoria == 'canasta-familiar'
    assert product.unidad_medida == '1'
    assert product.iva == '0%'
    assert product.precio_venta == 2500

    with pytest.raises(ValidationError):
        service.create_product({'codigo': '1'})
    with pytest.raises(ValidationError):
        service.create_product({'descripcion': 'X', 'categoria': 'juguetes'})


def test_update_requires_core_fields_and_reparses_numbers(container):
    service = container.product_service
    product = service.create_product({'codigo': '1', 'descripcion': 'Arroz'})

    with pytest.raises(ValidationError):
        service.update_product(product.id, {'descripcion': 'Arroz', 'codigo': '', 'categoria': 'bastimentos'})

    updated = service.update_product(product.id, {
        'descripcion': 'Arroz 500g',
        'codigo': '1',
        'categoria': 'bastimentos',
        'precioVenta': '12.5abc',
        'precioConIva': 'gratis',
        'id': 'hacked',
    })
    assert updated.precio_venta == 12.5
    assert updated.precio_con_iva == 0
    assert updated.id == product.id

    with pytest.raises(NotFound):
        service.update_product('missing', {'descripcion': 'a', 'codigo': '1', 'categoria': 'bastimentos'})


def test_legacy_cost_field_is_read(container):
    product_id = container.store.insert('products', {'codigo': '5', 'descripcion': 'Sal', 'costoUnitario': '900'})

    assert container.product_service.get_product(product_id).precio_unitario == 900


def test_delete_product(container):
    product = add_products(container, '1')[0]
    container.product_service.delete_product(product.id)
    with pytest.raises(NotFound):
        container.product_service.get_product(product.id)


def test_attach_image_uploads_and_stores_url(container):
    product = add_products(container, '1')[0]

    url = container.product_service.attach_image(product.id, b'\x89PNG fake', 'image/png')

    assert url.startswith('/media/product-images/')
    assert url.endswith(f'_{product.id}.jpg')
    assert container.product_service.get_product(product.id).imagen_url == url
    ref = url[len('/media/'):]
    assert os.path.exists(container.blob_store.full_path(ref))


def test_attach_image_rejects_non_images(container):
    product = add_products(container, '1')[0]
    with pytest.raises(ValidationError):
        container.product_service.attach_image(product.id, b'hola', 'text/plain')
    with pytest.raises(ValidationError):
        container.product_service.attach_image(product.id, b'', 'image/jpeg')
    with pytest.raises(NotFound):
        container.product_service.attach_image('missing', b'x', 'image/jpeg')
