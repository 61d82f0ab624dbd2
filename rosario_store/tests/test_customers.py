import pytest

from helpers import add_credit, add_customer, add_personal

from rosario_store.exceptions import NotFound, ValidationError
from rosario_store.models import Principal


def test_register_customer_starts_without_debt(container):
    customer = container.customer_service.register_customer('Ana', 'ana@x.com', '3001234567', '150')

    stored = container.customer_repo.get(customer.id)
    assert stored.credit_limit == 150
    assert stored.current_debt == 0
    assert stored.debt_label == 'AL DÍA'


@pytest.mark.parametrize('name, limit', [('', 100), ('Ana', 0), ('Ana', -10), ('Ana', 'mucho')])
def test_register_customer_validation(container, name, limit):
    with pytest.raises(ValidationError):
        container.customer_service.register_customer(name, 'ana@x.com', '', limit)


def test_list_customers_filters_by_name(container):
    add_customer(container, name='Beatriz', email='b@x.com')
    add_customer(container, name='ana maría', email='a@x.com')
    add_customer(container, name='Carlos', email='c@x.com')

    service = container.customer_service
    assert [c.name for c in service.list_customers()] == ['ana maría', 'Beatriz', 'Carlos']
    assert [c.name for c in service.list_customers('ANA')] == ['ana maría']


def test_get_customer_not_found(container):
    with pytest.raises(NotFound):
        container.customer_service.get_customer('missing')


def test_profile_totals(container):
    customer = add_customer(container, limit=100, debt=120)
    add_credit(container, customer.id, amount=70, paid=20, status='partially_paid')
    add_credit(container, customer.id, amount=50)
    add_personal(container, customer.id)

    profile = container.customer_service.get_profile(Principal('ana@x.com'))

    assert len(profile['orders']) == 2
    assert profile['totals'] == {'amount': 120, 'paid': 20, 'availableCredit': 0}
    assert profile['customer']['debtLabel'] == 'DEUDOR'
