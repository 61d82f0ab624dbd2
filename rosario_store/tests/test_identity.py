import pytest

from helpers import add_credit, add_customer

from rosario_store.exceptions import AmbiguousIdentity, NotAuthenticated, NotFound
from rosario_store.models import Principal


CALL_SITES = {
    'profile': lambda c, p: c.customer_service.get_profile(p),
    'orders': lambda c, p: c.order_service.list_orders(p),
    'statement': lambda c, p: c.ledger_service.statement_for(p),
}


def test_resolve_single_match(container):
    customer = add_customer(container)

    customer_id, resolved = container.identity_service.resolve(Principal('ana@x.com'))

    assert customer_id == customer.id
    assert resolved.name == 'Ana'


def test_resolve_ignores_email_case(container):
    created = container.customer_service.register_customer('Ana', 'Ana@X.com', '', 100)

    customer_id, _ = container.identity_service.resolve(Principal('ANA@x.com '))

    assert customer_id == created.id


def test_resolve_without_principal(container):
    with pytest.raises(NotAuthenticated):
        container.identity_service.resolve(None)
    with pytest.raises(NotAuthenticated):
        container.identity_service.resolve(Principal(''))


def test_resolve_no_match(container):
    add_customer(container)
    with pytest.raises(NotFound):
        container.identity_service.resolve(Principal('nadie@x.com'))


@pytest.mark.parametrize('site', sorted(CALL_SITES))
def test_ambiguous_identity_fails_before_reading_orders(container, monkeypatch, site):
    first = add_customer(container, name='Ana 1')
    add_customer(container, name='Ana 2')
    add_credit(container, first.id, amount=10)

    def forbidden(*args, **kwargs):
        raise AssertionError("credits were read before identity was resolved")

    monkeypatch.setattr(container.credit_repo, 'find_by_user', forbidden)
    monkeypatch.setattr(container.credit_repo, 'get', forbidden)
    monkeypatch.setattr(container.credit_repo, 'list_newest_first', forbidden)

    with pytest.raises(AmbiguousIdentity):
        CALL_SITES[site](container, Principal('ana@x.com'))


@pytest.mark.parametrize('site', sorted(CALL_SITES))
def test_unknown_identity_is_not_found_everywhere(container, site):
    add_customer(container)
    with pytest.raises(NotFound):
        CALL_SITES[site](container, Principal('otra@x.com'))
