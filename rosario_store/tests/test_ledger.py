import pytest

from helpers import add_credit, add_customer, add_personal, at

from rosario_store.exceptions import LimitExceeded, NotFound, RemoteOperationFailed, ValidationError
from rosario_store.models import CreditOrder, CreditStatus, Principal


def outstanding_sum(container, customer_id):
    return round(sum(o.outstanding for o in container.ledger_service.customer_orders(customer_id)), 2)


@pytest.mark.parametrize('paid, amount, expected', [
    (0, 50, CreditStatus.PENDING),
    (20, 50, CreditStatus.PARTIALLY_PAID),
    (50, 50, CreditStatus.PAID),
    (60, 50, CreditStatus.PAID),
])
def test_status_follows_paid_amount(paid, amount, expected):
    assert CreditStatus.for_amounts(paid, amount) == expected


def test_assign_rejects_over_limit_and_accepts_up_to_limit(container):
    customer = add_customer(container, limit=100, debt=80)
    ledger = container.ledger_service

    with pytest.raises(LimitExceeded):
        ledger.assign_order(customer.id, 30, 'Mercado grande')
    assert container.credit_repo.find_by_user(customer.id) == []
    assert container.customer_repo.get(customer.id).current_debt == 80

    order = ledger.assign_order(customer.id, 20, 'Mercado')
    assert container.customer_repo.get(customer.id).current_debt == 100
    stored = CreditOrder.from_dict(order.id, container.credit_repo.get(order.id))
    assert stored.paid_amount == 0
    assert stored.status == CreditStatus.PENDING
    assert stored.month == order.month
    assert ' de ' in stored.month


@pytest.mark.parametrize('amount, description', [(0, 'Mercado'), (-5, 'Mercado'), ('abc', 'Mercado'), (10, '  ')])
def test_assign_validates_input(container, amount, description):
    customer = add_customer(container)
    with pytest.raises(ValidationError):
        container.ledger_service.assign_order(customer.id, amount, description)


def test_assign_unknown_customer(container):
    with pytest.raises(NotFound):
        container.ledger_service.assign_order('missing', 10, 'Mercado')


def test_payment_never_exceeds_amount(container):
    customer = add_customer(container, limit=200, debt=45)
    order_id = add_credit(container, customer.id, amount=50, paid=20, status='partially_paid')

    result = container.ledger_service.apply_payment(order_id, 100)

    assert result.applied == 30
    assert result.order.paid_amount == 50
    assert result.order.status == CreditStatus.PAID
    stored = container.credit_repo.get(order_id)
    assert stored['paidAmount'] == 50
    assert stored['status'] == 'paid'
    assert container.customer_repo.get(customer.id).current_debt == 15


def test_partial_payment_sets_partially_paid(container):
    customer = add_customer(container, debt=50)
    order_id = add_credit(container, customer.id, amount=50)

    result = container.ledger_service.apply_payment(order_id, '12.5')

    assert result.order.status == CreditStatus.PARTIALLY_PAID
    assert result.order.outstanding == 37.5
    assert container.customer_repo.get(customer.id).current_debt == 37.5


def test_payment_debt_never_negative(container):
    customer = add_customer(container, debt=5)
    order_id = add_credit(container, customer.id, amount=50)

    container.ledger_service.apply_payment(order_id, 50)

    assert container.customer_repo.get(customer.id).current_debt == 0


def test_payment_rejects_personal_orders_and_bad_amounts(container):
    customer = add_customer(container)
    personal_id = add_personal(container, customer.id)
    credit_id = add_credit(container, customer.id, amount=10)
    ledger = container.ledger_service

    with pytest.raises(ValidationError):
        ledger.apply_payment(personal_id, 5)
    with pytest.raises(ValidationError):
        ledger.apply_payment(credit_id, 0)
    with pytest.raises(NotFound):
        ledger.apply_payment('missing', 5)


def test_payment_with_missing_owner_updates_order_only(container):
    customer = add_customer(container, debt=10)
    order_id = add_credit(container, customer.id, amount=10)
    container.customer_repo.delete(customer.id)

    result = container.ledger_service.apply_payment(order_id, 10)

    assert result.current_debt is None
    assert container.credit_repo.get(order_id)['status'] == 'paid'


def test_rebate_floors_at_zero(container):
    customer = add_customer(container, debt=10)

    updated = container.ledger_service.apply_rebate(customer.id, 50)

    assert updated.current_debt == 0
    assert container.customer_repo.get(customer.id).current_debt == 0


def test_rebate_touches_no_order(container):
    customer = add_customer(container, limit=100)
    ledger = container.ledger_service
    ledger.assign_order(customer.id, 40, 'Mercado')

    ledger.apply_rebate(customer.id, 30)

    assert container.customer_repo.get(customer.id).current_debt == 10
    # the orders still carry the full balance
    assert outstanding_sum(container, customer.id) == 40


def test_rebate_validation(container):
    customer = add_customer(container, debt=10)
    with pytest.raises(ValidationError):
        container.ledger_service.apply_rebate(customer.id, 0)
    with pytest.raises(NotFound):
        container.ledger_service.apply_rebate('missing', 5)


def test_delete_customer_cascades_to_orders(container):
    customer = add_customer(container)
    other = add_customer(container, name='Luis', email='luis@x.com')
    add_credit(container, customer.id, amount=10)
    add_credit(container, customer.id, amount=20)
    add_personal(container, customer.id)
    kept = add_credit(container, other.id, amount=5)

    removed = container.ledger_service.delete_customer(customer.id)

    assert removed == 3
    assert container.credit_repo.find_by_user(customer.id) == []
    assert container.customer_repo.get(customer.id) is None
    assert container.credit_repo.get(kept) is not None


def test_delete_customer_failure_midway_leaves_rest(container, monkeypatch):
    customer = add_customer(container)
    for amount in (10, 20, 30):
        add_credit(container, customer.id, amount=amount)
    real_delete = container.credit_repo.delete
    calls = []

    def flaky_delete(order_id):
        calls.append(order_id)
        if len(calls) == 2:
            raise RemoteOperationFailed("disco lleno")
        return real_delete(order_id)

    monkeypatch.setattr(container.credit_repo, 'delete', flaky_delete)

    with pytest.raises(RemoteOperationFailed):
        container.ledger_service.delete_customer(customer.id)

    assert len(container.credit_repo.find_by_user(customer.id)) == 2
    assert container.customer_repo.get(customer.id) is not None


def test_stale_snapshots_lose_an_update_in_baseline_mode(container):
    customer = add_customer(container, limit=100, debt=80)
    snapshot_a = container.customer_repo.get(customer.id)
    snapshot_b = container.customer_repo.get(customer.id)
    ledger = container.ledger_service

    ledger.assign_order(customer.id, 20, 'Pedido A', customer=snapshot_a)
    ledger.assign_order(customer.id, 20, 'Pedido B', customer=snapshot_b)

    # two orders of 20 but the debt only moved once
    assert len(container.credit_repo.find_by_user(customer.id)) == 2
    assert container.customer_repo.get(customer.id).current_debt == 100


def test_atomic_mode_rereads_inside_transaction(atomic_container):
    customer = add_customer(atomic_container, limit=100, debt=80)
    snapshot_a = atomic_container.customer_repo.get(customer.id)
    snapshot_b = atomic_container.customer_repo.get(customer.id)
    ledger = atomic_container.ledger_service

    ledger.assign_order(customer.id, 20, 'Pedido A', customer=snapshot_a)
    with pytest.raises(LimitExceeded):
        ledger.assign_order(customer.id, 20, 'Pedido B', customer=snapshot_b)

    assert len(atomic_container.credit_repo.find_by_user(customer.id)) == 1
    assert atomic_container.customer_repo.get(customer.id).current_debt == 100


def test_atomic_mode_rolls_back_order_when_debt_write_fails(atomic_container, monkeypatch):
    customer = add_customer(atomic_container, limit=100)

    def broken_set_debt(customer_id, current_debt):
        raise RemoteOperationFailed("sin conexión")

    monkeypatch.setattr(atomic_container.customer_repo, 'set_debt', broken_set_debt)

    with pytest.raises(RemoteOperationFailed):
        atomic_container.ledger_service.assign_order(customer.id, 10, 'Mercado')

    assert atomic_container.credit_repo.find_by_user(customer.id) == []


def test_baseline_mode_keeps_order_when_debt_write_fails(container, monkeypatch):
    customer = add_customer(container, limit=100)

    def broken_set_debt(customer_id, current_debt):
        raise RemoteOperationFailed("sin conexión")

    monkeypatch.setattr(container.customer_repo, 'set_debt', broken_set_debt)

    with pytest.raises(RemoteOperationFailed):
        container.ledger_service.assign_order(customer.id, 10, 'Mercado')

    assert len(container.credit_repo.find_by_user(customer.id)) == 1
    assert container.customer_repo.get(customer.id).current_debt == 0


def test_money_movements_are_audited(container):
    customer = add_customer(container, limit=100)
    ledger = container.ledger_service
    order = ledger.assign_order(customer.id, 30, 'Mercado', actor='admin@rosario.store')
    ledger.apply_payment(order.id, 10, actor='admin@rosario.store')
    ledger.apply_rebate(customer.id, 5, actor='admin@rosario.store')

    types = sorted(log.type.value for log in container.audit_service.get_recent_logs())
    assert types == ['ABONO', 'CREDITO', 'PAGO']
    assert all(log.user == 'admin@rosario.store' for log in container.audit_service.get_recent_logs())


def test_all_orders_joins_names_newest_first(container):
    ana = add_customer(container)
    nameless = add_customer(container, name='', email='x@x.com')
    add_credit(container, ana.id, amount=10, created=at(1))
    add_personal(container, nameless.id, created=at(3))
    add_credit(container, 'gone', amount=5, created=at(2))

    rows = container.ledger_service.all_orders()

    assert [r['customerName'] for r in rows] == ['Usuario', 'Desconocido', 'Ana']


def test_statement_groups_by_month(container):
    customer = add_customer(container, debt=25)
    add_credit(container, customer.id, amount=10, created=at(1))
    add_credit(container, customer.id, amount=15, paid=0, created=at(2))
    add_personal(container, customer.id)

    statement = container.ledger_service.statement_for(Principal('ana@x.com'))

    assert statement['outstanding'] == 25
    assert [m['month'] for m in statement['months']] == ['octubre de 2026']
    assert len(statement['months'][0]['orders']) == 2
