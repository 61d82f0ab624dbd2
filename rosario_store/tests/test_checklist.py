import pytest

from helpers import at

from rosario_store.exceptions import NotFound, ValidationError


def test_categories_are_fixed(container):
    categories = container.checklist_service.categories()

    assert len(categories) == 15
    assert {'key': 'frutas-verduras', 'label': 'Frutas & Verduras'} in categories


def test_items_newest_first(container):
    repo = container.checklist_repo
    repo.add('carnes', {'text': 'Pollo', 'completed': False, 'createdAt': at(1)})
    repo.add('carnes', {'text': 'Res', 'completed': False, 'createdAt': at(3)})
    repo.add('carnes', {'text': 'Cerdo', 'completed': False, 'createdAt': at(2)})

    texts = [i.text for i in container.checklist_service.list_items('carnes')]

    assert texts == ['Res', 'Cerdo', 'Pollo']


def test_add_toggle_complete_delete(container):
    service = container.checklist_service
    item = service.add_item('pan', '  Pan tajado ')
    assert item.text == 'Pan tajado'
    assert item.completed is False

    assert service.toggle_item('pan', item.id).completed is True
    assert service.toggle_item('pan', item.id).completed is False
    assert service.complete_item('pan', item.id).completed is True
    assert service.complete_item('pan', item.id).completed is True

    service.delete_item('pan', item.id)
    assert service.list_items('pan') == []
    with pytest.raises(NotFound):
        service.delete_item('pan', item.id)
    with pytest.raises(NotFound):
        service.toggle_item('pan', item.id)


def test_invalid_input(container):
    service = container.checklist_service
    with pytest.raises(ValidationError):
        service.add_item('juguetes', 'Balón')
    with pytest.raises(ValidationError):
        service.add_item('pan', '   ')
    with pytest.raises(ValidationError):
        service.list_items('../etc')


def test_pending_items_across_categories(container):
    service = container.checklist_service
    service.add_item('carnes', 'Pollo')
    done = service.add_item('yogur', 'Kumis')
    service.add_item('canasta', 'Huevos')
    service.complete_item('yogur', done.id)

    pending = service.pending_items()

    assert sorted((i.category, i.text) for i in pending) == [('canasta', 'Huevos'), ('carnes', 'Pollo')]


def test_subscription_delivers_current_list_and_changes(container):
    service = container.checklist_service
    service.add_item('pan', 'Pan tajado')
    snapshots = []

    subscription = service.subscribe('pan', snapshots.append)
    assert [i.text for i in snapshots[-1]] == ['Pan tajado']

    item = service.add_item('pan', 'Croissant')
    assert len(snapshots[-1]) == 2
    service.toggle_item('pan', item.id)
    assert any(i.completed for i in snapshots[-1])

    # changes in another category are not delivered
    delivered = len(snapshots)
    service.add_item('carnes', 'Pollo')
    assert len(snapshots) == delivered

    subscription.cancel()
    service.add_item('pan', 'Mogolla')
    assert len(snapshots) == delivered
    assert container.store.listener_count('todo_lists/pan/items') == 0


def test_subscription_cancel_is_idempotent_and_scoped(container):
    service = container.checklist_service
    collection = 'todo_lists/carnes/items'

    with service.subscribe('carnes', lambda items: None) as subscription:
        assert subscription.active
        assert container.store.listener_count(collection) == 1

    assert not subscription.active
    assert container.store.listener_count(collection) == 0
    subscription.cancel()
    assert container.store.listener_count(collection) == 0


def test_subscription_waits_for_commit(container):
    service = container.checklist_service
    snapshots = []
    service.subscribe('pan', snapshots.append)

    with container.store.atomic():
        service.add_item('pan', 'Pan')
        service.add_item('pan', 'Arepa')
        assert len(snapshots) == 1

    assert len(snapshots) == 2
    assert len(snapshots[-1]) == 2
