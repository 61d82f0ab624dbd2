import os
import sys

import pytest

# helpers.py vive junto a los tests
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from helpers import make_config  # noqa: E402

from rosario_store.app_container import AppContainer  # noqa: E402
from rosario_store.main import create_app  # noqa: E402


@pytest.fixture
def container(tmp_path):
    return AppContainer(make_config(tmp_path))


@pytest.fixture
def atomic_container(tmp_path):
    return AppContainer(make_config(tmp_path, LEDGER_ATOMIC_WRITES=True))


@pytest.fixture
def app(tmp_path):
    app = create_app(make_config(tmp_path, TESTING=True, SECRET_KEY='test-secret'))
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
