from django.core.cache import cache

import pytest

from bulletin.accounts.password import hasher
from bulletin.accounts.store import CredentialStore

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def clear_cache():
    # Sessions live in the cache.
    yield
    cache.clear()


@pytest.fixture
def operator_password():
    return TEST_PASSWORD


@pytest.fixture
def operator(db):
    return CredentialStore().create_user("operator", hasher.hash(TEST_PASSWORD))


@pytest.fixture
def logged_in_client(client, operator):
    response = client.post("/login/", {"username": "operator", "password": TEST_PASSWORD})
    assert response.status_code == 303
    return client
