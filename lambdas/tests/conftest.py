import pytest

from lambdas.common.google import IdentityClaim
from lambdas.common.users import UserDirectory, get_user_directory
from lambdas.tests.fakes import INDEX_NAME, FakeTable


@pytest.fixture(autouse=True)
def _environment(monkeypatch):
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("TABLE_NAME", "test-users")
    monkeypatch.setenv("GSI_GOOGLE_SUB_NAME", INDEX_NAME)
    monkeypatch.setenv("STAGE", "test")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    get_user_directory.cache_clear()
    yield
    get_user_directory.cache_clear()


@pytest.fixture
def table():
    return FakeTable()


@pytest.fixture
def directory(table):
    return UserDirectory(table, INDEX_NAME)


@pytest.fixture
def claim():
    return IdentityClaim(subject="g-1", email="a@x.com")
