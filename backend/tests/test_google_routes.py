import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import backend
from backend.main import app
from lambdas.common import registration
from lambdas.common.errors import InvalidToken
from lambdas.common.google import IdentityClaim
from lambdas.common.users import UserDirectory
from lambdas.tests.fakes import INDEX_NAME, FakeTable


@pytest.fixture
def directory(monkeypatch):
    directory = UserDirectory(FakeTable(), INDEX_NAME)
    monkeypatch.setattr(registration, "get_user_directory", lambda: directory)
    return directory


@pytest.fixture
def google_user(monkeypatch):
    def verify(token):
        if token != "good-token":
            raise InvalidToken("Wrong number of segments in token")
        return IdentityClaim(subject="g-42", email="route@x.com")

    monkeypatch.setattr(registration, "verify_id_token", verify)


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.mark.asyncio
async def test_register_then_login(client, directory, google_user):
    registered = await client.post("/register/google", json={"idToken": "good-token"})
    logged_in = await client.post("/login/google", json={"idToken": "good-token"})

    assert registered.status_code == 201
    assert registered.headers["content-type"] == "application/json"
    user = registered.json()["user"]
    assert user["email"] == "route@x.com"
    assert "googleSub" not in user

    assert logged_in.status_code == 200
    assert logged_in.json()["user"] == user


@pytest.mark.asyncio
async def test_register_twice_conflicts(client, directory, google_user):
    await client.post("/register/google", json={"idToken": "good-token"})
    response = await client.post("/register/google", json={"idToken": "good-token"})

    assert response.status_code == 409
    assert response.json() == {"error": "User already exists"}


@pytest.mark.asyncio
async def test_register_without_body_is_bad_request(client, directory, google_user):
    response = await client.post("/register/google")

    assert response.status_code == 400
    assert response.json() == {"error": "Missing idToken in request body"}


@pytest.mark.asyncio
async def test_invalid_token_is_internal_error(client, directory, google_user):
    response = await client.post("/register/google", json={"idToken": "forged"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/health", "/healthz"])
async def test_health_endpoints_report_version(client, path):
    response = await client.get(path)

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": backend.__version__}
