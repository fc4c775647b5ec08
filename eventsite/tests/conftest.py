from urllib import error as urllib_error

import pytest
from django.core.cache import cache
from django.urls import reverse

from eventsite.api import BackendClient
from eventsite.exceptions import ApiError


class FakeBackend:
    """Canned tenant backend answers keyed by ``(method, endpoint)``."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, endpoint, response):
        self.routes[(method, endpoint)] = response

    def fetch(self, client, endpoint, method="GET", data=None):
        self.calls.append(
            {"method": method, "endpoint": endpoint, "data": data, "token": client.token, "tenant": client.tenant}
        )
        try:
            response = self.routes[(method, endpoint)]
        except KeyError:
            raise ApiError("Not Found", status=404) from None
        if isinstance(response, Exception):
            raise response
        return response

    def called(self, method, endpoint):
        return [call for call in self.calls if call["method"] == method and call["endpoint"] == endpoint]


@pytest.fixture(autouse=True)
def _no_network(monkeypatch):
    def refuse(*args, **kwargs):
        raise urllib_error.URLError("network access disabled in tests")

    monkeypatch.setattr("eventsite.api.urllib_request.urlopen", refuse)


@pytest.fixture(autouse=True)
def _cache_isolation():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()

    def fetch(self, endpoint, method="GET", data=None):
        return fake.fetch(self, endpoint, method=method, data=data)

    monkeypatch.setattr(BackendClient, "fetch", fetch)
    return fake


@pytest.fixture
def operator_client(client, backend):
    """A test client signed in to the admin dashboard."""
    backend.add("POST", "/tenant/login", {"data": {"access_token": "operator-token", "user": {"email": "op@example.com"}}})
    response = client.post(reverse("admin_login"), {"email": "op@example.com", "password": "secret"})
    assert response.status_code == 302
    backend.calls.clear()
    return client
