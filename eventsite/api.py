import json
import logging
from urllib import error as urllib_error
from urllib import request as urllib_request
from urllib.parse import urlencode

from django.conf import settings

from .auth import get_token
from .exceptions import ApiError

logger = logging.getLogger(__name__)

TENANT_BASE = "/tenant"
CUSTOMER_BASE = "/customer"


def build_url(endpoint):
    base_url = getattr(settings, "EVENTSITE_API_BASE_URL", "").rstrip("/")
    if endpoint.startswith("/"):
        if endpoint == "/api" or endpoint.startswith("/api/"):
            endpoint = endpoint[len("/api"):]
        return f"{base_url}{endpoint}"
    return f"{base_url}/{endpoint}"


def _decode_body(raw):
    if not raw:
        return {}
    try:
        return json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        logger.warning("Backend returned a non JSON body (%d bytes)", len(raw))
        return {}


def api_fetch(endpoint, method="GET", data=None, token=None, tenant=None, timeout=None):
    """Call the tenant backend and return the decoded JSON body.

    Raises ApiError for non-2xx answers and for connection failures.
    """
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if tenant:
        headers["X-Tenant-ID"] = tenant

    body = json.dumps(data).encode("utf-8") if data is not None else None
    url = build_url(endpoint)
    backend_request = urllib_request.Request(url, data=body, headers=headers, method=method)
    if timeout is None:
        timeout = getattr(settings, "EVENTSITE_API_TIMEOUT", 10)

    try:
        with urllib_request.urlopen(backend_request, timeout=timeout) as response:
            return _decode_body(response.read())
    except urllib_error.HTTPError as exc:
        error_data = _decode_body(exc.read())
        message = ""
        if isinstance(error_data, dict):
            message = error_data.get("message") or ""
        logger.warning("Backend %s %s failed with %s: %s", method, endpoint, exc.code, message or exc.reason)
        raise ApiError(message or str(exc.reason), status=exc.code, data=error_data) from exc
    except (urllib_error.URLError, TimeoutError, OSError) as exc:
        logger.warning("Could not reach backend for %s %s: %s", method, endpoint, exc)
        raise ApiError("Could not connect to the server right now.", status=0) from exc


class BackendClient:
    def __init__(self, token=None, tenant=None):
        self.token = token
        self.tenant = tenant

    def fetch(self, endpoint, method="GET", data=None):
        return api_fetch(endpoint, method=method, data=data, token=self.token, tenant=self.tenant)

    @staticmethod
    def with_query(endpoint, query):
        query = {key: value for key, value in (query or {}).items() if value not in (None, "")}
        if not query:
            return endpoint
        return f"{endpoint}?{urlencode(query)}"


class TenantApi(BackendClient):
    """Operator facing endpoints under ``/tenant``."""

    def login(self, email, password, username=None):
        data = {"email": email, "password": password}
        if username is not None:
            data["username"] = username
        return self.fetch(f"{TENANT_BASE}/login", method="POST", data=data)

    def logout(self):
        return self.fetch(f"{TENANT_BASE}/logout", method="POST")

    def dashboard(self):
        return self.fetch(f"{TENANT_BASE}/dashboard")

    def contact(self, payload):
        return self.fetch(f"{TENANT_BASE}/contact", method="POST", data=payload)

    # pages

    def pages(self, **query):
        return self.fetch(self.with_query(f"{TENANT_BASE}/pages", query))

    def page(self, page_id):
        return self.fetch(f"{TENANT_BASE}/pages/{page_id}")

    def page_by_type(self, page_type):
        return self.fetch(f"{TENANT_BASE}/pages/type/{page_type}")

    def create_page(self, data):
        return self.fetch(f"{TENANT_BASE}/pages", method="POST", data=data)

    def update_page(self, page_id, data, method="PUT"):
        return self.fetch(f"{TENANT_BASE}/pages/{page_id}", method=method, data=data)

    def delete_page(self, page_id):
        return self.fetch(f"{TENANT_BASE}/pages/{page_id}", method="DELETE")

    # events

    def events(self):
        return self.fetch(f"{TENANT_BASE}/event-edition")

    def event(self, event_id):
        return self.fetch(f"{TENANT_BASE}/event-edition/{event_id}")

    def create_event(self, data):
        return self.fetch(f"{TENANT_BASE}/event-edition", method="POST", data=data)

    def update_event(self, event_id, data):
        return self.fetch(f"{TENANT_BASE}/event-edition/{event_id}", method="PUT", data=data)

    def delete_event(self, event_id):
        return self.fetch(f"{TENANT_BASE}/event-edition/{event_id}", method="DELETE")

    # tickets

    def tickets(self):
        return self.fetch(f"{TENANT_BASE}/ticket")

    def ticket(self, ticket_id):
        return self.fetch(f"{TENANT_BASE}/ticket/{ticket_id}")

    def create_ticket(self, data):
        return self.fetch(f"{TENANT_BASE}/ticket", method="POST", data=data)

    def update_ticket(self, ticket_id, data):
        return self.fetch(f"{TENANT_BASE}/ticket/{ticket_id}", method="PUT", data=data)

    def delete_ticket(self, ticket_id):
        return self.fetch(f"{TENANT_BASE}/ticket/{ticket_id}", method="DELETE")


class CustomerApi(BackendClient):
    """Visitor facing endpoints under ``/customer``."""

    def pages(self, **query):
        return self.fetch(self.with_query(f"{CUSTOMER_BASE}/pages", query))

    def page(self, slug):
        return self.fetch(f"{CUSTOMER_BASE}/pages/{slug}")

    def navigation(self):
        return self.fetch(f"{CUSTOMER_BASE}/pages/navigation")

    def page_by_type(self, page_type):
        return self.fetch(f"{CUSTOMER_BASE}/pages/type/{page_type}")

    def submit_form(self, slug, payload):
        return self.fetch(f"{CUSTOMER_BASE}/form/{slug}", method="POST", data=payload)


def _tenant(request):
    return getattr(request, "tenant", None) or getattr(settings, "EVENTSITE_DEFAULT_TENANT", None)


def tenant_api(request):
    return TenantApi(token=get_token(request), tenant=_tenant(request))


def customer_api(request):
    return CustomerApi(token=get_token(request), tenant=_tenant(request))


def public_api(request):
    """Tenant client for visitor pages: session token first, then the configured public token."""
    token = get_token(request) or getattr(settings, "EVENTSITE_PUBLIC_API_TOKEN", "") or None
    return TenantApi(token=token, tenant=_tenant(request))
