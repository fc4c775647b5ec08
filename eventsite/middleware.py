import logging

from django.conf import settings
from django.contrib import messages
from django.shortcuts import redirect, render

from .auth import clear_auth
from .exceptions import ApiError, PageNotFoundError

logger = logging.getLogger(__name__)

TENANT_SESSION_KEY = "tenant"
TENANT_HEADER = "X-Tenant-ID"


class TenantMiddleware:
    """Attach ``request.tenant``: query string, then session, then header, then the default."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.tenant = self.resolve(request)
        return self.get_response(request)

    def resolve(self, request):
        tenant = request.GET.get("tenant", "").strip()
        if tenant:
            request.session[TENANT_SESSION_KEY] = tenant
            return tenant
        tenant = request.session.get(TENANT_SESSION_KEY)
        if tenant:
            return tenant
        tenant = request.headers.get(TENANT_HEADER, "").strip()
        if tenant:
            return tenant
        return getattr(settings, "EVENTSITE_DEFAULT_TENANT", "default")


class ExceptionHandlingMiddleware:
    """Turn backend failures into sign-in redirects and error pages."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, ApiError) and exception.is_unauthorized:
            clear_auth(request)
            messages.warning(request, "Your session has expired. Please sign in again.")
            return redirect("admin_login")

        if isinstance(exception, PageNotFoundError) or (isinstance(exception, ApiError) and exception.is_not_found):
            return render(request, "exception/notfound.html", {"exception": exception}, status=404)

        if isinstance(exception, ApiError):
            logger.error("Unhandled backend error on %s: %s (status %s)", request.path, exception, exception.status)
            return render(request, "exception/api_error.html", {"exception": exception}, status=502)

        return None
