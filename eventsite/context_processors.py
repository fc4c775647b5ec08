from .auth import get_user, is_authenticated
from .services import get_navigation


def site_context(request):
    return {
        "is_admin_authenticated": is_authenticated(request),
        "admin_user": get_user(request) if hasattr(request, "session") else None,
        "tenant": getattr(request, "tenant", None),
        "navigation_pages": get_navigation(request),
    }
