from functools import wraps

from django.contrib import messages
from django.shortcuts import redirect

TOKEN_SESSION_KEY = "access_token"
REFRESH_SESSION_KEY = "refresh_token"
USER_SESSION_KEY = "user"


def get_token(request):
    session = getattr(request, "session", None)
    if session is None:
        return None
    return session.get(TOKEN_SESSION_KEY) or None


def is_authenticated(request):
    return bool(get_token(request))


def get_user(request):
    return request.session.get(USER_SESSION_KEY)


def set_auth(request, token, refresh_token=None, user=None):
    request.session[TOKEN_SESSION_KEY] = token
    if refresh_token:
        request.session[REFRESH_SESSION_KEY] = refresh_token
    if user:
        request.session[USER_SESSION_KEY] = user
    request.session.modified = True


def clear_auth(request):
    for key in (TOKEN_SESSION_KEY, REFRESH_SESSION_KEY, USER_SESSION_KEY):
        request.session.pop(key, None)
    request.session.modified = True


def extract_access_token(response):
    """Find the bearer token in a login response, whichever shape the backend used."""
    if not isinstance(response, dict):
        return None
    data = response.get("data")
    if isinstance(data, dict):
        token = data.get("access_token") or data.get("token")
        if token:
            return token
    return response.get("access_token") or response.get("token")


def extract_login_user(response):
    if not isinstance(response, dict):
        return None
    data = response.get("data")
    if isinstance(data, dict) and isinstance(data.get("user"), dict):
        return data["user"]
    user = response.get("user")
    return user if isinstance(user, dict) else None


def token_required(view_func):
    @wraps(view_func)
    def wrapped(request, *args, **kwargs):
        if not is_authenticated(request):
            messages.info(request, "Please sign in to continue.")
            return redirect("admin_login")
        return view_func(request, *args, **kwargs)

    return wrapped
