import logging

from django.contrib import messages
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme

from .api import customer_api, public_api
from .auth import extract_access_token, extract_login_user, set_auth
from .exceptions import ApiError, PageNotFoundError
from .forms import DynamicForm
from .models import FormPage, PageModule
from .normalize import DEFAULT_SETTINGS, credential_field_names, extract_list, latest_page, normalize_page, unwrap
from .services import active_tickets, featured_events, list_events, list_tickets, with_availability

logger = logging.getLogger(__name__)

EMPTY_FORM_LABELS = {
    FormPage.TYPE_LOGIN: "login",
    FormPage.TYPE_REGISTER: "registration",
    FormPage.TYPE_CONTACT: "contact",
}


def load_latest_page(request, page_type):
    """Newest published page of a type for the tenant, or None when there is none."""
    try:
        response = customer_api(request).page_by_type(page_type)
    except ApiError as exc:
        logger.warning("Could not load %s page: %s", page_type, exc)
        return None
    record = latest_page(extract_list(response, "pages", wrap_single=True))
    if record is None:
        return None
    return normalize_page(record, page_type=page_type)


def load_page(request, page_id, page_type=None):
    record = unwrap(public_api(request).page(page_id))
    if not isinstance(record, dict) or not record:
        raise PageNotFoundError(page_type or "", page_id)
    return normalize_page(record, page_type=page_type)


def _report_api_error(request, exc, fallback):
    details = exc.validation_messages()
    if details:
        for detail in details:
            messages.error(request, detail)
    else:
        messages.error(request, exc.message or fallback)


def _safe_redirect_url(request, url):
    if url and url_has_allowed_host_and_scheme(url, allowed_hosts={request.get_host()}, require_https=request.is_secure()):
        return url
    return None


def _form_page_context(page, form, page_type, preview=False):
    return {
        "page": page,
        "form": form,
        "settings": page.settings if page else DEFAULT_SETTINGS[page_type],
        "empty_label": EMPTY_FORM_LABELS.get(page_type, page_type),
        "preview": preview,
    }


def home(request):
    api = public_api(request)
    events = []
    tickets = []
    try:
        events = list_events(api)[:3]
        tickets = with_availability(active_tickets(list_tickets(api)))[:3]
    except ApiError as exc:
        messages.error(request, exc.message)
    return render(request, "home.html", {"events": events, "tickets": tickets})


def events_view(request):
    featured_only = request.GET.get("featured") in ("1", "true")
    events = []
    try:
        events = list_events(public_api(request))
    except ApiError as exc:
        messages.error(request, exc.message)
    if featured_only:
        events = featured_events(events)
    return render(request, "events.html", {"events": events, "featured_only": featured_only})


def tickets_view(request):
    tickets = []
    try:
        tickets = with_availability(active_tickets(list_tickets(public_api(request))))
    except ApiError as exc:
        messages.error(request, exc.message)
    return render(request, "tickets.html", {"tickets": tickets})


def attempt_login(request, page, data):
    """Sign in through a configured login page. Returns True once a token is stored."""
    identifier_name, password_name = credential_field_names(page.fields)
    identifier = (data.get(identifier_name) or "").strip()
    password = data.get(password_name) or ""
    if not identifier or not password:
        messages.error(request, "Please enter credentials")
        return False

    try:
        response = public_api(request).login(identifier, password, username=identifier)
    except ApiError as exc:
        messages.error(request, exc.message or "Invalid credentials")
        return False

    token = extract_access_token(response)
    if not token:
        message = response.get("message") if isinstance(response, dict) else None
        messages.error(request, message or "Invalid credentials")
        return False

    set_auth(request, token, user=extract_login_user(response))
    return True


def login_view(request, page_id=None):
    if page_id is None:
        page = load_latest_page(request, FormPage.TYPE_LOGIN)
    else:
        page = load_page(request, page_id, FormPage.TYPE_LOGIN)

    fields = page.fields if page else []
    if request.method == "POST" and fields:
        form = DynamicForm(request.POST, fields=fields)
        if attempt_login(request, page, request.POST):
            messages.success(request, "Signed in.")
            return redirect("admin_dashboard")
    else:
        form = DynamicForm(fields=fields)

    return render(request, "login.html", _form_page_context(page, form, FormPage.TYPE_LOGIN))


def registration_view(request):
    page = load_latest_page(request, FormPage.TYPE_REGISTER)
    fields = page.fields if page else []
    form = DynamicForm(request.POST or None, fields=fields)

    if request.method == "POST" and fields and form.is_valid():
        try:
            customer_api(request).submit_form(page.form_slug, form.payload())
        except ApiError as exc:
            _report_api_error(request, exc, "Registration failed. Please try again.")
        else:
            messages.success(request, page.settings.get("successMessage") or "Registration successful!")
            redirect_url = _safe_redirect_url(request, page.settings.get("redirectUrl"))
            if page.settings.get("redirectUrl") and redirect_url is None:
                logger.warning("Ignoring unsafe registration redirect %s", page.settings.get("redirectUrl"))
            return redirect(redirect_url or "registration")

    return render(request, "registration.html", _form_page_context(page, form, FormPage.TYPE_REGISTER))


def contact_view(request, page_id=None):
    if page_id is None:
        page = load_latest_page(request, FormPage.TYPE_CONTACT)
    else:
        page = load_page(request, page_id, FormPage.TYPE_CONTACT)

    fields = page.fields if page else []
    form = DynamicForm(request.POST or None, fields=fields)

    if request.method == "POST" and fields and form.is_valid():
        try:
            public_api(request).contact(form.payload())
        except ApiError as exc:
            _report_api_error(request, exc, "Failed to send message. Please try again.")
        else:
            messages.success(
                request,
                page.settings.get("successMessage") or DEFAULT_SETTINGS[FormPage.TYPE_CONTACT]["successMessage"],
            )
            if page_id is None:
                return redirect("contact")
            return redirect("contact_page", page_id=page_id)

    return render(request, "contact.html", _form_page_context(page, form, FormPage.TYPE_CONTACT))


def module_data(request, page):
    """Events and tickets for the modules on a page that list them."""
    types = {module.type for module in page.modules}
    data = {"events": [], "tickets": []}
    api = public_api(request)
    try:
        if PageModule.TYPE_EVENTS in types:
            data["events"] = list_events(api)
        if PageModule.TYPE_TICKETS in types:
            data["tickets"] = with_availability(active_tickets(list_tickets(api)))
    except ApiError as exc:
        logger.warning("Could not load module data for page %s: %s", page.id, exc)
    return data


def render_custom_page(request, page, preview=False):
    context = {"page": page, "settings": page.settings, "preview": preview}
    context.update(module_data(request, page))
    return render(request, "custom_page.html", context)


def custom_page_view(request, page_id):
    return render_custom_page(request, load_page(request, page_id))


def customer_page_view(request, slug):
    record = unwrap(customer_api(request).page(slug))
    if not isinstance(record, dict) or not record:
        raise PageNotFoundError("", slug)
    return render_custom_page(request, normalize_page(record))
