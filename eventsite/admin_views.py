import json
import logging

from django.contrib import messages
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from .api import tenant_api
from .auth import clear_auth, extract_access_token, extract_login_user, is_authenticated, set_auth, token_required
from .builders import (
    MODULE_TEMPLATES,
    PROTECTED_REGISTRATION_FIELDS,
    add_field,
    add_module,
    build_login_config,
    contact_initial,
    contact_request_data,
    custom_request_data,
    delete_field,
    delete_module,
    discard_draft,
    is_protected_field,
    load_draft,
    login_initial,
    login_request_data,
    new_custom_page,
    new_registration_page,
    registration_request_data,
    shift_item,
    store_draft,
    update_field,
    update_module,
)
from .exceptions import ApiError, BuilderError, ProtectedFieldError
from .forms import (
    AdminLoginForm,
    ContactPageForm,
    CustomPageForm,
    DynamicForm,
    EventForm,
    FieldEditForm,
    LoginPageForm,
    ModuleEditForm,
    RegistrationPageForm,
    TicketForm,
)
from .models import FormPage
from .normalize import DEFAULT_SETTINGS, canonical_page_type, normalize_fields, normalize_page, parse_timestamp, unwrap
from .services import (
    dashboard_stats,
    edit_url_for,
    find_page_with_slug,
    list_events,
    list_pages,
    list_tickets,
    save_page,
    with_availability,
)
from .views import module_data

logger = logging.getLogger(__name__)

REGISTRATION_DRAFT = "registration"
CUSTOM_DRAFT = "custom"

BUILDER_URLS = {
    FormPage.TYPE_LOGIN: "admin_login_builder",
    FormPage.TYPE_REGISTER: "admin_registration_builder",
    FormPage.TYPE_CONTACT: "admin_contact_builder",
    FormPage.TYPE_CUSTOM: "admin_custom_builder",
}

TYPE_LABELS = dict(FormPage.TYPE_CHOICES)


def _report_api_error(request, exc):
    details = exc.validation_messages()
    if details:
        for detail in details:
            messages.error(request, detail)
    else:
        messages.error(request, exc.message)


def _load_page(api, page_id, page_type):
    return normalize_page(api.page(page_id), page_type=page_type)


def _saved_page_redirect(edit_url_name, record, page_id):
    saved_id = record.get("id") or page_id
    if saved_id:
        return redirect(edit_url_name, page_id=saved_id)
    return redirect("admin_pages")


# authentication


def admin_login(request):
    if is_authenticated(request):
        return redirect("admin_dashboard")

    if request.method == "POST":
        form = AdminLoginForm(request.POST)
        if form.is_valid():
            try:
                response = tenant_api(request).login(form.cleaned_data["email"], form.cleaned_data["password"])
            except ApiError as exc:
                messages.error(request, exc.message or "Invalid credentials")
            else:
                token = extract_access_token(response)
                if token:
                    set_auth(request, token, user=extract_login_user(response))
                    logger.info("Operator %s signed in for tenant %s", form.cleaned_data["email"], request.tenant)
                    return redirect("admin_dashboard")
                message = response.get("message") if isinstance(response, dict) else None
                messages.error(request, message or "Invalid credentials")
    else:
        form = AdminLoginForm()

    return render(request, "admin/login.html", {"form": form})


@require_POST
def admin_logout(request):
    try:
        tenant_api(request).logout()
    except ApiError as exc:
        logger.warning("Backend logout failed, clearing the session anyway: %s", exc)
    clear_auth(request)
    messages.info(request, "Signed out.")
    return redirect("admin_login")


# dashboard and pages


@token_required
def admin_dashboard(request):
    stats = dashboard_stats(tenant_api(request))
    return render(
        request,
        "admin/dashboard.html",
        {"stats": stats, "page_types": FormPage.TYPE_CHOICES},
    )


@token_required
def admin_page_create(request):
    page_type = request.GET.get("page_type") or request.POST.get("page_type")
    url_name = BUILDER_URLS.get(page_type)
    if url_name is None:
        messages.error(request, "Choose a page type.")
        return redirect("admin_dashboard")
    return redirect(url_name)


@token_required
def admin_pages(request):
    pages = []
    try:
        records = list_pages(tenant_api(request))
    except ApiError as exc:
        _report_api_error(request, exc)
        records = []

    for record in records:
        if not isinstance(record, dict) or not record.get("id"):
            continue
        page_type = canonical_page_type(record)
        pages.append(
            {
                "id": record["id"],
                "title": record.get("title") or record.get("name") or "Untitled",
                "slug": record.get("slug") or "",
                "page_type": page_type,
                "type_label": TYPE_LABELS.get(page_type, page_type),
                "status": record.get("status") or FormPage.STATUS_DRAFT,
                "updated_at": parse_timestamp(record.get("updated_at") or record.get("created_at")),
                "edit_url": edit_url_for(record),
            }
        )
    return render(request, "admin/pages.html", {"pages": pages})


@token_required
@require_POST
def admin_page_delete(request, page_id):
    try:
        tenant_api(request).delete_page(page_id)
    except ApiError as exc:
        _report_api_error(request, exc)
    else:
        logger.info("Deleted page %s", page_id)
        messages.warning(request, "Page deleted.")
    return redirect("admin_pages")


# login builder


@token_required
def admin_login_builder(request, page_id=None):
    api = tenant_api(request)
    page = _load_page(api, page_id, FormPage.TYPE_LOGIN) if page_id else None

    if request.method == "POST":
        form = LoginPageForm(request.POST)
        if form.is_valid():
            data = login_request_data(form.cleaned_data)
            target_id = page_id
            if not target_id:
                existing = find_page_with_slug(api, FormPage.TYPE_LOGIN, data["slug"])
                if existing:
                    target_id = existing["id"]
            try:
                record = save_page(api, target_id, data)
            except ApiError as exc:
                _report_api_error(request, exc)
            else:
                messages.success(request, "Login page updated." if target_id else "Login page created.")
                return _saved_page_redirect("admin_login_builder_edit", record, target_id)
    else:
        form = LoginPageForm(initial=login_initial(page)) if page else LoginPageForm()

    username_label = form["username_label"].value() or DEFAULT_SETTINGS[FormPage.TYPE_LOGIN]["usernameLabel"]
    password_label = form["password_label"].value() or DEFAULT_SETTINGS[FormPage.TYPE_LOGIN]["passwordLabel"]
    preview_form = DynamicForm(fields=normalize_fields(build_login_config(username_label, password_label)))
    return render(
        request,
        "admin/login_builder.html",
        {"form": form, "page": page, "preview_form": preview_form},
    )


# contact builder


@token_required
def admin_contact_builder(request, page_id=None):
    api = tenant_api(request)
    page = _load_page(api, page_id, FormPage.TYPE_CONTACT) if page_id else None

    if request.method == "POST":
        form = ContactPageForm(request.POST)
        if form.is_valid():
            data = contact_request_data(form.cleaned_data)
            try:
                record = save_page(api, page_id, data, update_method="PATCH")
            except ApiError as exc:
                _report_api_error(request, exc)
            else:
                messages.success(request, "Contact page updated." if page_id else "Contact page created.")
                return _saved_page_redirect("admin_contact_builder_edit", record, page_id)
    else:
        form = ContactPageForm(initial=contact_initial(page)) if page else ContactPageForm()

    return render(request, "admin/contact_builder.html", {"form": form, "page": page})


# registration builder


def _registration_page(request, api, page_id):
    page = load_draft(request, REGISTRATION_DRAFT, page_id)
    if page is not None:
        return page
    if page_id:
        return _load_page(api, page_id, FormPage.TYPE_REGISTER)
    return new_registration_page()


def _apply_registration_settings(page, cleaned):
    page.title = cleaned["title"]
    page.slug = cleaned.get("slug") or ""
    page.status = cleaned.get("status") or FormPage.STATUS_DRAFT
    page.settings.update(
        {
            "submitButtonText": cleaned.get("submit_button_text") or page.settings.get("submitButtonText"),
            "successMessage": cleaned.get("success_message") or "",
            "redirectUrl": cleaned.get("redirect_url") or "",
            "show_in_nav": cleaned.get("show_in_nav", False),
        }
    )


def _registration_initial(page):
    return {
        "title": page.title,
        "slug": page.slug,
        "status": page.status,
        "submit_button_text": page.settings.get("submitButtonText"),
        "success_message": page.settings.get("successMessage"),
        "redirect_url": page.settings.get("redirectUrl"),
        "show_in_nav": bool(page.settings.get("show_in_nav")),
    }


def _field_form(page, field, data=None):
    """Edit form for one registration field, aware of protected and taken names."""
    if field is None:
        return FieldEditForm(data)
    return FieldEditForm(
        data,
        initial={
            "field_id": field.id,
            "label": field.label,
            "name": field.name,
            "type": field.type,
            "required": field.required or is_protected_field(field),
            "placeholder": field.placeholder,
            "options": FieldEditForm.options_text(field.options),
        },
        protected=is_protected_field(field),
        taken_names=[f.name for f in page.fields if f.id != field.id],
    )


def _builder_redirect(url_name, page_id):
    if page_id:
        return redirect(f"{url_name}_edit", page_id=page_id)
    return redirect(url_name)


@token_required
def admin_registration_builder(request, page_id=None):
    api = tenant_api(request)
    page = _registration_page(request, api, page_id)
    settings_form = RegistrationPageForm(initial=_registration_initial(page))
    field_form = None

    if request.method == "POST":
        action = request.POST.get("action", "")
        field_id = request.POST.get("field_id", "")

        if action == "discard":
            discard_draft(request, REGISTRATION_DRAFT)
            messages.info(request, "Unsaved changes discarded.")
            return _builder_redirect("admin_registration_builder", page_id)

        if action in ("settings", "save"):
            settings_form = RegistrationPageForm(request.POST)
            if settings_form.is_valid():
                _apply_registration_settings(page, settings_form.cleaned_data)
                if action == "save":
                    try:
                        record = save_page(api, page_id, registration_request_data(page))
                    except BuilderError as exc:
                        for error in exc.errors:
                            messages.error(request, error)
                    except ApiError as exc:
                        _report_api_error(request, exc)
                    else:
                        discard_draft(request, REGISTRATION_DRAFT)
                        messages.success(request, "Registration page saved.")
                        return _saved_page_redirect("admin_registration_builder_edit", record, page_id)
                store_draft(request, REGISTRATION_DRAFT, page)
                if action == "settings":
                    return _builder_redirect("admin_registration_builder", page_id)
        elif action == "add_field":
            page.fields = add_field(page.fields)
            store_draft(request, REGISTRATION_DRAFT, page)
            return _builder_redirect("admin_registration_builder", page_id)
        elif action == "update_field":
            target = next((f for f in page.fields if f.id == field_id), None)
            field_form = _field_form(page, target, data=request.POST)
            if field_form.is_valid():
                cleaned = field_form.cleaned_data
                page.fields = update_field(
                    page.fields,
                    cleaned["field_id"],
                    label=cleaned["label"],
                    name=cleaned["name"],
                    type=cleaned["type"],
                    required=cleaned["required"],
                    placeholder=cleaned["placeholder"],
                    options=cleaned["options"],
                )
                store_draft(request, REGISTRATION_DRAFT, page)
                return _builder_redirect("admin_registration_builder", page_id)
        elif action == "delete_field":
            try:
                page.fields = delete_field(page.fields, field_id)
            except ProtectedFieldError as exc:
                messages.error(request, f"{exc.name} is a default field and cannot be deleted.")
            else:
                store_draft(request, REGISTRATION_DRAFT, page)
            return _builder_redirect("admin_registration_builder", page_id)
        elif action in ("move_up", "move_down"):
            page.fields = shift_item(page.fields, field_id, -1 if action == "move_up" else 1)
            store_draft(request, REGISTRATION_DRAFT, page)
            return _builder_redirect("admin_registration_builder", page_id)
        else:
            messages.error(request, "Unknown builder action.")

    editing_id = request.GET.get("field")
    editing = next((f for f in page.fields if f.id == editing_id), None)
    if field_form is None and editing is not None:
        field_form = _field_form(page, editing)

    return render(
        request,
        "admin/registration_builder.html",
        {
            "page": page,
            "page_id": page_id,
            "settings_form": settings_form,
            "field_form": field_form,
            "preview_form": DynamicForm(fields=page.fields),
            "protected_fields": PROTECTED_REGISTRATION_FIELDS,
            "has_draft": load_draft(request, REGISTRATION_DRAFT, page_id) is not None,
        },
    )


# custom page builder


def _custom_page(request, api, page_id):
    page = load_draft(request, CUSTOM_DRAFT, page_id)
    if page is not None:
        return page
    if page_id:
        return _load_page(api, page_id, FormPage.TYPE_CUSTOM)
    return new_custom_page()


def _custom_initial(page):
    return {
        "name": page.name,
        "slug": page.slug,
        "title": page.title,
        "description": page.description,
        "header_style": page.settings.get("headerStyle"),
        "footer_style": page.settings.get("footerStyle"),
        "background_color": page.settings.get("backgroundColor"),
        "text_color": page.settings.get("textColor"),
    }


def _apply_custom_settings(page, cleaned):
    page.name = cleaned["name"]
    page.slug = cleaned.get("slug") or ""
    page.title = cleaned["title"]
    page.description = cleaned.get("description") or ""
    page.settings.update(
        {
            "headerStyle": cleaned["header_style"],
            "footerStyle": cleaned["footer_style"],
            "backgroundColor": cleaned["background_color"],
            "textColor": cleaned["text_color"],
        }
    )


@token_required
def admin_custom_builder(request, page_id=None):
    api = tenant_api(request)
    page = _custom_page(request, api, page_id)
    settings_form = CustomPageForm(initial=_custom_initial(page))
    module_form = None

    if request.method == "POST":
        action = request.POST.get("action", "")
        module_id = request.POST.get("module_id", "")

        if action == "discard":
            discard_draft(request, CUSTOM_DRAFT)
            messages.info(request, "Unsaved changes discarded.")
            return _builder_redirect("admin_custom_builder", page_id)

        if action in ("settings", "save"):
            settings_form = CustomPageForm(request.POST)
            if settings_form.is_valid():
                _apply_custom_settings(page, settings_form.cleaned_data)
                if action == "save":
                    try:
                        record = save_page(api, page_id, custom_request_data(page))
                    except ApiError as exc:
                        _report_api_error(request, exc)
                    else:
                        discard_draft(request, CUSTOM_DRAFT)
                        messages.success(request, "Custom page saved.")
                        return _saved_page_redirect("admin_custom_builder_edit", record, page_id)
                store_draft(request, CUSTOM_DRAFT, page)
                if action == "settings":
                    return _builder_redirect("admin_custom_builder", page_id)
        elif action == "add_module":
            try:
                page.modules = add_module(page.modules, request.POST.get("module_type", ""))
            except BuilderError as exc:
                for error in exc.errors:
                    messages.error(request, error)
            else:
                store_draft(request, CUSTOM_DRAFT, page)
            return _builder_redirect("admin_custom_builder", page_id)
        elif action == "update_module":
            module_form = ModuleEditForm(request.POST)
            if module_form.is_valid():
                cleaned = module_form.cleaned_data
                page.modules = update_module(
                    page.modules,
                    cleaned["module_id"],
                    title=cleaned["title"],
                    layout=cleaned["layout"],
                    content=cleaned["content"],
                )
                store_draft(request, CUSTOM_DRAFT, page)
                return _builder_redirect("admin_custom_builder", page_id)
        elif action == "delete_module":
            page.modules = delete_module(page.modules, module_id)
            store_draft(request, CUSTOM_DRAFT, page)
            return _builder_redirect("admin_custom_builder", page_id)
        elif action in ("move_up", "move_down"):
            page.modules = shift_item(page.modules, module_id, -1 if action == "move_up" else 1)
            store_draft(request, CUSTOM_DRAFT, page)
            return _builder_redirect("admin_custom_builder", page_id)
        else:
            messages.error(request, "Unknown builder action.")

    editing_id = request.GET.get("module")
    editing = next((m for m in page.modules if m.id == editing_id), None)
    if module_form is None and editing is not None:
        module_form = ModuleEditForm(
            initial={
                "module_id": editing.id,
                "title": editing.title,
                "layout": editing.layout,
                "content": json.dumps(editing.content, indent=2),
            }
        )

    return render(
        request,
        "admin/custom_builder.html",
        {
            "page": page,
            "page_id": page_id,
            "settings_form": settings_form,
            "module_form": module_form,
            "module_templates": MODULE_TEMPLATES,
            "has_draft": load_draft(request, CUSTOM_DRAFT, page_id) is not None,
        },
    )


# events


@token_required
def admin_events(request):
    events = []
    try:
        events = list_events(tenant_api(request))
    except ApiError as exc:
        _report_api_error(request, exc)
    return render(request, "admin/events.html", {"events": events})


@token_required
def admin_event_create(request):
    if request.method == "POST":
        form = EventForm(request.POST)
        if form.is_valid():
            try:
                tenant_api(request).create_event(form.payload())
            except ApiError as exc:
                _report_api_error(request, exc)
            else:
                messages.success(request, "Event created successfully.")
                return redirect("admin_events")
    else:
        form = EventForm()

    return render(
        request,
        "admin/event_form.html",
        {"form": form, "page_title": "Create Event", "submit_label": "Create Event"},
    )


@token_required
def admin_event_edit(request, event_id):
    api = tenant_api(request)
    event = unwrap(api.event(event_id))
    if request.method == "POST":
        form = EventForm(request.POST)
        if form.is_valid():
            try:
                api.update_event(event_id, form.payload())
            except ApiError as exc:
                _report_api_error(request, exc)
            else:
                messages.success(request, "Event updated.")
                return redirect("admin_events")
    else:
        form = EventForm(initial=EventForm.initial_from_event(event))

    return render(
        request,
        "admin/event_form.html",
        {"form": form, "page_title": "Edit Event", "submit_label": "Save Changes", "event": event},
    )


@token_required
@require_POST
def admin_event_delete(request, event_id):
    try:
        tenant_api(request).delete_event(event_id)
    except ApiError as exc:
        _report_api_error(request, exc)
    else:
        logger.info("Deleted event %s", event_id)
        messages.warning(request, "Event deleted.")
    return redirect("admin_events")


# tickets


def _ticket_events(request, api):
    try:
        return list_events(api)
    except ApiError as exc:
        logger.warning("Could not load events for the ticket form: %s", exc)
        return []


@token_required
def admin_tickets(request):
    tickets = []
    try:
        tickets = with_availability(list_tickets(tenant_api(request)))
    except ApiError as exc:
        _report_api_error(request, exc)
    return render(request, "admin/tickets.html", {"tickets": tickets})


@token_required
def admin_ticket_create(request):
    api = tenant_api(request)
    events = _ticket_events(request, api)
    if request.method == "POST":
        form = TicketForm(request.POST, events=events)
        if form.is_valid():
            try:
                api.create_ticket(form.payload())
            except ApiError as exc:
                _report_api_error(request, exc)
            else:
                messages.success(request, "Ticket created successfully.")
                return redirect("admin_tickets")
    else:
        form = TicketForm(events=events)

    return render(
        request,
        "admin/ticket_form.html",
        {"form": form, "page_title": "Create Ticket", "submit_label": "Create Ticket"},
    )


@token_required
def admin_ticket_edit(request, ticket_id):
    api = tenant_api(request)
    ticket = unwrap(api.ticket(ticket_id))
    events = _ticket_events(request, api)
    if request.method == "POST":
        form = TicketForm(request.POST, events=events)
        if form.is_valid():
            try:
                api.update_ticket(ticket_id, form.payload())
            except ApiError as exc:
                _report_api_error(request, exc)
            else:
                messages.success(request, "Ticket updated.")
                return redirect("admin_tickets")
    else:
        form = TicketForm(events=events, initial=TicketForm.initial_from_ticket(ticket))

    return render(
        request,
        "admin/ticket_form.html",
        {"form": form, "page_title": "Edit Ticket", "submit_label": "Save Changes", "ticket": ticket},
    )


@token_required
@require_POST
def admin_ticket_delete(request, ticket_id):
    try:
        tenant_api(request).delete_ticket(ticket_id)
    except ApiError as exc:
        _report_api_error(request, exc)
    else:
        logger.info("Deleted ticket %s", ticket_id)
        messages.warning(request, "Ticket deleted.")
    return redirect("admin_tickets")


# previews


def _preview_form_page(request, page_id, page_type, template_name):
    page = _load_page(tenant_api(request), page_id, page_type)
    if request.method == "POST":
        form = DynamicForm(request.POST, fields=page.fields)
        form.is_valid()
        messages.info(request, "Preview Mode: submissions are not sent.")
    else:
        form = DynamicForm(fields=page.fields)
    return render(
        request,
        template_name,
        {
            "page": page,
            "form": form,
            "settings": page.settings,
            "empty_label": page_type,
            "preview": True,
        },
    )


@token_required
def admin_preview_login(request, page_id):
    return _preview_form_page(request, page_id, FormPage.TYPE_LOGIN, "login.html")


@token_required
def admin_preview_registration(request, page_id):
    return _preview_form_page(request, page_id, FormPage.TYPE_REGISTER, "registration.html")


@token_required
def admin_preview_custom(request, page_id):
    page = _load_page(tenant_api(request), page_id, FormPage.TYPE_CUSTOM)
    context = {"page": page, "settings": page.settings, "preview": True}
    context.update(module_data(request, page))
    return render(request, "custom_page.html", context)
