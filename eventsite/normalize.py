"""Defensive readers for the loosely typed JSON the tenant backend returns.

The backend stores ``form_config``, ``modules`` and ``settings`` as JSON
strings or as nested objects depending on who saved the page, and wraps
records in ``{"data": ...}`` only some of the time. Every view goes
through the helpers below instead of poking at raw responses.
"""

import json
import logging
import re
from datetime import datetime, timezone

from django.utils.dateparse import parse_date, parse_datetime

from .models import FormField, FormPage, PageModule

logger = logging.getLogger(__name__)

FIELD_TYPES = {choice for choice, _label in FormField.TYPE_CHOICES}
MODULE_LAYOUTS = {choice for choice, _label in PageModule.LAYOUT_CHOICES}

PAGE_TYPE_ALIASES = {
    "registration": FormPage.TYPE_REGISTER,
    "register": FormPage.TYPE_REGISTER,
    "contact": FormPage.TYPE_CONTACT,
    "contact_us": FormPage.TYPE_CONTACT,
    "login": FormPage.TYPE_LOGIN,
    "custom": FormPage.TYPE_CUSTOM,
}

DEFAULT_TITLES = {
    FormPage.TYPE_LOGIN: "Login",
    FormPage.TYPE_REGISTER: "Register",
    FormPage.TYPE_CONTACT: "Contact Us",
    FormPage.TYPE_CUSTOM: "Custom Page",
}

DEFAULT_SETTINGS = {
    FormPage.TYPE_LOGIN: {
        "usernameLabel": "Username or Email",
        "passwordLabel": "Password",
        "submitButtonText": "Sign In",
        "forgotPasswordLink": True,
        "registerLink": True,
        "rememberMeOption": True,
    },
    FormPage.TYPE_REGISTER: {
        "submitButtonText": "Register Now",
        "successMessage": "Thank you for registering! We will contact you soon.",
        "redirectUrl": "",
        "show_in_nav": False,
    },
    FormPage.TYPE_CONTACT: {
        "nameLabel": "Your Name",
        "emailLabel": "Email",
        "phoneEnabled": True,
        "phoneLabel": "Phone",
        "messageLabel": "Message",
        "submitButtonText": "Send Message",
        "successMessage": "Your message has been sent successfully.",
    },
    FormPage.TYPE_CUSTOM: {
        "headerStyle": "default",
        "footerStyle": "default",
        "backgroundColor": "#ffffff",
        "textColor": "#1f2937",
    },
}


def parse_json(value, default=None):
    if value is None:
        return default
    if isinstance(value, (str, bytes)):
        if not value.strip():
            return default
        try:
            return json.loads(value)
        except ValueError:
            logger.warning("Could not decode JSON blob: %.80s", value)
            return default
    return value


def unwrap(response):
    """Return the record inside ``{"data": {...}}`` or the response itself."""
    if isinstance(response, dict) and isinstance(response.get("data"), dict):
        return response["data"]
    return response


def extract_list(response, *keys, wrap_single=False):
    if isinstance(response, list):
        return response
    if not isinstance(response, dict):
        return []
    data = response.get("data")
    if isinstance(data, list):
        return data
    for key in keys:
        if isinstance(response.get(key), list):
            return response[key]
    if isinstance(data, dict):
        # paginated payloads nest the rows one level deeper
        if isinstance(data.get("data"), list):
            return data["data"]
        if wrap_single:
            return [data]
    if wrap_single and response and "data" not in response and "id" in response:
        return [response]
    logger.warning("Unexpected list response structure: keys=%s", sorted(response.keys()))
    return []


def _as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _as_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _humanize(name):
    return name.replace("_", " ").replace("-", " ").strip().capitalize()


def _normalize_options(raw):
    """Read options as ``(value, label)`` pairs; plain strings label themselves."""
    if isinstance(raw, str):
        if not raw.strip().startswith("["):
            return [(opt.strip(), opt.strip()) for opt in raw.split(",") if opt.strip()]
        raw = parse_json(raw, [])
    if not isinstance(raw, list):
        return []
    options = []
    for item in raw:
        if isinstance(item, dict):
            value = item.get("value", item.get("label"))
            label = item.get("label", value)
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            value, label = item
        else:
            value = label = item
        if value in (None, ""):
            continue
        options.append((str(value), str(label if label not in (None, "") else value)))
    return options


def _normalize_validation(raw):
    raw = parse_json(raw, {})
    if not isinstance(raw, dict):
        return {}
    validation = {}
    for key in ("minLength", "maxLength"):
        value = _as_int(raw.get(key), None)
        if value is not None and value >= 0:
            validation[key] = value
    if raw.get("pattern"):
        validation["pattern"] = str(raw["pattern"])
    return validation


def _entries(raw, container_key):
    raw = parse_json(raw, [])
    if isinstance(raw, dict):
        raw = parse_json(raw.get(container_key), [])
    if not isinstance(raw, list):
        logger.warning("Ignoring %s of unexpected type %s", container_key, type(raw).__name__)
        return []
    return raw


def normalize_field(raw, index=0):
    if not isinstance(raw, dict):
        return None
    name = raw.get("name")
    field_type = raw.get("type")
    if not name or not field_type:
        return None
    name = str(name)
    field_type = str(field_type).lower()
    if field_type not in FIELD_TYPES:
        logger.warning("Unknown field type %r on %s, rendering as text", field_type, name)
        field_type = FormField.TYPE_TEXT
    return FormField(
        id=str(raw.get("id") or name),
        name=name,
        label=str(raw.get("label") or _humanize(name)),
        type=field_type,
        required=_as_bool(raw.get("required", False)),
        placeholder=str(raw.get("placeholder") or ""),
        options=_normalize_options(raw.get("options")),
        order=_as_int(raw.get("order"), index),
        validation=_normalize_validation(raw.get("validation")),
    )


def normalize_fields(raw):
    fields = []
    for index, entry in enumerate(_entries(raw, "fields")):
        field = normalize_field(entry, index)
        if field is not None:
            fields.append(field)
    return sorted(fields, key=lambda f: f.order)


def normalize_module(raw, index=0):
    if not isinstance(raw, dict) or not raw.get("type"):
        return None
    content = parse_json(raw.get("content"), {})
    if not isinstance(content, dict):
        content = {"content": content}
    layout = raw.get("layout")
    if layout not in MODULE_LAYOUTS:
        layout = PageModule.LAYOUT_CONTAINER
    module_type = str(raw["type"]).lower()
    return PageModule(
        id=str(raw.get("id") or f"{module_type}-{index}"),
        type=module_type,
        title=str(raw.get("title") or ""),
        content=content,
        order=_as_int(raw.get("order"), index),
        layout=layout,
    )


def normalize_modules(raw):
    modules = []
    for index, entry in enumerate(_entries(raw, "modules")):
        module = normalize_module(entry, index)
        if module is not None:
            modules.append(module)
    return sorted(modules, key=lambda m: m.order)


def normalize_settings(raw, defaults=None):
    settings = parse_json(raw, {})
    if not isinstance(settings, dict):
        settings = {}
    merged = dict(defaults or {})
    merged.update({key: value for key, value in settings.items() if value is not None})
    return merged


def canonical_page_type(record):
    if not isinstance(record, dict):
        return FormPage.TYPE_CUSTOM
    raw = record.get("page_type") or record.get("type") or record.get("form_type") or ""
    raw = str(raw).strip().lower()
    return PAGE_TYPE_ALIASES.get(raw, raw or FormPage.TYPE_CUSTOM)


def normalize_page(record, page_type=None):
    record = unwrap(record)
    if not isinstance(record, dict):
        record = {}
    page_type = page_type or canonical_page_type(record)
    raw_settings = normalize_settings(record.get("settings"))
    settings = normalize_settings(raw_settings, DEFAULT_SETTINGS.get(page_type, {}))
    return FormPage(
        id=str(record.get("id") or ""),
        name=str(record.get("name") or raw_settings.get("name") or ""),
        title=str(record.get("title") or raw_settings.get("title") or DEFAULT_TITLES.get(page_type, "")),
        slug=str(record.get("slug") or ""),
        description=str(record.get("description") or raw_settings.get("description") or ""),
        page_type=page_type,
        status=str(record.get("status") or FormPage.STATUS_DRAFT),
        fields=normalize_fields(record.get("form_config")),
        modules=normalize_modules(record.get("modules")),
        settings=settings,
        created_at=str(record.get("created_at") or record.get("createdAt") or ""),
        updated_at=str(record.get("updated_at") or record.get("updatedAt") or ""),
    )


def parse_timestamp(value):
    if not value:
        return None
    value = str(value)
    try:
        parsed = parse_datetime(value)
    except ValueError:
        parsed = None
    if parsed is None:
        try:
            day = parse_date(value)
        except ValueError:
            day = None
        if day is not None:
            parsed = datetime(day.year, day.month, day.day)
    if parsed is not None and parsed.tzinfo is not None:
        # compare aware stamps in UTC
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def latest_page(records):
    """Pick the most recently created record that carries a form_config."""
    candidates = [r for r in records if isinstance(r, dict) and r.get("form_config")]
    if not candidates:
        return None

    def sort_key(record):
        stamp = parse_timestamp(record.get("created_at") or record.get("updated_at"))
        return stamp or datetime.min

    return sorted(candidates, key=sort_key, reverse=True)[0]


def credential_field_names(fields):
    """Return the (identifier, password) field names a login form posts."""
    by_name = {f.name.lower(): f.name for f in fields}
    identifier = by_name.get("email") or by_name.get("username")
    if identifier is None:
        first_text = next((f for f in fields if f.type == FormField.TYPE_TEXT), None)
        identifier = first_text.name if first_text else "email"

    password_field = next((f for f in fields if f.type == FormField.TYPE_PASSWORD), None)
    if password_field is not None:
        password = password_field.name
    else:
        password = by_name.get("password", "password")
    return identifier, password


def sanitize_slug(text):
    slug = re.sub(r"[^a-z0-9-]", "-", (text or "").lower().strip())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def placeholder_for(label):
    lowered = (label or "").lower()
    if "name" in lowered:
        return "Enter your name"
    if "email" in lowered:
        return "Enter your email"
    if "phone" in lowered:
        return "Enter your phone"
    if "message" in lowered:
        return "Enter your message"
    return "Enter your " + re.sub(r"^your\s+", "", lowered)
