"""Page builder state: default configurations, list editing and request bodies.

Builders that edit ordered lists (registration fields, custom page modules)
keep a working draft in the session until the operator saves or discards it.
"""

import copy
import json
import logging
import time

from .exceptions import BuilderError, ProtectedFieldError
from .models import FormField, FormPage, PageModule
from .normalize import DEFAULT_SETTINGS, normalize_page, placeholder_for, sanitize_slug

logger = logging.getLogger(__name__)

PROTECTED_REGISTRATION_FIELDS = ("first_name", "last_name", "email", "password", "phone")

DEFAULT_REGISTRATION_FIELDS = [
    FormField("1", "first_name", "First Name", FormField.TYPE_TEXT, True, "Enter your first name", order=0),
    FormField("2", "last_name", "Last Name", FormField.TYPE_TEXT, True, "Enter your last name", order=1),
    FormField("3", "email", "Email Address", FormField.TYPE_EMAIL, True, "Enter your email address", order=2),
    FormField("4", "password", "Password", FormField.TYPE_PASSWORD, True, "Enter your password", order=3),
    FormField("5", "phone", "Phone", FormField.TYPE_TEL, True, "Enter your phone number", order=4),
]

MODULE_TEMPLATES = {
    PageModule.TYPE_HERO: {
        "name": "Hero Section",
        "description": "Large banner with title and call-to-action",
        "default_content": {
            "title": "Welcome to Our Event",
            "subtitle": "Join us for an amazing experience",
            "buttonText": "Get Started",
            "buttonLink": "#",
            "backgroundImage": "",
            "overlay": True,
        },
    },
    PageModule.TYPE_TEXT: {
        "name": "Text Block",
        "description": "Rich text content section",
        "default_content": {
            "title": "About Our Event",
            "content": "This is where you can add detailed information about your event, speakers, agenda, and more.",
            "alignment": "left",
        },
    },
    PageModule.TYPE_IMAGE: {
        "name": "Image Gallery",
        "description": "Image showcase with captions",
        "default_content": {
            "images": [
                {"src": "", "alt": "Gallery Image 1", "caption": "Event Photo 1"},
                {"src": "", "alt": "Gallery Image 2", "caption": "Event Photo 2"},
            ],
            "layout": "grid",
        },
    },
    PageModule.TYPE_EVENTS: {
        "name": "Events List",
        "description": "Display upcoming events",
        "default_content": {
            "title": "Upcoming Events",
            "showDate": True,
            "showLocation": True,
            "showPrice": True,
            "limit": 6,
        },
    },
    PageModule.TYPE_SPEAKERS: {
        "name": "Speakers",
        "description": "Showcase event speakers",
        "default_content": {
            "title": "Our Speakers",
            "showBio": True,
            "showSocial": True,
            "layout": "grid",
            "limit": 8,
        },
    },
    PageModule.TYPE_TICKETS: {
        "name": "Ticket Options",
        "description": "Display ticket types and pricing",
        "default_content": {
            "title": "Get Your Tickets",
            "showFeatures": True,
            "showAvailability": True,
            "layout": "cards",
        },
    },
}


def _timestamp_id():
    return str(int(time.time() * 1000))


def _renumber(items):
    for index, item in enumerate(items):
        item.order = index
    return items


def _index_of(items, item_id):
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return None


def move_item(items, item_id, target_id):
    """Move ``item_id`` to the position of ``target_id`` and renumber ``order``."""
    items = list(items)
    source = _index_of(items, item_id)
    target = _index_of(items, target_id)
    if source is None or target is None or source == target:
        return items
    moved = items.pop(source)
    items.insert(target, moved)
    return _renumber(items)


def shift_item(items, item_id, offset):
    items = list(items)
    source = _index_of(items, item_id)
    if source is None:
        return items
    target = max(0, min(len(items) - 1, source + offset))
    return move_item(items, item_id, items[target].id)


# login


def build_login_config(username_label, password_label):
    return [
        {
            "id": "username",
            "name": "username",
            "label": username_label,
            "type": FormField.TYPE_TEXT,
            "required": True,
            "placeholder": f"Enter your {username_label.lower()}",
            "order": 0,
        },
        {
            "id": "password",
            "name": "password",
            "label": password_label,
            "type": FormField.TYPE_PASSWORD,
            "required": True,
            "placeholder": f"Enter your {password_label.lower()}",
            "order": 1,
        },
    ]


def login_initial(page):
    """Initial data for the login builder, preferring labels stored on the fields."""
    settings = page.settings
    username_field = next((f for f in page.fields if f.name == "username"), None)
    password_field = next(
        (f for f in page.fields if f.name == "password" or f.type == FormField.TYPE_PASSWORD), None
    )
    defaults = DEFAULT_SETTINGS[FormPage.TYPE_LOGIN]
    return {
        "name": page.name or "Login Page",
        "slug": page.slug or "login",
        "title": page.title or "Login to Your Account",
        "description": page.description,
        "username_label": (username_field and username_field.label)
        or settings.get("usernameLabel")
        or defaults["usernameLabel"],
        "password_label": (password_field and password_field.label)
        or settings.get("passwordLabel")
        or defaults["passwordLabel"],
        "submit_button_text": settings.get("submitButtonText") or defaults["submitButtonText"],
        "forgot_password_link": bool(settings.get("forgotPasswordLink", True)),
        "register_link": bool(settings.get("registerLink", True)),
        "remember_me_option": bool(settings.get("rememberMeOption", True)),
    }


def login_request_data(cleaned):
    slug = (cleaned.get("slug") or "login").strip() or "login"
    return {
        "title": cleaned["title"],
        "name": cleaned.get("name") or "Login Page",
        "slug": slug,
        "page_type": FormPage.TYPE_LOGIN,
        "form_config": json.dumps(build_login_config(cleaned["username_label"], cleaned["password_label"])),
        "settings": json.dumps(
            {
                "submitButtonText": cleaned["submit_button_text"],
                "description": cleaned.get("description") or "",
                "usernameLabel": cleaned["username_label"],
                "passwordLabel": cleaned["password_label"],
                "forgotPasswordLink": cleaned.get("forgot_password_link", False),
                "registerLink": cleaned.get("register_link", False),
                "rememberMeOption": cleaned.get("remember_me_option", False),
            }
        ),
    }


# contact


def build_contact_config(cleaned):
    name_label = cleaned["name_label"].strip()
    email_label = cleaned["email_label"].strip()
    message_label = (cleaned.get("message_label") or "Message").strip()
    config = [
        {
            "id": "name",
            "name": "name",
            "label": name_label,
            "type": FormField.TYPE_TEXT,
            "required": True,
            "placeholder": placeholder_for(name_label),
            "order": 0,
        },
        {
            "id": "email",
            "name": "email",
            "label": email_label,
            "type": FormField.TYPE_EMAIL,
            "required": True,
            "placeholder": placeholder_for(email_label),
            "order": 1,
        },
    ]
    if cleaned.get("phone_enabled"):
        phone_label = (cleaned.get("phone_label") or "Phone").strip()
        config.append(
            {
                "id": "phone",
                "name": "phone",
                "label": phone_label,
                "type": FormField.TYPE_TEXT,
                "required": False,
                "placeholder": placeholder_for(phone_label),
                "order": 2,
            }
        )
    config.append(
        {
            "id": "message",
            "name": "message",
            "label": message_label,
            "type": FormField.TYPE_TEXTAREA,
            "required": True,
            "placeholder": placeholder_for(message_label),
            "order": len(config),
        }
    )
    return config


def contact_initial(page):
    by_id = {f.id: f for f in page.fields}
    settings = page.settings

    def label(field_id, default):
        return by_id[field_id].label if field_id in by_id else default

    if page.fields:
        phone_enabled = "phone" in by_id
    else:
        phone_enabled = settings.get("phoneEnabled", True)
    return {
        "name": page.name or "Contact Page",
        "slug": page.slug or "contact",
        "title": page.title or "Contact Us",
        "description": page.description,
        "name_label": label("name", "Your Name"),
        "email_label": label("email", "Email"),
        "phone_enabled": bool(phone_enabled),
        "phone_label": label("phone", "Phone"),
        "message_label": label("message", "Message"),
        "submit_button_text": settings.get("submitButtonText") or "Send Message",
    }


def contact_request_data(cleaned):
    slug = sanitize_slug(cleaned.get("slug") or cleaned["name"])
    return {
        "title": cleaned["title"].strip(),
        "name": cleaned["name"].strip(),
        "slug": slug,
        "page_type": FormPage.TYPE_CONTACT,
        "form_config": json.dumps(build_contact_config(cleaned)),
        "description": (cleaned.get("description") or "").strip(),
        "settings": json.dumps(
            {
                "nameLabel": cleaned["name_label"].strip(),
                "emailLabel": cleaned["email_label"].strip(),
                "phoneEnabled": bool(cleaned.get("phone_enabled")),
                "phoneLabel": (cleaned.get("phone_label") or "").strip(),
                "messageLabel": (cleaned.get("message_label") or "").strip(),
                "submitButtonText": (cleaned.get("submit_button_text") or "Send Message").strip(),
            }
        ),
    }


# registration


def new_registration_page():
    return FormPage(
        title="Event Registration",
        page_type=FormPage.TYPE_REGISTER,
        fields=copy.deepcopy(DEFAULT_REGISTRATION_FIELDS),
        settings=dict(DEFAULT_SETTINGS[FormPage.TYPE_REGISTER]),
    )


def new_field(order):
    stamp = _timestamp_id()
    return FormField(
        id=stamp,
        name=f"company_{stamp}",
        label="Company",
        type=FormField.TYPE_TEXT,
        required=False,
        placeholder="Enter your company",
        order=order,
    )


def add_field(fields):
    return list(fields) + [new_field(len(fields))]


def is_protected_field(field):
    return field.name in PROTECTED_REGISTRATION_FIELDS


def update_field(fields, field_id, **changes):
    updated = []
    for f in fields:
        if f.id == field_id:
            if is_protected_field(f):
                changes = dict(changes, name=f.name, required=True)
            f = _replace(f, changes)
        updated.append(f)
    return updated


def _replace(item, changes):
    item = copy.copy(item)
    for key, value in changes.items():
        setattr(item, key, value)
    return item


def delete_field(fields, field_id):
    target = next((f for f in fields if f.id == field_id), None)
    if target is not None and is_protected_field(target):
        raise ProtectedFieldError(target.name)
    return [f for f in fields if f.id != field_id]


def registration_request_data(page):
    errors = []
    if not page.title or not page.title.strip():
        errors.append("Page title is required")
    if not page.fields:
        errors.append("At least one form field is required")
    names = [field.name for field in page.fields]
    for name in sorted({name for name in names if names.count(name) > 1}):
        errors.append(f"Field name {name} is used more than once")
    if errors:
        raise BuilderError(errors)

    fields = []
    for index, field in enumerate(page.fields):
        data = field.as_dict()
        data["order"] = index
        fields.append(data)
    return {
        "title": page.title.strip(),
        "slug": (page.slug or "").strip() or None,
        "page_type": FormPage.TYPE_REGISTER,
        "form_config": json.dumps({"fields": fields}),
        "settings": json.dumps(
            {
                "submitButtonText": page.settings.get("submitButtonText") or "Register Now",
                "successMessage": page.settings.get("successMessage") or "",
                "redirectUrl": page.settings.get("redirectUrl") or "",
                "show_in_nav": bool(page.settings.get("show_in_nav")),
            }
        ),
        "status": page.status or FormPage.STATUS_DRAFT,
    }


# custom pages


def new_custom_page():
    return FormPage(
        name="New Custom Page",
        slug="custom-page",
        title="Custom Page",
        description="A custom page built with drag and drop",
        page_type=FormPage.TYPE_CUSTOM,
        settings=dict(DEFAULT_SETTINGS[FormPage.TYPE_CUSTOM]),
    )


def new_module(module_type, order):
    template = MODULE_TEMPLATES.get(module_type)
    if template is None:
        raise BuilderError([f"Unknown module type: {module_type}"])
    return PageModule(
        id=_timestamp_id(),
        type=module_type,
        title=template["name"],
        content=copy.deepcopy(template["default_content"]),
        order=order,
        layout=PageModule.LAYOUT_CONTAINER,
    )


def add_module(modules, module_type):
    return list(modules) + [new_module(module_type, len(modules))]


def update_module(modules, module_id, **changes):
    return [_replace(m, changes) if m.id == module_id else m for m in modules]


def delete_module(modules, module_id):
    return [m for m in modules if m.id != module_id]


def custom_request_data(page):
    settings = {
        key: page.settings.get(key, default) for key, default in DEFAULT_SETTINGS[FormPage.TYPE_CUSTOM].items()
    }
    settings["description"] = page.description
    settings["name"] = page.name
    return {
        "title": page.title,
        "slug": page.slug,
        "form_type": FormPage.TYPE_CUSTOM,
        "modules": json.dumps([m.as_dict() for m in page.modules]),
        "settings": json.dumps(settings),
    }


# session drafts


def _draft_key(kind):
    return f"builder_draft:{kind}"


def load_draft(request, kind, page_id):
    """Return the session draft for ``page_id`` or ``None`` when there is none."""
    stored = request.session.get(_draft_key(kind))
    if not stored or stored.get("page_id") != (page_id or ""):
        return None
    return normalize_page(stored["page"], page_type=stored["page"].get("page_type"))


def store_draft(request, kind, page):
    request.session[_draft_key(kind)] = {"page_id": page.id or "", "page": page.as_dict()}
    request.session.modified = True


def discard_draft(request, kind):
    request.session.pop(_draft_key(kind), None)
    request.session.modified = True
