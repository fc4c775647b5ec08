from dataclasses import asdict, dataclass, field


@dataclass
class FormField:
    TYPE_TEXT = "text"
    TYPE_EMAIL = "email"
    TYPE_PASSWORD = "password"
    TYPE_TEXTAREA = "textarea"
    TYPE_SELECT = "select"
    TYPE_CHECKBOX = "checkbox"
    TYPE_RADIO = "radio"
    TYPE_TEL = "tel"
    TYPE_NUMBER = "number"
    TYPE_URL = "url"
    TYPE_DATE = "date"

    TYPE_CHOICES = [
        (TYPE_TEXT, "Text"),
        (TYPE_EMAIL, "Email"),
        (TYPE_PASSWORD, "Password"),
        (TYPE_TEXTAREA, "Textarea"),
        (TYPE_SELECT, "Select"),
        (TYPE_CHECKBOX, "Checkbox"),
        (TYPE_RADIO, "Radio"),
        (TYPE_TEL, "Phone"),
        (TYPE_NUMBER, "Number"),
        (TYPE_URL, "URL"),
        (TYPE_DATE, "Date"),
    ]

    id: str
    name: str
    label: str
    type: str = TYPE_TEXT
    required: bool = False
    placeholder: str = ""
    options: list = field(default_factory=list)
    order: int = 0
    validation: dict = field(default_factory=dict)

    def __str__(self):
        return f"{self.label} ({self.type})"

    @property
    def has_options(self):
        return self.type in (self.TYPE_SELECT, self.TYPE_RADIO)

    def as_dict(self):
        data = asdict(self)
        data["options"] = [
            value if value == label else {"value": value, "label": label} for value, label in self.options
        ]
        if not data["options"]:
            data.pop("options")
        if not data["validation"]:
            data.pop("validation")
        return data


@dataclass
class PageModule:
    TYPE_HERO = "hero"
    TYPE_TEXT = "text"
    TYPE_IMAGE = "image"
    TYPE_EVENTS = "events"
    TYPE_SPEAKERS = "speakers"
    TYPE_TICKETS = "tickets"
    TYPE_CONTACT = "contact"
    TYPE_GALLERY = "gallery"
    TYPE_TESTIMONIALS = "testimonials"

    TYPES = [
        TYPE_HERO,
        TYPE_TEXT,
        TYPE_IMAGE,
        TYPE_EVENTS,
        TYPE_SPEAKERS,
        TYPE_TICKETS,
        TYPE_CONTACT,
        TYPE_GALLERY,
        TYPE_TESTIMONIALS,
    ]

    LAYOUT_FULL = "full"
    LAYOUT_CONTAINER = "container"
    LAYOUT_NARROW = "narrow"

    LAYOUT_CHOICES = [
        (LAYOUT_FULL, "Full width"),
        (LAYOUT_CONTAINER, "Container"),
        (LAYOUT_NARROW, "Narrow"),
    ]

    id: str
    type: str
    title: str = ""
    content: dict = field(default_factory=dict)
    order: int = 0
    layout: str = LAYOUT_CONTAINER

    def __str__(self):
        return f"{self.title or self.type} [{self.order}]"

    def as_dict(self):
        return asdict(self)


@dataclass
class FormPage:
    TYPE_LOGIN = "login"
    TYPE_REGISTER = "register"
    TYPE_CONTACT = "contact_us"
    TYPE_CUSTOM = "custom"

    TYPE_CHOICES = [
        (TYPE_REGISTER, "Registration Page"),
        (TYPE_LOGIN, "Login Page"),
        (TYPE_CONTACT, "Contact Page"),
        (TYPE_CUSTOM, "Custom Page"),
    ]

    STATUS_DRAFT = "draft"
    STATUS_PUBLISHED = "published"
    STATUS_ARCHIVED = "archived"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PUBLISHED, "Published"),
        (STATUS_ARCHIVED, "Archived"),
    ]

    id: str = ""
    name: str = ""
    title: str = ""
    slug: str = ""
    description: str = ""
    page_type: str = TYPE_CUSTOM
    status: str = STATUS_DRAFT
    fields: list = field(default_factory=list)
    modules: list = field(default_factory=list)
    settings: dict = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""

    def __str__(self):
        return f"{self.title} ({self.page_type})"

    @property
    def is_saved(self):
        return bool(self.id)

    @property
    def form_slug(self):
        return self.slug or self.id

    def as_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "page_type": self.page_type,
            "status": self.status,
            "form_config": [f.as_dict() for f in self.fields],
            "modules": [m.as_dict() for m in self.modules],
            "settings": dict(self.settings),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
