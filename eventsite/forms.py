import json
from datetime import date, datetime
from decimal import Decimal

from django import forms
from django.core.validators import RegexValidator

from .models import FormField, FormPage, PageModule
from .normalize import parse_timestamp

API_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATETIME_LOCAL_FORMAT = "%Y-%m-%dT%H:%M"


class BootstrapFormMixin:
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.style_fields()

    def style_fields(self):
        for field in self.fields.values():
            widget = field.widget
            if isinstance(widget, (forms.CheckboxInput, forms.RadioSelect, forms.CheckboxSelectMultiple)):
                css = "form-check-input"
            elif isinstance(widget, forms.Select):
                css = "form-select"
            else:
                css = "form-control"
            existing = widget.attrs.get("class", "")
            if css not in existing.split():
                widget.attrs["class"] = f"{existing} {css}".strip()


def build_form_field(config):
    """Turn one FormField descriptor into a Django form field."""
    attrs = {}
    if config.placeholder:
        attrs["placeholder"] = config.placeholder
    common = {"label": config.label, "required": config.required}

    validators = []
    validation = config.validation or {}
    if validation.get("pattern"):
        validators.append(
            RegexValidator(
                regex=rf"^(?:{validation['pattern']})$",
                message=f"{config.label} has an invalid format.",
            )
        )
    lengths = {}
    if "minLength" in validation:
        lengths["min_length"] = validation["minLength"]
    if "maxLength" in validation:
        lengths["max_length"] = validation["maxLength"]

    field_type = config.type
    if field_type == FormField.TYPE_EMAIL:
        field = forms.EmailField(widget=forms.EmailInput(attrs=attrs), validators=validators, **lengths, **common)
    elif field_type == FormField.TYPE_PASSWORD:
        field = forms.CharField(
            widget=forms.PasswordInput(attrs=attrs), strip=False, validators=validators, **lengths, **common
        )
    elif field_type == FormField.TYPE_TEXTAREA:
        attrs.setdefault("rows", 4)
        field = forms.CharField(widget=forms.Textarea(attrs=attrs), validators=validators, **lengths, **common)
    elif field_type == FormField.TYPE_NUMBER:
        field = forms.DecimalField(widget=forms.NumberInput(attrs=attrs), validators=validators, **common)
    elif field_type == FormField.TYPE_URL:
        field = forms.URLField(
            widget=forms.URLInput(attrs=attrs), assume_scheme="https", validators=validators, **lengths, **common
        )
    elif field_type == FormField.TYPE_DATE:
        attrs["type"] = "date"
        field = forms.DateField(widget=forms.DateInput(attrs=attrs, format="%Y-%m-%d"), **common)
    elif field_type == FormField.TYPE_SELECT:
        choices = [("", config.placeholder or "Select an option")]
        choices += list(config.options)
        field = forms.ChoiceField(choices=choices, **common)
    elif field_type == FormField.TYPE_RADIO:
        field = forms.ChoiceField(choices=list(config.options), widget=forms.RadioSelect, **common)
    elif field_type == FormField.TYPE_CHECKBOX:
        field = forms.BooleanField(**common)
        field.inline_label = config.placeholder or config.label
    else:
        if field_type == FormField.TYPE_TEL:
            attrs["type"] = "tel"
        field = forms.CharField(widget=forms.TextInput(attrs=attrs), validators=validators, **lengths, **common)

    field.field_type = field_type
    return field


def _serialize_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    return value


class DynamicForm(BootstrapFormMixin, forms.Form):
    """A form whose fields come from a tenant's ``form_config``."""

    def __init__(self, *args, fields=None, **kwargs):
        self.config = list(fields or [])
        super().__init__(*args, **kwargs)
        for config in self.config:
            self.fields[config.name] = build_form_field(config)
        # the mixin ran before the dynamic fields existed
        self.style_fields()

    @property
    def is_empty(self):
        return not self.config

    def payload(self):
        """Serialize cleaned data for the backend, keeping only configured fields."""
        data = {}
        for config in self.config:
            value = self.cleaned_data.get(config.name)
            if config.type == FormField.TYPE_CHECKBOX:
                data[config.name] = bool(value)
                continue
            if value is None or value == "":
                continue
            data[config.name] = _serialize_value(value)
        return data


class AdminLoginForm(BootstrapFormMixin, forms.Form):
    email = forms.EmailField(
        error_messages={"required": "Email is required"},
        widget=forms.EmailInput(attrs={"placeholder": "Email", "autocomplete": "email"}),
    )
    password = forms.CharField(
        strip=False,
        error_messages={"required": "Password is required"},
        widget=forms.PasswordInput(attrs={"placeholder": "Password", "autocomplete": "current-password"}),
    )


class EventForm(BootstrapFormMixin, forms.Form):
    STATUS_CHOICES = [
        ("draft", "Draft"),
        ("published", "Published"),
        ("cancelled", "Cancelled"),
    ]

    event_name = forms.CharField(max_length=255)
    description = forms.CharField(widget=forms.Textarea(attrs={"rows": 4}))
    start_date = forms.DateField(widget=forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"))
    start_time = forms.TimeField(widget=forms.TimeInput(attrs={"type": "time"}, format="%H:%M"))
    end_date = forms.DateField(widget=forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"))
    end_time = forms.TimeField(widget=forms.TimeInput(attrs={"type": "time"}, format="%H:%M"))
    venue_name = forms.CharField(max_length=255)
    venue_address = forms.CharField(max_length=255)
    venue_city = forms.CharField(max_length=100)
    venue_state = forms.CharField(max_length=100)
    venue_country = forms.CharField(max_length=100)
    venue_postal_code = forms.CharField(max_length=20)
    venue_latitude = forms.CharField(max_length=32, required=False)
    venue_longitude = forms.CharField(max_length=32, required=False)
    status = forms.ChoiceField(choices=STATUS_CHOICES, initial="draft")
    sort_order = forms.CharField(max_length=10, required=False, initial="1")

    def clean(self):
        cleaned = super().clean()
        start_date = cleaned.get("start_date")
        start_time = cleaned.get("start_time")
        end_date = cleaned.get("end_date")
        end_time = cleaned.get("end_time")
        if start_date and start_time and end_date and end_time:
            start_at = datetime.combine(start_date, start_time)
            end_at = datetime.combine(end_date, end_time)
            if end_at <= start_at:
                raise forms.ValidationError("End date must be after start date.")
            cleaned["start_at"] = start_at
            cleaned["end_at"] = end_at
        return cleaned

    def payload(self):
        cleaned = self.cleaned_data
        return {
            "event_name": cleaned["event_name"],
            "description": cleaned["description"],
            "venue_name": cleaned["venue_name"],
            "venue_address": cleaned["venue_address"],
            "venue_city": cleaned["venue_city"],
            "venue_state": cleaned["venue_state"],
            "venue_country": cleaned["venue_country"],
            "venue_postal_code": cleaned["venue_postal_code"],
            "venue_latitude": cleaned.get("venue_latitude") or "0",
            "venue_longitude": cleaned.get("venue_longitude") or "0",
            "status": cleaned["status"],
            "start_at": cleaned["start_at"].strftime(API_DATETIME_FORMAT),
            "end_at": cleaned["end_at"].strftime(API_DATETIME_FORMAT),
            "is_active": True,
            "is_featured": False,
            "sort_order": cleaned.get("sort_order") or "1",
        }

    @classmethod
    def initial_from_event(cls, event):
        initial = {name: event.get(name) for name in cls.base_fields if event.get(name) not in (None, "")}
        start_at = parse_timestamp(event.get("start_at"))
        end_at = parse_timestamp(event.get("end_at"))
        if start_at:
            initial["start_date"] = start_at.date()
            initial["start_time"] = start_at.time()
        if end_at:
            initial["end_date"] = end_at.date()
            initial["end_time"] = end_at.time()
        if "sort_order" in initial:
            initial["sort_order"] = str(initial["sort_order"])
        return initial


class TicketForm(BootstrapFormMixin, forms.Form):
    STATUS_CHOICES = [
        ("active", "Active"),
        ("inactive", "Inactive"),
        ("sold_out", "Sold out"),
    ]

    name = forms.CharField(max_length=255, widget=forms.TextInput(attrs={"placeholder": "VIP Pass"}))
    description = forms.CharField(widget=forms.Textarea(attrs={"rows": 3}), required=False)
    price = forms.DecimalField(min_value=0, max_digits=10, decimal_places=2)
    quantity = forms.IntegerField(min_value=0)
    ticket_start_date = forms.DateTimeField(
        input_formats=[DATETIME_LOCAL_FORMAT],
        widget=forms.DateTimeInput(attrs={"type": "datetime-local"}, format=DATETIME_LOCAL_FORMAT),
    )
    ticket_end_date = forms.DateTimeField(
        input_formats=[DATETIME_LOCAL_FORMAT],
        widget=forms.DateTimeInput(attrs={"type": "datetime-local"}, format=DATETIME_LOCAL_FORMAT),
    )
    status = forms.ChoiceField(choices=STATUS_CHOICES, initial="active")
    sort_order = forms.IntegerField(min_value=0, initial=0, required=False)
    is_nft_enabled = forms.BooleanField(required=False, label="Enable NFT")
    event_edition_ids = forms.TypedMultipleChoiceField(
        coerce=int,
        required=False,
        widget=forms.CheckboxSelectMultiple,
        label="Event editions",
    )

    def __init__(self, *args, events=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["event_edition_ids"].choices = [
            (event["id"], event.get("event_name") or f"Event {event['id']}")
            for event in (events or [])
            if isinstance(event, dict) and event.get("id") is not None
        ]

    def clean(self):
        cleaned = super().clean()
        start = cleaned.get("ticket_start_date")
        end = cleaned.get("ticket_end_date")
        if start and end and end < start:
            raise forms.ValidationError("Ticket sale end must not be before the sale start.")
        return cleaned

    def payload(self):
        cleaned = self.cleaned_data
        return {
            "name": cleaned["name"],
            "description": cleaned.get("description") or "",
            "price": float(cleaned["price"]),
            "quantity": cleaned["quantity"],
            "ticket_start_date": cleaned["ticket_start_date"].strftime(API_DATETIME_FORMAT),
            "ticket_end_date": cleaned["ticket_end_date"].strftime(API_DATETIME_FORMAT),
            "status": cleaned["status"],
            "sort_order": cleaned.get("sort_order") or 0,
            "is_nft_enabled": cleaned.get("is_nft_enabled", False),
            "event_edition_ids": list(cleaned.get("event_edition_ids") or []),
        }

    @classmethod
    def initial_from_ticket(cls, ticket):
        initial = {
            name: ticket.get(name)
            for name in ("name", "description", "price", "quantity", "status", "sort_order", "is_nft_enabled")
            if ticket.get(name) is not None
        }
        for name in ("ticket_start_date", "ticket_end_date"):
            value = parse_timestamp(ticket.get(name))
            if value:
                initial[name] = value
        initial["event_edition_ids"] = [
            edition["id"] for edition in ticket.get("event_editions") or [] if isinstance(edition, dict)
        ]
        return initial


class LoginPageForm(BootstrapFormMixin, forms.Form):
    name = forms.CharField(max_length=255, initial="Login Page")
    slug = forms.CharField(max_length=255, required=False, initial="login")
    title = forms.CharField(max_length=255, initial="Login to Your Account")
    description = forms.CharField(
        widget=forms.Textarea(attrs={"rows": 2}),
        required=False,
        initial="Please enter your credentials to access your account",
    )
    username_label = forms.CharField(max_length=100, initial="Username or Email")
    password_label = forms.CharField(max_length=100, initial="Password")
    submit_button_text = forms.CharField(max_length=100, initial="Sign In")
    forgot_password_link = forms.BooleanField(required=False, initial=True)
    register_link = forms.BooleanField(required=False, initial=True)
    remember_me_option = forms.BooleanField(required=False, initial=True)


class ContactPageForm(BootstrapFormMixin, forms.Form):
    name = forms.CharField(max_length=255, initial="Contact Page", error_messages={"required": "Page name is required"})
    slug = forms.CharField(max_length=255, required=False, initial="contact")
    title = forms.CharField(max_length=255, initial="Contact Us", error_messages={"required": "Page title is required"})
    description = forms.CharField(
        widget=forms.Textarea(attrs={"rows": 2}),
        required=False,
        initial="We'd love to hear from you. Fill out the form and we'll respond soon.",
    )
    name_label = forms.CharField(max_length=100, initial="Your Name", error_messages={"required": "Name label is required"})
    email_label = forms.CharField(max_length=100, initial="Email", error_messages={"required": "Email label is required"})
    phone_enabled = forms.BooleanField(required=False, initial=True)
    phone_label = forms.CharField(max_length=100, required=False, initial="Phone")
    message_label = forms.CharField(max_length=100, required=False, initial="Message")
    submit_button_text = forms.CharField(max_length=100, required=False, initial="Send Message")


class RegistrationPageForm(BootstrapFormMixin, forms.Form):
    title = forms.CharField(max_length=255, error_messages={"required": "Page title is required"})
    slug = forms.CharField(max_length=255, required=False)
    status = forms.ChoiceField(choices=FormPage.STATUS_CHOICES, initial=FormPage.STATUS_DRAFT)
    submit_button_text = forms.CharField(max_length=100, required=False)
    success_message = forms.CharField(widget=forms.Textarea(attrs={"rows": 2}), required=False)
    redirect_url = forms.CharField(max_length=500, required=False)
    show_in_nav = forms.BooleanField(required=False)


class FieldEditForm(BootstrapFormMixin, forms.Form):
    field_id = forms.CharField(widget=forms.HiddenInput)
    label = forms.CharField(max_length=255)
    name = forms.CharField(
        max_length=100,
        validators=[
            RegexValidator(
                regex=r"^[A-Za-z_][A-Za-z0-9_]*$",
                message="Field name may only contain letters, digits and underscores.",
            )
        ],
    )
    type = forms.ChoiceField(choices=FormField.TYPE_CHOICES)
    required = forms.BooleanField(required=False)
    placeholder = forms.CharField(max_length=255, required=False)
    options = forms.CharField(
        max_length=1000,
        required=False,
        help_text="Comma separated, for select and radio. Write value=Label to show a different label.",
    )

    def __init__(self, *args, protected=False, taken_names=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.taken_names = set(taken_names)
        if protected:
            # default fields keep their name and stay required
            self.fields["name"].disabled = True
            self.fields["required"].disabled = True

    @staticmethod
    def options_text(options):
        return ", ".join(value if value == label else f"{value}={label}" for value, label in options)

    def clean_name(self):
        name = self.cleaned_data["name"]
        if name in self.taken_names:
            raise forms.ValidationError(f"Another field is already named {name}.")
        return name

    def clean_options(self):
        raw = self.cleaned_data.get("options") or ""
        options = []
        for option in raw.split(","):
            value, _sep, label = option.partition("=")
            value, label = value.strip(), label.strip()
            if value:
                options.append((value, label or value))
        return options


class CustomPageForm(BootstrapFormMixin, forms.Form):
    HEADER_CHOICES = [("default", "Default"), ("minimal", "Minimal"), ("centered", "Centered")]
    FOOTER_CHOICES = [("default", "Default"), ("minimal", "Minimal"), ("none", "None")]
    color_validator = RegexValidator(regex=r"^#[0-9a-fA-F]{3}([0-9a-fA-F]{3})?$", message="Use a hex color.")

    name = forms.CharField(max_length=255)
    slug = forms.CharField(max_length=255, required=False)
    title = forms.CharField(max_length=255)
    description = forms.CharField(widget=forms.Textarea(attrs={"rows": 2}), required=False)
    header_style = forms.ChoiceField(choices=HEADER_CHOICES)
    footer_style = forms.ChoiceField(choices=FOOTER_CHOICES)
    background_color = forms.CharField(max_length=7, validators=[color_validator])
    text_color = forms.CharField(max_length=7, validators=[color_validator])


class ModuleEditForm(BootstrapFormMixin, forms.Form):
    module_id = forms.CharField(widget=forms.HiddenInput)
    title = forms.CharField(max_length=255, required=False)
    layout = forms.ChoiceField(choices=PageModule.LAYOUT_CHOICES)
    content = forms.CharField(widget=forms.Textarea(attrs={"rows": 8}), help_text="Module content as JSON")

    def clean_content(self):
        raw = self.cleaned_data["content"]
        try:
            content = json.loads(raw)
        except ValueError as exc:
            raise forms.ValidationError("Content must be valid JSON.") from exc
        if not isinstance(content, dict):
            raise forms.ValidationError("Content must be a JSON object.")
        return content
