import json

import pytest
from django.test import RequestFactory

from eventsite import builders
from eventsite.exceptions import BuilderError, ProtectedFieldError
from eventsite.models import FormField, FormPage, PageModule
from eventsite.normalize import normalize_page


class TestLoginBuilder:
    cleaned = {
        "name": "Member Login",
        "slug": " members ",
        "title": "Sign in",
        "description": "Members only",
        "username_label": "Email Address",
        "password_label": "Secret",
        "submit_button_text": "Go",
        "forgot_password_link": True,
        "register_link": False,
        "remember_me_option": True,
    }

    def test_request_data_writes_two_fields(self):
        data = builders.login_request_data(self.cleaned)
        fields = json.loads(data["form_config"])
        assert data["page_type"] == FormPage.TYPE_LOGIN
        assert data["slug"] == "members"
        assert [(f["name"], f["type"]) for f in fields] == [("username", "text"), ("password", "password")]
        assert fields[0]["placeholder"] == "Enter your email address"
        assert fields[1]["placeholder"] == "Enter your secret"
        settings = json.loads(data["settings"])
        assert settings["registerLink"] is False
        assert settings["submitButtonText"] == "Go"

    def test_blank_slug_defaults_to_login(self):
        data = builders.login_request_data(dict(self.cleaned, slug="  "))
        assert data["slug"] == "login"

    def test_initial_prefers_field_labels(self):
        page = normalize_page(
            {
                "id": 3,
                "page_type": "login",
                "form_config": [
                    {"name": "username", "label": "Member ID", "type": "text"},
                    {"name": "password", "label": "PIN", "type": "password"},
                ],
                "settings": {"usernameLabel": "Ignored", "registerLink": False},
            }
        )
        initial = builders.login_initial(page)
        assert initial["username_label"] == "Member ID"
        assert initial["password_label"] == "PIN"
        assert initial["register_link"] is False

    def test_initial_falls_back_to_settings_then_defaults(self):
        page = normalize_page({"id": 3, "page_type": "login", "settings": {"usernameLabel": "Handle"}})
        initial = builders.login_initial(page)
        assert initial["username_label"] == "Handle"
        assert initial["password_label"] == "Password"


class TestContactBuilder:
    cleaned = {
        "name": "Get in Touch",
        "slug": "",
        "title": "Contact Us",
        "description": "",
        "name_label": "Your Name",
        "email_label": "Email",
        "phone_enabled": True,
        "phone_label": "Phone",
        "message_label": "Message",
        "submit_button_text": "Send",
    }

    def test_fields_and_orders(self):
        config = builders.build_contact_config(self.cleaned)
        assert [(f["name"], f["type"], f["required"]) for f in config] == [
            ("name", "text", True),
            ("email", "email", True),
            ("phone", "text", False),
            ("message", "textarea", True),
        ]
        assert [f["order"] for f in config] == [0, 1, 2, 3]

    def test_phone_disabled(self):
        config = builders.build_contact_config(dict(self.cleaned, phone_enabled=False))
        assert [f["name"] for f in config] == ["name", "email", "message"]
        assert [f["order"] for f in config] == [0, 1, 2]

    def test_request_data(self):
        data = builders.contact_request_data(self.cleaned)
        assert data["page_type"] == FormPage.TYPE_CONTACT
        assert data["slug"] == "get-in-touch"
        settings = json.loads(data["settings"])
        assert settings["phoneEnabled"] is True
        assert settings["submitButtonText"] == "Send"

    def test_initial_from_saved_page(self):
        page = normalize_page(
            {
                "id": 5,
                "page_type": "contact_us",
                "form_config": builders.build_contact_config(dict(self.cleaned, phone_enabled=False, name_label="Full Name")),
                "settings": {"submitButtonText": "Send"},
            }
        )
        initial = builders.contact_initial(page)
        assert initial["name_label"] == "Full Name"
        assert initial["phone_enabled"] is False
        assert initial["submit_button_text"] == "Send"


class TestRegistrationBuilder:
    def test_new_page_has_default_fields(self):
        page = builders.new_registration_page()
        assert [f.name for f in page.fields] == ["first_name", "last_name", "email", "password", "phone"]
        assert all(f.required for f in page.fields)
        assert page.fields[4].type == FormField.TYPE_TEL
        # the defaults are copied, not shared
        page.fields[0].label = "Changed"
        assert builders.DEFAULT_REGISTRATION_FIELDS[0].label == "First Name"

    def test_add_field(self):
        page = builders.new_registration_page()
        fields = builders.add_field(page.fields)
        added = fields[-1]
        assert added.name.startswith("company_")
        assert added.label == "Company"
        assert added.placeholder == "Enter your company"
        assert added.required is False
        assert added.order == 5

    def test_protected_fields_cannot_be_deleted(self):
        page = builders.new_registration_page()
        with pytest.raises(ProtectedFieldError) as excinfo:
            builders.delete_field(page.fields, "3")
        assert excinfo.value.name == "email"

    def test_custom_fields_can_be_deleted(self):
        fields = builders.add_field(builders.new_registration_page().fields)
        fields = builders.delete_field(fields, fields[-1].id)
        assert len(fields) == 5

    def test_update_field_returns_new_objects(self):
        fields = builders.add_field(builders.new_registration_page().fields)
        custom = fields[-1]
        updated = builders.update_field(fields, custom.id, label="Employer", name="employer", required=True)
        assert updated[-1].label == "Employer"
        assert updated[-1].name == "employer"
        assert updated[-1].required is True
        assert custom.label == "Company"

    def test_protected_field_keeps_name_and_required(self):
        page = builders.new_registration_page()
        fields = builders.update_field(page.fields, "1", label="Given name", name="nickname", required=False)
        assert fields[0].label == "Given name"
        assert fields[0].name == "first_name"
        assert fields[0].required is True
        # still protected after the edit
        with pytest.raises(ProtectedFieldError):
            builders.delete_field(fields, "1")

    def test_move_renumbers_order(self):
        fields = builders.new_registration_page().fields
        moved = builders.move_item(fields, "5", "1")
        assert [f.name for f in moved] == ["phone", "first_name", "last_name", "email", "password"]
        assert [f.order for f in moved] == [0, 1, 2, 3, 4]

    def test_shift_item_clamps_at_edges(self):
        fields = builders.new_registration_page().fields
        assert [f.id for f in builders.shift_item(fields, "1", -1)] == ["1", "2", "3", "4", "5"]
        assert [f.id for f in builders.shift_item(fields, "1", 1)][:2] == ["2", "1"]

    def test_request_data(self):
        page = builders.new_registration_page()
        page.slug = "  "
        page.fields = builders.move_item(page.fields, "2", "1")
        page.fields[0].order = 9
        data = builders.registration_request_data(page)
        form_config = json.loads(data["form_config"])
        assert [f["order"] for f in form_config["fields"]] == [0, 1, 2, 3, 4]
        assert form_config["fields"][0]["name"] == "last_name"
        assert data["slug"] is None
        assert data["status"] == FormPage.STATUS_DRAFT
        assert data["page_type"] == FormPage.TYPE_REGISTER
        assert json.loads(data["settings"])["submitButtonText"] == "Register Now"

    def test_request_data_validation(self):
        page = builders.new_registration_page()
        page.title = " "
        page.fields = []
        with pytest.raises(BuilderError) as excinfo:
            builders.registration_request_data(page)
        assert excinfo.value.errors == ["Page title is required", "At least one form field is required"]

    def test_request_data_rejects_duplicate_names(self):
        page = builders.new_registration_page()
        page.fields = builders.add_field(page.fields)
        page.fields[-1].name = "email"
        with pytest.raises(BuilderError) as excinfo:
            builders.registration_request_data(page)
        assert excinfo.value.errors == ["Field name email is used more than once"]


class TestCustomBuilder:
    def test_new_module_from_template(self):
        module = builders.new_module(PageModule.TYPE_HERO, 2)
        assert module.title == "Hero Section"
        assert module.content["buttonText"] == "Get Started"
        assert module.order == 2
        assert module.layout == PageModule.LAYOUT_CONTAINER

    def test_template_content_is_copied(self):
        module = builders.new_module(PageModule.TYPE_IMAGE, 0)
        module.content["images"].append({"src": "x"})
        assert len(builders.MODULE_TEMPLATES[PageModule.TYPE_IMAGE]["default_content"]["images"]) == 2

    def test_unknown_module_type(self):
        with pytest.raises(BuilderError):
            builders.new_module("carousel", 0)

    def test_module_editing(self):
        modules = builders.add_module([], PageModule.TYPE_HERO)
        modules.append(builders.new_module(PageModule.TYPE_TEXT, 1))
        modules[1].id = "text-1"
        modules = builders.update_module(modules, "text-1", title="Intro", layout=PageModule.LAYOUT_NARROW)
        assert modules[1].title == "Intro"
        assert modules[1].layout == PageModule.LAYOUT_NARROW
        modules = builders.shift_item(modules, "text-1", -1)
        assert [m.type for m in modules] == ["text", "hero"]
        assert [m.order for m in modules] == [0, 1]
        modules = builders.delete_module(modules, "text-1")
        assert [m.type for m in modules] == ["hero"]

    def test_request_data(self):
        page = builders.new_custom_page()
        page.modules = builders.add_module(page.modules, PageModule.TYPE_EVENTS)
        data = builders.custom_request_data(page)
        assert data["form_type"] == FormPage.TYPE_CUSTOM
        modules = json.loads(data["modules"])
        assert modules[0]["type"] == "events"
        settings = json.loads(data["settings"])
        assert settings["backgroundColor"] == "#ffffff"
        assert settings["name"] == "New Custom Page"
        assert settings["description"] == page.description


class TestDrafts:
    def make_request(self):
        request = RequestFactory().get("/")
        request.session = _Session()
        return request

    def test_round_trip_keeps_edits(self):
        request = self.make_request()
        page = builders.new_registration_page()
        page.fields = builders.add_field(page.fields)
        builders.store_draft(request, "registration", page)

        restored = builders.load_draft(request, "registration", None)
        assert [f.name for f in restored.fields] == [f.name for f in page.fields]
        assert restored.page_type == FormPage.TYPE_REGISTER

    def test_draft_is_scoped_to_page(self):
        request = self.make_request()
        page = normalize_page({"id": 8, "page_type": "custom"})
        builders.store_draft(request, "custom", page)
        assert builders.load_draft(request, "custom", "8") is not None
        assert builders.load_draft(request, "custom", "9") is None
        assert builders.load_draft(request, "custom", None) is None

    def test_discard(self):
        request = self.make_request()
        builders.store_draft(request, "custom", builders.new_custom_page())
        builders.discard_draft(request, "custom")
        assert builders.load_draft(request, "custom", None) is None


class _Session(dict):
    modified = False
