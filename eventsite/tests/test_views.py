import json

import pytest
from django.urls import reverse

from eventsite.exceptions import ApiError

LOGIN_PAGE = {
    "id": 21,
    "page_type": "login",
    "title": "Member Login",
    "created_at": "2025-02-01T00:00:00Z",
    "form_config": json.dumps(
        [
            {"name": "username", "label": "Username", "type": "text", "required": True},
            {"name": "password", "label": "Password", "type": "password", "required": True},
        ]
    ),
    "settings": {"submitButtonText": "Enter"},
}

REGISTER_PAGE = {
    "id": 31,
    "slug": "signup",
    "page_type": "register",
    "title": "Join the Summit",
    "created_at": "2025-02-01T00:00:00Z",
    "form_config": {
        "fields": [
            {"name": "email", "label": "Email", "type": "email", "required": True},
            {"name": "terms", "label": "Terms", "type": "checkbox"},
        ]
    },
    "settings": json.dumps({"successMessage": "See you there", "redirectUrl": "/events/"}),
}

CONTACT_PAGE = {
    "id": 41,
    "page_type": "contact_us",
    "title": "Talk to us",
    "form_config": [
        {"name": "name", "label": "Name", "type": "text", "required": True},
        {"name": "message", "label": "Message", "type": "textarea", "required": True},
    ],
}


class TestHomeAndListings:
    def test_home_shows_events_and_active_tickets(self, client, backend):
        backend.add("GET", "/tenant/event-edition", {"data": [{"id": 1, "event_name": "Tech Summit"}]})
        backend.add(
            "GET",
            "/tenant/ticket",
            {"data": [{"id": 1, "name": "Early Bird", "quantity": 4, "sold": 1}, {"id": 2, "name": "Gone", "status": "sold_out"}]},
        )
        response = client.get(reverse("home"))
        content = response.content.decode()
        assert response.status_code == 200
        assert "Tech Summit" in content
        assert "Early Bird" in content
        assert "75%" in content
        assert "Gone" not in content

    def test_home_survives_backend_outage(self, client, backend):
        backend.add("GET", "/tenant/event-edition", ApiError("Could not connect to the server right now.", status=0))
        response = client.get(reverse("home"))
        assert response.status_code == 200
        assert "Could not connect to the server right now." in response.content.decode()

    def test_featured_events_filter(self, client, backend):
        backend.add(
            "GET",
            "/tenant/event-edition",
            {"data": [{"id": 1, "event_name": "Keynote", "is_featured": True}, {"id": 2, "event_name": "Workshop"}]},
        )
        content = client.get(reverse("events") + "?featured=1").content.decode()
        assert "Keynote" in content
        assert "Workshop" not in content

        content = client.get(reverse("events")).content.decode()
        assert "Workshop" in content

    def test_tickets_with_zero_quantity(self, client, backend):
        backend.add("GET", "/tenant/ticket", [{"id": 1, "name": "Free Pass", "quantity": 0}])
        content = client.get(reverse("tickets")).content.decode()
        assert "Free Pass" in content
        assert "0%" in content

    def test_public_token_is_used(self, client, backend, settings):
        settings.EVENTSITE_PUBLIC_API_TOKEN = "public-token"
        backend.add("GET", "/tenant/ticket", [])
        client.get(reverse("tickets"))
        assert backend.called("GET", "/tenant/ticket")[0]["token"] == "public-token"


class TestLoginPage:
    def test_without_configuration(self, client, backend):
        content = client.get(reverse("login")).content.decode()
        assert "No login form configured yet." in content

    def test_renders_latest_login_page(self, client, backend):
        older = dict(LOGIN_PAGE, id=20, title="Old Login", created_at="2024-01-01T00:00:00Z")
        backend.add("GET", "/customer/pages/type/login", {"data": [older, LOGIN_PAGE]})
        content = client.get(reverse("login")).content.decode()
        assert "Member Login" in content
        assert "Old Login" not in content
        assert "Enter" in content

    def test_missing_credentials(self, client, backend):
        backend.add("GET", "/customer/pages/type/login", {"data": LOGIN_PAGE})
        response = client.post(reverse("login"), {"username": "ada"})
        assert "Please enter credentials" in response.content.decode()
        assert not backend.called("POST", "/tenant/login")

    def test_successful_login_stores_token(self, client, backend):
        backend.add("GET", "/customer/pages/type/login", {"data": LOGIN_PAGE})
        backend.add("POST", "/tenant/login", {"success": True, "data": {"token": "abc"}})
        response = client.post(reverse("login"), {"username": "ada", "password": "pw"})
        assert response.status_code == 302
        assert response.url == reverse("admin_dashboard")
        assert backend.called("POST", "/tenant/login")[0]["data"] == {
            "email": "ada",
            "username": "ada",
            "password": "pw",
        }

        backend.add("GET", "/tenant/dashboard", {"data": {"total_pages": 1}})
        client.get(reverse("admin_dashboard"))
        assert backend.called("GET", "/tenant/dashboard")[0]["token"] == "abc"

    def test_missing_token_shows_backend_message(self, client, backend):
        backend.add("GET", "/customer/pages/type/login", {"data": LOGIN_PAGE})
        backend.add("POST", "/tenant/login", {"message": "Account locked"})
        response = client.post(reverse("login"), {"username": "ada", "password": "pw"})
        assert response.status_code == 200
        assert "Account locked" in response.content.decode()

    def test_rejected_credentials(self, client, backend):
        backend.add("GET", "/customer/pages/type/login", {"data": LOGIN_PAGE})
        backend.add("POST", "/tenant/login", ApiError("Invalid credentials", status=401))
        response = client.post(reverse("login"), {"username": "ada", "password": "bad"})
        assert response.status_code == 200
        assert "Invalid credentials" in response.content.decode()

    def test_login_page_by_id(self, client, backend):
        backend.add("GET", "/tenant/pages/21", {"data": LOGIN_PAGE})
        content = client.get(reverse("login_page", args=[21])).content.decode()
        assert "Member Login" in content


class TestRegistrationPage:
    def test_submits_to_customer_form(self, client, backend):
        backend.add("GET", "/customer/pages/type/register", {"data": [REGISTER_PAGE]})
        backend.add("POST", "/customer/form/signup", {"success": True})

        response = client.post(reverse("registration"), {"email": "ada@example.com", "terms": "on"})

        assert response.status_code == 302
        assert response.url == "/events/"
        assert backend.called("POST", "/customer/form/signup")[0]["data"] == {"email": "ada@example.com", "terms": True}

    def test_unsafe_redirect_is_ignored(self, client, backend):
        page = dict(REGISTER_PAGE, settings={"successMessage": "See you there", "redirectUrl": "https://evil.example.com/"})
        backend.add("GET", "/customer/pages/type/register", {"data": [page]})
        backend.add("POST", "/customer/form/signup", {"success": True})

        response = client.post(reverse("registration"), {"email": "ada@example.com"}, follow=True)

        assert response.redirect_chain == [(reverse("registration"), 302)]
        assert "See you there" in response.content.decode()

    def test_form_slug_falls_back_to_id(self, client, backend):
        page = dict(REGISTER_PAGE, slug="", settings={})
        backend.add("GET", "/customer/pages/type/register", {"data": [page]})
        backend.add("POST", "/customer/form/31", {})
        client.post(reverse("registration"), {"email": "ada@example.com"})
        assert backend.called("POST", "/customer/form/31")

    def test_invalid_input_is_not_sent(self, client, backend):
        backend.add("GET", "/customer/pages/type/register", {"data": [REGISTER_PAGE]})
        response = client.post(reverse("registration"), {"email": "not-an-email"})
        assert response.status_code == 200
        assert not backend.called("POST", "/customer/form/signup")

    def test_backend_validation_errors(self, client, backend):
        backend.add("GET", "/customer/pages/type/register", {"data": [REGISTER_PAGE]})
        backend.add(
            "POST",
            "/customer/form/signup",
            ApiError("Invalid", status=422, data={"errors": {"email": ["The email has already been taken."]}}),
        )
        response = client.post(reverse("registration"), {"email": "ada@example.com"})
        assert "The email has already been taken." in response.content.decode()


class TestContactPage:
    def test_submits_to_tenant_contact(self, client, backend):
        backend.add("GET", "/customer/pages/type/contact_us", {"data": CONTACT_PAGE})
        backend.add("POST", "/tenant/contact", {"success": True})

        response = client.post(reverse("contact"), {"name": "Ada", "message": "Hello"}, follow=True)

        assert backend.called("POST", "/tenant/contact")[0]["data"] == {"name": "Ada", "message": "Hello"}
        assert "Your message has been sent successfully." in response.content.decode()

    def test_contact_page_by_id(self, client, backend):
        backend.add("GET", "/tenant/pages/41", {"data": CONTACT_PAGE})
        backend.add("POST", "/tenant/contact", {})
        response = client.post(reverse("contact_page", args=[41]), {"name": "Ada", "message": "Hi"})
        assert response.status_code == 302
        assert response.url == reverse("contact_page", args=[41])

    def test_unknown_page_id_is_not_found(self, client, backend):
        response = client.get(reverse("contact_page", args=[999]))
        assert response.status_code == 404
        assert "Page not found" in response.content.decode()


class TestCustomPages:
    page = {
        "id": 51,
        "form_type": "custom",
        "title": "Summit",
        "modules": json.dumps(
            [
                {"id": "b", "type": "text", "order": 1, "layout": "narrow", "content": {"title": "About", "content": "Details"}},
                {"id": "a", "type": "hero", "order": 0, "layout": "full", "content": {"title": "Welcome Summit"}},
                {"id": "c", "type": "carousel", "order": 2, "title": "Slides"},
                {"id": "d", "type": "events", "order": 3, "content": {"title": "Coming up", "limit": 1}},
            ]
        ),
        "settings": {"backgroundColor": "#000000", "textColor": "#fafafa"},
    }

    def test_modules_render_in_order(self, client, backend):
        backend.add("GET", "/tenant/pages/51", {"data": self.page})
        backend.add("GET", "/tenant/event-edition", {"data": [{"id": 1, "event_name": "First"}, {"id": 2, "event_name": "Second"}]})

        content = client.get(reverse("custom_page", args=[51])).content.decode()

        assert content.index("Welcome Summit") < content.index("About")
        assert "container-fluid px-0" in content
        assert "narrow-container" in content
        assert "carousel module" in content
        assert "background-color: #000000" in content
        assert "First" in content
        assert "Second" not in content

    def test_module_type_cannot_reach_other_templates(self, client, backend):
        page = dict(self.page, modules=[{"id": "x", "type": "../exception/notfound", "title": "Sneaky"}])
        backend.add("GET", "/tenant/pages/51", {"data": page})

        response = client.get(reverse("custom_page", args=[51]))

        content = response.content.decode()
        assert response.status_code == 200
        assert "Sneaky (../exception/notfound module)" in content
        assert "Page not found" not in content

    def test_page_by_slug(self, client, backend):
        backend.add("GET", "/customer/pages/summit", {"data": self.page})
        backend.add("GET", "/tenant/event-edition", {"data": []})
        response = client.get(reverse("customer_page", args=["summit"]))
        assert response.status_code == 200
        assert "Welcome Summit" in response.content.decode()

    def test_missing_slug(self, client, backend):
        response = client.get(reverse("customer_page", args=["nope"]))
        assert response.status_code == 404

    def test_backend_failure_renders_error_page(self, client, backend):
        backend.add("GET", "/tenant/pages/51", ApiError("Server Error", status=500))
        response = client.get(reverse("custom_page", args=[51]))
        assert response.status_code == 502
        assert "Server Error" in response.content.decode()


@pytest.mark.parametrize("query", ["?featured=true", "?featured=1"])
def test_featured_flag_values(client, backend, query):
    backend.add("GET", "/tenant/event-edition", [{"id": 1, "event_name": "Plain"}])
    assert "Plain" not in client.get(reverse("events") + query).content.decode()
