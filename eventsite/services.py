import logging

from django.conf import settings
from django.core.cache import cache
from django.urls import reverse

from .api import customer_api
from .exceptions import ApiError
from .models import FormPage
from .normalize import canonical_page_type, extract_list, unwrap

logger = logging.getLogger(__name__)

NAVIGATION_PAGE_TYPE = "page"


def list_events(api):
    return extract_list(api.events(), "event_editions", "events", wrap_single=True)


def list_tickets(api):
    return extract_list(api.tickets(), "tickets")


def list_pages(api, **query):
    return extract_list(api.pages(**query), "pages")


def featured_events(events):
    return [event for event in events if event.get("is_featured")]


def active_tickets(tickets):
    return [ticket for ticket in tickets if ticket.get("status", "active") == "active"]


def tickets_remaining(ticket):
    try:
        quantity = int(ticket.get("quantity") or 0)
        sold = int(ticket.get("sold_quantity") or ticket.get("sold") or 0)
    except (TypeError, ValueError):
        return 0
    return max(quantity - sold, 0)


def ticket_availability(ticket):
    """Percentage of the ticket's quantity still on sale, 0 when it has no quantity."""
    try:
        quantity = int(ticket.get("quantity") or 0)
    except (TypeError, ValueError):
        return 0
    if quantity <= 0:
        return 0
    return round(tickets_remaining(ticket) * 100 / quantity)


def with_availability(tickets):
    return [
        dict(ticket, availability=ticket_availability(ticket), remaining=tickets_remaining(ticket))
        for ticket in tickets
    ]


def find_pages_by_type(api, page_type):
    """List tenant pages of one type, trying each filter the backend has used."""
    for key in ("page_type", "type", "form_type"):
        try:
            pages = list_pages(api, **{key: page_type})
        except ApiError as exc:
            logger.warning("Page lookup by %s=%s failed: %s", key, page_type, exc)
            continue
        if pages:
            return pages
    return []


def find_page_with_slug(api, page_type, slug):
    for page in find_pages_by_type(api, page_type):
        if isinstance(page, dict) and page.get("slug") == slug and page.get("id"):
            return page
    return None


def save_page(api, page_id, data, update_method="PUT"):
    """Create or update a tenant page and return the stored record."""
    if page_id:
        response = api.update_page(page_id, data, method=update_method)
        logger.info("Updated %s page %s", data.get("page_type") or data.get("form_type"), page_id)
    else:
        response = api.create_page(data)
        logger.info("Created %s page %s", data.get("page_type") or data.get("form_type"), data.get("slug"))
    record = unwrap(response)
    return record if isinstance(record, dict) else {}


def dashboard_stats(api):
    stats = {"total_pages": 0, "total_events": 0, "tickets_sold": 0, "revenue": 0}
    try:
        response = unwrap(api.dashboard())
    except ApiError as exc:
        logger.warning("Dashboard stats unavailable, counting lists instead: %s", exc)
        response = None

    if isinstance(response, dict) and response:
        stats["total_pages"] = response.get("total_pages") or response.get("pages") or 0
        stats["total_events"] = response.get("total_events") or response.get("events") or 0
        stats["tickets_sold"] = response.get("tickets_sold") or response.get("total_tickets_sold") or 0
        stats["revenue"] = response.get("revenue") or response.get("total_revenue") or 0
        return stats

    for key, loader in (("total_pages", list_pages), ("total_events", list_events)):
        try:
            stats[key] = len(loader(api))
        except ApiError as exc:
            logger.warning("Could not count %s: %s", key, exc)
    return stats


def _navigation_cache_key(tenant):
    return f"eventsite:navigation:{tenant or 'default'}"


def get_navigation(request):
    """Public navigation entries for the request's tenant, cached."""
    tenant = getattr(request, "tenant", None)
    key = _navigation_cache_key(tenant)
    pages = cache.get(key)
    if pages is not None:
        return pages

    try:
        response = customer_api(request).navigation()
    except ApiError as exc:
        logger.warning("Navigation unavailable for tenant %s: %s", tenant, exc)
        return []

    pages = [
        page
        for page in extract_list(response, "pages")
        if isinstance(page, dict) and page.get("page_type") == NAVIGATION_PAGE_TYPE
    ]
    cache.set(key, pages, getattr(settings, "EVENTSITE_NAVIGATION_CACHE_TIMEOUT", 300))
    return pages


def edit_url_for(page):
    """Builder URL for a page record, chosen by its type."""
    page_id = page.get("id")
    page_type = canonical_page_type(page)
    if page_type == FormPage.TYPE_LOGIN:
        return reverse("admin_login_builder_edit", args=[page_id])
    if page_type == FormPage.TYPE_CONTACT:
        return reverse("admin_contact_builder_edit", args=[page_id])
    if page_type == FormPage.TYPE_REGISTER:
        return reverse("admin_registration_builder_edit", args=[page_id])
    return reverse("admin_custom_builder_edit", args=[page_id])
