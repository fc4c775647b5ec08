from django import template
from django.template.loader import select_template

from ..models import PageModule

register = template.Library()

LAYOUT_CLASSES = {
    PageModule.LAYOUT_FULL: "container-fluid px-0",
    PageModule.LAYOUT_CONTAINER: "container",
    PageModule.LAYOUT_NARROW: "container narrow-container",
}


@register.filter
def module_template(module):
    """Template for a page module, falling back to a placeholder for unknown types."""
    if module.type not in PageModule.TYPES:
        return select_template(["modules/unknown.html"])
    return select_template([f"modules/{module.type}.html", "modules/unknown.html"])


@register.filter
def layout_class(layout):
    return LAYOUT_CLASSES.get(layout, LAYOUT_CLASSES[PageModule.LAYOUT_CONTAINER])


@register.filter
def field_type(bound_field):
    return getattr(bound_field.field, "field_type", "")


@register.filter
def inline_label(bound_field):
    return getattr(bound_field.field, "inline_label", bound_field.label)
