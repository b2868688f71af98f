from django import template
from django.template.loader import render_to_string
from django.utils.html import format_html_join

register = template.Library()


@register.filter
def get_item(mapping, key):
    """
    Safely get dict-like items in Django templates.
    Returns "" if missing.
    """
    try:
        return mapping.get(key, "")
    except AttributeError:
        return ""


@register.filter
def html_attrs(attrs):
    """{"id": "x", "required": True} -> ' id="x" required'"""
    pairs = []
    flags = []
    for key, value in (attrs or {}).items():
        if value is True:
            flags.append((key,))
        elif value is not False and value is not None:
            pairs.append((key, value))
    return format_html_join("", ' {}="{}"', pairs) + format_html_join("", " {}", flags)


@register.simple_tag(takes_context=True)
def render_field(context, bound_field):
    """Renders one BoundField with the widget template chosen for its kind."""
    return render_to_string(
        bound_field.template_name,
        {"field": bound_field, "descriptor": bound_field.descriptor},
        request=context.get("request"),
    )
