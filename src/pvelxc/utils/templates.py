"""Template rendering and dict merging."""

import logging
from typing import Any, Dict

from jinja2 import Environment, TemplateError


logger = logging.getLogger(__name__)

# Descriptions are markdown shown in the Proxmox UI; no HTML escaping
_environment = Environment(keep_trailing_newline=True, autoescape=False)


def render_template(template_str: str, **context: Any) -> str:
    """Render a Jinja2 template string."""
    try:
        return _environment.from_string(template_str).render(**context)
    except TemplateError as e:
        logger.error(f"Cannot render template: {e}")
        raise


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``base`` with ``override`` merged in, recursing into nested dicts.

    Neither argument is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = merge_dicts(current, value)
        merged[key] = value
    return merged
