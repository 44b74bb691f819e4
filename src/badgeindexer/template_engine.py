"""Template engine for rendering the badge report site."""

import hashlib
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from jinja2 import Environment, FileSystemLoader, select_autoescape

from badgeindexer.classifier import normalize_name

logger = logging.getLogger(__name__)

STYLESHEET = "style.css"
MAX_PAGE_NAME_BYTES = 120
_SAFE_SCHEMES = frozenset({"http", "https", "mailto"})
_UNSAFE_URL = "#"


def get_templates_dir() -> Path:
    """Get the directory containing built-in templates."""
    return Path(__file__).parent / "templates"


def badge_page_name(badge_id: str) -> str:
    """File name stem of the page for *badge_id*.

    Ids longer than :data:`MAX_PAGE_NAME_BYTES` (fallback ids of long image
    URLs) are truncated and suffixed with a hash of the full id.
    """
    encoded = badge_id.encode("utf-8")
    if len(encoded) <= MAX_PAGE_NAME_BYTES:
        return badge_id
    digest = hashlib.sha256(encoded).hexdigest()[:16]
    prefix = encoded[:MAX_PAGE_NAME_BYTES].decode("utf-8", errors="ignore")
    return f"{prefix}-{digest}"


def safe_url(url: str) -> str:
    """Return *url* if it is relative or http(s)/mailto, else ``#``."""
    try:
        scheme = urlsplit(url.strip()).scheme
    except ValueError:
        return _UNSAFE_URL
    if scheme and scheme.lower() not in _SAFE_SCHEMES:
        return _UNSAFE_URL
    return url


def safe_image_url(url: str) -> str:
    """Like :func:`safe_url`, additionally allowing ``data:image/`` URLs."""
    if url.strip().lower().startswith("data:image/"):
        return url
    return safe_url(url)


def create_jinja_environment(templates_dir: Path | None = None) -> Environment:
    """Create a Jinja2 environment with the templates directory."""
    env = Environment(
        loader=FileSystemLoader(templates_dir or get_templates_dir()),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["page_name"] = normalize_name
    env.filters["badge_page"] = badge_page_name
    env.filters["safe_url"] = safe_url
    env.filters["safe_image_url"] = safe_image_url
    return env


def render_template(env: Environment, template_name: str, context: dict[str, Any]) -> str:
    """Render a template with the given context."""
    template = env.get_template(template_name)
    return template.render(**context)


def render_to_file(
    env: Environment, template_name: str, context: dict[str, Any], path: Path
) -> Path:
    """Render a template and write it to *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_template(env, template_name, context), encoding="utf-8")
    logger.debug(f"Rendered {template_name} -> {path}")
    return path
