"""Canonicalization of badge image URLs.

The same badge used by two repositories differs only in the organization and
repository names embedded in its image URL. Replacing those with placeholders
yields a pattern that identifies the badge across repositories.
"""

import re
from urllib.parse import unquote_plus, urlsplit, urlunsplit

ORG_PLACEHOLDER = "{ORG}"
REPO_PLACEHOLDER = "{REPO}"
REPO_SUFFIX = REPO_PLACEHOLDER + "/*"
TOKEN_PARAM = "token"


def _find(name: str, text: str) -> re.Match[str] | None:
    """Locate the first case-insensitive occurrence of *name* in *text*."""
    if not name:
        return None
    return re.search(re.escape(name), text, re.IGNORECASE)


def strip_token(url: str) -> str:
    """Remove the ``token`` query parameter from *url*.

    Remaining parameters keep their order and encoding. The query is dropped
    entirely when ``token`` was its only parameter. URLs that cannot be
    parsed are returned unchanged.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.query:
        return url

    params = parts.query.split("&")
    kept = [p for p in params if unquote_plus(p.partition("=")[0]) != TOKEN_PARAM]
    if len(kept) == len(params):
        return url
    return urlunsplit(parts._replace(query="&".join(kept)))


def canonicalize(image_url: str, org_name: str, document_name: str) -> str:
    """Rewrite a badge image URL into its organization-agnostic pattern.

    The first occurrence of *org_name* becomes ``{ORG}``. Then the first
    occurrence of *document_name* in the rewritten URL, and everything after
    it, becomes ``{REPO}/*``. Both searches are case-insensitive; a name that
    is empty or absent is left alone. Finally the ``token`` query parameter
    is stripped.

    The org substitution runs first, so a document name that also occurs
    inside the ``{ORG}`` placeholder text (e.g. ``org``) matches there.
    """
    result = image_url

    match = _find(org_name, result)
    if match:
        result = result[: match.start()] + ORG_PLACEHOLDER + result[match.end() :]

    match = _find(document_name, result)
    if match:
        result = result[: match.start()] + REPO_SUFFIX

    return strip_token(result)
