"""Badge extraction from README content.

Two detectors run independently over the same document and their results are
concatenated in detector order:

* :class:`MarkdownBadgeDetector` walks the Markdown syntax tree and reports
  every link whose direct child is an image.
* :class:`HtmlBadgeDetector` scans the raw text for ``<a href><img src></a>``
  fragments.

A badge written in a form both detectors understand is reported twice.
Deduplication is left to the caller.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from typing import Protocol
from urllib.parse import urlsplit

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from badgeindexer.models import Badge, RawBadgeOccurrence

logger = logging.getLogger(__name__)


class BadgeDetector(Protocol):
    """A strategy that finds badges in decoded document text."""

    name: str

    def detect(self, text: str) -> Iterator[RawBadgeOccurrence]:
        """Yield badges in the order they appear in *text*."""
        ...


def _as_written(url: str) -> str:
    return url


def _any_link(url: str) -> bool:
    return True


class MarkdownBadgeDetector:
    """Finds ``[![alt](image)](target)`` badges through the Markdown AST.

    Only images that are direct children of a link are reported; an image
    wrapped in emphasis inside a link is not.
    """

    name = "markdown"

    def __init__(self) -> None:
        self._md = MarkdownIt("commonmark")
        # Report destinations as written: no percent-encoding, no scheme filter.
        self._md.normalizeLink = _as_written  # type: ignore[method-assign]
        self._md.validateLink = _any_link  # type: ignore[method-assign]

    def detect(self, text: str) -> Iterator[RawBadgeOccurrence]:
        root = SyntaxTreeNode(self._md.parse(text))
        for node in root.walk():
            if node.type != "link":
                continue
            target = str(node.attrs.get("href", ""))
            for child in node.children:
                if child.type == "image":
                    yield RawBadgeOccurrence(
                        image_url=str(child.attrs.get("src", "")),
                        target_url=target,
                        alt_text=self._alt_text(child),
                    )

    def _alt_text(self, image: SyntaxTreeNode) -> str:
        token = image.token
        if token is None:
            return ""
        if token.children:
            return self._md.renderer.renderInlineAsText(token.children, self._md.options, {})
        return token.content


# href first, then src, then an optional alt; any other attributes are skipped.
_HTML_BADGE_RE = re.compile(
    r'<a\s+(?:[^>]*?\s)?href="([^"]+)"[^>]*>\s*'
    r'<img\s+(?:[^>]*?\s)?src="([^"]+)"(?:[^>]*?\salt="([^"]*)")?[^>]*>\s*'
    r"</a>",
    re.IGNORECASE,
)


class HtmlBadgeDetector:
    """Finds ``<a href="..."><img src="..." alt="..."></a>`` fragments."""

    name = "html"

    def detect(self, text: str) -> Iterator[RawBadgeOccurrence]:
        for match in _HTML_BADGE_RE.finditer(text):
            yield RawBadgeOccurrence(
                image_url=match.group(2),
                target_url=match.group(1),
                alt_text=match.group(3) or "",
            )


DEFAULT_DETECTORS: tuple[BadgeDetector, ...] = (MarkdownBadgeDetector(), HtmlBadgeDetector())


def _decode(content: bytes | str) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def extract_badges(
    content: bytes | str,
    detectors: Iterable[BadgeDetector] = DEFAULT_DETECTORS,
) -> list[RawBadgeOccurrence]:
    """Extract raw badge occurrences from README content.

    Args:
        content: Raw document bytes (decoded as UTF-8) or text.
        detectors: Detection strategies, run in order.

    Returns:
        All occurrences of the first detector, followed by those of the next,
        and so on. A detector that fails contributes nothing.
    """
    text = _decode(content)
    occurrences: list[RawBadgeOccurrence] = []
    for detector in detectors:
        try:
            occurrences.extend(detector.detect(text))
        except Exception as e:
            logger.debug(f"Badge detector '{detector.name}' failed: {e}")
    return occurrences


def url_host(url: str) -> str:
    """Return the host (with port) of *url*, or an empty string."""
    try:
        netloc = urlsplit(url).netloc
    except ValueError:
        return ""
    return netloc.rpartition("@")[2]


def normalize_badge(occurrence: RawBadgeOccurrence) -> Badge:
    """Build a persisted badge, deriving hosts from the occurrence URLs."""
    return Badge(
        alt_text=occurrence.alt_text,
        image_url=occurrence.image_url,
        target_url=occurrence.target_url,
        host_image=url_host(occurrence.image_url),
        host_target=url_host(occurrence.target_url),
    )


def extract_document_badges(
    content: bytes | str,
    detectors: Iterable[BadgeDetector] = DEFAULT_DETECTORS,
) -> list[Badge]:
    """Extract badges from *content* and normalize their hosts."""
    return [normalize_badge(o) for o in extract_badges(content, detectors)]
