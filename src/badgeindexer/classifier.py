"""Rule-based classification of canonical badge patterns."""

import logging
import re
from collections.abc import Iterable

from badgeindexer.models import UNKNOWN_CATEGORY, Classification, ClassificationRule

logger = logging.getLogger(__name__)

_NAME_SEGMENT = "[^/]+"
_PLACEHOLDERS = {
    re.escape("{ORG}"): _NAME_SEGMENT,
    re.escape("{REPO}"): _NAME_SEGMENT,
    re.escape("*"): ".*",
}


def normalize_name(name: str) -> str:
    """Lowercase *name* and replace slashes, for ids and file names."""
    return name.lower().replace("/", "-")


def compile_rule_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a rule template into a regex that must match a whole pattern.

    Literal text is escaped; ``{ORG}`` and ``{REPO}`` match one or more
    non-slash characters and ``*`` matches any substring.

    Raises:
        re.error: If the resulting expression does not compile.
    """
    regex = re.escape(pattern)
    for escaped, replacement in _PLACEHOLDERS.items():
        regex = regex.replace(escaped, replacement)
    return re.compile(regex)


def fallback_classification(pattern: str) -> Classification:
    """Classification used when no rule matches *pattern*."""
    return Classification(
        name=UNKNOWN_CATEGORY,
        category=UNKNOWN_CATEGORY,
        placeholder="",
        id=normalize_name(pattern) or "unknown",
    )


def classify(pattern: str, rules: Iterable[ClassificationRule]) -> Classification:
    """Classify a canonical pattern against *rules*, first match wins.

    Rules are tried in order. A rule whose template does not compile is
    skipped. When nothing matches, an ``Unknown`` classification keyed by
    the normalized pattern is returned.
    """
    for rule in rules:
        try:
            matcher = compile_rule_pattern(rule.pattern)
        except re.error as e:
            logger.debug(f"Skipping badge rule '{rule.id}': {e}")
            continue
        if matcher.fullmatch(pattern):
            return Classification(
                name=rule.name,
                category=rule.category,
                placeholder=rule.placeholder,
                id=rule.id,
            )
    return fallback_classification(pattern)
