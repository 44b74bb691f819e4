"""Loading of badge classification rules.

Rules live in a YAML (or JSON) document with a top-level ``badges`` list.
Lookup order: an explicit path, then ``~/.config/badgeindexer/badges.yaml``,
then the rule set bundled with the package.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from badgeindexer.models import RuleSet

logger = logging.getLogger(__name__)


def get_builtin_rules_path() -> Path:
    """Get the rule set shipped with the package."""
    return Path(__file__).parent / "rules" / "badges.yaml"


def get_user_rules_path() -> Path:
    """Get the user's rule set override."""
    return Path.home() / ".config" / "badgeindexer" / "badges.yaml"


def load_yaml_file(path: Path) -> Any:
    """Load a YAML file and return its contents (JSON is valid YAML)."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def find_rules_file(custom_path: Path | None = None) -> Path | None:
    """Find the rule set to use, or ``None`` if there is none."""
    if custom_path is not None:
        if custom_path.exists():
            return custom_path
        logger.warning(f"Rules file not found: {custom_path}")

    user_rules = get_user_rules_path()
    if user_rules.exists():
        return user_rules

    builtin_rules = get_builtin_rules_path()
    if builtin_rules.exists():
        return builtin_rules

    return None


def load_rule_set(path: Path) -> RuleSet:
    """Load rules from *path*.

    Returns an empty rule set if the file is missing, unreadable, not a
    mapping, or fails validation.
    """
    try:
        data = load_yaml_file(path)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load badge rules from {path}: {e}")
        return RuleSet()

    if data is None:
        return RuleSet()
    if not isinstance(data, dict):
        logger.warning(f"Badge rules are not a mapping: {path}")
        return RuleSet()

    try:
        rules = RuleSet(**data)
    except ValidationError as e:
        logger.warning(f"Invalid badge rules in {path}: {e.error_count()} error(s)")
        return RuleSet()

    logger.debug(f"Loaded {len(rules)} badge rules from {path}")
    return rules


def resolve_rule_set(custom_path: Path | None = None) -> RuleSet:
    """Find and load the active rule set."""
    path = find_rules_file(custom_path)
    if path is None:
        return RuleSet()
    return load_rule_set(path)
