"""MCP resource handlers: read-only data exposed to AI assistants."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastmcp import FastMCP


def register_resources(mcp: FastMCP) -> None:
    """Register all resource handlers on the given MCP server."""

    @mcp.resource(
        "rules://active",
        name="Active Badge Rules",
        description="Badge classification rules in evaluation order, with their source file.",
        mime_type="application/json",
    )
    def active_rules() -> str:
        from badgeindexer.rule_loader import find_rules_file, resolve_rule_set

        path = find_rules_file()
        rule_set = resolve_rule_set()
        return json.dumps(
            {
                "path": str(path) if path else None,
                "rules": [rule.model_dump() for rule in rule_set.badges],
            }
        )

    @mcp.resource(
        "template://list",
        name="Report Templates",
        description="Jinja2 templates used to render the badge report site.",
        mime_type="application/json",
    )
    def template_list() -> str:
        from badgeindexer.template_engine import get_templates_dir

        templates_dir = get_templates_dir()
        templates = (
            sorted(p.name for p in templates_dir.glob("*.html")) if templates_dir.exists() else []
        )
        return json.dumps(templates)
