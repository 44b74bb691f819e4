"""MCP tool handlers: actions an AI assistant can invoke."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

from pydantic import Field

if TYPE_CHECKING:
    from fastmcp import FastMCP

    from badgeindexer.models import ClassificationRule


def _rules(rules_path: str | None) -> list[ClassificationRule]:
    from badgeindexer.rule_loader import resolve_rule_set

    return resolve_rule_set(Path(rules_path) if rules_path else None).badges


def register_tools(mcp: FastMCP) -> None:
    """Register all tool handlers on the given MCP server."""

    # ------------------------------------------------------------------
    # extract_badges
    # ------------------------------------------------------------------
    @mcp.tool(
        name="extract_badges",
        description=(
            "Find badges (linked images) in README Markdown/HTML and classify each one. "
            "Returns the badges in document order."
        ),
        tags={"badge", "extract"},
    )
    def extract_badges(
        content: Annotated[str, Field(description="README content (Markdown or HTML)")],
        org_name: Annotated[str, Field(description="Organization owning the repository")] = "",
        repo_name: Annotated[str, Field(description="Repository the README belongs to")] = "",
        rules_path: Annotated[
            str | None, Field(description="Badge rules file (default: active rule set)")
        ] = None,
    ) -> str:
        from badgeindexer.aggregator import classify_document
        from badgeindexer.extractor import extract_document_badges
        from badgeindexer.models import DocumentRecord

        record = DocumentRecord(
            name=repo_name, content_found=True, badges=extract_document_badges(content)
        )
        classified = classify_document(record, _rules(rules_path), org_name)
        return json.dumps([item.to_dict() for item in classified])

    # ------------------------------------------------------------------
    # canonicalize_url
    # ------------------------------------------------------------------
    @mcp.tool(
        name="canonicalize_url",
        description=(
            "Reduce a badge image URL to its canonical pattern by replacing the organization "
            "and repository names with {ORG} and {REPO}/* and dropping the token parameter."
        ),
        tags={"badge", "pattern"},
    )
    def canonicalize_url(
        image_url: Annotated[str, Field(description="Badge image URL")],
        org_name: Annotated[str, Field(description="Organization name")],
        repo_name: Annotated[str, Field(description="Repository name")],
    ) -> str:
        from badgeindexer.canonicalize import canonicalize

        return json.dumps({"pattern": canonicalize(image_url, org_name, repo_name)})

    # ------------------------------------------------------------------
    # classify_pattern
    # ------------------------------------------------------------------
    @mcp.tool(
        name="classify_pattern",
        description=(
            "Classify a canonical badge pattern with the ordered rule set. The first matching "
            "rule wins; unmatched patterns are classified as Unknown."
        ),
        tags={"badge", "classify"},
    )
    def classify_pattern(
        pattern: Annotated[str, Field(description="Canonical badge pattern")],
        rules_path: Annotated[
            str | None, Field(description="Badge rules file (default: active rule set)")
        ] = None,
    ) -> str:
        from badgeindexer.classifier import classify

        result = classify(pattern, _rules(rules_path))
        return json.dumps(
            {
                "name": result.name,
                "category": result.category,
                "placeholder": result.placeholder,
                "id": result.id,
            }
        )

    # ------------------------------------------------------------------
    # summarize_documents
    # ------------------------------------------------------------------
    @mcp.tool(
        name="summarize_documents",
        description=(
            "Aggregate crawled repository data: totals, badges grouped by category and the "
            "badge ids of each repository."
        ),
        tags={"badge", "report"},
    )
    def summarize_documents(
        data_dir: Annotated[str, Field(description="Directory with crawled JSON data")],
        rules_path: Annotated[
            str | None, Field(description="Badge rules file (default: active rule set)")
        ] = None,
    ) -> str:
        from badgeindexer.aggregator import aggregate
        from badgeindexer.store import StoreError, derive_org_name, load_documents

        path = Path(data_dir)
        if not path.is_dir():
            return json.dumps({"error": f"Directory '{path}' does not exist"})
        try:
            records = load_documents(path)
        except StoreError as e:
            return json.dumps({"error": str(e)})

        org_name = derive_org_name(records)
        result = aggregate(records, _rules(rules_path), org_name)
        totals = result.totals
        return json.dumps(
            {
                "org_name": org_name,
                "totals": {
                    "repositories": totals.repositories,
                    "badges": totals.badges,
                    "with_badges": totals.with_badges,
                    "without_badges": totals.without_badges,
                    "unique_badges": totals.unique_badges,
                },
                "categories": [
                    {
                        "name": group.name,
                        "badges": [
                            {"id": b.id, "name": b.name, "pattern": b.pattern, "count": b.count}
                            for b in group.badges
                        ],
                    }
                    for group in result.categories
                ],
                "repositories": [
                    {"name": doc.name, "badge_count": doc.badge_count, "badge_ids": doc.badge_ids}
                    for doc in result.documents
                ],
            }
        )
