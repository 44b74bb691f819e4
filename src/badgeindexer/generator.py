"""Site generator - renders the badge report from crawled documents."""

import logging
import shutil
from pathlib import Path
from typing import Any

from jinja2 import TemplateError

from badgeindexer.aggregator import (
    AggregateResult,
    BadgeAggregate,
    DocumentReference,
    aggregate,
)
from badgeindexer.classifier import normalize_name
from badgeindexer.models import BadgeIndexerError, DocumentRecord, RuleSet
from badgeindexer.store import derive_org_name, load_documents, load_timestamp
from badgeindexer.template_engine import (
    STYLESHEET,
    badge_page_name,
    create_jinja_environment,
    get_templates_dir,
    render_to_file,
)

logger = logging.getLogger(__name__)


class GenerationError(BadgeIndexerError):
    """Raised when the site cannot be rendered."""


class SiteGenerator:
    """Renders dashboard, repository and badge pages into an output directory."""

    def __init__(self, input_dir: Path, output_dir: Path, rules: RuleSet) -> None:
        self.input_dir = input_dir
        self.output_dir = output_dir
        self.rules = rules
        self.env = create_jinja_environment()
        self.records: list[DocumentRecord] = []
        self.org_name = ""
        self.last_updated = ""

    @property
    def snippets_dir(self) -> Path:
        return self.output_dir / "snippets"

    def load(self) -> AggregateResult:
        """Load stored documents and aggregate their badges."""
        self.records = load_documents(self.input_dir)
        self.org_name = derive_org_name(self.records)
        self.last_updated = load_timestamp(self.input_dir)
        logger.info(f"Loaded {len(self.records)} documents for org '{self.org_name}'")
        return aggregate(self.records, self.rules.badges, self.org_name)

    def generate(self) -> AggregateResult:
        """Generate the complete site and return the aggregated data."""
        logger.info(f"Starting generation from: {self.input_dir}, output to: {self.output_dir}")
        result = self.load()

        try:
            self._render_dashboard(result)
            self._render_repositories(result)
            self._render_badges(result)
        except (TemplateError, OSError) as e:
            raise GenerationError(f"Failed to render site: {e}") from e

        self._copy_assets()
        logger.info("Generation complete.")
        return result

    def _base_context(self, root: str) -> dict[str, Any]:
        return {
            "org_name": self.org_name,
            "last_updated": self.last_updated,
            "root": root,
        }

    def _render(self, page: str, snippet: str, context: dict[str, Any], rel_path: str) -> None:
        """Render a full page and its embeddable snippet."""
        render_to_file(self.env, page, context, self.output_dir / rel_path)
        render_to_file(self.env, snippet, context, self.snippets_dir / rel_path)

    def _render_dashboard(self, result: AggregateResult) -> None:
        context = {
            **self._base_context(""),
            "totals": result.totals,
            "documents": result.documents,
            "categories": result.categories,
        }
        self._render("index.html", "index_snippet.html", context, "index.html")
        render_to_file(self.env, "index_snippet.html", context, self.snippets_dir / "home.html")

    def _render_repositories(self, result: AggregateResult) -> None:
        records = {r.name: r for r in self.records}
        for summary in result.documents:
            context = {
                **self._base_context("../"),
                "record": records[summary.name],
                "badges": summary.badges,
            }
            rel_path = f"repos/{normalize_name(summary.name)}.html"
            self._render("repo.html", "repo_snippet.html", context, rel_path)

    def _render_badges(self, result: AggregateResult) -> None:
        # Distinct patterns classified by the same rule share one page.
        pages: dict[str, list[BadgeAggregate]] = {}
        for agg in result.index.aggregates():
            pages.setdefault(agg.id, []).append(agg)
        for badge_id, aggs in pages.items():
            context = self.badge_page_context(aggs)
            rel_path = f"badges/{badge_page_name(badge_id)}.html"
            self._render("badge.html", "badge_snippet.html", context, rel_path)

    def badge_page_context(self, aggs: list[BadgeAggregate]) -> dict[str, Any]:
        """Context for a badge page: each referencing repository's own badge."""
        references: dict[str, DocumentReference] = {}
        for agg in aggs:
            for name, ref in agg.references.items():
                references.setdefault(name, ref)
        return {
            **self._base_context("../"),
            "badge": aggs[0],
            "patterns": [agg.canonical_pattern for agg in aggs],
            "references": list(references.values()),
        }

    def _copy_assets(self) -> None:
        try:
            shutil.copyfile(get_templates_dir() / STYLESHEET, self.output_dir / STYLESHEET)
        except OSError as e:
            raise GenerationError(f"Failed to copy {STYLESHEET}: {e}") from e


def generate_site(input_dir: Path, output_dir: Path, rules: RuleSet) -> AggregateResult:
    """Generate the badge report site."""
    return SiteGenerator(input_dir, output_dir, rules).generate()
