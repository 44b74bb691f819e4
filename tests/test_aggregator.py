"""Tests for badge aggregation."""

from collections.abc import Callable
from pathlib import Path

from badgeindexer.aggregator import (
    BadgeIndex,
    ClassifiedBadge,
    aggregate,
    classify_document,
)
from badgeindexer.models import Badge, Classification, DocumentRecord, RuleSet
from badgeindexer.store import load_documents

RecordFactory = Callable[..., DocumentRecord]


def _item(pattern: str, category: str, badge_id: str, image: str = "") -> ClassifiedBadge:
    return ClassifiedBadge(
        badge=Badge(image_url=image or pattern, target_url="https://t"),
        pattern=pattern,
        classification=Classification(badge_id, category, "", badge_id),
    )


class TestClassifyDocument:
    """Tests for per-document classification."""

    def test_badges_classified_in_order(
        self, rules: RuleSet, sample_readme: str, record_factory: RecordFactory
    ) -> None:
        record = record_factory("widget", sample_readme)

        classified = classify_document(record, rules.badges, "acme")

        assert [item.id for item in classified] == [
            "github-actions",
            "codecov",
            "static-badge",
            "https:--example.com-chat.svg",
        ]
        assert classified[1].pattern == "https://codecov.io/gh/{ORG}/{REPO}/*"
        assert classified[3].classification.is_unknown

    def test_document_without_badges(self, rules: RuleSet, record_factory: RecordFactory) -> None:
        assert classify_document(record_factory("empty", None), rules.badges, "acme") == []

    def test_to_dict(
        self, rules: RuleSet, sample_readme: str, record_factory: RecordFactory
    ) -> None:
        item = classify_document(record_factory("widget", sample_readme), rules.badges, "acme")[0]

        data = item.to_dict()

        assert data["id"] == "github-actions"
        assert data["category"] == "CI/CD"
        assert data["alt_text"] == "CI"
        assert data["host_image"] == "github.com"


class TestBadgeIndex:
    """Tests for the pattern accumulator."""

    def test_same_pattern_counted_once_per_document(self) -> None:
        index = BadgeIndex()
        item = _item("https://x/{ORG}/*", "CI/CD", "ci")

        index.add("widget", item)
        index.add("widget", item)
        index.add("gadget", item)

        aggregate_ = index["https://x/{ORG}/*"]
        assert aggregate_.count == 2
        assert aggregate_.documents == ["widget", "gadget"]

    def test_first_reference_kept(self) -> None:
        index = BadgeIndex()
        index.add("widget", _item("p", "CI/CD", "ci", image="https://first"))
        index.add("widget", _item("p", "CI/CD", "ci", image="https://second"))

        assert index["p"].references["widget"].image_url == "https://first"

    def test_first_classification_kept(self) -> None:
        index = BadgeIndex()
        index.add("a", _item("p", "CI/CD", "ci"))
        index.add("b", _item("p", "Other", "other"))

        assert index["p"].category == "CI/CD"
        assert index["p"].id == "ci"

    def test_sample_image_prefers_placeholder(self) -> None:
        index = BadgeIndex()
        item = ClassifiedBadge(
            badge=Badge(image_url="https://real.svg"),
            pattern="p",
            classification=Classification("Codecov", "Coverage", "https://placeholder.svg", "cc"),
        )

        index.add("widget", item)

        assert index["p"].sample_image_url == "https://placeholder.svg"

    def test_sample_image_from_first_occurrence(self) -> None:
        index = BadgeIndex()
        index.add("a", _item("p", "CI/CD", "ci", image="https://first.svg"))
        index.add("b", _item("p", "CI/CD", "ci", image="https://second.svg"))

        assert index["p"].sample_image_url == "https://first.svg"

    def test_categories_sorted_with_unknown_last(self) -> None:
        index = BadgeIndex()
        index.add("a", _item("p1", "B", "b"))
        index.add("a", _item("p2", "Unknown", "u"))
        index.add("a", _item("p3", "A", "a"))

        assert [group.name for group in index.by_category()] == ["A", "B", "Unknown"]

    def test_badges_sorted_by_count_descending(self) -> None:
        index = BadgeIndex()
        index.add("a", _item("rare", "CI/CD", "rare"))
        index.add("a", _item("common", "CI/CD", "common"))
        index.add("b", _item("common", "CI/CD", "common"))

        (group,) = index.by_category()

        assert [b.id for b in group.badges] == ["common", "rare"]
        assert [b.count for b in group.badges] == [2, 1]

    def test_equal_counts_keep_first_seen_order(self) -> None:
        index = BadgeIndex()
        for pattern in ("z", "a", "m"):
            index.add("doc", _item(pattern, "CI/CD", pattern))

        (group,) = index.by_category()

        assert [b.pattern for b in group.badges] == ["z", "a", "m"]

    def test_empty_index(self) -> None:
        index = BadgeIndex()

        assert len(index) == 0
        assert index.by_category() == []
        assert "p" not in index


class TestAggregate:
    """Tests for aggregate()."""

    def test_totals(self, data_dir: Path, rules: RuleSet) -> None:
        result = aggregate(load_documents(data_dir), rules.badges, "acme")

        assert result.totals.repositories == 3
        assert result.totals.badges == 8
        assert result.totals.with_badges == 2
        assert result.totals.without_badges == 1
        assert result.totals.unique_badges == 4

    def test_counts_are_consistent(self, data_dir: Path, rules: RuleSet) -> None:
        result = aggregate(load_documents(data_dir), rules.badges, "acme")

        assert result.totals.badges == sum(doc.badge_count for doc in result.documents)
        assert result.totals.unique_badges == sum(len(g.badges) for g in result.categories)
        assert result.totals.with_badges + result.totals.without_badges == 3

    def test_badges_shared_across_documents(self, data_dir: Path, rules: RuleSet) -> None:
        result = aggregate(load_documents(data_dir), rules.badges, "acme")

        for aggregate_ in result.index.aggregates():
            assert aggregate_.count == 2
            assert sorted(aggregate_.documents) == ["Gadget", "widget"]

    def test_category_order(self, data_dir: Path, rules: RuleSet) -> None:
        result = aggregate(load_documents(data_dir), rules.badges, "acme")

        assert [g.name for g in result.categories] == ["CI/CD", "Coverage", "Custom", "Unknown"]

    def test_placeholder_used_for_sample(self, data_dir: Path, rules: RuleSet) -> None:
        result = aggregate(load_documents(data_dir), rules.badges, "acme")

        coverage = next(g for g in result.categories if g.name == "Coverage")
        assert coverage.badges[0].image_url == "https://example.com/codecov-placeholder.svg"

    def test_document_summaries_sorted_by_name(self, data_dir: Path, rules: RuleSet) -> None:
        result = aggregate(load_documents(data_dir), rules.badges, "acme")

        assert [doc.name for doc in result.documents] == ["Gadget", "empty", "widget"]
        empty = result.documents[1]
        assert empty.badge_count == 0
        assert empty.badge_ids == []

    def test_duplicate_badges_keep_multiplicity(
        self, rules: RuleSet, record_factory: RecordFactory
    ) -> None:
        """Summaries list every occurrence; aggregates count the document once."""
        badge = "[![CI](https://github.com/acme/widget/ci.svg)](https://github.com/acme/widget)\n"
        record = record_factory("widget", badge + badge)

        result = aggregate([record], rules.badges, "acme")

        assert result.documents[0].badge_ids == ["github-actions", "github-actions"]
        assert result.totals.badges == 2
        assert result.totals.unique_badges == 1
        assert result.index.aggregates()[0].count == 1

    def test_empty_rule_set_classifies_everything_unknown(self, data_dir: Path) -> None:
        result = aggregate(load_documents(data_dir), [], "acme")

        assert [g.name for g in result.categories] == ["Unknown"]
        assert result.totals.unique_badges == 4

    def test_no_documents(self, rules: RuleSet) -> None:
        result = aggregate([], rules.badges, "acme")

        assert result.totals.repositories == 0
        assert result.categories == []
        assert result.documents == []
