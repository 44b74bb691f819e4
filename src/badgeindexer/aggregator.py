"""Aggregation of classified badges across many documents.

Classification of a single document (:func:`classify_document`) is pure and
can run in parallel. Folding the results into a :class:`BadgeIndex` mutates
shared aggregates and must run sequentially.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from badgeindexer.canonicalize import canonicalize
from badgeindexer.classifier import classify
from badgeindexer.models import (
    UNKNOWN_CATEGORY,
    Badge,
    Classification,
    ClassificationRule,
    DocumentRecord,
)


@dataclass(frozen=True)
class ClassifiedBadge:
    """A badge together with its canonical pattern and classification."""

    badge: Badge
    pattern: str
    classification: Classification

    @property
    def id(self) -> str:
        return self.classification.id

    def to_dict(self) -> dict[str, str]:
        """Flatten into a JSON-friendly mapping."""
        return {
            **self.badge.model_dump(),
            "pattern": self.pattern,
            "name": self.classification.name,
            "category": self.classification.category,
            "id": self.id,
        }


@dataclass(frozen=True)
class DocumentReference:
    """Where a document uses an aggregated badge (its first occurrence)."""

    document: str
    image_url: str
    target_url: str


@dataclass
class BadgeAggregate:
    """Everything known about one canonical pattern across all documents."""

    canonical_pattern: str
    sample_image_url: str
    placeholder: str
    name: str
    category: str
    id: str
    references: dict[str, DocumentReference] = field(default_factory=dict)

    @property
    def documents(self) -> list[str]:
        """Names of referencing documents, in first-seen order."""
        return list(self.references)

    @property
    def count(self) -> int:
        return len(self.references)


@dataclass(frozen=True)
class BadgeSummary:
    """A row in a category listing."""

    image_url: str
    pattern: str
    name: str
    category: str
    count: int
    id: str


@dataclass(frozen=True)
class CategoryGroup:
    name: str
    badges: list[BadgeSummary]


@dataclass(frozen=True)
class DocumentSummary:
    """Per-document badge overview."""

    name: str
    badge_count: int
    badge_ids: list[str]
    badges: list[ClassifiedBadge] = field(default_factory=list)


@dataclass(frozen=True)
class Totals:
    repositories: int = 0
    badges: int = 0
    with_badges: int = 0
    without_badges: int = 0
    unique_badges: int = 0


def classify_document(
    record: DocumentRecord,
    rules: Iterable[ClassificationRule],
    org_name: str,
) -> list[ClassifiedBadge]:
    """Canonicalize and classify every badge of *record*, in order."""
    rules = list(rules)
    classified: list[ClassifiedBadge] = []
    for badge in record.badges:
        pattern = canonicalize(badge.image_url, org_name, record.name)
        classified.append(ClassifiedBadge(badge, pattern, classify(pattern, rules)))
    return classified


class BadgeIndex:
    """Accumulator mapping canonical patterns to their aggregates.

    Aggregates are created on first sight of a pattern and afterwards only
    gain document references. The classification of the first occurrence is
    kept.
    """

    def __init__(self) -> None:
        self._aggregates: dict[str, BadgeAggregate] = {}

    def __len__(self) -> int:
        return len(self._aggregates)

    def __contains__(self, pattern: object) -> bool:
        return pattern in self._aggregates

    def __getitem__(self, pattern: str) -> BadgeAggregate:
        return self._aggregates[pattern]

    def aggregates(self) -> list[BadgeAggregate]:
        """All aggregates in first-seen order."""
        return list(self._aggregates.values())

    def add(self, document: str, item: ClassifiedBadge) -> BadgeAggregate:
        """Record that *document* carries the classified badge *item*."""
        aggregate = self._aggregates.get(item.pattern)
        if aggregate is None:
            cls = item.classification
            aggregate = BadgeAggregate(
                canonical_pattern=item.pattern,
                sample_image_url=cls.placeholder or item.badge.image_url,
                placeholder=cls.placeholder,
                name=cls.name,
                category=cls.category,
                id=cls.id,
            )
            self._aggregates[item.pattern] = aggregate
        aggregate.references.setdefault(
            document,
            DocumentReference(document, item.badge.image_url, item.badge.target_url),
        )
        return aggregate

    def by_category(self) -> list[CategoryGroup]:
        """Group aggregates by category.

        Categories are sorted by name with ``Unknown`` last. Within a
        category badges are sorted by descending reference count; ties keep
        first-seen order.
        """
        grouped: dict[str, list[BadgeSummary]] = {}
        for agg in self._aggregates.values():
            grouped.setdefault(agg.category, []).append(
                BadgeSummary(
                    image_url=agg.sample_image_url,
                    pattern=agg.canonical_pattern,
                    name=agg.name,
                    category=agg.category,
                    count=agg.count,
                    id=agg.id,
                )
            )

        names = sorted(grouped, key=lambda name: (name == UNKNOWN_CATEGORY, name))
        return [
            CategoryGroup(name, sorted(grouped[name], key=lambda b: -b.count)) for name in names
        ]


@dataclass
class AggregateResult:
    """Everything the report layer needs about a set of documents."""

    documents: list[DocumentSummary]
    categories: list[CategoryGroup]
    totals: Totals
    index: BadgeIndex


def aggregate(
    documents: Iterable[DocumentRecord],
    rules: Iterable[ClassificationRule],
    org_name: str,
) -> AggregateResult:
    """Fold documents into summaries, category groups and totals."""
    rules = list(rules)
    index = BadgeIndex()
    summaries: list[DocumentSummary] = []

    for record in documents:
        classified = classify_document(record, rules, org_name)
        for item in classified:
            index.add(record.name, item)
        summaries.append(
            DocumentSummary(
                name=record.name,
                badge_count=len(classified),
                badge_ids=[item.id for item in classified],
                badges=classified,
            )
        )

    summaries.sort(key=lambda s: s.name)
    with_badges = sum(1 for s in summaries if s.badge_count > 0)
    totals = Totals(
        repositories=len(summaries),
        badges=sum(s.badge_count for s in summaries),
        with_badges=with_badges,
        without_badges=len(summaries) - with_badges,
        unique_badges=len(index),
    )
    return AggregateResult(summaries, index.by_category(), totals, index)
