"""Data models for badgeindexer."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_CATEGORY = "Unknown"


class BadgeIndexerError(Exception):
    """Base class for errors raised outside the pure badge core."""


@dataclass(frozen=True)
class RawBadgeOccurrence:
    """A badge as found in a document, before host normalization."""

    image_url: str
    target_url: str
    alt_text: str = ""


class Badge(BaseModel):
    """A badge found in a README, as persisted per document.

    ``host_image`` and ``host_target`` are derived from the URLs; build
    instances with :func:`badgeindexer.extractor.normalize_badge` rather than
    setting them by hand.
    """

    model_config = ConfigDict(frozen=True)

    alt_text: str = Field("", description="Alt text of the badge image")
    image_url: str = Field(..., description="Badge image URL")
    target_url: str = Field("", description="URL the badge links to")
    host_image: str = Field("", description="Host of the image URL")
    host_target: str = Field("", description="Host of the target URL")


class DocumentRecord(BaseModel):
    """Crawled data for a single repository README."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., alias="repository", description="Repository name")
    url: str = Field("", alias="repository_url", description="Repository HTML URL")
    default_branch: str = Field("", description="Default branch name")
    content_found: bool = Field(False, alias="readme_found", description="Whether a README exists")
    badges: list[Badge] = Field(default_factory=list, description="Badges in document order")

    def to_json(self) -> str:
        """Serialize using the on-disk key names."""
        return self.model_dump_json(by_alias=True, indent=2)


class ClassificationRule(BaseModel):
    """A configured badge pattern with its display metadata."""

    id: str = Field(..., description="Stable badge identifier")
    pattern: str = Field(
        ..., description="Template with {ORG}, {REPO} and * wildcards, matched in full"
    )
    name: str = Field(..., description="Human-readable badge name")
    category: str = Field(..., description="Category used to group badges")
    placeholder: str = Field("", description="Image shown instead of the sample badge")


class RuleSet(BaseModel):
    """Ordered classification rules; the first matching rule wins."""

    badges: list[ClassificationRule] = Field(default_factory=list, description="Rules in order")

    def __len__(self) -> int:
        return len(self.badges)


@dataclass(frozen=True)
class Classification:
    """Result of classifying a canonical pattern."""

    name: str
    category: str
    placeholder: str
    id: str

    @property
    def is_unknown(self) -> bool:
        return self.category == UNKNOWN_CATEGORY

