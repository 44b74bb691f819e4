"""Pytest fixtures for badgeindexer tests."""

import os

# Fixed console width so Rich output does not wrap depending on the environment.
os.environ["COLUMNS"] = "200"

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import yaml

from badgeindexer.extractor import extract_document_badges
from badgeindexer.models import ClassificationRule, DocumentRecord, RuleSet
from badgeindexer.store import write_document, write_timestamp

SAMPLE_README = """\
# widget

[![CI](https://github.com/acme/widget/actions/workflows/ci.yml/badge.svg)](https://github.com/acme/widget/actions)
[![codecov](https://codecov.io/gh/acme/widget/branch/main/graph/badge.svg?token=ABC123)](https://codecov.io/gh/acme/widget)
[![License: MIT](https://img.shields.io/badge/License-MIT-yellow.svg)](https://opensource.org/licenses/MIT)

<a href="https://example.com/chat"><img src="https://example.com/chat.svg" alt="Chat"></a>
"""


@pytest.fixture
def rules() -> RuleSet:
    """A small ordered rule set."""
    return RuleSet(
        badges=[
            ClassificationRule(
                id="github-actions",
                pattern="https://github.com/{ORG}/{REPO}/*",
                name="GitHub Actions",
                category="CI/CD",
            ),
            ClassificationRule(
                id="codecov",
                pattern="https://codecov.io/gh/{ORG}/{REPO}/*",
                name="Codecov",
                category="Coverage",
                placeholder="https://example.com/codecov-placeholder.svg",
            ),
            ClassificationRule(
                id="static-badge",
                pattern="https://img.shields.io/badge/*",
                name="Static Badge",
                category="Custom",
            ),
        ]
    )


@pytest.fixture
def rules_file(tmp_path: Path, rules: RuleSet) -> Path:
    """The ``rules`` fixture written as a YAML rules file."""
    path = tmp_path / "badges.yaml"
    path.write_text(yaml.safe_dump(rules.model_dump(), sort_keys=False))
    return path


def make_record(name: str, readme: str | None, org: str = "acme") -> DocumentRecord:
    """Build a stored record the way the crawler does."""
    return DocumentRecord(
        name=name,
        url=f"https://github.com/{org}/{name}",
        default_branch="main",
        content_found=readme is not None,
        badges=extract_document_badges(readme) if readme is not None else [],
    )


@pytest.fixture
def record_factory() -> Callable[..., DocumentRecord]:
    """Factory for crawled document records."""
    return make_record


@pytest.fixture
def data_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """A crawl output directory with three repositories."""
    output_dir = tmp_path / "data"
    output_dir.mkdir(parents=True, exist_ok=True)
    write_document(make_record("widget", SAMPLE_README), output_dir)
    write_document(make_record("Gadget", SAMPLE_README.replace("widget", "Gadget")), output_dir)
    write_document(make_record("empty", None), output_dir)
    write_timestamp(output_dir)
    yield output_dir


@pytest.fixture
def sample_readme() -> str:
    """README with three Markdown badges and one HTML badge."""
    return SAMPLE_README
