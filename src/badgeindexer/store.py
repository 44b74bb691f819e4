"""JSON storage of crawled documents and the crawl timestamp."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import urlsplit

from pydantic import ValidationError

from badgeindexer.classifier import normalize_name
from badgeindexer.models import BadgeIndexerError, DocumentRecord

logger = logging.getLogger(__name__)

TIMESTAMP_FILE = "timestamp.json"
UNKNOWN_TIMESTAMP = "Unknown"


class StoreError(BadgeIndexerError):
    """Raised when stored documents cannot be read."""


def document_path(output_dir: Path, name: str) -> Path:
    """Return the file a document named *name* is stored in."""
    return output_dir / f"{normalize_name(name)}.json"


def write_document(record: DocumentRecord, output_dir: Path) -> Path:
    """Write *record* as indented JSON and return the file path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = document_path(output_dir, record.name)
    path.write_text(record.to_json() + "\n", encoding="utf-8")
    logger.debug(f"Wrote {path}")
    return path


def load_documents(input_dir: Path) -> list[DocumentRecord]:
    """Load every stored document in *input_dir*, ordered by file name.

    Raises:
        StoreError: If a file cannot be read or decoded.
    """
    records: list[DocumentRecord] = []
    for path in sorted(input_dir.glob("*.json")):
        if path.name == TIMESTAMP_FILE:
            continue
        try:
            records.append(DocumentRecord.model_validate_json(path.read_text(encoding="utf-8")))
        except (OSError, ValidationError) as e:
            raise StoreError(f"Failed to decode {path}: {e}") from e
    return records


def write_timestamp(output_dir: Path, when: datetime | None = None) -> Path:
    """Record when the crawl finished."""
    when = when or datetime.now(UTC)
    path = output_dir / TIMESTAMP_FILE
    payload = json.dumps({"last_crawled": when.isoformat()}, indent=2)
    path.write_text(payload + "\n", encoding="utf-8")
    return path


def format_timestamp(when: datetime) -> str:
    """Format as e.g. ``January 2, 2006 15:04 UTC``."""
    when = when.astimezone(UTC)
    return f"{when:%B} {when.day}, {when:%Y %H:%M} UTC"


def load_timestamp(input_dir: Path) -> str:
    """Return the formatted crawl time, or ``Unknown``."""
    path = input_dir / TIMESTAMP_FILE
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        when = datetime.fromisoformat(data["last_crawled"])
    except (OSError, ValueError, KeyError, TypeError):
        return UNKNOWN_TIMESTAMP
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return format_timestamp(when)


def derive_org_name(records: list[DocumentRecord]) -> str:
    """Take the organization from the first repository URL that has one.

    ``https://github.com/acme/widget`` yields ``acme``.
    """
    for record in records:
        if not record.url:
            continue
        try:
            path = urlsplit(record.url).path
        except ValueError:
            continue
        owner = path.strip("/").split("/")[0]
        if owner:
            return owner
    return ""
