"""
YAML front matter parsing and date helpers.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Tuple

import yaml

from .models import Frontmatter

FRONT_MATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)\r?\n?^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)

DATE_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d', '%b %d, %Y', '%m/%d/%Y']

BOM = '\ufeff'


class FrontMatterError(ValueError):
    """Raised when a post's front matter block cannot be read."""


def _as_tuple(value) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        return tuple(str(item) for item in value if item is not None)
    return (str(value),)


def _as_text(value) -> str:
    if value is None:
        return ''
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def frontmatter_from_dict(data: Dict[str, Any]) -> Frontmatter:
    """Build a Frontmatter from a raw YAML mapping, ignoring unknown keys."""
    author = data.get('author')
    excerpt = data.get('excerpt')
    return Frontmatter(
        title=_as_text(data.get('title')),
        date=_as_text(data.get('date')),
        author=str(author) if author is not None else None,
        authors=_as_tuple(data.get('authors')),
        categories=_as_tuple(data.get('categories')),
        tags=_as_tuple(data.get('tags')),
        toc=bool(data.get('toc', False)),
        excerpt=str(excerpt) if excerpt else None,
    )


def split_front_matter(raw_text: str) -> Tuple[Dict[str, Any], str]:
    """Return the raw metadata mapping and the body that follows it."""
    if raw_text.startswith(BOM):
        raw_text = raw_text[len(BOM):]
    match = FRONT_MATTER_RE.match(raw_text)
    if not match:
        return {}, raw_text

    try:
        metadata = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid YAML front matter: {e}") from e
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise FrontMatterError(
            f"Invalid YAML front matter: expected a mapping, got {type(metadata).__name__}"
        )
    return metadata, raw_text[match.end():]


def parse_front_matter(raw_text: str) -> Tuple[Frontmatter, str]:
    """Split a post file into its Frontmatter and markdown body."""
    metadata, body = split_front_matter(raw_text)
    return frontmatter_from_dict(metadata), body


def parse_date(value) -> Optional[datetime]:
    """
    Parse a front matter date.

    Accepts datetime and date objects, ISO-8601 strings and a few common
    formats. Aware datetimes are converted to naive UTC so that posts can be
    compared with each other. Returns None when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        parsed = None
        try:
            parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            for fmt in DATE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def format_date(value) -> str:
    """Format a date for display, e.g. ``January 5, 2024``."""
    parsed = parse_date(value)
    if parsed is None:
        return 'Invalid Date'
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def get_authors(post) -> list:
    """Return the post's author list, falling back to the single ``author`` field."""
    if post.authors:
        return list(post.authors)
    if post.author:
        return [post.author]
    return []
