"""
Filename and heading slug helpers.

Post files are named ``[YYYY-MM-DD-]<slug>.md``; the public slug is the
filename with the extension and the optional date prefix removed.
"""

import re
from typing import Dict, Iterable, List, Optional, Set

MARKDOWN_EXTENSION = '.md'

DATE_PREFIX_RE = re.compile(r'^\d{4}-\d{2}-\d{2}-(.+)$')


def filename_to_slug(filename: str) -> str:
    """Strip the ``.md`` extension and a leading ``YYYY-MM-DD-`` date prefix."""
    name = filename[:-len(MARKDOWN_EXTENSION)] if filename.endswith(MARKDOWN_EXTENSION) else filename
    match = DATE_PREFIX_RE.match(name)
    return match.group(1) if match else name


def find_filename_by_slug(slug: str, filenames: Iterable[str]) -> Optional[str]:
    """
    Resolve a public slug back to its filename.

    An exact filename match wins; otherwise the first filename whose derived
    slug equals ``slug`` is returned. Returns None when nothing matches.
    """
    filenames = list(filenames)
    if slug in filenames:
        return slug
    for filename in filenames:
        if filename_to_slug(filename) == slug:
            return filename
    return None


def find_duplicate_slugs(filenames: Iterable[str]) -> Dict[str, List[str]]:
    """Map each slug claimed by more than one filename to those filenames."""
    claimed: Dict[str, List[str]] = {}
    for filename in filenames:
        claimed.setdefault(filename_to_slug(filename), []).append(filename)
    return {slug: names for slug, names in claimed.items() if len(names) > 1}


def slugify_heading(text: str) -> str:
    """Convert heading text to an anchor id, falling back to ``section``."""
    text = text.lower().strip()
    text = re.sub(r'[^a-z0-9\s-]', '', text)
    text = re.sub(r'\s+', '-', text)
    text = re.sub(r'-+', '-', text)
    return text.strip('-') or 'section'


class HeadingSlugger:
    """Hands out heading ids that are unique within one document."""

    def __init__(self):
        self.counts: Dict[str, int] = {}
        self.used: Set[str] = set()

    def slug(self, text: str) -> str:
        """
        Return ``base``, then ``base-2``, ``base-3`` and so on.

        A suffixed id that another heading already produced (``Foo 2`` after
        two ``Foo`` headings) moves on to the next free number.
        """
        base = slugify_heading(text)
        count = self.counts.get(base, 0)
        candidate = base if count == 0 else f'{base}-{count + 1}'
        while candidate in self.used:
            count += 1
            candidate = f'{base}-{count + 1}'
        self.counts[base] = count + 1
        self.used.add(candidate)
        return candidate
