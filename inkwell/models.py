"""
Post records produced by the content pipeline.

All records are frozen; the pipeline builds a new record instead of
mutating an existing one.
"""

from dataclasses import dataclass, field, fields
from typing import Optional, Tuple


@dataclass(frozen=True)
class Frontmatter:
    """Metadata block at the top of a post file."""
    title: str = ''
    date: str = ''
    author: Optional[str] = None
    authors: Optional[Tuple[str, ...]] = None
    categories: Optional[Tuple[str, ...]] = None
    tags: Optional[Tuple[str, ...]] = None
    toc: bool = False
    excerpt: Optional[str] = None


@dataclass(frozen=True)
class TocItem:
    id: str
    title: str
    depth: int


@dataclass(frozen=True)
class PostMeta:
    """Front matter plus the derived fields every listing needs."""
    slug: str
    filename: str
    title: str = ''
    date: str = ''
    reading_time: int = 1
    author: Optional[str] = None
    authors: Optional[Tuple[str, ...]] = None
    categories: Optional[Tuple[str, ...]] = None
    tags: Optional[Tuple[str, ...]] = None
    toc: bool = False
    excerpt: str = ''


@dataclass(frozen=True)
class Post(PostMeta):
    """A fully rendered post."""
    content: str = ''
    content_html: str = ''
    toc_items: Tuple[TocItem, ...] = field(default_factory=tuple)

    def meta(self) -> PostMeta:
        """Return the listing view of this post, without body, HTML or TOC."""
        return PostMeta(**{f.name: getattr(self, f.name) for f in fields(PostMeta)})
