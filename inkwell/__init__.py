"""
Inkwell - a static technical blog generator.

Inkwell reads markdown posts with YAML front matter, renders them to HTML
with heading anchors, a table of contents and syntax highlighting, and
builds a static site with category, tag and related-post navigation.
"""

__version__ = "1.0.0"

from .core import Inkwell
from .index import ContentStore, DuplicateSlugError, PostCache, PostIndex, PostLoadError
from .models import Frontmatter, Post, PostMeta, TocItem

__all__ = [
    'Inkwell',
    'ContentStore',
    'DuplicateSlugError',
    'PostCache',
    'PostIndex',
    'PostLoadError',
    'Frontmatter',
    'Post',
    'PostMeta',
    'TocItem',
]
