"""
Derived post fields (reading time, excerpt) and post assembly.
"""

import math
import re
from typing import Optional

from .frontmatter import parse_front_matter
from .models import Post
from .renderer import MarkdownRenderer
from .slugs import filename_to_slug

WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 200
MORE_MARKER = '<!--more-->'

HTML_TAG_RE = re.compile(r'<[^>]+>')
FENCED_CODE_RE = re.compile(r'```[\s\S]*?```')


def calculate_reading_time(content: str, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """Estimate reading time in whole minutes; never less than one."""
    text = HTML_TAG_RE.sub('', content)
    text = FENCED_CODE_RE.sub('', text)
    words = len(text.split())
    return max(1, math.ceil(words / words_per_minute))


def extract_excerpt(content: str, max_length: int = EXCERPT_LENGTH) -> str:
    """
    Derive a plain-text excerpt from a markdown body.

    The cut at ``max_length`` is a hard character cut and may split a word.
    """
    text = re.sub(r'^#{1,6}\s+.+$', '', content, flags=re.MULTILINE)
    text = re.sub(r'!\[.*?\]\(.*?\)', '', text)
    text = re.sub(r'\[([^\]]+)\]\([^)]+\)', r'\1', text)
    text = FENCED_CODE_RE.sub('', text)
    text = re.sub(r'`[^`]+`', '', text)
    text = re.sub(r'(\*\*|__|~~)(.+?)\1', r'\2', text)
    text = re.sub(r'(?<![\w*])\*(?!\s)(.+?)(?<!\s)\*(?![\w*])', r'\1', text)
    text = re.sub(r'(?<![\w_])_(?!\s)(.+?)(?<!\s)_(?![\w_])', r'\1', text)
    text = HTML_TAG_RE.sub('', text)
    text = text.replace(MORE_MARKER, '')
    text = re.sub(r'\s+', ' ', text).strip()

    if len(text) > max_length:
        text = f"{text[:max_length].strip()}..."
    return text


def extract_first_image(content: str) -> Optional[str]:
    """Return the URL of the first markdown or HTML image in the body."""
    markdown_match = re.search(r'!\[[^\]]*\]\(([^)\s]+)(?:\s+"[^"]*")?\)', content)
    html_match = re.search(r'<img[^>]*\s+src=["\']([^"\']+)["\'][^>]*>', content, re.IGNORECASE)

    if markdown_match and html_match:
        first = markdown_match if markdown_match.start() <= html_match.start() else html_match
        return first.group(1)
    if markdown_match:
        return markdown_match.group(1)
    if html_match:
        return html_match.group(1)
    return None


def build_post(filename: str, raw_text: str, renderer: MarkdownRenderer,
               words_per_minute: int = WORDS_PER_MINUTE,
               excerpt_length: int = EXCERPT_LENGTH) -> Post:
    """Run one post file through front matter parsing, rendering and enrichment."""
    frontmatter, content = parse_front_matter(raw_text)
    content_html, toc_items = renderer.render(content)

    return Post(
        slug=filename_to_slug(filename),
        filename=filename,
        title=frontmatter.title,
        date=frontmatter.date,
        reading_time=calculate_reading_time(content, words_per_minute),
        author=frontmatter.author,
        authors=frontmatter.authors,
        categories=frontmatter.categories,
        tags=frontmatter.tags,
        toc=frontmatter.toc,
        excerpt=frontmatter.excerpt or extract_excerpt(content, excerpt_length),
        content=content,
        content_html=content_html,
        toc_items=tuple(toc_items) if frontmatter.toc else (),
    )
