"""
Post index: loads the content directory and answers list, detail, taxonomy
and related-post queries.
"""

import logging
import os
import threading
from concurrent.futures import ProcessPoolExecutor, as_completed
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .enrich import EXCERPT_LENGTH, WORDS_PER_MINUTE, build_post
from .frontmatter import get_authors, parse_date
from .models import Post, PostMeta
from .renderer import MarkdownRenderer
from .slugs import MARKDOWN_EXTENSION, filename_to_slug, find_duplicate_slugs, find_filename_by_slug

DATE_POLICIES = ('warn', 'reject')

# Rendering moves to a process pool once a corpus has this many posts.
PARALLEL_THRESHOLD = 12

# Per-worker renderer, set up by the pool initializer.
thread_local = threading.local()


class PostLoadError(Exception):
    """A single post could not be loaded."""

    def __init__(self, filename, message):
        super().__init__(f"{filename}: {message}")
        self.filename = filename


class DuplicateSlugError(ValueError):
    """Two or more content files resolve to the same slug."""

    def __init__(self, duplicates: Dict[str, List[str]]):
        details = '; '.join(
            f"'{slug}' <- {', '.join(names)}" for slug, names in sorted(duplicates.items())
        )
        super().__init__(f"Duplicate post slugs: {details}")
        self.duplicates = duplicates


class ContentStore:
    """Read-only view of a directory of ``.md`` post files."""

    def __init__(self, directory):
        self.directory = directory

    def exists(self) -> bool:
        return os.path.isdir(self.directory)

    def list_filenames(self) -> List[str]:
        """Return post filenames without extension, sorted."""
        if not self.exists():
            return []
        return sorted(
            name[:-len(MARKDOWN_EXTENSION)]
            for name in os.listdir(self.directory)
            if name.endswith(MARKDOWN_EXTENSION)
        )

    def path_for(self, filename: str) -> str:
        return os.path.join(self.directory, f'{filename}{MARKDOWN_EXTENSION}')

    def read(self, filename: str) -> str:
        with open(self.path_for(filename), 'r', encoding='utf-8-sig') as f:
            return f.read()

    def signature(self) -> Tuple:
        """Snapshot of file names, sizes and mtimes used to detect changes."""
        entries = []
        for filename in self.list_filenames():
            try:
                stat = os.stat(self.path_for(filename))
            except OSError:
                continue
            entries.append((filename, stat.st_mtime_ns, stat.st_size))
        return tuple(entries)


class PostCache:
    """Memoized index state for one content store."""

    def __init__(self):
        self.invalidate()

    def invalidate(self):
        self.filenames: Optional[List[str]] = None
        self.posts: Dict[str, Post] = {}
        self.all_posts: Optional[List[PostMeta]] = None
        self.signature: Optional[Tuple] = None


def sort_key_date(post) -> datetime:
    """Sort key for post dates; unparseable dates sort as the oldest."""
    return parse_date(post.date) or datetime.min


def search_text(post) -> str:
    """Lowercased text a post is searched by, shared with the home page filter."""
    parts = [post.title, post.excerpt or '']
    parts += list(post.tags or ()) + list(post.categories or ()) + get_authors(post)
    return ' '.join(parts).lower()


def worker_initializer(renderer_class, plugins, words_per_minute, excerpt_length):
    """
    Set up a renderer in each worker process.

    Renderers are rebuilt from their class and plugin list rather than
    pickled, so the class must be importable and accept ``plugins``.
    """
    thread_local.renderer = renderer_class(plugins=plugins)
    thread_local.words_per_minute = words_per_minute
    thread_local.excerpt_length = excerpt_length


def render_post_file(filename, raw_text):
    """Build a Post inside a worker process."""
    return build_post(
        filename, raw_text, thread_local.renderer,
        words_per_minute=thread_local.words_per_minute,
        excerpt_length=thread_local.excerpt_length,
    )


class PostIndex:
    """Query API over every post in a content store."""

    def __init__(self, store, cache=None, renderer=None, strict_slugs=True, date_policy='warn',
                 parallel_threshold=PARALLEL_THRESHOLD, words_per_minute=WORDS_PER_MINUTE,
                 excerpt_length=EXCERPT_LENGTH):
        if date_policy not in DATE_POLICIES:
            raise ValueError(f"date_policy must be one of {DATE_POLICIES}, got '{date_policy}'")
        self.store = store if isinstance(store, ContentStore) else ContentStore(store)
        self.cache = cache or PostCache()
        self.renderer = renderer or MarkdownRenderer()
        self.strict_slugs = strict_slugs
        self.date_policy = date_policy
        self.parallel_threshold = parallel_threshold
        self.words_per_minute = words_per_minute
        self.excerpt_length = excerpt_length
        self.logger = logging.getLogger('Inkwell.index')

    def invalidate(self):
        """Drop every memoized result."""
        self.cache.invalidate()

    def refresh(self) -> bool:
        """Invalidate the cache if the content store changed. Returns True on change."""
        signature = self.store.signature()
        if self.cache.signature is not None and signature == self.cache.signature:
            return False
        self.cache.invalidate()
        self.cache.signature = signature
        return True

    def get_all_filenames(self) -> List[str]:
        if self.cache.filenames is None:
            if not self.store.exists():
                self.logger.warning(f"Content directory not found: {self.store.directory}")
            filenames = self.store.list_filenames()
            self.check_unique_slugs(filenames)
            self.cache.filenames = filenames
        return self.cache.filenames

    def check_unique_slugs(self, filenames):
        duplicates = find_duplicate_slugs(filenames)
        if not duplicates:
            return
        if self.strict_slugs:
            raise DuplicateSlugError(duplicates)
        for slug, names in duplicates.items():
            chosen = find_filename_by_slug(slug, names)
            self.logger.warning(f"Slug '{slug}' is claimed by {', '.join(names)}; using {chosen}")

    def get_canonical_filenames(self) -> List[str]:
        """One filename per slug, chosen the way get_post_by_slug resolves it."""
        filenames = self.get_all_filenames()
        selected = []
        seen = set()
        for filename in filenames:
            slug = filename_to_slug(filename)
            if slug not in seen:
                seen.add(slug)
                selected.append(find_filename_by_slug(slug, filenames))
        return selected

    def get_all_post_slugs(self) -> List[str]:
        return [filename_to_slug(filename) for filename in self.get_canonical_filenames()]

    def _check_date(self, post: Post) -> Post:
        if parse_date(post.date) is None:
            message = f"missing or unparseable date '{post.date}'"
            if self.date_policy == 'reject':
                raise PostLoadError(post.filename, message)
            self.logger.warning(f"{post.filename}: {message}")
        if not post.title:
            self.logger.warning(f"{post.filename}: missing title")
        return post

    def load_post(self, filename: str) -> Post:
        """Read, parse and render one file. Raises PostLoadError on failure."""
        try:
            raw_text = self.store.read(filename)
            post = build_post(
                filename, raw_text, self.renderer,
                words_per_minute=self.words_per_minute,
                excerpt_length=self.excerpt_length,
            )
        except Exception as e:
            raise PostLoadError(filename, e) from e
        return self._check_date(post)

    def get_post_by_slug(self, slug: str) -> Optional[Post]:
        """Return the full post for ``slug``, or None if no file resolves to it."""
        if slug in self.cache.posts:
            return self.cache.posts[slug]

        filename = find_filename_by_slug(slug, self.get_all_filenames())
        if filename is None:
            return None

        post = self.load_post(filename)
        self.cache.posts[slug] = post
        return post

    def load_all(self) -> List[Post]:
        """Load every post, skipping (and logging) the ones that fail."""
        filenames = self.get_canonical_filenames()
        pending = [fn for fn in filenames if filename_to_slug(fn) not in self.cache.posts]

        if len(pending) >= self.parallel_threshold:
            self.logger.info(f"Rendering {len(pending)} posts with {os.cpu_count()} workers")
            self._load_parallel(pending)
        else:
            for filename in pending:
                try:
                    self.cache.posts[filename_to_slug(filename)] = self.load_post(filename)
                except PostLoadError as e:
                    self.logger.error(f"Error loading post {e}")

        posts = []
        for filename in filenames:
            post = self.cache.posts.get(filename_to_slug(filename))
            if post is not None:
                posts.append(post)
        return posts

    def _load_parallel(self, filenames):
        texts = {}
        for filename in filenames:
            try:
                texts[filename] = self.store.read(filename)
            except (IOError, OSError) as e:
                self.logger.error(f"Error loading post {filename}: {e}")

        with ProcessPoolExecutor(
            max_workers=os.cpu_count(),
            initializer=worker_initializer,
            initargs=(type(self.renderer), self.renderer.plugins, self.words_per_minute, self.excerpt_length),
        ) as executor:
            futures = {executor.submit(render_post_file, fn, text): fn for fn, text in texts.items()}
            results = {}
            for future in as_completed(futures):
                filename = futures[future]
                try:
                    results[filename] = self._check_date(future.result())
                except PostLoadError as e:
                    self.logger.error(f"Error loading post {e}")
                except Exception as e:
                    self.logger.error(f"Error loading post {filename}: {e}")

        for filename in filenames:
            if filename in results:
                self.cache.posts[filename_to_slug(filename)] = results[filename]

    def get_all_posts(self) -> List[PostMeta]:
        """All posts, newest first. Posts with equal dates keep filename order."""
        if self.cache.all_posts is None:
            metas = [post.meta() for post in self.load_all()]
            self.cache.all_posts = sorted(metas, key=sort_key_date, reverse=True)
        return self.cache.all_posts

    def get_posts_by_category(self, category: str) -> List[PostMeta]:
        wanted = category.lower()
        return [
            post for post in self.get_all_posts()
            if any(cat.lower() == wanted for cat in post.categories or ())
        ]

    def get_posts_by_tag(self, tag: str) -> List[PostMeta]:
        wanted = tag.lower()
        return [
            post for post in self.get_all_posts()
            if any(t.lower() == wanted for t in post.tags or ())
        ]

    def get_all_categories(self) -> List[str]:
        return sorted({cat.lower() for post in self.get_all_posts() for cat in post.categories or ()})

    def get_all_tags(self) -> List[str]:
        return sorted({tag.lower() for post in self.get_all_posts() for tag in post.tags or ()})

    def resolve_category_label(self, category: str) -> str:
        """Return the first original spelling of ``category`` in the corpus."""
        return self._resolve_label(category, 'categories')

    def resolve_tag_label(self, tag: str) -> str:
        """Return the first original spelling of ``tag`` in the corpus."""
        return self._resolve_label(tag, 'tags')

    def _resolve_label(self, name, field_name):
        wanted = name.lower()
        for post in self.get_all_posts():
            for item in getattr(post, field_name) or ():
                if item.lower() == wanted:
                    return item
        return name

    def get_related_posts(self, slug: str, limit: int = 3) -> List[PostMeta]:
        """
        Rank other posts by overlap with ``slug``.

        Each shared tag scores 2 and each shared category scores 1, both
        compared case-insensitively. Posts scoring zero are dropped; ties are
        broken by date, newest first.
        """
        posts = self.get_all_posts()
        current = next((post for post in posts if post.slug == slug), None)
        if current is None:
            return []

        tags = {tag.lower() for tag in current.tags or ()}
        categories = {cat.lower() for cat in current.categories or ()}

        scored = []
        for post in posts:
            if post.slug == slug:
                continue
            score = sum(2 for tag in post.tags or () if tag.lower() in tags)
            score += sum(1 for cat in post.categories or () if cat.lower() in categories)
            if score > 0:
                scored.append((score, sort_key_date(post), post))

        scored.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [post for _, _, post in scored[:limit]]

    def get_adjacent_posts(self, slug: str) -> Tuple[Optional[PostMeta], Optional[PostMeta]]:
        """Return the (newer, older) neighbours of ``slug`` in date order."""
        posts = self.get_all_posts()
        index = next((i for i, post in enumerate(posts) if post.slug == slug), None)
        if index is None:
            return None, None
        newer = posts[index - 1] if index > 0 else None
        older = posts[index + 1] if index < len(posts) - 1 else None
        return newer, older

    def search_posts(self, query: str = '', category: Optional[str] = None) -> List[PostMeta]:
        """Filter posts by category and a case-insensitive substring query."""
        posts = self.get_all_posts()
        if category:
            wanted = category.lower()
            posts = [post for post in posts if any(cat.lower() == wanted for cat in post.categories or ())]

        needle = query.strip().lower()
        if not needle:
            return list(posts)

        return [post for post in posts if needle in search_text(post)]
