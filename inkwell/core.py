import os
import shutil
import logging
from datetime import datetime
from email.utils import formatdate
from urllib.parse import quote, urlparse
from xml.sax.saxutils import escape

import csscompressor
import rjsmin
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, TemplateSyntaxError, select_autoescape
from pygments.formatters import HtmlFormatter

from .enrich import extract_first_image
from .frontmatter import format_date, get_authors, parse_date
from .i18n import LANGUAGES, Translator
from .index import ContentStore, PostIndex, PostLoadError, search_text

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
PACKAGE_TEMPLATES = os.path.join(PACKAGE_DIR, 'templates')
PACKAGE_ASSETS = os.path.join(PACKAGE_DIR, 'assets')

# Names that would resolve to the listing directory itself or its parent.
UNUSABLE_SEGMENTS = ('', '.', '..')

HIGHLIGHT_CSS = 'pygments.css'
HIGHLIGHT_STYLE = 'default'
HIGHLIGHT_DARK_STYLE = 'monokai'

REDIRECT_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta http-equiv="refresh" content="0; url={url}">
    <link rel="canonical" href="{url}">
    <script>
        window.location.replace("{url}");
    </script>
    <meta name="robots" content="noindex">
    <title>Redirecting ...</title>
</head>
<body>
    <p>If you are not redirected automatically, <a href="{url}">click here</a>.</p>
</body>
</html>"""


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total posts generated:",
            "Total pages generated:",
            "Rendering",
            "Building index page",
            "Building taxonomy pages",
            "Building redirects",
            "Generating RSS feed",
            "Generating XML sitemap",
            "Building 404 page"
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def site_title_from_url(url):
    domain = urlparse(url).netloc.replace("www.", "")
    return domain


def taxonomy_segment(name):
    """Directory name used for a category or tag page, or None if the name cannot be one."""
    segment = name.lower().replace('/', '-').replace('\\', '-')
    if segment.strip() in UNUSABLE_SEGMENTS:
        return None
    return segment


def taxonomy_url(kind, name):
    segment = taxonomy_segment(name)
    if segment is None:
        return None
    return f"{kind}/{quote(segment)}/"


class Inkwell:
    def __init__(self, content_dir='content/posts', output_dir='output', templates_dir=None, assets_dir=None,
                 site_url=None, site_title=None, site_tagline=None, language='en', minify=False,
                 related_limit=3, strict_slugs=True, date_policy='warn', redirects=None,
                 excerpt_length=200, words_per_minute=200, log_dir='logs'):
        self.content_dir = content_dir
        self.output_dir = output_dir
        self.templates_dir = templates_dir
        self.assets_dir = assets_dir
        self.site_url = site_url.rstrip('/') if site_url else None
        self.site_title = site_title or (site_title_from_url(site_url) if site_url else 'Inkwell')
        self.site_tagline = site_tagline
        self.minify = minify
        self.related_limit = related_limit
        self.redirects = redirects or {}
        self.log_dir = log_dir
        self.posts_generated = 0
        self.pages_generated = 0

        if self.templates_dir and not os.path.isdir(self.templates_dir):
            raise FileNotFoundError(f"Templates directory not found: {self.templates_dir}")
        if self.assets_dir and not os.path.isdir(self.assets_dir):
            raise FileNotFoundError(f"Assets directory not found: {self.assets_dir}")

        self.setup_logging()

        self.index = PostIndex(
            ContentStore(content_dir),
            strict_slugs=strict_slugs,
            date_policy=date_policy,
            words_per_minute=words_per_minute,
            excerpt_length=excerpt_length,
        )
        self.translator = Translator(language)

        # User templates shadow the packaged ones
        search_path = [self.templates_dir, PACKAGE_TEMPLATES] if self.templates_dir else [PACKAGE_TEMPLATES]
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=select_autoescape(['html', 'xml'])
        )
        self.env.filters['format_date'] = format_date
        self.env.filters['authors'] = get_authors
        self.env.filters['search_text'] = search_text
        self.env.globals.update(
            t=self.translator,
            language=self.translator.language,
            languages=LANGUAGES,
            site_url=self.site_url,
            site_title=self.site_title,
            site_tagline=self.site_tagline,
            taxonomy_url=taxonomy_url,
        )

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Inkwell')
        self.logger.setLevel(logging.DEBUG)

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_formatter = logging.Formatter('%(message)s')
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

            # File handler for all logs
            if self.log_dir:
                os.makedirs(self.log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('inkwell_%Y-%m-%d_%H-%M-%S.log')
                file_handler = logging.FileHandler(os.path.join(self.log_dir, log_filename))
                file_handler.setLevel(logging.DEBUG)
                file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
                file_handler.setFormatter(file_formatter)
                self.logger.addHandler(file_handler)

    def create_output_dir(self):
        os.makedirs(self.output_dir, exist_ok=True)

    def copy_assets_to_output(self):
        """Copy packaged assets, then the site's own assets over them."""
        output_assets_dir = os.path.join(self.output_dir, 'assets')
        for source in (PACKAGE_ASSETS, self.assets_dir):
            if source and os.path.isdir(source):
                try:
                    shutil.copytree(source, output_assets_dir, dirs_exist_ok=True)
                    self.logger.debug(f"Copied assets from {source}")
                except (IOError, OSError, shutil.Error) as e:
                    self.logger.error(f"Failed to copy assets from {source}: {e}")

        self.write_highlight_css()

        if self.minify:
            self.minify_assets()

    def write_highlight_css(self):
        """Write the Pygments token styles for code blocks, light and dark."""
        css_dir = os.path.join(self.output_dir, 'assets', 'css')
        css_path = os.path.join(css_dir, HIGHLIGHT_CSS)
        light = HtmlFormatter(style=HIGHLIGHT_STYLE).get_style_defs('.prose pre')
        dark = HtmlFormatter(style=HIGHLIGHT_DARK_STYLE).get_style_defs('[data-theme="dark"] .prose pre')
        try:
            os.makedirs(css_dir, exist_ok=True)
            with open(css_path, 'w', encoding='utf-8') as f:
                f.write(f"{light}\n{dark}\n")
            self.logger.debug(f"Generated highlight CSS: {css_path}")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write highlight CSS {css_path}: {e}")

    def minify_assets(self):
        """Minify CSS and JS assets."""
        assets_output_dir = os.path.join(self.output_dir, 'assets')

        for subdir, ext, compress in (('css', '.css', csscompressor.compress), ('js', '.js', rjsmin.jsmin)):
            source_dir = os.path.join(assets_output_dir, subdir)
            if not os.path.exists(source_dir):
                continue
            for file in os.listdir(source_dir):
                if not file.endswith(ext) or file.endswith(f'.min{ext}'):
                    continue
                source_path = os.path.join(source_dir, file)
                minified_path = os.path.join(source_dir, file[:-len(ext)] + f'.min{ext}')
                try:
                    with open(source_path, 'r', encoding='utf-8') as f:
                        minified = compress(f.read())
                    with open(minified_path, 'w', encoding='utf-8') as f:
                        f.write(minified)
                    self.logger.debug(f"Minified {subdir.upper()}: {file}")
                except (IOError, OSError, PermissionError) as e:
                    self.logger.error(f"Failed to minify {subdir.upper()} file {file}: {e}")

    def calculate_relative_path(self, current_output_dir):
        """Calculate relative path from current directory to root."""
        rel_path = os.path.relpath(self.output_dir, current_output_dir)
        # Ensure relative path ends with '/' for proper asset linking
        if rel_path == '.':
            return ''
        else:
            return rel_path.replace(os.sep, '/') + '/'

    def render_template(self, template_name, **context):
        """Render a Jinja2 template."""
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except (TemplateNotFound, TemplateSyntaxError) as e:
            self.logger.error(f"Template error: {e}")
            return None

    def write_page(self, rel_dir, template_name, filename='index.html', **context):
        """Render a template into ``output_dir/rel_dir/filename``. Returns True on success."""
        page_dir = os.path.join(self.output_dir, rel_dir) if rel_dir else self.output_dir
        os.makedirs(page_dir, exist_ok=True)
        context.setdefault('relative_path', self.calculate_relative_path(page_dir))

        html = self.render_template(template_name, **context)
        if html is None:
            return False

        output_path = os.path.join(page_dir, filename)
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(html)
            self.logger.debug(f"Generated HTML: {output_path}")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write HTML file {output_path}: {e}")
            return False

        self.pages_generated += 1
        return True

    def resolve_og_image(self, src):
        """Make an image reference absolute for social previews."""
        if not src:
            return None
        if src.startswith(('http://', 'https://')):
            return src
        if src.startswith('//'):
            return f"https:{src}"
        if not self.site_url:
            return src
        if src.startswith('/'):
            return f"{self.site_url}{src}"
        return f"{self.site_url}/{src}"

    def build_post_pages(self):
        """Render one page per post."""
        for meta in self.index.get_all_posts():
            try:
                post = self.index.get_post_by_slug(meta.slug)
            except PostLoadError as e:
                self.logger.error(f"Error loading post {e}")
                continue
            newer, older = self.index.get_adjacent_posts(meta.slug)
            if self.write_page(
                meta.slug,
                'post.html',
                post=post,
                authors=get_authors(post),
                toc_items=post.toc_items,
                related_posts=self.index.get_related_posts(post.slug, self.related_limit),
                newer_post=newer,
                older_post=older,
                og_image=self.resolve_og_image(extract_first_image(post.content)),
                page_url=f"{self.site_url}/{post.slug}" if self.site_url else None,
            ):
                self.posts_generated += 1

    def build_index_page(self):
        """Build the home page with every post and the category filter."""
        posts = self.index.get_all_posts()
        categories = [self.index.resolve_category_label(cat) for cat in self.index.get_all_categories()]
        self.write_page(
            '',
            'index.html',
            posts=posts,
            featured_post=posts[0] if posts else None,
            categories=categories,
        )
        self.logger.info("Building index page")

    def build_taxonomy_pages(self):
        """Build one listing page per category and per tag."""
        for kind, folder, names, label_for, posts_for in (
            ('category', 'categories', self.index.get_all_categories(),
             self.index.resolve_category_label, self.index.get_posts_by_category),
            ('tag', 'tags', self.index.get_all_tags(),
             self.index.resolve_tag_label, self.index.get_posts_by_tag),
        ):
            for name in names:
                segment = taxonomy_segment(name)
                if segment is None:
                    self.logger.warning(f"Skipping {kind} page for unusable name: '{name}'")
                    continue
                self.write_page(
                    os.path.join(folder, segment),
                    'taxonomy.html',
                    kind=kind,
                    label=label_for(name),
                    posts=posts_for(name),
                )
        self.logger.info("Building taxonomy pages")

    def build_404_page(self):
        """Build 404 error page."""
        self.write_page('', '404.html', filename='404.html')
        self.logger.info("Building 404 page")

    def build_redirects(self):
        """Write a redirect stub for every legacy URL in ``redirects``."""
        for source, destination in self.redirects.items():
            rel_path = source.strip('/')
            if not rel_path or '..' in rel_path.split('/'):
                self.logger.warning(f"Skipping unsafe redirect source: {source}")
                continue
            if rel_path.endswith('.html'):
                output_path = os.path.join(self.output_dir, *rel_path.split('/'))
            else:
                output_path = os.path.join(self.output_dir, *rel_path.split('/'), 'index.html')
            try:
                os.makedirs(os.path.dirname(output_path), exist_ok=True)
                with open(output_path, 'w', encoding='utf-8') as f:
                    f.write(REDIRECT_HTML.format(url=escape(destination, {'"': '&quot;'})))
            except (IOError, OSError, PermissionError) as e:
                self.logger.error(f"Failed to write redirect {source}: {e}")
        if self.redirects:
            self.logger.info("Building redirects")

    def generate_rss_feed(self, site_url, site_name=None):
        """Generate RSS feed."""
        if not site_name:
            site_name = site_title_from_url(site_url)

        posts = self.index.get_all_posts()
        if not posts:
            return False

        rss_content = f'''<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
<channel>
<title>{escape(site_name)}</title>
<link>{escape(site_url)}</link>
<description>Latest posts from {escape(site_name)}</description>
<lastBuildDate>{formatdate()}</lastBuildDate>
'''

        for post in posts[:20]:
            link = f"{site_url.rstrip('/')}/{post.slug}"
            post_date = parse_date(post.date)
            pub_date = formatdate(post_date.timestamp()) if post_date else formatdate()
            categories = ''.join(f"\n<category>{escape(tag)}</category>" for tag in post.tags or ())

            rss_content += f'''
<item>
<title>{escape(post.title or 'Untitled')}</title>
<link>{escape(link)}</link>
<description>{escape(post.excerpt)}</description>
<pubDate>{pub_date}</pubDate>
<guid>{escape(link)}</guid>{categories}
</item>'''

        rss_content += '''
</channel>
</rss>'''

        rss_output_dir = os.path.join(self.output_dir, 'feed')
        os.makedirs(rss_output_dir, exist_ok=True)
        rss_file = os.path.join(rss_output_dir, 'index.xml')
        try:
            with open(rss_file, 'w', encoding='utf-8') as f:
                f.write(rss_content)
            self.logger.info("Generating RSS feed")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write RSS feed file {rss_file}: {e}")
            return False

        return True

    def generate_xml_sitemap(self, site_url):
        """Generate XML sitemap."""
        site_url = site_url.rstrip('/')
        sitemap_content = '''<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
'''
        sitemap_content += self.format_xml_sitemap_entry(f"{site_url}/", datetime.now())

        for post in self.index.get_all_posts():
            lastmod = parse_date(post.date)
            sitemap_content += self.format_xml_sitemap_entry(f"{site_url}/{post.slug}", lastmod)

        taxonomy_urls = [taxonomy_url('categories', category) for category in self.index.get_all_categories()]
        taxonomy_urls += [taxonomy_url('tags', tag) for tag in self.index.get_all_tags()]
        for url in taxonomy_urls:
            if url:
                sitemap_content += self.format_xml_sitemap_entry(f"{site_url}/{url}")

        sitemap_content += '</urlset>'

        sitemap_file = os.path.join(self.output_dir, 'sitemap.xml')
        try:
            with open(sitemap_file, 'w', encoding='utf-8') as f:
                f.write(sitemap_content)
            self.logger.info("Generating XML sitemap")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write sitemap file {sitemap_file}: {e}")
            return False

        return True

    def format_xml_sitemap_entry(self, url, lastmod=None):
        """Format a single sitemap entry."""
        entry = f"<url>\n<loc>{escape(url)}</loc>\n"
        if lastmod:
            entry += f"<lastmod>{lastmod.strftime('%Y-%m-%d')}</lastmod>\n"
        return entry + "</url>\n"

    def check(self):
        """Load every post without writing anything. Returns the number of posts."""
        self.index.invalidate()
        return len(self.index.get_all_posts())

    def build(self):
        """Main build process."""
        self.logger.info("Starting site build...")
        self.posts_generated = 0
        self.pages_generated = 0
        self.index.refresh()

        self.create_output_dir()
        self.copy_assets_to_output()

        self.build_post_pages()
        self.build_index_page()
        self.build_taxonomy_pages()
        self.build_404_page()
        self.build_redirects()

        if self.site_url:
            self.generate_rss_feed(self.site_url, self.site_title)
            self.generate_xml_sitemap(self.site_url)
        else:
            self.logger.info("Skipping RSS feed and XML sitemap (no site_url).")
