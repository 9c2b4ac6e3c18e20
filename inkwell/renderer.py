"""
Markdown to HTML rendering with heading anchors, a table of contents and
Pygments syntax highlighting.
"""

import logging
from typing import List, Tuple

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .models import TocItem
from .slugs import HeadingSlugger

logger = logging.getLogger('Inkwell.renderer')

MARKDOWN_PLUGINS = ['table', 'strikethrough', 'task_lists', 'url', 'footnotes']

# Languages without a lexer of their own that read well as another language.
LANGUAGE_ALIASES = {
    'gdscript': 'python',
    'gd': 'python',
}

TOC_DEPTHS = (2, 3)


def node_text(token) -> str:
    """Concatenate the text of an inline token and all of its descendants."""
    if 'raw' in token:
        return token['raw']
    return ''.join(node_text(child) for child in token.get('children', []))


class HighlightRenderer(mistune.HTMLRenderer):
    """
    HTML renderer that anchors headings and highlights fenced code.

    Heading ids and TOC entries are kept in the parse state's ``env`` so a
    single renderer can be shared between documents.
    """

    def __init__(self):
        super().__init__(escape=False)
        self.formatter = HtmlFormatter(nowrap=True)

    def render_token(self, token, state):
        if token['type'] == 'heading':
            self.anchor_heading(token, state)
        return super().render_token(token, state)

    def anchor_heading(self, token, state):
        title = node_text(token).strip()
        if not title:
            return
        slugger = state.env.setdefault('heading_slugger', HeadingSlugger())
        heading_id = slugger.slug(title)
        attrs = token.setdefault('attrs', {})
        attrs['id'] = heading_id
        depth = attrs.get('level')
        if depth in TOC_DEPTHS:
            state.env.setdefault('toc', []).append(TocItem(id=heading_id, title=title, depth=depth))

    def block_code(self, code, info=None):
        language = info.split(None, 1)[0].lower() if info and info.strip() else None
        if not language:
            return '<pre><code>{}</code></pre>\n'.format(mistune.escape(code))

        lexer_name = LANGUAGE_ALIASES.get(language, language)
        try:
            lexer = get_lexer_by_name(lexer_name)
        except ClassNotFound:
            logger.debug(f"No lexer for code fence language '{language}'")
            body = mistune.escape(code)
        else:
            body = highlight(code, lexer, self.formatter)
        return '<pre><code class="language-{}">{}</code></pre>\n'.format(
            mistune.escape(language), body
        )


class MarkdownRenderer:
    """Render a post body to HTML and collect its table of contents."""

    def __init__(self, plugins=None):
        self.plugins = list(MARKDOWN_PLUGINS if plugins is None else plugins)
        self.markdown = mistune.create_markdown(
            renderer=HighlightRenderer(),
            plugins=self.plugins,
        )

    def render(self, body: str) -> Tuple[str, List[TocItem]]:
        html, state = self.markdown.parse(body)
        return html, list(state.env.get('toc', []))
