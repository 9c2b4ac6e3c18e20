"""Tests for markdown rendering."""

from inkwell.models import TocItem
from inkwell.renderer import MARKDOWN_PLUGINS, HighlightRenderer, MarkdownRenderer, node_text


class TestHeadings:
    """Test cases for heading anchors and the table of contents."""

    def test_heading_gets_id(self, renderer):
        html, _ = renderer.render('## Hello World\n\nText.')
        assert '<h2 id="hello-world">Hello World</h2>' in html

    def test_duplicate_headings_are_numbered(self, renderer):
        """Test repeated headings get unique ids."""
        html, _ = renderer.render('## Setup\n\nA\n\n## Setup\n\nB\n\n## Setup\n')
        assert 'id="setup"' in html
        assert 'id="setup-2"' in html
        assert 'id="setup-3"' in html

    def test_numbered_heading_does_not_collide(self, renderer):
        """Test a literal "2" heading after two repeats still gets a unique id."""
        html, toc = renderer.render('## Foo\n\n## Foo\n\n## Foo 2\n')
        ids = [item.id for item in toc]
        assert ids == ['foo', 'foo-2', 'foo-2-2']
        assert html.count('id="foo-2"') == 1

    def test_toc_collects_depth_two_and_three(self, renderer):
        """Test only h2 and h3 headings make it into the TOC, in order."""
        _, toc = renderer.render('# Title\n\n## First\n\n### Nested\n\n#### Deep\n\n## Second\n')
        assert toc == [
            TocItem(id='first', title='First', depth=2),
            TocItem(id='nested', title='Nested', depth=3),
            TocItem(id='second', title='Second', depth=2),
        ]

    def test_h1_still_anchored(self, renderer):
        html, _ = renderer.render('# Title\n')
        assert '<h1 id="title">Title</h1>' in html

    def test_toc_ids_match_html(self, renderer):
        """Test every TOC entry points at an id present in the HTML."""
        html, toc = renderer.render('## Intro\n\n## Intro\n\n### Details\n')
        for item in toc:
            assert f'id="{item.id}"' in html

    def test_inline_markup_in_heading(self, renderer):
        """Test inline code and emphasis contribute their text to the id."""
        html, toc = renderer.render('## Using `pip` *quickly*\n')
        assert 'id="using-pip-quickly"' in html
        assert toc[0].title == 'Using pip quickly'

    def test_image_alt_text_in_heading(self, renderer):
        _, toc = renderer.render('## ![logo](logo.png) Release Notes\n')
        assert toc[0].id == 'logo-release-notes'

    def test_punctuation_only_heading(self, renderer):
        """Test a heading with no usable characters falls back to 'section'."""
        html, _ = renderer.render('## ???\n')
        assert 'id="section"' in html

    def test_renderer_is_reusable(self, renderer):
        """Test heading counters reset between documents."""
        renderer.render('## Intro\n')
        html, toc = renderer.render('## Intro\n')
        assert 'id="intro"' in html
        assert [item.id for item in toc] == ['intro']


class TestCodeBlocks:
    """Test cases for fenced code highlighting."""

    def test_known_language_is_highlighted(self, renderer):
        html, _ = renderer.render('```python\ndef add(a, b):\n    return a + b\n```\n')
        assert '<pre><code class="language-python">' in html
        assert '<span' in html

    def test_gdscript_alias(self, renderer):
        """Test GDScript fences are highlighted with the Python lexer."""
        html, _ = renderer.render('```gdscript\nfunc _ready():\n    pass\n```\n')
        assert 'class="language-gdscript"' in html
        assert '<span' in html

    def test_unknown_language_is_escaped(self, renderer):
        html, _ = renderer.render('```nosuchlang\n<b>x</b>\n```\n')
        assert 'class="language-nosuchlang"' in html
        assert '&lt;b&gt;x&lt;/b&gt;' in html

    def test_plain_fence(self, renderer):
        html, _ = renderer.render('```\n1 < 2\n```\n')
        assert '<pre><code>1 &lt; 2\n</code></pre>' in html


class TestMarkdownFeatures:
    """Test cases for the enabled markdown plugins."""

    def test_raw_html_passthrough(self, renderer):
        html, _ = renderer.render('<div class="note">Careful</div>\n')
        assert '<div class="note">Careful</div>' in html

    def test_table(self, renderer):
        html, _ = renderer.render('| a | b |\n| --- | --- |\n| 1 | 2 |\n')
        assert '<table>' in html

    def test_strikethrough(self, renderer):
        html, _ = renderer.render('~~gone~~\n')
        assert '<del>gone</del>' in html

    def test_no_headings_no_toc(self, renderer):
        html, toc = renderer.render('Just a paragraph.')
        assert toc == []
        assert '<p>Just a paragraph.</p>' in html

    def test_custom_plugins(self):
        renderer = MarkdownRenderer(plugins=['table'])
        assert isinstance(renderer.markdown.renderer, HighlightRenderer)
        assert renderer.plugins == ['table']

    def test_plugins_default_and_empty(self):
        assert MarkdownRenderer().plugins == MARKDOWN_PLUGINS
        assert MarkdownRenderer(plugins=[]).plugins == []


class TestNodeText:
    def test_nested_children(self):
        token = {'type': 'emphasis', 'children': [{'type': 'text', 'raw': 'a'}, {'type': 'text', 'raw': 'b'}]}
        assert node_text(token) == 'ab'

    def test_token_without_text(self):
        assert node_text({'type': 'softbreak'}) == ''
