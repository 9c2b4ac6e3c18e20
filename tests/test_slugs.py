"""Tests for filename and heading slugs."""

import pytest

from inkwell.slugs import (
    HeadingSlugger,
    filename_to_slug,
    find_duplicate_slugs,
    find_filename_by_slug,
    slugify_heading,
)


class TestFilenameToSlug:
    """Test cases for deriving public slugs from filenames."""

    @pytest.mark.parametrize('filename,expected', [
        ('2024-01-15-hello-world', 'hello-world'),
        ('2024-01-15-hello-world.md', 'hello-world'),
        ('hello-world.md', 'hello-world'),
        ('notes', 'notes'),
        ('2024-1-5-short-date', '2024-1-5-short-date'),
        ('2024-01-15', '2024-01-15'),
    ])
    def test_filename_to_slug(self, filename, expected):
        """Test the date prefix and extension are stripped."""
        assert filename_to_slug(filename) == expected

    def test_slug_is_stable(self):
        """Test deriving a slug from a slug changes nothing."""
        slug = filename_to_slug('2023-07-04-fireworks')
        assert filename_to_slug(slug) == slug


class TestFindFilenameBySlug:
    """Test cases for resolving slugs back to files."""

    def test_exact_filename_wins(self):
        """Test an exact filename match is preferred over a derived one."""
        filenames = ['2024-01-01-hello', 'hello']
        assert find_filename_by_slug('hello', filenames) == 'hello'

    def test_derived_match(self):
        """Test a dated filename is found by its slug."""
        filenames = ['2024-01-01-hello', '2024-02-01-world']
        assert find_filename_by_slug('world', filenames) == '2024-02-01-world'

    def test_dated_filename_is_its_own_exact_match(self):
        """Test the full filename also resolves."""
        assert find_filename_by_slug('2024-01-01-hello', ['2024-01-01-hello']) == '2024-01-01-hello'

    def test_missing_slug(self):
        """Test an unknown slug resolves to None."""
        assert find_filename_by_slug('nope', ['2024-01-01-hello']) is None

    def test_duplicates(self):
        """Test duplicate slugs are reported with every claimant."""
        duplicates = find_duplicate_slugs(['2024-01-01-hello', '2024-05-05-hello', 'other'])
        assert duplicates == {'hello': ['2024-01-01-hello', '2024-05-05-hello']}

    def test_no_duplicates(self):
        assert find_duplicate_slugs(['a', 'b', '2024-01-01-c']) == {}

    def test_round_trip(self):
        """Test every filename is recovered from its slug when slugs are unique."""
        filenames = ['2024-01-05-my-post', '2023-12-31-year-end', 'about-me']
        for filename in filenames:
            assert find_filename_by_slug(filename_to_slug(filename), filenames) == filename


class TestHeadingSlugs:
    """Test cases for heading anchor ids."""

    @pytest.mark.parametrize('text,expected', [
        ('Hello, World!', 'hello-world'),
        ('Setup & Config!', 'setup-config'),
        ('  Getting   Started  ', 'getting-started'),
        ('C++ & Rust', 'c-rust'),
        ('already-hyphenated -- text', 'already-hyphenated-text'),
        ('Step 2: Deploy', 'step-2-deploy'),
        ('!!!', 'section'),
        ('', 'section'),
    ])
    def test_slugify_heading(self, text, expected):
        assert slugify_heading(text) == expected

    def test_slugger_deduplicates(self):
        """Test repeated headings get numbered suffixes."""
        slugger = HeadingSlugger()
        assert [slugger.slug('Intro'), slugger.slug('Intro'), slugger.slug('Intro')] == [
            'intro', 'intro-2', 'intro-3'
        ]

    def test_slugger_counts_per_base(self):
        """Test different headings keep independent counters."""
        slugger = HeadingSlugger()
        assert slugger.slug('Setup') == 'setup'
        assert slugger.slug('Usage') == 'usage'
        assert slugger.slug('setup') == 'setup-2'

    def test_slugger_skips_ids_taken_by_other_headings(self):
        """Test a heading whose slug matches an earlier suffixed id gets a fresh one."""
        slugger = HeadingSlugger()
        ids = [slugger.slug('Foo'), slugger.slug('Foo'), slugger.slug('Foo 2')]
        assert ids == ['foo', 'foo-2', 'foo-2-2']

    def test_slugger_suffix_skips_existing_id(self):
        slugger = HeadingSlugger()
        ids = [slugger.slug('Foo 2'), slugger.slug('Foo'), slugger.slug('Foo')]
        assert ids == ['foo-2', 'foo', 'foo-3']
