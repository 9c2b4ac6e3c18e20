"""Test configuration and fixtures for Inkwell tests."""

import pytest
import tempfile
import shutil
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from inkwell.renderer import MarkdownRenderer


def write_post(directory, filename, title=None, date=None, body='Some body text.', **fields):
    """Write a markdown post with a YAML front matter block."""
    lines = ['---']
    if title is not None:
        lines.append(f'title: "{title}"')
    if date is not None:
        lines.append(f'date: {date}')
    for key, value in fields.items():
        if isinstance(value, (list, tuple)):
            lines.append(f'{key}: [{", ".join(value)}]')
        else:
            lines.append(f'{key}: {value}')
    lines.append('---')
    path = Path(directory) / f'{filename}.md'
    path.write_text('\n'.join(lines) + '\n\n' + body + '\n', encoding='utf-8')
    return path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def renderer():
    return MarkdownRenderer()


@pytest.fixture
def posts_dir(temp_dir):
    """Create an empty content/posts directory."""
    posts_dir = Path(temp_dir) / 'content' / 'posts'
    posts_dir.mkdir(parents=True)
    return str(posts_dir)


@pytest.fixture
def mock_content_dir(posts_dir):
    """Create a small blog with overlapping tags and categories."""
    write_post(
        posts_dir, '2024-03-01-python-packaging', title='Python Packaging', date='2024-03-01',
        authors=['Ada'], categories=['Engineering'], tags=['Python', 'Tooling'], toc='true',
        body='## Why packaging\n\nShip it.\n\n### Wheels\n\nBuilt distributions.\n\n'
             '```python\nprint("hi")\n```',
    )
    write_post(
        posts_dir, '2024-02-01-testing-tips', title='Testing Tips', date='2024-02-01',
        author='Grace', categories=['engineering'], tags=['python', 'tooling'],
        body='Write the **test** first. ![diagram](/img/flow.png)',
    )
    write_post(
        posts_dir, '2024-01-01-deploy-notes', title='Deploy Notes', date='2024-01-01',
        categories=['Ops'], tags=['python'],
        body='Roll forward.',
    )
    write_post(
        posts_dir, 'garden-log', title='Garden Log', date='2023-12-01',
        categories=['Life'], tags=['plants'],
        body='Tomatoes again.',
    )
    return posts_dir


@pytest.fixture
def mock_templates_dir(temp_dir):
    """Create a templates directory overriding the 404 page."""
    templates_dir = Path(temp_dir) / 'templates'
    templates_dir.mkdir()
    (templates_dir / '404.html').write_text(
        '{% extends "base.html" %}{% block content %}<p>Custom missing page</p>{% endblock %}',
        encoding='utf-8',
    )
    return str(templates_dir)


@pytest.fixture
def mock_output_dir(temp_dir):
    """Path of a not-yet-created output directory."""
    return str(Path(temp_dir) / 'output')
