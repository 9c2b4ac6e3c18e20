#!/usr/bin/env python3
"""
Command-line interface for Inkwell.
"""

import os
import sys
import argparse
import time
from typing import Optional

from . import __version__
from .core import Inkwell
from .index import DuplicateSlugError
from .settings import InkwellSettings

SAMPLE_POST = """---
title: "Welcome to Inkwell"
date: {date}
authors:
  - Inkwell
categories:
  - General
tags:
  - inkwell
  - markdown
toc: true
---

Inkwell turns a folder of markdown posts into a static blog.

## Writing posts

Posts live in `content/posts/` and are named `YYYY-MM-DD-slug.md`.
The date prefix is dropped from the URL.

## Code blocks

```python
def hello():
    print("Hello from Inkwell")
```

## Next steps

Edit `inkwell.yml`, add a few posts, then run `inkwell`.
"""


def create_starter_structure(content_dir: str = 'content/posts') -> None:
    """Create the content and assets directories with a sample post."""
    current_dir = os.getcwd()

    for directory in [content_dir, 'assets/css', 'assets/js']:
        dir_path = os.path.join(current_dir, directory)
        if os.path.exists(dir_path):
            print(f"Directory already exists: {directory}")
        else:
            os.makedirs(dir_path, exist_ok=True)
            print(f"Created directory: {directory}")

    today = time.strftime('%Y-%m-%d')
    post_name = f'{today}-welcome-to-inkwell.md'
    post_path = os.path.join(current_dir, content_dir, post_name)
    if os.path.exists(post_path):
        print(f"Sample post already exists: {content_dir}/{post_name}")
    else:
        with open(post_path, 'w', encoding='utf-8') as f:
            f.write(SAMPLE_POST.format(date=today))
        print(f"Created sample post: {content_dir}/{post_name}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Inkwell - static technical blog generator')
    parser.add_argument('--output', type=str,
                        help='Output directory for generated site')
    parser.add_argument('--content', type=str,
                        help='Directory containing markdown posts')
    parser.add_argument('--templates', type=str,
                        help='Templates directory overriding the built-in templates')
    parser.add_argument('--assets', type=str,
                        help='Assets directory to copy to output')
    parser.add_argument('--site-url', type=str,
                        help='Site URL for canonical links, RSS feed and sitemap')
    parser.add_argument('--site-title', type=str, help='Site title for metadata')
    parser.add_argument('--site-tagline', type=str, help='Site tagline for metadata')
    parser.add_argument('--language', type=str, choices=['en', 'cs'],
                        help='Interface language')
    parser.add_argument('--minify', action='store_true', default=None,
                        help='Minify CSS and JS assets')
    parser.add_argument('--watch', action='store_true', default=None,
                        help='Rebuild whenever the content directory changes')
    parser.add_argument('--check', action='store_true',
                        help='Load and validate every post without writing the site')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter content')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def create_generator(settings: dict) -> Inkwell:
    output_dir = os.path.expanduser(settings['output'])
    return Inkwell(
        content_dir=settings['content'],
        output_dir=output_dir,
        templates_dir=settings['templates'],
        assets_dir=settings['assets'],
        site_url=settings['site_url'],
        site_title=settings['site_title'],
        site_tagline=settings['site_tagline'],
        language=settings['language'],
        minify=settings['minify'],
        related_limit=settings['related_limit'],
        strict_slugs=settings['strict_slugs'],
        date_policy=settings['date_policy'],
        redirects=settings['redirects'],
        excerpt_length=settings['excerpt_length'],
        words_per_minute=settings['words_per_minute'],
    )


def run_build(generator: Inkwell) -> None:
    start_time = time.time()
    generator.build()
    total_time = time.time() - start_time
    generator.logger.info(f"Site build completed in {total_time:.6f} seconds.")
    generator.logger.info(f"Total posts generated: {generator.posts_generated}")
    generator.logger.info(f"Total pages generated: {generator.pages_generated}")


def watch(generator: Inkwell, interval: float = 1.0, max_cycles: Optional[int] = None) -> None:
    """Poll the content directory and rebuild when it changes."""
    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        time.sleep(interval)
        cycles += 1
        if generator.index.refresh():
            generator.logger.info("Content changed, rebuilding")
            try:
                run_build(generator)
            except DuplicateSlugError as e:
                generator.logger.error(str(e))


def main(argv=None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    # Handle init command
    if args.init:
        settings_loader = InkwellSettings()
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")
        create_starter_structure()
        print("\nYour new Inkwell blog is ready! Run 'inkwell' to build it.")
        return

    try:
        settings_loader = InkwellSettings()
        settings_loader.load_settings()

        # Command line arguments take precedence
        args_dict = {k: v for k, v in vars(args).items() if v is not None and k not in ('check', 'init')}
        final_settings = settings_loader.merge_with_args(args_dict)

        generator = create_generator(final_settings)

        if args.check:
            count = generator.check()
            print(f"Content OK: {count} post(s) loaded from {final_settings['content']}")
            return

        run_build(generator)

        if final_settings['watch']:
            print("Watching for changes. Press Ctrl+C to stop.")
            watch(generator)

    except KeyboardInterrupt:
        print("\nStopped.")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
