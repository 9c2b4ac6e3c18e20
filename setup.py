#!/usr/bin/env python3
"""
Setup script for Inkwell - static technical blog generator.
"""

from setuptools import setup, find_packages
import os

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='inkwell',
    version='1.0.0',
    description='A static technical blog generator with syntax highlighting, tables of contents and related posts',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'inkwell': [
            'templates/*.html',
            'locales/*.json',
            'assets/css/*.css',
            'assets/js/*.js',
        ],
    },
    include_package_data=True,
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Internet :: WWW/HTTP :: Site Management',
        'Topic :: Software Development :: Code Generators',
        'Topic :: Text Processing :: Markup :: HTML',
    ],
    python_requires='>=3.8',
    install_requires=[
        'mistune>=3.0',
        'PyYAML>=6.0',
        'Jinja2>=3.0',
        'Pygments>=2.10',
        'csscompressor',
        'rjsmin',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-cov',
        ],
    },
    entry_points={
        'console_scripts': [
            'inkwell=inkwell.cli:main',
        ],
    },
    keywords='static site generator, blog, markdown, jinja2, pygments',
)
