#!/usr/bin/env python3
"""
Settings loader for Inkwell.
Supports configuration from inkwell.yml, inkwell.yaml, or inkwell.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional


class InkwellSettings:
    """Load and manage Inkwell configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'output': 'output',
        'content': 'content/posts',
        'templates': None,
        'assets': None,
        'site_url': None,
        'site_title': None,
        'site_tagline': None,
        'language': 'en',
        'minify': False,
        'watch': False,
        'related_limit': 3,
        'excerpt_length': 200,
        'words_per_minute': 200,
        'strict_slugs': True,
        'date_policy': 'warn',
        'redirects': {}
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['inkwell.yml', 'inkwell.yaml', 'inkwell.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings

        Raises:
            ValueError: If the configuration file is malformed
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if not isinstance(loaded_settings, dict):
                raise ValueError(f"Configuration file {config_file} must contain a mapping")
            # Merge with defaults, giving preference to loaded settings
            self.settings.update(loaded_settings)
            print(f"Loaded configuration from: {os.path.relpath(config_file)}")

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'site_url': 'https://example.com',
            'site_title': 'My Tech Blog',
            'site_tagline': 'Notes from the workshop',
            'output': 'output',
            'content': 'content/posts',
            'assets': 'assets',
            'language': 'en',
            'related_limit': 3,
            'strict_slugs': True,
            'date_policy': 'warn',
            'minify': False,
            'redirects': {
                '/post/welcome.html': '/welcome'
            }
        }

        if file_format not in ['yml', 'yaml', 'json']:
            raise ValueError(f"Unsupported config file format: {file_format}")

        filename = f'inkwell.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Inkwell Configuration File\n\n")
                    f.write("# Site information\n")
                    f.write("site_url: https://example.com\n")
                    f.write("site_title: My Tech Blog\n")
                    f.write("site_tagline: Notes from the workshop\n\n")
                    f.write("# Build settings\n")
                    f.write("output: output\n")
                    f.write("content: content/posts\n")
                    f.write("assets: assets\n")
                    f.write("language: en  # en or cs\n\n")
                    f.write("# Content settings\n")
                    f.write("related_limit: 3\n")
                    f.write("strict_slugs: true  # fail the build on duplicate slugs\n")
                    f.write("date_policy: warn  # warn or reject\n\n")
                    f.write("# Legacy URLs\n")
                    f.write("redirects:\n")
                    f.write("  /post/welcome.html: /welcome\n\n")
                    f.write("# Development settings\n")
                    f.write("minify: false\n")
                else:
                    json.dump(sample_config, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None:
                merged[key] = value

        return merged
