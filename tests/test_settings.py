"""Tests for configuration loading."""

import json
import os

import pytest
import yaml

from inkwell.settings import InkwellSettings


class TestInkwellSettings:
    """Test cases for InkwellSettings."""

    def test_defaults_without_config(self, temp_dir):
        settings = InkwellSettings(temp_dir).load_settings()
        assert settings['content'] == 'content/posts'
        assert settings['related_limit'] == 3
        assert settings['strict_slugs'] is True
        assert settings['date_policy'] == 'warn'

    def test_load_yaml(self, temp_dir):
        with open(os.path.join(temp_dir, 'inkwell.yml'), 'w') as f:
            f.write('site_title: Notes\nrelated_limit: 5\n')

        loader = InkwellSettings(temp_dir)
        settings = loader.load_settings()

        assert settings['site_title'] == 'Notes'
        assert settings['related_limit'] == 5
        assert settings['output'] == 'output'
        assert loader.config_file_path.endswith('inkwell.yml')

    def test_yml_preferred_over_json(self, temp_dir):
        with open(os.path.join(temp_dir, 'inkwell.yml'), 'w') as f:
            f.write('language: cs\n')
        with open(os.path.join(temp_dir, 'inkwell.json'), 'w') as f:
            json.dump({'language': 'en'}, f)

        assert InkwellSettings(temp_dir).load_settings()['language'] == 'cs'

    def test_load_json(self, temp_dir):
        with open(os.path.join(temp_dir, 'inkwell.json'), 'w') as f:
            json.dump({'date_policy': 'reject'}, f)

        assert InkwellSettings(temp_dir).load_settings()['date_policy'] == 'reject'

    def test_invalid_yaml(self, temp_dir):
        with open(os.path.join(temp_dir, 'inkwell.yml'), 'w') as f:
            f.write('site_title: [broken\n')

        with pytest.raises(ValueError, match='Invalid YAML'):
            InkwellSettings(temp_dir).load_settings()

    def test_invalid_json(self, temp_dir):
        with open(os.path.join(temp_dir, 'inkwell.json'), 'w') as f:
            f.write('{"site_title": ')

        with pytest.raises(ValueError, match='Invalid JSON'):
            InkwellSettings(temp_dir).load_settings()

    def test_non_mapping_config(self, temp_dir):
        with open(os.path.join(temp_dir, 'inkwell.yml'), 'w') as f:
            f.write('- just\n- a list\n')

        with pytest.raises(ValueError, match='must contain a mapping'):
            InkwellSettings(temp_dir).load_settings()

    def test_merge_with_args(self, temp_dir):
        """Test command-line values win and None values are ignored."""
        loader = InkwellSettings(temp_dir)
        loader.load_settings()
        merged = loader.merge_with_args({'output': 'public', 'site_url': None})
        assert merged['output'] == 'public'
        assert merged['site_url'] is None

    @pytest.mark.parametrize('file_format', ['yml', 'yaml'])
    def test_create_sample_yaml(self, temp_dir, file_format):
        path = InkwellSettings(temp_dir).create_sample_config(file_format)
        assert path.endswith(f'inkwell.{file_format}')
        with open(path) as f:
            data = yaml.safe_load(f)
        assert data['site_url'] == 'https://example.com'
        assert data['redirects'] == {'/post/welcome.html': '/welcome'}

    def test_create_sample_json(self, temp_dir):
        path = InkwellSettings(temp_dir).create_sample_config('json')
        with open(path) as f:
            data = json.load(f)
        assert data['date_policy'] == 'warn'

    def test_create_sample_unsupported(self, temp_dir):
        with pytest.raises(ValueError, match='Unsupported'):
            InkwellSettings(temp_dir).create_sample_config('toml')
        assert not os.path.exists(os.path.join(temp_dir, 'inkwell.toml'))
