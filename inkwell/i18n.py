"""
Interface string lookup for templates.
"""

import json
import logging
import os
from typing import Any, Dict

LOCALES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'locales')
LANGUAGES = ('en', 'cs')
FALLBACK_LANGUAGE = 'en'

logger = logging.getLogger('Inkwell.i18n')


def load_dictionary(language: str, locales_dir: str = LOCALES_DIR) -> Dict[str, Any]:
    """Load the JSON string table for ``language``."""
    path = os.path.join(locales_dir, f'{language}.json')
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Locale file not found: {path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in locale file {path}: {e}")


def resolve_translation(dictionary: Dict[str, Any], key: str) -> str:
    """Look up a dotted key such as ``post.relatedPosts``; unknown keys return the key."""
    value: Any = dictionary
    for part in key.split('.'):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return key
    return value if isinstance(value, str) else key


class Translator:
    """Callable string table for one language."""

    def __init__(self, language: str = FALLBACK_LANGUAGE, locales_dir: str = LOCALES_DIR):
        if language not in LANGUAGES:
            logger.warning(f"Unsupported language '{language}', falling back to '{FALLBACK_LANGUAGE}'")
            language = FALLBACK_LANGUAGE
        self.language = language
        self.dictionary = load_dictionary(language, locales_dir)

    def __call__(self, key: str) -> str:
        return resolve_translation(self.dictionary, key)

    t = __call__
