"""
Message composer service - loads bot copy from YAML and selects variants deterministically.

Uses the user id to pick a variant, so the same user always gets the same wording.
"""

import hashlib
import logging
from pathlib import Path
from typing import Any, cast

import yaml

logger = logging.getLogger(__name__)

# Path to copy files (app/copy)
COPY_DIR = Path(__file__).resolve().parent.parent.parent / "copy"
DEFAULT_LOCALE = "en"


class MessageComposer:
    """Composes messages from a YAML copy file."""

    def __init__(self, locale: str = DEFAULT_LOCALE):
        self.locale = locale
        self.copy_file = COPY_DIR / f"{locale}.yml"
        self._copy_data: dict[str, Any] = {}
        self._load_copy()

    def _load_copy(self) -> None:
        if not self.copy_file.exists():
            logger.warning(f"Copy file not found: {self.copy_file}, using empty copy")
            self._copy_data = {}
            return

        try:
            with open(self.copy_file, encoding="utf-8") as f:
                self._copy_data = yaml.safe_load(f) or {}
            logger.info(f"Loaded copy from {self.copy_file}")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load copy from {self.copy_file}: {e}")
            self._copy_data = {}

    def _select_variant(self, key: str, user_id: str | None = None) -> str:
        """
        Select a variant for `key`.

        Args:
            key: Message key
            user_id: User id for deterministic selection (None = first variant)

        Returns:
            Selected variant text, or a visible [MISSING: key] marker
        """
        if key not in self._copy_data:
            logger.warning(f"Message key not found: {key}")
            return f"[MISSING: {key}]"

        variants = self._copy_data[key]
        if not isinstance(variants, list):
            return variants if isinstance(variants, str) else str(variants)

        if not variants:
            logger.warning(f"No variants found for key: {key}")
            return ""

        if user_id is None:
            return cast(str, variants[0])
        hash_value = int(hashlib.md5(f"{key}:{user_id}".encode()).hexdigest(), 16)
        return cast(str, variants[hash_value % len(variants)])

    def render(self, key: str, user_id: str | None = None, **kwargs: Any) -> str:
        """
        Render a message from copy.

        Example:
            composer.render("welcome_caption", user_id="51999888777", company_name="TH Logistics")
        """
        template = self._select_variant(key, user_id)
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError) as e:
            logger.warning(f"Missing template variable {e} for key {key}")
            return template


_composer: MessageComposer | None = None


def reset_cache() -> None:
    """Clear the global composer cache. Use in tests after patching COPY_DIR."""
    global _composer
    _composer = None


def get_composer(locale: str = DEFAULT_LOCALE) -> MessageComposer:
    global _composer
    if _composer is None or _composer.locale != locale:
        _composer = MessageComposer(locale=locale)
    return _composer


def render_message(
    key: str,
    user_id: str | None = None,
    locale: str = DEFAULT_LOCALE,
    **kwargs: Any,
) -> str:
    """Convenience function: render `key` with the global composer."""
    return get_composer(locale).render(key, user_id=user_id, **kwargs)
