"""Translation catalogs and locale negotiation for outbound notifications."""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from taskboard.config import get_settings


logger = logging.getLogger(__name__)


def normalize_locale(locale: str | None) -> str:
    """Return a lookup key for a locale code: ``fr_FR`` and ``fr-fr`` both become ``fr-fr``."""
    if not locale:
        return ""
    return locale.strip().lower().replace("_", "-")


class Translations:
    """Message catalog bound to one locale.

    Instances are immutable and safe to pass around explicitly, so rendering
    for one recipient never depends on whatever locale is active globally.
    """

    def __init__(self, locale: str, messages: dict[str, str] | None = None):
        self.locale = locale
        self._messages = dict(messages or {})

    def gettext(self, msgid: str, *args: Any) -> str:
        """Translate ``msgid`` and apply printf-style ``args`` to the translated text."""
        text = self._messages.get(msgid) or msgid
        if args:
            return text % args
        return text

    __call__ = gettext

    def __contains__(self, msgid: str) -> bool:
        return msgid in self._messages

    def __repr__(self) -> str:
        return f"Translations(locale={self.locale!r}, messages={len(self._messages)})"


class Translator:
    """Loads YAML catalogs and tracks the process-wide active locale."""

    def __init__(self, locale_dir: Path | str | None = None, default_locale: str | None = None):
        settings = get_settings()
        self.locale_dir = Path(locale_dir) if locale_dir is not None else settings.locale_dir
        self.default_locale = default_locale or settings.application_language
        self._catalogs: dict[str, Translations] | None = None
        self._active: Translations | None = None

    def _load_catalogs(self) -> dict[str, Translations]:
        if self._catalogs is not None:
            return self._catalogs

        catalogs: dict[str, Translations] = {}
        if not self.locale_dir.is_dir():
            logger.warning("Locale directory %s not found - only source strings available", self.locale_dir)
        else:
            for path in sorted(self.locale_dir.glob("*.yaml")):
                with path.open("r", encoding="utf-8") as fh:
                    content = yaml.safe_load(fh) or {}
                locale = str(content.get("language") or path.stem)
                messages = content.get("messages") or {}
                catalogs[normalize_locale(locale)] = Translations(
                    locale,
                    {str(key): str(value) for key, value in messages.items()},
                )
            logger.debug("Loaded %d translation catalogs from %s", len(catalogs), self.locale_dir)

        self._catalogs = catalogs
        return catalogs

    def available_locales(self) -> list[str]:
        return [catalog.locale for catalog in self._load_catalogs().values()]

    def _resolve(self, locale: str | None) -> Translations | None:
        catalogs = self._load_catalogs()
        normalized = normalize_locale(locale)
        if not normalized:
            return None
        if normalized in catalogs:
            return catalogs[normalized]

        # fr, fr_CA -> first catalog for the same language
        language = normalized.split("-")[0]
        for key, catalog in catalogs.items():
            if key.split("-")[0] == language:
                return catalog
        return None

    def translations_for(self, locale: str | None) -> Translations:
        """Return the catalog for ``locale``, falling back to the default locale then to source strings."""
        found = self._resolve(locale)
        if found is not None:
            return found

        if locale and normalize_locale(locale) != normalize_locale(self.default_locale):
            logger.debug("No catalog for locale %s - falling back to %s", locale, self.default_locale)

        found = self._resolve(self.default_locale)
        if found is not None:
            return found

        # Source strings are written in English; no catalog is needed for them.
        return Translations(self.default_locale)

    def activate(self, locale: str | None) -> Translations:
        """Make ``locale`` the process-wide active locale."""
        self._active = self.translations_for(locale)
        logger.debug("Active locale set to %s", self._active.locale)
        return self._active

    def reset(self) -> Translations:
        """Restore the default locale as the active one."""
        return self.activate(self.default_locale)

    @property
    def active(self) -> Translations:
        if self._active is None:
            return self.reset()
        return self._active

    def gettext(self, msgid: str, *args: Any) -> str:
        """Translate with the active locale."""
        return self.active.gettext(msgid, *args)


@lru_cache()
def get_translator() -> Translator:
    """Return the process-wide translator."""

    return Translator()
