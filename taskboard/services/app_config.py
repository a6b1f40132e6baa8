"""Runtime application options stored in the ``settings`` table."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from taskboard.config import Settings, get_settings
from taskboard.models.database_models import ConfigSetting
from taskboard.services.translator import Translations, Translator, get_translator


logger = logging.getLogger(__name__)


class ApplicationConfig:
    """Read options from the database, falling back to environment settings."""

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        translator: Translator | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.translator = translator or get_translator()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Return the value of an option.

        Lookup order: non-empty ``settings`` row, then the environment setting of
        the same name, then ``default``.
        """
        row = self.db.get(ConfigSetting, key)
        if row is not None and row.value not in (None, ""):
            return row.value

        value = getattr(self.settings, key, None)
        if value not in (None, ""):
            return value
        return default

    def set(self, key: str, value: Any) -> None:
        row = self.db.get(ConfigSetting, key)
        if row is None:
            self.db.add(ConfigSetting(option=key, value=None if value is None else str(value)))
        else:
            row.value = None if value is None else str(value)
        self.db.commit()
        logger.info("Config option %s updated", key)

    def get_application_language(self) -> str:
        return str(self.get("application_language", "en_US"))

    def setup_translations(self) -> Translations:
        """Reset the process-wide locale to the application language."""
        return self.translator.activate(self.get_application_language())
