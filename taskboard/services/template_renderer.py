"""Jinja2 rendering of notification email bodies."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound, select_autoescape

from taskboard.config import get_settings
from taskboard.core.errors import RenderError
from taskboard.services.translator import Translations, get_translator


logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".html"


class TemplateRenderer:
    """Render ``notification/<template>`` keys to HTML strings."""

    def __init__(self, template_dir: Path | str | None = None):
        settings = get_settings()
        self.template_dir = Path(template_dir) if template_dir is not None else settings.template_dir
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(
        self,
        template_key: str,
        payload: Mapping[str, Any],
        translations: Translations | None = None,
    ) -> str:
        """
        Render a template with the given payload.

        Args:
            template_key: Template path without suffix, e.g. ``notification/task_creation``
            payload: Variables exposed to the template
            translations: Catalog bound to ``t()`` inside the template (defaults to the active locale)

        Returns:
            Rendered HTML

        Raises:
            RenderError: Unknown template or a failure while rendering it
        """
        translations = translations or get_translator().active
        context = dict(payload)
        context["t"] = translations.gettext

        try:
            template = self.env.get_template(template_key + TEMPLATE_SUFFIX)
        except TemplateNotFound as exc:
            raise RenderError(template_key, "template not found") from exc

        try:
            return template.render(context)
        except (TemplateError, TypeError, ValueError) as exc:
            logger.exception("Template %s failed to render", template_key)
            raise RenderError(template_key, str(exc)) from exc
