"""Subjects and bodies of notification emails."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from taskboard.services.app_config import ApplicationConfig
from taskboard.services.template_renderer import TemplateRenderer
from taskboard.services.translator import Translations, Translator, get_translator


STANDARD = "standard"
PROJECT = "project"

FALLBACK_SUBJECT = "[Taskboard] Notification"
DUE_TASKS_SUBJECT = "[%s][Due tasks]"


@dataclass(frozen=True)
class SubjectTemplate:
    label: str
    kind: str = STANDARD


# Labels are msgids, translated when the subject is built.
SUBJECT_TEMPLATES: dict[str, SubjectTemplate] = {
    "file_creation": SubjectTemplate("New attachment"),
    "comment_creation": SubjectTemplate("New comment"),
    "comment_update": SubjectTemplate("Comment updated"),
    "subtask_creation": SubjectTemplate("New subtask"),
    "subtask_update": SubjectTemplate("Subtask updated"),
    "task_creation": SubjectTemplate("New task"),
    "task_update": SubjectTemplate("Task updated"),
    "task_close": SubjectTemplate("Task closed"),
    "task_open": SubjectTemplate("Task opened"),
    "task_move_column": SubjectTemplate("Column Change"),
    "task_move_position": SubjectTemplate("Position Change"),
    "task_assignee_change": SubjectTemplate("Assignee Change"),
    "task_due": SubjectTemplate(DUE_TASKS_SUBJECT, kind=PROJECT),
}


def format_standard_subject(label: str, task: Mapping[str, Any]) -> str:
    return "[%s][%s] %s (#%d)" % (task["project_name"], label, task["title"], int(task["id"]))


class MailComposer:
    """Build the localized subject and rendered body for a notification template."""

    def __init__(
        self,
        config: ApplicationConfig,
        renderer: TemplateRenderer | None = None,
        translator: Translator | None = None,
    ):
        self.config = config
        self.renderer = renderer or TemplateRenderer()
        self.translator = translator or get_translator()

    def get_mail_subject(
        self,
        template: str,
        data: Mapping[str, Any],
        translations: Translations | None = None,
    ) -> str:
        """
        Subject line for a template.

        Per-task templates use ``[project][label] title (#id)`` built from
        ``data["task"]``; ``task_due`` uses ``data["project"]``; unknown
        templates get a generic subject.
        """
        translations = translations or self.translator.active
        subject = SUBJECT_TEMPLATES.get(template)

        if subject is None:
            return translations.gettext(FALLBACK_SUBJECT)

        if subject.kind == PROJECT:
            return translations.gettext(subject.label, data["project"])

        return format_standard_subject(translations.gettext(subject.label), data["task"])

    def get_mail_content(
        self,
        template: str,
        data: Mapping[str, Any],
        translations: Translations | None = None,
    ) -> str:
        """Render ``notification/<template>`` with ``application_url`` added to the payload."""
        payload = dict(data)
        payload.setdefault("application_url", self.config.get("application_url"))
        translations = translations or self.translator.active
        return self.renderer.render("notification/" + template, payload, translations)
