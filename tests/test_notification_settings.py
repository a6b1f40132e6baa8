"""Tests for the per-user notification preference store."""
from __future__ import annotations

import pytest
from sqlalchemy.exc import SQLAlchemyError

from taskboard.core.errors import UserNotFoundError
from taskboard.models.database_models import User, UserNotification
from taskboard.models.notifications import AllProjects, RestrictedTo
from taskboard.services.notification_settings import (
    NotificationSettings,
    is_enabled_flag,
    parse_project_selection,
)
from tests.factories import make_project, make_user


def _rows(db_session, user_id: int) -> list[int]:
    return sorted(
        row.project_id
        for row in db_session.query(UserNotification).filter(UserNotification.user_id == user_id)
    )


@pytest.mark.parametrize("value", [1, "1", True, "true", "on", "yes", " ON "])
def test_enabled_flag_truthy_values(value):
    assert is_enabled_flag(value) is True


@pytest.mark.parametrize("value", [0, "0", None, False, "", "off", "no"])
def test_enabled_flag_falsy_values(value):
    assert is_enabled_flag(value) is False


def test_parse_project_selection_skips_malformed_keys():
    assert parse_project_selection({"5": 1, 7: "on", "abc": 1, "-2": 1, "0": 1, "5 ": 1}) == [5, 7]


def test_parse_project_selection_rejects_non_mapping():
    assert parse_project_selection(None) == []
    assert parse_project_selection("garbage") == []
    assert parse_project_selection([1, 2]) == []


def test_save_with_project_subset(db_session):
    user = make_user(db_session, "alice", notifications_enabled=False)
    project_a = make_project(db_session, "A")
    project_b = make_project(db_session, "B")

    store = NotificationSettings(db_session)
    store.save_settings(user.id, {"notifications_enabled": 1, "projects": {project_a.id: 1, project_b.id: 1}})

    assert db_session.get(User, user.id).notifications_enabled is True
    assert _rows(db_session, user.id) == [project_a.id, project_b.id]
    assert store.get_subscription(user.id) == RestrictedTo(frozenset({project_a.id, project_b.id}))


def test_save_without_projects_means_all_projects(db_session):
    user = make_user(db_session, "alice")

    store = NotificationSettings(db_session)
    store.save_settings(user.id, {"notifications_enabled": "1"})

    assert _rows(db_session, user.id) == []
    assert store.get_subscription(user.id) == AllProjects()


def test_save_replaces_previous_rows(db_session):
    user = make_user(db_session, "alice")
    project_a = make_project(db_session, "A")
    project_b = make_project(db_session, "B")
    store = NotificationSettings(db_session)

    store.save_settings(user.id, {"notifications_enabled": 1, "projects": {project_a.id: 1}})
    store.save_settings(user.id, {"notifications_enabled": 1, "projects": {project_b.id: 1}})

    assert _rows(db_session, user.id) == [project_b.id]


def test_disable_wipes_subscriptions(db_session):
    """Disabling notifications stores no rows even if projects were ticked."""
    user = make_user(db_session, "alice")
    project = make_project(db_session, "A")
    store = NotificationSettings(db_session)
    store.save_settings(user.id, {"notifications_enabled": 1, "projects": {project.id: 1}})

    store.save_settings(user.id, {"notifications_enabled": 0, "projects": {project.id: 1}})

    assert db_session.get(User, user.id).notifications_enabled is False
    assert _rows(db_session, user.id) == []


def test_unknown_projects_are_skipped(db_session):
    user = make_user(db_session, "alice")
    project = make_project(db_session, "A")

    store = NotificationSettings(db_session)
    store.save_settings(user.id, {"notifications_enabled": 1, "projects": {project.id: 1, 4242: 1}})

    assert _rows(db_session, user.id) == [project.id]


def test_read_settings_round_trip(db_session):
    user = make_user(db_session, "alice")
    project_a = make_project(db_session, "A")
    project_b = make_project(db_session, "B")
    make_project(db_session, "C")
    store = NotificationSettings(db_session)

    store.save_settings(user.id, {"notifications_enabled": 1, "projects": {project_a.id: 1, project_b.id: 1}})

    assert store.read_settings(user.id) == {
        "notifications_enabled": True,
        f"project_{project_a.id}": True,
        f"project_{project_b.id}": True,
    }


def test_read_settings_without_rows(db_session):
    user = make_user(db_session, "alice", notifications_enabled=False)

    assert NotificationSettings(db_session).read_settings(user.id) == {"notifications_enabled": False}


def test_unknown_user_raises(db_session):
    store = NotificationSettings(db_session)

    with pytest.raises(UserNotFoundError):
        store.read_settings(404)
    with pytest.raises(UserNotFoundError):
        store.save_settings(404, {"notifications_enabled": 1})


def test_get_subscriptions_batches_users(db_session):
    alice = make_user(db_session, "alice")
    bob = make_user(db_session, "bob")
    project = make_project(db_session, "A")
    NotificationSettings(db_session).save_settings(alice.id, {"notifications_enabled": 1, "projects": {project.id: 1}})

    subscriptions = NotificationSettings(db_session).get_subscriptions([alice.id, bob.id])

    assert subscriptions[alice.id] == RestrictedTo(frozenset({project.id}))
    assert subscriptions[bob.id] == AllProjects()
    assert NotificationSettings(db_session).get_subscriptions([]) == {}


def test_failed_commit_keeps_previous_settings(db_session, monkeypatch):
    """The wipe and re-insert happen in one transaction; a failed commit leaves the old settings."""
    user = make_user(db_session, "alice")
    project = make_project(db_session, "A")
    store = NotificationSettings(db_session)
    store.save_settings(user.id, {"notifications_enabled": 1, "projects": {project.id: 1}})

    def failing_commit():
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(db_session, "commit", failing_commit)

    with pytest.raises(SQLAlchemyError):
        store.save_settings(user.id, {"notifications_enabled": 0})

    assert db_session.get(User, user.id).notifications_enabled is True
    assert _rows(db_session, user.id) == [project.id]
