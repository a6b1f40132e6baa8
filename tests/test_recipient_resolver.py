"""Tests for RecipientResolver: permissions, global toggle, actor exclusion and opt-ins."""
from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from taskboard.services.recipient_resolver import RecipientResolver
from taskboard.services.user_session import UserSession
from tests.factories import grant, make_project, make_user, subscribe


def _ids(recipients) -> list[int]:
    return [recipient.id for recipient in recipients]


def test_everybody_allowed_project_includes_all_enabled_users_with_email(db_session):
    """Every enabled user with an email is a candidate when the project is open to everybody."""
    project = make_project(db_session, "Public", everybody_allowed=True)
    alice = make_user(db_session, "alice")
    bob = make_user(db_session, "bob")
    make_user(db_session, "carol", notifications_enabled=False)
    make_user(db_session, "dave", email=None)
    make_user(db_session, "erin", email="")

    users = RecipientResolver(db_session).get_users_with_notification(project.id)

    assert _ids(users) == [alice.id, bob.id]


def test_restricted_project_only_includes_members(db_session):
    """Users without a permission row on the project are never candidates."""
    project = make_project(db_session, "Private")
    member = make_user(db_session, "member")
    make_user(db_session, "outsider")
    grant(db_session, project, member)

    users = RecipientResolver(db_session).get_users_with_notification(project.id)

    assert _ids(users) == [member.id]


def test_exclusion_list_is_honoured(db_session):
    project = make_project(db_session, "Public", everybody_allowed=True)
    alice = make_user(db_session, "alice")
    bob = make_user(db_session, "bob")

    users = RecipientResolver(db_session).get_users_with_notification(project.id, [alice.id])

    assert _ids(users) == [bob.id]


def test_recipient_carries_language_and_display_name(db_session):
    project = make_project(db_session, "Public", everybody_allowed=True)
    make_user(db_session, "alice", name="Alice Martin", language="fr_FR")
    make_user(db_session, "bob")

    alice, bob = RecipientResolver(db_session).get_users_with_notification(project.id)

    assert alice.language == "fr_FR"
    assert alice.display_name == "Alice Martin"
    assert bob.language is None
    assert bob.display_name == "bob"


def test_acting_user_is_excluded_from_list(db_session):
    """The logged-in user who triggered the event never receives the email."""
    project = make_project(db_session, "Public", everybody_allowed=True)
    alice = make_user(db_session, "alice")
    bob = make_user(db_session, "bob")

    session = UserSession(user_id=alice.id, is_open=True)
    users = RecipientResolver(db_session, user_session=session).get_users_list(project.id)

    assert _ids(users) == [bob.id]


def test_closed_session_excludes_nobody(db_session):
    project = make_project(db_session, "Public", everybody_allowed=True)
    alice = make_user(db_session, "alice")
    bob = make_user(db_session, "bob")

    users = RecipientResolver(db_session, user_session=UserSession(user_id=alice.id)).get_users_list(project.id)

    assert _ids(users) == [alice.id, bob.id]


def test_exclusion_list_is_not_mutated(db_session):
    project = make_project(db_session, "Public", everybody_allowed=True)
    alice = make_user(db_session, "alice")
    bob = make_user(db_session, "bob")

    exclude = [bob.id]
    session = UserSession(user_id=alice.id, is_open=True)
    users = RecipientResolver(db_session, user_session=session).get_users_list(project.id, exclude)

    assert users == []
    assert exclude == [bob.id]


def test_project_subset_filters_other_projects(db_session):
    """A user subscribed to {A, B} is notified for A but not for C."""
    project_a = make_project(db_session, "A", everybody_allowed=True)
    project_b = make_project(db_session, "B", everybody_allowed=True)
    project_c = make_project(db_session, "C", everybody_allowed=True)
    picky = make_user(db_session, "picky")
    everything = make_user(db_session, "everything")
    subscribe(db_session, picky, project_a, project_b)

    resolver = RecipientResolver(db_session)

    assert _ids(resolver.get_users_list(project_a.id)) == [picky.id, everything.id]
    assert _ids(resolver.get_users_list(project_b.id)) == [picky.id, everything.id]
    assert _ids(resolver.get_users_list(project_c.id)) == [everything.id]


def test_subscription_does_not_bypass_permissions(db_session):
    project = make_project(db_session, "Private")
    user = make_user(db_session, "alice")
    subscribe(db_session, user, project)

    assert RecipientResolver(db_session).get_users_list(project.id) == []


def test_unknown_project_has_no_recipients(db_session):
    make_user(db_session, "alice")

    assert RecipientResolver(db_session).get_users_list(999) == []


def test_storage_failure_propagates(db_session, monkeypatch):
    project = make_project(db_session, "Public", everybody_allowed=True)
    make_user(db_session, "alice")

    def failing_execute(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "execute", failing_execute)

    with pytest.raises(OperationalError):
        RecipientResolver(db_session).get_users_list(project.id)
