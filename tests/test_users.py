"""Tests for profile, consent and the GDPR self-service operations."""
import pytest
from datetime import datetime, timedelta

from wellbeing.models.enums import MemberRole, NotificationLevel, ParticipationStatus
from wellbeing.services.auth import AuthService
from wellbeing.services.errors import AuthError, ValidationError
from wellbeing.services.events import EventService
from wellbeing.services.membership import MembershipStateMachine
from wellbeing.services.posts import PostService
from wellbeing.services.users import UserService


class TestProfile:
    def test_update_profile_fields(self, db_session, alice):
        user = UserService(db_session).update_profile(alice.id, {
            "bio": "Runner and reader",
            "notification_preference": NotificationLevel.ALL,
        })

        assert user.bio == "Runner and reader"
        assert user.notification_preference == NotificationLevel.ALL

    def test_names_cannot_be_blanked(self, db_session, alice):
        with pytest.raises(ValidationError):
            UserService(db_session).update_profile(alice.id, {"first_name": ""})

    def test_unknown_fields_are_ignored(self, db_session, alice):
        user = UserService(db_session).update_profile(alice.id, {"email": "evil@example.com"})
        assert user.email == "alice@example.com"

    def test_consent_update_stamps_date(self, db_session, alice):
        before = alice.consent_date
        user = UserService(db_session).update_consent(alice.id, marketing_consent=True)

        assert user.marketing_consent is True
        assert user.data_processing_consent is True
        assert user.consent_date >= before


class TestDeletionRequest:
    def test_request_deactivates_account(self, db_session, alice):
        result = UserService(db_session).request_deletion(alice.id)
        db_session.refresh(alice)

        assert alice.deletion_requested is True
        assert alice.deletion_requested_at is not None
        assert alice.is_active is False
        assert result["deletion_date"] > datetime.utcnow() + timedelta(days=29)

    def test_deleted_account_cannot_log_in(self, db_session, alice):
        UserService(db_session).request_deletion(alice.id)

        with pytest.raises(AuthError):
            AuthService(db_session).login(alice.email, "Password123!")


class TestExport:
    def test_export_covers_everything_but_the_password(self, db_session, alice, bob, group, add_member):
        add_member(group, bob)
        posts = PostService(db_session)
        kept = posts.create_post(group.id, bob.id, "Still here")
        gone = posts.create_post(group.id, bob.id, "Regretted this")
        posts.delete_post(gone.id, bob.id)
        posts.create_comment(kept.id, bob.id, "Replying to myself")

        events = EventService(db_session)
        event = events.create_event(group.id, alice.id, {
            "title": "Picnic",
            "start_time": datetime.utcnow() + timedelta(days=3),
        })
        events.respond_to_event(event.id, bob.id, ParticipationStatus.GOING)

        data = UserService(db_session).export_data(bob.id)

        assert "password_hash" not in data["profile"]
        assert data["profile"]["email"] == "bob@example.com"
        assert [m["group"]["name"] for m in data["memberships"]] == ["Mindfulness"]
        assert {p["content"]: p["is_deleted"] for p in data["posts"]} == {
            "Still here": False,
            "Regretted this": True,
        }
        assert len(data["comments"]) == 1
        assert data["event_responses"][0]["status"] == "GOING"

    def test_export_includes_past_memberships(self, db_session, alice, bob, group, add_member):
        add_member(group, bob)
        MembershipStateMachine(db_session).leave_group(group.id, bob.id)

        [membership] = UserService(db_session).export_data(bob.id)["memberships"]

        assert membership["status"] == "LEFT"
        assert membership["left_at"] is not None


class TestUserGroups:
    def test_lists_only_active_memberships(self, db_session, alice, bob, make_group, add_member):
        first = make_group(alice, name="Mornings")
        second = make_group(alice, name="Evenings")
        add_member(first, bob)
        add_member(second, bob)
        MembershipStateMachine(db_session).leave_group(second.id, bob.id)

        groups = UserService(db_session).list_user_groups(bob.id)

        assert [g["group"].name for g in groups] == ["Mornings"]
        assert groups[0]["role"] == MemberRole.MEMBER
        assert groups[0]["member_count"] == 2
