"""
Tests that prove the group membership invariants.

Each test verifies one rule of the membership state machine.
"""
import pytest

from wellbeing.models.domain import Membership
from wellbeing.models.enums import MemberRole, MembershipStatus
from wellbeing.services.errors import (
    AuthorizationError,
    CapacityError,
    ConflictError,
    InvariantError,
    NotFoundError,
    ValidationError,
)
from wellbeing.services.membership import MembershipStateMachine


class TestGroupCreation:
    """Test group size bounds and the founding facilitator."""

    def test_creator_becomes_active_facilitator(self, db_session, alice):
        """
        INVARIANT: Creating a group makes its creator an ACTIVE facilitator.
        """
        sm = MembershipStateMachine(db_session)
        group = sm.create_group(alice.id, "Mindfulness", 10)

        membership = db_session.query(Membership).filter_by(group_id=group.id, user_id=alice.id).one()
        assert membership.role == MemberRole.FACILITATOR
        assert membership.status == MembershipStatus.ACTIVE
        assert membership.joined_at is not None

    @pytest.mark.parametrize("max_members", [3, 13, 0])
    def test_max_members_out_of_bounds_is_refused(self, db_session, alice, max_members):
        """
        INVARIANT: max_members must stay between 4 and 12.
        """
        sm = MembershipStateMachine(db_session)

        with pytest.raises(ValidationError) as exc_info:
            sm.create_group(alice.id, "Too odd", max_members)

        assert "between 4 and 12" in exc_info.value.message

    @pytest.mark.parametrize("max_members", [4, 12])
    def test_max_members_bounds_are_inclusive(self, db_session, alice, max_members):
        sm = MembershipStateMachine(db_session)
        group = sm.create_group(alice.id, "Edge", max_members)
        assert group.max_members == max_members

    def test_update_enforces_bounds_too(self, db_session, alice, group):
        sm = MembershipStateMachine(db_session)

        with pytest.raises(ValidationError):
            sm.update_group(group.id, alice.id, {"max_members": 20})

        updated = sm.update_group(group.id, alice.id, {"max_members": 6, "description": "Weekly check-ins"})
        assert updated.max_members == 6
        assert updated.description == "Weekly check-ins"

    def test_only_facilitators_update_group(self, db_session, group, bob, add_member):
        add_member(group, bob)
        sm = MembershipStateMachine(db_session)

        with pytest.raises(AuthorizationError):
            sm.update_group(group.id, bob.id, {"name": "Hijacked"})

    def test_deactivated_group_is_not_found(self, db_session, alice, group):
        sm = MembershipStateMachine(db_session)
        sm.deactivate_group(group.id, alice.id)

        with pytest.raises(NotFoundError):
            sm.get_group(group.id, alice.id)


class TestInvitations:
    """Test who can be invited, and when."""

    def test_invite_creates_pending_membership(self, db_session, alice, bob, group):
        sm = MembershipStateMachine(db_session)
        membership = sm.invite(group.id, alice.id, bob.email)

        assert membership.status == MembershipStatus.PENDING
        assert membership.role == MemberRole.MEMBER
        assert membership.invited_by == alice.id
        assert membership.joined_at is None

    def test_invite_email_is_case_insensitive(self, db_session, alice, bob, group):
        sm = MembershipStateMachine(db_session)
        membership = sm.invite(group.id, alice.id, "  BOB@Example.com ")
        assert membership.user_id == bob.id

    def test_member_cannot_invite(self, db_session, group, bob, carol, add_member):
        """
        INVARIANT: Only an ACTIVE facilitator or admin can invite.
        """
        add_member(group, bob)
        sm = MembershipStateMachine(db_session)

        with pytest.raises(AuthorizationError):
            sm.invite(group.id, bob.id, carol.email)

    def test_invite_at_capacity_is_refused(self, db_session, make_user, make_group, add_member, alice):
        """
        INVARIANT: ACTIVE member count never exceeds max_members.
        """
        group = make_group(alice, max_members=4)
        for _ in range(3):
            add_member(group, make_user())
        outsider = make_user()

        sm = MembershipStateMachine(db_session)
        with pytest.raises(CapacityError) as exc_info:
            sm.invite(group.id, alice.id, outsider.email)

        assert exc_info.value.message == "Group is at maximum capacity"

    def test_pending_invitations_do_not_count_towards_capacity(self, db_session, make_user, make_group, alice):
        group = make_group(alice, max_members=4)
        sm = MembershipStateMachine(db_session)

        for _ in range(4):
            sm.invite(group.id, alice.id, make_user().email)

        assert db_session.query(Membership).filter_by(group_id=group.id).count() == 5

    def test_unknown_email_is_not_found(self, db_session, alice, group):
        sm = MembershipStateMachine(db_session)

        with pytest.raises(NotFoundError):
            sm.invite(group.id, alice.id, "nobody@example.com")

    def test_second_invite_conflicts(self, db_session, alice, bob, group):
        sm = MembershipStateMachine(db_session)
        sm.invite(group.id, alice.id, bob.email)

        with pytest.raises(ConflictError):
            sm.invite(group.id, alice.id, bob.email)

    def test_user_who_left_cannot_be_invited_again(self, db_session, alice, bob, group, add_member):
        """
        INVARIANT: LEFT and INACTIVE are terminal; a new invite is a conflict.
        """
        add_member(group, bob)
        sm = MembershipStateMachine(db_session)
        sm.leave_group(group.id, bob.id)

        with pytest.raises(ConflictError):
            sm.invite(group.id, alice.id, bob.email)


class TestAcceptance:
    """Test the PENDING -> ACTIVE transition."""

    def test_accept_activates_membership(self, db_session, alice, bob, group):
        sm = MembershipStateMachine(db_session)
        sm.invite(group.id, alice.id, bob.email)

        membership = sm.accept_invitation(group.id, bob.id)

        assert membership.status == MembershipStatus.ACTIVE
        assert membership.joined_at is not None

    def test_accept_without_invitation_is_not_found(self, db_session, bob, group):
        sm = MembershipStateMachine(db_session)

        with pytest.raises(NotFoundError):
            sm.accept_invitation(group.id, bob.id)

    def test_accept_twice_is_refused(self, db_session, alice, bob, group):
        sm = MembershipStateMachine(db_session)
        sm.invite(group.id, alice.id, bob.email)
        sm.accept_invitation(group.id, bob.id)

        with pytest.raises(ValidationError) as exc_info:
            sm.accept_invitation(group.id, bob.id)

        assert exc_info.value.message == "Invalid invitation status"


class TestLastFacilitator:
    """Test that a group always keeps someone in charge."""

    def test_sole_facilitator_cannot_leave(self, db_session, alice, group):
        """
        INVARIANT: The last ACTIVE facilitator cannot leave; the refusal changes nothing.
        """
        sm = MembershipStateMachine(db_session)

        with pytest.raises(InvariantError) as exc_info:
            sm.leave_group(group.id, alice.id)

        assert "last facilitator" in exc_info.value.message
        membership = db_session.query(Membership).filter_by(group_id=group.id, user_id=alice.id).one()
        db_session.refresh(membership)
        assert membership.status == MembershipStatus.ACTIVE
        assert membership.left_at is None

    def test_facilitator_can_leave_when_another_remains(self, db_session, alice, bob, group, add_member):
        add_member(group, bob, role=MemberRole.ADMIN)
        sm = MembershipStateMachine(db_session)

        membership = sm.leave_group(group.id, alice.id)

        assert membership.status == MembershipStatus.LEFT
        assert membership.left_at is not None

    def test_member_can_always_leave(self, db_session, bob, group, add_member):
        add_member(group, bob)
        sm = MembershipStateMachine(db_session)

        assert sm.leave_group(group.id, bob.id).status == MembershipStatus.LEFT

    def test_leave_without_membership_is_not_found(self, db_session, bob, group):
        sm = MembershipStateMachine(db_session)

        with pytest.raises(NotFoundError):
            sm.leave_group(group.id, bob.id)


class TestRemoval:
    """Test facilitator-driven removal."""

    def test_facilitator_removes_member(self, db_session, alice, bob, group, add_member):
        add_member(group, bob)
        sm = MembershipStateMachine(db_session)

        membership = sm.remove_member(group.id, alice.id, bob.id)

        assert membership.status == MembershipStatus.INACTIVE
        assert membership.left_at is not None

    def test_cannot_remove_yourself(self, db_session, alice, group):
        sm = MembershipStateMachine(db_session)

        with pytest.raises(ValidationError) as exc_info:
            sm.remove_member(group.id, alice.id, alice.id)

        assert "Use leave group instead" in exc_info.value.message

    def test_member_cannot_remove_others(self, db_session, bob, carol, group, add_member):
        add_member(group, bob)
        add_member(group, carol)
        sm = MembershipStateMachine(db_session)

        with pytest.raises(AuthorizationError):
            sm.remove_member(group.id, bob.id, carol.id)

    def test_removal_does_not_protect_facilitators(self, db_session, alice, bob, group, add_member):
        """Removing a facilitator skips the last-facilitator check that leave applies."""
        add_member(group, bob, role=MemberRole.FACILITATOR)
        sm = MembershipStateMachine(db_session)

        membership = sm.remove_member(group.id, bob.id, alice.id)

        assert membership.status == MembershipStatus.INACTIVE


class TestDeactivatedGroup:
    """
    INVARIANT: a deactivated group behaves as if it does not exist.
    No membership transition goes through once the group is gone.
    """

    def test_pending_invitation_cannot_be_accepted(self, db_session, alice, bob, group):
        sm = MembershipStateMachine(db_session)
        invitation = sm.invite(group.id, alice.id, bob.email)
        sm.deactivate_group(group.id, alice.id)

        with pytest.raises(NotFoundError) as exc_info:
            sm.accept_invitation(group.id, bob.id)

        assert exc_info.value.message == "Group not found"
        db_session.refresh(invitation)
        assert invitation.status == MembershipStatus.PENDING

    def test_member_cannot_be_removed(self, db_session, alice, bob, group, add_member):
        membership = add_member(group, bob)
        sm = MembershipStateMachine(db_session)
        sm.deactivate_group(group.id, alice.id)

        with pytest.raises(NotFoundError):
            sm.remove_member(group.id, alice.id, bob.id)

        db_session.refresh(membership)
        assert membership.status == MembershipStatus.ACTIVE

    def test_member_cannot_leave(self, db_session, alice, bob, group, add_member):
        add_member(group, bob)
        sm = MembershipStateMachine(db_session)
        sm.deactivate_group(group.id, alice.id)

        with pytest.raises(NotFoundError):
            sm.leave_group(group.id, bob.id)


class TestMembershipScenario:
    """End-to-end membership lifecycle."""

    def test_alice_invites_bob_who_joins(self, db_session, alice, bob):
        sm = MembershipStateMachine(db_session)

        group = sm.create_group(alice.id, "Mindfulness", 10)
        invitation = sm.invite(group.id, alice.id, bob.email)
        assert invitation.status == MembershipStatus.PENDING

        joined = sm.accept_invitation(group.id, bob.id)
        assert joined.status == MembershipStatus.ACTIVE
        assert joined.role == MemberRole.MEMBER

        detail = sm.get_group(group.id, bob.id)
        assert detail["member_count"] == 2
        assert detail["user_role"] == MemberRole.MEMBER

        members = sm.list_members(group.id, bob.id)
        assert [m.user_id for m in members] == [alice.id, bob.id]
