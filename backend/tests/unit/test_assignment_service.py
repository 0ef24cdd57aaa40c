"""Unit tests for AssignmentService: assign, reassign, release and load balancing."""

import pytest

from hakikisha.errors import AssignmentConflict, InvalidTransition, PermissionDenied, ValidationError
from hakikisha.schemas.claim import ClaimStatus
from hakikisha.schemas.notification import NotificationType
from hakikisha.schemas.review import AssignmentAction


class TestAssign:
    def test_assign_pending_claim_moves_to_human_review(self, wf, make_claim, fact_checker):
        claim = make_claim()

        result = wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, fact_checker.id)

        assert result.assigned_fact_checker_id == fact_checker.id
        assert result.status == ClaimStatus.HUMAN_REVIEW

    def test_assign_ai_approved_claim(self, wf, make_claim, fact_checker):
        claim = make_claim(status="ai_approved")
        result = wf.assignment.apply(claim.id, "assign", fact_checker.id)
        assert result.status == ClaimStatus.HUMAN_REVIEW

    def test_same_holder_is_a_no_op(self, wf, make_claim, fact_checker):
        claim = make_claim(status="human_review")
        first = wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, fact_checker.id)
        again = wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, fact_checker.id)
        assert again.assigned_fact_checker_id == first.assigned_fact_checker_id

    def test_other_holder_conflicts(self, wf, make_claim, fact_checker, second_fact_checker):
        claim = make_claim(status="human_review")
        wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, fact_checker.id)

        with pytest.raises(AssignmentConflict) as exc:
            wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, second_fact_checker.id)

        assert exc.value.holder_id == fact_checker.id
        wf.db.refresh(claim)
        assert claim.assigned_fact_checker_id == fact_checker.id

    def test_plain_user_cannot_be_assigned(self, wf, make_claim, make_user):
        claim = make_claim()
        reader = make_user("wanjiku@example.com")
        with pytest.raises(PermissionDenied):
            wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, reader.id)

    def test_inactive_fact_checker_cannot_be_assigned(self, wf, make_claim, make_user):
        claim = make_claim()
        retired = make_user("otieno@example.com", role="fact_checker", is_active=False)
        with pytest.raises(PermissionDenied):
            wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, retired.id)

    def test_terminal_claim_cannot_be_assigned(self, wf, make_claim, fact_checker):
        claim = make_claim(status="published")
        with pytest.raises(InvalidTransition):
            wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, fact_checker.id)

    def test_fact_checker_cannot_assign_someone_else(self, wf, make_claim, fact_checker, second_fact_checker):
        claim = make_claim()
        with pytest.raises(PermissionDenied):
            wf.assignment.apply(
                claim.id, AssignmentAction.ASSIGN, second_fact_checker.id, actor_id=fact_checker.id
            )

    def test_admin_can_assign_others(self, wf, make_claim, fact_checker, admin):
        claim = make_claim()
        result = wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, fact_checker.id, actor_id=admin.id)
        assert result.assigned_fact_checker_id == fact_checker.id

    def test_assignee_is_notified(self, wf, make_claim, fact_checker):
        claim = make_claim()
        wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, fact_checker.id)

        [note] = wf.notifier.list_for_user(fact_checker.id)
        assert note.type == NotificationType.CLAIM_ASSIGNED


class TestAutoPick:
    def test_least_loaded_fact_checker_wins(self, wf, make_claim, fact_checker, second_fact_checker):
        make_claim("Busy claim one", status="human_review", assigned_fact_checker_id=fact_checker.id)
        claim = make_claim("Unassigned claim")

        result = wf.assignment.apply(claim.id, AssignmentAction.ASSIGN)

        assert result.assigned_fact_checker_id == second_fact_checker.id

    def test_ties_go_to_lowest_id(self, wf, make_claim, fact_checker, second_fact_checker):
        claim = make_claim()
        result = wf.assignment.apply(claim.id, AssignmentAction.ASSIGN)
        assert result.assigned_fact_checker_id == min(fact_checker.id, second_fact_checker.id)

    def test_terminal_claims_do_not_count_as_load(self, wf, make_claim, fact_checker, second_fact_checker):
        for i in range(3):
            make_claim(f"Old claim {i}", status="published", assigned_fact_checker_id=fact_checker.id)
        make_claim("Open claim", status="human_review", assigned_fact_checker_id=second_fact_checker.id)
        claim = make_claim("New claim")

        assert wf.assignment.apply(claim.id, AssignmentAction.ASSIGN).assigned_fact_checker_id == fact_checker.id

    def test_admins_are_not_auto_picked(self, wf, make_claim, admin):
        claim = make_claim()
        with pytest.raises(ValidationError):
            wf.assignment.apply(claim.id, AssignmentAction.ASSIGN)


class TestReassignAndRelease:
    def test_reassign_picks_someone_else(self, wf, make_claim, fact_checker, second_fact_checker):
        claim = make_claim(status="human_review", assigned_fact_checker_id=fact_checker.id)

        result = wf.assignment.apply(claim.id, AssignmentAction.REASSIGN)

        assert result.assigned_fact_checker_id == second_fact_checker.id

    def test_reassign_to_named_fact_checker(self, wf, make_claim, fact_checker, second_fact_checker, admin):
        claim = make_claim(status="human_review", assigned_fact_checker_id=fact_checker.id)
        result = wf.assignment.apply(
            claim.id, AssignmentAction.REASSIGN, second_fact_checker.id, actor_id=admin.id
        )
        assert result.assigned_fact_checker_id == second_fact_checker.id

    def test_reassign_requires_admin_actor(self, wf, make_claim, fact_checker, second_fact_checker):
        claim = make_claim(status="human_review", assigned_fact_checker_id=fact_checker.id)
        with pytest.raises(PermissionDenied):
            wf.assignment.apply(claim.id, AssignmentAction.REASSIGN, actor_id=second_fact_checker.id)

    def test_reassign_closes_open_session(self, wf, make_claim, fact_checker, second_fact_checker):
        claim = make_claim(status="human_review")
        wf.assignment.apply(claim.id, AssignmentAction.ASSIGN, fact_checker.id)
        session = wf.review.start_session(claim.id, fact_checker.id)

        result = wf.assignment.apply(claim.id, AssignmentAction.REASSIGN, second_fact_checker.id)

        assert result.status == ClaimStatus.HUMAN_REVIEW
        closed = wf.sessions.get(session.id)
        assert closed.ended_at is not None
        assert closed.outcome == "released"

    def test_release_by_assignee(self, wf, make_claim, fact_checker):
        claim = make_claim(status="human_review", assigned_fact_checker_id=fact_checker.id)
        result = wf.assignment.apply(claim.id, AssignmentAction.RELEASE, actor_id=fact_checker.id)
        assert result.assigned_fact_checker_id is None
        assert result.status == ClaimStatus.HUMAN_REVIEW

    def test_release_by_other_fact_checker_denied(self, wf, make_claim, fact_checker, second_fact_checker):
        claim = make_claim(status="human_review", assigned_fact_checker_id=fact_checker.id)
        with pytest.raises(PermissionDenied):
            wf.assignment.apply(claim.id, AssignmentAction.RELEASE, actor_id=second_fact_checker.id)

    def test_release_by_admin(self, wf, make_claim, fact_checker, admin):
        claim = make_claim(status="human_review", assigned_fact_checker_id=fact_checker.id)
        result = wf.assignment.apply(claim.id, AssignmentAction.RELEASE, actor_id=admin.id)
        assert result.assigned_fact_checker_id is None


class TestAssignmentsFor:
    def test_lists_open_work_only(self, wf, make_claim, fact_checker):
        open_claim = make_claim("Open", status="human_review", assigned_fact_checker_id=fact_checker.id)
        make_claim("Done", status="published", assigned_fact_checker_id=fact_checker.id)

        assert [c.id for c in wf.assignment.assignments_for(fact_checker.id)] == [open_claim.id]
