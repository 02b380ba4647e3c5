"""Tests for decision aggregation, stage transitions and permissions."""

from __future__ import annotations

import datetime

import pytest

from stagegate.model import Decision, Project, ProjectID, ProjectStage, ProjectStatus, User, UserID, UserRole
from stagegate.review.error import Forbidden, InvalidStateTransition
from stagegate.review.permission import can_review, has_permission, Permission, permissions, require_permission
from stagegate.review.session import aggregate_decision
from stagegate.review.stage import next_state, plan_transition, Transition


def _project(stage: ProjectStage, status: ProjectStatus = ProjectStatus.Active) -> Project:
    now = datetime.datetime.now(datetime.UTC)
    return Project(
        project_id=ProjectID(),
        name="Project",
        lead_id=UserID(),
        stage=stage,
        status=status,
        create_time=now,
        update_time=now,
    )


class TestAggregateDecision(object):
    def test_unanimous(self) -> None:
        assert aggregate_decision([Decision.Go, Decision.Go]) is Decision.Go

    @pytest.mark.parametrize(
        "decisions,expected",
        [
            ([Decision.Go, Decision.Recycle], Decision.Recycle),
            ([Decision.Go, Decision.Hold, Decision.Recycle], Decision.Hold),
            ([Decision.Stop, Decision.Go], Decision.Stop),
        ],
    )
    def test_most_severe_wins(self, decisions: list[Decision], expected: Decision) -> None:
        assert aggregate_decision(decisions) is expected

    def test_counts_mapping_ignores_zero_counts(self) -> None:
        assert aggregate_decision({Decision.Go: 3, Decision.Stop: 0}) is Decision.Go

    def test_nothing_to_aggregate(self) -> None:
        with pytest.raises(ValueError):
            aggregate_decision([])


class TestNextState(object):
    @pytest.mark.parametrize(
        "stage,decision,expected",
        [
            (ProjectStage.Stage0, Decision.Go, (ProjectStage.Stage1, ProjectStatus.Active)),
            (ProjectStage.Stage2, Decision.Go, (ProjectStage.Stage3, ProjectStatus.Active)),
            (ProjectStage.Stage3, Decision.Go, (ProjectStage.Stage3, ProjectStatus.Completed)),
            (ProjectStage.Stage1, Decision.Recycle, (ProjectStage.Stage1, ProjectStatus.Active)),
            (ProjectStage.Stage1, Decision.Hold, (ProjectStage.Stage1, ProjectStatus.OnHold)),
            (ProjectStage.Stage1, Decision.Stop, (ProjectStage.Stage1, ProjectStatus.Terminated)),
        ],
    )
    def test_decision_mapping(
        self, stage: ProjectStage, decision: Decision, expected: tuple[ProjectStage, ProjectStatus]
    ) -> None:
        assert next_state(stage, decision) == expected


class TestPlanTransition(object):
    def test_from_current_state(self) -> None:
        project = _project(ProjectStage.Stage1, ProjectStatus.OnHold)

        assert plan_transition(project, ProjectStage.Stage1, Decision.Go) == Transition(
            ProjectStage.Stage1, ProjectStatus.OnHold, ProjectStage.Stage2, ProjectStatus.Active
        )

    @pytest.mark.parametrize("status", [ProjectStatus.Completed, ProjectStatus.Terminated])
    def test_terminal_projects_do_not_move(self, status: ProjectStatus) -> None:
        with pytest.raises(InvalidStateTransition):
            plan_transition(_project(ProjectStage.Stage3, status), ProjectStage.Stage3, Decision.Go)

    def test_stage_must_match(self) -> None:
        with pytest.raises(InvalidStateTransition, match="not Stage 0"):
            plan_transition(_project(ProjectStage.Stage1), ProjectStage.Stage0, Decision.Go)

    @pytest.mark.parametrize(
        "decision,expected_round",
        [(Decision.Recycle, 3), (Decision.Hold, 3), (Decision.Stop, 2)],
    )
    def test_staying_opens_the_next_round(self, decision: Decision, expected_round: int) -> None:
        project = _project(ProjectStage.Stage1).model_copy(update={"review_round": 2})

        transition = plan_transition(project, ProjectStage.Stage1, decision)

        assert (transition.from_round, transition.to_round) == (2, expected_round)

    def test_moving_on_opens_the_given_round(self) -> None:
        project = _project(ProjectStage.Stage1).model_copy(update={"review_round": 2})

        transition = plan_transition(project, ProjectStage.Stage1, Decision.Go, next_stage_round=4)

        assert (transition.to_stage, transition.to_round) == (ProjectStage.Stage2, 4)


class TestPermissions(object):
    def test_admin_has_everything(self) -> None:
        assert permissions(UserRole.Admin) == frozenset(Permission)

    def test_gatekeeper_cannot_manage_users(self) -> None:
        assert has_permission(UserRole.Gatekeeper, Permission.ManageReviewSessions)
        assert not has_permission(UserRole.Gatekeeper, Permission.ManageUsers)

    def test_reviewer_conducts_but_does_not_assign(self) -> None:
        assert has_permission(UserRole.Reviewer, Permission.ConductReviews)
        assert not has_permission(UserRole.Reviewer, Permission.AssignReviewers)

    @pytest.mark.parametrize("role", [UserRole.User, UserRole.Researcher, UserRole.Custom])
    def test_roles_without_permissions(self, role: UserRole) -> None:
        assert permissions(role) == frozenset()
        assert not can_review(role)

    def test_project_lead_is_not_a_reviewer(self) -> None:
        assert not can_review(UserRole.ProjectLead)
        assert can_review(UserRole.Gatekeeper)

    def test_red_flags(self) -> None:
        assert has_permission(UserRole.Reviewer, Permission.RaiseRedFlags)
        assert has_permission(UserRole.ProjectLead, Permission.RaiseRedFlags)
        assert not has_permission(UserRole.Researcher, Permission.RaiseRedFlags)

    def test_require_permission_raises_forbidden(self) -> None:
        now = datetime.datetime.now(datetime.UTC)
        user = User(
            user_id=UserID(),
            email="user@example.com",
            name="Una User",
            role=UserRole.User,
            create_time=now,
            update_time=now,
        )

        with pytest.raises(Forbidden) as exc_info:
            require_permission(user, Permission.ExportReviews, action="export reviews")
        assert exc_info.value.actor_id == user.user_id
