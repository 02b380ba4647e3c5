from __future__ import annotations

import typing as t

import pytest
from sqlalchemy.orm import Session

from stagegate.model import ActivityAction, NotificationEvent, Project, ProjectID, ProjectStage, ProjectStatus, \
    RedFlagSeverity, User, UserID, UserRole
from stagegate.review import project as project_service
from stagegate.review.error import Forbidden, InvalidInput, InvalidStateTransition, NotFound
from stagegate.storage import notification as notification_storage


class TestCreateProject(object):
    def test_create(self, db_session: Session, gatekeeper: User, lead: User) -> None:
        project = project_service.create_project(
            gatekeeper, name="  Tidal Kite ", lead_id=lead.user_id, cluster="Marine", session=db_session
        )

        assert project.name == "Tidal Kite"
        assert (project.stage, project.status) == (ProjectStage.Stage0, ProjectStatus.Active)
        assert project_service.get_project(project.project_id, session=db_session) == project

        activity = project_service.list_activity(project.project_id, session=db_session)
        assert [a.action for a in activity] == [ActivityAction.ProjectCreated]
        assert activity[0].user_id == gatekeeper.user_id
        assert activity[0].details == {"name": "Tidal Kite", "lead_id": str(lead.user_id), "cluster": "Marine"}

    def test_blank_name(self, db_session: Session, gatekeeper: User, lead: User) -> None:
        with pytest.raises(InvalidInput):
            project_service.create_project(gatekeeper, name="   ", lead_id=lead.user_id, session=db_session)

    def test_unknown_lead(self, db_session: Session, gatekeeper: User) -> None:
        with pytest.raises(InvalidInput):
            project_service.create_project(gatekeeper, name="Orphan", lead_id=UserID(), session=db_session)

    def test_leads_cannot_create(self, db_session: Session, lead: User) -> None:
        with pytest.raises(Forbidden):
            project_service.create_project(lead, name="Mine", lead_id=lead.user_id, session=db_session)


class TestLookup(object):
    def test_missing_project(self, db_session: Session) -> None:
        with pytest.raises(NotFound):
            project_service.get_project(ProjectID(), session=db_session)
        with pytest.raises(NotFound):
            project_service.list_activity(ProjectID(), session=db_session)


class TestUpdateProject(object):
    def test_rename(
        self, db_session: Session, gatekeeper: User, project: Project, outbox: list[dict[str, t.Any]]
    ) -> None:
        updated = project_service.update_project(
            gatekeeper, project.project_id, name=" Solar Skin ", cluster=None, session=db_session
        )

        assert (updated.name, updated.cluster) == ("Solar Skin", None)
        assert (updated.stage, updated.status) == (project.stage, project.status)
        activity = project_service.list_activity(project.project_id, session=db_session)
        assert activity[0].action is ActivityAction.ProjectUpdated
        assert activity[0].details == {"name": "Solar Skin", "cluster": None}
        # only status changes are announced
        assert outbox == []

    def test_status_change_notifies_the_lead(
        self,
        db_session: Session,
        gatekeeper: User,
        lead: User,
        project: Project,
        outbox: list[dict[str, t.Any]],
    ) -> None:
        held = project_service.update_project(
            gatekeeper, project.project_id, status=ProjectStatus.OnHold, session=db_session
        )

        assert held.status is ProjectStatus.OnHold
        activity = project_service.list_activity(project.project_id, session=db_session)
        assert activity[0].details == {"from_status": "ACTIVE", "status": "ON_HOLD"}
        assert [m["to"] for m in outbox] == [lead.email]
        assert outbox[0]["subject"] == "[Stagegate] Solar Membrane: ON_HOLD at Stage 0"
        with db_session.begin():
            inbox = notification_storage.find(user_id=lead.user_id, session=db_session)
        assert inbox[0].event is NotificationEvent.ProjectStatusChanged
        assert inbox[0].message == (
            "Solar Membrane is now at Stage 0 with status ON_HOLD after an update by Gil Gatekeeper."
        )
        assert inbox[0].payload["decision"] is None

    def test_lead_updates_own_project_quietly(
        self, db_session: Session, lead: User, project: Project, outbox: list[dict[str, t.Any]]
    ) -> None:
        updated = project_service.update_project(
            lead, project.project_id, status=ProjectStatus.OnHold, session=db_session
        )

        assert updated.status is ProjectStatus.OnHold
        assert outbox == []

    def test_other_leads_cannot_update(
        self, db_session: Session, user_factory: t.Callable[..., User], project: Project
    ) -> None:
        other = user_factory(role=UserRole.ProjectLead, name="Otto Other")

        with pytest.raises(Forbidden):
            project_service.update_project(other, project.project_id, name="Taken over", session=db_session)

    def test_completion_is_reserved_for_gate_reviews(
        self, db_session: Session, gatekeeper: User, project: Project
    ) -> None:
        with pytest.raises(InvalidInput):
            project_service.update_project(
                gatekeeper, project.project_id, status=ProjectStatus.Completed, session=db_session
            )

    def test_unknown_lead(self, db_session: Session, gatekeeper: User, project: Project) -> None:
        with pytest.raises(InvalidInput):
            project_service.update_project(gatekeeper, project.project_id, lead_id=UserID(), session=db_session)

    def test_finished_projects_stay_finished(
        self, db_session: Session, gatekeeper: User, lead: User, project_factory: t.Callable[..., Project]
    ) -> None:
        stopped = project_factory(lead=lead, status=ProjectStatus.Terminated)

        with pytest.raises(InvalidStateTransition):
            project_service.update_project(
                gatekeeper, stopped.project_id, status=ProjectStatus.Active, session=db_session
            )

    def test_missing_project(self, db_session: Session, gatekeeper: User) -> None:
        with pytest.raises(NotFound):
            project_service.update_project(gatekeeper, ProjectID(), name="Ghost", session=db_session)


class TestUpdateStage(object):
    def test_move(
        self, db_session: Session, gatekeeper: User, lead: User, project: Project, outbox: list[dict[str, t.Any]]
    ) -> None:
        moved = project_service.update_stage(gatekeeper, project.project_id, ProjectStage.Stage2, session=db_session)

        assert (moved.stage, moved.status, moved.review_round) == (ProjectStage.Stage2, ProjectStatus.Active, 1)
        activity = project_service.list_activity(project.project_id, session=db_session)
        assert activity[0].action is ActivityAction.StageUpdated
        assert activity[0].details == {"from_stage": "STAGE_0", "to_stage": "STAGE_2", "review_round": 1}
        assert [m["to"] for m in outbox] == [lead.email]

    def test_same_stage_is_a_no_op(self, db_session: Session, gatekeeper: User, project: Project) -> None:
        unchanged = project_service.update_stage(
            gatekeeper, project.project_id, ProjectStage.Stage0, session=db_session
        )

        assert unchanged == project
        activity = project_service.list_activity(project.project_id, session=db_session)
        assert [a.action for a in activity] == []

    def test_leads_cannot_move_stages(self, db_session: Session, lead: User, project: Project) -> None:
        with pytest.raises(Forbidden):
            project_service.update_stage(lead, project.project_id, ProjectStage.Stage3, session=db_session)


class TestRaiseRedFlag(object):
    def test_flag(
        self,
        db_session: Session,
        reviewers: tuple[User, User],
        lead: User,
        project: Project,
        outbox: list[dict[str, t.Any]],
    ) -> None:
        flagged = project_service.raise_red_flag(
            reviewers[0],
            project.project_id,
            title="Supplier insolvent",
            description="Our only membrane supplier filed for bankruptcy",
            severity=RedFlagSeverity.High,
            session=db_session,
        )

        assert flagged.status is ProjectStatus.RedFlag
        activity = project_service.list_activity(project.project_id, session=db_session)
        assert activity[0].action is ActivityAction.RedFlagRaised
        assert activity[0].user_id == reviewers[0].user_id
        assert activity[0].details == {
            "title": "Supplier insolvent",
            "description": "Our only membrane supplier filed for bankruptcy",
            "severity": "HIGH",
            "from_status": "ACTIVE",
        }
        assert [m["to"] for m in outbox] == [lead.email]

    def test_second_flag_is_recorded(
        self, db_session: Session, gatekeeper: User, project: Project, outbox: list[dict[str, t.Any]]
    ) -> None:
        project_service.raise_red_flag(
            gatekeeper, project.project_id, title="Budget", description="", session=db_session
        )
        del outbox[:]

        again = project_service.raise_red_flag(
            gatekeeper, project.project_id, title="Schedule", description="", session=db_session
        )

        assert again.status is ProjectStatus.RedFlag
        activity = project_service.list_activity(project.project_id, session=db_session)
        flags = {a.details["title"] for a in activity if a.action is ActivityAction.RedFlagRaised}
        assert flags == {"Budget", "Schedule"}
        assert outbox == []

    def test_clear_flag(self, db_session: Session, gatekeeper: User, project: Project) -> None:
        project_service.raise_red_flag(
            gatekeeper, project.project_id, title="Budget", description="", session=db_session
        )

        cleared = project_service.update_project(
            gatekeeper, project.project_id, status=ProjectStatus.Active, session=db_session
        )

        assert cleared.status is ProjectStatus.Active

    def test_blank_title(self, db_session: Session, gatekeeper: User, project: Project) -> None:
        with pytest.raises(InvalidInput):
            project_service.raise_red_flag(
                gatekeeper, project.project_id, title=" ", description="", session=db_session
            )

    def test_researchers_cannot_flag(
        self, db_session: Session, user_factory: t.Callable[..., User], project: Project
    ) -> None:
        researcher = user_factory(role=UserRole.Researcher)

        with pytest.raises(Forbidden):
            project_service.raise_red_flag(
                researcher, project.project_id, title="Hunch", description="", session=db_session
            )
