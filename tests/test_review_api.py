"""Tests for the gate review API: criteria, projects, assignments, evaluations and sessions."""

from __future__ import annotations

import decimal
import typing as t

import pytest
from fastapi.testclient import TestClient

from stagegate.model import Project, ProjectID, User, UserRole

AuthHeader = t.Callable[[User], dict[str, str]]


def stage_url(project: Project, stage: str = "STAGE_0") -> str:
    return f"/api/projects/{project.project_id}/stages/{stage}"


def full_scores(value: int) -> dict[str, int]:
    return {
        criterion_id: value
        for criterion_id in (
            "strategic_alignment",
            "technical_feasibility",
            "financial_viability",
            "resource_readiness",
            "risk_compliance",
            "stakeholder_support",
            "business_development",
        )
    }


@pytest.fixture
def assigned(
    client: TestClient, auth_header: AuthHeader, project: Project, gatekeeper: User, reviewers: tuple[User, User]
) -> Project:
    response = client.post(
        f"{stage_url(project)}/assignments",
        json={"reviewer_ids": [str(r.user_id) for r in reviewers]},
        headers=auth_header(gatekeeper),
    )
    assert response.status_code == 201
    return project


class TestCriteria:
    """Tests for GET /api/criteria."""

    def test_lists_configured_criteria(self, client: TestClient, auth_header: AuthHeader, lead: User) -> None:
        response = client.get("/api/criteria", headers=auth_header(lead))

        assert response.status_code == 200
        data = response.json()
        assert data["total_weight"] == 100
        assert [c["criterion_id"] for c in data["criteria"]] == list(full_scores(0))
        assert set(data["criteria"][0]["guidelines"]) == {"excellent", "average", "poor"}

    def test_requires_authentication(self, client: TestClient) -> None:
        assert client.get("/api/criteria").status_code == 401


class TestProjects:
    """Tests for /api/projects."""

    def test_create_and_get(self, client: TestClient, auth_header: AuthHeader, gatekeeper: User, lead: User) -> None:
        response = client.post(
            "/api/projects",
            json={"name": "Tidal Kite", "lead_id": str(lead.user_id), "cluster": "Marine"},
            headers=auth_header(gatekeeper),
        )

        assert response.status_code == 201
        created = response.json()
        assert created["stage"] == "STAGE_0"
        assert created["status"] == "ACTIVE"

        fetched = client.get(f"/api/projects/{created['project_id']}", headers=auth_header(lead))
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "Tidal Kite"

        activity = client.get(f"/api/projects/{created['project_id']}/activity", headers=auth_header(lead))
        assert [a["action"] for a in activity.json()["activity"]] == ["PROJECT_CREATED"]

    def test_reviewers_cannot_create_projects(
        self, client: TestClient, auth_header: AuthHeader, reviewers: tuple[User, User], lead: User
    ) -> None:
        response = client.post(
            "/api/projects",
            json={"name": "Tidal Kite", "lead_id": str(lead.user_id)},
            headers=auth_header(reviewers[0]),
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden", "detail": "Not authorized to perform this action"}

    def test_unknown_project(self, client: TestClient, auth_header: AuthHeader, lead: User) -> None:
        response = client.get(f"/api/projects/{ProjectID()}", headers=auth_header(lead))

        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_malformed_project_id(self, client: TestClient, auth_header: AuthHeader, lead: User) -> None:
        response = client.get("/api/projects/not-an-id", headers=auth_header(lead))

        assert response.status_code == 422

    def test_update(
        self, client: TestClient, auth_header: AuthHeader, project: Project, gatekeeper: User, lead: User
    ) -> None:
        url = f"/api/projects/{project.project_id}"

        renamed = client.patch(url, json={"name": "Solar Skin"}, headers=auth_header(gatekeeper))
        assert renamed.status_code == 200
        assert (renamed.json()["name"], renamed.json()["cluster"]) == ("Solar Skin", "Energy")

        cleared = client.patch(url, json={"cluster": None, "status": "ON_HOLD"}, headers=auth_header(lead))
        assert cleared.status_code == 200
        assert (cleared.json()["cluster"], cleared.json()["status"]) == (None, "ON_HOLD")

        finished = client.patch(url, json={"status": "COMPLETED"}, headers=auth_header(gatekeeper))
        assert finished.status_code == 422

    def test_set_stage(self, client: TestClient, auth_header: AuthHeader, project: Project, gatekeeper: User) -> None:
        response = client.post(
            f"/api/projects/{project.project_id}/stage", json={"stage": "STAGE_2"}, headers=auth_header(gatekeeper)
        )

        assert response.status_code == 200
        assert (response.json()["stage"], response.json()["review_round"]) == ("STAGE_2", 1)

    def test_red_flag(
        self, client: TestClient, auth_header: AuthHeader, project: Project, reviewers: tuple[User, User]
    ) -> None:
        url = f"/api/projects/{project.project_id}/red-flags"

        response = client.post(
            url, json={"title": "Supplier insolvent", "severity": "CRITICAL"}, headers=auth_header(reviewers[0])
        )

        assert response.status_code == 201
        assert response.json()["status"] == "RED_FLAG"
        activity = client.get(
            f"/api/projects/{project.project_id}/activity", headers=auth_header(reviewers[0])
        ).json()["activity"]
        assert activity[0]["action"] == "RED_FLAG_RAISED"
        assert activity[0]["details"]["severity"] == "CRITICAL"
        assert client.post(url, json={"title": ""}, headers=auth_header(reviewers[0])).status_code == 422


class TestAssignments:
    """Tests for /api/projects/{project_id}/stages/{stage}/assignments."""

    def test_assign_and_list(
        self,
        client: TestClient,
        auth_header: AuthHeader,
        assigned: Project,
        gatekeeper: User,
        reviewers: tuple[User, User],
    ) -> None:
        response = client.get(f"{stage_url(assigned)}/assignments", headers=auth_header(gatekeeper))

        assert response.status_code == 200
        assignments = response.json()["assignments"]
        assert [a["reviewer_id"] for a in assignments] == [str(r.user_id) for r in reviewers]
        assert {a["status"] for a in assignments} == {"PENDING"}

    def test_reassigning_creates_nothing(
        self,
        client: TestClient,
        auth_header: AuthHeader,
        assigned: Project,
        gatekeeper: User,
        reviewers: tuple[User, User],
    ) -> None:
        response = client.post(
            f"{stage_url(assigned)}/assignments",
            json={"reviewer_ids": [str(reviewers[0].user_id)]},
            headers=auth_header(gatekeeper),
        )

        assert response.status_code == 201
        assert response.json()["assignments"] == []

    def test_ineligible_reviewer(
        self, client: TestClient, auth_header: AuthHeader, project: Project, gatekeeper: User, lead: User
    ) -> None:
        response = client.post(
            f"{stage_url(project)}/assignments",
            json={"reviewer_ids": [str(lead.user_id)]},
            headers=auth_header(gatekeeper),
        )

        assert response.status_code == 409
        assert response.json()["reviewer_ids"] == [str(lead.user_id)]

    def test_empty_reviewer_list(
        self, client: TestClient, auth_header: AuthHeader, project: Project, gatekeeper: User
    ) -> None:
        response = client.post(
            f"{stage_url(project)}/assignments", json={"reviewer_ids": []}, headers=auth_header(gatekeeper)
        )

        assert response.status_code == 422

    def test_unknown_stage(self, client: TestClient, auth_header: AuthHeader, project: Project, gatekeeper: User) -> None:
        response = client.get(f"{stage_url(project, 'STAGE_9')}/assignments", headers=auth_header(gatekeeper))

        assert response.status_code == 422


class TestEvaluations:
    """Tests for evaluation preview, drafts and submission."""

    def test_preview(self, client: TestClient, auth_header: AuthHeader, reviewers: tuple[User, User]) -> None:
        response = client.post(
            "/api/evaluations/preview",
            json={"scores": {"strategic_alignment": 5}, "comments": "short"},
            headers=auth_header(reviewers[0]),
        )

        assert response.status_code == 200
        data = response.json()
        # unscored criteria contribute nothing: 5 x 22%
        assert decimal.Decimal(data["weighted_score"]) == decimal.Decimal("1.10")
        assert not data["validation"]["is_valid"]
        assert data["validation"]["errors"][0].startswith("Please score all criteria: ")
        assert "Review comments must be at least 10 characters long" in data["validation"]["errors"]
        assert "Please select a gate decision" in data["validation"]["errors"]

    def test_preview_rejects_out_of_range_scores(
        self, client: TestClient, auth_header: AuthHeader, reviewers: tuple[User, User]
    ) -> None:
        response = client.post(
            "/api/evaluations/preview", json={"scores": {"strategic_alignment": 6}}, headers=auth_header(reviewers[0])
        )

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidInput"

    def test_draft_then_submit(
        self, client: TestClient, auth_header: AuthHeader, assigned: Project, reviewers: tuple[User, User]
    ) -> None:
        headers = auth_header(reviewers[0])
        url = f"{stage_url(assigned)}/evaluation"

        draft = client.put(url, json={"scores": {"strategic_alignment": 3}}, headers=headers)
        assert draft.status_code == 200
        assert draft.json()["is_completed"] is False

        submitted = client.post(
            f"{url}/submit",
            json={"scores": full_scores(4), "comments": "Consistent, well-argued case", "decision": "GO"},
            headers=headers,
        )
        assert submitted.status_code == 200
        assert submitted.json()["is_completed"] is True
        assert submitted.json()["evaluation_id"] == draft.json()["evaluation_id"]
        assert decimal.Decimal(submitted.json()["total_score"]) == decimal.Decimal("4.00")

        fetched = client.get(url, headers=headers)
        assert fetched.json()["decision"] == "GO"

        again = client.post(
            f"{url}/submit",
            json={"scores": full_scores(1), "comments": "Changed my mind entirely", "decision": "STOP"},
            headers=headers,
        )
        assert again.status_code == 409

    def test_invalid_submission_lists_every_error(
        self, client: TestClient, auth_header: AuthHeader, assigned: Project, reviewers: tuple[User, User]
    ) -> None:
        response = client.post(
            f"{stage_url(assigned)}/evaluation/submit",
            json={"scores": {"strategic_alignment": 4}, "comments": "meh"},
            headers=auth_header(reviewers[0]),
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "ValidationFailed"
        assert len(body["errors"]) == 3

    def test_unassigned_reviewer(
        self,
        client: TestClient,
        auth_header: AuthHeader,
        project: Project,
        reviewers: tuple[User, User],
    ) -> None:
        response = client.put(
            f"{stage_url(project)}/evaluation", json={"scores": {"strategic_alignment": 3}}, headers=auth_header(reviewers[0])
        )

        assert response.status_code == 403

    def test_reading_another_reviewers_evaluation(
        self,
        client: TestClient,
        auth_header: AuthHeader,
        assigned: Project,
        reviewers: tuple[User, User],
        gatekeeper: User,
        user_factory: t.Callable[..., User],
    ) -> None:
        rita = reviewers[0]
        client.put(f"{stage_url(assigned)}/evaluation", json={"scores": {"strategic_alignment": 3}}, headers=auth_header(rita))
        url = f"{stage_url(assigned)}/evaluation?reviewer_id={rita.user_id}"

        assert client.get(url, headers=auth_header(gatekeeper)).status_code == 200
        assert client.get(url, headers=auth_header(reviewers[1])).status_code == 200
        assert client.get(url, headers=auth_header(user_factory(role=UserRole.User))).status_code == 403


class TestSessions:
    """Tests for /api/projects/{project_id}/stages/{stage}/session."""

    def submit(self, client: TestClient, headers: dict[str, str], project: Project, value: int, decision: str) -> None:
        response = client.post(
            f"{stage_url(project)}/evaluation/submit",
            json={"scores": full_scores(value), "comments": "Considered opinion here", "decision": decision},
            headers=headers,
        )
        assert response.status_code == 200

    def test_session_progress_and_approval(
        self,
        client: TestClient,
        auth_header: AuthHeader,
        assigned: Project,
        reviewers: tuple[User, User],
        gatekeeper: User,
    ) -> None:
        url = f"{stage_url(assigned)}/session"
        self.submit(client, auth_header(reviewers[0]), assigned, 5, "GO")

        partial = client.get(url, headers=auth_header(gatekeeper)).json()
        assert partial["state"] == "IN_PROGRESS"
        assert (partial["total"], partial["completed"], partial["pending"]) == (2, 1, 1)
        assert decimal.Decimal(partial["completion_rate"]) == decimal.Decimal("0.50")

        early = client.post(f"{url}/approve", json={}, headers=auth_header(gatekeeper))
        assert early.status_code == 409
        assert early.json()["missing"] == 1

        self.submit(client, auth_header(reviewers[1]), assigned, 4, "GO")
        approved = client.post(f"{url}/approve", json={"comments": "Proceed"}, headers=auth_header(gatekeeper))

        assert approved.status_code == 200
        data = approved.json()
        assert data["state"] == "APPROVED"
        assert data["approval"]["decision"] == "GO"
        assert decimal.Decimal(data["approval"]["average_score"]) == decimal.Decimal("4.50")
        assert data["approval"]["to_stage"] == "STAGE_1"
        project = client.get(f"/api/projects/{assigned.project_id}", headers=auth_header(gatekeeper)).json()
        assert project["stage"] == "STAGE_1"

    def test_empty_session(self, client: TestClient, auth_header: AuthHeader, project: Project, gatekeeper: User) -> None:
        url = f"{stage_url(project)}/session"

        assert client.get(url, headers=auth_header(gatekeeper)).json()["state"] == "NO_REVIEWERS"
        response = client.post(f"{url}/approve", json={}, headers=auth_header(gatekeeper))
        assert response.status_code == 409
        assert response.json()["missing"] == 0

    def test_override_decision(
        self,
        client: TestClient,
        auth_header: AuthHeader,
        assigned: Project,
        reviewers: tuple[User, User],
        gatekeeper: User,
    ) -> None:
        for reviewer in reviewers:
            self.submit(client, auth_header(reviewer), assigned, 5, "GO")

        response = client.post(
            f"{stage_url(assigned)}/session/approve",
            json={"final_decision": "STOP", "comments": "Strategy changed"},
            headers=auth_header(gatekeeper),
        )

        assert response.status_code == 200
        assert response.json()["approval"]["to_status"] == "TERMINATED"

    def test_recycled_stage_is_reviewed_again(
        self,
        client: TestClient,
        auth_header: AuthHeader,
        assigned: Project,
        reviewers: tuple[User, User],
        gatekeeper: User,
    ) -> None:
        url = f"{stage_url(assigned)}/session"
        for reviewer in reviewers:
            self.submit(client, auth_header(reviewer), assigned, 3, "RECYCLE")
        recycled = client.post(f"{url}/approve", json={}, headers=auth_header(gatekeeper)).json()
        assert (recycled["review_round"], recycled["approval"]["decision"]) == (1, "RECYCLE")

        reopened = client.get(url, headers=auth_header(gatekeeper)).json()
        assert (reopened["review_round"], reopened["state"]) == (2, "NO_REVIEWERS")
        response = client.post(
            f"{stage_url(assigned)}/assignments",
            json={"reviewer_ids": [str(reviewers[0].user_id)]},
            headers=auth_header(gatekeeper),
        )
        assert [a["review_round"] for a in response.json()["assignments"]] == [2]
        self.submit(client, auth_header(reviewers[0]), assigned, 5, "GO")
        approved = client.post(f"{url}/approve", json={}, headers=auth_header(gatekeeper)).json()

        assert (approved["review_round"], approved["approval"]["to_stage"]) == (2, "STAGE_1")
        earlier = client.get(url, params={"round": 1}, headers=auth_header(gatekeeper)).json()
        assert earlier["approval"]["decision"] == "RECYCLE"
        assert earlier["total"] == 2
        first_panel = client.get(
            f"{stage_url(assigned)}/assignments", params={"round": 1}, headers=auth_header(gatekeeper)
        ).json()["assignments"]
        assert len(first_panel) == 2
        assert client.get(url, params={"round": 0}, headers=auth_header(gatekeeper)).status_code == 422
