"""Tests for stagegate.storage.evaluation and stagegate.storage.session modules."""

from __future__ import annotations

import datetime
import decimal
import typing as t

import pytest
import sqlalchemy.exc
from sqlalchemy.orm import Session

from stagegate.model import Decision, Evaluation, EvaluationID, Project, ProjectStage, ProjectStatus, User
from stagegate.storage import assignment as assignment_storage
from stagegate.storage import evaluation as evaluation_storage
from stagegate.storage import session as session_storage


@pytest.fixture
def evaluation_factory(db_session: Session, project: Project) -> t.Callable[..., Evaluation]:
    def create_evaluation(
        reviewer: User,
        *,
        stage: ProjectStage = ProjectStage.Stage0,
        review_round: int = 1,
        score: str = "3.00",
        decision: Decision | None = Decision.Go,
        is_completed: bool = True,
    ) -> Evaluation:
        with db_session.begin():
            return evaluation_storage.create(
                project_id=project.project_id,
                stage=stage,
                review_round=review_round,
                reviewer_id=reviewer.user_id,
                scores={"market": 3},
                comments="Reasonable throughout",
                decision=decision,
                weighted_score=decimal.Decimal(score),
                total_score=decimal.Decimal(score),
                is_completed=is_completed,
                submitted_at=datetime.datetime.now(datetime.timezone.utc) if is_completed else None,
                session=db_session,
            )

    return create_evaluation


@pytest.fixture
def assign(db_session: Session, project: Project, gatekeeper: User) -> t.Callable[..., None]:
    def assign_reviewer(reviewer: User, stage: ProjectStage = ProjectStage.Stage0, review_round: int = 1) -> None:
        with db_session.begin():
            assignment_storage.create(
                project_id=project.project_id,
                stage=stage,
                review_round=review_round,
                reviewer_id=reviewer.user_id,
                assigned_by=gatekeeper.user_id,
                session=db_session,
            )

    return assign_reviewer


class TestEvaluationStorage(object):
    def test_get_by_key(
        self,
        db_session: Session,
        project: Project,
        reviewers: tuple[User, User],
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        evaluation = evaluation_factory(reviewers[0])

        with db_session.begin():
            by_id = evaluation_storage.get(evaluation.evaluation_id, session=db_session)
            by_key = evaluation_storage.get(
                project_id=project.project_id,
                stage=ProjectStage.Stage0,
                reviewer_id=reviewers[0].user_id,
                session=db_session,
            )
            missing = evaluation_storage.get(EvaluationID(), session=db_session)

        assert by_id == by_key == evaluation
        assert by_id is not None
        assert by_id.scores == {"market": 3}
        assert by_id.total_score == decimal.Decimal("3.00")
        assert missing is None

    def test_one_evaluation_per_reviewer_and_stage(
        self, db_session: Session, reviewers: tuple[User, User], evaluation_factory: t.Callable[..., Evaluation]
    ) -> None:
        evaluation_factory(reviewers[0])
        evaluation_factory(reviewers[0], stage=ProjectStage.Stage1)

        with pytest.raises(sqlalchemy.exc.IntegrityError):
            evaluation_factory(reviewers[0])

    def test_update_draft(
        self, db_session: Session, reviewers: tuple[User, User], evaluation_factory: t.Callable[..., Evaluation]
    ) -> None:
        draft = evaluation_factory(reviewers[0], decision=None, is_completed=False)

        with db_session.begin():
            updated = evaluation_storage.update(
                draft.evaluation_id, scores={"market": 5}, decision=Decision.Hold, session=db_session
            )

        assert updated.scores == {"market": 5}
        assert updated.decision is Decision.Hold
        assert updated.comments == draft.comments

    def test_submitted_evaluations_cannot_be_updated(
        self, db_session: Session, reviewers: tuple[User, User], evaluation_factory: t.Callable[..., Evaluation]
    ) -> None:
        submitted = evaluation_factory(reviewers[0])

        with pytest.raises(KeyError):
            with db_session.begin():
                evaluation_storage.update(submitted.evaluation_id, scores={"market": 1}, session=db_session)

    def test_find_completed(
        self, db_session: Session, reviewers: tuple[User, User], evaluation_factory: t.Callable[..., Evaluation]
    ) -> None:
        done = evaluation_factory(reviewers[0])
        evaluation_factory(reviewers[1], is_completed=False)

        with db_session.begin():
            result = evaluation_storage.find(is_completed=True, session=db_session)

        assert [e.evaluation_id for e in result] == [done.evaluation_id]


class TestSessionStorage(object):
    def test_counts_only_assigned_reviewers(
        self,
        db_session: Session,
        project: Project,
        reviewers: tuple[User, User],
        user_factory: t.Callable[..., User],
        assign: t.Callable[..., None],
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        """An evaluation from someone who is not on the panel does not count toward the session."""
        rita, rob = reviewers
        stray = user_factory()
        assign(rita)
        assign(rob)
        evaluation_factory(rita, score="4.50", decision=Decision.Go)
        evaluation_factory(rob, score="2.00", decision=Decision.Recycle, is_completed=False)
        evaluation_factory(stray, score="1.00", decision=Decision.Stop)

        with db_session.begin():
            counts = session_storage.counts(project.project_id, ProjectStage.Stage0, session=db_session)
            decisions = session_storage.decisions(project.project_id, ProjectStage.Stage0, session=db_session)

        assert counts.total == 2
        assert counts.completed == 1
        assert counts.average_score == decimal.Decimal("4.50")
        assert decisions == {Decision.Go: 1}

    def test_average_of_completed_reviews(
        self,
        db_session: Session,
        project: Project,
        reviewers: tuple[User, User],
        assign: t.Callable[..., None],
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        rita, rob = reviewers
        assign(rita)
        assign(rob)
        evaluation_factory(rita, score="4.50")
        evaluation_factory(rob, score="2.00", decision=Decision.Recycle)

        with db_session.begin():
            counts = session_storage.counts(project.project_id, ProjectStage.Stage0, session=db_session)
            decisions = session_storage.decisions(project.project_id, ProjectStage.Stage0, session=db_session)

        assert (counts.total, counts.completed) == (2, 2)
        assert counts.average_score == decimal.Decimal("3.25")
        assert decisions == {Decision.Go: 1, Decision.Recycle: 1}

    def test_empty_session(self, db_session: Session, project: Project) -> None:
        with db_session.begin():
            counts = session_storage.counts(project.project_id, ProjectStage.Stage2, session=db_session)

        assert counts == (0, 0, decimal.Decimal("0.00"))

    def test_approval_is_one_time(self, db_session: Session, project: Project, gatekeeper: User) -> None:
        values: dict[str, t.Any] = dict(
            project_id=project.project_id,
            stage=ProjectStage.Stage0,
            approved_by=gatekeeper.user_id,
            decision=Decision.Go,
            average_score=decimal.Decimal("4.00"),
            from_status=ProjectStatus.Active,
            to_stage=ProjectStage.Stage1,
            to_status=ProjectStatus.Active,
            approved_at=datetime.datetime.now(datetime.timezone.utc),
        )
        with db_session.begin():
            approval = session_storage.create_approval(**values, session=db_session)

        assert approval.decision is Decision.Go
        assert approval.to_stage is ProjectStage.Stage1
        with pytest.raises(sqlalchemy.exc.IntegrityError):
            with db_session.begin():
                session_storage.create_approval(**{**values, "decision": Decision.Stop}, session=db_session)
        with db_session.begin():
            kept = session_storage.get_approval(project.project_id, ProjectStage.Stage0, session=db_session)
        assert kept == approval

    def test_rounds_are_counted_apart(
        self,
        db_session: Session,
        project: Project,
        reviewers: tuple[User, User],
        assign: t.Callable[..., None],
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        rita, rob = reviewers
        for reviewer in reviewers:
            assign(reviewer)
            evaluation_factory(reviewer, score="2.00", decision=Decision.Recycle)
        assign(rita, review_round=2)
        evaluation_factory(rita, review_round=2, score="5.00", decision=Decision.Go)
        assign(rob, review_round=2)

        with db_session.begin():
            first = session_storage.counts(project.project_id, ProjectStage.Stage0, session=db_session)
            second = session_storage.counts(
                project.project_id, ProjectStage.Stage0, review_round=2, session=db_session
            )
            decisions = session_storage.decisions(
                project.project_id, ProjectStage.Stage0, review_round=2, session=db_session
            )
            latest = assignment_storage.latest_round(project.project_id, ProjectStage.Stage0, session=db_session)
            untouched = assignment_storage.latest_round(project.project_id, ProjectStage.Stage1, session=db_session)

        assert first == (2, 2, decimal.Decimal("2.00"))
        assert second == (2, 1, decimal.Decimal("5.00"))
        assert decisions == {Decision.Go: 1}
        assert (latest, untouched) == (2, None)

    def test_each_round_is_approved_once(self, db_session: Session, project: Project, gatekeeper: User) -> None:
        values: dict[str, t.Any] = dict(
            project_id=project.project_id,
            stage=ProjectStage.Stage0,
            approved_by=gatekeeper.user_id,
            average_score=decimal.Decimal("2.50"),
            from_status=ProjectStatus.Active,
            to_stage=ProjectStage.Stage0,
            to_status=ProjectStatus.Active,
        )
        now = datetime.datetime.now(datetime.timezone.utc)
        with db_session.begin():
            session_storage.create_approval(
                **values, decision=Decision.Recycle, review_round=1, approved_at=now, session=db_session
            )
            session_storage.create_approval(
                **{**values, "to_stage": ProjectStage.Stage1},
                decision=Decision.Go,
                review_round=2,
                approved_at=now + datetime.timedelta(days=7),
                session=db_session,
            )

        with db_session.begin():
            history = session_storage.find_approvals(project.project_id, session=db_session)
            latest = session_storage.latest_approved_round(project.project_id, ProjectStage.Stage0, session=db_session)
            elsewhere = session_storage.latest_approved_round(
                project.project_id, ProjectStage.Stage1, session=db_session
            )

        assert [(a.review_round, a.decision) for a in history] == [(1, Decision.Recycle), (2, Decision.Go)]
        assert (latest, elsewhere) == (2, None)
