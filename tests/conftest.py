"""Pytest fixtures for Stagegate tests.

The Test environment runs on an in-memory SQLite database shared by every
session the container hands out. Tables are created before each test and
dropped after it, so every test starts from an empty database.

Usage:
    def test_create_project(db_session: Session, user_factory, project_factory):
        lead = user_factory(role=UserRole.ProjectLead)
        project = project_factory(lead=lead)
"""

from __future__ import annotations

import itertools
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
from dependency_injector import providers
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import stagegate
from stagegate.core import StagegateContainer
from stagegate.model import Criterion, DeploymentEnvironment, Project, ProjectStage, ProjectStatus, User, UserRole
from stagegate.review.catalog import CriteriaCatalog
from stagegate.storage import project as project_storage
from stagegate.storage import user as user_storage
from stagegate.storage.table import metadata

TEST_PASSWORD = "password123"


@pytest.fixture(scope="session")
def container() -> t.Generator[StagegateContainer]:
    """Boot the DI container once for the test session, in the Test environment."""
    # imported before boot so that boot wires the route modules
    import stagegate.web.stagegate.main  # noqa: F401

    ct = StagegateContainer()
    root = Path(os.path.dirname(stagegate.__file__)).parent

    StagegateContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )

    yield ct

    ct.shutdown_resources()


@pytest.fixture(autouse=True)
def database(container: StagegateContainer) -> t.Generator[None]:
    engine = container.storage().persistent().engine()
    metadata.create_all(engine)
    yield
    metadata.drop_all(engine)


@pytest.fixture
def db_session(container: StagegateContainer) -> t.Generator[Session]:
    """A session like the ones the application gets: transactions are opened explicitly."""
    session = container.storage().persistent().session()
    yield session
    session.close()


@pytest.fixture(scope="session")
def app(container: StagegateContainer) -> FastAPI:
    from stagegate.core.config.web import StagegateWebSettings
    from stagegate.web.stagegate.main import _create_app  # pyright: ignore[reportPrivateUsage]

    return _create_app(
        config=StagegateWebSettings(**container.config.web.stagegate()),
        env=DeploymentEnvironment.Test,
        root_path=t.cast(Path, container.root()),
    )


@pytest.fixture
def client(app: FastAPI) -> t.Generator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


class RecordingSender(object):
    """Collects outgoing email instead of sending it."""

    def __init__(self):
        self.sent: list[dict[str, t.Any]] = []

    def send(self, *, to: str, to_name: str | None, subject: str, html: str) -> None:
        self.sent.append({"to": to, "to_name": to_name, "subject": subject, "html": html})


class FailingSender(object):
    def send(self, *, to: str, to_name: str | None, subject: str, html: str) -> None:
        raise ConnectionRefusedError("mail relay is down")


@pytest.fixture
def outbox(container: StagegateContainer) -> t.Generator[list[dict[str, t.Any]]]:
    """Email sent during the test, in order."""
    sender = RecordingSender()
    with container.notification.sender.override(providers.Object(sender)):
        yield sender.sent


_sequence = itertools.count(1)


@pytest.fixture
def user_factory(db_session: Session) -> t.Callable[..., User]:
    """Create users; every user gets TEST_PASSWORD and a unique email unless one is given."""

    def create_user(
        role: UserRole = UserRole.Reviewer,
        name: str | None = None,
        email: str | None = None,
        department: str | None = None,
    ) -> User:
        n = next(_sequence)
        with db_session.begin():
            return user_storage.create(
                email=email or f"{role.value.lower()}{n}@example.com",
                name=name or f"{role.value.title()} {n}",
                role=role,
                department=department,
                password=p.Secret(TEST_PASSWORD),
                session=db_session,
            )

    return create_user


@pytest.fixture
def admin(user_factory: t.Callable[..., User]) -> User:
    return user_factory(role=UserRole.Admin, name="Ada Admin", email="admin@example.com")


@pytest.fixture
def gatekeeper(user_factory: t.Callable[..., User]) -> User:
    return user_factory(role=UserRole.Gatekeeper, name="Gil Gatekeeper", email="gatekeeper@example.com")


@pytest.fixture
def lead(user_factory: t.Callable[..., User]) -> User:
    return user_factory(role=UserRole.ProjectLead, name="Lee Lead", email="lead@example.com")


@pytest.fixture
def reviewers(user_factory: t.Callable[..., User]) -> tuple[User, User]:
    return (
        user_factory(role=UserRole.Reviewer, name="Rita Reviewer", email="rita@example.com"),
        user_factory(role=UserRole.Reviewer, name="Rob Reviewer", email="rob@example.com"),
    )


@pytest.fixture
def project_factory(db_session: Session) -> t.Callable[..., Project]:
    def create_project(
        lead: User,
        name: str = "Solar Membrane",
        cluster: str | None = "Energy",
        stage: ProjectStage = ProjectStage.Stage0,
        status: ProjectStatus = ProjectStatus.Active,
    ) -> Project:
        with db_session.begin():
            return project_storage.create(
                name=name, lead_id=lead.user_id, cluster=cluster, stage=stage, status=status, session=db_session
            )

    return create_project


@pytest.fixture
def project(project_factory: t.Callable[..., Project], lead: User) -> Project:
    return project_factory(lead=lead)


@pytest.fixture
def split_catalog() -> CriteriaCatalog:
    """Two criteria, 50/50, so weighted scores are easy to reason about."""
    return CriteriaCatalog([
        Criterion(criterion_id="market", name="Market", weight=50),
        Criterion(criterion_id="feasibility", name="Feasibility", weight=50),
    ])


@pytest.fixture
def catalog(container: StagegateContainer) -> CriteriaCatalog:
    """The configured catalog."""
    return container.review().catalog()


@pytest.fixture
def auth_header(container: StagegateContainer) -> t.Callable[[User], dict[str, str]]:
    def make_header(user: User) -> dict[str, str]:
        token = container.auth().jwt_manager().create_access_token(user.user_id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return make_header


@pytest.fixture
def broken_mail(container: StagegateContainer) -> t.Generator[None]:
    """Every email send fails."""
    with container.notification.sender.override(providers.Object(FailingSender())):
        yield
