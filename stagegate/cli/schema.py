"""Database schema migrations."""

from __future__ import annotations

import alembic.command
import alembic.config
import sqlalchemy

import stagegate.lib.cli as click
from stagegate.core import di
from stagegate.model import DeploymentEnvironment
from stagegate.storage.table import metadata

AlembicConfig = di.Provide["storage.persistent.alembic_config"]


@click.group("schema")
def schema(): ...


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def current(verbose: bool, alembic_conf: alembic.config.Config = AlembicConfig):
    """Show the revision the database is at."""
    alembic.command.current(alembic_conf, verbose=verbose)


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def history(verbose: bool, alembic_conf: alembic.config.Config = AlembicConfig):
    alembic.command.history(alembic_conf, verbose=verbose, indicate_current=True)


@schema.command()
@click.argument("message")
@click.option("--autogenerate/--empty", default=True)
@di.inject
def generate(message: str, autogenerate: bool, alembic_conf: alembic.config.Config = AlembicConfig):
    """Write a new revision, diffed against the table definitions unless --empty."""
    alembic.command.revision(alembic_conf, message, autogenerate=autogenerate)


@schema.command()
@click.argument("revision", default="head")
@di.inject
def up(revision: str, alembic_conf: alembic.config.Config = AlembicConfig):
    alembic.command.upgrade(alembic_conf, revision)


@schema.command()
@click.argument("revision")
@di.inject
def down(revision: str, alembic_conf: alembic.config.Config = AlembicConfig):
    alembic.command.downgrade(alembic_conf, revision)


@schema.command()
@click.argument("revision")
@di.inject
def stamp(revision: str, alembic_conf: alembic.config.Config = AlembicConfig):
    alembic.command.stamp(alembic_conf, revision)


@schema.command()
@click.option("--drop", is_flag=True, default=False, help="drop every table first")
@di.inject
def create(
    drop: bool,
    env: DeploymentEnvironment = di.Provide["env"],
    engine: sqlalchemy.Engine = di.Provide["storage.persistent.engine"],
    alembic_conf: alembic.config.Config = AlembicConfig,
):
    """Create all tables directly and stamp them at head. Refused in production."""
    if env is DeploymentEnvironment.Production:
        raise click.ClickException("refusing to create tables outside of migrations in production")
    if drop:
        metadata.drop_all(engine)
    metadata.create_all(engine)
    alembic.command.stamp(alembic_conf, "head")


command = schema
