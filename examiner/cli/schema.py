"""CLI commands for migrating the database schema with alembic."""

from __future__ import annotations

import alembic.command
import alembic.config

import examiner.lib.cli as click
from examiner.core import di

AlembicConfig = alembic.config.Config


@click.group("schema")
def schema():
    """Migrate the database schema."""
    ...


@schema.command()
@click.argument("revision", default="head")
@click.option("--sql", is_flag=True, default=False, help="Emit SQL instead of running it")
@di.inject
def up(revision: str, sql: bool, alembic_conf: AlembicConfig = di.Provide["storage.persistent.alembic_config"]):
    """Upgrade to REVISION, the latest by default."""
    alembic.command.upgrade(alembic_conf, revision, sql=sql)


@schema.command()
@click.argument("revision")
@di.inject
def down(revision: str, alembic_conf: AlembicConfig = di.Provide["storage.persistent.alembic_config"]):
    alembic.command.downgrade(alembic_conf, revision)


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def current(verbose: bool, alembic_conf: AlembicConfig = di.Provide["storage.persistent.alembic_config"]):
    alembic.command.current(alembic_conf, verbose=verbose)


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def history(verbose: bool, alembic_conf: AlembicConfig = di.Provide["storage.persistent.alembic_config"]):
    alembic.command.history(alembic_conf, verbose=verbose, indicate_current=True)


@schema.command()
@click.argument("message")
@click.option("--autogenerate/--empty", default=True, help="Diff the tables against the database")
@di.inject
def generate(
    message: str, autogenerate: bool, alembic_conf: AlembicConfig = di.Provide["storage.persistent.alembic_config"]
):
    """Create a new revision described by MESSAGE."""
    alembic.command.revision(alembic_conf, message, autogenerate=autogenerate)


@schema.command()
@click.argument("revision")
@di.inject
def stamp(revision: str, alembic_conf: AlembicConfig = di.Provide["storage.persistent.alembic_config"]):
    """Record REVISION as applied without running migrations."""
    alembic.command.stamp(alembic_conf, revision)
