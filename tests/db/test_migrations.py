"""
Alembic migration tests.

Tests verify:
1. Alembic configuration exists and points at the migration scripts
2. env.py references Base.metadata and imports every model
3. Upgrading an empty database yields the same tables and columns as the models
4. Downgrading removes every table again
"""

import os

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

import therapease.models  # noqa: F401
from therapease.models.base import Base

ENV_PATH = os.path.join("therapease", "db", "alembic", "env.py")


@pytest.fixture()
def alembic_config(tmp_path, monkeypatch):
    """Programmatic config against a fresh file database."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    config = Config()
    config.set_main_option("script_location", os.path.join("therapease", "db", "alembic"))
    config.set_main_option("sqlalchemy.url", url)
    return config, url


def _schema(url):
    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        return {
            table: {c["name"] for c in inspector.get_columns(table)}
            for table in inspector.get_table_names()
            if table != "alembic_version"
        }
    finally:
        engine.dispose()


class TestAlembicSetup:

    def test_alembic_ini_exists(self):
        assert os.path.exists("alembic.ini")

    def test_alembic_ini_script_location(self):
        with open("alembic.ini") as f:
            content = f.read()
        assert "script_location = therapease/db/alembic" in content

    def test_env_targets_model_metadata(self):
        with open(ENV_PATH) as f:
            content = f.read()
        assert "target_metadata = Base.metadata" in content
        for model in ("Account", "Post", "PostReply", "PostFlag", "Journal", "TherapistProfile",
                      "ContactRequest", "AuditLog"):
            assert model in content

    def test_single_head(self, alembic_config):
        from alembic.script import ScriptDirectory

        config, _ = alembic_config
        assert len(ScriptDirectory.from_config(config).get_heads()) == 1


class TestMigrationRun:

    def test_upgrade_matches_models(self, alembic_config):
        config, url = alembic_config

        command.upgrade(config, "head")

        migrated = _schema(url)
        expected = {name: {c.name for c in table.columns} for name, table in Base.metadata.tables.items()}
        assert migrated == expected

    def test_downgrade_to_base(self, alembic_config):
        config, url = alembic_config

        command.upgrade(config, "head")
        command.downgrade(config, "base")

        assert _schema(url) == {}
